"""Tests for connection utilities."""

import socket
from unittest.mock import MagicMock

import paramiko
import pytest

from wasconverge.utils.connection import is_transient, with_retry


class TestWithRetry:
    """Tests for retry decorator."""

    def test_success_no_retry(self):
        """Successful function doesn't retry."""
        call_count = 0

        @with_retry(max_attempts=3)
        def succeeding_func():
            nonlocal call_count
            call_count += 1
            return "success"

        assert succeeding_func() == "success"
        assert call_count == 1

    def test_retry_then_success(self):
        """Function retries on failure then succeeds."""
        call_count = 0

        @with_retry(max_attempts=3, min_wait=0.01, max_wait=0.1)
        def failing_then_succeeding():
            nonlocal call_count
            call_count += 1
            if call_count < 2:
                raise ConnectionRefusedError("Connection refused")
            return "success"

        assert failing_then_succeeding() == "success"
        assert call_count == 2

    def test_max_retries_exceeded(self):
        """Function raises the last error after max retries."""
        call_count = 0

        @with_retry(max_attempts=3, min_wait=0.01, max_wait=0.1)
        def always_failing():
            nonlocal call_count
            call_count += 1
            raise TimeoutError("Always times out")

        with pytest.raises(TimeoutError):
            always_failing()
        assert call_count == 3

    def test_non_retryable_exception(self):
        """Non-retryable exceptions are not retried."""
        call_count = 0

        @with_retry(max_attempts=3, min_wait=0.01, max_wait=0.1)
        def raises_value_error():
            nonlocal call_count
            call_count += 1
            raise ValueError("Not retryable")

        with pytest.raises(ValueError):
            raises_value_error()
        assert call_count == 1

    def test_custom_exceptions(self):
        """Only the given exception types are retried."""
        call_count = 0

        @with_retry(max_attempts=2, min_wait=0.01, max_wait=0.1, exceptions=(KeyError,))
        def raises_key_error():
            nonlocal call_count
            call_count += 1
            raise KeyError("x")

        with pytest.raises(KeyError):
            raises_key_error()
        assert call_count == 2

    def test_preserves_metadata(self):
        """Decorated functions keep their name."""
        @with_retry()
        def connect():
            """Connect."""

        assert connect.__name__ == "connect"


class TestIsTransient:
    """Tests for classifying connection failures."""

    def test_network_errors(self):
        """Refused, reset and timed out sockets are worth another attempt."""
        assert is_transient(ConnectionRefusedError("refused"))
        assert is_transient(ConnectionResetError("reset"))
        assert is_transient(socket.timeout("timed out"))
        assert is_transient(EOFError())

    def test_ssh_negotiation_errors(self):
        """SSH protocol failures during setup are retried."""
        assert is_transient(paramiko.SSHException("Error reading SSH protocol banner"))

    def test_credentials_never_retried(self):
        """Bad credentials and host keys fail the same way every time."""
        assert not is_transient(paramiko.AuthenticationException("denied"))
        assert not is_transient(paramiko.BadAuthenticationType("denied", ["publickey"]))
        assert not is_transient(
            paramiko.BadHostKeyException("dmgr02", MagicMock(), MagicMock())
        )

    def test_other_errors(self):
        """Errors that are not about the connection are not retried."""
        assert not is_transient(ValueError("x"))
        assert not is_transient(PermissionError("denied"))

    def test_auth_failure_not_retried_by_decorator(self):
        """The decorator gives up at once on an authentication failure."""
        call_count = 0

        @with_retry(max_attempts=3, min_wait=0.01, max_wait=0.1)
        def login():
            nonlocal call_count
            call_count += 1
            raise paramiko.AuthenticationException("denied")

        with pytest.raises(paramiko.AuthenticationException):
            login()
        assert call_count == 1
