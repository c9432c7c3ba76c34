"""Retry policy for opening SSH sessions to a deployment manager host.

Only session setup is retried. A script that ran and failed is never
re-run here; convergence retries happen by reconciling again.
"""
import logging
import socket
from functools import wraps
from typing import Any, Callable, TypeVar

import paramiko
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


# Failures that may clear up on the next attempt: refused or reset
# sockets, timeouts, a dropped banner exchange
RETRYABLE_EXCEPTIONS = (
    ConnectionError,
    TimeoutError,
    socket.timeout,
    EOFError,
    paramiko.ssh_exception.NoValidConnectionsError,
    paramiko.SSHException,
)

# Subclasses of the above that will fail the same way every time
PERMANENT_EXCEPTIONS = (
    paramiko.AuthenticationException,
    paramiko.BadHostKeyException,
)


def is_transient(
    exc: BaseException,
    exceptions: tuple = RETRYABLE_EXCEPTIONS,
    never: tuple = PERMANENT_EXCEPTIONS,
) -> bool:
    """Whether another connection attempt could succeed after ``exc``."""
    return isinstance(exc, exceptions) and not isinstance(exc, never)


def with_retry(
    max_attempts: int = 3,
    min_wait: float = 1,
    max_wait: float = 10,
    exceptions: tuple = RETRYABLE_EXCEPTIONS,
    never: tuple = PERMANENT_EXCEPTIONS,
) -> Callable:
    """Decorator factory retrying transient connection failures with backoff.

    Args:
        max_attempts: Maximum number of attempts
        min_wait: Minimum wait time between attempts (seconds)
        max_wait: Maximum wait time between attempts (seconds)
        exceptions: Exception types worth another attempt
        never: Exception types re-raised at once even if listed in ``exceptions``
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
            retry=retry_if_exception(lambda e: is_transient(e, exceptions, never)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            return func(*args, **kwargs)

        return wrapper

    return decorator
