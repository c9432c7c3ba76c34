"""Run wsadmin on a remote deployment manager host over SSH."""
import logging
import shlex
import uuid
from typing import Optional

import paramiko

from ..errors import ExternalToolError
from ..utils.connection import with_retry
from ..utils.logging_config import timed
from .base import ProfileConfig, RunResult, WsadminRunner

logger = logging.getLogger(__name__)


class SshWsadminRunner(WsadminRunner):
    """Upload scripts over SFTP and run them with paramiko."""

    # Backoff bounds between connection attempts, in seconds
    retry_min_wait = 1.0
    retry_max_wait = 10.0

    def __init__(self, profile_id: str, config: ProfileConfig):
        super().__init__(profile_id, config)
        self._ssh: Optional[paramiko.SSHClient] = None

    def connect(self) -> None:
        """Connect to the deployment manager host via SSH, retrying per profile.

        Dropped sockets and banner timeouts are retried. Rejected
        credentials and host keys are raised on the first attempt.
        """
        with_retry(
            max_attempts=max(1, self.config.retries),
            min_wait=self.retry_min_wait,
            max_wait=self.retry_max_wait,
        )(self._open)()

    def _open(self) -> None:
        logger.info(f"Connecting to {self.profile_id} at {self.config.host}")

        ssh = paramiko.SSHClient()
        ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        ssh.connect(
            hostname=self.config.host,
            port=self.config.port,
            username=self.config.username,
            password=self.config.get_password() or None,
            timeout=self.config.timeout,
            allow_agent=False,
            look_for_keys=False,
        )
        self._ssh = ssh
        logger.info(f"Connected to {self.profile_id}")

    def close(self) -> None:
        if self._ssh:
            self._ssh.close()
            self._ssh = None

    def __enter__(self) -> "SshWsadminRunner":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _client(self) -> paramiko.SSHClient:
        if self._ssh is None:
            try:
                self.connect()
            except (paramiko.SSHException, OSError, EOFError) as e:
                raise ExternalToolError(
                    f"Cannot connect to {self.config.host}:{self.config.port}: {e}"
                ) from e
        return self._ssh

    @timed("run_script")
    def run_script(self, script: str, user: str) -> RunResult:
        ssh = self._client()
        remote_path = f"/tmp/wasconverge_{uuid.uuid4().hex}.py"

        try:
            sftp = ssh.open_sftp()
        except (paramiko.SSHException, OSError) as e:
            raise ExternalToolError(f"Cannot open SFTP session: {e}") from e

        try:
            with sftp.open(remote_path, "w") as f:
                f.write(script)
            sftp.chmod(remote_path, 0o644)
            return self.run_command(self.wsadmin_argv(remote_path), user)
        except (paramiko.SSHException, OSError) as e:
            raise ExternalToolError(f"Cannot stage script on {self.config.host}: {e}") from e
        finally:
            try:
                sftp.remove(remote_path)
            except OSError:
                logger.warning(f"Could not remove {remote_path} on {self.config.host}")
            sftp.close()

    def run_command(
        self,
        argv: list[str],
        user: str,
        input_text: Optional[str] = None,
    ) -> RunResult:
        ssh = self._client()
        command = self._as_user(argv, user)
        logger.debug(f"Running on {self.config.host} as {user}: {' '.join(self.masked(argv))}")

        try:
            stdin, stdout, stderr = ssh.exec_command(command)
            if input_text is not None:
                stdin.write(input_text)
                stdin.flush()
                stdin.channel.shutdown_write()
            out = stdout.read().decode("utf-8", errors="ignore")
            err = stderr.read().decode("utf-8", errors="ignore")
            exit_code = stdout.channel.recv_exit_status()
        except (paramiko.SSHException, OSError) as e:
            raise ExternalToolError(f"Remote command failed to run: {e}") from e

        output = f"{out}\n{err}".strip() if err else out
        if exit_code != 0:
            logger.debug(f"{argv[0]} exited {exit_code}: {output}")
        return RunResult(returncode=exit_code, output=output)

    def _as_user(self, argv: list[str], user: str) -> str:
        command = shlex.join(argv)
        if not user or user == self.config.username:
            return command
        return f"su - {shlex.quote(user)} -c {shlex.quote(command)}"
