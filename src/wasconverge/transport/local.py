"""Run wsadmin on the deployment manager host itself."""
import getpass
import logging
import os
import shlex
import subprocess
import tempfile
from typing import Optional

from ..errors import ExternalToolError
from ..utils.logging_config import timed
from .base import RunResult, WsadminRunner

logger = logging.getLogger(__name__)


class LocalWsadminRunner(WsadminRunner):
    """Invoke wsadmin through subprocess, switching user with su when needed."""

    @timed("run_script")
    def run_script(self, script: str, user: str) -> RunResult:
        path = None
        try:
            fd, path = tempfile.mkstemp(prefix="wasconverge_", suffix=".py")
            with os.fdopen(fd, "w") as f:
                f.write(script)
            # The principal may differ from the current user
            os.chmod(path, 0o644)
        except OSError as e:
            if path:
                self._remove(path)
            raise ExternalToolError(f"Cannot stage script for wsadmin: {e}") from e

        try:
            return self.run_command(self.wsadmin_argv(path), user)
        finally:
            self._remove(path)

    @staticmethod
    def _remove(path: str) -> None:
        try:
            os.unlink(path)
        except OSError:
            logger.warning(f"Could not remove {path}")

    def run_command(
        self,
        argv: list[str],
        user: str,
        input_text: Optional[str] = None,
    ) -> RunResult:
        cmd = self._as_user(argv, user)
        logger.debug(f"Running as {user}: {' '.join(self.masked(argv))}")

        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                input=input_text,
                check=False,
            )
        except OSError as e:
            raise ExternalToolError(f"Cannot run {argv[0]}: {e}") from e

        output = proc.stdout
        if proc.stderr:
            output = f"{output}\n{proc.stderr}".strip()

        if proc.returncode != 0:
            logger.debug(f"{argv[0]} exited {proc.returncode}: {output}")
        return RunResult(returncode=proc.returncode, output=output)

    @staticmethod
    def _as_user(argv: list[str], user: str) -> list[str]:
        if not user or user == getpass.getuser():
            return argv
        return ["su", "-", user, "-c", shlex.join(argv)]
