"""Base transport abstraction for the WebSphere administrative tool."""
import os
import logging
import posixpath
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class ProfileConfig:
    """Configuration for one deployment manager profile."""
    profile_base: str
    dmgr_profile: str
    cell: str
    type: str = "local"               # local, ssh
    user: str = "root"                # principal scripts run as
    wsadmin_user: Optional[str] = None
    wsadmin_password: Optional[str] = None
    wsadmin_password_env: str = "WSADMIN_PASSWORD"
    conntype: str = "SOAP"
    keytool_path: str = "keytool"
    # SSH transport
    host: str = "localhost"
    port: int = 22
    username: Optional[str] = None
    password: Optional[str] = None
    password_env: str = "WASCONVERGE_SSH_PASSWORD"
    timeout: int = 30
    retries: int = 3

    def get_password(self) -> str:
        """Get SSH password from config or environment variable."""
        if self.password:
            return self.password
        return os.environ.get(self.password_env, "")

    def get_wsadmin_password(self) -> str:
        """Get wsadmin password from config or environment variable."""
        if self.wsadmin_password:
            return self.wsadmin_password
        return os.environ.get(self.wsadmin_password_env, "")

    @property
    def wsadmin_path(self) -> str:
        return posixpath.join(self.profile_base, self.dmgr_profile, "bin", "wsadmin.sh")


@dataclass
class RunResult:
    """Exit status and combined output of one tool invocation."""
    returncode: int
    output: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


class WsadminRunner(ABC):
    """Runs administrative scripts and commands as a given principal."""

    def __init__(self, profile_id: str, config: ProfileConfig):
        self.profile_id = profile_id
        self.config = config

    def wsadmin_argv(self, script_path: str) -> list[str]:
        """Command line running a Jython script file through wsadmin."""
        argv = [
            self.config.wsadmin_path,
            "-conntype", self.config.conntype,
            "-lang", "jython",
        ]
        if self.config.wsadmin_user:
            argv += [
                "-user", self.config.wsadmin_user,
                "-password", self.config.get_wsadmin_password(),
            ]
        argv += ["-f", script_path]
        return argv

    @staticmethod
    def masked(argv: list[str]) -> list[str]:
        """argv with the value following -password hidden, for logging."""
        shown = list(argv)
        for i, arg in enumerate(shown[:-1]):
            if arg == "-password":
                shown[i + 1] = "********"
        return shown

    @abstractmethod
    def run_script(self, script: str, user: str) -> RunResult:
        """Run a Jython script body through wsadmin as ``user``."""
        pass

    @abstractmethod
    def run_command(
        self,
        argv: list[str],
        user: str,
        input_text: Optional[str] = None,
    ) -> RunResult:
        """Run an arbitrary command (e.g. keytool) as ``user``."""
        pass

    def close(self) -> None:
        """Release any held connection."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.profile_id})"
