"""Transports that run the WebSphere administrative tool."""
from .base import ProfileConfig, RunResult, WsadminRunner
from .local import LocalWsadminRunner
from .ssh import SshWsadminRunner

__all__ = [
    "ProfileConfig",
    "RunResult",
    "WsadminRunner",
    "LocalWsadminRunner",
    "SshWsadminRunner",
]

# Transport type registry
RUNNER_TYPES = {
    "local": LocalWsadminRunner,
    "ssh": SshWsadminRunner,
}


def create_runner(profile_id: str, config: dict) -> WsadminRunner:
    """Factory function to create transport instances."""
    runner_type = config.get("type", "local").lower()
    if runner_type not in RUNNER_TYPES:
        raise ValueError(f"Unknown transport type: {runner_type}")

    runner_class = RUNNER_TYPES[runner_type]
    return runner_class(profile_id, ProfileConfig(**config))
