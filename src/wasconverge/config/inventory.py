"""Topology inventory management from YAML configuration."""
import logging
from pathlib import Path
from typing import Optional

import yaml

from ..reconcile_engine.scope import ScopeResolver
from ..transport import ProfileConfig, WsadminRunner, create_runner

logger = logging.getLogger(__name__)


class TopologyInventory:
    """Deployment manager profiles loaded from topology.yaml.

    ```yaml
    defaults:
      profile_base: /opt/IBM/WebSphere/AppServer/profiles
      user: webadmin
      wsadmin_user: wasadmin
    profiles:
      dmgr01:
        dmgr_profile: PROFILE_DMGR_01
        cell: CELL_01
      dmgr02:
        type: ssh
        host: was-dmgr02.example.com
        username: webadmin
        dmgr_profile: PROFILE_DMGR_02
        cell: CELL_02
    ```
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or self._find_config()
        self._config: dict = {}
        self._runners: dict[str, WsadminRunner] = {}
        self._load_config()

    def _find_config(self) -> str:
        """Find the topology.yaml config file."""
        search_paths = [
            Path.cwd() / "configs" / "topology.yaml",
            Path.cwd() / "topology.yaml",
            Path.home() / ".config" / "wasconverge" / "topology.yaml",
            Path("/etc/wasconverge/topology.yaml"),
        ]

        for path in search_paths:
            if path.exists():
                return str(path)

        raise FileNotFoundError(
            "Could not find topology.yaml. Create one in ./configs/topology.yaml"
        )

    def _load_config(self) -> None:
        """Load the YAML configuration."""
        with open(self.config_path) as f:
            self._config = yaml.safe_load(f) or {}

        # Apply defaults
        defaults = self._config.get("defaults", {})
        for profile_id, profile_config in self._config.get("profiles", {}).items():
            for key, value in defaults.items():
                if key not in profile_config:
                    profile_config[key] = value

        logger.debug(
            f"Loaded {len(self.get_profile_ids())} profiles from {self.config_path}"
        )

    def get_profile_ids(self) -> list[str]:
        """Get all profile IDs."""
        return list(self._config.get("profiles", {}).keys())

    def get_profile_config(self, profile_id: str) -> dict:
        """Get raw config for a profile."""
        profiles = self._config.get("profiles", {})
        if profile_id not in profiles:
            raise KeyError(f"Unknown profile: {profile_id}")
        return profiles[profile_id]

    def get_profile(self, profile_id: str) -> ProfileConfig:
        """Get typed config for a profile."""
        config = dict(self.get_profile_config(profile_id))
        try:
            return ProfileConfig(**config)
        except TypeError as e:
            raise KeyError(f"Invalid configuration for profile {profile_id}: {e}") from e

    def get_resolver(self, profile_id: str) -> ScopeResolver:
        """Scope resolver bound to a profile's directories and cell."""
        profile = self.get_profile(profile_id)
        return ScopeResolver(profile.profile_base, profile.dmgr_profile, profile.cell)

    def get_runner(self, profile_id: str) -> WsadminRunner:
        """Get or create the transport for a profile."""
        if profile_id not in self._runners:
            config = self.get_profile_config(profile_id)
            self._runners[profile_id] = create_runner(profile_id, dict(config))
        return self._runners[profile_id]

    def close_all(self) -> None:
        """Close all transport connections."""
        for runner in self._runners.values():
            runner.close()
        self._runners.clear()
