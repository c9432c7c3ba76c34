"""Parser for desired state documents.

Converts dict/YAML input to strongly-typed desired state objects:

    profile: dmgr01
    user: webadmin
    resources:
      - kind: keystore
        name: AppKeyStore
        scope: {kind: node, node: NODE01}
        location: ${CONFIG_ROOT}/cells/CELL_01/nodes/NODE01/app.p12
        type: PKCS12
        usage: SSLKeys
        store_password: secret
"""
import dataclasses
from typing import Any

from .. import resources
from ..errors import ParseError
from .schema import DesiredState, ResourceDesiredState, ScopeSpec

# Keys every resource entry may carry besides its own attributes
COMMON_KEYS = {"kind", "name", "ensure", "scope", "user"}
SCOPE_KEYS = {f.name for f in dataclasses.fields(ScopeSpec)}


class ConfigParser:
    """Parse desired state from dict/YAML format."""

    def parse(self, config: dict[str, Any]) -> DesiredState:
        """
        Parse a desired state document.

        Args:
            config: Dict with profile, optional user and a resources list

        Returns:
            DesiredState object

        Raises:
            ParseError: If the document is invalid
        """
        if not isinstance(config, dict):
            raise ParseError("Desired state must be a mapping")

        profile_id = config.get("profile")
        if not profile_id:
            raise ParseError("Missing required field: profile")

        user = config.get("user")
        entries = config.get("resources") or []
        if not isinstance(entries, list):
            raise ParseError("resources must be a list")

        parsed = []
        for index, entry in enumerate(entries):
            parsed.append(self._parse_resource(index, entry, user))

        return DesiredState(profile_id=str(profile_id), user=user, resources=parsed)

    def _parse_resource(self, index: int, entry: Any, default_user: Any) -> ResourceDesiredState:
        if not isinstance(entry, dict):
            raise ParseError(f"resources[{index}] must be a mapping")

        kind = entry.get("kind")
        if kind not in resources.RESOURCE_TYPES:
            raise ParseError(
                f"resources[{index}]: unknown kind {kind!r}. "
                f"Must be one of: {', '.join(sorted(resources.RESOURCE_TYPES))}"
            )
        name = entry.get("name")
        if not name:
            raise ParseError(f"resources[{index}] ({kind}): missing required field: name")

        desired_type = resources.RESOURCE_TYPES[kind].desired_type
        allowed = {f.name for f in dataclasses.fields(desired_type)}
        unknown = set(entry) - allowed - COMMON_KEYS
        if unknown:
            raise ParseError(
                f"{kind} '{name}': unknown attributes: {', '.join(sorted(unknown))}"
            )

        values = {k: v for k, v in entry.items() if k != "kind"}
        values["name"] = str(name)
        values["scope"] = self._parse_scope(kind, name, entry.get("scope"))
        values["user"] = entry.get("user") or default_user

        maps = {spec.name for spec in resources.RESOURCE_TYPES[kind].attributes if spec.nested}
        for key, value in values.items():
            if key == "shared_libs" and not isinstance(value, list):
                raise ParseError(f"{kind} '{name}': shared_libs must be a list")
            if key in maps and value is not None and not isinstance(value, dict):
                raise ParseError(f"{kind} '{name}': {key} must be a mapping")

        try:
            return desired_type(**values)
        except (TypeError, ValueError) as e:
            raise ParseError(f"{kind} '{name}': {e}") from e

    def _parse_scope(self, kind: str, name: str, scope: Any) -> ScopeSpec:
        """Scope given as a kind name, a mapping, or omitted (cell)."""
        if scope is None:
            return ScopeSpec()
        if isinstance(scope, str):
            return ScopeSpec(kind=scope)
        if not isinstance(scope, dict):
            raise ParseError(f"{kind} '{name}': scope must be a kind name or a mapping")

        unknown = set(scope) - SCOPE_KEYS
        if unknown:
            raise ParseError(
                f"{kind} '{name}': unknown scope fields: {', '.join(sorted(unknown))}"
            )
        return ScopeSpec(**scope)
