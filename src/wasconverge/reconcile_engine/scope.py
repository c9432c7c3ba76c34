"""Scope addressing for WebSphere configuration.

A single logical location (cell, cluster, node or server) is spelled
differently by every part of the administrative interface:

    query  /Cell:C/Node:N/Server:S          AdminConfig.getid()
    mod    cells/C/nodes/N/servers/S        AdminConfig containment paths
    xml    (cell):C:(node):N:(server):S     managementScopes@scopeName
    file   <profile>/config/cells/C/...     the document holding the state
"""
import posixpath
from enum import Enum
from typing import Optional, Union

from ..errors import InvalidScopeError
from .schema import ResolvedScope, ScopeKind, ScopeSpec


class ConfigDocument(str, Enum):
    """Configuration documents the reconciler reads."""
    SECURITY = "security.xml"     # cell level only
    RESOURCES = "resources.xml"   # one per scope level
    SERVER = "server.xml"         # server level only


# Identifiers required for each scope kind, besides the cell
REQUIRED_IDENTIFIERS = {
    ScopeKind.CELL: (),
    ScopeKind.CLUSTER: ("cluster",),
    ScopeKind.NODE: ("node",),
    ScopeKind.SERVER: ("node", "server"),
}


class ScopeResolver:
    """Derive every address form of a scope for one deployment manager profile."""

    def __init__(
        self,
        profile_base: str,
        dmgr_profile: str,
        cell: Optional[str] = None,
    ):
        """
        Args:
            profile_base: Absolute directory holding the profiles
            dmgr_profile: Deployment manager profile directory name
            cell: Default cell when a scope does not name one
        """
        if not profile_base or not posixpath.isabs(profile_base):
            raise InvalidScopeError(
                f"profile_base must be an absolute path, got {profile_base!r}"
            )
        if not dmgr_profile:
            raise InvalidScopeError("dmgr_profile is required")

        self.profile_base = profile_base.rstrip("/") or "/"
        self.dmgr_profile = dmgr_profile
        self.cell = cell

    @property
    def config_root(self) -> str:
        """The profile's config directory, substituted for ${CONFIG_ROOT}."""
        return posixpath.join(self.profile_base, self.dmgr_profile, "config")

    def resolve(
        self,
        kind: Union[ScopeKind, str],
        cell: Optional[str] = None,
        cluster: Optional[str] = None,
        node: Optional[str] = None,
        server: Optional[str] = None,
        document: ConfigDocument = ConfigDocument.SECURITY,
    ) -> ResolvedScope:
        """
        Resolve a scope into its query, mod, xml and file forms.

        Args:
            kind: cell, cluster, node or server
            cell: Cell name (defaults to the resolver's cell)
            cluster: Cluster name, required for cluster scope
            node: Node name, required for node and server scope
            server: Server name, required for server scope
            document: Which configuration document ``file`` points at

        Returns:
            ResolvedScope with all four representations

        Raises:
            InvalidScopeError: If kind is unknown or identifiers are missing
        """
        try:
            kind = ScopeKind(kind)
        except ValueError:
            raise InvalidScopeError(
                f"Unknown scope kind: {kind!r}. "
                f"Must be one of: {', '.join(k.value for k in ScopeKind)}"
            ) from None

        cell = cell or self.cell
        if not cell:
            raise InvalidScopeError(f"{kind.value} scope requires a cell")

        given = {"cluster": cluster, "node": node, "server": server}
        missing = [name for name in REQUIRED_IDENTIFIERS[kind] if not given[name]]
        if missing:
            raise InvalidScopeError(
                f"{kind.value} scope requires: {', '.join(missing)}"
            )

        query = f"/Cell:{cell}"
        mod = f"cells/{cell}"
        xml = f"(cell):{cell}"

        if kind == ScopeKind.CLUSTER:
            query += f"/ServerCluster:{cluster}"
            mod += f"/clusters/{cluster}"
            xml += f":(cluster):{cluster}"
        elif kind in (ScopeKind.NODE, ScopeKind.SERVER):
            query += f"/Node:{node}"
            mod += f"/nodes/{node}"
            xml += f":(node):{node}"
            if kind == ScopeKind.SERVER:
                query += f"/Server:{server}"
                mod += f"/servers/{server}"
                xml += f":(server):{server}"

        return ResolvedScope(
            kind=kind,
            query=query,
            mod=mod,
            xml=xml,
            file=self._document_path(kind, cell, mod, ConfigDocument(document)),
        )

    def resolve_spec(
        self,
        spec: ScopeSpec,
        document: ConfigDocument = ConfigDocument.SECURITY,
    ) -> ResolvedScope:
        """Resolve a ScopeSpec taken from a desired state document."""
        return self.resolve(
            spec.kind,
            cell=spec.cell,
            cluster=spec.cluster,
            node=spec.node,
            server=spec.server,
            document=document,
        )

    def security_domain_file(self, domain: str) -> str:
        """Path of a named security domain's domain-security.xml."""
        if not domain:
            raise InvalidScopeError("security domain name is required")
        return posixpath.join(
            self.config_root,
            "waspolicies", "default", "securitydomains", domain,
            "domain-security.xml",
        )

    def _document_path(
        self,
        kind: ScopeKind,
        cell: str,
        mod: str,
        document: ConfigDocument,
    ) -> str:
        if document == ConfigDocument.SECURITY:
            return posixpath.join(self.config_root, "cells", cell, document.value)

        if document == ConfigDocument.SERVER and kind != ScopeKind.SERVER:
            raise InvalidScopeError(
                f"{document.value} exists only at server scope, not {kind.value}"
            )
        return posixpath.join(self.config_root, mod, document.value)
