"""SSL configuration groups held in the cell's security.xml."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..reconcile_engine.diff import AttributeSpec
from ..reconcile_engine.jython import task_args
from ..reconcile_engine.reader import ReferenceRule
from ..reconcile_engine.schema import (
    EntitySnapshot,
    ResourceChange,
    ResourceDesiredState,
    ScopeKind,
)
from .base import ResourceHandler


class Direction(str, Enum):
    """Connection direction an SSL config group applies to."""
    INBOUND = "inbound"
    OUTBOUND = "outbound"


@dataclass
class SSLConfigGroupDesiredState(ResourceDesiredState):
    """Desired state of an SSL config group."""
    direction: Direction = Direction.INBOUND
    ssl_config_name: Optional[str] = None
    ssl_config_scope: Optional[ScopeKind] = None
    client_cert_alias: Optional[str] = None

    kind = "ssl_config_group"

    def __post_init__(self):
        super().__post_init__()
        self.direction = Direction(self.direction)
        if self.ssl_config_scope is not None:
            self.ssl_config_scope = ScopeKind(self.ssl_config_scope)


class SSLConfigGroupHandler(ResourceHandler):
    """sslConfigGroups[@name][@direction] within a management scope.

    The group points at its SSL config by xmi:id; the snapshot carries the
    referenced repertoire's alias and the kind of its management scope.
    """

    kind = "ssl_config_group"
    desired_type = SSLConfigGroupDesiredState
    attributes = (
        AttributeSpec("ssl_config_name", "sslConfig"),
        AttributeSpec("ssl_config_scope", "sslConfigScopeType"),
        AttributeSpec("client_cert_alias", "certificateAlias", default=""),
    )

    SSL_CONFIG_REFERENCE = ReferenceRule(
        attribute="sslConfig",
        target_tag="repertoire",
        fields={"sslConfig": "alias"},
        scope_fields={"sslConfigScope": "name", "sslConfigScopeType": "kind"},
    )

    def label(self, desired: SSLConfigGroupDesiredState) -> str:
        return f"{desired.name} ({desired.direction.value})"

    def read(self, desired: SSLConfigGroupDesiredState) -> EntitySnapshot:
        scope = self.scope(desired)
        return self.reader.read_named(
            scope.file,
            "sslConfigGroups",
            desired.name,
            scope_xml=scope.xml,
            match={"direction": desired.direction.value},
            references=(self.SSL_CONFIG_REFERENCE,),
        )

    def ssl_config_scope_xml(self, desired: SSLConfigGroupDesiredState) -> str:
        """Scope name of the SSL config, built from the group's own identifiers."""
        spec = desired.scope
        return self.resolver.resolve(
            desired.ssl_config_scope or spec.kind,
            cell=spec.cell,
            cluster=spec.cluster,
            node=spec.node,
            server=spec.server,
        ).xml

    def _arguments(
        self,
        desired: SSLConfigGroupDesiredState,
        ssl_config_name: Optional[str],
        ssl_config_scope: str,
        client_cert_alias: Optional[str],
    ) -> str:
        return task_args([
            ("name", desired.name),
            ("scopeName", self.scope(desired).xml),
            ("direction", desired.direction.value),
            ("sslConfigScopeName", ssl_config_scope),
            ("sslConfigAliasName", ssl_config_name),
            ("certificateAlias", client_cert_alias or ""),
        ])

    def create_script(self, desired: SSLConfigGroupDesiredState, change: ResourceChange) -> list[str]:
        args = self._arguments(
            desired,
            desired.ssl_config_name,
            self.ssl_config_scope_xml(desired),
            desired.client_cert_alias,
        )
        return [f"AdminTask.createSSLConfigGroup({args})"]

    def modify_script(self, desired: SSLConfigGroupDesiredState, change: ResourceChange) -> list[str]:
        current = change.snapshot.attributes
        if "ssl_config_scope" in change.changes:
            ssl_config_scope = self.ssl_config_scope_xml(desired)
        else:
            ssl_config_scope = current.get("sslConfigScope", "")

        args = self._arguments(
            desired,
            change.changes.get("ssl_config_name", current.get("sslConfig")),
            ssl_config_scope,
            change.changes.get("client_cert_alias", current.get("certificateAlias", "")),
        )
        return [f"AdminTask.modifySSLConfigGroup({args})"]

    def destroy_script(self, desired: SSLConfigGroupDesiredState, change: ResourceChange) -> list[str]:
        args = task_args([
            ("name", desired.name),
            ("scopeName", self.scope(desired).xml),
            ("direction", desired.direction.value),
        ])
        return [f"AdminTask.deleteSSLConfigGroup({args})"]
