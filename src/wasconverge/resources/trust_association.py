"""LTPA trust association of a security domain."""
from dataclasses import dataclass
from typing import Optional

from ..errors import RefusedOperationError
from ..reconcile_engine.diff import AttributeSpec
from ..reconcile_engine.jython import task_args
from ..reconcile_engine.schema import (
    EntitySnapshot,
    ResourceChange,
    ResourceDesiredState,
    ScopeKind,
)
from .base import ResourceHandler

GLOBAL_DOMAIN = "global"


@dataclass
class TrustAssociationDesiredState(ResourceDesiredState):
    """Desired state of a trust association; ``name`` is the security domain."""
    enabled: Optional[bool] = None

    kind = "trust_association"


class TrustAssociationHandler(ResourceHandler):
    """trustAssociation under the LTPA auth mechanism of a security domain."""

    kind = "trust_association"
    desired_type = TrustAssociationDesiredState
    attributes = (
        AttributeSpec("enabled", "enabled", default="false"),
    )

    def is_global(self, desired: TrustAssociationDesiredState) -> bool:
        return desired.name == GLOBAL_DOMAIN

    def document_path(self, desired: TrustAssociationDesiredState) -> str:
        if self.is_global(desired):
            return self.resolver.resolve(ScopeKind.CELL, cell=desired.scope.cell).file
        return self.resolver.security_domain_file(desired.name)

    def read(self, desired: TrustAssociationDesiredState) -> EntitySnapshot:
        return self.reader.read_trust_association(
            self.document_path(desired),
            global_domain=self.is_global(desired),
        )

    def _configure(self, desired: TrustAssociationDesiredState, enabled: bool) -> list[str]:
        domain = None if self.is_global(desired) else desired.name
        args = task_args([("securityDomainName", domain), ("enable", enabled)])
        return [f"AdminTask.configureTrustAssociation({args})"]

    def create_script(self, desired: TrustAssociationDesiredState, change: ResourceChange) -> list[str]:
        if desired.enabled is None:
            raise RefusedOperationError(
                f"Trust association of {desired.name} does not exist yet; "
                "set enabled to create it"
            )
        return self._configure(desired, desired.enabled)

    def modify_script(self, desired: TrustAssociationDesiredState, change: ResourceChange) -> list[str]:
        return self._configure(desired, bool(change.changes.get("enabled")))

    def destroy_script(self, desired: TrustAssociationDesiredState, change: ResourceChange) -> list[str]:
        if self.is_global(desired):
            raise RefusedOperationError(
                "Refusing to remove the trust association of the global security "
                "domain; set enabled to false instead"
            )
        args = task_args([("securityDomainName", desired.name)])
        return [f"AdminTask.unconfigureTrustAssociation({args})"]
