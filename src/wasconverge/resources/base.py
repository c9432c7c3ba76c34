"""Base handler abstraction for managed WebSphere resources."""
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..reconcile_engine.credentials import CredentialCodec
from ..reconcile_engine.diff import AttributeSpec, DiffEngine
from ..reconcile_engine.reader import ConfigStateReader
from ..reconcile_engine.schema import (
    EntitySnapshot,
    ResolvedScope,
    ResourceChange,
    ResourceDesiredState,
)
from ..reconcile_engine.scope import ConfigDocument, ScopeResolver
from ..transport.base import WsadminRunner

logger = logging.getLogger(__name__)


class ResourceHandler(ABC):
    """Reads, plans and scripts one kind of managed resource.

    Subclasses declare ``kind``, ``desired_type`` and ``attributes`` and
    provide the read step plus the create / modify / destroy script bodies.
    Script bodies are lists of Jython statements; the generator wraps them
    with the shared preamble and the final save.
    """

    kind: str = ""
    desired_type: type = ResourceDesiredState
    attributes: tuple[AttributeSpec, ...] = ()
    document: ConfigDocument = ConfigDocument.SECURITY

    def __init__(
        self,
        resolver: ScopeResolver,
        reader: ConfigStateReader,
        runner: Optional[WsadminRunner] = None,
        diff_engine: Optional[DiffEngine] = None,
        default_user: str = "root",
    ):
        self.resolver = resolver
        self.reader = reader
        self.runner = runner
        self.diff_engine = diff_engine or DiffEngine()
        self.codec = self.diff_engine.codec
        self.default_user = default_user

    def principal(self, desired: ResourceDesiredState) -> str:
        return desired.user or self.default_user

    def label(self, desired: ResourceDesiredState) -> str:
        return desired.name

    def scope(self, desired: ResourceDesiredState) -> ResolvedScope:
        return self.resolver.resolve_spec(desired.scope, self.document)

    def values(self, desired: ResourceDesiredState) -> dict[str, Any]:
        """Desired values keyed by attribute name; None means no opinion."""
        return {spec.name: getattr(desired, spec.name) for spec in self.attributes}

    @abstractmethod
    def read(self, desired: ResourceDesiredState) -> Any:
        """Current state of the resource (usually an EntitySnapshot)."""
        pass

    def plan(self, desired: ResourceDesiredState, state: Any) -> ResourceChange:
        """Decide the change needed to reach the desired state."""
        return self.diff_engine.plan(
            kind=self.kind,
            name=self.label(desired),
            ensure=desired.ensure,
            attributes=self.attributes,
            desired=self.values(desired),
            snapshot=state,
        )

    @abstractmethod
    def create_script(self, desired: ResourceDesiredState, change: ResourceChange) -> list[str]:
        pass

    @abstractmethod
    def modify_script(self, desired: ResourceDesiredState, change: ResourceChange) -> list[str]:
        pass

    @abstractmethod
    def destroy_script(self, desired: ResourceDesiredState, change: ResourceChange) -> list[str]:
        pass

    def secrets(self, desired: ResourceDesiredState, change: ResourceChange) -> tuple[str, ...]:
        """Plaintext secrets that may appear in this resource's scripts."""
        found = []
        for spec in self.attributes:
            if not spec.secret:
                continue
            value = getattr(desired, spec.name, None)
            if value:
                found.append(str(value))
            stored = change.snapshot.attributes.get(spec.xml_name)
            if stored and self.codec.is_obfuscated(stored):
                found.append(self.codec.deobfuscate(stored))
        return tuple(found)

    def current(self, snapshot: EntitySnapshot, spec_name: str) -> Optional[str]:
        """Current value of an attribute, with secrets decoded."""
        for spec in self.attributes:
            if spec.name != spec_name:
                continue
            value = snapshot.attributes.get(spec.xml_name, spec.default)
            if value is not None and spec.secret and self.codec.is_obfuscated(value):
                value = self.codec.deobfuscate(value)
            return value
        raise KeyError(f"Unknown attribute: {spec_name}")
