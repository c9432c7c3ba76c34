"""Schema definitions for the reconcile engine.

Defines the configuration data model read from WebSphere XML documents,
the desired state format, and the change/result dataclasses that flow
between the diff, generator and executor stages.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Iterator, Optional


class ScopeKind(str, Enum):
    """Configuration scope level."""
    CELL = "cell"
    CLUSTER = "cluster"
    NODE = "node"
    SERVER = "server"


class Ensure(str, Enum):
    """Whether a resource should exist."""
    PRESENT = "present"   # Create if missing, update if different
    ABSENT = "absent"     # Delete if exists


class ChangeType(str, Enum):
    """Type of change in a diff."""
    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"
    NO_CHANGE = "no_change"


class ClassLoaderMode(str, Enum):
    """Class loading order of an application server class loader."""
    PARENT_FIRST = "PARENT_FIRST"
    PARENT_LAST = "PARENT_LAST"


# --- Configuration data model ---

@dataclass(frozen=True)
class ManagementScope:
    """A managementScopes entry of a security document."""
    id: str
    name: str   # e.g. "(cell):CELL_01:(node):NODE_01"
    kind: str   # scopeType attribute


@dataclass(frozen=True)
class ConfigEntity:
    """An element of a configuration document that carries an xmi:id."""
    id: str
    type_tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    scope_ref: Optional[str] = None
    xmi_type: Optional[str] = None
    parent_id: Optional[str] = None


@dataclass(frozen=True)
class ClassLoaderInstance:
    """An anonymous class loader under an application server."""
    id: str
    mode: ClassLoaderMode
    libraries: tuple[str, ...] = ()


@dataclass(frozen=True)
class EntitySnapshot:
    """Current state of a single configuration entity.

    ``exists`` is False when either the document or the entity is absent;
    ``attributes`` is then empty.
    """
    exists: bool
    attributes: dict[str, str] = field(default_factory=dict)
    entity_id: Optional[str] = None

    @classmethod
    def absent(cls) -> "EntitySnapshot":
        return cls(exists=False)


@dataclass
class ScopeSpec:
    """Where a resource lives. ``cell`` falls back to the profile's cell."""
    kind: ScopeKind = ScopeKind.CELL
    cell: Optional[str] = None
    cluster: Optional[str] = None
    node: Optional[str] = None
    server: Optional[str] = None


@dataclass(frozen=True)
class ResolvedScope:
    """Every textual representation of one scope."""
    kind: ScopeKind
    query: str   # /Cell:C/Node:N/Server:S
    mod: str     # cells/C/nodes/N/servers/S
    xml: str     # (cell):C:(node):N:(server):S
    file: str    # absolute path of the authoritative document


# --- Desired state ---

@dataclass
class ResourceDesiredState:
    """Fields every managed resource shares.

    Resource-specific dataclasses extend this with their own attributes.
    Attributes left as None express no opinion and are never compared.
    """
    name: str
    ensure: Ensure = Ensure.PRESENT
    scope: ScopeSpec = field(default_factory=ScopeSpec)
    user: Optional[str] = None

    # Set by each subclass
    kind = ""

    def __post_init__(self):
        self.ensure = Ensure(self.ensure)


@dataclass
class DesiredState:
    """Complete desired state document for one deployment manager profile."""
    profile_id: str
    user: Optional[str] = None
    resources: list[ResourceDesiredState] = field(default_factory=list)


# --- Diff results ---

class PendingChangeSet:
    """Attribute changes accumulated for one resource during a single pass.

    Only attribute names declared by the resource may be set. Keys of a
    nested attribute are set as ``<attribute>.<key>`` when the attribute
    is listed in ``maps``. An empty change-set means no mutation is emitted.
    """

    def __init__(self, attributes: Iterable[str] = (), maps: Iterable[str] = ()):
        self._allowed = frozenset(attributes)
        self._maps = frozenset(maps)
        self._changes: dict[str, Any] = {}

    def set(self, attribute: str, value: Any) -> None:
        base, _, key = attribute.partition(".")
        if attribute not in self._allowed and not (key and base in self._maps):
            raise KeyError(f"Unknown attribute: {attribute}")
        self._changes[attribute] = value

    def get(self, attribute: str, default: Any = None) -> Any:
        return self._changes.get(attribute, default)

    def submap(self, attribute: str) -> dict[str, Any]:
        """Changed keys of a nested attribute, without the attribute prefix."""
        prefix = f"{attribute}."
        return {
            name[len(prefix):]: value
            for name, value in self._changes.items()
            if name.startswith(prefix)
        }

    def items(self):
        return self._changes.items()

    def as_dict(self) -> dict[str, Any]:
        return dict(self._changes)

    def __contains__(self, attribute: object) -> bool:
        return attribute in self._changes

    def __iter__(self) -> Iterator[str]:
        return iter(self._changes)

    def __len__(self) -> int:
        return len(self._changes)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PendingChangeSet):
            return self._changes == other._changes
        if isinstance(other, dict):
            return self._changes == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"PendingChangeSet({self._changes!r})"


@dataclass
class ResourceChange:
    """A single pending change for one resource."""
    kind: str
    name: str
    change_type: ChangeType
    changes: PendingChangeSet = field(default_factory=PendingChangeSet)
    snapshot: EntitySnapshot = field(default_factory=EntitySnapshot.absent)
    target_id: Optional[str] = None
    secret_attributes: frozenset = frozenset()

    @property
    def no_change(self) -> bool:
        return self.change_type == ChangeType.NO_CHANGE

    def describe(self) -> str:
        """Human-readable description, with secret values masked."""
        if self.change_type == ChangeType.CREATE:
            return f"Create {self.kind} '{self.name}'"
        if self.change_type == ChangeType.DELETE:
            return f"Delete {self.kind} '{self.name}'"
        if self.change_type == ChangeType.NO_CHANGE:
            return f"No change to {self.kind} '{self.name}'"

        parts = []
        for attribute, value in self.changes.items():
            if attribute in self.secret_attributes:
                value = "********"
            parts.append(f"{attribute}={value}")
        return f"Modify {self.kind} '{self.name}': {', '.join(parts)}"


# --- Script plan ---

@dataclass
class Script:
    """One administrative script, executed as a single mutation."""
    kind: str
    name: str
    change_type: ChangeType
    body: str
    principal: str = "root"
    secrets: tuple[str, ...] = ()

    def masked(self) -> str:
        """Script text with every known secret value replaced."""
        text = self.body
        for secret in self.secrets:
            if secret:
                text = text.replace(secret, "********")
        return text


# --- Execution results ---

@dataclass
class ExecutionOutcome:
    """Result of running (or dry-running) one script."""
    dry_run: bool
    output: str = ""
    returncode: Optional[int] = None


@dataclass
class ResourceResult:
    """Reconciliation result for one resource."""
    kind: str
    name: str
    success: bool = False
    dry_run: bool = False
    change_type: ChangeType = ChangeType.NO_CHANGE
    changes_made: list[str] = field(default_factory=list)
    script: Optional[str] = None
    output: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    retryable: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind,
            "name": self.name,
            "success": self.success,
            "dry_run": self.dry_run,
            "change_type": self.change_type.value,
            "changes_made": self.changes_made,
            "script": self.script,
            "output": self.output,
            "error": self.error,
            "error_type": self.error_type,
            "retryable": self.retryable,
        }


@dataclass
class RunReport:
    """Results of reconciling a whole desired state document."""
    profile_id: Optional[str] = None
    dry_run: bool = False
    results: list[ResourceResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None and all(r.success for r in self.results)

    @property
    def failed(self) -> list[ResourceResult]:
        return [r for r in self.results if not r.success]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "profile": self.profile_id,
            "success": self.success,
            "dry_run": self.dry_run,
            "error": self.error,
            "results": [r.to_dict() for r in self.results],
        }


# --- Audit Entry ---

@dataclass
class AuditEntry:
    """Audit log entry for one executed script."""
    timestamp: datetime
    resource: str
    operation: str
    user: str = "root"
    dry_run: bool = False
    success: bool = False
    changes: list[str] = field(default_factory=list)
    error: Optional[str] = None
