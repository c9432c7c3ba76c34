"""Diff engine for calculating changes between desired and current state.

Only attributes the caller set are compared; None means "no opinion".
Every differing attribute lands in one PendingChangeSet so that a
resource is changed by a single script.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from ..errors import ImmutablePropertyError
from .credentials import CredentialCodec
from .schema import (
    ChangeType,
    Ensure,
    EntitySnapshot,
    PendingChangeSet,
    ResourceChange,
)


@dataclass(frozen=True)
class AttributeSpec:
    """How a desired attribute maps onto the configuration document.

    A nested attribute is a mapping compared key by key. Its current
    keys are the entity's own attributes when ``xml_name`` is empty, or
    the attributes of the child element ``xml_name``, which the reader
    stores as ``<child>/<key>``.
    """
    name: str                        # desired state field
    xml_name: str                    # attribute in the snapshot
    immutable: bool = False          # cannot change after creation
    default: Optional[str] = None    # current value when the attribute is absent
    secret: bool = False             # stored {xor}-obfuscated
    nested: bool = False             # a mapping of command parameters
    # document key -> command parameter, for nested attributes
    translate: Mapping[str, str] = field(default_factory=dict, hash=False)
    # stored value -> the value the commands take
    aliases: Mapping[str, str] = field(default_factory=dict, hash=False)

    def matches(self, wanted: str, current: Optional[str]) -> bool:
        if current is None:
            return False
        return wanted == current or self.aliases.get(current) == wanted

    def current_map(self, attributes: Mapping[str, str]) -> dict[str, str]:
        """Current values of a nested attribute, keyed by command parameter."""
        prefix = f"{self.xml_name}/" if self.xml_name else ""
        found = {}
        for key, value in attributes.items():
            if prefix:
                if not key.startswith(prefix):
                    continue
                key = key[len(prefix):]
            elif "/" in key or ":" in key:
                continue
            found[self.translate.get(key, key)] = value
        return found


def normalize(value: Any) -> str:
    """Render a desired or stored value the way the documents spell it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


class DiffEngine:
    """Calculate differences between desired and current state."""

    def __init__(self, codec: Optional[CredentialCodec] = None):
        self.codec = codec or CredentialCodec()

    def diff(
        self,
        attributes: Sequence[AttributeSpec],
        desired: Mapping[str, Any],
        snapshot: EntitySnapshot,
        resource: Optional[str] = None,
    ) -> PendingChangeSet:
        """
        Compare desired attribute values against an existing entity.

        Args:
            attributes: Attributes the resource supports
            desired: Desired values keyed by AttributeSpec.name
            snapshot: Current state of the entity
            resource: Resource label for error messages

        Returns:
            PendingChangeSet of every attribute whose value differs

        Raises:
            ImmutablePropertyError: If an immutable attribute would change
            MalformedSecretError: If a stored secret cannot be decoded
        """
        changes = PendingChangeSet(
            (spec.name for spec in attributes),
            maps=(spec.name for spec in attributes if spec.nested),
        )

        for spec in attributes:
            wanted = desired.get(spec.name)
            if wanted is None:
                continue

            if spec.nested:
                self._diff_map(spec, wanted, snapshot, changes)
                continue

            current = snapshot.attributes.get(spec.xml_name, spec.default)
            if current is not None and spec.secret and self.codec.is_obfuscated(current):
                current = self.codec.deobfuscate(current)

            if spec.matches(normalize(wanted), current):
                continue

            if spec.immutable:
                raise ImmutablePropertyError(
                    spec.name,
                    current=None if spec.secret else current,
                    desired=None if spec.secret else normalize(wanted),
                    resource=resource,
                )
            changes.set(spec.name, wanted)

        return changes

    def _diff_map(
        self,
        spec: AttributeSpec,
        wanted: Mapping[str, Any],
        snapshot: EntitySnapshot,
        changes: PendingChangeSet,
    ) -> None:
        """Compare each desired key of a nested attribute; extra current keys are ignored."""
        current = spec.current_map(snapshot.attributes)
        for key, value in wanted.items():
            if value is None:
                continue
            value_text = normalize(value)
            # An empty desired value is satisfied by an absent or empty one
            if value_text == "" and not current.get(key):
                continue
            if spec.matches(value_text, current.get(key)):
                continue
            changes.set(f"{spec.name}.{key}", value)

    def plan(
        self,
        kind: str,
        name: str,
        ensure: Ensure,
        attributes: Sequence[AttributeSpec],
        desired: Mapping[str, Any],
        snapshot: EntitySnapshot,
    ) -> ResourceChange:
        """
        Decide what must happen to one named resource.

        Returns:
            ResourceChange; NO_CHANGE when the entity already matches
        """
        secrets = frozenset(spec.name for spec in attributes if spec.secret)

        if ensure == Ensure.ABSENT:
            change_type = ChangeType.DELETE if snapshot.exists else ChangeType.NO_CHANGE
            return ResourceChange(
                kind=kind, name=name, change_type=change_type,
                snapshot=snapshot, secret_attributes=secrets,
            )

        if not snapshot.exists:
            return ResourceChange(
                kind=kind, name=name, change_type=ChangeType.CREATE,
                snapshot=snapshot, secret_attributes=secrets,
            )

        changes = self.diff(attributes, desired, snapshot, resource=f"{kind} {name}")
        return ResourceChange(
            kind=kind,
            name=name,
            change_type=ChangeType.MODIFY if changes else ChangeType.NO_CHANGE,
            changes=changes,
            snapshot=snapshot,
            target_id=snapshot.entity_id,
            secret_attributes=secrets,
        )


def summarize_changes(changes: list[ResourceChange]) -> str:
    """Generate human-readable summary of pending changes."""
    pending = [c for c in changes if not c.no_change]
    if not pending:
        return "No changes required - configuration already matches desired state."

    lines = [f"Changes to apply ({len(pending)} resources):"]
    for change in pending:
        lines.append(f"  - {change.describe()}")
    return "\n".join(lines)
