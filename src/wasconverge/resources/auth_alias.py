"""J2C authentication data entries of the global security configuration."""
from dataclasses import dataclass
from typing import Any, Optional

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


@dataclass
class AuthAliasDesiredState(ResourceDesiredState):
    """Desired state of an auth data entry; ``name`` is its alias."""
    userid: Optional[str] = None
    password: Optional[str] = None
    description: Optional[str] = None
    manage_password: bool = False   # compare the stored password on every run

    kind = "auth_alias"


class AuthAliasHandler(ResourceHandler):
    """authDataEntries[@alias] in the cell's security.xml."""

    kind = "auth_alias"
    desired_type = AuthAliasDesiredState
    attributes = (
        AttributeSpec("userid", "userId"),
        AttributeSpec("password", "password", secret=True),
        AttributeSpec("description", "description", default=""),
    )

    # AdminTask option for each attribute
    OPTIONS = {
        "userid": "user",
        "password": "password",
        "description": "description",
    }

    def values(self, desired: AuthAliasDesiredState) -> dict[str, Any]:
        values = super().values(desired)
        if not desired.manage_password:
            values["password"] = None
        return values

    def read(self, desired: AuthAliasDesiredState) -> EntitySnapshot:
        path = self.resolver.resolve(ScopeKind.CELL, cell=desired.scope.cell).file
        return self.reader.read_named(
            path, "authDataEntries", desired.name, name_attribute="alias"
        )

    def create_script(self, desired: AuthAliasDesiredState, change: ResourceChange) -> list[str]:
        missing = [n for n in ("userid", "password") if getattr(desired, n) is None]
        if missing:
            raise RefusedOperationError(
                f"Cannot create auth alias {desired.name} without: {', '.join(missing)}"
            )
        args = task_args([
            ("alias", desired.name),
            ("user", desired.userid),
            ("password", desired.password),
            ("description", desired.description),
        ])
        return [f"AdminTask.createAuthDataEntry({args})"]

    def modify_script(self, desired: AuthAliasDesiredState, change: ResourceChange) -> list[str]:
        pairs = [("alias", desired.name)]
        for attribute, value in change.changes.items():
            pairs.append((self.OPTIONS[attribute], value))
        return [f"AdminTask.modifyAuthDataEntry({task_args(pairs)})"]

    def destroy_script(self, desired: AuthAliasDesiredState, change: ResourceChange) -> list[str]:
        return [f"AdminTask.deleteAuthDataEntry({task_args([('alias', desired.name)])})"]
