"""Key stores held in the cell's security.xml."""
from dataclasses import dataclass
from typing import Any, Optional

from ..errors import RefusedOperationError
from ..reconcile_engine.diff import AttributeSpec
from ..reconcile_engine.jython import jython_str, task_args
from ..reconcile_engine.schema import EntitySnapshot, ResourceChange, ResourceDesiredState
from .base import ResourceHandler


@dataclass
class KeystoreDesiredState(ResourceDesiredState):
    """Desired state of a key store."""
    description: Optional[str] = None
    location: Optional[str] = None        # may start with ${CONFIG_ROOT}
    type: Optional[str] = None            # PKCS12, JKS, JCEKS, CMSKS, ...
    usage: Optional[str] = None           # SSLKeys, KeySetKeys, RootKeys, ...
    store_password: Optional[str] = None
    readonly: Optional[bool] = None
    init_at_startup: Optional[bool] = None
    enable_crypto_hw: Optional[bool] = None
    remote_hostlist: Optional[str] = None
    enable_stashfile: Optional[bool] = None   # creation only

    kind = "keystore"


class KeystoreHandler(ResourceHandler):
    """keyStores[@name] within a management scope."""

    kind = "keystore"
    desired_type = KeystoreDesiredState
    attributes = (
        AttributeSpec("description", "description"),
        AttributeSpec("location", "location"),
        AttributeSpec("type", "type", immutable=True),
        AttributeSpec("usage", "usage", immutable=True),
        AttributeSpec("store_password", "password", secret=True),
        AttributeSpec("readonly", "readOnly", default="false"),
        AttributeSpec("init_at_startup", "initializeAtStartup", default="false"),
        AttributeSpec("enable_crypto_hw", "useForAcceleration", immutable=True, default="false"),
        AttributeSpec("remote_hostlist", "hostList", immutable=True, default=""),
    )

    REQUIRED_FOR_CREATE = ("location", "type", "usage", "store_password")

    def values(self, desired: KeystoreDesiredState) -> dict[str, Any]:
        values = super().values(desired)
        if values["location"] is not None:
            values["location"] = self.reader.expand(values["location"])
        return values

    def read(self, desired: KeystoreDesiredState) -> EntitySnapshot:
        scope = self.scope(desired)
        return self.reader.read_named(scope.file, "keyStores", desired.name, scope_xml=scope.xml)

    def create_script(self, desired: KeystoreDesiredState, change: ResourceChange) -> list[str]:
        values = self.values(desired)
        missing = [name for name in self.REQUIRED_FOR_CREATE if values.get(name) is None]
        if missing:
            raise RefusedOperationError(
                f"Cannot create keystore {desired.name} without: {', '.join(missing)}"
            )

        scope = self.scope(desired)
        args = task_args([
            ("scopeName", scope.xml),
            ("keyStoreName", desired.name),
            ("keyStoreLocation", values["location"]),
            ("keyStoreType", values["type"]),
            ("keyStoreUsage", values["usage"]),
            ("keyStoreDescription", values["description"]),
            ("keyStorePassword", values["store_password"]),
            ("keyStorePasswordVerify", values["store_password"]),
            ("keyStoreReadOnly", values["readonly"]),
            ("keyStoreInitAtStartup", values["init_at_startup"]),
            ("keyStoreHostList", values["remote_hostlist"]),
            ("enableCryptoOperations", values["enable_crypto_hw"]),
            ("keyStoreStashFile", desired.enable_stashfile),
        ])
        return [
            f"AdminTask.createKeyStore({args})",
            f"AdminUtilities.debugNotice('Created keystore ' + {jython_str(desired.name)})",
        ]

    def modify_script(self, desired: KeystoreDesiredState, change: ResourceChange) -> list[str]:
        def final(name: str) -> Any:
            if name in change.changes:
                return change.changes.get(name)
            return self.current(change.snapshot, name)

        scope = self.scope(desired)
        old_password = self.current(change.snapshot, "store_password")
        args = task_args([
            ("scopeName", scope.xml),
            ("keyStoreName", desired.name),
            ("keyStoreLocation", final("location")),
            ("keyStoreType", final("type")),
            ("keyStoreUsage", final("usage")),
            ("keyStorePassword", old_password),
            ("keyStoreDescription", final("description")),
            ("keyStoreReadOnly", final("readonly")),
            ("keyStoreInitAtStartup", final("init_at_startup")),
            ("keyStoreHostList", final("remote_hostlist")),
        ])
        lines = [f"AdminTask.modifyKeyStore({args})"]

        if "store_password" in change.changes:
            new_password = change.changes.get("store_password")
            password_args = task_args([
                ("scopeName", scope.xml),
                ("keyStoreName", desired.name),
                ("keyStorePassword", old_password),
                ("newKeyStorePassword", new_password),
                ("newKeyStorePasswordVerify", new_password),
            ])
            lines.append(f"AdminTask.changeKeyStorePassword({password_args})")

        lines.append(f"AdminUtilities.debugNotice('Modified keystore ' + {jython_str(desired.name)})")
        return lines

    def destroy_script(self, desired: KeystoreDesiredState, change: ResourceChange) -> list[str]:
        scope = self.scope(desired)
        args = task_args([("keyStoreName", desired.name), ("scopeName", scope.xml)])
        return [f"AdminTask.deleteKeyStore({args})"]
