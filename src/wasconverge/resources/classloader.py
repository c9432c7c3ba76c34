"""Anonymous class loaders of an application server (server.xml)."""
from dataclasses import dataclass, field
from typing import Optional

from ..errors import InvalidScopeError
from ..reconcile_engine.jython import jython_list, jython_str
from ..reconcile_engine.matcher import AnonymousInstanceMatcher
from ..reconcile_engine.schema import (
    ChangeType,
    ClassLoaderInstance,
    ClassLoaderMode,
    Ensure,
    EntitySnapshot,
    PendingChangeSet,
    ResourceChange,
    ResourceDesiredState,
    ScopeKind,
)
from ..reconcile_engine.scope import ConfigDocument
from .base import ResourceHandler


@dataclass
class ClassLoaderDesiredState(ResourceDesiredState):
    """Desired shared libraries of a class loader in a given mode.

    ``name`` only labels the resource; class loaders have no name of their
    own and are matched by mode and library set.
    """
    mode: ClassLoaderMode = ClassLoaderMode.PARENT_FIRST
    shared_libs: list[str] = field(default_factory=list)
    enforce_shared_libs: bool = False   # also remove libraries not desired

    kind = "jvm_classloader"

    def __post_init__(self):
        super().__post_init__()
        self.mode = ClassLoaderMode(self.mode)


class ClassLoaderHandler(ResourceHandler):
    """Class loaders under components[ApplicationServer] of one server."""

    kind = "jvm_classloader"
    desired_type = ClassLoaderDesiredState
    document = ConfigDocument.SERVER

    CHANGE_ATTRIBUTES = ("libraries_add", "libraries_remove")

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.matcher = AnonymousInstanceMatcher()

    def label(self, desired: ClassLoaderDesiredState) -> str:
        return f"{desired.name} ({desired.mode.value})"

    def read(self, desired: ClassLoaderDesiredState) -> Optional[list[ClassLoaderInstance]]:
        if desired.scope.kind != ScopeKind.SERVER:
            raise InvalidScopeError(
                f"Class loaders are managed at server scope only, not {desired.scope.kind}"
            )
        scope = self.scope(desired)
        return self.reader.read_class_loaders(scope.file, cluster=desired.scope.cluster)

    def plan(
        self,
        desired: ClassLoaderDesiredState,
        instances: Optional[list[ClassLoaderInstance]],
    ) -> ResourceChange:
        match = self.matcher.match(instances or [], desired.mode, desired.shared_libs)

        target = next((i for i in instances or [] if i.id == match.target_id), None)
        snapshot = EntitySnapshot(
            exists=match.exists,
            attributes={
                "mode": desired.mode.value,
                "libraries": ",".join(target.libraries) if target else "",
            },
            entity_id=match.target_id if match.exists else None,
        )
        change = ResourceChange(
            kind=self.kind,
            name=self.label(desired),
            change_type=ChangeType.NO_CHANGE,
            changes=PendingChangeSet(self.CHANGE_ATTRIBUTES),
            snapshot=snapshot,
            target_id=snapshot.entity_id,
        )

        if desired.ensure == Ensure.ABSENT:
            if match.exists:
                change.change_type = ChangeType.DELETE
            return change

        if not match.exists:
            self.matcher.require_creatable(desired.shared_libs)
            change.change_type = ChangeType.CREATE
            return change

        if match.add:
            change.changes.set("libraries_add", match.add)
        if match.remove and desired.enforce_shared_libs:
            change.changes.set("libraries_remove", match.remove)
        if change.changes:
            change.change_type = ChangeType.MODIFY
        return change

    def config_id(self, desired: ClassLoaderDesiredState, instance_id: str) -> str:
        """AdminConfig id of a class loader, e.g. (cells/C/...|server.xml#Classloader_1)."""
        return f"({self.scope(desired).mod}|server.xml#{instance_id})"

    def _add_libraries(self, libraries: list[str]) -> list[str]:
        return [
            f"for library in {jython_list(libraries)}:",
            "  AdminConfig.create('LibraryRef', classloader, "
            "[['libraryName', library], ['sharedClassloader', 'true']])",
            "#endFor",
        ]

    def create_script(self, desired: ClassLoaderDesiredState, change: ResourceChange) -> list[str]:
        libraries = self.matcher.require_creatable(desired.shared_libs)
        appserver = self.scope(desired).query + "/ApplicationServer:/"
        return [
            f"appserver = AdminConfig.getid({jython_str(appserver)})",
            "classloader = AdminConfig.create('Classloader', appserver, "
            f"[['mode', {jython_str(desired.mode)}]])",
            *self._add_libraries(libraries),
        ]

    def modify_script(self, desired: ClassLoaderDesiredState, change: ResourceChange) -> list[str]:
        lines = [f"classloader = {jython_str(self.config_id(desired, change.target_id))}"]

        additions = change.changes.get("libraries_add")
        if additions:
            lines += self._add_libraries(additions)

        removals = change.changes.get("libraries_remove")
        if removals:
            lines += [
                f"for ref in AdminConfig.list('LibraryRef', classloader).splitlines():",
                f"  if AdminConfig.showAttribute(ref, 'libraryName') in {jython_list(removals)}:",
                "    AdminConfig.remove(ref)",
                "  #endIf",
                "#endFor",
            ]
        return lines

    def destroy_script(self, desired: ClassLoaderDesiredState, change: ResourceChange) -> list[str]:
        return [f"AdminConfig.remove({jython_str(self.config_id(desired, change.target_id))})"]
