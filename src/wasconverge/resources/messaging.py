"""Shared handling of WebSphere MQ messaging provider resources.

Queues, topics, connection factories and activation specifications live
in the resources.xml of their scope. Their settings are open-ended maps
of MQ command parameters rather than a fixed attribute list, so most of
them are nested attributes compared key by key.
"""
from dataclasses import dataclass
from typing import Any, Optional

from ..errors import RefusedOperationError
from ..reconcile_engine.jython import jython_pairs, jython_str, task_args
from ..reconcile_engine.reader import ProviderRule
from ..reconcile_engine.schema import EntitySnapshot, ResourceChange, ResourceDesiredState
from ..reconcile_engine.scope import ConfigDocument
from .base import ResourceHandler

DEFAULT_JMS_PROVIDER = "builtin_mqprovider"

# Stored enumeration values and the short forms the MQ commands take
VALUE_ALIASES = {
    "APPLICATION_DEFINED": "APP",
    "QUEUE_DEFINED": "QDEF",
    "PERSISTENT": "PERS",
    "NONPERSISTENT": "NON",
}

# resources.xml attribute -> MQ command parameter, for queue manager settings
QMGR_PARAMETERS = {
    "connameList": "connectionNameList",
    "host": "qmgrHostName",
    "port": "qmgrPortNumber",
    "queueManager": "qmgrName",
    "channel": "qmgrSvrconnChannel",
    "transportType": "wmqTransportType",
    "tempModel": "modelQueue",
    "CCSID": "ccsid",
    "clientID": "clientId",
}


def camel_case(key: str) -> str:
    """Map keys may be written snake_case: max_batch_size -> maxBatchSize."""
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


@dataclass
class MessagingDesiredState(ResourceDesiredState):
    """Fields every MQ messaging resource shares; ``name`` is its administrative name."""
    jndi_name: Optional[str] = None
    description: Optional[str] = None


class MessagingHandler(ResourceHandler):
    """Base for MQ resources created and changed through AdminTask *WMQ* commands.

    Subclasses name the entries (``entry_tag``, ``xmi_types``), the
    command family (``task_noun``, ``list_command``) and how each
    attribute reaches the commands:

        OPTIONS       scalar attribute -> AdminTask option
        MAP_OPTIONS   nested attribute -> None to spread its keys as
                      options, or the option taking it as [name, value] pairs
        CHILD_MAPS    nested attributes set with AdminConfig.modify on the
                      child object named by their xml_name
    """

    document = ConfigDocument.RESOURCES
    entry_tag = "factories"
    xmi_types: tuple[str, ...] = ()
    nested_children: tuple[str, ...] = ()
    property_sets: tuple[str, ...] = ()

    task_noun = ""
    list_command = ""

    OPTIONS: dict[str, str] = {"jndi_name": "jndiName", "description": "description"}
    MAP_OPTIONS: dict[str, Optional[str]] = {}
    CHILD_MAPS: tuple[str, ...] = ()
    REQUIRED_FOR_CREATE: tuple[str, ...] = ("jndi_name",)

    def provider(self, desired: MessagingDesiredState) -> ProviderRule:
        return ProviderRule(tag="JMSProvider", id=desired.jms_provider)

    def values(self, desired: MessagingDesiredState) -> dict[str, Any]:
        values = super().values(desired)
        for name, option in self.MAP_OPTIONS.items():
            if option is None and values.get(name):
                values[name] = {camel_case(k): v for k, v in values[name].items()}
        return values

    def read(self, desired: MessagingDesiredState) -> EntitySnapshot:
        scope = self.scope(desired)
        return self.reader.read_provider_entry(
            scope.file,
            self.provider(desired),
            self.entry_tag,
            desired.name,
            xmi_types=self.xmi_types,
            nested=self.nested_children,
            property_sets=self.property_sets,
        )

    def create_options(self, desired: MessagingDesiredState, values: dict[str, Any]) -> list:
        """Options only given at creation, after name and before the attributes."""
        return []

    def check_create(self, desired: MessagingDesiredState, values: dict[str, Any]) -> None:
        missing = [
            n for n in self.REQUIRED_FOR_CREATE
            if not (values.get(n) or getattr(desired, n, None))
        ]
        if missing:
            raise RefusedOperationError(
                f"Cannot create {self.kind} {desired.name} without: {', '.join(missing)}"
            )

    def _options(self, values: dict[str, Any]) -> list:
        pairs = [
            (option, values[name])
            for name, option in self.OPTIONS.items()
            if values.get(name) is not None
        ]
        for name, option in self.MAP_OPTIONS.items():
            mapping = values.get(name)
            if not mapping:
                continue
            if option is None:
                pairs += [(k, v) for k, v in mapping.items() if v is not None]
            else:
                pairs.append((option, mapping))
        return pairs

    def _child_updates(self, target: str, values: dict[str, Any]) -> list[str]:
        specs = {spec.name: spec for spec in self.attributes}
        lines = []
        for name in self.CHILD_MAPS:
            mapping = values.get(name)
            if mapping:
                child = f"AdminConfig.showAttribute({target}, {jython_str(specs[name].xml_name)})"
                lines.append(f"AdminConfig.modify({child}, {jython_pairs(mapping)})")
        return lines

    def _scope_lines(self, desired: MessagingDesiredState) -> list[str]:
        query = self.scope(desired).query + "/"
        return [f"scopeId = AdminConfig.getid({jython_str(query)})"]

    def _target_lines(self, desired: MessagingDesiredState) -> list[str]:
        """Find the entry's config id among the scope's entries of this kind."""
        prefix = jython_str(desired.name + "(")
        return self._scope_lines(desired) + [
            f"targets = [t for t in AdminTask.{self.list_command}(scopeId).splitlines() "
            f"if t.startswith({prefix})]",
            "if len(targets) != 1:",
            f"  raise AttributeError('Expected one {self.task_noun} named ' + "
            f"{jython_str(desired.name)} + ', found %d' % len(targets))",
            "#endIf",
            "target = targets[0]",
        ]

    def create_script(self, desired: MessagingDesiredState, change: ResourceChange) -> list[str]:
        values = self.values(desired)
        self.check_create(desired, values)

        args = task_args(
            [("name", desired.name)] + self.create_options(desired, values) + self._options(values)
        )
        lines = self._scope_lines(desired)
        lines.append(f"created = AdminTask.create{self.task_noun}(scopeId, {args})")
        lines += self._child_updates("created", values)
        lines.append(
            f"AdminUtilities.debugNotice('Created {self.task_noun} ' + {jython_str(desired.name)})"
        )
        return lines

    def modify_script(self, desired: MessagingDesiredState, change: ResourceChange) -> list[str]:
        changed: dict[str, Any] = {
            name: change.changes.get(name) for name in self.OPTIONS if name in change.changes
        }
        for name in list(self.MAP_OPTIONS) + list(self.CHILD_MAPS):
            submap = change.changes.submap(name)
            if submap:
                changed[name] = submap

        lines = self._target_lines(desired)
        options = self._options(changed)
        if options:
            lines.append(f"AdminTask.modify{self.task_noun}(target, {task_args(options)})")
        lines += self._child_updates("target", changed)
        lines.append(
            f"AdminUtilities.debugNotice('Modified {self.task_noun} ' + {jython_str(desired.name)})"
        )
        return lines

    def destroy_script(self, desired: MessagingDesiredState, change: ResourceChange) -> list[str]:
        return self._target_lines(desired) + [f"AdminTask.delete{self.task_noun}(target)"]
