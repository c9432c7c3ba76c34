"""MQ connection factories of the WebSphere MQ messaging provider."""
from dataclasses import dataclass
from typing import Any, Optional

from ..reconcile_engine.diff import AttributeSpec
from .messaging import (
    DEFAULT_JMS_PROVIDER,
    QMGR_PARAMETERS,
    VALUE_ALIASES,
    MessagingDesiredState,
    MessagingHandler,
)

# Stored xmi:type of each connection factory type
CF_TYPES = {
    "resources.jms.mqseries:MQConnectionFactory": "CF",
    "resources.jms.mqseries:MQQueueConnectionFactory": "QCF",
    "resources.jms.mqseries:MQTopicConnectionFactory": "TCF",
}


@dataclass
class ConnectionFactoryDesiredState(MessagingDesiredState):
    """Desired state of an MQ connection factory.

    ``cf_type`` is CF (unified), QCF (queue) or TCF (topic) and is fixed
    at creation. The pool and mapping maps set the attributes of the
    factory's connectionPool, sessionPool and mapping objects.
    """
    cf_type: Optional[str] = None
    qmgr_data: Optional[dict[str, Any]] = None
    conn_pool_data: Optional[dict[str, Any]] = None
    sess_pool_data: Optional[dict[str, Any]] = None
    mapping_data: Optional[dict[str, Any]] = None
    jms_provider: str = DEFAULT_JMS_PROVIDER

    kind = "connection_factory"

    def __post_init__(self):
        super().__post_init__()
        if self.cf_type is not None and self.cf_type not in CF_TYPES.values():
            raise ValueError(
                f"cf_type must be one of: {', '.join(CF_TYPES.values())}, got {self.cf_type!r}"
            )


class ConnectionFactoryHandler(MessagingHandler):
    """factories of the three MQ connection factory types under the JMS provider."""

    kind = "connection_factory"
    desired_type = ConnectionFactoryDesiredState
    attributes = (
        AttributeSpec("cf_type", "xmi:type", immutable=True, aliases=CF_TYPES),
        AttributeSpec("jndi_name", "jndiName"),
        AttributeSpec("description", "description", default=""),
        AttributeSpec(
            "qmgr_data", "", nested=True, translate=QMGR_PARAMETERS, aliases=VALUE_ALIASES
        ),
        AttributeSpec("conn_pool_data", "connectionPool", nested=True),
        AttributeSpec("sess_pool_data", "sessionPool", nested=True),
        AttributeSpec("mapping_data", "mapping", nested=True),
    )

    xmi_types = tuple(CF_TYPES)
    nested_children = ("connectionPool", "sessionPool", "mapping")
    task_noun = "WMQConnectionFactory"
    list_command = "listWMQConnectionFactories"

    MAP_OPTIONS = {"qmgr_data": None}
    CHILD_MAPS = ("conn_pool_data", "sess_pool_data", "mapping_data")
    # No factory without a queue manager to connect to
    REQUIRED_FOR_CREATE = ("jndi_name", "qmgr_data")

    def create_options(self, desired: ConnectionFactoryDesiredState, values: dict[str, Any]) -> list:
        return [("type", desired.cf_type or "CF")]
