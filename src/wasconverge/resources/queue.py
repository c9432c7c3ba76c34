"""MQ queue destinations of the WebSphere MQ messaging provider."""
from dataclasses import dataclass
from typing import Any, Optional

from ..reconcile_engine.diff import AttributeSpec
from .messaging import (
    DEFAULT_JMS_PROVIDER,
    VALUE_ALIASES,
    MessagingDesiredState,
    MessagingHandler,
)


@dataclass
class QueueDesiredState(MessagingDesiredState):
    """Desired state of an MQ queue destination."""
    queue_name: Optional[str] = None                        # queue on the queue manager
    q_data: Optional[dict[str, Any]] = None                 # createWMQQueue parameters
    custom_properties: Optional[dict[str, Any]] = None
    jms_provider: str = DEFAULT_JMS_PROVIDER

    kind = "queue"


class QueueHandler(MessagingHandler):
    """factories[@xmi:type=MQQueue] under the JMS provider."""

    kind = "queue"
    desired_type = QueueDesiredState
    attributes = (
        AttributeSpec("jndi_name", "jndiName"),
        AttributeSpec("description", "description", default=""),
        AttributeSpec("queue_name", "baseQueueName"),
        AttributeSpec("q_data", "", nested=True, translate={"CCSID": "ccsid"}, aliases=VALUE_ALIASES),
        AttributeSpec("custom_properties", "propertySet", nested=True),
    )

    xmi_types = ("resources.jms.mqseries:MQQueue",)
    property_sets = ("propertySet",)
    task_noun = "WMQQueue"
    list_command = "listWMQQueues"

    OPTIONS = {**MessagingHandler.OPTIONS, "queue_name": "queueName"}
    MAP_OPTIONS = {"q_data": None, "custom_properties": "customProperties"}
    REQUIRED_FOR_CREATE = ("jndi_name", "queue_name")
