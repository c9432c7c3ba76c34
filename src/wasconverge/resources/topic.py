"""MQ topic destinations of the WebSphere MQ messaging provider."""
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
class TopicDesiredState(MessagingDesiredState):
    """Desired state of an MQ topic destination."""
    topic_name: Optional[str] = None
    t_data: Optional[dict[str, Any]] = None                 # createWMQTopic parameters
    custom_properties: Optional[dict[str, Any]] = None
    jms_provider: str = DEFAULT_JMS_PROVIDER

    kind = "topic"


class TopicHandler(MessagingHandler):
    """factories[@xmi:type=MQTopic] under the JMS provider."""

    kind = "topic"
    desired_type = TopicDesiredState
    attributes = (
        AttributeSpec("jndi_name", "jndiName"),
        AttributeSpec("description", "description", default=""),
        AttributeSpec("topic_name", "baseTopicName"),
        AttributeSpec("t_data", "", nested=True, translate={"CCSID": "ccsid"}, aliases=VALUE_ALIASES),
        AttributeSpec("custom_properties", "propertySet", nested=True),
    )

    xmi_types = ("resources.jms.mqseries:MQTopic",)
    property_sets = ("propertySet",)
    task_noun = "WMQTopic"
    list_command = "listWMQTopics"

    OPTIONS = {**MessagingHandler.OPTIONS, "topic_name": "topicName"}
    MAP_OPTIONS = {"t_data": None, "custom_properties": "customProperties"}
    REQUIRED_FOR_CREATE = ("jndi_name", "topic_name")
