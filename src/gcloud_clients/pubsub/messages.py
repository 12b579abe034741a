"""Subscriber API resources, as exchanged with the stub.

Field names follow the protocol buffer definitions of ``google.pubsub.v1``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from gcloud_clients.types import WireModel, wire

__all__ = ("PubsubMessage", "PushConfig", "ReceivedMessage", "Subscription")


@dataclass(frozen=True)
class PushConfig(WireModel):
    """Push delivery configuration; an empty endpoint means pull delivery."""

    push_endpoint: str | None = wire("push_endpoint")
    attributes: dict[str, str] | None = wire("attributes")


@dataclass(frozen=True)
class Subscription(WireModel):
    """A subscription to a topic.

    Attributes:
        name: ``projects/{project}/subscriptions/{subscription}``
        topic: ``projects/{project}/topics/{topic}``
        push_config: Push delivery settings, None for pull subscriptions
        ack_deadline_seconds: Time a subscriber has to acknowledge a message
    """

    name: str = wire("name", default="")
    topic: str | None = wire("topic")
    push_config: PushConfig | None = wire(
        "push_config",
        codec=(PushConfig.from_dict, lambda config: config.to_dict()),
    )
    ack_deadline_seconds: int | None = wire("ack_deadline_seconds")


@dataclass(frozen=True)
class PubsubMessage(WireModel):
    data: bytes | None = wire("data")
    attributes: dict[str, str] | None = wire("attributes")
    message_id: str | None = wire("message_id")
    publish_time: datetime | None = wire("publish_time", kind="time")


@dataclass(frozen=True)
class ReceivedMessage(WireModel):
    """A pulled message with the id used to acknowledge it."""

    ack_id: str = wire("ack_id", default="")
    message: PubsubMessage | None = wire(
        "message",
        codec=(PubsubMessage.from_dict, lambda message: message.to_dict()),
    )
