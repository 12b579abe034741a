"""Pub/Sub subscriber client."""

from __future__ import annotations

from gcloud_clients.pubsub.client import SubscriberClient, SubscriberStub
from gcloud_clients.pubsub.messages import PubsubMessage, PushConfig, ReceivedMessage, Subscription
from gcloud_clients.pubsub.settings import (
    DEFAULT_SERVICE_ADDRESS,
    DEFAULT_SERVICE_PORT,
    DEFAULT_SERVICE_SCOPES,
    CallSettings,
    ConnectionSettings,
    RetrySettings,
    SubscriberSettings,
    SubscriberSettingsBuilder,
)

__all__ = (
    # Client
    "SubscriberClient",
    "SubscriberStub",
    # Settings
    "DEFAULT_SERVICE_ADDRESS",
    "DEFAULT_SERVICE_PORT",
    "DEFAULT_SERVICE_SCOPES",
    "CallSettings",
    "ConnectionSettings",
    "RetrySettings",
    "SubscriberSettings",
    "SubscriberSettingsBuilder",
    # Messages
    "PubsubMessage",
    "PushConfig",
    "ReceivedMessage",
    "Subscription",
)
