"""gcloud-clients - Async clients for Cloud Storage, Compute Engine and Pub/Sub."""

from __future__ import annotations

from gcloud_clients.__metadata__ import __project__, __version__
from gcloud_clients.base import BaseClient
from gcloud_clients.compute import ComputeClient, ComputeConfig
from gcloud_clients.config import ServiceConfig
from gcloud_clients.exceptions import (
    ComputeError,
    ConfigurationError,
    PubSubError,
    ServiceConnectionError,
    ServiceError,
    StorageError,
)
from gcloud_clients.options import Option
from gcloud_clients.pubsub import SubscriberClient, SubscriberSettings
from gcloud_clients.retry import RetryConfig, retry, with_retry
from gcloud_clients.storage import StorageClient, StorageConfig
from gcloud_clients.types import Page

__all__ = (
    # Metadata
    "__project__",
    "__version__",
    # Clients
    "BaseClient",
    "ComputeClient",
    "ComputeConfig",
    "ServiceConfig",
    "StorageClient",
    "StorageConfig",
    "SubscriberClient",
    "SubscriberSettings",
    # Exceptions
    "ComputeError",
    "ConfigurationError",
    "PubSubError",
    "ServiceConnectionError",
    "ServiceError",
    "StorageError",
    # Retry
    "RetryConfig",
    "retry",
    "with_retry",
    # Types
    "Option",
    "Page",
)
