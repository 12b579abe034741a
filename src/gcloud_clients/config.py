"""Configuration shared by the service clients."""

from __future__ import annotations

import os
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from gcloud_clients.exceptions import ConfigurationError
from gcloud_clients.retry import RetryConfig

__all__ = ("PROJECT_ENV_VAR", "ServiceConfig", "default_project_id", "now_millis")

PROJECT_ENV_VAR = "GOOGLE_CLOUD_PROJECT"


def default_project_id() -> str | None:
    """Project id from the ``GOOGLE_CLOUD_PROJECT`` environment variable."""
    return os.environ.get(PROJECT_ENV_VAR) or None


def now_millis() -> int:
    return time.time_ns() // 1_000_000


@dataclass
class ServiceConfig:
    """Settings common to every service client.

    Attributes:
        project_id: Project the client acts on. Defaults to the
            ``GOOGLE_CLOUD_PROJECT`` environment variable.
        retry_config: Retry policy applied around each idempotent call
        clock: Returns the current time in epoch milliseconds
    """

    project_id: str | None = field(default_factory=default_project_id)
    retry_config: RetryConfig = field(default_factory=RetryConfig)
    clock: Callable[[], int] = now_millis

    def validate(self) -> None:
        """Check the settings before a client is built.

        Raises:
            ConfigurationError: If no project id is configured
        """
        if not self.project_id:
            raise ConfigurationError(
                f"A project id is required. Pass project_id or set the {PROJECT_ENV_VAR} environment variable"
            )
