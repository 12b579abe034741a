"""Call settings of the Pub/Sub subscriber API.

Each API method carries the set of gRPC status codes it may be retried on
and the retry parameters (delays and per-attempt timeouts). Settings are
immutable; derive modified settings through a builder::

    builder = SubscriberSettings.builder()
    builder.apply_to_all_methods(retry_settings=RetrySettings(...))
    builder.pull = builder.pull.replace(retryable_codes=IDEMPOTENT_CODES)
    settings = builder.build()
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import timedelta
from types import MappingProxyType
from typing import Any

import grpc

__all__ = (
    "DEFAULT_SERVICE_ADDRESS",
    "DEFAULT_SERVICE_PORT",
    "DEFAULT_SERVICE_SCOPES",
    "IDEMPOTENT_CODES",
    "NON_IDEMPOTENT_CODES",
    "RETRYABLE_CODE_DEFINITIONS",
    "RETRY_PARAM_DEFINITIONS",
    "CallSettings",
    "ConnectionSettings",
    "RetrySettings",
    "SubscriberSettings",
    "SubscriberSettingsBuilder",
)

DEFAULT_SERVICE_ADDRESS = "pubsub-experimental.googleapis.com"
DEFAULT_SERVICE_PORT = 443
DEFAULT_SERVICE_SCOPES = (
    "https://www.googleapis.com/auth/pubsub",
    "https://www.googleapis.com/auth/cloud-platform",
)

IDEMPOTENT_CODES = frozenset({grpc.StatusCode.DEADLINE_EXCEEDED, grpc.StatusCode.UNAVAILABLE})
NON_IDEMPOTENT_CODES: frozenset[grpc.StatusCode] = frozenset()

RETRYABLE_CODE_DEFINITIONS = MappingProxyType(
    {
        "idempotent": IDEMPOTENT_CODES,
        "non_idempotent": NON_IDEMPOTENT_CODES,
    }
)


@dataclass(frozen=True)
class RetrySettings:
    """Backoff and timeout parameters of a retried call.

    The delay between attempts starts at ``initial_retry_delay`` and grows by
    ``retry_delay_multiplier`` up to ``max_retry_delay``. Each attempt is
    bounded by an RPC timeout that starts at ``initial_rpc_timeout`` and grows
    by ``rpc_timeout_multiplier`` up to ``max_rpc_timeout``. No attempt starts
    after ``total_timeout`` has elapsed.
    """

    initial_retry_delay: timedelta
    retry_delay_multiplier: float
    max_retry_delay: timedelta
    initial_rpc_timeout: timedelta
    rpc_timeout_multiplier: float
    max_rpc_timeout: timedelta
    total_timeout: timedelta

    def __post_init__(self) -> None:
        if self.retry_delay_multiplier < 1.0 or self.rpc_timeout_multiplier < 1.0:
            raise ValueError("Retry multipliers must be at least 1.0")
        if self.initial_rpc_timeout > self.max_rpc_timeout:
            raise ValueError("initial_rpc_timeout must not exceed max_rpc_timeout")
        if self.initial_retry_delay > self.max_retry_delay:
            raise ValueError("initial_retry_delay must not exceed max_retry_delay")

    def retry_delay(self, attempt: int) -> float:
        """Delay in seconds before retrying after ``attempt`` (0-indexed) failed."""
        delay = self.initial_retry_delay.total_seconds() * self.retry_delay_multiplier**attempt
        return min(delay, self.max_retry_delay.total_seconds())

    def rpc_timeout(self, attempt: int) -> float:
        """Timeout in seconds of ``attempt`` (0-indexed)."""
        timeout = self.initial_rpc_timeout.total_seconds() * self.rpc_timeout_multiplier**attempt
        return min(timeout, self.max_rpc_timeout.total_seconds())


RETRY_PARAM_DEFINITIONS = MappingProxyType(
    {
        "default": RetrySettings(
            initial_retry_delay=timedelta(milliseconds=100),
            retry_delay_multiplier=1.2,
            max_retry_delay=timedelta(milliseconds=1000),
            initial_rpc_timeout=timedelta(milliseconds=2000),
            rpc_timeout_multiplier=1.5,
            max_rpc_timeout=timedelta(milliseconds=30000),
            total_timeout=timedelta(milliseconds=45000),
        ),
    }
)


@dataclass(frozen=True)
class CallSettings:
    """Settings of one API method.

    Attributes:
        method: Full gRPC method name
        retryable_codes: Status codes the call is retried on
        retry_settings: Backoff and timeout parameters
        paged: Whether the method returns pages of resources
    """

    method: str
    retryable_codes: frozenset[grpc.StatusCode]
    retry_settings: RetrySettings
    paged: bool = False

    def is_retryable(self, code: grpc.StatusCode | None) -> bool:
        return code in self.retryable_codes

    def replace(self, **changes: Any) -> CallSettings:  # noqa: ANN401
        return replace(self, **changes)


def _method(name: str, codes: str, *, paged: bool = False) -> CallSettings:
    return CallSettings(
        method=f"/google.pubsub.v1.Subscriber/{name}",
        retryable_codes=RETRYABLE_CODE_DEFINITIONS[codes],
        retry_settings=RETRY_PARAM_DEFINITIONS["default"],
        paged=paged,
    )


@dataclass(frozen=True)
class ConnectionSettings:
    """Endpoint and OAuth scopes of the subscriber service."""

    service_address: str = DEFAULT_SERVICE_ADDRESS
    port: int = DEFAULT_SERVICE_PORT
    scopes: tuple[str, ...] = DEFAULT_SERVICE_SCOPES

    @property
    def target(self) -> str:
        """``host:port`` target for a gRPC channel."""
        return f"{self.service_address}:{self.port}"


@dataclass(frozen=True)
class SubscriberSettings:
    """Immutable settings of every subscriber API method.

    Use ``SubscriberSettings()`` for the defaults, and ``builder()`` or
    ``to_builder()`` to derive modified settings.
    """

    connection: ConnectionSettings = field(default_factory=ConnectionSettings)
    create_subscription: CallSettings = field(default_factory=lambda: _method("CreateSubscription", "non_idempotent"))
    get_subscription: CallSettings = field(default_factory=lambda: _method("GetSubscription", "idempotent"))
    list_subscriptions: CallSettings = field(
        default_factory=lambda: _method("ListSubscriptions", "idempotent", paged=True)
    )
    delete_subscription: CallSettings = field(default_factory=lambda: _method("DeleteSubscription", "idempotent"))
    modify_ack_deadline: CallSettings = field(default_factory=lambda: _method("ModifyAckDeadline", "non_idempotent"))
    acknowledge: CallSettings = field(default_factory=lambda: _method("Acknowledge", "non_idempotent"))
    pull: CallSettings = field(default_factory=lambda: _method("Pull", "non_idempotent"))
    modify_push_config: CallSettings = field(default_factory=lambda: _method("ModifyPushConfig", "non_idempotent"))

    @classmethod
    def default_instance(cls) -> SubscriberSettings:
        return cls()

    @classmethod
    def builder(cls) -> SubscriberSettingsBuilder:
        """A builder starting from the default settings."""
        return cls().to_builder()

    def to_builder(self) -> SubscriberSettingsBuilder:
        """A builder starting from these settings."""
        return SubscriberSettingsBuilder(**{f.name: getattr(self, f.name) for f in fields(self)})

    def method_settings(self) -> dict[str, CallSettings]:
        """Settings of every API method, keyed by method attribute name."""
        return {name: getattr(self, name) for name in _METHOD_NAMES}


_METHOD_NAMES = tuple(f.name for f in fields(SubscriberSettings) if f.name != "connection")


@dataclass
class SubscriberSettingsBuilder:
    """Mutable counterpart of ``SubscriberSettings``.

    Attributes hold the settings of each method and can be reassigned
    before ``build()`` is called.
    """

    connection: ConnectionSettings
    create_subscription: CallSettings
    get_subscription: CallSettings
    list_subscriptions: CallSettings
    delete_subscription: CallSettings
    modify_ack_deadline: CallSettings
    acknowledge: CallSettings
    pull: CallSettings
    modify_push_config: CallSettings

    def apply_to_all_methods(
        self,
        *,
        retryable_codes: frozenset[grpc.StatusCode] | None = None,
        retry_settings: RetrySettings | None = None,
    ) -> SubscriberSettingsBuilder:
        """Set the retryable codes and/or retry parameters of every method."""
        changes: dict[str, Any] = {}
        if retryable_codes is not None:
            changes["retryable_codes"] = frozenset(retryable_codes)
        if retry_settings is not None:
            changes["retry_settings"] = retry_settings
        for name in _METHOD_NAMES:
            setattr(self, name, getattr(self, name).replace(**changes))
        return self

    def build(self) -> SubscriberSettings:
        return SubscriberSettings(**{f.name: getattr(self, f.name) for f in fields(self)})
