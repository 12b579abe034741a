"""Pub/Sub subscriber client."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Protocol, TypeVar, runtime_checkable

import grpc

from gcloud_clients.exceptions import ConfigurationError, PubSubError, ServiceError
from gcloud_clients.pubsub.messages import PushConfig, ReceivedMessage, Subscription
from gcloud_clients.pubsub.settings import CallSettings, SubscriberSettings
from gcloud_clients.types import Page

__all__ = ("SubscriberClient", "SubscriberStub")

logger = logging.getLogger(__name__)

T = TypeVar("T")

Message = dict[str, Any]

_SUBSCRIPTION_PATH = re.compile(r"^projects/(?P<project>[^/]+)/subscriptions/(?P<subscription>[^/]+)$")


@runtime_checkable
class SubscriberStub(Protocol):
    """Transport for the ``google.pubsub.v1.Subscriber`` service.

    Requests and responses are dicts keyed by protocol buffer field names.
    Every method takes the deadline of the attempt in seconds and raises
    ``grpc.RpcError`` on failure.
    """

    async def create_subscription(self, request: Message, *, timeout: float) -> Message: ...

    async def get_subscription(self, request: Message, *, timeout: float) -> Message: ...

    async def list_subscriptions(self, request: Message, *, timeout: float) -> Message: ...

    async def delete_subscription(self, request: Message, *, timeout: float) -> None: ...

    async def modify_ack_deadline(self, request: Message, *, timeout: float) -> None: ...

    async def acknowledge(self, request: Message, *, timeout: float) -> None: ...

    async def pull(self, request: Message, *, timeout: float) -> Message: ...

    async def modify_push_config(self, request: Message, *, timeout: float) -> None: ...


def _status_code(e: grpc.RpcError) -> grpc.StatusCode | None:
    code = getattr(e, "code", None)
    return code() if callable(code) else None


def _details(e: grpc.RpcError) -> str:
    details = getattr(e, "details", None)
    return (details() if callable(details) else None) or str(e)


class SubscriberClient:
    """Asynchronous client for Pub/Sub subscriptions.

    Each call is retried according to its ``CallSettings``: failures with a
    status code outside the method's retryable set are raised immediately
    as ``PubSubError``; retryable ones are attempted again after a growing
    delay, each attempt bounded by a growing RPC timeout, until the total
    timeout is spent.

    Example::

        async with SubscriberClient(SubscriberSettings(), stub) as client:
            name = SubscriberClient.subscription_path("my-project", "my-sub")
            for received in await client.pull(name, max_messages=10):
                ...
            await client.acknowledge(name, [received.ack_id])
    """

    def __init__(self, settings: SubscriberSettings | None = None, stub: SubscriberStub | None = None) -> None:
        """Initialize the client.

        Args:
            settings: Per-method call settings, the defaults when None
            stub: Transport for the subscriber service

        Raises:
            ConfigurationError: If no stub is given
        """
        if stub is None:
            raise ConfigurationError("SubscriberClient requires a SubscriberStub")
        self.settings = settings or SubscriberSettings()
        self.stub = stub

    # =========================================================================
    # Resource names
    # =========================================================================

    @staticmethod
    def project_path(project: str) -> str:
        return f"projects/{project}"

    @staticmethod
    def topic_path(project: str, topic: str) -> str:
        return f"projects/{project}/topics/{topic}"

    @staticmethod
    def subscription_path(project: str, subscription: str) -> str:
        return f"projects/{project}/subscriptions/{subscription}"

    @staticmethod
    def parse_subscription_path(path: str) -> tuple[str, str]:
        """Split a subscription name into project and subscription.

        Raises:
            ValueError: If ``path`` is not a subscription name
        """
        match = _SUBSCRIPTION_PATH.match(path)
        if match is None:
            raise ValueError(f"{path!r} is not a subscription name")
        return match.group("project"), match.group("subscription")

    # =========================================================================
    # Calls
    # =========================================================================

    async def _call(self, settings: CallSettings, func: Callable[[float], Awaitable[T]]) -> T:
        retry = settings.retry_settings
        deadline = time.monotonic() + retry.total_timeout.total_seconds()
        attempt = 0
        while True:
            timeout = min(retry.rpc_timeout(attempt), max(deadline - time.monotonic(), 0.0))
            try:
                return await asyncio.wait_for(func(timeout), timeout)
            except (grpc.RpcError, asyncio.TimeoutError) as e:
                error = self._translate(e, settings)
                if not error.retryable:
                    raise error from e
                delay = retry.retry_delay(attempt)
                if time.monotonic() + delay >= deadline:
                    logger.exception("Retry deadline of %s exceeded for %s", retry.total_timeout, settings.method)
                    raise error from e
                logger.warning(
                    "Retry attempt %d for %s after %.2fs: %s",
                    attempt + 1,
                    settings.method,
                    delay,
                    error.message,
                )
            except ServiceError:
                raise
            except Exception as e:
                raise PubSubError.translate(e) from e
            await asyncio.sleep(delay)
            attempt += 1

    @staticmethod
    def _translate(e: Exception, settings: CallSettings) -> PubSubError:
        if isinstance(e, grpc.RpcError):
            code = _status_code(e)
            message = _details(e)
        else:
            code = grpc.StatusCode.DEADLINE_EXCEEDED
            message = "Deadline exceeded"
        return PubSubError(
            f"{settings.method} failed: {message}",
            code=code.name if code is not None else None,
            retryable=settings.is_retryable(code),
        )

    async def create_subscription(
        self,
        name: str,
        topic: str,
        push_config: PushConfig | None = None,
        ack_deadline_seconds: int | None = None,
    ) -> Subscription:
        """Create a subscription to ``topic``.

        Args:
            name: Subscription name (see ``subscription_path``)
            topic: Topic name (see ``topic_path``)
            push_config: Push delivery settings, None for pull delivery
            ack_deadline_seconds: Acknowledgement deadline, the service
                default when None

        Returns:
            The created subscription
        """
        request = Subscription(name, topic, push_config, ack_deadline_seconds).to_dict()
        response = await self._call(
            self.settings.create_subscription,
            lambda timeout: self.stub.create_subscription(request, timeout=timeout),
        )
        return Subscription.from_dict(response)

    async def get_subscription(self, subscription: str) -> Subscription:
        request = {"subscription": subscription}
        response = await self._call(
            self.settings.get_subscription,
            lambda timeout: self.stub.get_subscription(request, timeout=timeout),
        )
        return Subscription.from_dict(response)

    async def list_subscriptions(self, project: str, page_size: int | None = None) -> Page[Subscription]:
        """List the subscriptions of ``project`` (a ``projects/{project}`` name).

        Returns:
            The first page; an empty page token ends the listing
        """
        request: Message = {"project": project}
        if page_size:
            request["page_size"] = page_size
        return await self._list_subscriptions(request)

    async def _list_subscriptions(self, request: Message) -> Page[Subscription]:
        response = await self._call(
            self.settings.list_subscriptions,
            lambda timeout: self.stub.list_subscriptions(request, timeout=timeout),
        )
        subscriptions = [Subscription.from_dict(item) for item in response.get("subscriptions") or ()]

        async def next_page(token: str) -> Page[Subscription]:
            return await self._list_subscriptions({**request, "page_token": token})

        return Page(subscriptions, response.get("next_page_token") or None, next_page)

    async def delete_subscription(self, subscription: str) -> None:
        request = {"subscription": subscription}
        await self._call(
            self.settings.delete_subscription,
            lambda timeout: self.stub.delete_subscription(request, timeout=timeout),
        )

    async def modify_ack_deadline(self, subscription: str, ack_ids: Iterable[str], ack_deadline_seconds: int) -> None:
        """Extend (or, with 0, give up) the acknowledgement deadline of pulled messages."""
        request = {"subscription": subscription, "ack_ids": list(ack_ids), "ack_deadline_seconds": ack_deadline_seconds}
        await self._call(
            self.settings.modify_ack_deadline,
            lambda timeout: self.stub.modify_ack_deadline(request, timeout=timeout),
        )

    async def acknowledge(self, subscription: str, ack_ids: Iterable[str]) -> None:
        request = {"subscription": subscription, "ack_ids": list(ack_ids)}
        await self._call(
            self.settings.acknowledge,
            lambda timeout: self.stub.acknowledge(request, timeout=timeout),
        )

    async def pull(
        self,
        subscription: str,
        max_messages: int,
        return_immediately: bool = False,
    ) -> list[ReceivedMessage]:
        """Pull up to ``max_messages`` messages.

        Args:
            subscription: Subscription name
            max_messages: Upper bound on the number of messages returned
            return_immediately: Return an empty list instead of waiting
                when no message is available
        """
        request = {
            "subscription": subscription,
            "max_messages": max_messages,
            "return_immediately": return_immediately,
        }
        response = await self._call(self.settings.pull, lambda timeout: self.stub.pull(request, timeout=timeout))
        return [ReceivedMessage.from_dict(item) for item in response.get("received_messages") or ()]

    async def modify_push_config(self, subscription: str, push_config: PushConfig) -> None:
        """Switch between push and pull delivery, or change the push endpoint."""
        request = {"subscription": subscription, "push_config": push_config.to_dict()}
        await self._call(
            self.settings.modify_push_config,
            lambda timeout: self.stub.modify_push_config(request, timeout=timeout),
        )

    async def close(self) -> None:
        """Close the stub's channel, when it has one."""
        close = getattr(self.stub, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> SubscriberClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
