"""Tests for SubscriberClient against a mocked stub."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import grpc
import pytest

from gcloud_clients.exceptions import ConfigurationError, PubSubError
from gcloud_clients.pubsub import (
    PushConfig,
    RetrySettings,
    SubscriberClient,
    SubscriberSettings,
    SubscriberStub,
    Subscription,
)

pytestmark = pytest.mark.unit

SUBSCRIPTION = "projects/p/subscriptions/s"
TOPIC = "projects/p/topics/t"


class FakeRpcError(grpc.RpcError):
    """RpcError carrying a status code, as raised by grpc stubs."""

    def __init__(self, code: grpc.StatusCode, details: str = "") -> None:
        super().__init__(details)
        self._code = code
        self._details = details

    def code(self) -> grpc.StatusCode:
        return self._code

    def details(self) -> str:
        return self._details


def short_retries(total_timeout: timedelta = timedelta(seconds=30)) -> RetrySettings:
    return RetrySettings(
        initial_retry_delay=timedelta(milliseconds=100),
        retry_delay_multiplier=1.0,
        max_retry_delay=timedelta(milliseconds=100),
        initial_rpc_timeout=timedelta(milliseconds=50),
        rpc_timeout_multiplier=1.0,
        max_rpc_timeout=timedelta(milliseconds=50),
        total_timeout=total_timeout,
    )


@pytest.fixture
def stub() -> AsyncMock:
    return AsyncMock(spec=SubscriberStub)


@pytest.fixture
def client(stub: AsyncMock) -> SubscriberClient:
    return SubscriberClient(SubscriberSettings(), stub)


@pytest.fixture
def sleep():
    with patch("gcloud_clients.pubsub.client.asyncio.sleep", new_callable=AsyncMock) as mock:
        yield mock


@pytest.mark.unit
class TestConstruction:
    def test_stub_required(self) -> None:
        with pytest.raises(ConfigurationError, match="SubscriberStub"):
            SubscriberClient(SubscriberSettings())

    def test_default_settings(self, stub: AsyncMock) -> None:
        assert SubscriberClient(stub=stub).settings == SubscriberSettings()

    async def test_close(self, stub: AsyncMock) -> None:
        stub.close = AsyncMock()

        async with SubscriberClient(stub=stub):
            pass

        stub.close.assert_awaited_once()


@pytest.mark.unit
class TestPaths:
    def test_format(self) -> None:
        assert SubscriberClient.project_path("p") == "projects/p"
        assert SubscriberClient.topic_path("p", "t") == TOPIC
        assert SubscriberClient.subscription_path("p", "s") == SUBSCRIPTION

    def test_parse(self) -> None:
        assert SubscriberClient.parse_subscription_path(SUBSCRIPTION) == ("p", "s")

    @pytest.mark.parametrize("path", [TOPIC, "projects/p/subscriptions/s/extra", "subscriptions/s"])
    def test_parse_invalid(self, path: str) -> None:
        with pytest.raises(ValueError, match="not a subscription name"):
            SubscriberClient.parse_subscription_path(path)


@pytest.mark.unit
class TestRequests:
    """Test the requests sent to the stub and the parsed responses."""

    async def test_create_subscription(self, client: SubscriberClient, stub: AsyncMock) -> None:
        stub.create_subscription.return_value = {"name": SUBSCRIPTION, "topic": TOPIC, "ack_deadline_seconds": 10}

        subscription = await client.create_subscription(SUBSCRIPTION, TOPIC, ack_deadline_seconds=10)

        assert subscription == Subscription(SUBSCRIPTION, TOPIC, ack_deadline_seconds=10)
        request = stub.create_subscription.await_args.args[0]
        assert request == {"name": SUBSCRIPTION, "topic": TOPIC, "ack_deadline_seconds": 10}

    async def test_get_subscription_with_push_config(self, client: SubscriberClient, stub: AsyncMock) -> None:
        stub.get_subscription.return_value = {
            "name": SUBSCRIPTION,
            "topic": TOPIC,
            "push_config": {"push_endpoint": "https://example.com/push"},
        }

        subscription = await client.get_subscription(SUBSCRIPTION)

        assert subscription.push_config == PushConfig(push_endpoint="https://example.com/push")
        stub.get_subscription.assert_awaited_once_with({"subscription": SUBSCRIPTION}, timeout=2.0)

    async def test_acknowledge(self, client: SubscriberClient, stub: AsyncMock) -> None:
        await client.acknowledge(SUBSCRIPTION, iter(["a", "b"]))

        request = stub.acknowledge.await_args.args[0]
        assert request == {"subscription": SUBSCRIPTION, "ack_ids": ["a", "b"]}

    async def test_modify_ack_deadline(self, client: SubscriberClient, stub: AsyncMock) -> None:
        await client.modify_ack_deadline(SUBSCRIPTION, ["a"], 0)

        request = stub.modify_ack_deadline.await_args.args[0]
        assert request == {"subscription": SUBSCRIPTION, "ack_ids": ["a"], "ack_deadline_seconds": 0}

    async def test_modify_push_config(self, client: SubscriberClient, stub: AsyncMock) -> None:
        await client.modify_push_config(SUBSCRIPTION, PushConfig())

        request = stub.modify_push_config.await_args.args[0]
        assert request == {"subscription": SUBSCRIPTION, "push_config": {}}

    async def test_pull(self, client: SubscriberClient, stub: AsyncMock) -> None:
        stub.pull.return_value = {
            "received_messages": [
                {
                    "ack_id": "ack-1",
                    "message": {
                        "data": b"payload",
                        "message_id": "m-1",
                        "publish_time": "2016-01-01T00:00:00Z",
                    },
                }
            ]
        }

        received = await client.pull(SUBSCRIPTION, max_messages=5, return_immediately=True)

        assert [message.ack_id for message in received] == ["ack-1"]
        assert received[0].message is not None
        assert received[0].message.data == b"payload"
        assert received[0].message.publish_time is not None
        assert received[0].message.publish_time.year == 2016
        request = stub.pull.await_args.args[0]
        assert request == {"subscription": SUBSCRIPTION, "max_messages": 5, "return_immediately": True}

    async def test_pull_empty(self, client: SubscriberClient, stub: AsyncMock) -> None:
        stub.pull.return_value = {}

        assert await client.pull(SUBSCRIPTION, max_messages=1) == []


@pytest.mark.unit
class TestListing:
    async def test_pages(self, client: SubscriberClient, stub: AsyncMock) -> None:
        """
        Test listing subscriptions page by page.

        Verifies:
        - The page size is sent with the first request
        - The returned token is sent with the next request
        - An empty token ends the listing
        """
        stub.list_subscriptions.side_effect = [
            {"subscriptions": [{"name": "projects/p/subscriptions/a"}], "next_page_token": "t2"},
            {"subscriptions": [{"name": "projects/p/subscriptions/b"}], "next_page_token": ""},
        ]

        page = await client.list_subscriptions("projects/p", page_size=1)
        names = [subscription.name async for subscription in page.iterate_all()]

        assert names == ["projects/p/subscriptions/a", "projects/p/subscriptions/b"]
        requests = [call.args[0] for call in stub.list_subscriptions.await_args_list]
        assert requests == [
            {"project": "projects/p", "page_size": 1},
            {"project": "projects/p", "page_size": 1, "page_token": "t2"},
        ]

    async def test_last_page(self, client: SubscriberClient, stub: AsyncMock) -> None:
        stub.list_subscriptions.return_value = {}

        page = await client.list_subscriptions("projects/p")

        assert len(page) == 0
        assert await page.next_page() is None


@pytest.mark.unit
class TestRetries:
    async def test_idempotent_call_is_retried(self, client: SubscriberClient, stub: AsyncMock, sleep: AsyncMock) -> None:
        stub.get_subscription.side_effect = [
            FakeRpcError(grpc.StatusCode.UNAVAILABLE, "try again"),
            {"name": SUBSCRIPTION},
        ]

        subscription = await client.get_subscription(SUBSCRIPTION)

        assert subscription.name == SUBSCRIPTION
        assert stub.get_subscription.await_count == 2
        sleep.assert_awaited_once_with(0.1)

    async def test_non_idempotent_call_is_not_retried(
        self,
        client: SubscriberClient,
        stub: AsyncMock,
        sleep: AsyncMock,
    ) -> None:
        stub.pull.side_effect = FakeRpcError(grpc.StatusCode.UNAVAILABLE, "try again")

        with pytest.raises(PubSubError) as exc_info:
            await client.pull(SUBSCRIPTION, max_messages=1)

        assert exc_info.value.code == "UNAVAILABLE"
        assert not exc_info.value.retryable
        assert "try again" in exc_info.value.message
        assert stub.pull.await_count == 1
        sleep.assert_not_awaited()

    async def test_permanent_error(self, client: SubscriberClient, stub: AsyncMock) -> None:
        stub.delete_subscription.side_effect = FakeRpcError(grpc.StatusCode.NOT_FOUND, "no such subscription")

        with pytest.raises(PubSubError) as exc_info:
            await client.delete_subscription(SUBSCRIPTION)

        assert exc_info.value.code == "NOT_FOUND"
        assert stub.delete_subscription.await_count == 1

    async def test_total_timeout(self, stub: AsyncMock, sleep: AsyncMock) -> None:
        builder = SubscriberSettings.builder()
        builder.apply_to_all_methods(retry_settings=short_retries(total_timeout=timedelta(milliseconds=50)))
        client = SubscriberClient(builder.build(), stub)
        stub.get_subscription.side_effect = FakeRpcError(grpc.StatusCode.UNAVAILABLE)

        with pytest.raises(PubSubError) as exc_info:
            await client.get_subscription(SUBSCRIPTION)

        assert exc_info.value.retryable
        assert stub.get_subscription.await_count == 1
        sleep.assert_not_awaited()

    async def test_attempt_timeout(self, stub: AsyncMock) -> None:
        builder = SubscriberSettings.builder()
        builder.pull = builder.pull.replace(retry_settings=short_retries())
        client = SubscriberClient(builder.build(), stub)

        async def hang(request: dict, *, timeout: float) -> dict:
            await asyncio.Event().wait()
            return {}

        stub.pull.side_effect = hang

        with pytest.raises(PubSubError) as exc_info:
            await client.pull(SUBSCRIPTION, max_messages=1)

        assert exc_info.value.code == "DEADLINE_EXCEEDED"

    async def test_unexpected_error_is_wrapped(self, client: SubscriberClient, stub: AsyncMock) -> None:
        stub.acknowledge.side_effect = RuntimeError("stub bug")

        with pytest.raises(PubSubError) as exc_info:
            await client.acknowledge(SUBSCRIPTION, ["a"])

        assert isinstance(exc_info.value.__cause__, RuntimeError)
