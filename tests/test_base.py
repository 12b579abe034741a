"""Tests for BaseClient shared behavior.

This module tests transport creation, retry wrapping, paging and cleanup
using a minimal client implementation.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from gcloud_clients.base import BaseClient
from gcloud_clients.config import ServiceConfig
from gcloud_clients.exceptions import ComputeError, ConfigurationError, StorageError
from gcloud_clients.retry import RetryConfig


class MinimalClient(BaseClient[ServiceConfig, MagicMock]):
    """Minimal client building a mock transport."""

    error_type = ComputeError

    def __init__(self, config: ServiceConfig, rpc: MagicMock | None = None) -> None:
        super().__init__(config, rpc)
        self.built = 0

    def _default_rpc(self) -> MagicMock:
        self.built += 1
        rpc = MagicMock()
        rpc.close = AsyncMock()
        return rpc


@pytest.fixture
def config() -> ServiceConfig:
    return ServiceConfig(project_id="p", retry_config=RetryConfig(max_retries=2, base_delay=0.0, jitter=False))


@pytest.fixture
def client(config: ServiceConfig) -> MinimalClient:
    return MinimalClient(config)


@pytest.mark.unit
class TestConfiguration:
    """Test configuration validation."""

    def test_missing_project_id(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GOOGLE_CLOUD_PROJECT", raising=False)

        with pytest.raises(ConfigurationError, match="project id is required"):
            MinimalClient(ServiceConfig())

    def test_project_id_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "env-project")

        assert ServiceConfig().project_id == "env-project"

    def test_transport_built_once(self, client: MinimalClient) -> None:
        assert client.rpc is client.rpc
        assert client.built == 1


@pytest.mark.unit
class TestCall:
    """Test BaseClient.call retry and translation."""

    async def test_retryable_error_is_retried(self, client: MinimalClient) -> None:
        func = AsyncMock(side_effect=[ComputeError("busy", code=503), "ok"])

        assert await client.call(func) == "ok"
        assert func.call_count == 2

    async def test_non_idempotent_gets_single_attempt(self, client: MinimalClient) -> None:
        func = AsyncMock(side_effect=ComputeError("busy", code=503))

        with pytest.raises(ComputeError):
            await client.call(func, idempotent=False)

        assert func.call_count == 1

    async def test_foreign_error_translated(self, client: MinimalClient) -> None:
        """
        Test translation of transport bugs.

        Verifies:
        - Error type is the client's error type
        - Message is kept and the original is chained
        - The call is not retried
        """
        original = RuntimeError("kaboom")
        func = AsyncMock(side_effect=original)

        with pytest.raises(ComputeError, match="kaboom") as exc_info:
            await client.call(func)

        assert exc_info.value.__cause__ is original
        assert func.call_count == 1

    async def test_service_error_passes_through(self, client: MinimalClient) -> None:
        error = StorageError("nope", code=403)

        with pytest.raises(StorageError) as exc_info:
            await client.call(AsyncMock(side_effect=error))

        assert exc_info.value is error


@pytest.mark.unit
class TestPaging:
    """Test the page builder shared by listing operations."""

    async def test_pages_follow_token(self, client: MinimalClient) -> None:
        fetch = AsyncMock(side_effect=[("t1", [{"v": 1}, {"v": 2}]), (None, [{"v": 3}])])

        page = await client._page(fetch, {"prefix": "a"}, lambda item: item["v"], "pageToken")
        values = [value async for value in page.iterate_all()]

        assert values == [1, 2, 3]
        assert fetch.await_args_list[0].args == ({"prefix": "a"},)
        assert fetch.await_args_list[1].args == ({"prefix": "a", "pageToken": "t1"},)

    async def test_empty_items(self, client: MinimalClient) -> None:
        page = await client._page(AsyncMock(return_value=(None, None)), {}, lambda item: item, "pageToken")

        assert list(page) == []
        assert page.has_next_page() is False


@pytest.mark.unit
class TestClose:
    """Test transport cleanup."""

    async def test_close_closes_transport(self, client: MinimalClient) -> None:
        rpc = client.rpc

        await client.close()

        rpc.close.assert_awaited_once()
        assert client._rpc is None

    async def test_close_without_transport(self, client: MinimalClient) -> None:
        await client.close()

        assert client.built == 0

    async def test_context_manager(self, config: ServiceConfig) -> None:
        rpc = MagicMock()
        rpc.close = AsyncMock()

        async with MinimalClient(config, rpc=rpc) as client:
            assert client.rpc is rpc

        rpc.close.assert_awaited_once()
