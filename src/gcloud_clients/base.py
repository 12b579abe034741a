"""Base class shared by the service clients."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from gcloud_clients.exceptions import ServiceError
from gcloud_clients.retry import RetryConfig, with_retry
from gcloud_clients.types import Page

if TYPE_CHECKING:
    from gcloud_clients.config import ServiceConfig

__all__ = ("BaseClient", "ListFetcher")

T = TypeVar("T")
R = TypeVar("R")
C = TypeVar("C", bound="ServiceConfig")

ListFetcher = Callable[[dict[Any, Any]], Awaitable[tuple[str | None, list[dict[str, Any]] | None]]]
"""Transport call listing one page: returns the next page token and the items."""


class BaseClient(ABC, Generic[C, R]):
    """Abstract base class providing common functionality for service clients.

    This class provides default implementations for:
    - lazy transport creation from ``rpc_factory``
    - running a transport call under the retry policy with error translation
    - building ``Page`` objects that fetch following pages on demand
    - async context manager support

    Subclasses set ``error_type`` and implement ``_default_rpc``.
    """

    error_type: ClassVar[type[ServiceError]] = ServiceError

    def __init__(self, config: C, rpc: R | None = None) -> None:
        """Initialize the client.

        Args:
            config: Client configuration
            rpc: Transport to use instead of the one built from ``config``

        Raises:
            ConfigurationError: If required configuration is missing
        """
        config.validate()
        self.config = config
        self._rpc = rpc

    @property
    def rpc(self) -> R:
        """The transport, created on first use."""
        if self._rpc is None:
            self._rpc = self._default_rpc()
        return self._rpc

    @abstractmethod
    def _default_rpc(self) -> R:
        """Build the transport when none was passed in.

        Raises:
            ConfigurationError: If no transport can be built
        """

    async def call(self, func: Callable[[], Awaitable[T]], *, idempotent: bool = True) -> T:
        """Run one transport call under the retry policy.

        Args:
            func: Issues the request
            idempotent: Whether the request may be repeated; non-idempotent
                requests get a single attempt

        Returns:
            The transport's response

        Raises:
            ServiceError: Errors not raised as ``ServiceError`` by the
                transport are wrapped in ``error_type`` with their original
                message
        """
        config = self.config.retry_config if idempotent else RetryConfig.no_retries()
        try:
            return await with_retry(func, config)
        except ServiceError:
            raise
        except Exception as e:
            raise self.error_type.translate(e) from e

    async def _page(
        self,
        fetch: ListFetcher,
        params: dict[Any, Any],
        wrap: Callable[[dict[str, Any]], T],
        page_token_key: Any,  # noqa: ANN401
    ) -> Page[T]:
        cursor, items = await self.call(lambda: fetch(params))
        values = [wrap(item) for item in items or ()]

        async def next_page(token: str) -> Page[T]:
            return await self._page(fetch, {**params, page_token_key: token}, wrap, page_token_key)

        return Page(values, cursor, next_page)

    async def close(self) -> None:
        """Close the transport and release resources.

        Transports without a ``close`` coroutine are simply dropped.
        """
        close = getattr(self._rpc, "close", None)
        if close is not None:
            await close()
        self._rpc = None

    async def __aenter__(self) -> BaseClient[C, R]:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
