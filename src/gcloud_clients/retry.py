"""Exponential backoff around service calls.

The clients run every idempotent transport call through ``with_retry``. An
error is retried when it is one of ``RetryConfig.retryable_exceptions`` or a
``ServiceError`` flagged as retryable; anything else propagates at once.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from functools import wraps
from typing import ParamSpec, TypeVar

from gcloud_clients.exceptions import ServiceConnectionError, ServiceError

__all__ = ("RetryConfig", "retry", "with_retry")

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

JITTER_RATIO = 0.25


def _transient_errors() -> tuple[type[Exception], ...]:
    return ServiceConnectionError, TimeoutError, ConnectionError


@dataclass
class RetryConfig:
    """Backoff policy of a client.

    Attributes:
        max_retries: Attempts made after the first one; 0 disables retrying
        base_delay: Seconds to wait before the first retry
        max_delay: Upper bound of a single wait, in seconds
        exponential_base: Growth factor of the wait between two retries
        jitter: Spread each wait randomly by up to 25% either way
        retryable_exceptions: Exception types retried whatever their content
        total_timeout: Seconds after which no further retry is started,
            None for no bound
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter: bool = True
    retryable_exceptions: tuple[type[Exception], ...] = field(default_factory=_transient_errors)
    total_timeout: float | None = None

    @classmethod
    def no_retries(cls) -> RetryConfig:
        """Policy for calls that must not be repeated."""
        return cls(max_retries=0)

    def calculate_delay(self, attempt: int) -> float:
        """Seconds to wait after the failed ``attempt`` (0 for the first call)."""
        delay = min(self.base_delay * self.exponential_base**attempt, self.max_delay)
        if not self.jitter:
            return delay
        return delay * random.uniform(1 - JITTER_RATIO, 1 + JITTER_RATIO)  # noqa: S311

    def should_retry(self, exc: BaseException) -> bool:
        """Whether ``exc`` is worth another attempt.

        Args:
            exc: Error raised by the last attempt

        Returns:
            True for ``retryable_exceptions`` and for ``ServiceError`` with
            ``retryable`` set
        """
        if isinstance(exc, self.retryable_exceptions):
            return True
        return isinstance(exc, ServiceError) and exc.retryable

    def remaining(self, started: float) -> float | None:
        """Seconds left before ``total_timeout`` for a call begun at ``started``."""
        if self.total_timeout is None:
            return None
        return self.total_timeout - (time.monotonic() - started)


async def _attempt_until_done(func: Callable[[], Awaitable[T]], config: RetryConfig, label: str) -> T:
    started = time.monotonic()
    attempt = 0
    while True:
        try:
            return await func()
        except Exception as e:
            if not config.should_retry(e):
                raise
            if attempt >= config.max_retries:
                logger.exception("Giving up on %s after %d retries", label, attempt)
                raise
            delay = config.calculate_delay(attempt)
            remaining = config.remaining(started)
            if remaining is not None and delay > remaining:
                logger.exception("Giving up on %s: retry deadline of %.2fs reached", label, config.total_timeout)
                raise
            attempt += 1
            logger.warning("Retrying %s (%d/%d) in %.2fs: %s", label, attempt, config.max_retries, delay, e)
        await asyncio.sleep(delay)


def retry(
    config: RetryConfig | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Apply ``config`` to every call of the decorated coroutine function.

    Example::

        @retry(RetryConfig(max_retries=5))
        async def fetch(client: StorageClient) -> Blob | None:
            return await client.get("bucket", "name")
    """
    policy = config or RetryConfig()

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        label = getattr(func, "__qualname__", repr(func))

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return await _attempt_until_done(lambda: func(*args, **kwargs), policy, label)

        return wrapper

    return decorator


async def with_retry(func: Callable[[], Awaitable[T]], config: RetryConfig | None = None) -> T:
    """Await ``func()`` under ``config`` (the default policy when None).

    Returns:
        The first successful result

    Raises:
        Exception: The first error that is not retryable, or the last one
            once ``max_retries`` or ``total_timeout`` is spent
    """
    return await _attempt_until_done(func, config or RetryConfig(), getattr(func, "__qualname__", "call"))
