"""Exception hierarchy for gcloud-clients."""

from __future__ import annotations

from typing import ClassVar

__all__ = [
    "ComputeError",
    "ConfigurationError",
    "PubSubError",
    "ServiceConnectionError",
    "ServiceError",
    "StorageError",
]


class ServiceError(Exception):
    """Base exception for all errors raised by the service clients.

    Errors are classified only as retryable or not, based on the status code
    (HTTP status for Storage and Compute, gRPC status name for Pub/Sub) and,
    for the JSON APIs, the reason reported by the server.

    Attributes:
        code: HTTP status code or gRPC status name, ``None`` when unknown
        reason: Server-reported reason (e.g. ``"internalError"``)
        retryable: Whether repeating the call may succeed
    """

    retryable_codes: ClassVar[frozenset[int | str]] = frozenset()
    retryable_reasons: ClassVar[frozenset[str]] = frozenset()

    def __init__(
        self,
        message: str,
        *,
        code: int | str | None = None,
        reason: str | None = None,
        retryable: bool | None = None,
    ) -> None:
        """Initialize ServiceError.

        Args:
            message: Human readable error message
            code: HTTP status code or gRPC status name
            reason: Server-reported reason
            retryable: Explicit retryable flag. When omitted it is derived
                from ``code`` and ``reason``.
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.reason = reason
        if retryable is None:
            retryable = self.is_retryable(code, reason)
        self.retryable = retryable

    @classmethod
    def is_retryable(cls, code: int | str | None, reason: str | None = None) -> bool:
        """Classify a status code / reason pair.

        Args:
            code: HTTP status code or gRPC status name
            reason: Server-reported reason

        Returns:
            True if an error with this code or reason is worth retrying
        """
        return code in cls.retryable_codes or reason in cls.retryable_reasons

    @classmethod
    def translate(cls, exc: BaseException) -> ServiceError:
        """Wrap an arbitrary exception into this error type.

        Library errors are returned unchanged. Anything else (a transport bug,
        a runtime error) becomes a non-retryable instance of ``cls`` with the
        original message and ``__cause__`` set.

        Args:
            exc: The exception to translate

        Returns:
            A ServiceError instance
        """
        if isinstance(exc, ServiceError):
            return exc
        error = cls(str(exc), retryable=False)
        error.__cause__ = exc
        return error

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, reason={self.reason!r}, message={self.message!r})"


class StorageError(ServiceError):
    """Raised for Cloud Storage failures."""

    retryable_codes = frozenset({408, 429, 500, 502, 503, 504})
    retryable_reasons = frozenset({"internalError"})


class ComputeError(ServiceError):
    """Raised for Compute Engine failures."""

    retryable_codes = frozenset({500, 502, 503, 504})
    retryable_reasons = frozenset({"rateLimitExceeded", "internalError"})


class PubSubError(ServiceError):
    """Raised for Pub/Sub failures.

    Pub/Sub decides retryability per method (see ``CallSettings``), so the
    flag is always passed explicitly by the subscriber client.
    """


class ServiceConnectionError(ServiceError):
    """Raised when unable to reach the service endpoint.

    This typically occurs when:
    - Network connectivity issues prevent access
    - The transport session was closed
    - DNS or TLS setup failed
    """

    def __init__(self, message: str, *, code: int | str | None = None, reason: str | None = None) -> None:
        super().__init__(message, code=code, reason=reason, retryable=True)


class ConfigurationError(ServiceError):
    """Raised when client configuration is invalid.

    This typically occurs when:
    - Required configuration parameters are missing
    - No service account key is available for URL signing
    - An optional transport library is not installed
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=False)
