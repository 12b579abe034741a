"""Batch requests grouping blob deletes, updates and gets into one call."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from gcloud_clients.storage.blob import BlobId, BlobInfo

if TYPE_CHECKING:
    from gcloud_clients.exceptions import StorageError
    from gcloud_clients.storage.blob import Blob
    from gcloud_clients.storage.options import BlobGetOption, BlobSourceOption, BlobTargetOption

__all__ = ("BatchRequest", "BatchRequestBuilder", "BatchResponse", "Result")

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of one sub-request: either a value or an error."""

    value: T | None = None
    error: StorageError | None = None

    def failed(self) -> bool:
        return self.error is not None

    def get(self) -> T | None:
        """Return the value.

        Raises:
            StorageError: The error the sub-request failed with
        """
        if self.error is not None:
            raise self.error
        return self.value


@dataclass(frozen=True)
class BatchRequest:
    """Deletes, updates and gets to submit together, each with its own options.

    Results come back keyed by blob identity, so each kind of sub-request may
    name a given ``BlobId`` (generation included) only once.

    Raises:
        ValueError: If a blob is deleted, updated or fetched twice
    """

    to_delete: tuple[tuple[BlobId, tuple[BlobSourceOption, ...]], ...] = ()
    to_update: tuple[tuple[BlobInfo, tuple[BlobTargetOption, ...]], ...] = ()
    to_get: tuple[tuple[BlobId, tuple[BlobGetOption, ...]], ...] = ()

    def __post_init__(self) -> None:
        _check_unique("delete", [blob_id for blob_id, _ in self.to_delete])
        _check_unique("update", [info.blob_id for info, _ in self.to_update])
        _check_unique("get", [blob_id for blob_id, _ in self.to_get])

    @classmethod
    def builder(cls) -> BatchRequestBuilder:
        return BatchRequestBuilder()

    def __len__(self) -> int:
        return len(self.to_delete) + len(self.to_update) + len(self.to_get)


class BatchRequestBuilder:
    """Collects sub-requests for a ``BatchRequest``.

    Example::

        request = (
            BatchRequest.builder()
            .delete("bucket", "old")
            .update(BlobInfo(bucket="bucket", name="doc", content_type="text/plain"))
            .get(BlobId("bucket", "other"))
            .build()
        )
        response = await client.submit(request)
    """

    def __init__(self) -> None:
        self._to_delete: list[tuple[BlobId, tuple[BlobSourceOption, ...]]] = []
        self._to_update: list[tuple[BlobInfo, tuple[BlobTargetOption, ...]]] = []
        self._to_get: list[tuple[BlobId, tuple[BlobGetOption, ...]]] = []

    def delete(self, blob: BlobId | str, name: str | None = None, *options: BlobSourceOption) -> BatchRequestBuilder:
        self._to_delete.append((_blob_id(blob, name), options))
        return self

    def update(self, info: BlobInfo, *options: BlobTargetOption) -> BatchRequestBuilder:
        self._to_update.append((info, options))
        return self

    def get(self, blob: BlobId | str, name: str | None = None, *options: BlobGetOption) -> BatchRequestBuilder:
        self._to_get.append((_blob_id(blob, name), options))
        return self

    def build(self) -> BatchRequest:
        return BatchRequest(tuple(self._to_delete), tuple(self._to_update), tuple(self._to_get))


@dataclass(frozen=True)
class BatchResponse:
    """Results of a submitted batch, in the order the sub-requests were added."""

    deletes: list[Result[bool]] = field(default_factory=list)
    updates: list[Result[Blob]] = field(default_factory=list)
    gets: list[Result[Blob]] = field(default_factory=list)


def _blob_id(blob: BlobId | str, name: str | None) -> BlobId:
    if isinstance(blob, BlobId):
        return blob
    if name is None:
        raise ValueError("Blob name is required")
    return BlobId(blob, name)


def _check_unique(action: str, blob_ids: list[BlobId]) -> None:
    seen: set[BlobId] = set()
    for blob_id in blob_ids:
        if blob_id in seen:
            raise ValueError(f"Batch would {action} {blob_id} more than once")
        seen.add(blob_id)
