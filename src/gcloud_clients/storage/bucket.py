"""Bucket metadata and the service-bound Bucket object."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import TYPE_CHECKING, Any

from gcloud_clients.types import WireModel, wire

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from gcloud_clients.storage.blob import Blob, BlobInfo
    from gcloud_clients.storage.client import StorageClient
    from gcloud_clients.storage.options import (
        BlobGetOption,
        BlobListOption,
        BlobTargetOption,
        BucketGetOption,
        BucketSourceOption,
        BucketTargetOption,
    )
    from gcloud_clients.types import Page

__all__ = ("Bucket", "BucketInfo")


@dataclass(frozen=True)
class BucketInfo(WireModel):
    """Metadata of a Cloud Storage bucket.

    Only ``name`` is required; everything else is assigned by the service or
    optional on create.
    """

    name: str = wire("name")
    id: str | None = wire("id")
    self_link: str | None = wire("selfLink")
    etag: str | None = wire("etag")
    location: str | None = wire("location")
    storage_class: str | None = wire("storageClass")
    metageneration: int | None = wire("metageneration", kind="int")
    owner: dict[str, str] | None = wire("owner")
    acl: list[dict[str, Any]] | None = wire("acl")
    default_acl: list[dict[str, Any]] | None = wire("defaultObjectAcl")
    cors: list[dict[str, Any]] | None = wire("cors")
    index_page: str | None = wire("website.mainPageSuffix")
    not_found_page: str | None = wire("website.notFoundPage")
    versioning_enabled: bool | None = wire("versioning.enabled")
    create_time: datetime | None = wire("timeCreated", kind="time")

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Bucket name is required")

    @classmethod
    def of(cls, name: str, **values: Any) -> BucketInfo:  # noqa: ANN401
        return cls(name=name, **values)

    def replace(self, **changes: Any) -> BucketInfo:  # noqa: ANN401
        """Return a copy with ``changes`` applied."""
        return replace(self, **changes)


@dataclass(frozen=True)
class Bucket(BucketInfo):
    """A bucket bound to the client that fetched it."""

    client: StorageClient | None = field(default=None, compare=False, repr=False, kw_only=True)

    @classmethod
    def from_info(cls, client: StorageClient, info: BucketInfo) -> Bucket:
        values = {f: getattr(info, f) for f in info.__dataclass_fields__ if f != "client"}
        return cls(**values, client=client)

    def info(self) -> BucketInfo:
        values = {f: getattr(self, f) for f in BucketInfo.__dataclass_fields__}
        return BucketInfo(**values)

    @property
    def _client(self) -> StorageClient:
        if self.client is None:
            raise RuntimeError(f"Bucket {self.name} is not bound to a client")
        return self.client

    async def exists(self, *options: BucketSourceOption) -> bool:
        from gcloud_clients.storage.options import BucketGetOption

        return await self._client.get_bucket(self.name, *options, BucketGetOption.fields()) is not None

    async def reload(self, *options: BucketGetOption) -> Bucket | None:
        return await self._client.get_bucket(self.name, *options)

    async def update(self, *options: BucketTargetOption) -> Bucket:
        return await self._client.update_bucket(self.info(), *options)

    async def delete(self, *options: BucketSourceOption) -> bool:
        return await self._client.delete_bucket(self.name, *options)

    async def get(self, name: str, *options: BlobGetOption) -> Blob | None:
        """Fetch a blob of this bucket, or None if it does not exist."""
        return await self._client.get(self.name, name, *options)

    async def get_many(self, *names: str) -> list[Blob | None]:
        """Fetch several blobs of this bucket in one batch."""
        from gcloud_clients.storage.blob import BlobId

        return await self._client.get_all(*(BlobId(self.name, name) for name in names))

    async def list(self, *options: BlobListOption) -> Page[Blob]:
        return await self._client.list(self.name, *options)

    async def iterate(self, *options: BlobListOption) -> AsyncIterator[Blob]:
        """Iterate over every blob of this bucket, following page cursors."""
        page = await self.list(*options)
        async for blob in page.iterate_all():
            yield blob

    async def create(
        self,
        name: str,
        content: bytes = b"",
        content_type: str | None = None,
        *options: BlobTargetOption,
    ) -> Blob:
        """Create a blob in this bucket.

        Args:
            name: Blob name
            content: Blob content
            content_type: MIME type stored with the blob
            *options: Blob target options

        Returns:
            The created Blob
        """
        from gcloud_clients.storage.blob import BlobInfo

        info: BlobInfo = BlobInfo(bucket=self.name, name=name, content_type=content_type)
        return await self._client.create(info, content, *options)
