"""Blob identity, metadata and the service-bound Blob object."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any

from gcloud_clients.types import WireModel, wire

if TYPE_CHECKING:
    from gcloud_clients.storage.channels import BlobReader, BlobWriter
    from gcloud_clients.storage.client import StorageClient
    from gcloud_clients.storage.copy import CopyWriter
    from gcloud_clients.storage.options import (
        BlobGetOption,
        BlobSourceOption,
        BlobTargetOption,
        BlobWriteOption,
        SignUrlOption,
    )

__all__ = ("Blob", "BlobId", "BlobInfo")


@dataclass(frozen=True)
class BlobId:
    """Identity of a Cloud Storage object.

    Attributes:
        bucket: Name of the bucket holding the object
        name: Object name
        generation: Specific object generation, None for the live version
    """

    bucket: str
    name: str
    generation: int | None = None

    def __post_init__(self) -> None:
        if not self.bucket:
            raise ValueError("Blob bucket name is required")
        if not self.name:
            raise ValueError("Blob name is required")

    def __str__(self) -> str:
        suffix = f"#{self.generation}" if self.generation is not None else ""
        return f"gs://{self.bucket}/{self.name}{suffix}"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"bucket": self.bucket, "name": self.name}
        if self.generation is not None:
            data["generation"] = self.generation
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BlobId:
        generation = data.get("generation")
        return cls(data["bucket"], data["name"], int(generation) if generation is not None else None)


@dataclass(frozen=True)
class BlobInfo(WireModel):
    """Metadata of a Cloud Storage object.

    Instances are immutable; use ``dataclasses.replace`` (or ``replace()``)
    to derive a modified copy, e.g. before calling ``StorageClient.update``.
    """

    bucket: str = wire("bucket")
    name: str = wire("name")
    generation: int | None = wire("generation", kind="int")
    id: str | None = wire("id")
    self_link: str | None = wire("selfLink")
    size: int | None = wire("size", kind="int")
    content_type: str | None = wire("contentType")
    content_encoding: str | None = wire("contentEncoding")
    content_disposition: str | None = wire("contentDisposition")
    content_language: str | None = wire("contentLanguage")
    cache_control: str | None = wire("cacheControl")
    component_count: int | None = wire("componentCount", kind="int")
    etag: str | None = wire("etag")
    md5: str | None = wire("md5Hash")
    crc32c: str | None = wire("crc32c")
    media_link: str | None = wire("mediaLink")
    metadata: dict[str, str] | None = wire("metadata")
    metageneration: int | None = wire("metageneration", kind="int")
    storage_class: str | None = wire("storageClass")
    owner: dict[str, str] | None = wire("owner")
    acl: list[dict[str, Any]] | None = wire("acl")
    create_time: datetime | None = wire("timeCreated", kind="time")
    update_time: datetime | None = wire("updated", kind="time")
    delete_time: datetime | None = wire("timeDeleted", kind="time")

    def __post_init__(self) -> None:
        if not self.bucket:
            raise ValueError("Blob bucket name is required")
        if not self.name:
            raise ValueError("Blob name is required")

    @classmethod
    def of(cls, bucket: str | BlobId, name: str | None = None, **values: Any) -> BlobInfo:  # noqa: ANN401
        """Create blob metadata for a bucket/name pair or an existing BlobId."""
        if isinstance(bucket, BlobId):
            return cls(bucket=bucket.bucket, name=bucket.name, generation=bucket.generation, **values)
        return cls(bucket=bucket, name=name, **values)  # type: ignore[arg-type]

    @property
    def blob_id(self) -> BlobId:
        return BlobId(self.bucket, self.name, self.generation)

    def replace(self, **changes: Any) -> BlobInfo:  # noqa: ANN401
        """Return a copy with ``changes`` applied."""
        return replace(self, **changes)


@dataclass(frozen=True)
class Blob(BlobInfo):
    """A Cloud Storage object bound to the client that fetched it.

    Follow-up calls (reload, update, delete, copy, read) go through the same
    client, so a Blob is only as fresh as the response it was built from.
    """

    client: StorageClient | None = field(default=None, compare=False, repr=False, kw_only=True)

    @classmethod
    def from_info(cls, client: StorageClient, info: BlobInfo) -> Blob:
        values = {f: getattr(info, f) for f in info.__dataclass_fields__ if f != "client"}
        return cls(**values, client=client)

    def info(self) -> BlobInfo:
        """Strip the client binding."""
        values = {f: getattr(self, f) for f in BlobInfo.__dataclass_fields__}
        return BlobInfo(**values)

    @property
    def _client(self) -> StorageClient:
        if self.client is None:
            raise RuntimeError(f"Blob {self.blob_id} is not bound to a client")
        return self.client

    async def exists(self, *options: BlobSourceOption) -> bool:
        """Check whether this object still exists."""
        from gcloud_clients.storage.options import BlobGetOption

        return await self._client.get(self.blob_id, None, *options, BlobGetOption.fields()) is not None

    async def content(self, *options: BlobSourceOption) -> bytes:
        return await self._client.read_all_bytes(self.blob_id, None, *options)

    async def reload(self, *options: BlobGetOption) -> Blob | None:
        """Fetch the latest metadata of this object.

        Returns:
            A new Blob, or None if the object was deleted
        """
        return await self._client.get(self.blob_id, None, *options)

    async def update(self, *options: BlobTargetOption) -> Blob:
        """Patch the server-side metadata with this object's values."""
        return await self._client.update(self.info(), *options)

    async def delete(self, *options: BlobSourceOption) -> bool:
        return await self._client.delete(self.blob_id, None, *options)

    async def copy_to(
        self,
        target: BlobId | str,
        name: str | None = None,
        *options: BlobSourceOption,
    ) -> CopyWriter:
        """Start a server-side copy of this object.

        Args:
            target: Target BlobId, or target bucket name when ``name`` is given
            name: Target object name (defaults to this object's name)
            *options: Preconditions on this (source) object

        Returns:
            A CopyWriter tracking the rewrite
        """
        from gcloud_clients.storage.copy import CopyRequest

        if not isinstance(target, BlobId):
            target = BlobId(target, name or self.name)
        request = CopyRequest.builder().source(self.blob_id).source_options(*options).target(target).build()
        return await self._client.copy(request)

    def reader(self, *options: BlobSourceOption) -> BlobReader:
        return self._client.reader(self.blob_id, None, *options)

    async def writer(self, *options: BlobWriteOption) -> BlobWriter:
        return await self._client.writer(self.info(), *options)

    async def download_to_file(self, path: str | Path, *options: BlobSourceOption) -> int:
        """Stream this object into a local file.

        Returns:
            Number of bytes written
        """
        return await self._client.download_to_file(self.blob_id, path, *options)

    def sign_url(self, duration: timedelta, *options: SignUrlOption) -> str:
        return self._client.sign_url(self, duration, *options)
