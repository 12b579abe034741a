"""The RPC seam between the storage client and the network transport."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from gcloud_clients.exceptions import ServiceError
    from gcloud_clients.storage.blob import BlobId

__all__ = (
    "RewriteRequest",
    "RewriteResponse",
    "RpcBatchRequest",
    "RpcBatchResponse",
    "RpcOption",
    "StorageRpc",
)

StorageObject = dict[str, Any]
RpcOptions = dict["RpcOption", Any]


class RpcOption(str, Enum):
    """Query parameters understood by the Cloud Storage JSON API."""

    PREDEFINED_ACL = "predefinedAcl"
    PREDEFINED_DEFAULT_OBJECT_ACL = "predefinedDefaultObjectAcl"
    IF_METAGENERATION_MATCH = "ifMetagenerationMatch"
    IF_METAGENERATION_NOT_MATCH = "ifMetagenerationNotMatch"
    IF_GENERATION_MATCH = "ifGenerationMatch"
    IF_GENERATION_NOT_MATCH = "ifGenerationNotMatch"
    IF_SOURCE_METAGENERATION_MATCH = "ifSourceMetagenerationMatch"
    IF_SOURCE_METAGENERATION_NOT_MATCH = "ifSourceMetagenerationNotMatch"
    IF_SOURCE_GENERATION_MATCH = "ifSourceGenerationMatch"
    IF_SOURCE_GENERATION_NOT_MATCH = "ifSourceGenerationNotMatch"
    PREFIX = "prefix"
    MAX_RESULTS = "maxResults"
    PAGE_TOKEN = "pageToken"
    DELIMITER = "delimiter"
    VERSIONS = "versions"
    FIELDS = "fields"
    IF_MD5_MATCH = "md5Hash"
    IF_CRC32C_MATCH = "crc32c"


@dataclass(frozen=True)
class RewriteRequest:
    """Parameters of a server-side rewrite (copy).

    Attributes:
        source: Wire representation of the source object
        source_options: Preconditions on the source (``ifSource*`` keys)
        override_info: Whether ``target`` metadata replaces the source metadata
        target: Wire representation of the target object
        target_options: Preconditions on the target
        megabytes_rewritten_per_call: Server work limit per call, None for server default
    """

    source: StorageObject
    source_options: RpcOptions
    override_info: bool
    target: StorageObject
    target_options: RpcOptions
    megabytes_rewritten_per_call: int | None = None


@dataclass(frozen=True)
class RewriteResponse:
    """Progress of a rewrite as reported by one call.

    Attributes:
        rewrite_request: The request this response continues
        result: The target object, only once ``is_done``
        blob_size: Total bytes to copy
        is_done: Whether the rewrite completed
        rewrite_token: Token to pass on the next ``continue_rewrite`` call
        total_bytes_rewritten: Bytes copied so far
    """

    rewrite_request: RewriteRequest
    result: StorageObject | None
    blob_size: int
    is_done: bool
    rewrite_token: str | None
    total_bytes_rewritten: int


@dataclass
class RpcBatchRequest:
    """Sub-requests grouped into one wire batch, each with its own options."""

    to_delete: list[tuple[StorageObject, RpcOptions]] = field(default_factory=list)
    to_update: list[tuple[StorageObject, RpcOptions]] = field(default_factory=list)
    to_get: list[tuple[StorageObject, RpcOptions]] = field(default_factory=list)


@dataclass
class RpcBatchResponse:
    """Per-object outcomes of a batch, keyed by the blob identity of each sub-request.

    Each value is a ``(result, error)`` pair where exactly one side is set,
    except for gets of missing objects where both are ``None``.
    """

    deletes: dict[BlobId, tuple[bool | None, ServiceError | None]] = field(default_factory=dict)
    updates: dict[BlobId, tuple[StorageObject | None, ServiceError | None]] = field(default_factory=dict)
    gets: dict[BlobId, tuple[StorageObject | None, ServiceError | None]] = field(default_factory=dict)


@runtime_checkable
class StorageRpc(Protocol):
    """Transport used by ``StorageClient``.

    Resources travel as dicts in the JSON API schema. Implementations raise
    ``StorageError`` for server errors; ``get_*`` and ``load``-style reads of
    missing resources return ``None`` instead of raising.
    """

    async def create_bucket(self, bucket: StorageObject, options: RpcOptions) -> StorageObject: ...

    async def create_object(
        self,
        obj: StorageObject,
        content: bytes | AsyncIterator[bytes],
        options: RpcOptions,
    ) -> StorageObject: ...

    async def list_buckets(self, options: RpcOptions) -> tuple[str | None, list[StorageObject] | None]: ...

    async def list_objects(
        self,
        bucket: str,
        options: RpcOptions,
    ) -> tuple[str | None, list[StorageObject] | None]: ...

    async def get_bucket(self, bucket: StorageObject, options: RpcOptions) -> StorageObject | None: ...

    async def get_object(self, obj: StorageObject, options: RpcOptions) -> StorageObject | None: ...

    async def patch_bucket(self, bucket: StorageObject, options: RpcOptions) -> StorageObject: ...

    async def patch_object(self, obj: StorageObject, options: RpcOptions) -> StorageObject: ...

    async def delete_bucket(self, bucket: StorageObject, options: RpcOptions) -> bool: ...

    async def delete_object(self, obj: StorageObject, options: RpcOptions) -> bool: ...

    async def compose(
        self,
        sources: list[StorageObject],
        target: StorageObject,
        target_options: RpcOptions,
    ) -> StorageObject: ...

    async def load(self, obj: StorageObject, options: RpcOptions) -> bytes: ...

    async def read(
        self,
        obj: StorageObject,
        options: RpcOptions,
        position: int,
        length: int,
    ) -> tuple[str | None, bytes]: ...

    async def open_upload(self, obj: StorageObject, options: RpcOptions) -> str: ...

    async def write(self, upload_id: str, data: bytes, dest_offset: int, last: bool) -> None: ...

    async def open_rewrite(self, request: RewriteRequest) -> RewriteResponse: ...

    async def continue_rewrite(self, previous: RewriteResponse) -> RewriteResponse: ...

    async def batch(self, request: RpcBatchRequest) -> RpcBatchResponse: ...
