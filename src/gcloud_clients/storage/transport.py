"""Storage transport backed by gcloud-aio-storage."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from gcloud_clients.exceptions import ConfigurationError, ServiceConnectionError, ServiceError, StorageError
from gcloud_clients.storage.blob import BlobId
from gcloud_clients.storage.rpc import RewriteRequest, RewriteResponse, RpcBatchRequest, RpcBatchResponse, RpcOption

if TYPE_CHECKING:
    from gcloud_clients.storage.client import StorageConfig
    from gcloud_clients.storage.rpc import RpcOptions, StorageObject

__all__ = ("AioStorageRpc",)

NOT_IMPLEMENTED = 501
PRECONDITION_FAILED = 412
NOT_MODIFIED = 304

_IDENTITY_FIELDS = frozenset({"bucket", "name", "generation"})

# option -> (metadata field, whether the values must be equal)
_READ_CONDITIONS = {
    RpcOption.IF_GENERATION_MATCH: ("generation", True),
    RpcOption.IF_GENERATION_NOT_MATCH: ("generation", False),
    RpcOption.IF_METAGENERATION_MATCH: ("metageneration", True),
    RpcOption.IF_METAGENERATION_NOT_MATCH: ("metageneration", False),
}


def _params(options: RpcOptions) -> dict[str, str]:
    """Render rpc options as query parameters."""
    params: dict[str, str] = {}
    for key, value in options.items():
        name = getattr(key, "value", key)
        if isinstance(value, bool):
            params[name] = "true" if value else "false"
        elif value is not None:
            params[name] = str(value)
    return params


def _resource(obj: StorageObject) -> dict[str, Any]:
    """Writable metadata of an object, without its identity."""
    return {key: value for key, value in obj.items() if key not in _IDENTITY_FIELDS}


def _is_not_found(e: Exception) -> bool:
    if getattr(e, "status", None) == 404:
        return True
    error_message = str(e).lower()
    return "not found" in error_message or "404" in error_message


def _translate(e: Exception, action: str) -> ServiceError:
    if isinstance(e, ServiceError):
        return e
    if isinstance(e, (ConnectionError, TimeoutError, OSError)):
        return ServiceConnectionError(f"Failed to {action}: {e}")
    return StorageError(f"Failed to {action}: {getattr(e, 'message', None) or e}", code=getattr(e, "status", None))


def _unsupported(operation: str) -> StorageError:
    return StorageError(
        f"{operation} is not supported by the gcloud-aio-storage transport",
        code=NOT_IMPLEMENTED,
        retryable=False,
    )


def _is_pinned(obj: StorageObject, options: RpcOptions) -> bool:
    """Whether a read names a generation or carries generation preconditions."""
    return obj.get("generation") is not None or any(options.get(key) is not None for key in _READ_CONDITIONS)


def _check_live(obj: StorageObject, options: RpcOptions, metadata: StorageObject) -> None:
    """Check the live object's ``metadata`` against the generation and preconditions of a read.

    gcloud-aio-storage only reads the live version, so a request for any other
    generation cannot be served.

    Raises:
        StorageError: 501 for a noncurrent generation, 412 (or 304 for the
            ``NotMatch`` variants) when a precondition does not hold
    """
    blob_id = BlobId.from_dict(obj)
    wanted = obj.get("generation")
    if wanted is not None and int(metadata.get("generation", 0)) != int(wanted):
        raise _unsupported(f"Reading noncurrent generation {blob_id}")
    for key, (field, equal) in _READ_CONDITIONS.items():
        expected = options.get(key)
        if expected is None:
            continue
        if (int(metadata.get(field, 0)) == int(expected)) != equal:
            raise StorageError(
                f"Precondition {key.value}={expected} failed for {blob_id}",
                code=PRECONDITION_FAILED if equal else NOT_MODIFIED,
                retryable=False,
            )


class AioStorageRpc:
    """``StorageRpc`` implementation using gcloud-aio-storage.

    Authentication follows gcloud-aio: a service account file when
    configured, Application Default Credentials otherwise. Rewrites complete
    within the first call. Bucket creation, bucket patch and delete, and
    resumable uploads are not available and fail with a non-retryable
    ``StorageError`` (code 501).

    Reads only reach the live version of an object. A read naming a
    generation, or carrying generation preconditions, is checked against the
    live metadata before (and, for content, after) the download; reading a
    noncurrent generation fails with code 501, as does composing pinned
    source generations.

    Note:
        The underlying client is lazily initialized on first use.
    """

    def __init__(self, config: StorageConfig) -> None:
        self.config = config
        self._client: Any = None

    async def _get_client(self) -> Any:  # noqa: ANN401
        """Get or create the gcloud-aio-storage client.

        Raises:
            ConfigurationError: If gcloud-aio-storage is not installed
            ServiceConnectionError: If unable to create client
        """
        if self._client is not None:
            return self._client

        try:
            from gcloud.aio.storage import Storage
        except ImportError as e:
            raise ConfigurationError(
                "gcloud-aio-storage is required for AioStorageRpc. Install it with: pip install gcloud-aio-storage"
            ) from e

        try:
            kwargs: dict[str, Any] = {}
            if self.config.service_file:
                kwargs["service_file"] = self.config.service_file
            if self.config.api_root:
                kwargs["api_root"] = self.config.api_root
            self._client = Storage(**kwargs)
            return self._client
        except Exception as e:
            raise ServiceConnectionError(f"Failed to create storage client: {e}") from e

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def create_bucket(self, bucket: StorageObject, options: RpcOptions) -> StorageObject:
        raise _unsupported("Bucket creation")

    async def create_object(
        self,
        obj: StorageObject,
        content: bytes | AsyncIterator[bytes],
        options: RpcOptions,
    ) -> StorageObject:
        client = await self._get_client()

        if isinstance(content, bytes):
            data = content
        else:
            chunks = []
            async for chunk in content:
                chunks.append(chunk)
            data = b"".join(chunks)

        try:
            return await client.upload(
                obj["bucket"],
                obj["name"],
                data,
                content_type=obj.get("contentType"),
                parameters=_params(options),
                metadata=_resource(obj) or None,
            )
        except Exception as e:
            raise _translate(e, f"upload {BlobId.from_dict(obj)}") from e

    async def list_buckets(self, options: RpcOptions) -> tuple[str | None, list[StorageObject] | None]:
        client = await self._get_client()
        try:
            buckets = await client.list_buckets(self.config.project_id, params=_params(options))
        except Exception as e:
            raise _translate(e, "list buckets") from e
        # gcloud-aio follows page tokens itself and returns every bucket
        return None, [{"name": bucket.name} for bucket in buckets]

    async def list_objects(
        self,
        bucket: str,
        options: RpcOptions,
    ) -> tuple[str | None, list[StorageObject] | None]:
        """List a page of objects.

        With a delimiter, each common prefix follows the objects as a
        placeholder holding only ``bucket`` and ``name``.
        """
        client = await self._get_client()
        try:
            response = await client.list_objects(bucket, params=_params(options))
        except Exception as e:
            raise _translate(e, f"list objects of {bucket}") from e
        items = response.get("items")
        prefixes = response.get("prefixes")
        if prefixes:
            items = [*(items or []), *({"bucket": bucket, "name": prefix} for prefix in prefixes)]
        return response.get("nextPageToken"), items

    async def get_bucket(self, bucket: StorageObject, options: RpcOptions) -> StorageObject | None:
        client = await self._get_client()
        try:
            return await client.get_bucket_metadata(bucket["name"], params=_params(options))
        except Exception as e:
            if _is_not_found(e):
                return None
            raise _translate(e, f"get bucket {bucket['name']}") from e

    async def _metadata(self, obj: StorageObject) -> StorageObject | None:
        client = await self._get_client()
        try:
            return await client.download_metadata(obj["bucket"], obj["name"])
        except Exception as e:
            if _is_not_found(e):
                return None
            raise _translate(e, f"get {BlobId.from_dict(obj)}") from e

    async def get_object(self, obj: StorageObject, options: RpcOptions) -> StorageObject | None:
        metadata = await self._metadata(obj)
        if metadata is not None and _is_pinned(obj, options):
            _check_live(obj, options, metadata)
        return metadata

    async def _live(self, obj: StorageObject, options: RpcOptions) -> StorageObject:
        metadata = await self.get_object(obj, options)
        if metadata is None:
            raise StorageError(f"Blob {BlobId.from_dict(obj)} not found", code=404)
        return metadata

    async def _ensure_unchanged(self, obj: StorageObject, before: StorageObject) -> None:
        """Fail if the live version was replaced since ``before`` was read."""
        after = await self._metadata(obj)
        if after is None or after.get("generation") != before.get("generation"):
            raise StorageError(
                f"Blob {BlobId.from_dict(obj)} was replaced while being read",
                code=PRECONDITION_FAILED,
                retryable=False,
            )

    async def patch_bucket(self, bucket: StorageObject, options: RpcOptions) -> StorageObject:
        raise _unsupported("Bucket update")

    async def patch_object(self, obj: StorageObject, options: RpcOptions) -> StorageObject:
        client = await self._get_client()
        try:
            return await client.patch_metadata(obj["bucket"], obj["name"], _resource(obj), params=_params(options))
        except Exception as e:
            raise _translate(e, f"update {BlobId.from_dict(obj)}") from e

    async def delete_bucket(self, bucket: StorageObject, options: RpcOptions) -> bool:
        raise _unsupported("Bucket deletion")

    async def delete_object(self, obj: StorageObject, options: RpcOptions) -> bool:
        client = await self._get_client()
        params = _params(options)
        if obj.get("generation") is not None:
            params["generation"] = str(obj["generation"])
        try:
            await client.delete(obj["bucket"], obj["name"], params=params)
        except Exception as e:
            if _is_not_found(e):
                return False
            raise _translate(e, f"delete {BlobId.from_dict(obj)}") from e
        return True

    async def compose(
        self,
        sources: list[StorageObject],
        target: StorageObject,
        target_options: RpcOptions,
    ) -> StorageObject:
        pinned = [BlobId.from_dict(source) for source in sources if source.get("generation") is not None]
        if pinned:
            raise _unsupported(f"Composing pinned source generations ({', '.join(map(str, pinned))})")
        client = await self._get_client()
        try:
            return await client.compose(
                target["bucket"],
                target["name"],
                [source["name"] for source in sources],
                content_type=target.get("contentType"),
                params=_params(target_options),
            )
        except Exception as e:
            raise _translate(e, f"compose {BlobId.from_dict(target)}") from e

    async def load(self, obj: StorageObject, options: RpcOptions) -> bytes:
        metadata = await self._live(obj, options) if _is_pinned(obj, options) else None
        client = await self._get_client()
        try:
            data = await client.download(obj["bucket"], obj["name"])
        except Exception as e:
            raise _translate(e, f"read {BlobId.from_dict(obj)}") from e
        if metadata is not None:
            await self._ensure_unchanged(obj, metadata)
        return data

    async def read(
        self,
        obj: StorageObject,
        options: RpcOptions,
        position: int,
        length: int,
    ) -> tuple[str | None, bytes]:
        metadata = await self._live(obj, options)
        size = int(metadata.get("size", 0))
        if position >= size:
            return metadata.get("etag"), b""

        client = await self._get_client()
        end = min(position + length, size) - 1
        try:
            data = await client.download(obj["bucket"], obj["name"], headers={"Range": f"bytes={position}-{end}"})
        except Exception as e:
            raise _translate(e, f"read {BlobId.from_dict(obj)}") from e
        if _is_pinned(obj, options):
            await self._ensure_unchanged(obj, metadata)
        return metadata.get("etag"), data

    async def open_upload(self, obj: StorageObject, options: RpcOptions) -> str:
        raise _unsupported("Resumable upload")

    async def write(self, upload_id: str, data: bytes, dest_offset: int, last: bool) -> None:
        raise _unsupported("Resumable upload")

    async def open_rewrite(self, request: RewriteRequest) -> RewriteResponse:
        client = await self._get_client()
        source, target = request.source, request.target
        params = {**_params(request.source_options), **_params(request.target_options)}
        if source.get("generation") is not None:
            params["sourceGeneration"] = str(source["generation"])
        try:
            result = await client.copy(
                source["bucket"],
                source["name"],
                target["bucket"],
                new_name=target["name"],
                metadata=_resource(target) if request.override_info else None,
                params=params,
            )
        except Exception as e:
            raise _translate(e, f"copy {BlobId.from_dict(source)}") from e

        # gcloud-aio returns the rewrite response once the copy is done
        resource = result.get("resource", result)
        size = int(result.get("objectSize", resource.get("size", 0)))
        return RewriteResponse(
            rewrite_request=request,
            result=resource,
            blob_size=size,
            is_done=True,
            rewrite_token=None,
            total_bytes_rewritten=int(result.get("totalBytesRewritten", size)),
        )

    async def continue_rewrite(self, previous: RewriteResponse) -> RewriteResponse:
        if previous.is_done:
            return previous
        raise _unsupported("Rewrite continuation")

    async def batch(self, request: RpcBatchRequest) -> RpcBatchResponse:
        """Run the sub-requests one after another, collecting each outcome."""
        response = RpcBatchResponse()
        for obj, options in request.to_delete:
            try:
                response.deletes[BlobId.from_dict(obj)] = (await self.delete_object(obj, options), None)
            except ServiceError as e:
                response.deletes[BlobId.from_dict(obj)] = (None, e)
        for obj, options in request.to_update:
            try:
                response.updates[BlobId.from_dict(obj)] = (await self.patch_object(obj, options), None)
            except ServiceError as e:
                response.updates[BlobId.from_dict(obj)] = (None, e)
        for obj, options in request.to_get:
            try:
                response.gets[BlobId.from_dict(obj)] = (await self.get_object(obj, options), None)
            except ServiceError as e:
                response.gets[BlobId.from_dict(obj)] = (None, e)
        return response
