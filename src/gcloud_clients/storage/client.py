"""Cloud Storage client."""

from __future__ import annotations

import base64
import logging
import mimetypes
from collections.abc import AsyncIterator, Callable, Iterable
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar
from urllib.parse import quote

from gcloud_clients.base import BaseClient
from gcloud_clients.config import ServiceConfig
from gcloud_clients.exceptions import ConfigurationError, ServiceError, StorageError
from gcloud_clients.options import Option, options_to_map
from gcloud_clients.storage.batch import BatchRequest, BatchResponse, Result
from gcloud_clients.storage.blob import Blob, BlobId, BlobInfo
from gcloud_clients.storage.bucket import Bucket, BucketInfo
from gcloud_clients.storage.channels import BlobReader, BlobWriter
from gcloud_clients.storage.checksums import crc32c_base64, md5_base64
from gcloud_clients.storage.copy import CopyRequest, CopyWriter
from gcloud_clients.storage.options import (
    GENERATION_KEYS,
    METAGENERATION_KEYS,
    HttpMethod,
    SignUrlKey,
    as_source_key,
)
from gcloud_clients.storage.rpc import RewriteRequest, RpcBatchRequest, RpcOption, StorageRpc
from gcloud_clients.storage.signing import ServiceAccountCredentials
from gcloud_clients.types import Page

if TYPE_CHECKING:
    from gcloud_clients.storage.compose import ComposeRequest
    from gcloud_clients.storage.options import (
        BlobGetOption,
        BlobListOption,
        BlobSourceOption,
        BlobTargetOption,
        BlobWriteOption,
        BucketGetOption,
        BucketListOption,
        BucketSourceOption,
        BucketTargetOption,
        SignUrlOption,
    )
    from gcloud_clients.storage.rpc import RpcBatchResponse, RpcOptions, StorageObject

__all__ = ("StorageClient", "StorageConfig")

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_STORAGE_HOST = "https://storage.googleapis.com"
FILE_CHUNK_SIZE = 64 * 1024


@dataclass
class StorageConfig(ServiceConfig):
    """Configuration for the Cloud Storage client.

    Attributes:
        credentials: Service account used to sign URLs
        service_file: Path to a service account JSON key, used by the default
            transport and, when ``credentials`` is not set, for URL signing
        api_root: Custom API endpoint (for emulators)
        rpc_factory: Builds the transport from this config. Defaults to the
            gcloud-aio-storage transport.
    """

    credentials: ServiceAccountCredentials | None = None
    service_file: str | None = None
    api_root: str | None = None
    rpc_factory: Callable[[StorageConfig], StorageRpc] | None = None


def _resolve(options: Iterable[Option], generation: int | None = None, metageneration: int | None = None) -> RpcOptions:
    resolved = []
    for option in options:
        if option.rpc_option in GENERATION_KEYS:
            option = option.resolve(generation)
        elif option.rpc_option in METAGENERATION_KEYS:
            option = option.resolve(metageneration)
        resolved.append(option)
    return options_to_map(resolved)


def _blob_id(blob: BlobId | str, name: str | None) -> BlobId:
    if isinstance(blob, BlobId):
        return blob
    if name is None:
        raise ValueError("Blob name is required")
    return BlobId(blob, name)


class StorageClient(BaseClient[StorageConfig, StorageRpc]):
    """Asynchronous client for Cloud Storage buckets and blobs.

    Every operation translates its options into request parameters, runs the
    request on the transport under the configured retry policy and wraps the
    response into service-bound ``Bucket`` and ``Blob`` objects.

    Example::

        async with StorageClient(StorageConfig(project_id="my-project")) as client:
            blob = await client.create(BlobInfo(bucket="b", name="n"), b"data")
            content = await client.read_all_bytes(blob.blob_id)
    """

    error_type = StorageError

    def __init__(self, config: StorageConfig | None = None, rpc: StorageRpc | None = None) -> None:
        super().__init__(config or StorageConfig(), rpc)

    def _default_rpc(self) -> StorageRpc:
        factory = self.config.rpc_factory
        if factory is None:
            from gcloud_clients.storage.transport import AioStorageRpc

            factory = AioStorageRpc
        return factory(self.config)

    # =========================================================================
    # Buckets
    # =========================================================================

    async def create_bucket(self, info: BucketInfo, *options: BucketTargetOption) -> Bucket:
        obj = info.to_dict()
        params = _resolve(options, metageneration=info.metageneration)
        created = await self.call(lambda: self.rpc.create_bucket(obj, params))
        return Bucket.from_dict(created, client=self)

    async def get_bucket(self, name: str, *options: BucketGetOption) -> Bucket | None:
        """Fetch a bucket.

        Returns:
            The bucket, or None if it does not exist
        """
        params = options_to_map(options)
        obj = await self.call(lambda: self.rpc.get_bucket({"name": name}, params))
        return Bucket.from_dict(obj, client=self) if obj is not None else None

    async def list_buckets(self, *options: BucketListOption) -> Page[Bucket]:
        return await self._page(self.rpc.list_buckets, options_to_map(options), self._as_bucket, RpcOption.PAGE_TOKEN)

    def _as_bucket(self, obj: StorageObject) -> Bucket:
        return Bucket.from_dict(obj, client=self)

    async def update_bucket(self, info: BucketInfo, *options: BucketTargetOption) -> Bucket:
        obj = info.to_dict()
        params = _resolve(options, metageneration=info.metageneration)
        updated = await self.call(lambda: self.rpc.patch_bucket(obj, params))
        return Bucket.from_dict(updated, client=self)

    async def delete_bucket(self, name: str, *options: BucketSourceOption) -> bool:
        """Delete an empty bucket.

        Returns:
            True if the bucket was deleted, False if it did not exist
        """
        params = options_to_map(options)
        return await self.call(lambda: self.rpc.delete_bucket({"name": name}, params))

    # =========================================================================
    # Blobs
    # =========================================================================

    async def create(self, info: BlobInfo, content: bytes = b"", *options: BlobTargetOption) -> Blob:
        """Create a blob with ``content``.

        The MD5 and CRC32C of the content are sent with the metadata so the
        service verifies what it stores.

        Args:
            info: Blob metadata
            content: Blob content
            *options: Blob target options

        Returns:
            The created Blob

        Raises:
            ValueError: If a value-less precondition finds no value in ``info``
        """
        info = info.replace(md5=md5_base64(content), crc32c=crc32c_base64(content))
        obj = info.to_dict()
        params = _resolve(options, info.generation, info.metageneration)
        created = await self.call(lambda: self.rpc.create_object(obj, content, params))
        return Blob.from_dict(created, client=self)

    async def create_from_stream(
        self,
        info: BlobInfo,
        stream: AsyncIterator[bytes],
        *options: BlobWriteOption,
    ) -> Blob:
        """Create a blob from a stream of chunks.

        The stream is forwarded unchanged and is consumed once, so the
        request is not retried. Hashes set on ``info`` are only sent when
        ``md5_match``/``crc32c_match`` are given.
        """
        info, params = self._write_params(info, options)
        obj = info.to_dict()
        created = await self.call(lambda: self.rpc.create_object(obj, stream, params), idempotent=False)
        return Blob.from_dict(created, client=self)

    async def create_from_file(self, info: BlobInfo, path: str | Path, *options: BlobWriteOption) -> Blob:
        """Upload a local file.

        The content type is guessed from the file name when ``info`` has none.

        Raises:
            ConfigurationError: If aiofiles is not installed
            StorageError: If the file cannot be read or the upload fails
        """
        try:
            import aiofiles
        except ImportError as e:
            raise ConfigurationError(
                "aiofiles is required for file uploads. Install it with: pip install aiofiles"
            ) from e

        path = Path(path)
        if info.content_type is None:
            content_type, _ = mimetypes.guess_type(path.name)
            info = info.replace(content_type=content_type)

        try:
            f = await aiofiles.open(path, "rb")
        except OSError as e:
            raise StorageError(f"Failed to read file {path}: {e}", retryable=False) from e

        async def chunks() -> AsyncIterator[bytes]:
            while True:
                chunk = await f.read(FILE_CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

        try:
            return await self.create_from_stream(info, chunks(), *options)
        finally:
            await f.close()

    async def get(self, blob: BlobId | str, name: str | None = None, *options: BlobGetOption) -> Blob | None:
        """Fetch blob metadata.

        Args:
            blob: A BlobId, or a bucket name together with ``name``
            name: Blob name when ``blob`` is a bucket name
            *options: Get options

        Returns:
            The blob, or None if it does not exist
        """
        blob_id = _blob_id(blob, name)
        params = _resolve(options, blob_id.generation)
        obj = await self.call(lambda: self.rpc.get_object(blob_id.to_dict(), params))
        return Blob.from_dict(obj, client=self) if obj is not None else None

    async def list(self, bucket: str, *options: BlobListOption) -> Page[Blob]:
        return await self._page(
            lambda params: self.rpc.list_objects(bucket, params),
            options_to_map(options),
            self._as_blob,
            RpcOption.PAGE_TOKEN,
        )

    def _as_blob(self, obj: StorageObject) -> Blob:
        return Blob.from_dict(obj, client=self)

    async def update(self, info: BlobInfo, *options: BlobTargetOption) -> Blob:
        """Replace the mutable metadata of a blob with the values in ``info``."""
        obj = info.to_dict()
        params = _resolve(options, info.generation, info.metageneration)
        updated = await self.call(lambda: self.rpc.patch_object(obj, params))
        return Blob.from_dict(updated, client=self)

    async def delete(self, blob: BlobId | str, name: str | None = None, *options: BlobSourceOption) -> bool:
        """Delete a blob.

        Returns:
            True if the blob was deleted, False if it did not exist
        """
        blob_id = _blob_id(blob, name)
        params = _resolve(options, blob_id.generation)
        return await self.call(lambda: self.rpc.delete_object(blob_id.to_dict(), params))

    async def compose(self, request: ComposeRequest) -> Blob:
        """Concatenate the request's sources into its target blob."""
        target = request.target
        sources = [source.to_dict(target.bucket) for source in request.sources]
        obj = target.to_dict()
        params = _resolve(request.target_options, target.generation, target.metageneration)
        composed = await self.call(lambda: self.rpc.compose(sources, obj, params))
        return Blob.from_dict(composed, client=self)

    async def copy(self, request: CopyRequest) -> CopyWriter:
        """Start a server-side copy.

        Only the first rewrite call is issued here; use ``CopyWriter.result()``
        to wait for completion.

        Returns:
            A CopyWriter tracking the rewrite
        """
        source_params = {
            as_source_key(key): value
            for key, value in _resolve(request.source_options, request.source.generation).items()
        }
        target = request.target
        target_params = _resolve(request.target_options, target.generation, target.metageneration)
        rewrite = RewriteRequest(
            source=request.source.to_dict(),
            source_options=source_params,
            override_info=request.override_info,
            target=target.to_dict(),
            target_options=target_params,
            megabytes_rewritten_per_call=request.megabytes_copied_per_chunk,
        )
        response = await self.call(lambda: self.rpc.open_rewrite(rewrite))
        return CopyWriter(self, response)

    async def read_all_bytes(self, blob: BlobId | str, name: str | None = None, *options: BlobSourceOption) -> bytes:
        blob_id = _blob_id(blob, name)
        params = _resolve(options, blob_id.generation)
        return await self.call(lambda: self.rpc.load(blob_id.to_dict(), params))

    async def download_to_file(self, blob: BlobId, path: str | Path, *options: BlobSourceOption) -> int:
        """Stream a blob into a local file.

        Returns:
            Number of bytes written

        Raises:
            ConfigurationError: If aiofiles is not installed
            StorageError: If the file cannot be written or a read fails
        """
        try:
            import aiofiles
        except ImportError as e:
            raise ConfigurationError(
                "aiofiles is required for file downloads. Install it with: pip install aiofiles"
            ) from e

        written = 0
        try:
            async with self.reader(blob, None, *options) as reader, aiofiles.open(path, "wb") as f:
                while chunk := await reader.read(FILE_CHUNK_SIZE):
                    await f.write(chunk)
                    written += len(chunk)
        except OSError as e:
            raise StorageError(f"Failed to write file {path}: {e}", retryable=False) from e
        return written

    def reader(self, blob: BlobId | str, name: str | None = None, *options: BlobSourceOption) -> BlobReader:
        """Open a chunked reader; no request is made until the first read."""
        blob_id = _blob_id(blob, name)
        return BlobReader(self, blob_id, _resolve(options, blob_id.generation))

    async def writer(self, info: BlobInfo, *options: BlobWriteOption) -> BlobWriter:
        """Open a resumable upload for ``info``.

        Hashes on ``info`` are dropped unless ``md5_match``/``crc32c_match``
        are given.
        """
        info, params = self._write_params(info, options)
        return await BlobWriter.open(self, info, params)

    def _write_params(self, info: BlobInfo, options: Iterable[BlobWriteOption]) -> tuple[BlobInfo, RpcOptions]:
        params = _resolve(options, info.generation, info.metageneration)
        if not params.pop(RpcOption.IF_MD5_MATCH, False):
            info = info.replace(md5=None)
        if not params.pop(RpcOption.IF_CRC32C_MATCH, False):
            info = info.replace(crc32c=None)
        return info, params

    # =========================================================================
    # Batches
    # =========================================================================

    async def submit(self, request: BatchRequest) -> BatchResponse:
        """Send the request's deletes, updates and gets in one batch.

        Outcomes are matched to sub-requests by blob identity, which
        ``BatchRequest`` keeps unique within each kind of sub-request.

        Returns:
            Results in the order the sub-requests were added. A get of a
            missing blob yields a None value.
        """
        rpc_request = RpcBatchRequest(
            to_delete=[(blob_id.to_dict(), _resolve(opts, blob_id.generation)) for blob_id, opts in request.to_delete],
            to_update=[
                (info.to_dict(), _resolve(opts, info.generation, info.metageneration))
                for info, opts in request.to_update
            ],
            to_get=[(blob_id.to_dict(), _resolve(opts, blob_id.generation)) for blob_id, opts in request.to_get],
        )
        logger.debug("Submitting batch of %d requests", len(request))
        response: RpcBatchResponse = await self.call(lambda: self.rpc.batch(rpc_request))

        def as_blob(obj: StorageObject | None) -> Blob | None:
            return Blob.from_dict(obj, client=self) if obj is not None else None

        return BatchResponse(
            deletes=[_result(response.deletes, blob_id, bool) for blob_id, _ in request.to_delete],
            updates=[_result(response.updates, info.blob_id, as_blob) for info, _ in request.to_update],
            gets=[_result(response.gets, blob_id, as_blob, missing_ok=True) for blob_id, _ in request.to_get],
        )

    async def get_all(self, *blob_ids: BlobId) -> list[Blob | None]:
        """Fetch several distinct blobs in one batch; missing or failed ones are None."""
        builder = BatchRequest.builder()
        for blob_id in blob_ids:
            builder.get(blob_id)
        response = await self.submit(builder.build())
        return [result.value for result in response.gets]

    async def update_all(self, *infos: BlobInfo) -> list[Blob | None]:
        """Update several distinct blobs in one batch; failed updates are None."""
        builder = BatchRequest.builder()
        for info in infos:
            builder.update(info)
        response = await self.submit(builder.build())
        return [result.value for result in response.updates]

    async def delete_all(self, *blob_ids: BlobId) -> list[bool]:
        """Delete several distinct blobs in one batch; failed deletes are False."""
        builder = BatchRequest.builder()
        for blob_id in blob_ids:
            builder.delete(blob_id)
        response = await self.submit(builder.build())
        return [bool(result.value) for result in response.deletes]

    # =========================================================================
    # Signed URLs
    # =========================================================================

    def sign_url(self, info: BlobInfo, duration: timedelta, *options: SignUrlOption) -> str:
        """Create a V2 signed URL granting access to a blob for ``duration``.

        Args:
            info: The blob; its md5 and content type are signed when the
                matching options are given
            duration: How long the URL stays valid, from the client clock
            *options: Sign URL options

        Returns:
            The signed URL

        Raises:
            ConfigurationError: If no service account is available to sign with
            ValueError: If a signed header has no value in ``info``
        """
        params: dict[Any, Any] = options_to_map(options)
        credentials = params.get(SignUrlKey.SERVICE_ACCOUNT) or self._signing_credentials()
        method: HttpMethod = params.get(SignUrlKey.HTTP_METHOD, HttpMethod.GET)
        expiration = (self.config.clock() + int(duration.total_seconds() * 1000)) // 1000

        md5 = ""
        if params.get(SignUrlKey.MD5):
            if info.md5 is None:
                raise ValueError("Blob is missing a value for md5")
            md5 = info.md5
        content_type = ""
        if params.get(SignUrlKey.CONTENT_TYPE):
            if info.content_type is None:
                raise ValueError("Blob is missing a value for content type")
            content_type = info.content_type

        path = f"/{info.bucket.strip('/')}/{quote(info.name.lstrip('/'), safe='/~')}"
        string_to_sign = "\n".join([method.value, md5, content_type, str(expiration), path])
        signature = base64_signature(credentials.sign(string_to_sign.encode("utf-8")))
        return (
            f"{DEFAULT_STORAGE_HOST}{path}?GoogleAccessId={quote(credentials.account, safe='@')}"
            f"&Expires={expiration}&Signature={signature}"
        )

    def _signing_credentials(self) -> ServiceAccountCredentials:
        if self.config.credentials is None:
            if not self.config.service_file:
                raise ConfigurationError(
                    "Signing URLs requires service account credentials. "
                    "Set StorageConfig.credentials or pass SignUrlOption.service_account()"
                )
            self.config.credentials = ServiceAccountCredentials.from_service_account_file(self.config.service_file)
        return self.config.credentials


def base64_signature(signature: bytes) -> str:
    """URL-encoded base64 of a raw signature."""
    return quote(base64.b64encode(signature).decode("ascii"), safe="")


def _result(
    outcomes: dict[BlobId, tuple[Any, ServiceError | None]],
    blob_id: BlobId,
    transform: Callable[[Any], T],
    *,
    missing_ok: bool = False,
) -> Result[T]:
    outcome = outcomes.get(blob_id)
    if outcome is None:
        return Result(error=StorageError(f"No batch response for {blob_id}", retryable=False))
    value, error = outcome
    if error is not None:
        if missing_ok and error.code == 404:
            return Result(None)
        return Result(error=error)
    return Result(transform(value) if value is not None else None)
