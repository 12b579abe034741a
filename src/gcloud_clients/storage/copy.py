"""Server-side copy requests and the writer driving a rewrite to completion.

A rewrite may need several calls for large objects or when the object is
copied across locations or storage classes. ``StorageClient.copy`` issues the
first call and returns a ``CopyWriter``; every ``copy_chunk`` continues the
rewrite with the token returned by the previous call until the service
reports it done.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gcloud_clients.exceptions import StorageError
from gcloud_clients.storage.blob import Blob, BlobId, BlobInfo
from gcloud_clients.storage.rpc import RewriteRequest, RewriteResponse

if TYPE_CHECKING:
    from gcloud_clients.storage.client import StorageClient
    from gcloud_clients.storage.options import BlobSourceOption, BlobTargetOption
    from gcloud_clients.storage.rpc import RpcOptions, StorageObject

__all__ = ("CopyRequest", "CopyState", "CopyWriter")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CopyRequest:
    """A request to copy a blob into a target blob.

    Attributes:
        source: The blob to copy
        source_options: Preconditions on the source blob
        target: Target blob. When ``override_info`` is False only its
            identity is used and the source metadata is kept.
        override_info: Whether ``target`` metadata replaces the source metadata
        target_options: Options applied to the target blob
        megabytes_copied_per_chunk: Amount of data the service copies per
            call, None to let the service decide
    """

    source: BlobId
    target: BlobInfo
    source_options: tuple[BlobSourceOption, ...] = ()
    override_info: bool = False
    target_options: tuple[BlobTargetOption, ...] = ()
    megabytes_copied_per_chunk: int | None = None

    @classmethod
    def of(cls, source: BlobId | str, target: BlobId | BlobInfo | str, source_name: str | None = None) -> CopyRequest:
        """Copy ``source`` into ``target``.

        Args:
            source: Source BlobId, or source bucket name with ``source_name``
            target: A BlobId or blob name (in the source bucket) keeps the
                source metadata; a BlobInfo replaces it
            source_name: Source blob name when ``source`` is a bucket name

        Returns:
            CopyRequest
        """
        builder = cls.builder().source(source, source_name)
        source_id = builder.source_id
        if isinstance(target, str):
            target = BlobId(source_id.bucket, target)
        return builder.target(target).build()

    @classmethod
    def builder(cls) -> CopyRequestBuilder:
        return CopyRequestBuilder()


class CopyRequestBuilder:
    """Mutable builder for ``CopyRequest``."""

    def __init__(self) -> None:
        self._source: BlobId | None = None
        self._source_options: list[BlobSourceOption] = []
        self._target: BlobInfo | None = None
        self._override_info = False
        self._target_options: list[BlobTargetOption] = []
        self._megabytes: int | None = None

    @property
    def source_id(self) -> BlobId:
        if self._source is None:
            raise ValueError("Copy source is required")
        return self._source

    def source(self, source: BlobId | str, name: str | None = None) -> CopyRequestBuilder:
        self._source = source if isinstance(source, BlobId) else BlobId(source, name)  # type: ignore[arg-type]
        return self

    def source_options(self, *options: BlobSourceOption) -> CopyRequestBuilder:
        self._source_options.extend(options)
        return self

    def target(self, target: BlobId | BlobInfo, *options: BlobTargetOption) -> CopyRequestBuilder:
        """Set the copy target.

        A BlobId copies the source metadata, a BlobInfo overrides it.
        """
        if isinstance(target, BlobId):
            self._target = BlobInfo.of(target)
            self._override_info = False
        else:
            self._target = target
            self._override_info = True
        self._target_options.extend(options)
        return self

    def target_options(self, *options: BlobTargetOption) -> CopyRequestBuilder:
        self._target_options.extend(options)
        return self

    def megabytes_copied_per_chunk(self, megabytes: int) -> CopyRequestBuilder:
        self._megabytes = megabytes
        return self

    def build(self) -> CopyRequest:
        if self._target is None:
            raise ValueError("Copy target is required")
        return CopyRequest(
            source=self.source_id,
            target=self._target,
            source_options=tuple(self._source_options),
            override_info=self._override_info,
            target_options=tuple(self._target_options),
            megabytes_copied_per_chunk=self._megabytes,
        )


@dataclass(frozen=True)
class CopyState:
    """Snapshot of a rewrite, enough to resume it from another client."""

    source: StorageObject
    source_options: RpcOptions
    override_info: bool
    target: StorageObject
    target_options: RpcOptions
    megabytes_copied_per_chunk: int | None
    blob_size: int
    is_done: bool
    rewrite_token: str | None
    total_bytes_copied: int
    result: StorageObject | None = field(default=None)


class CopyWriter:
    """Tracks a rewrite and continues it until the copy is complete.

    Example::

        writer = await client.copy(CopyRequest.of(BlobId("b", "src"), "dst"))
        blob = await writer.result()
    """

    def __init__(self, client: StorageClient, response: RewriteResponse) -> None:
        self._client = client
        self._response = response

    @property
    def source(self) -> BlobId:
        return BlobId.from_dict(self._response.rewrite_request.source)

    @property
    def blob_size(self) -> int:
        return self._response.blob_size

    @property
    def total_bytes_copied(self) -> int:
        return self._response.total_bytes_rewritten

    @property
    def is_done(self) -> bool:
        return self._response.is_done

    async def copy_chunk(self) -> None:
        """Continue the rewrite with one call; a no-op once done."""
        if self.is_done:
            return
        previous = self._response
        self._response = await self._client.call(lambda: self._client.rpc.continue_rewrite(previous))
        logger.debug(
            "Copied %d of %d bytes from %s",
            self.total_bytes_copied,
            self.blob_size,
            self.source,
        )

    async def result(self) -> Blob:
        """Drive the rewrite to completion.

        Returns:
            The target blob as stored by the service

        Raises:
            StorageError: If a call fails or the service reports completion
                without a result
        """
        while not self.is_done:
            await self.copy_chunk()
        if self._response.result is None:
            raise StorageError(f"Copy of {self.source} completed without a result", retryable=False)
        return Blob.from_dict(self._response.result, client=self._client)

    def capture(self) -> CopyState:
        request = self._response.rewrite_request
        return CopyState(
            source=request.source,
            source_options=request.source_options,
            override_info=request.override_info,
            target=request.target,
            target_options=request.target_options,
            megabytes_copied_per_chunk=request.megabytes_rewritten_per_call,
            blob_size=self.blob_size,
            is_done=self.is_done,
            rewrite_token=self._response.rewrite_token,
            total_bytes_copied=self.total_bytes_copied,
            result=self._response.result,
        )

    @classmethod
    def restore(cls, client: StorageClient, state: CopyState) -> CopyWriter:
        """Rebuild a writer from ``capture()`` output."""
        request = RewriteRequest(
            source=state.source,
            source_options=state.source_options,
            override_info=state.override_info,
            target=state.target,
            target_options=state.target_options,
            megabytes_rewritten_per_call=state.megabytes_copied_per_chunk,
        )
        response = RewriteResponse(
            rewrite_request=request,
            result=state.result,
            blob_size=state.blob_size,
            is_done=state.is_done,
            rewrite_token=state.rewrite_token,
            total_bytes_rewritten=state.total_bytes_copied,
        )
        return cls(client, response)
