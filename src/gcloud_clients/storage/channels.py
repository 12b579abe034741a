"""Chunked readers and writers for blob content."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gcloud_clients.exceptions import StorageError

if TYPE_CHECKING:
    from types import TracebackType

    from gcloud_clients.storage.blob import BlobId, BlobInfo
    from gcloud_clients.storage.client import StorageClient
    from gcloud_clients.storage.rpc import RpcOptions

__all__ = ("BlobReader", "BlobWriter", "ReaderState", "WriterState")

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 2 * 1024 * 1024
MIN_CHUNK_SIZE = 256 * 1024


@dataclass(frozen=True)
class ReaderState:
    """Snapshot of a ``BlobReader``."""

    blob: BlobId
    options: RpcOptions
    position: int
    is_open: bool
    last_etag: str | None
    chunk_size: int


class BlobReader:
    """Reads blob content in chunks of ``chunk_size`` bytes.

    Creating a reader issues no request. Each fetch reads the next range of the
    blob; if the blob etag changes between two fetches the read fails, since
    the chunks would belong to different versions.

    Example::

        async with client.reader("bucket", "name") as reader:
            header = await reader.read(16)
            rest = await reader.read()
    """

    def __init__(
        self,
        client: StorageClient,
        blob: BlobId,
        options: RpcOptions,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._client = client
        self._blob = blob
        self._options = options
        self._chunk_size = chunk_size
        self._position = 0
        self._buffer = b""
        self._last_etag: str | None = None
        self._end_of_stream = False
        self._is_open = True

    @property
    def is_open(self) -> bool:
        return self._is_open

    def set_chunk_size(self, chunk_size: int) -> None:
        if chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        self._chunk_size = chunk_size

    def tell(self) -> int:
        """Offset of the next byte ``read`` returns."""
        return self._position - len(self._buffer)

    def seek(self, position: int) -> None:
        """Move to ``position``, discarding buffered content."""
        self._check_open()
        if position < 0:
            raise ValueError("Position must be non-negative")
        self._position = position
        self._buffer = b""
        self._end_of_stream = False

    async def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes, or everything left when ``size`` is negative.

        Returns:
            The bytes read; empty once the end of the blob is reached

        Raises:
            StorageError: If a fetch fails or the blob changed while reading
        """
        self._check_open()
        while (size < 0 or len(self._buffer) < size) and not self._end_of_stream:
            await self._fetch()
        if size < 0:
            size = len(self._buffer)
        data, self._buffer = self._buffer[:size], self._buffer[size:]
        return data

    async def _fetch(self) -> None:
        obj = self._blob.to_dict()
        position = self._position
        etag, chunk = await self._client.call(
            lambda: self._client.rpc.read(obj, self._options, position, self._chunk_size)
        )
        if self._last_etag is not None and etag != self._last_etag:
            raise StorageError(f"Blob {self._blob} was updated while reading", retryable=False)
        self._last_etag = etag
        self._position += len(chunk)
        self._buffer += chunk
        if len(chunk) < self._chunk_size:
            self._end_of_stream = True
        logger.debug("Read %d bytes of %s at offset %d", len(chunk), self._blob, position)

    def close(self) -> None:
        self._is_open = False
        self._buffer = b""

    def _check_open(self) -> None:
        if not self._is_open:
            raise ValueError("I/O operation on a closed reader")

    def capture(self) -> ReaderState:
        """Snapshot the read position; buffered bytes are re-read after ``restore``."""
        return ReaderState(
            blob=self._blob,
            options=self._options,
            position=self.tell(),
            is_open=self._is_open,
            last_etag=self._last_etag,
            chunk_size=self._chunk_size,
        )

    @classmethod
    def restore(cls, client: StorageClient, state: ReaderState) -> BlobReader:
        reader = cls(client, state.blob, state.options, state.chunk_size)
        reader._position = state.position
        reader._last_etag = state.last_etag
        reader._is_open = state.is_open
        return reader

    async def __aenter__(self) -> BlobReader:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


@dataclass(frozen=True)
class WriterState:
    """Snapshot of a ``BlobWriter``, including bytes not yet sent."""

    blob: BlobInfo
    upload_id: str
    position: int
    buffer: bytes
    is_open: bool
    chunk_size: int


class BlobWriter:
    """Uploads blob content through a resumable upload session.

    Data is buffered and sent in whole chunks; the remainder is sent with the
    final request when the writer is closed. The blob is only created once
    ``close`` completes.
    """

    def __init__(
        self,
        client: StorageClient,
        blob: BlobInfo,
        upload_id: str,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._client = client
        self._blob = blob
        self._upload_id = upload_id
        self._chunk_size = _round_chunk_size(chunk_size)
        self._position = 0
        self._buffer = b""
        self._is_open = True

    @classmethod
    async def open(
        cls,
        client: StorageClient,
        blob: BlobInfo,
        options: RpcOptions,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> BlobWriter:
        """Start an upload session for ``blob``."""
        obj = blob.to_dict()
        upload_id = await client.call(lambda: client.rpc.open_upload(obj, options))
        logger.debug("Opened upload %s for %s", upload_id, blob.blob_id)
        return cls(client, blob, upload_id, chunk_size)

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def upload_id(self) -> str:
        return self._upload_id

    def set_chunk_size(self, chunk_size: int) -> None:
        """Set the upload chunk size, rounded up to a multiple of 256 KiB."""
        self._chunk_size = _round_chunk_size(chunk_size)

    async def write(self, data: bytes) -> int:
        """Buffer ``data``, sending every complete chunk.

        Returns:
            Number of bytes accepted
        """
        self._check_open()
        self._buffer += data
        if len(self._buffer) >= self._chunk_size:
            await self._flush(len(self._buffer) - len(self._buffer) % self._chunk_size, last=False)
        return len(data)

    async def _flush(self, length: int, *, last: bool) -> None:
        chunk = self._buffer[:length]
        position = self._position
        await self._client.call(lambda: self._client.rpc.write(self._upload_id, chunk, position, last))
        self._position += length
        self._buffer = self._buffer[length:]

    async def close(self) -> None:
        """Send buffered bytes and finalize the upload; a no-op when already closed."""
        if not self._is_open:
            return
        await self._flush(len(self._buffer), last=True)
        self._is_open = False
        logger.debug("Finished upload %s (%d bytes)", self._upload_id, self._position)

    def _check_open(self) -> None:
        if not self._is_open:
            raise ValueError("I/O operation on a closed writer")

    def capture(self) -> WriterState:
        return WriterState(
            blob=self._blob,
            upload_id=self._upload_id,
            position=self._position,
            buffer=self._buffer,
            is_open=self._is_open,
            chunk_size=self._chunk_size,
        )

    @classmethod
    def restore(cls, client: StorageClient, state: WriterState) -> BlobWriter:
        writer = cls(client, state.blob, state.upload_id, state.chunk_size)
        writer._position = state.position
        writer._buffer = state.buffer
        writer._is_open = state.is_open
        return writer

    async def __aenter__(self) -> BlobWriter:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            await self.close()
        else:
            self._is_open = False


def _round_chunk_size(chunk_size: int) -> int:
    chunk_size = max(chunk_size, MIN_CHUNK_SIZE)
    return -(-chunk_size // MIN_CHUNK_SIZE) * MIN_CHUNK_SIZE
