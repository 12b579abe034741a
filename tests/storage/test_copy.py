"""Tests for copy requests and the rewrite-driving CopyWriter."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from gcloud_clients.exceptions import StorageError
from gcloud_clients.storage import BlobId, BlobInfo, BlobSourceOption, CopyRequest, CopyWriter, StorageClient
from gcloud_clients.storage.rpc import RewriteRequest, RewriteResponse

pytestmark = pytest.mark.unit

REQUEST = RewriteRequest(
    source={"bucket": "b", "name": "src"},
    source_options={},
    override_info=False,
    target={"bucket": "b", "name": "dst"},
    target_options={},
)
TARGET = {"bucket": "b", "name": "dst", "generation": "11", "size": "42"}


def _response(copied: int, *, done: bool = False, token: str | None = "token") -> RewriteResponse:
    return RewriteResponse(REQUEST, TARGET if done else None, 42, done, None if done else token, copied)


@pytest.mark.unit
class TestCopyRequest:
    """Test building copy requests."""

    def test_of_with_target_name(self) -> None:
        request = CopyRequest.of(BlobId("b", "src"), "dst")

        assert request.source == BlobId("b", "src")
        assert request.target == BlobInfo(bucket="b", name="dst")
        assert request.override_info is False

    def test_of_with_bucket_and_name(self) -> None:
        request = CopyRequest.of("b", BlobId("other", "dst"), "src")

        assert request.source == BlobId("b", "src")
        assert request.target.blob_id == BlobId("other", "dst")

    def test_of_with_info_overrides_metadata(self) -> None:
        target = BlobInfo(bucket="b", name="dst", content_type="text/plain")

        request = CopyRequest.of(BlobId("b", "src"), target)

        assert request.target is target
        assert request.override_info is True

    def test_builder_collects_options(self) -> None:
        request = (
            CopyRequest.builder()
            .source("b", "src")
            .source_options(BlobSourceOption.generation_match(1))
            .source_options(BlobSourceOption.metageneration_match(2))
            .target(BlobId("b", "dst"))
            .build()
        )

        assert request.source_options == (
            BlobSourceOption.generation_match(1),
            BlobSourceOption.metageneration_match(2),
        )
        assert request.megabytes_copied_per_chunk is None

    def test_builder_requires_source_and_target(self) -> None:
        with pytest.raises(ValueError, match="target"):
            CopyRequest.builder().source(BlobId("b", "src")).build()
        with pytest.raises(ValueError, match="source"):
            CopyRequest.builder().target(BlobId("b", "dst")).build()


@pytest.mark.unit
class TestCopyWriter:
    """Test driving a rewrite to completion."""

    async def test_progress_and_result(self, storage_client: StorageClient, storage_rpc: AsyncMock) -> None:
        """
        Test a rewrite that needs two more calls.

        Verifies:
        - Each chunk continues from the previous response
        - Progress is reported after every call
        - The result is the target blob bound to the client
        """
        first = _response(14)
        second = _response(28)
        storage_rpc.continue_rewrite.side_effect = [second, _response(42, done=True)]
        writer = CopyWriter(storage_client, first)

        assert writer.source == BlobId("b", "src")
        assert writer.blob_size == 42
        await writer.copy_chunk()
        assert writer.total_bytes_copied == 28
        assert writer.is_done is False

        blob = await writer.result()

        assert writer.is_done is True
        assert writer.total_bytes_copied == 42
        assert blob.blob_id == BlobId("b", "dst", 11)
        assert blob.client is storage_client
        assert [call.args[0] for call in storage_rpc.continue_rewrite.await_args_list] == [first, second]

    async def test_copy_chunk_when_done(self, storage_client: StorageClient, storage_rpc: AsyncMock) -> None:
        writer = CopyWriter(storage_client, _response(42, done=True))

        await writer.copy_chunk()

        storage_rpc.continue_rewrite.assert_not_called()

    async def test_continuation_retried(self, storage_client: StorageClient, storage_rpc: AsyncMock) -> None:
        storage_rpc.continue_rewrite.side_effect = [StorageError("busy", code=503), _response(42, done=True)]

        blob = await CopyWriter(storage_client, _response(0)).result()

        assert blob.name == "dst"
        assert storage_rpc.continue_rewrite.await_count == 2

    async def test_done_without_result(self, storage_client: StorageClient) -> None:
        response = RewriteResponse(REQUEST, None, 42, True, None, 42)

        with pytest.raises(StorageError, match="without a result"):
            await CopyWriter(storage_client, response).result()

    async def test_capture_and_restore(self, storage_client: StorageClient, storage_rpc: AsyncMock) -> None:
        state = CopyWriter(storage_client, _response(21, token="resume-here")).capture()

        assert state.rewrite_token == "resume-here"
        assert state.total_bytes_copied == 21
        assert state.is_done is False

        storage_rpc.continue_rewrite.return_value = _response(42, done=True)
        restored = CopyWriter.restore(storage_client, state)
        await restored.copy_chunk()

        previous = storage_rpc.continue_rewrite.await_args.args[0]
        assert previous.rewrite_token == "resume-here"
        assert previous.rewrite_request == REQUEST
        assert restored.is_done is True
