"""Tests for blob and bucket metadata and their client-bound variants."""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from gcloud_clients.storage import (
    Blob,
    BlobId,
    BlobInfo,
    BlobListOption,
    Bucket,
    BucketInfo,
    RpcOption,
    ServiceAccountCredentials,
    StorageClient,
    StorageConfig,
)
from gcloud_clients.storage.rpc import RewriteResponse

pytestmark = pytest.mark.unit


@pytest.mark.unit
class TestBlobId:
    def test_str(self) -> None:
        assert str(BlobId("b", "dir/n")) == "gs://b/dir/n"
        assert str(BlobId("b", "n", 3)) == "gs://b/n#3"

    def test_requires_bucket_and_name(self) -> None:
        with pytest.raises(ValueError, match="bucket"):
            BlobId("", "n")
        with pytest.raises(ValueError, match="name"):
            BlobId("b", "")

    def test_from_dict(self) -> None:
        assert BlobId.from_dict({"bucket": "b", "name": "n", "generation": "12"}) == BlobId("b", "n", 12)

    def test_hashable(self) -> None:
        assert {BlobId("b", "n"): 1}[BlobId("b", "n")] == 1


@pytest.mark.unit
class TestBlobInfo:
    """Test blob metadata conversion."""

    def test_from_dict(self) -> None:
        info = BlobInfo.from_dict(
            {
                "bucket": "b",
                "name": "n",
                "generation": "1452776218153000",
                "size": "1024",
                "contentType": "image/png",
                "metadata": {"k": "v"},
                "updated": "2016-01-14T12:56:58.153Z",
            }
        )

        assert info.generation == 1452776218153000
        assert info.size == 1024
        assert info.content_type == "image/png"
        assert info.metadata == {"k": "v"}
        assert info.update_time == datetime(2016, 1, 14, 12, 56, 58, 153000, tzinfo=timezone.utc)

    def test_immutable(self) -> None:
        info = BlobInfo(bucket="b", name="n")

        with pytest.raises(FrozenInstanceError):
            info.name = "other"  # type: ignore[misc]

    def test_replace(self) -> None:
        info = BlobInfo.of("b", "n", content_type="text/plain")

        updated = info.replace(content_type="text/csv")

        assert updated.content_type == "text/csv"
        assert info.content_type == "text/plain"

    def test_of_blob_id(self) -> None:
        assert BlobInfo.of(BlobId("b", "n", 4)).blob_id == BlobId("b", "n", 4)

    def test_requires_name(self) -> None:
        with pytest.raises(ValueError):
            BlobInfo(bucket="b", name="")


@pytest.mark.unit
class TestBlob:
    """Test client-bound blobs."""

    @pytest.fixture
    def blob(self, storage_client: StorageClient) -> Blob:
        return Blob.from_dict({"bucket": "b", "name": "n", "generation": "3", "metageneration": "1"}, client=storage_client)

    def test_info_strips_client(self, blob: Blob) -> None:
        info = blob.info()

        assert type(info) is BlobInfo
        assert info.blob_id == blob.blob_id

    def test_equality_ignores_client(self, blob: Blob) -> None:
        assert blob == Blob.from_info(AsyncMock(), blob.info())

    async def test_unbound_blob(self) -> None:
        blob = Blob(bucket="b", name="n")

        with pytest.raises(RuntimeError, match="not bound"):
            await blob.delete()

    async def test_exists(self, blob: Blob, storage_rpc: AsyncMock) -> None:
        storage_rpc.get_object.return_value = {"bucket": "b", "name": "n"}

        assert await blob.exists() is True
        storage_rpc.get_object.assert_awaited_once_with(
            {"bucket": "b", "name": "n", "generation": 3},
            {RpcOption.FIELDS: "bucket,name"},
        )

    async def test_content(self, blob: Blob, storage_rpc: AsyncMock) -> None:
        storage_rpc.load.return_value = b"abc"

        assert await blob.content() == b"abc"

    async def test_update_sends_metadata(self, blob: Blob, storage_rpc: AsyncMock) -> None:
        storage_rpc.patch_object.return_value = {"bucket": "b", "name": "n", "contentType": "text/plain"}

        updated = await blob.replace(content_type="text/plain").update()

        assert storage_rpc.patch_object.await_args.args[0]["contentType"] == "text/plain"
        assert updated.content_type == "text/plain"

    async def test_copy_to(self, blob: Blob, storage_rpc: AsyncMock) -> None:
        async def open_rewrite(request):
            return RewriteResponse(request, {"bucket": "other", "name": "n"}, 0, True, None, 0)

        storage_rpc.open_rewrite.side_effect = open_rewrite

        writer = await blob.copy_to("other")
        copied = await writer.result()

        request = storage_rpc.open_rewrite.await_args.args[0]
        assert request.target == {"bucket": "other", "name": "n"}
        assert copied.bucket == "other"

    def test_sign_url(self, blob: Blob, storage_config: StorageConfig, credentials: ServiceAccountCredentials) -> None:
        storage_config.credentials = credentials

        assert blob.sign_url(timedelta(minutes=1)).startswith("https://storage.googleapis.com/b/n?")


@pytest.mark.unit
class TestBucket:
    """Test bucket metadata and client-bound buckets."""

    def test_from_dict_nested_fields(self) -> None:
        info = BucketInfo.from_dict(
            {
                "name": "b",
                "website": {"mainPageSuffix": "index.html", "notFoundPage": "404.html"},
                "versioning": {"enabled": True},
            }
        )

        assert info.index_page == "index.html"
        assert info.not_found_page == "404.html"
        assert info.versioning_enabled is True
        assert info.to_dict() == {
            "name": "b",
            "website": {"mainPageSuffix": "index.html", "notFoundPage": "404.html"},
            "versioning": {"enabled": True},
        }

    def test_requires_name(self) -> None:
        with pytest.raises(ValueError):
            BucketInfo(name="")

    async def test_create_blob(self, storage_client: StorageClient, storage_rpc: AsyncMock) -> None:
        storage_rpc.create_object.return_value = {"bucket": "b", "name": "n", "contentType": "text/plain"}
        bucket = Bucket.from_info(storage_client, BucketInfo(name="b"))

        blob = await bucket.create("n", b"hi", "text/plain")

        obj = storage_rpc.create_object.await_args.args[0]
        assert obj["bucket"] == "b"
        assert obj["contentType"] == "text/plain"
        assert blob.client is storage_client

    async def test_iterate(self, storage_client: StorageClient, storage_rpc: AsyncMock) -> None:
        storage_rpc.list_objects.side_effect = [
            ("t", [{"bucket": "b", "name": "a"}]),
            (None, [{"bucket": "b", "name": "c"}]),
        ]
        bucket = Bucket.from_info(storage_client, BucketInfo(name="b"))

        names = [blob.name async for blob in bucket.iterate(BlobListOption.versions(True))]

        assert names == ["a", "c"]
        assert storage_rpc.list_objects.await_args_list[0].args == ("b", {RpcOption.VERSIONS: True})

    async def test_get_many(self, storage_client: StorageClient, storage_rpc: AsyncMock) -> None:
        from gcloud_clients.storage.rpc import RpcBatchResponse

        storage_rpc.batch.return_value = RpcBatchResponse(gets={BlobId("b", "x"): ({"bucket": "b", "name": "x"}, None)})
        bucket = Bucket.from_info(storage_client, BucketInfo(name="b"))

        blobs = await bucket.get_many("x", "y")

        assert [blob.name if blob else None for blob in blobs] == ["x", None]

    async def test_exists_missing(self, storage_client: StorageClient, storage_rpc: AsyncMock) -> None:
        storage_rpc.get_bucket.return_value = None
        bucket = Bucket.from_info(storage_client, BucketInfo(name="b"))

        assert await bucket.exists() is False
