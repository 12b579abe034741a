"""Tests for storage option families."""

from __future__ import annotations

import pytest

from gcloud_clients.storage import (
    BlobField,
    BlobListOption,
    BlobSourceOption,
    BlobTargetOption,
    BlobWriteOption,
    BucketField,
    BucketListOption,
    BucketSourceOption,
    HttpMethod,
    PredefinedAcl,
    RpcOption,
    SignUrlOption,
)
from gcloud_clients.storage.options import SignUrlKey, as_source_key

pytestmark = pytest.mark.unit


@pytest.mark.unit
class TestStorageOptions:
    """Test the wire keys and values produced by option factories."""

    def test_predefined_acl_accepts_strings(self) -> None:
        assert BlobTargetOption.predefined_acl("projectPrivate").value == PredefinedAcl.PROJECT_PRIVATE.value

    def test_does_not_exist(self) -> None:
        assert BlobTargetOption.does_not_exist() == BlobTargetOption(RpcOption.IF_GENERATION_MATCH, 0)

    def test_value_less_preconditions(self) -> None:
        assert BlobTargetOption.generation_match().value is None
        assert BlobTargetOption.metageneration_not_match().rpc_option is RpcOption.IF_METAGENERATION_NOT_MATCH
        assert BlobSourceOption.generation_not_match().value is None

    def test_write_hash_options(self) -> None:
        assert BlobWriteOption.md5_match() == BlobWriteOption(RpcOption.IF_MD5_MATCH, True)
        assert BlobWriteOption.crc32c_match() == BlobWriteOption(RpcOption.IF_CRC32C_MATCH, True)

    def test_bucket_source_preconditions(self) -> None:
        assert BucketSourceOption.metageneration_match(4).value == 4

    def test_bucket_list_fields(self) -> None:
        option = BucketListOption.fields(BucketField.LOCATION, BucketField.NAME)

        assert option.value == "nextPageToken,items(name,location)"

    def test_blob_list_fields_keep_prefixes(self) -> None:
        option = BlobListOption.fields(BlobField.SIZE)

        assert option.value == "prefixes,nextPageToken,items(bucket,name,size)"

    def test_current_directory(self) -> None:
        assert BlobListOption.current_directory() == BlobListOption(RpcOption.DELIMITER, "/")

    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            (RpcOption.IF_GENERATION_MATCH, RpcOption.IF_SOURCE_GENERATION_MATCH),
            (RpcOption.IF_GENERATION_NOT_MATCH, RpcOption.IF_SOURCE_GENERATION_NOT_MATCH),
            (RpcOption.IF_METAGENERATION_MATCH, RpcOption.IF_SOURCE_METAGENERATION_MATCH),
            (RpcOption.IF_METAGENERATION_NOT_MATCH, RpcOption.IF_SOURCE_METAGENERATION_NOT_MATCH),
            (RpcOption.FIELDS, RpcOption.FIELDS),
        ],
    )
    def test_as_source_key(self, key: RpcOption, expected: RpcOption) -> None:
        assert as_source_key(key) is expected

    def test_sign_url_http_method(self) -> None:
        assert SignUrlOption.http_method("PUT") == SignUrlOption(SignUrlKey.HTTP_METHOD, HttpMethod.PUT)

    def test_invalid_http_method(self) -> None:
        with pytest.raises(ValueError):
            SignUrlOption.http_method("PATCH")
