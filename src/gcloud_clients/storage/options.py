"""Option families accepted by the storage client."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from gcloud_clients.options import FieldEnum, Option, list_selector, selector
from gcloud_clients.storage.rpc import RpcOption

if TYPE_CHECKING:
    from gcloud_clients.storage.signing import ServiceAccountCredentials

__all__ = (
    "BlobField",
    "BlobGetOption",
    "BlobListOption",
    "BlobSourceOption",
    "BlobTargetOption",
    "BlobWriteOption",
    "BucketField",
    "BucketGetOption",
    "BucketListOption",
    "BucketSourceOption",
    "BucketTargetOption",
    "HttpMethod",
    "PredefinedAcl",
    "SignUrlOption",
)

BUCKET_REQUIRED_FIELDS = ("name",)
BLOB_REQUIRED_FIELDS = ("bucket", "name")

GENERATION_KEYS = frozenset({RpcOption.IF_GENERATION_MATCH, RpcOption.IF_GENERATION_NOT_MATCH})
METAGENERATION_KEYS = frozenset({RpcOption.IF_METAGENERATION_MATCH, RpcOption.IF_METAGENERATION_NOT_MATCH})

_SOURCE_KEYS = {
    RpcOption.IF_GENERATION_MATCH: RpcOption.IF_SOURCE_GENERATION_MATCH,
    RpcOption.IF_GENERATION_NOT_MATCH: RpcOption.IF_SOURCE_GENERATION_NOT_MATCH,
    RpcOption.IF_METAGENERATION_MATCH: RpcOption.IF_SOURCE_METAGENERATION_MATCH,
    RpcOption.IF_METAGENERATION_NOT_MATCH: RpcOption.IF_SOURCE_METAGENERATION_NOT_MATCH,
}


def as_source_key(key: RpcOption) -> RpcOption:
    """Map a precondition key to its ``ifSource*`` counterpart used by copy requests."""
    return _SOURCE_KEYS.get(key, key)


class PredefinedAcl(str, Enum):
    """Canned ACLs applied on create or update."""

    AUTHENTICATED_READ = "authenticatedRead"
    ALL_AUTHENTICATED_USERS = "allAuthenticatedUsers"
    PRIVATE = "private"
    PROJECT_PRIVATE = "projectPrivate"
    PUBLIC_READ = "publicRead"
    PUBLIC_READ_WRITE = "publicReadWrite"
    BUCKET_OWNER_READ = "bucketOwnerRead"
    BUCKET_OWNER_FULL_CONTROL = "bucketOwnerFullControl"


class HttpMethod(str, Enum):
    GET = "GET"
    HEAD = "HEAD"
    PUT = "PUT"
    POST = "POST"
    DELETE = "DELETE"


class BucketField(FieldEnum):
    """Bucket fields that can be requested with ``fields`` options."""

    ID = "id"
    SELF_LINK = "selfLink"
    NAME = "name"
    TIME_CREATED = "timeCreated"
    METAGENERATION = "metageneration"
    ACL = "acl"
    DEFAULT_OBJECT_ACL = "defaultObjectAcl"
    OWNER = "owner"
    LOCATION = "location"
    WEBSITE = "website"
    VERSIONING = "versioning"
    CORS = "cors"
    STORAGE_CLASS = "storageClass"
    ETAG = "etag"


class BlobField(FieldEnum):
    """Blob fields that can be requested with ``fields`` options."""

    ACL = "acl"
    BUCKET = "bucket"
    CACHE_CONTROL = "cacheControl"
    COMPONENT_COUNT = "componentCount"
    CONTENT_DISPOSITION = "contentDisposition"
    CONTENT_ENCODING = "contentEncoding"
    CONTENT_LANGUAGE = "contentLanguage"
    CONTENT_TYPE = "contentType"
    CRC32C = "crc32c"
    ETAG = "etag"
    GENERATION = "generation"
    ID = "id"
    MD5HASH = "md5Hash"
    MEDIA_LINK = "mediaLink"
    METADATA = "metadata"
    METAGENERATION = "metageneration"
    NAME = "name"
    OWNER = "owner"
    SELF_LINK = "selfLink"
    SIZE = "size"
    STORAGE_CLASS = "storageClass"
    TIME_CREATED = "timeCreated"
    TIME_DELETED = "timeDeleted"
    UPDATED = "updated"


@dataclass(frozen=True)
class BucketTargetOption(Option):
    """Options for creating or updating a bucket."""

    @classmethod
    def predefined_acl(cls, acl: PredefinedAcl) -> BucketTargetOption:
        return cls(RpcOption.PREDEFINED_ACL, PredefinedAcl(acl).value)

    @classmethod
    def predefined_default_object_acl(cls, acl: PredefinedAcl) -> BucketTargetOption:
        return cls(RpcOption.PREDEFINED_DEFAULT_OBJECT_ACL, PredefinedAcl(acl).value)

    @classmethod
    def metageneration_match(cls) -> BucketTargetOption:
        """Require the bucket's metageneration to equal the one in the bucket info."""
        return cls(RpcOption.IF_METAGENERATION_MATCH)

    @classmethod
    def metageneration_not_match(cls) -> BucketTargetOption:
        return cls(RpcOption.IF_METAGENERATION_NOT_MATCH)


@dataclass(frozen=True)
class BucketSourceOption(Option):
    """Preconditions for reading or deleting a bucket."""

    @classmethod
    def metageneration_match(cls, metageneration: int) -> BucketSourceOption:
        return cls(RpcOption.IF_METAGENERATION_MATCH, metageneration)

    @classmethod
    def metageneration_not_match(cls, metageneration: int) -> BucketSourceOption:
        return cls(RpcOption.IF_METAGENERATION_NOT_MATCH, metageneration)


@dataclass(frozen=True)
class BucketGetOption(BucketSourceOption):
    """Options for fetching a bucket."""

    @classmethod
    def fields(cls, *fields: BucketField) -> BucketGetOption:
        """Restrict the response to ``fields``; the bucket name is always returned."""
        return cls(RpcOption.FIELDS, selector(fields, BUCKET_REQUIRED_FIELDS))


@dataclass(frozen=True)
class BucketListOption(Option):
    """Options for listing buckets."""

    @classmethod
    def page_size(cls, size: int) -> BucketListOption:
        return cls(RpcOption.MAX_RESULTS, size)

    @classmethod
    def page_token(cls, token: str) -> BucketListOption:
        return cls(RpcOption.PAGE_TOKEN, token)

    @classmethod
    def prefix(cls, prefix: str) -> BucketListOption:
        return cls(RpcOption.PREFIX, prefix)

    @classmethod
    def fields(cls, *fields: BucketField) -> BucketListOption:
        return cls(RpcOption.FIELDS, list_selector("items", fields, BUCKET_REQUIRED_FIELDS))


@dataclass(frozen=True)
class BlobTargetOption(Option):
    """Options for creating or updating a blob.

    The value-less preconditions take the generation or metageneration from
    the blob info passed with the request.
    """

    @classmethod
    def predefined_acl(cls, acl: PredefinedAcl) -> BlobTargetOption:
        return cls(RpcOption.PREDEFINED_ACL, PredefinedAcl(acl).value)

    @classmethod
    def does_not_exist(cls) -> BlobTargetOption:
        """Only succeed if no live version of the blob exists."""
        return cls(RpcOption.IF_GENERATION_MATCH, 0)

    @classmethod
    def generation_match(cls) -> BlobTargetOption:
        return cls(RpcOption.IF_GENERATION_MATCH)

    @classmethod
    def generation_not_match(cls) -> BlobTargetOption:
        return cls(RpcOption.IF_GENERATION_NOT_MATCH)

    @classmethod
    def metageneration_match(cls) -> BlobTargetOption:
        return cls(RpcOption.IF_METAGENERATION_MATCH)

    @classmethod
    def metageneration_not_match(cls) -> BlobTargetOption:
        return cls(RpcOption.IF_METAGENERATION_NOT_MATCH)


@dataclass(frozen=True)
class BlobWriteOption(BlobTargetOption):
    """Options for streamed uploads.

    ``md5_match`` and ``crc32c_match`` are not sent as parameters. They tell
    the client to keep the hashes set on the blob info so the service
    validates the uploaded content against them.
    """

    @classmethod
    def md5_match(cls) -> BlobWriteOption:
        return cls(RpcOption.IF_MD5_MATCH, True)

    @classmethod
    def crc32c_match(cls) -> BlobWriteOption:
        return cls(RpcOption.IF_CRC32C_MATCH, True)


@dataclass(frozen=True)
class BlobSourceOption(Option):
    """Preconditions on an existing blob (read, delete, copy source)."""

    @classmethod
    def generation_match(cls, generation: int | None = None) -> BlobSourceOption:
        """Require a generation; without a value it is taken from the blob id."""
        return cls(RpcOption.IF_GENERATION_MATCH, generation)

    @classmethod
    def generation_not_match(cls, generation: int | None = None) -> BlobSourceOption:
        return cls(RpcOption.IF_GENERATION_NOT_MATCH, generation)

    @classmethod
    def metageneration_match(cls, metageneration: int) -> BlobSourceOption:
        return cls(RpcOption.IF_METAGENERATION_MATCH, metageneration)

    @classmethod
    def metageneration_not_match(cls, metageneration: int) -> BlobSourceOption:
        return cls(RpcOption.IF_METAGENERATION_NOT_MATCH, metageneration)


@dataclass(frozen=True)
class BlobGetOption(BlobSourceOption):
    """Options for fetching blob metadata."""

    @classmethod
    def fields(cls, *fields: BlobField) -> BlobGetOption:
        """Restrict the response to ``fields``; bucket and name are always returned."""
        return cls(RpcOption.FIELDS, selector(fields, BLOB_REQUIRED_FIELDS))


@dataclass(frozen=True)
class BlobListOption(Option):
    """Options for listing the blobs of a bucket."""

    @classmethod
    def page_size(cls, size: int) -> BlobListOption:
        return cls(RpcOption.MAX_RESULTS, size)

    @classmethod
    def page_token(cls, token: str) -> BlobListOption:
        return cls(RpcOption.PAGE_TOKEN, token)

    @classmethod
    def prefix(cls, prefix: str) -> BlobListOption:
        return cls(RpcOption.PREFIX, prefix)

    @classmethod
    def current_directory(cls) -> BlobListOption:
        """List only the blobs directly under ``prefix``, folding deeper ones into prefixes."""
        return cls(RpcOption.DELIMITER, "/")

    @classmethod
    def versions(cls, versions: bool) -> BlobListOption:
        return cls(RpcOption.VERSIONS, versions)

    @classmethod
    def fields(cls, *fields: BlobField) -> BlobListOption:
        return cls(RpcOption.FIELDS, list_selector("items", fields, BLOB_REQUIRED_FIELDS, extra=("prefixes",)))


class SignUrlKey(str, Enum):
    HTTP_METHOD = "httpMethod"
    CONTENT_TYPE = "contentType"
    MD5 = "md5"
    SERVICE_ACCOUNT = "serviceAccount"


@dataclass(frozen=True)
class SignUrlOption(Option):
    """Options for ``StorageClient.sign_url``."""

    @classmethod
    def http_method(cls, method: HttpMethod | str) -> SignUrlOption:
        return cls(SignUrlKey.HTTP_METHOD, HttpMethod(method))

    @classmethod
    def with_content_type(cls) -> SignUrlOption:
        """Include the blob's content type in the signature; clients must send it."""
        return cls(SignUrlKey.CONTENT_TYPE, True)

    @classmethod
    def with_md5(cls) -> SignUrlOption:
        """Include the blob's MD5 in the signature; clients must send it."""
        return cls(SignUrlKey.MD5, True)

    @classmethod
    def service_account(cls, credentials: ServiceAccountCredentials) -> SignUrlOption:
        """Sign with ``credentials`` instead of the client's configured account."""
        return cls(SignUrlKey.SERVICE_ACCOUNT, credentials)
