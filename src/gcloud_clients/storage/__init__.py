"""Cloud Storage client."""

from __future__ import annotations

from gcloud_clients.storage.batch import BatchRequest, BatchResponse, Result
from gcloud_clients.storage.blob import Blob, BlobId, BlobInfo
from gcloud_clients.storage.bucket import Bucket, BucketInfo
from gcloud_clients.storage.channels import BlobReader, BlobWriter
from gcloud_clients.storage.client import StorageClient, StorageConfig
from gcloud_clients.storage.compose import ComposeRequest
from gcloud_clients.storage.copy import CopyRequest, CopyWriter
from gcloud_clients.storage.options import (
    BlobField,
    BlobGetOption,
    BlobListOption,
    BlobSourceOption,
    BlobTargetOption,
    BlobWriteOption,
    BucketField,
    BucketGetOption,
    BucketListOption,
    BucketSourceOption,
    BucketTargetOption,
    HttpMethod,
    PredefinedAcl,
    SignUrlOption,
)
from gcloud_clients.storage.rpc import RpcOption, StorageRpc
from gcloud_clients.storage.signing import ServiceAccountCredentials

__all__ = (
    # Client
    "StorageClient",
    "StorageConfig",
    "StorageRpc",
    "RpcOption",
    "ServiceAccountCredentials",
    # Model
    "Blob",
    "BlobId",
    "BlobInfo",
    "Bucket",
    "BucketInfo",
    # Requests
    "BatchRequest",
    "BatchResponse",
    "ComposeRequest",
    "CopyRequest",
    "CopyWriter",
    "Result",
    # Channels
    "BlobReader",
    "BlobWriter",
    # Options
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
