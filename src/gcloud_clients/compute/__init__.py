"""Compute Engine client."""

from __future__ import annotations

from gcloud_clients.compute.client import ComputeClient, ComputeConfig
from gcloud_clients.compute.identities import (
    DiskId,
    DiskTypeId,
    GlobalAddressId,
    GlobalOperationId,
    ImageId,
    LicenseId,
    MachineTypeId,
    RegionAddressId,
    RegionId,
    RegionOperationId,
    ResourceId,
    SnapshotId,
    ZoneId,
    ZoneOperationId,
)
from gcloud_clients.compute.options import (
    AddressAggregatedListOption,
    AddressField,
    AddressListOption,
    AddressOption,
    DiskAggregatedListOption,
    DiskField,
    DiskListOption,
    DiskOption,
    DiskTypeAggregatedListOption,
    DiskTypeField,
    DiskTypeListOption,
    DiskTypeOption,
    ImageField,
    ImageListOption,
    ImageOption,
    LicenseField,
    LicenseOption,
    ListFilter,
    MachineTypeAggregatedListOption,
    MachineTypeField,
    MachineTypeListOption,
    MachineTypeOption,
    OperationField,
    OperationListOption,
    OperationOption,
    RegionField,
    RegionListOption,
    RegionOption,
    SnapshotField,
    SnapshotListOption,
    SnapshotOption,
    ZoneField,
    ZoneListOption,
    ZoneOption,
)
from gcloud_clients.compute.resources import (
    Address,
    DeprecationState,
    DeprecationStatus,
    Disk,
    DiskImageConfiguration,
    DiskType,
    Image,
    ImageDiskConfiguration,
    License,
    MachineType,
    Operation,
    OperationStatus,
    Region,
    Snapshot,
    SnapshotDiskConfiguration,
    StandardDiskConfiguration,
    StorageImageConfiguration,
    Zone,
)
from gcloud_clients.compute.rpc import ComputeRpc

__all__ = (
    # Client
    "ComputeClient",
    "ComputeConfig",
    "ComputeRpc",
    # Identities
    "DiskId",
    "DiskTypeId",
    "GlobalAddressId",
    "GlobalOperationId",
    "ImageId",
    "LicenseId",
    "MachineTypeId",
    "RegionAddressId",
    "RegionId",
    "RegionOperationId",
    "ResourceId",
    "SnapshotId",
    "ZoneId",
    "ZoneOperationId",
    # Resources
    "Address",
    "DeprecationState",
    "DeprecationStatus",
    "Disk",
    "DiskImageConfiguration",
    "DiskType",
    "Image",
    "ImageDiskConfiguration",
    "License",
    "MachineType",
    "Operation",
    "OperationStatus",
    "Region",
    "Snapshot",
    "SnapshotDiskConfiguration",
    "StandardDiskConfiguration",
    "StorageImageConfiguration",
    "Zone",
    # Options
    "AddressAggregatedListOption",
    "AddressField",
    "AddressListOption",
    "AddressOption",
    "DiskAggregatedListOption",
    "DiskField",
    "DiskListOption",
    "DiskOption",
    "DiskTypeAggregatedListOption",
    "DiskTypeField",
    "DiskTypeListOption",
    "DiskTypeOption",
    "ImageField",
    "ImageListOption",
    "ImageOption",
    "LicenseField",
    "LicenseOption",
    "ListFilter",
    "MachineTypeAggregatedListOption",
    "MachineTypeField",
    "MachineTypeListOption",
    "MachineTypeOption",
    "OperationField",
    "OperationListOption",
    "OperationOption",
    "RegionField",
    "RegionListOption",
    "RegionOption",
    "SnapshotField",
    "SnapshotListOption",
    "SnapshotOption",
    "ZoneField",
    "ZoneListOption",
    "ZoneOption",
)
