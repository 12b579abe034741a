"""Field selectors, filters and request options for Compute Engine calls.

Each resource has three option families: ``<Resource>Option`` for get
requests (and ``OperationOption`` for mutations), ``<Resource>ListOption``
for listings scoped to a project, region or zone, and
``<Resource>AggregatedListOption`` for listings across every zone or region.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from gcloud_clients.options import FieldEnum, Option, list_selector, selector

__all__ = (
    "AddressAggregatedListOption",
    "AddressField",
    "AddressListOption",
    "AddressOption",
    "ComputeRpcOption",
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

SELF_LINK = "selfLink"


class ComputeRpcOption(str, Enum):
    """Query parameters understood by the Compute Engine API."""

    FIELDS = "fields"
    FILTER = "filter"
    MAX_RESULTS = "maxResults"
    PAGE_TOKEN = "pageToken"


@dataclass(frozen=True)
class ListFilter:
    """A ``field eq value`` / ``field ne value`` listing filter.

    String values are regular expressions matched against the whole field.

    Example::

        DiskListOption.filter(ListFilter.equals(DiskField.SIZE_GB, 100))
    """

    field: str
    operator: str
    value: Any

    @classmethod
    def equals(cls, field: str | FieldEnum, value: Any) -> ListFilter:  # noqa: ANN401
        return cls(_field_name(field), "eq", value)

    @classmethod
    def not_equals(cls, field: str | FieldEnum, value: Any) -> ListFilter:  # noqa: ANN401
        return cls(_field_name(field), "ne", value)

    def render(self) -> str:
        value = self.value
        if isinstance(value, bool):
            value = "true" if value else "false"
        elif isinstance(value, Enum):
            value = value.value
        return f"{self.field} {self.operator} {value}"

    def __str__(self) -> str:
        return self.render()


def _field_name(field: str | FieldEnum) -> str:
    return field.selector if isinstance(field, FieldEnum) else field


# =============================================================================
# Option families
# =============================================================================


@dataclass(frozen=True)
class GetOption(Option):
    """Options for requests returning a single resource."""

    required_fields: ClassVar[tuple[str, ...]] = (SELF_LINK,)

    @classmethod
    def fields(cls, *fields: FieldEnum) -> GetOption:
        """Return only ``fields`` (identity fields are always included)."""
        return cls(ComputeRpcOption.FIELDS, selector(fields, cls.required_fields))


@dataclass(frozen=True)
class AggregatedListOption(Option):
    """Options for listings across every zone or region of a project."""

    @classmethod
    def filter(cls, list_filter: ListFilter) -> AggregatedListOption:
        return cls(ComputeRpcOption.FILTER, list_filter.render())

    @classmethod
    def page_size(cls, page_size: int) -> AggregatedListOption:
        return cls(ComputeRpcOption.MAX_RESULTS, page_size)

    @classmethod
    def page_token(cls, page_token: str) -> AggregatedListOption:
        return cls(ComputeRpcOption.PAGE_TOKEN, page_token)


@dataclass(frozen=True)
class ListOption(AggregatedListOption):
    """Options for listings scoped to a project, region or zone."""

    required_fields: ClassVar[tuple[str, ...]] = (SELF_LINK,)

    @classmethod
    def fields(cls, *fields: FieldEnum) -> ListOption:
        """Return only ``fields`` of each listed resource."""
        return cls(ComputeRpcOption.FIELDS, list_selector("items", fields, cls.required_fields))


# =============================================================================
# Field enums
# =============================================================================


class DiskTypeField(FieldEnum):
    CREATION_TIMESTAMP = "creationTimestamp"
    DEFAULT_DISK_SIZE_GB = "defaultDiskSizeGb"
    DESCRIPTION = "description"
    ID = "id"
    NAME = "name"
    SELF_LINK = "selfLink"
    VALID_DISK_SIZE = "validDiskSize"
    ZONE = "zone"
    DEPRECATED = "deprecated"


class MachineTypeField(FieldEnum):
    CREATION_TIMESTAMP = "creationTimestamp"
    DESCRIPTION = "description"
    GUEST_CPUS = "guestCpus"
    ID = "id"
    IMAGE_SPACE_GB = "imageSpaceGb"
    MAXIMUM_PERSISTENT_DISKS = "maximumPersistentDisks"
    MAXIMUM_PERSISTENT_DISKS_SIZE_GB = "maximumPersistentDisksSizeGb"
    MEMORY_MB = "memoryMb"
    NAME = "name"
    SCRATCH_DISKS = "scratchDisks"
    SELF_LINK = "selfLink"
    ZONE = "zone"
    DEPRECATED = "deprecated"


class RegionField(FieldEnum):
    CREATION_TIMESTAMP = "creationTimestamp"
    DESCRIPTION = "description"
    ID = "id"
    NAME = "name"
    QUOTAS = "quotas"
    SELF_LINK = "selfLink"
    STATUS = "status"
    ZONES = "zones"
    DEPRECATED = "deprecated"


class ZoneField(FieldEnum):
    CREATION_TIMESTAMP = "creationTimestamp"
    DESCRIPTION = "description"
    ID = "id"
    NAME = "name"
    REGION = "region"
    SELF_LINK = "selfLink"
    STATUS = "status"
    DEPRECATED = "deprecated"


class LicenseField(FieldEnum):
    CHARGES_USE_FEE = "chargesUseFee"
    NAME = "name"
    SELF_LINK = "selfLink"


class OperationField(FieldEnum):
    CLIENT_OPERATION_ID = "clientOperationId"
    CREATION_TIMESTAMP = "creationTimestamp"
    DESCRIPTION = "description"
    END_TIME = "endTime"
    ERROR = "error"
    HTTP_ERROR_MESSAGE = "httpErrorMessage"
    HTTP_ERROR_STATUS_CODE = "httpErrorStatusCode"
    ID = "id"
    INSERT_TIME = "insertTime"
    NAME = "name"
    OPERATION_TYPE = "operationType"
    PROGRESS = "progress"
    SELF_LINK = "selfLink"
    START_TIME = "startTime"
    STATUS = "status"
    STATUS_MESSAGE = "statusMessage"
    REGION = "region"
    TARGET_ID = "targetId"
    TARGET_LINK = "targetLink"
    USER = "user"
    WARNINGS = "warnings"
    ZONE = "zone"


class AddressField(FieldEnum):
    ADDRESS = "address"
    CREATION_TIMESTAMP = "creationTimestamp"
    DESCRIPTION = "description"
    ID = "id"
    NAME = "name"
    REGION = "region"
    SELF_LINK = "selfLink"
    STATUS = "status"
    USERS = "users"


class DiskField(FieldEnum):
    CREATION_TIMESTAMP = "creationTimestamp"
    DESCRIPTION = "description"
    ID = "id"
    LAST_ATTACH_TIMESTAMP = "lastAttachTimestamp"
    LAST_DETACH_TIMESTAMP = "lastDetachTimestamp"
    LICENSES = "licenses"
    NAME = "name"
    OPTIONS = "options"
    SELF_LINK = "selfLink"
    SIZE_GB = "sizeGb"
    SOURCE_IMAGE = "sourceImage"
    SOURCE_IMAGE_ID = "sourceImageId"
    SOURCE_SNAPSHOT = "sourceSnapshot"
    SOURCE_SNAPSHOT_ID = "sourceSnapshotId"
    STATUS = "status"
    TYPE = "type"
    USERS = "users"
    ZONE = "zone"


class SnapshotField(FieldEnum):
    CREATION_TIMESTAMP = "creationTimestamp"
    DESCRIPTION = "description"
    DISK_SIZE_GB = "diskSizeGb"
    ID = "id"
    LICENSES = "licenses"
    NAME = "name"
    SELF_LINK = "selfLink"
    SOURCE_DISK = "sourceDisk"
    SOURCE_DISK_ID = "sourceDiskId"
    STATUS = "status"
    STORAGE_BYTES = "storageBytes"
    STORAGE_BYTES_STATUS = "storageBytesStatus"


class ImageField(FieldEnum):
    ARCHIVE_SIZE_BYTES = "archiveSizeBytes"
    CREATION_TIMESTAMP = "creationTimestamp"
    DEPRECATED = "deprecated"
    DESCRIPTION = "description"
    DISK_SIZE_GB = "diskSizeGb"
    FAMILY = "family"
    ID = "id"
    LICENSES = "licenses"
    NAME = "name"
    RAW_DISK = "rawDisk"
    SELF_LINK = "selfLink"
    SOURCE_DISK = "sourceDisk"
    SOURCE_DISK_ID = "sourceDiskId"
    SOURCE_TYPE = "sourceType"
    STATUS = "status"


# Disks and images need the fields their configuration is derived from.
DISK_REQUIRED_FIELDS = (SELF_LINK, "type", "sourceImage", "sourceSnapshot")
IMAGE_REQUIRED_FIELDS = (SELF_LINK, "sourceDisk", "rawDisk")


# =============================================================================
# Per-resource options
# =============================================================================


@dataclass(frozen=True)
class DiskTypeOption(GetOption):
    pass


@dataclass(frozen=True)
class DiskTypeListOption(ListOption):
    pass


@dataclass(frozen=True)
class DiskTypeAggregatedListOption(AggregatedListOption):
    pass


@dataclass(frozen=True)
class MachineTypeOption(GetOption):
    pass


@dataclass(frozen=True)
class MachineTypeListOption(ListOption):
    pass


@dataclass(frozen=True)
class MachineTypeAggregatedListOption(AggregatedListOption):
    pass


@dataclass(frozen=True)
class RegionOption(GetOption):
    pass


@dataclass(frozen=True)
class RegionListOption(ListOption):
    pass


@dataclass(frozen=True)
class ZoneOption(GetOption):
    pass


@dataclass(frozen=True)
class ZoneListOption(ListOption):
    pass


@dataclass(frozen=True)
class LicenseOption(GetOption):
    pass


@dataclass(frozen=True)
class OperationOption(GetOption):
    """Options for operation requests and for calls returning an operation."""


@dataclass(frozen=True)
class OperationListOption(ListOption):
    pass


@dataclass(frozen=True)
class AddressOption(GetOption):
    pass


@dataclass(frozen=True)
class AddressListOption(ListOption):
    pass


@dataclass(frozen=True)
class AddressAggregatedListOption(AggregatedListOption):
    pass


@dataclass(frozen=True)
class DiskOption(GetOption):
    required_fields = DISK_REQUIRED_FIELDS


@dataclass(frozen=True)
class DiskListOption(ListOption):
    required_fields = DISK_REQUIRED_FIELDS


@dataclass(frozen=True)
class DiskAggregatedListOption(AggregatedListOption):
    pass


@dataclass(frozen=True)
class SnapshotOption(GetOption):
    pass


@dataclass(frozen=True)
class SnapshotListOption(ListOption):
    pass


@dataclass(frozen=True)
class ImageOption(GetOption):
    required_fields = IMAGE_REQUIRED_FIELDS


@dataclass(frozen=True)
class ImageListOption(ListOption):
    required_fields = IMAGE_REQUIRED_FIELDS
