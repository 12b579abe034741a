"""Compute Engine resources.

Resources are immutable snapshots of the server state, bound to the client
that fetched them so that follow-up calls (reload, delete, resize) can be
made directly on the object. Fields missing from a partial response are
``None``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import MISSING, dataclass, field, fields, is_dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

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
    parse_id,
)
from gcloud_clients.types import Codec, WireModel, embedded, wire

if TYPE_CHECKING:
    from gcloud_clients.compute.client import ComputeClient
    from gcloud_clients.compute.options import (
        AddressOption,
        DiskOption,
        ImageOption,
        OperationOption,
        SnapshotOption,
    )

__all__ = (
    "Address",
    "AddressStatus",
    "ContainerType",
    "DeprecationState",
    "DeprecationStatus",
    "Disk",
    "DiskConfiguration",
    "DiskImageConfiguration",
    "DiskStatus",
    "DiskType",
    "ImageConfiguration",
    "Image",
    "ImageDiskConfiguration",
    "ImageStatus",
    "License",
    "MachineType",
    "Operation",
    "OperationError",
    "OperationStatus",
    "OperationWarning",
    "Quota",
    "Region",
    "RegionStatus",
    "Snapshot",
    "SnapshotDiskConfiguration",
    "SnapshotStatus",
    "StandardDiskConfiguration",
    "StorageBytesStatus",
    "StorageImageConfiguration",
    "Zone",
    "ZoneStatus",
    "set_project",
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound="ComputeResource")
E = TypeVar("E", bound=Enum)
M = TypeVar("M", bound=WireModel)


# =============================================================================
# Wire codecs
# =============================================================================


def _link(id_type: type[ResourceId]) -> Codec:
    return id_type.from_url, str


def _links(id_type: type[ResourceId]) -> Codec:
    return (lambda urls: [id_type.from_url(url) for url in urls]), (lambda ids: [str(i) for i in ids])


def _enum(enum_type: type[E]) -> Codec:
    return enum_type, (lambda member: member.value)


def _model(model: type[M]) -> Codec:
    return model.from_dict, (lambda value: value.to_dict())


def _models(model: type[M]) -> Codec:
    return (lambda items: [model.from_dict(item) for item in items]), (lambda values: [v.to_dict() for v in values])


def _identity(*id_types: type[ResourceId]) -> Any:  # noqa: ANN401
    """Identity field parsed from ``selfLink`` and rendered as ``name`` (plus ``selfLink``)."""

    def parse(data: dict[str, Any]) -> ResourceId | None:
        link = data.get("selfLink")
        return parse_id(link, *id_types) if link else None

    def render(resource_id: ResourceId) -> dict[str, Any]:
        data = {"name": resource_id.name}
        if resource_id.project is not None:
            data["selfLink"] = resource_id.self_link
        return data

    return embedded(parse, render, default=MISSING)


def set_project(value: Any, project: str | None) -> Any:  # noqa: ANN401
    """Fill ``project`` into every identity without one, recursively."""
    if isinstance(value, ResourceId):
        return value.with_project(project)
    if isinstance(value, list):
        return [set_project(item, project) for item in value]
    if isinstance(value, WireModel) and is_dataclass(value):
        changes = {
            f.name: set_project(getattr(value, f.name), project)
            for f in fields(value)
            if f.init and f.name != "client"
        }
        return replace(value, **changes)
    return value


# =============================================================================
# Shared types
# =============================================================================


class DeprecationState(str, Enum):
    DEPRECATED = "DEPRECATED"
    OBSOLETE = "OBSOLETE"
    DELETED = "DELETED"


@dataclass(frozen=True)
class DeprecationStatus(WireModel):
    """Deprecation state of an image or of a read-only resource.

    Attributes:
        status: The deprecation state
        replacement: Identity of the suggested replacement resource
        deprecated: When the resource was (or will be) marked deprecated
        obsolete: When the resource was (or will be) marked obsolete
        deleted: When the resource was (or will be) marked deleted
    """

    status: DeprecationState | None = wire("state", codec=_enum(DeprecationState))
    replacement: ResourceId | None = wire("replacement", codec=(parse_id, str))
    deprecated: datetime | None = wire("deprecated", kind="time")
    obsolete: datetime | None = wire("obsolete", kind="time")
    deleted: datetime | None = wire("deleted", kind="time")


@dataclass(frozen=True)
class ComputeResource(WireModel):
    """Base for resources bound to a ``ComputeClient``."""

    client: ComputeClient | None = field(default=None, compare=False, repr=False, kw_only=True)

    @property
    def _client(self) -> ComputeClient:
        if self.client is None:
            raise RuntimeError(f"{type(self).__name__} is not bound to a client")
        return self.client

    def replace(self: R, **changes: Any) -> R:  # noqa: ANN401
        """Return a copy with ``changes`` applied."""
        return replace(self, **changes)

    def with_project(self: R, project: str | None) -> R:
        """Return a copy whose identities all carry a project."""
        return set_project(self, project)


# =============================================================================
# Locations and read-only resources
# =============================================================================


class RegionStatus(str, Enum):
    UP = "UP"
    DOWN = "DOWN"


class ZoneStatus(str, Enum):
    UP = "UP"
    DOWN = "DOWN"


@dataclass(frozen=True)
class Quota(WireModel):
    """Usage and limit of one regional quota metric."""

    metric: str | None = wire("metric")
    limit: float | None = wire("limit")
    usage: float | None = wire("usage")


@dataclass(frozen=True)
class Region(ComputeResource):
    region_id: RegionId = _identity(RegionId)
    id: str | None = wire("id")
    creation_timestamp: datetime | None = wire("creationTimestamp", kind="time")
    description: str | None = wire("description")
    status: RegionStatus | None = wire("status", codec=_enum(RegionStatus))
    zones: list[ZoneId] | None = wire("zones", codec=_links(ZoneId))
    quotas: list[Quota] | None = wire("quotas", codec=_models(Quota))
    deprecation_status: DeprecationStatus | None = wire("deprecated", codec=_model(DeprecationStatus))

    async def reload(self) -> Region | None:
        return await self._client.get_region(self.region_id)


@dataclass(frozen=True)
class Zone(ComputeResource):
    zone_id: ZoneId = _identity(ZoneId)
    id: str | None = wire("id")
    creation_timestamp: datetime | None = wire("creationTimestamp", kind="time")
    description: str | None = wire("description")
    status: ZoneStatus | None = wire("status", codec=_enum(ZoneStatus))
    region: RegionId | None = wire("region", codec=_link(RegionId))
    deprecation_status: DeprecationStatus | None = wire("deprecated", codec=_model(DeprecationStatus))

    async def reload(self) -> Zone | None:
        return await self._client.get_zone(self.zone_id)


@dataclass(frozen=True)
class DiskType(ComputeResource):
    """A disk type available in a zone (e.g. ``pd-ssd``).

    Attributes:
        valid_disk_size: Range of valid sizes, e.g. ``"10GB-10240GB"``
        default_disk_size_gb: Size used when a disk of this type is created
            without one
    """

    disk_type_id: DiskTypeId = _identity(DiskTypeId)
    id: str | None = wire("id")
    creation_timestamp: datetime | None = wire("creationTimestamp", kind="time")
    description: str | None = wire("description")
    valid_disk_size: str | None = wire("validDiskSize")
    default_disk_size_gb: int | None = wire("defaultDiskSizeGb", kind="int")
    deprecation_status: DeprecationStatus | None = wire("deprecated", codec=_model(DeprecationStatus))

    async def reload(self) -> DiskType | None:
        return await self._client.get_disk_type(self.disk_type_id)


@dataclass(frozen=True)
class MachineType(ComputeResource):
    """A machine type available in a zone (e.g. ``n1-standard-1``)."""

    machine_type_id: MachineTypeId = _identity(MachineTypeId)
    id: str | None = wire("id")
    creation_timestamp: datetime | None = wire("creationTimestamp", kind="time")
    description: str | None = wire("description")
    cpus: int | None = wire("guestCpus")
    memory_mb: int | None = wire("memoryMb")
    scratch_disks_sizes_gb: list[int] | None = wire(
        "scratchDisks",
        codec=(
            lambda disks: [disk.get("diskGb") for disk in disks],
            lambda sizes: [{"diskGb": size} for size in sizes],
        ),
    )
    maximum_persistent_disks: int | None = wire("maximumPersistentDisks")
    maximum_persistent_disks_size_gb: int | None = wire("maximumPersistentDisksSizeGb", kind="int")
    deprecation_status: DeprecationStatus | None = wire("deprecated", codec=_model(DeprecationStatus))

    async def reload(self) -> MachineType | None:
        return await self._client.get_machine_type(self.machine_type_id)


@dataclass(frozen=True)
class License(ComputeResource):
    license_id: LicenseId = _identity(LicenseId)
    charges_use_fee: bool | None = wire("chargesUseFee")

    async def reload(self) -> License | None:
        return await self._client.get_license(self.license_id)


# =============================================================================
# Operations
# =============================================================================


class OperationStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    DONE = "DONE"


@dataclass(frozen=True)
class OperationError(WireModel):
    code: str | None = wire("code")
    location: str | None = wire("location")
    message: str | None = wire("message")


@dataclass(frozen=True)
class OperationWarning(WireModel):
    code: str | None = wire("code")
    message: str | None = wire("message")
    metadata: dict[str, str] | None = wire(
        "data",
        codec=(
            lambda items: {item["key"]: item["value"] for item in items},
            lambda metadata: [{"key": key, "value": value} for key, value in metadata.items()],
        ),
    )


@dataclass(frozen=True)
class Operation(ComputeResource):
    """A long-running operation started by a mutation.

    Example::

        operation = await client.create_disk(disk)
        operation = await operation.wait_for()
        if operation is not None and operation.errors:
            raise RuntimeError(operation.errors)
    """

    operation_id: GlobalOperationId | RegionOperationId | ZoneOperationId = _identity(
        GlobalOperationId,
        RegionOperationId,
        ZoneOperationId,
    )
    id: str | None = wire("id")
    client_operation_id: str | None = wire("clientOperationId")
    operation_type: str | None = wire("operationType")
    target_link: str | None = wire("targetLink")
    target_id: str | None = wire("targetId")
    status: OperationStatus | None = wire("status", codec=_enum(OperationStatus))
    status_message: str | None = wire("statusMessage")
    user: str | None = wire("user")
    progress: int | None = wire("progress")
    creation_timestamp: datetime | None = wire("creationTimestamp", kind="time")
    insert_time: datetime | None = wire("insertTime", kind="time")
    start_time: datetime | None = wire("startTime", kind="time")
    end_time: datetime | None = wire("endTime", kind="time")
    errors: list[OperationError] | None = wire("error.errors", codec=_models(OperationError))
    warnings: list[OperationWarning] | None = wire("warnings", codec=_models(OperationWarning))
    http_error_status_code: int | None = wire("httpErrorStatusCode")
    http_error_message: str | None = wire("httpErrorMessage")
    description: str | None = wire("description")

    async def exists(self) -> bool:
        from gcloud_clients.compute.options import OperationOption

        return await self._client.get_operation(self.operation_id, OperationOption.fields()) is not None

    async def is_done(self) -> bool:
        """Reload the status and check whether the operation completed.

        An operation that no longer exists is considered done.
        """
        from gcloud_clients.compute.options import OperationField, OperationOption

        operation = await self._client.get_operation(self.operation_id, OperationOption.fields(OperationField.STATUS))
        return operation is None or operation.status is OperationStatus.DONE

    async def reload(self, *options: OperationOption) -> Operation | None:
        return await self._client.get_operation(self.operation_id, *options)

    async def delete(self) -> bool:
        return await self._client.delete_operation(self.operation_id)

    async def wait_for(
        self,
        check_every: timedelta = timedelta(milliseconds=500),
        timeout: timedelta | None = None,
    ) -> Operation | None:
        """Poll until the operation is done.

        Args:
            check_every: Delay between two status checks
            timeout: Give up after this long, None to wait indefinitely

        Returns:
            The completed operation, or None if it was deleted meanwhile

        Raises:
            TimeoutError: If the operation is not done within ``timeout``
        """
        started = time.monotonic()
        while not await self.is_done():
            if timeout is not None and time.monotonic() - started >= timeout.total_seconds():
                raise TimeoutError(f"Operation {self.operation_id} not done after {timeout}")
            logger.debug("Operation %s not done, checking again in %s", self.operation_id, check_every)
            await asyncio.sleep(check_every.total_seconds())
        return await self.reload()


# =============================================================================
# Addresses
# =============================================================================


class AddressStatus(str, Enum):
    IN_USE = "IN_USE"
    RESERVED = "RESERVED"


@dataclass(frozen=True)
class Address(ComputeResource):
    """A static external IP address, global or regional.

    Attributes:
        address: The IP address, assigned by the service unless given on
            creation
        users: URLs of the resources using the address
    """

    address_id: GlobalAddressId | RegionAddressId = _identity(GlobalAddressId, RegionAddressId)
    address: str | None = wire("address")
    id: str | None = wire("id")
    creation_timestamp: datetime | None = wire("creationTimestamp", kind="time")
    description: str | None = wire("description")
    status: AddressStatus | None = wire("status", codec=_enum(AddressStatus))
    users: list[str] | None = wire("users")

    async def exists(self) -> bool:
        from gcloud_clients.compute.options import AddressOption

        return await self._client.get_address(self.address_id, AddressOption.fields()) is not None

    async def reload(self, *options: AddressOption) -> Address | None:
        return await self._client.get_address(self.address_id, *options)

    async def delete(self, *options: OperationOption) -> Operation | None:
        return await self._client.delete_address(self.address_id, *options)


# =============================================================================
# Disks
# =============================================================================


class DiskStatus(str, Enum):
    CREATING = "CREATING"
    RESTORING = "RESTORING"
    FAILED = "FAILED"
    READY = "READY"


@dataclass(frozen=True, kw_only=True)
class DiskConfiguration(WireModel):
    """How a disk is created: blank, from an image or from a snapshot.

    Attributes:
        disk_type: Type of the disk, the zone's ``pd-standard`` when None
        size_gb: Size of the disk; for image and snapshot disks at least
            the size of the source
    """

    kind: ClassVar[str]

    disk_type: DiskTypeId | None = wire("type", codec=_link(DiskTypeId))
    size_gb: int | None = wire("sizeGb", kind="int")

    @staticmethod
    def parse(data: dict[str, Any]) -> DiskConfiguration:
        """Pick the configuration matching a disk's wire representation."""
        if data.get("sourceImage"):
            return ImageDiskConfiguration.from_dict(data)
        if data.get("sourceSnapshot"):
            return SnapshotDiskConfiguration.from_dict(data)
        return StandardDiskConfiguration.from_dict(data)


@dataclass(frozen=True)
class StandardDiskConfiguration(DiskConfiguration):
    kind = "STANDARD"


@dataclass(frozen=True)
class ImageDiskConfiguration(DiskConfiguration):
    kind = "IMAGE"

    source_image: ImageId | None = wire("sourceImage", codec=_link(ImageId))
    source_image_id: str | None = wire("sourceImageId")

    def __post_init__(self) -> None:
        if self.source_image is None:
            raise ValueError("An image disk configuration requires a source image")


@dataclass(frozen=True)
class SnapshotDiskConfiguration(DiskConfiguration):
    kind = "SNAPSHOT"

    source_snapshot: SnapshotId | None = wire("sourceSnapshot", codec=_link(SnapshotId))
    source_snapshot_id: str | None = wire("sourceSnapshotId")

    def __post_init__(self) -> None:
        if self.source_snapshot is None:
            raise ValueError("A snapshot disk configuration requires a source snapshot")


def _render(value: WireModel) -> dict[str, Any]:
    return value.to_dict()


@dataclass(frozen=True)
class Disk(ComputeResource):
    """A persistent disk.

    Example::

        disk = Disk(DiskId("us-central1-a", "data"), StandardDiskConfiguration(size_gb=100))
        operation = await client.create_disk(disk)
    """

    disk_id: DiskId = _identity(DiskId)
    configuration: DiskConfiguration = embedded(DiskConfiguration.parse, _render, default=MISSING)
    id: str | None = wire("id")
    creation_status: DiskStatus | None = wire("status", codec=_enum(DiskStatus))
    creation_timestamp: datetime | None = wire("creationTimestamp", kind="time")
    description: str | None = wire("description")
    license_ids: list[LicenseId] | None = wire("licenses", codec=_links(LicenseId))
    attached_instances: list[str] | None = wire("users")
    last_attach_timestamp: datetime | None = wire("lastAttachTimestamp", kind="time")
    last_detach_timestamp: datetime | None = wire("lastDetachTimestamp", kind="time")

    async def exists(self) -> bool:
        from gcloud_clients.compute.options import DiskOption

        return await self._client.get_disk(self.disk_id, DiskOption.fields()) is not None

    async def reload(self, *options: DiskOption) -> Disk | None:
        return await self._client.get_disk(self.disk_id, *options)

    async def delete(self, *options: OperationOption) -> Operation | None:
        return await self._client.delete_disk(self.disk_id, *options)

    async def resize(self, size_gb: int, *options: OperationOption) -> Operation | None:
        """Grow the disk to ``size_gb``; disks cannot shrink."""
        return await self._client.resize_disk(self.disk_id, size_gb, *options)

    async def create_snapshot(
        self,
        snapshot: str,
        description: str | None = None,
        *options: OperationOption,
    ) -> Operation | None:
        """Snapshot this disk into a snapshot named ``snapshot``."""
        info = Snapshot(SnapshotId(snapshot), source_disk=self.disk_id, description=description)
        return await self._client.create_snapshot(info, *options)

    async def create_image(self, image: str, description: str | None = None, *options: OperationOption) -> Operation:
        """Create an image named ``image`` from this disk."""
        info = Image(ImageId(image), DiskImageConfiguration(source_disk=self.disk_id), description=description)
        return await self._client.create_image(info, *options)


# =============================================================================
# Snapshots
# =============================================================================


class SnapshotStatus(str, Enum):
    CREATING = "CREATING"
    DELETING = "DELETING"
    FAILED = "FAILED"
    READY = "READY"
    UPLOADING = "UPLOADING"


class StorageBytesStatus(str, Enum):
    UPDATING = "UPDATING"
    UP_TO_DATE = "UP_TO_DATE"


@dataclass(frozen=True)
class Snapshot(ComputeResource):
    """A snapshot of a persistent disk."""

    snapshot_id: SnapshotId = _identity(SnapshotId)
    source_disk: DiskId | None = wire("sourceDisk", codec=_link(DiskId))
    source_disk_id: str | None = wire("sourceDiskId")
    id: str | None = wire("id")
    creation_timestamp: datetime | None = wire("creationTimestamp", kind="time")
    description: str | None = wire("description")
    status: SnapshotStatus | None = wire("status", codec=_enum(SnapshotStatus))
    disk_size_gb: int | None = wire("diskSizeGb", kind="int")
    license_ids: list[LicenseId] | None = wire("licenses", codec=_links(LicenseId))
    storage_bytes: int | None = wire("storageBytes", kind="int")
    storage_bytes_status: StorageBytesStatus | None = wire(
        "storageBytesStatus",
        codec=_enum(StorageBytesStatus),
    )

    async def exists(self) -> bool:
        from gcloud_clients.compute.options import SnapshotOption

        return await self._client.get_snapshot(self.snapshot_id, SnapshotOption.fields()) is not None

    async def reload(self, *options: SnapshotOption) -> Snapshot | None:
        return await self._client.get_snapshot(self.snapshot_id, *options)

    async def delete(self, *options: OperationOption) -> Operation | None:
        return await self._client.delete_snapshot(self.snapshot_id, *options)


# =============================================================================
# Images
# =============================================================================


class ImageStatus(str, Enum):
    FAILED = "FAILED"
    PENDING = "PENDING"
    READY = "READY"


class ContainerType(str, Enum):
    TAR = "TAR"


@dataclass(frozen=True, kw_only=True)
class ImageConfiguration(WireModel):
    """Source of an image: a disk or a tarball in Cloud Storage."""

    kind: ClassVar[str]

    source_type: str | None = wire("sourceType")
    archive_size_bytes: int | None = wire("archiveSizeBytes", kind="int")

    @staticmethod
    def parse(data: dict[str, Any]) -> ImageConfiguration:
        if data.get("sourceDisk"):
            return DiskImageConfiguration.from_dict(data)
        return StorageImageConfiguration.from_dict(data)


@dataclass(frozen=True)
class StorageImageConfiguration(ImageConfiguration):
    """An image created from a ``disk.raw`` tarball in Cloud Storage.

    Attributes:
        source: ``gs://`` or ``https://storage.googleapis.com`` URL of the tarball
        container_type: Format of the archive
        sha1: SHA-1 checksum of the tarball, checked by the service
    """

    kind = "STORAGE"

    source: str | None = wire("rawDisk.source")
    container_type: ContainerType | None = wire("rawDisk.containerType", codec=_enum(ContainerType))
    sha1: str | None = wire("rawDisk.sha1Checksum")


@dataclass(frozen=True)
class DiskImageConfiguration(ImageConfiguration):
    kind = "DISK"

    source_disk: DiskId | None = wire("sourceDisk", codec=_link(DiskId))
    source_disk_id: str | None = wire("sourceDiskId")

    def __post_init__(self) -> None:
        if self.source_disk is None:
            raise ValueError("A disk image configuration requires a source disk")


@dataclass(frozen=True)
class Image(ComputeResource):
    image_id: ImageId = _identity(ImageId)
    configuration: ImageConfiguration = embedded(ImageConfiguration.parse, _render, default=MISSING)
    id: str | None = wire("id")
    creation_timestamp: datetime | None = wire("creationTimestamp", kind="time")
    description: str | None = wire("description")
    status: ImageStatus | None = wire("status", codec=_enum(ImageStatus))
    disk_size_gb: int | None = wire("diskSizeGb", kind="int")
    license_ids: list[LicenseId] | None = wire("licenses", codec=_links(LicenseId))
    deprecation_status: DeprecationStatus | None = wire("deprecated", codec=_model(DeprecationStatus))

    async def exists(self) -> bool:
        from gcloud_clients.compute.options import ImageOption

        return await self._client.get_image(self.image_id, ImageOption.fields()) is not None

    async def reload(self, *options: ImageOption) -> Image | None:
        return await self._client.get_image(self.image_id, *options)

    async def delete(self, *options: OperationOption) -> Operation | None:
        return await self._client.delete_image(self.image_id, *options)

    async def deprecate(self, status: DeprecationStatus, *options: OperationOption) -> Operation | None:
        return await self._client.deprecate_image(self.image_id, status, *options)

