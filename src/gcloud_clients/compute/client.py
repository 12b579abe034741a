"""Compute Engine client."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any, TypeVar

from gcloud_clients.base import BaseClient
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
from gcloud_clients.compute.options import ComputeRpcOption
from gcloud_clients.compute.resources import (
    Address,
    ComputeResource,
    DeprecationStatus,
    Disk,
    DiskType,
    Image,
    License,
    MachineType,
    Operation,
    Region,
    Snapshot,
    Zone,
    set_project,
)
from gcloud_clients.compute.rpc import ComputeRpc
from gcloud_clients.config import ServiceConfig
from gcloud_clients.exceptions import ComputeError, ConfigurationError
from gcloud_clients.options import Option, options_to_map

if TYPE_CHECKING:
    from gcloud_clients.compute.options import (
        AddressAggregatedListOption,
        AddressListOption,
        AddressOption,
        DiskAggregatedListOption,
        DiskListOption,
        DiskOption,
        DiskTypeAggregatedListOption,
        DiskTypeListOption,
        DiskTypeOption,
        ImageListOption,
        ImageOption,
        LicenseOption,
        MachineTypeAggregatedListOption,
        MachineTypeListOption,
        MachineTypeOption,
        OperationListOption,
        OperationOption,
        RegionListOption,
        RegionOption,
        SnapshotListOption,
        SnapshotOption,
        ZoneListOption,
        ZoneOption,
    )
    from gcloud_clients.compute.rpc import ComputeObject
    from gcloud_clients.types import Page

__all__ = ("ComputeClient", "ComputeConfig")

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=ComputeResource)
I = TypeVar("I", bound=ResourceId)

OperationId = GlobalOperationId | RegionOperationId | ZoneOperationId
AddressId = GlobalAddressId | RegionAddressId


@dataclass
class ComputeConfig(ServiceConfig):
    """Configuration for the Compute Engine client.

    Attributes:
        rpc_factory: Builds the transport from this config. There is no
            default transport; pass one here or directly to ``ComputeClient``.
    """

    rpc_factory: Callable[[ComputeConfig], ComputeRpc] | None = None


def _as_id(value: I | str, id_type: Callable[[str], I]) -> I:
    return id_type(value) if isinstance(value, str) else value


def _collection(resource_id: ResourceId) -> str:
    return resource_id.path.rsplit("/", 1)[0]


class ComputeClient(BaseClient[ComputeConfig, ComputeRpc]):
    """Asynchronous client for Compute Engine resources.

    Reads return ``None`` for missing resources. Mutations return the
    ``Operation`` tracking them, or ``None`` when the resource does not exist
    or the change was applied synchronously. Call ``Operation.wait_for()`` to
    block until the change is applied. Identities without a project use the
    configured ``project_id``.

    Example::

        async with ComputeClient(ComputeConfig(project_id="p"), rpc=transport) as client:
            operation = await client.create_address(Address(RegionAddressId("us-central1", "ip")))
            await operation.wait_for()
    """

    error_type = ComputeError

    def __init__(self, config: ComputeConfig | None = None, rpc: ComputeRpc | None = None) -> None:
        super().__init__(config or ComputeConfig(), rpc)

    def _default_rpc(self) -> ComputeRpc:
        if self.config.rpc_factory is None:
            raise ConfigurationError(
                "ComputeClient requires a transport. Set ComputeConfig.rpc_factory or pass rpc to ComputeClient"
            )
        return self.config.rpc_factory(self.config)

    @property
    def project_path(self) -> str:
        return f"projects/{self.config.project_id}"

    # =========================================================================
    # Request helpers
    # =========================================================================

    def _path(self, resource_id: ResourceId) -> str:
        return resource_id.with_project(self.config.project_id).path

    async def _get(self, resource_id: ResourceId, options: Iterable[Option], model: type[R]) -> R | None:
        path = self._path(resource_id)
        params = options_to_map(options)
        obj = await self.call(lambda: self.rpc.get(path, params))
        return model.from_dict(obj, client=self) if obj is not None else None

    async def _list(self, path: str, options: Iterable[Option], model: type[R]) -> Page[R]:
        return await self._page(
            lambda params: self.rpc.list(path, params),
            options_to_map(options),
            partial(model.from_dict, client=self),
            ComputeRpcOption.PAGE_TOKEN,
        )

    async def _aggregated_list(self, collection: str, options: Iterable[Option], model: type[R]) -> Page[R]:
        path = f"{self.project_path}/aggregated/{collection}"
        return await self._page(
            lambda params: self.rpc.aggregated_list(path, params),
            options_to_map(options),
            partial(model.from_dict, client=self),
            ComputeRpcOption.PAGE_TOKEN,
        )

    def _operation(self, obj: ComputeObject | None) -> Operation | None:
        # An empty body means the change was applied without an operation.
        return Operation.from_dict(obj, client=self) if obj else None

    async def _insert(self, resource: ComputeResource, resource_id: ResourceId, options: Iterable[Option]) -> Operation:
        path = _collection(resource_id.with_project(self.config.project_id))
        body = resource.with_project(self.config.project_id).to_dict()
        params = options_to_map(options)
        logger.debug("Creating %s", resource_id)
        obj = await self.call(lambda: self.rpc.insert(path, body, params), idempotent=False)
        return Operation.from_dict(obj, client=self)

    async def _delete(self, resource_id: ResourceId, options: Iterable[Option]) -> Operation | None:
        path = self._path(resource_id)
        params = options_to_map(options)
        logger.debug("Deleting %s", resource_id)
        return self._operation(await self.call(lambda: self.rpc.delete(path, params)))

    async def _post(
        self,
        resource_id: ResourceId,
        action: str,
        body: ComputeObject,
        options: Iterable[Option],
    ) -> Operation | None:
        path = self._path(resource_id)
        params = options_to_map(options)
        logger.debug("Calling %s on %s", action, resource_id)
        obj = await self.call(lambda: self.rpc.post(path, action, body, params), idempotent=False)
        return self._operation(obj)

    # =========================================================================
    # Disk types and machine types
    # =========================================================================

    async def get_disk_type(self, disk_type_id: DiskTypeId, *options: DiskTypeOption) -> DiskType | None:
        return await self._get(disk_type_id, options, DiskType)

    async def list_disk_types(
        self,
        *options: DiskTypeListOption | DiskTypeAggregatedListOption,
        zone: str | None = None,
    ) -> Page[DiskType]:
        """List the disk types of ``zone``, or of every zone when ``zone`` is None."""
        if zone is None:
            return await self._aggregated_list("diskTypes", options, DiskType)
        return await self._list(f"{self._path(ZoneId(zone))}/diskTypes", options, DiskType)

    async def get_machine_type(
        self,
        machine_type_id: MachineTypeId,
        *options: MachineTypeOption,
    ) -> MachineType | None:
        return await self._get(machine_type_id, options, MachineType)

    async def list_machine_types(
        self,
        *options: MachineTypeListOption | MachineTypeAggregatedListOption,
        zone: str | None = None,
    ) -> Page[MachineType]:
        """List the machine types of ``zone``, or of every zone when ``zone`` is None."""
        if zone is None:
            return await self._aggregated_list("machineTypes", options, MachineType)
        return await self._list(f"{self._path(ZoneId(zone))}/machineTypes", options, MachineType)

    async def get_license(self, license_id: LicenseId | str, *options: LicenseOption) -> License | None:
        return await self._get(_as_id(license_id, LicenseId), options, License)

    # =========================================================================
    # Regions and zones
    # =========================================================================

    async def get_region(self, region: RegionId | str, *options: RegionOption) -> Region | None:
        return await self._get(_as_id(region, RegionId), options, Region)

    async def list_regions(self, *options: RegionListOption) -> Page[Region]:
        return await self._list(f"{self.project_path}/regions", options, Region)

    async def get_zone(self, zone: ZoneId | str, *options: ZoneOption) -> Zone | None:
        return await self._get(_as_id(zone, ZoneId), options, Zone)

    async def list_zones(self, *options: ZoneListOption) -> Page[Zone]:
        return await self._list(f"{self.project_path}/zones", options, Zone)

    # =========================================================================
    # Operations
    # =========================================================================

    async def get_operation(self, operation_id: OperationId, *options: OperationOption) -> Operation | None:
        return await self._get(operation_id, options, Operation)

    async def list_global_operations(self, *options: OperationListOption) -> Page[Operation]:
        return await self._list(f"{self.project_path}/global/operations", options, Operation)

    async def list_region_operations(self, region: str, *options: OperationListOption) -> Page[Operation]:
        return await self._list(f"{self._path(RegionId(region))}/operations", options, Operation)

    async def list_zone_operations(self, zone: str, *options: OperationListOption) -> Page[Operation]:
        return await self._list(f"{self._path(ZoneId(zone))}/operations", options, Operation)

    async def delete_operation(self, operation_id: OperationId) -> bool:
        """Delete an operation record.

        Returns:
            True if the operation was deleted, False if it did not exist
        """
        path = self._path(operation_id)
        return await self.call(lambda: self.rpc.delete(path, {})) is not None

    # =========================================================================
    # Addresses
    # =========================================================================

    async def get_address(self, address_id: AddressId, *options: AddressOption) -> Address | None:
        return await self._get(address_id, options, Address)

    async def create_address(self, address: Address, *options: OperationOption) -> Operation:
        return await self._insert(address, address.address_id, options)

    async def list_global_addresses(self, *options: AddressListOption) -> Page[Address]:
        return await self._list(f"{self.project_path}/global/addresses", options, Address)

    async def list_region_addresses(self, region: str, *options: AddressListOption) -> Page[Address]:
        return await self._list(f"{self._path(RegionId(region))}/addresses", options, Address)

    async def list_addresses(self, *options: AddressAggregatedListOption) -> Page[Address]:
        """List the regional addresses of every region."""
        return await self._aggregated_list("addresses", options, Address)

    async def delete_address(self, address_id: AddressId, *options: OperationOption) -> Operation | None:
        return await self._delete(address_id, options)

    # =========================================================================
    # Disks
    # =========================================================================

    async def get_disk(self, disk_id: DiskId, *options: DiskOption) -> Disk | None:
        return await self._get(disk_id, options, Disk)

    async def create_disk(self, disk: Disk, *options: OperationOption) -> Operation:
        return await self._insert(disk, disk.disk_id, options)

    async def list_disks(
        self,
        *options: DiskListOption | DiskAggregatedListOption,
        zone: str | None = None,
    ) -> Page[Disk]:
        """List the disks of ``zone``, or of every zone when ``zone`` is None."""
        if zone is None:
            return await self._aggregated_list("disks", options, Disk)
        return await self._list(f"{self._path(ZoneId(zone))}/disks", options, Disk)

    async def resize_disk(self, disk_id: DiskId, size_gb: int, *options: OperationOption) -> Operation | None:
        """Grow a disk to ``size_gb``.

        Returns:
            The resize operation, or None if the disk does not exist
        """
        return await self._post(disk_id, "resize", {"sizeGb": str(size_gb)}, options)

    async def delete_disk(self, disk_id: DiskId, *options: OperationOption) -> Operation | None:
        return await self._delete(disk_id, options)

    # =========================================================================
    # Snapshots
    # =========================================================================

    async def create_snapshot(self, snapshot: Snapshot, *options: OperationOption) -> Operation | None:
        """Snapshot ``snapshot.source_disk``.

        Returns:
            The snapshot operation, or None if the source disk does not exist

        Raises:
            ValueError: If the snapshot has no source disk
        """
        if snapshot.source_disk is None:
            raise ValueError(f"Snapshot {snapshot.snapshot_id.snapshot} has no source disk")
        body = snapshot.with_project(self.config.project_id).to_dict()
        return await self._post(snapshot.source_disk, "createSnapshot", body, options)

    async def get_snapshot(self, snapshot: SnapshotId | str, *options: SnapshotOption) -> Snapshot | None:
        return await self._get(_as_id(snapshot, SnapshotId), options, Snapshot)

    async def list_snapshots(self, *options: SnapshotListOption) -> Page[Snapshot]:
        return await self._list(f"{self.project_path}/global/snapshots", options, Snapshot)

    async def delete_snapshot(self, snapshot: SnapshotId | str, *options: OperationOption) -> Operation | None:
        return await self._delete(_as_id(snapshot, SnapshotId), options)

    # =========================================================================
    # Images
    # =========================================================================

    async def create_image(self, image: Image, *options: OperationOption) -> Operation:
        return await self._insert(image, image.image_id, options)

    async def get_image(self, image_id: ImageId, *options: ImageOption) -> Image | None:
        return await self._get(image_id, options, Image)

    async def list_images(self, *options: ImageListOption, project: str | None = None) -> Page[Image]:
        """List the images of ``project`` (default: the configured project)."""
        return await self._list(f"projects/{project or self.config.project_id}/global/images", options, Image)

    async def deprecate_image(
        self,
        image_id: ImageId,
        status: DeprecationStatus,
        *options: OperationOption,
    ) -> Operation | None:
        """Set the deprecation status of an image.

        Returns:
            The deprecation operation, or None if the image does not exist
        """
        body = set_project(status, self.config.project_id).to_dict()
        return await self._post(image_id, "deprecate", body, options)

    async def delete_image(self, image_id: ImageId, *options: OperationOption) -> Operation | None:
        return await self._delete(image_id, options)
