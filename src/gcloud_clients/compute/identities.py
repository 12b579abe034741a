"""Identities of Compute Engine resources.

Every identity renders to and parses from the resource's ``selfLink``::

    https://www.googleapis.com/compute/v1/projects/my-project/zones/us-central1-a/disks/my-disk

An identity created without a project renders as a relative link
(``zones/us-central1-a/disks/my-disk``); the client fills the project from
its configuration before sending a request.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, replace
from functools import lru_cache
from typing import Any, ClassVar, TypeVar

__all__ = (
    "ALL_ID_TYPES",
    "COMPUTE_BASE_URL",
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
    "parse_id",
)

COMPUTE_BASE_URL = "https://www.googleapis.com/compute/v1/"

_PROJECT_PREFIX = "projects/{project}/"
_PLACEHOLDER = re.compile(r"\{(\w+)\}")

I = TypeVar("I", bound="ResourceId")


@lru_cache(maxsize=None)
def _compile(template: str) -> re.Pattern[str]:
    parts = ["(?:^|/)(?:projects/(?P<project>[^/]+)/)?"]
    position = 0
    relative = template[len(_PROJECT_PREFIX) :]
    for match in _PLACEHOLDER.finditer(relative):
        parts.append(re.escape(relative[position : match.start()]))
        parts.append(f"(?P<{match.group(1)}>[^/]+)")
        position = match.end()
    parts.append(re.escape(relative[position:]))
    parts.append("$")
    return re.compile("".join(parts))


@dataclass(frozen=True)
class ResourceId:
    """Base class for Compute Engine resource identities.

    Subclasses declare their path components as fields, in path order, and a
    ``template`` naming them. The last component is the resource name.

    Attributes:
        project: Owning project, None to use the client's project
    """

    template: ClassVar[str] = _PROJECT_PREFIX

    project: str | None = field(default=None, kw_only=True)

    @property
    def name(self) -> str:
        """Name of the resource (the last path component)."""
        *_, last = _PLACEHOLDER.findall(self.template)
        return getattr(self, last)

    def _values(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @property
    def path(self) -> str:
        """Path of the resource relative to the API root.

        Raises:
            ValueError: If the identity has no project
        """
        if self.project is None:
            raise ValueError(f"{type(self).__name__} {self.relative_path} has no project")
        return self.template.format(**self._values())

    @property
    def relative_path(self) -> str:
        """Path of the resource inside its project."""
        return self.template[len(_PROJECT_PREFIX) :].format(**self._values())

    @property
    def self_link(self) -> str:
        if self.project is None:
            return self.relative_path
        return COMPUTE_BASE_URL + self.path

    def with_project(self: I, project: str | None) -> I:
        """Return this identity with ``project`` filled in when it has none."""
        if self.project is not None or project is None:
            return self
        return replace(self, project=project)

    @classmethod
    def matches(cls, url: str) -> bool:
        return _compile(cls.template).search(url) is not None

    @classmethod
    def from_url(cls: type[I], url: str) -> I:
        """Parse an identity from a full or relative resource URL.

        Raises:
            ValueError: If ``url`` does not address this kind of resource
        """
        match = _compile(cls.template).search(url)
        if match is None:
            raise ValueError(f"{url!r} is not a valid {cls.__name__} URL")
        values = match.groupdict()
        project = values.pop("project")
        return cls(**values, project=project)

    def __str__(self) -> str:
        return self.self_link


def parse_id(url: str, *types: type[ResourceId]) -> ResourceId:
    """Parse ``url`` as the first of ``types`` it matches (any identity type by default).

    Raises:
        ValueError: If no type matches
    """
    types = types or ALL_ID_TYPES
    for id_type in types:
        if id_type.matches(url):
            return id_type.from_url(url)
    names = ", ".join(id_type.__name__ for id_type in types)
    raise ValueError(f"{url!r} is not a valid URL for any of {names}")


class _ZoneScoped:
    zone: str
    project: str | None

    @property
    def zone_id(self) -> ZoneId:
        return ZoneId(self.zone, project=self.project)


class _RegionScoped:
    region: str
    project: str | None

    @property
    def region_id(self) -> RegionId:
        return RegionId(self.region, project=self.project)


# =============================================================================
# Locations
# =============================================================================


@dataclass(frozen=True)
class RegionId(ResourceId):
    template = "projects/{project}/regions/{region}"

    region: str


@dataclass(frozen=True)
class ZoneId(ResourceId):
    template = "projects/{project}/zones/{zone}"

    zone: str


# =============================================================================
# Zonal resources
# =============================================================================


@dataclass(frozen=True)
class DiskTypeId(_ZoneScoped, ResourceId):
    template = "projects/{project}/zones/{zone}/diskTypes/{disk_type}"

    zone: str
    disk_type: str


@dataclass(frozen=True)
class MachineTypeId(_ZoneScoped, ResourceId):
    template = "projects/{project}/zones/{zone}/machineTypes/{machine_type}"

    zone: str
    machine_type: str


@dataclass(frozen=True)
class DiskId(_ZoneScoped, ResourceId):
    template = "projects/{project}/zones/{zone}/disks/{disk}"

    zone: str
    disk: str


@dataclass(frozen=True)
class ZoneOperationId(_ZoneScoped, ResourceId):
    template = "projects/{project}/zones/{zone}/operations/{operation}"

    zone: str
    operation: str


# =============================================================================
# Regional resources
# =============================================================================


@dataclass(frozen=True)
class RegionAddressId(_RegionScoped, ResourceId):
    template = "projects/{project}/regions/{region}/addresses/{address}"

    region: str
    address: str


@dataclass(frozen=True)
class RegionOperationId(_RegionScoped, ResourceId):
    template = "projects/{project}/regions/{region}/operations/{operation}"

    region: str
    operation: str


# =============================================================================
# Global resources
# =============================================================================


@dataclass(frozen=True)
class LicenseId(ResourceId):
    template = "projects/{project}/global/licenses/{license}"

    license: str


@dataclass(frozen=True)
class ImageId(ResourceId):
    template = "projects/{project}/global/images/{image}"

    image: str


@dataclass(frozen=True)
class SnapshotId(ResourceId):
    template = "projects/{project}/global/snapshots/{snapshot}"

    snapshot: str


@dataclass(frozen=True)
class GlobalAddressId(ResourceId):
    template = "projects/{project}/global/addresses/{address}"

    address: str


@dataclass(frozen=True)
class GlobalOperationId(ResourceId):
    template = "projects/{project}/global/operations/{operation}"

    operation: str


ALL_ID_TYPES: tuple[type[ResourceId], ...] = (
    RegionId,
    ZoneId,
    DiskTypeId,
    MachineTypeId,
    DiskId,
    ZoneOperationId,
    RegionAddressId,
    RegionOperationId,
    LicenseId,
    ImageId,
    SnapshotId,
    GlobalAddressId,
    GlobalOperationId,
)
