"""Tests for Compute Engine resource identities."""

from __future__ import annotations

import pytest

from gcloud_clients.compute import (
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
    SnapshotId,
    ZoneId,
    ZoneOperationId,
)
from gcloud_clients.compute.identities import COMPUTE_BASE_URL, parse_id

pytestmark = pytest.mark.unit

ZONE_URL = COMPUTE_BASE_URL + "projects/p/zones/us-central1-a"


@pytest.mark.unit
class TestResourceId:
    """Test rendering identities to links and paths."""

    @pytest.mark.parametrize(
        ("resource_id", "path"),
        [
            (RegionId("us-central1", project="p"), "projects/p/regions/us-central1"),
            (ZoneId("us-central1-a", project="p"), "projects/p/zones/us-central1-a"),
            (DiskTypeId("z", "pd-ssd", project="p"), "projects/p/zones/z/diskTypes/pd-ssd"),
            (MachineTypeId("z", "n1-standard-1", project="p"), "projects/p/zones/z/machineTypes/n1-standard-1"),
            (DiskId("z", "d", project="p"), "projects/p/zones/z/disks/d"),
            (ZoneOperationId("z", "op", project="p"), "projects/p/zones/z/operations/op"),
            (RegionAddressId("r", "a", project="p"), "projects/p/regions/r/addresses/a"),
            (RegionOperationId("r", "op", project="p"), "projects/p/regions/r/operations/op"),
            (LicenseId("l", project="p"), "projects/p/global/licenses/l"),
            (ImageId("i", project="p"), "projects/p/global/images/i"),
            (SnapshotId("s", project="p"), "projects/p/global/snapshots/s"),
            (GlobalAddressId("a", project="p"), "projects/p/global/addresses/a"),
            (GlobalOperationId("op", project="p"), "projects/p/global/operations/op"),
        ],
    )
    def test_paths_round_trip(self, resource_id, path: str) -> None:
        assert resource_id.path == path
        assert resource_id.self_link == COMPUTE_BASE_URL + path
        assert str(resource_id) == resource_id.self_link
        assert type(resource_id).from_url(resource_id.self_link) == resource_id

    def test_name_is_last_component(self) -> None:
        assert DiskId("z", "data").name == "data"
        assert ImageId("debian").name == "debian"

    def test_relative_without_project(self) -> None:
        disk_id = DiskId("z", "d")

        assert disk_id.self_link == "zones/z/disks/d"
        with pytest.raises(ValueError, match="has no project"):
            _ = disk_id.path

    def test_with_project(self) -> None:
        assert DiskId("z", "d").with_project("p") == DiskId("z", "d", project="p")
        assert DiskId("z", "d", project="q").with_project("p").project == "q"

    def test_scope_ids(self) -> None:
        assert DiskId("z", "d", project="p").zone_id == ZoneId("z", project="p")
        assert RegionAddressId("r", "a").region_id == RegionId("r")

    def test_from_relative_url(self) -> None:
        assert DiskId.from_url("zones/z/disks/d") == DiskId("z", "d")

    def test_from_invalid_url(self) -> None:
        with pytest.raises(ValueError, match="not a valid DiskId URL"):
            DiskId.from_url(ZONE_URL)

    def test_matches_is_anchored(self) -> None:
        assert ZoneId.matches(ZONE_URL) is True
        assert ZoneId.matches(ZONE_URL + "/disks/d") is False


@pytest.mark.unit
class TestParseId:
    def test_parse_any_type(self) -> None:
        assert parse_id(COMPUTE_BASE_URL + "projects/p/global/images/i") == ImageId("i", project="p")
        assert parse_id(COMPUTE_BASE_URL + "projects/p/regions/r/operations/o") == RegionOperationId(
            "r", "o", project="p"
        )

    def test_parse_restricted_types(self) -> None:
        with pytest.raises(ValueError, match="GlobalAddressId, RegionAddressId"):
            parse_id(ZONE_URL, GlobalAddressId, RegionAddressId)
