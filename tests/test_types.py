"""Tests for wire models and paging.

This module tests WireModel conversion and the Page container.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock

import pytest

from gcloud_clients.types import Page, WireModel, embedded, format_timestamp, parse_timestamp, wire


def _parse_range(data: dict[str, Any]) -> tuple[int, int] | None:
    if "low" not in data:
        return None
    return int(data["low"]), int(data["high"])


def _render_range(value: tuple[int, int]) -> dict[str, Any]:
    return {"low": str(value[0]), "high": str(value[1])}


@dataclass(frozen=True)
class Sample(WireModel):
    name: str | None = wire("name")
    size: int | None = wire("size", kind="int")
    updated: datetime | None = wire("updated", kind="time")
    suffix: str | None = wire("website.mainPageSuffix")
    tags: tuple[str, ...] | None = wire("tags", codec=(tuple, list))
    bounds: tuple[int, int] | None = embedded(_parse_range, _render_range)
    local: str | None = None


@pytest.mark.unit
class TestTimestamps:
    """Test RFC 3339 timestamp handling."""

    def test_parse_zulu(self) -> None:
        assert parse_timestamp("2016-01-02T03:04:05.678Z") == datetime(
            2016, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize("value", [None, "", "not a date"])
    def test_parse_invalid(self, value: str | None) -> None:
        assert parse_timestamp(value) is None

    def test_format_naive_as_utc(self) -> None:
        assert format_timestamp(datetime(2016, 1, 2, 3, 4, 5)) == "2016-01-02T03:04:05.000Z"


@pytest.mark.unit
class TestWireModel:
    """Test conversion between dataclasses and wire dicts."""

    def test_from_dict(self) -> None:
        """
        Test parsing a wire dict.

        Verifies:
        - int64 strings become ints
        - Timestamps are parsed
        - Dotted names read nested objects
        - Codecs and embedded fields are applied
        - Unknown keys are ignored
        """
        sample = Sample.from_dict(
            {
                "name": "n",
                "size": "42",
                "updated": "2016-01-02T03:04:05.000Z",
                "website": {"mainPageSuffix": "index.html"},
                "tags": ["a", "b"],
                "low": "1",
                "high": "9",
                "unknown": True,
            }
        )

        assert sample.name == "n"
        assert sample.size == 42
        assert sample.updated == datetime(2016, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert sample.suffix == "index.html"
        assert sample.tags == ("a", "b")
        assert sample.bounds == (1, 9)

    def test_from_dict_extra_kwargs(self) -> None:
        sample = Sample.from_dict({"name": "n"}, local="kept")

        assert sample.local == "kept"
        assert sample.bounds is None

    def test_to_dict_omits_none_and_local_fields(self) -> None:
        sample = Sample(name="n", suffix="404.html", tags=("x",), bounds=(2, 3), local="ignored")

        assert sample.to_dict() == {
            "name": "n",
            "website": {"mainPageSuffix": "404.html"},
            "tags": ["x"],
            "low": "2",
            "high": "3",
        }

    def test_to_dict_formats_timestamps(self) -> None:
        updated = datetime(2020, 5, 6, 7, 8, 9, tzinfo=timezone.utc)

        assert Sample(updated=updated).to_dict() == {"updated": "2020-05-06T07:08:09.000Z"}


@pytest.mark.unit
class TestPage:
    """Test the Page container."""

    def test_single_page(self) -> None:
        page = Page(["a", "b"])

        assert list(page) == ["a", "b"]
        assert len(page) == 2
        assert page.has_next_page() is False

    async def test_next_page_on_last_page(self) -> None:
        assert await Page(["a"], None, AsyncMock()).next_page() is None

    async def test_next_page_uses_cursor(self) -> None:
        second = Page(["c"])
        fetcher = AsyncMock(return_value=second)
        page = Page(["a", "b"], "token-1", fetcher)

        assert await page.next_page() is second
        fetcher.assert_awaited_once_with("token-1")

    async def test_iterate_all(self) -> None:
        """
        Test iterating across pages.

        Verifies:
        - Values come in page order
        - Iteration stops on the page without a cursor
        """
        third = Page(["e"])
        second = Page(["c", "d"], "t2", AsyncMock(return_value=third))
        first = Page(["a", "b"], "t1", AsyncMock(return_value=second))

        values = [value async for value in first.iterate_all()]

        assert values == ["a", "b", "c", "d", "e"]

    def test_pages_compare_by_values_and_cursor(self) -> None:
        assert Page(["a"], "t", AsyncMock()) == Page(["a"], "t", None)
