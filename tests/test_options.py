"""Tests for option translation and field selectors."""

from __future__ import annotations

from enum import Enum

import pytest

from gcloud_clients.options import FieldEnum, Option, list_selector, options_to_map, selector


class Key(str, Enum):
    IF_GENERATION_MATCH = "ifGenerationMatch"
    PREFIX = "prefix"


class Color(FieldEnum):
    NAME = "name"
    HUE = "hue"


@pytest.mark.unit
class TestOption:
    """Test Option values and resolution."""

    def test_options_are_value_objects(self) -> None:
        assert Option(Key.PREFIX, "a") == Option(Key.PREFIX, "a")
        assert hash(Option(Key.PREFIX, "a")) == hash(Option(Key.PREFIX, "a"))
        assert Option(Key.PREFIX, "a") != Option(Key.PREFIX, "b")

    def test_resolve_keeps_explicit_value(self) -> None:
        option = Option(Key.IF_GENERATION_MATCH, 7)

        assert option.resolve(99) is option

    def test_resolve_fills_from_default(self) -> None:
        assert Option(Key.IF_GENERATION_MATCH).resolve(99) == Option(Key.IF_GENERATION_MATCH, 99)

    def test_resolve_without_any_value(self) -> None:
        with pytest.raises(ValueError, match="Option ifGenerationMatch is missing a value"):
            Option(Key.IF_GENERATION_MATCH).resolve(None)


@pytest.mark.unit
class TestOptionsToMap:
    """Test translation of option lists into wire maps."""

    def test_empty(self) -> None:
        assert options_to_map([]) == {}

    def test_later_options_override(self) -> None:
        result = options_to_map([Option(Key.PREFIX, "a"), Option(Key.IF_GENERATION_MATCH, 1), Option(Key.PREFIX, "b")])

        assert result == {Key.PREFIX: "b", Key.IF_GENERATION_MATCH: 1}
        assert list(result) == [Key.PREFIX, Key.IF_GENERATION_MATCH]


@pytest.mark.unit
class TestSelectors:
    """Test partial-response field selectors."""

    def test_required_fields_first_and_deduplicated(self) -> None:
        assert selector([Color.HUE, Color.NAME, "extra"], ["name"]) == "name,hue,extra"

    def test_list_selector(self) -> None:
        assert list_selector("items", [Color.HUE], ["name"]) == "nextPageToken,items(name,hue)"

    def test_list_selector_with_extra(self) -> None:
        assert list_selector("items", [], ["bucket", "name"], extra=("prefixes",)) == (
            "prefixes,nextPageToken,items(bucket,name)"
        )
