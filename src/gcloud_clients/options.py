"""Typed request options and their translation into wire-level maps."""

from __future__ import annotations

from collections.abc import Hashable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

__all__ = (
    "FieldEnum",
    "Option",
    "list_selector",
    "options_to_map",
    "selector",
)


@dataclass(frozen=True)
class Option:
    """An immutable request modifier.

    Attributes:
        rpc_option: The wire-level key this option sets
        value: The value for the key. Some preconditions are created without
            a value and take it from the target resource when the request is
            built (see ``resolve``).
    """

    rpc_option: Hashable
    value: Any = None

    def resolve(self, default: Any) -> Option:  # noqa: ANN401
        """Fill a missing value from ``default``.

        Args:
            default: Value taken from the request target (e.g. a generation)

        Returns:
            An option carrying a concrete value

        Raises:
            ValueError: If neither the option nor the target has a value
        """
        if self.value is not None:
            return self
        if default is None:
            raise ValueError(f"Option {_key_name(self.rpc_option)} is missing a value")
        return type(self)(self.rpc_option, default)


def _key_name(key: Hashable) -> str:
    return key.value if isinstance(key, Enum) else str(key)


def options_to_map(options: Iterable[Option]) -> dict[Any, Any]:
    """Translate options into a mapping of wire keys to values.

    Later options override earlier ones with the same key.

    Args:
        options: The options passed to a request-building method

    Returns:
        Mapping of rpc option keys to values, in first-seen key order
    """
    result: dict[Any, Any] = {}
    for option in options:
        result[option.rpc_option] = option.value
    return result


class FieldEnum(str, Enum):
    """Base for resource field enums whose values are wire field names."""

    @property
    def selector(self) -> str:
        return self.value


def selector(fields: Iterable[str | FieldEnum], required: Iterable[str]) -> str:
    """Build a partial-response field selector.

    Args:
        fields: Fields requested by the caller
        required: Fields that are always returned (resource identity)

    Returns:
        Comma separated, de-duplicated field names, required ones first
    """
    names: dict[str, None] = {}
    for name in required:
        names[name] = None
    for item in fields:
        names[item.selector if isinstance(item, FieldEnum) else item] = None
    return ",".join(names)


def list_selector(
    container: str,
    fields: Iterable[str | FieldEnum],
    required: Iterable[str],
    extra: Iterable[str] = (),
) -> str:
    """Build a field selector for a list response.

    Args:
        container: Name of the list field in the response (e.g. ``"items"``)
        fields: Fields requested for each listed resource
        required: Fields always returned for each listed resource
        extra: Top-level response fields to keep besides the page token

    Returns:
        Selector such as ``nextPageToken,items(name,location)``
    """
    parts = [*extra, "nextPageToken", f"{container}({selector(fields, required)})"]
    return ",".join(parts)
