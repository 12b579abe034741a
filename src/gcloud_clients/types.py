"""Type definitions shared by the service clients."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

__all__ = (
    "Page",
    "PageFetcher",
    "Codec",
    "WireModel",
    "embedded",
    "format_timestamp",
    "parse_timestamp",
    "wire",
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
W = TypeVar("W", bound="WireModel")

Codec = tuple[Callable[[Any], Any], Callable[[Any], Any]]
"""``(parse, render)`` pair converting a single wire value."""


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp as returned by the JSON APIs."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None


def format_timestamp(value: datetime) -> str:
    """Render a datetime as an RFC 3339 UTC timestamp."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def wire(
    name: str,
    *,
    kind: str | None = None,
    codec: Codec | None = None,
    **kwargs: Any,
) -> Any:  # noqa: ANN401
    """Declare a dataclass field mapped to a wire (JSON) field.

    Args:
        name: Wire name, dotted for nested objects (``"website.mainPageSuffix"``)
        kind: ``"int"`` for int64 fields sent as strings, ``"time"`` for
            RFC 3339 timestamps, ``None`` to copy the value as-is
        codec: ``(parse, render)`` pair converting the wire value, used
            instead of ``kind``
        **kwargs: Forwarded to ``dataclasses.field``

    Returns:
        A dataclass field defaulting to ``None``
    """
    kwargs.setdefault("default", None)
    return field(metadata={"wire": name, "kind": kind, "codec": codec}, **kwargs)


def embedded(parse: Callable[[dict[str, Any]], Any], render: Callable[[Any], dict[str, Any]], **kwargs: Any) -> Any:  # noqa: ANN401
    """Declare a field built from several keys of the enclosing wire object.

    ``parse`` receives the whole wire dict and returns the field value (or
    ``None``); ``render`` returns the keys to merge back into the output.
    """
    kwargs.setdefault("default", None)
    return field(metadata={"embedded": (parse, render)}, **kwargs)


class WireModel:
    """Mixin converting dataclasses to and from their JSON API representation.

    Only fields declared with ``wire()`` take part in the conversion. ``None``
    values are omitted from the output so that partial responses round-trip.
    """

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            if value is None:
                continue
            if "embedded" in f.metadata:
                result.update(f.metadata["embedded"][1](value))
                continue
            name = f.metadata.get("wire")
            if name is None:
                continue
            codec = f.metadata.get("codec")
            if codec is not None:
                value = codec[1](value)
            elif f.metadata.get("kind") == "time":
                value = format_timestamp(value)
            *parents, leaf = name.split(".")
            target = result
            for parent in parents:
                target = target.setdefault(parent, {})
            target[leaf] = value
        return result

    @classmethod
    def wire_values(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Extract constructor keyword arguments from a wire dict."""
        values: dict[str, Any] = {}
        for f in fields(cls):  # type: ignore[arg-type]
            if "embedded" in f.metadata:
                parsed = f.metadata["embedded"][0](data)
                if parsed is not None:
                    values[f.name] = parsed
                continue
            name = f.metadata.get("wire")
            if name is None:
                continue
            value: Any = data
            for part in name.split("."):
                value = value.get(part) if isinstance(value, dict) else None
            if value is None:
                continue
            codec = f.metadata.get("codec")
            kind = f.metadata.get("kind")
            if codec is not None:
                value = codec[0](value)
            elif kind == "int":
                value = int(value)
            elif kind == "time":
                value = parse_timestamp(value)
            values[f.name] = value
        return values

    @classmethod
    def from_dict(cls: type[W], data: dict[str, Any], **extra: Any) -> W:  # noqa: ANN401
        return cls(**cls.wire_values(data), **extra)


PageFetcher = Callable[[str], Awaitable["Page[T]"]]
"""Coroutine function fetching the page that starts at the given cursor."""


@dataclass(frozen=True)
class Page(Generic[T]):
    """A single page of a paginated listing.

    Attributes:
        values: Resources on this page, in server order
        next_page_cursor: Token for the following page, ``None`` on the last page
        fetcher: Coroutine function used to request the next page

    Example::

        page = await client.list_buckets(BucketListOption.page_size(100))
        async for bucket in page.iterate_all():
            print(bucket.name)
    """

    values: list[T] = field(default_factory=list)
    next_page_cursor: str | None = None
    fetcher: PageFetcher[T] | None = field(default=None, repr=False, compare=False)

    def __iter__(self) -> Iterator[T]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def has_next_page(self) -> bool:
        """Whether the server reported a following page."""
        return bool(self.next_page_cursor) and self.fetcher is not None

    async def next_page(self) -> Page[T] | None:
        """Fetch the following page.

        Returns:
            The next page, or None when this is the last page
        """
        if not self.has_next_page():
            return None
        logger.debug("Fetching page at cursor %s", self.next_page_cursor)
        return await self.fetcher(self.next_page_cursor)  # type: ignore[misc,arg-type]

    async def iterate_all(self) -> AsyncIterator[T]:
        """Iterate over the values of this page and every following page.

        Yields:
            Each resource in order, requesting further pages lazily
        """
        page: Page[T] | None = self
        while page is not None:
            for value in page.values:
                yield value
            page = await page.next_page()
