"""Requests concatenating blobs of one bucket into a target blob."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from gcloud_clients.storage.blob import BlobInfo
    from gcloud_clients.storage.options import BlobTargetOption

__all__ = ("ComposeRequest", "ComposeRequestBuilder", "SourceBlob")


@dataclass(frozen=True)
class SourceBlob:
    """A compose source, living in the target's bucket."""

    name: str
    generation: int | None = None

    def to_dict(self, bucket: str) -> dict[str, Any]:
        data: dict[str, Any] = {"bucket": bucket, "name": self.name}
        if self.generation is not None:
            data["generation"] = self.generation
        return data


@dataclass(frozen=True)
class ComposeRequest:
    """Sources concatenated, in order, into ``target``."""

    sources: tuple[SourceBlob, ...]
    target: BlobInfo
    target_options: tuple[BlobTargetOption, ...] = ()

    @classmethod
    def of(cls, sources: list[str], target: BlobInfo) -> ComposeRequest:
        return cls.builder().add_source(*sources).target(target).build()

    @classmethod
    def builder(cls) -> ComposeRequestBuilder:
        return ComposeRequestBuilder()


class ComposeRequestBuilder:
    def __init__(self) -> None:
        self._sources: list[SourceBlob] = []
        self._target: BlobInfo | None = None
        self._target_options: list[BlobTargetOption] = []

    def add_source(self, *names: str, generation: int | None = None) -> ComposeRequestBuilder:
        """Append sources by name; ``generation`` pins every name given in this call."""
        self._sources.extend(SourceBlob(name, generation) for name in names)
        return self

    def target(self, target: BlobInfo) -> ComposeRequestBuilder:
        self._target = target
        return self

    def target_options(self, *options: BlobTargetOption) -> ComposeRequestBuilder:
        self._target_options.extend(options)
        return self

    def build(self) -> ComposeRequest:
        if self._target is None:
            raise ValueError("Compose target is required")
        if not self._sources:
            raise ValueError("Compose requires at least one source")
        return ComposeRequest(tuple(self._sources), self._target, tuple(self._target_options))
