"""Metadata for the project."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

__all__ = ("__project__", "__version__")

__project__ = "gcloud-clients"

try:
    __version__ = version(__project__)
except PackageNotFoundError:  # pragma: no cover - running from a source checkout
    __version__ = "0.0.0"
