"""Content hashes in the encoding used by Cloud Storage metadata."""

from __future__ import annotations

import base64
import hashlib

import crc32c

__all__ = ("crc32c_base64", "md5_base64")


def md5_base64(data: bytes) -> str:
    """Base64 of the MD5 digest of ``data``."""
    return base64.b64encode(hashlib.md5(data).digest()).decode("ascii")  # noqa: S324


def crc32c_base64(data: bytes) -> str:
    """Base64 of the big-endian CRC32C of ``data``."""
    return base64.b64encode(crc32c.crc32c(data).to_bytes(4, "big")).decode("ascii")
