"""Service account credentials used to sign URLs."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from gcloud_clients.exceptions import ConfigurationError

__all__ = ("ServiceAccountCredentials",)


@dataclass(frozen=True)
class ServiceAccountCredentials:
    """A service account email and its RSA private key.

    Attributes:
        account: Service account email, sent as ``GoogleAccessId``
        private_key: RSA key the signatures are computed with
    """

    account: str
    private_key: rsa.RSAPrivateKey = field(repr=False)

    @classmethod
    def from_service_account_info(cls, info: dict[str, Any]) -> ServiceAccountCredentials:
        """Load credentials from a parsed service account JSON key.

        Args:
            info: Mapping with ``client_email`` and a PEM ``private_key``

        Returns:
            ServiceAccountCredentials

        Raises:
            ConfigurationError: If the key is missing or not an RSA key
        """
        try:
            account = info["client_email"]
            pem = info["private_key"].encode("utf-8")
        except (KeyError, AttributeError) as e:
            raise ConfigurationError(f"Invalid service account info: missing {e}") from e

        try:
            key = serialization.load_pem_private_key(pem, password=None)
        except ValueError as e:
            raise ConfigurationError(f"Invalid service account private key: {e}") from e

        if not isinstance(key, rsa.RSAPrivateKey):
            raise ConfigurationError("Service account private key must be an RSA key")
        return cls(account=account, private_key=key)

    @classmethod
    def from_service_account_file(cls, path: str | Path) -> ServiceAccountCredentials:
        try:
            info = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Failed to read service account file {path}: {e}") from e
        return cls.from_service_account_info(info)

    def sign(self, data: bytes) -> bytes:
        """Sign ``data`` with RSASSA-PKCS1-v1_5 over SHA-256."""
        return self.private_key.sign(data, padding.PKCS1v15(), hashes.SHA256())
