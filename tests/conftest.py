"""Shared pytest fixtures for gcloud-clients tests."""

from __future__ import annotations

import os
from unittest.mock import AsyncMock

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from gcloud_clients.compute import ComputeClient, ComputeConfig, ComputeRpc
from gcloud_clients.retry import RetryConfig
from gcloud_clients.storage import ServiceAccountCredentials, StorageClient, StorageConfig, StorageRpc

# ==================================================================================== #
# PYTEST CONFIGURATION
# ==================================================================================== #


def pytest_configure(config):
    """Configure pytest with custom settings and markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")

    os.environ["PYTHONDONTWRITEBYTECODE"] = "1"


PROJECT = "test-project"
CLOCK_MILLIS = 42_000


def fast_retries(max_retries: int = 2) -> RetryConfig:
    """Retry policy without delays."""
    return RetryConfig(max_retries=max_retries, base_delay=0.0, jitter=False)


# ==================================================================================== #
# STORAGE
# ==================================================================================== #


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    """RSA key shared by the signing tests (key generation is slow)."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def credentials(rsa_key: rsa.RSAPrivateKey) -> ServiceAccountCredentials:
    return ServiceAccountCredentials(account="signer@test-project.iam.gserviceaccount.com", private_key=rsa_key)


@pytest.fixture
def storage_rpc() -> AsyncMock:
    """
    Mocked storage transport.

    Every StorageRpc method is an AsyncMock; tests set return values and
    inspect the arguments the client passed.
    """
    return AsyncMock(spec=StorageRpc)


@pytest.fixture
def storage_config() -> StorageConfig:
    return StorageConfig(project_id=PROJECT, retry_config=fast_retries(), clock=lambda: CLOCK_MILLIS)


@pytest.fixture
def storage_client(storage_config: StorageConfig, storage_rpc: AsyncMock) -> StorageClient:
    """Storage client wired to the mocked transport."""
    return StorageClient(storage_config, rpc=storage_rpc)


# ==================================================================================== #
# COMPUTE
# ==================================================================================== #


@pytest.fixture
def compute_rpc() -> AsyncMock:
    """Mocked compute transport."""
    return AsyncMock(spec=ComputeRpc)


@pytest.fixture
def compute_client(compute_rpc: AsyncMock) -> ComputeClient:
    """Compute client wired to the mocked transport."""
    config = ComputeConfig(project_id=PROJECT, retry_config=fast_retries())
    return ComputeClient(config, rpc=compute_rpc)
