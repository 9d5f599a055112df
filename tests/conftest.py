"""
Pytest configuration and fixtures for zstore tests.

This module provides shared fixtures and configuration for all tests.
"""

import hashlib
import sys
from pathlib import Path
from typing import List

import pytest
from fastapi.testclient import TestClient

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from zstore.api.rest import create_app  # noqa: E402
from zstore.config import ZstoreConfig  # noqa: E402
from zstore.errors import BackendError, PoolOutOfSpaceError  # noqa: E402
from zstore.storage.memory import MemoryPool  # noqa: E402
from zstore.storage.pool import Volume  # noqa: E402


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, isolated)"
    )
    config.addinivalue_line(
        "markers", "api: API endpoint tests"
    )


# =============================================================================
# Pools
# =============================================================================

class FailingPool(MemoryPool):
    """Memory pool whose operations can be made to fail."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_volume = False
        self.fail_list = False
        self.fail_create = False
        self.out_of_space = False
        self.fail_destroy = False
        self.create_calls = 0

    def volume(self, name: str) -> Volume:
        if self.fail_volume:
            raise BackendError("zfs list failed", detail="secret backend text")
        return super().volume(name)

    def list_volumes(self, bucket: str) -> List[Volume]:
        if self.fail_list:
            raise BackendError("zfs list failed", detail="secret backend text")
        return super().list_volumes(bucket)

    def create_volume(self, name: str, size_bytes: int) -> Volume:
        self.create_calls += 1
        if self.out_of_space:
            raise PoolOutOfSpaceError(self.name, size_bytes)
        if self.fail_create:
            raise BackendError("zfs create failed", detail="secret backend text")
        return super().create_volume(name, size_bytes)

    def _destroy(self, name: str) -> None:
        if self.fail_destroy:
            raise BackendError("zfs destroy failed", detail="secret backend text")
        super()._destroy(name)


@pytest.fixture
def memory_pool() -> MemoryPool:
    """Create an empty in-memory pool."""
    return MemoryPool(name="zstore", capacity_bytes=16 * 1024 * 1024 * 1024)


@pytest.fixture
def failing_pool() -> FailingPool:
    """Create an in-memory pool with switchable failures."""
    return FailingPool(name="zstore")


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
def config() -> ZstoreConfig:
    """Create a test configuration using the memory backend."""
    return ZstoreConfig(pool_backend="memory", pool_name="zstore")


@pytest.fixture
def client(config, memory_pool) -> TestClient:
    """Test client bound to the memory pool."""
    return TestClient(create_app(config, memory_pool))


@pytest.fixture
def failing_client(config, failing_pool) -> TestClient:
    """Test client bound to the failing pool."""
    return TestClient(create_app(config, failing_pool))


@pytest.fixture
def bucket() -> str:
    """Bucket segment of the TestClient's client host ("testclient")."""
    return hashlib.md5(b"testclient").hexdigest()
