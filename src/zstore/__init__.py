"""
zstore: ZFS-backed block storage provisioning

HTTP daemon which lets remote clients create, inspect, list, and destroy
volumes carved out of a shared storage pool. Each client's volumes live in
a bucket derived from its network address.
"""

__version__ = "1.0.0"

from zstore.config import ZstoreConfig
from zstore.storage import Pool, Volume, MemoryPool, ZfsPool, create_pool
from zstore.api.rest import create_app
from zstore.api.storage import StorageHandler

from zstore.errors import (
    ZstoreError,
    VolumeNotExistsError,
    VolumeExistsError,
    PoolOutOfSpaceError,
    InvalidSizeError,
    AddressParseError,
    BackendError,
)

__all__ = [
    "ZstoreConfig",
    "Pool",
    "Volume",
    "MemoryPool",
    "ZfsPool",
    "create_pool",
    "create_app",
    "StorageHandler",
    # Exception classes
    "ZstoreError",
    "VolumeNotExistsError",
    "VolumeExistsError",
    "PoolOutOfSpaceError",
    "InvalidSizeError",
    "AddressParseError",
    "BackendError",
]
