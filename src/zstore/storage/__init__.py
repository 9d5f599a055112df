"""
Storage management module for zstore

Provides the Pool/Volume abstraction with ZFS and in-memory backends.
"""

from typing import TYPE_CHECKING

from .pool import Pool, Volume
from .memory import MemoryPool, MemoryVolume
from .zfs import ZfsPool, Zvol, open_zpool
from .slugs import MB, GB, STORAGE_SIZES, slug_size, slugs, sort_slugs

if TYPE_CHECKING:
    from zstore.config import ZstoreConfig


def create_pool(config: "ZstoreConfig") -> Pool:
    """
    Create the storage pool described by a configuration.

    Args:
        config: zstore configuration

    Returns:
        Pool instance
    """
    if config.pool_backend == "memory":
        return MemoryPool(
            name=config.pool_name,
            capacity_bytes=config.memory_pool_capacity_bytes,
        )
    elif config.pool_backend == "zfs":
        return open_zpool(
            config.pool_name,
            zfs_command=config.zfs_command,
            zpool_command=config.zpool_command,
            timeout_sec=config.command_timeout_sec,
        )
    else:
        raise ValueError(f"Unknown pool backend: {config.pool_backend}")


__all__ = [
    "Pool",
    "Volume",
    "MemoryPool",
    "MemoryVolume",
    "ZfsPool",
    "Zvol",
    "open_zpool",
    "create_pool",
    "MB",
    "GB",
    "STORAGE_SIZES",
    "slug_size",
    "slugs",
    "sort_slugs",
]
