"""
In-memory storage pool.

Keeps volumes in a dictionary guarded by a lock. Used by the test suite and
for running zstored on hosts without ZFS (``pool_backend: memory``).
"""

import logging
import threading
from typing import Dict, List, Set

from zstore.errors import (
    PoolOutOfSpaceError,
    VolumeExistsError,
    VolumeNotExistsError,
)
from zstore.storage.pool import Pool, Volume

logger = logging.getLogger(__name__)

# 64 GiB
DEFAULT_CAPACITY_BYTES = 64 * 1024 * 1024 * 1024


class MemoryVolume(Volume):
    """Volume held by a MemoryPool."""

    def __init__(self, pool: "MemoryPool", name: str, size_bytes: int):
        self._pool = pool
        self._name = name
        self._size_bytes = size_bytes

    @property
    def name(self) -> str:
        return self._name

    @property
    def size_bytes(self) -> int:
        return self._size_bytes

    def destroy(self) -> None:
        self._pool._destroy(self._name)


class MemoryPool(Pool):
    """
    Pool backed by process memory with a fixed byte capacity.

    Creating a volume provisions every parent dataset of its name, the way
    ``zfs create -p`` does, and parents remain after their last child volume
    is destroyed.
    """

    def __init__(self, name: str = "zstore", capacity_bytes: int = DEFAULT_CAPACITY_BYTES):
        self._name = name
        self.capacity_bytes = capacity_bytes
        self._volumes: Dict[str, MemoryVolume] = {}
        self._datasets: Set[str] = {name}
        self._lock = threading.Lock()
        logger.info(f"Memory pool '{name}' initialized (capacity: {capacity_bytes} bytes)")

    @property
    def name(self) -> str:
        return self._name

    @property
    def allocated_bytes(self) -> int:
        """Bytes currently allocated to volumes"""
        with self._lock:
            return sum(v.size_bytes for v in self._volumes.values())

    def create_volume(self, name: str, size_bytes: int) -> Volume:
        with self._lock:
            if name in self._volumes or name in self._datasets:
                raise VolumeExistsError(name)

            allocated = sum(v.size_bytes for v in self._volumes.values())
            if allocated + size_bytes > self.capacity_bytes:
                raise PoolOutOfSpaceError(self._name, size_bytes)

            self._datasets.update(self._parents(name))
            volume = MemoryVolume(self, name, size_bytes)
            self._volumes[name] = volume

        logger.debug(f"Created volume {name} ({size_bytes} bytes)")
        return volume

    def volume(self, name: str) -> Volume:
        with self._lock:
            volume = self._volumes.get(name)
        if volume is None:
            raise VolumeNotExistsError(name)
        return volume

    def list_volumes(self, bucket: str) -> List[Volume]:
        with self._lock:
            if bucket not in self._datasets:
                raise VolumeNotExistsError(bucket)

            prefix = bucket + "/"
            return [
                volume
                for name, volume in sorted(self._volumes.items())
                if name.startswith(prefix) and "/" not in name[len(prefix):]
            ]

    def _destroy(self, name: str) -> None:
        with self._lock:
            if name not in self._volumes:
                raise VolumeNotExistsError(name)

            # Recursive: drop the volume and anything nested beneath it
            prefix = name + "/"
            for child in [n for n in self._volumes if n.startswith(prefix)]:
                del self._volumes[child]
            self._datasets = {d for d in self._datasets if d != name and not d.startswith(prefix)}
            del self._volumes[name]

        logger.debug(f"Destroyed volume {name}")

    def _parents(self, name: str) -> List[str]:
        """Return every ancestor dataset of ``name`` below and including the pool"""
        parts = name.split("/")
        return ["/".join(parts[:i]) for i in range(1, len(parts))]
