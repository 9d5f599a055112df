"""
Storage pool abstraction for zstore

Provides the capability interfaces the HTTP layer programs against:
- Pool: a storage pool from which volumes are created, typically a ZFS zpool
- Volume: a block storage volume allocated from a Pool, typically a zvol

Implementations are swappable so the HTTP layer can be tested against an
in-memory pool. Every implementation raises only the errors defined in
zstore.errors:

- VolumeNotExistsError: no volume (or bucket) at that name
- VolumeExistsError: create raced with another create of the same name
- PoolOutOfSpaceError: insufficient capacity for the requested size
- BackendError: anything else
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List


class Volume(ABC):
    """A block storage volume allocated from a Pool."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Full hierarchical volume name, rooted at the pool name"""

    @property
    @abstractmethod
    def size_bytes(self) -> int:
        """Volume size in bytes"""

    @abstractmethod
    def destroy(self) -> None:
        """
        Destroy this volume together with any descendant resources.

        Raises:
            VolumeNotExistsError: If the volume no longer exists
            BackendError: If the backend failed part way; the volume may
                still be present
        """

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging"""
        return {"name": self.name, "size_bytes": self.size_bytes}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, size_bytes={self.size_bytes})"


class Pool(ABC):
    """
    A storage pool from which Volumes can be created.

    A single Pool instance is shared by all in-flight requests. Implementations
    must make a concurrent ``volume()`` probe followed by ``create_volume()``
    safe, either by atomic create-if-absent semantics or by raising
    VolumeExistsError from ``create_volume``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Pool name; every volume name is rooted under it"""

    @abstractmethod
    def create_volume(self, name: str, size_bytes: int) -> Volume:
        """
        Create a new volume.

        Args:
            name: Full volume name, e.g. "zstore/<bucket>/disk1"
            size_bytes: Requested size in bytes

        Returns:
            The created Volume

        Raises:
            VolumeExistsError: If a volume already exists at ``name``
            PoolOutOfSpaceError: If the pool cannot hold ``size_bytes``
            BackendError: For any other failure
        """

    @abstractmethod
    def volume(self, name: str) -> Volume:
        """
        Fetch a volume by its full name.

        Raises:
            VolumeNotExistsError: If nothing exists at ``name`` or the
                dataset there is not a volume
            BackendError: For any other failure
        """

    @abstractmethod
    def list_volumes(self, bucket: str) -> List[Volume]:
        """
        List the volumes which are direct children of a bucket.

        A provisioned bucket with no volumes yields an empty list.

        Raises:
            VolumeNotExistsError: If the bucket was never provisioned
            BackendError: For any other failure
        """
