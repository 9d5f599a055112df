"""
ZFS storage pool backend.

Implements Pool and Volume on top of a ZFS zpool and its zvols by invoking the
``zfs`` and ``zpool`` command line tools. ZFS reports failures only through
diagnostic text on stderr, so this module is the single place where that text
is matched and turned into zstore error types.

Dataset layout:

    zstore/                       # the zpool
    zstore/<bucket>/              # per-client bucket, created by `zfs create -p`
    zstore/<bucket>/<volume>      # zvol
"""

import logging
import os
import subprocess
import sys
from dataclasses import dataclass
from typing import List, Optional, Sequence

from zstore.errors import (
    BackendError,
    PoolOutOfSpaceError,
    VolumeExistsError,
    VolumeNotExistsError,
    ZfsNotEnabledError,
    ZfsNotImplementedError,
    ZfsPermissionDeniedError,
    ZpoolNotExistsError,
    ZpoolUnhealthyError,
)
from zstore.storage.pool import Pool, Volume

logger = logging.getLogger(__name__)

# FreeBSD or Linux ZFS virtual device
DEV_ZFS = "/dev/zfs"

DATASET_VOLUME = "volume"
ZPOOL_ONLINE = "ONLINE"

DEFAULT_TIMEOUT_SEC = 30


class ZfsCommandError(BackendError):
    """A zfs or zpool command exited non-zero."""

    def __init__(self, args: Sequence[str], returncode: int, stderr: str):
        super().__init__(
            message=f"Command '{' '.join(args)}' failed with exit code {returncode}",
            detail=stderr.strip(),
        )
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr


def is_permission_denied(err: Exception) -> bool:
    """Check if an error came from lacking permission to open the ZFS device."""
    if not isinstance(err, ZfsCommandError):
        return False
    return f"Unable to open {DEV_ZFS}: Permission denied." in err.stderr


def is_zpool_not_exists(err: Exception, pool: str) -> bool:
    """Check if an error came from the named zpool not existing."""
    if not isinstance(err, ZfsCommandError):
        return False
    return f"cannot open '{pool}': no such pool" in err.stderr


def is_dataset_not_exists(err: Exception) -> bool:
    """Check if an error came from a missing ZFS dataset."""
    if not isinstance(err, ZfsCommandError):
        return False
    return "dataset does not exist" in err.stderr


def is_dataset_exists(err: Exception) -> bool:
    """Check if an error came from creating a dataset that already exists."""
    if not isinstance(err, ZfsCommandError):
        return False
    return "dataset already exists" in err.stderr


def is_out_of_space(err: Exception) -> bool:
    """Check if an error came from the zpool being too full."""
    if not isinstance(err, ZfsCommandError):
        return False
    return "out of space" in err.stderr


def run_command(args: Sequence[str], timeout_sec: int = DEFAULT_TIMEOUT_SEC) -> str:
    """
    Run a ZFS command and return its stdout.

    Args:
        args: Command and arguments, e.g. ["zfs", "list", ...]
        timeout_sec: Seconds before the command is abandoned

    Returns:
        Decoded stdout

    Raises:
        ZfsCommandError: If the command exits non-zero
        BackendError: If the command cannot be started or times out
    """
    logger.debug(f"Executing: {' '.join(args)}")
    try:
        result = subprocess.run(
            list(args),
            capture_output=True,
            text=True,
            timeout=timeout_sec,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise BackendError(
            f"Command '{' '.join(args)}' timed out after {timeout_sec}s",
            detail=str(e),
        )
    except OSError as e:
        raise BackendError(
            f"Command '{' '.join(args)}' could not be started",
            detail=str(e),
        )

    if result.returncode != 0:
        raise ZfsCommandError(args, result.returncode, result.stderr or "")
    return result.stdout


@dataclass
class Zpool:
    """Zpool status as reported by `zpool list`."""

    name: str
    size: int
    allocated: int
    health: str

    @property
    def percent_used(self) -> int:
        if not self.size:
            return 0
        return int(self.allocated / self.size * 100)


def is_enabled(dev_path: str = DEV_ZFS) -> bool:
    """
    Verify that the FreeBSD or Linux ZFS kernel module is loaded.

    Raises:
        ZfsNotImplementedError: On operating systems zstored does not support
    """
    if not sys.platform.startswith(("linux", "freebsd")):
        raise ZfsNotImplementedError(sys.platform)
    return os.path.exists(dev_path)


def get_zpool(
    name: str,
    zpool_command: str = "zpool",
    timeout_sec: int = DEFAULT_TIMEOUT_SEC,
) -> Zpool:
    """
    Fetch status for a zpool.

    Raises:
        ZfsPermissionDeniedError: If the ZFS device cannot be opened
        ZpoolNotExistsError: If the zpool does not exist
        BackendError: For any other failure
    """
    try:
        output = run_command(
            [zpool_command, "list", "-H", "-p", "-o", "name,size,allocated,health", name],
            timeout_sec=timeout_sec,
        )
    except ZfsCommandError as e:
        if is_permission_denied(e):
            raise ZfsPermissionDeniedError(detail=e.detail)
        if is_zpool_not_exists(e, name):
            raise ZpoolNotExistsError(name, detail=e.detail)
        raise

    fields = output.strip().split("\t")
    if len(fields) != 4:
        raise BackendError(f"Unexpected zpool list output for '{name}'", detail=output)

    try:
        return Zpool(
            name=fields[0],
            size=int(fields[1]),
            allocated=int(fields[2]),
            health=fields[3],
        )
    except ValueError:
        raise BackendError(f"Unexpected zpool list output for '{name}'", detail=output)


def create_zpool(
    name: str,
    vdevs: Sequence[str],
    zpool_command: str = "zpool",
    timeout_sec: int = DEFAULT_TIMEOUT_SEC,
) -> None:
    """
    Create a zpool striped across the given vdevs (devices or files).

    Raises:
        ZfsPermissionDeniedError: If the ZFS device cannot be opened
        BackendError: For any other failure
    """
    try:
        run_command([zpool_command, "create", name, *vdevs], timeout_sec=timeout_sec)
    except ZfsCommandError as e:
        if is_permission_denied(e):
            raise ZfsPermissionDeniedError(detail=e.detail)
        raise
    logger.info(f"Created zpool {name} on {len(vdevs)} vdev(s)")


class Zvol(Volume):
    """ZFS zvol; block storage which may be allocated and released."""

    def __init__(self, pool: "ZfsPool", name: str, size_bytes: int):
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
        """Destroy this zvol and all of its descendants (`zfs destroy -r`)."""
        try:
            self._pool._zfs("destroy", "-r", self._name)
        except ZfsCommandError as e:
            if is_dataset_not_exists(e):
                raise VolumeNotExistsError(self._name)
            raise
        logger.info(f"Destroyed zvol {self._name}")


class ZfsPool(Pool):
    """
    ZFS-backed Pool. Volumes are zvols nested under a per-client bucket
    dataset.
    """

    # Columns requested from `zfs list`
    LIST_COLUMNS = "name,type,volsize"

    def __init__(
        self,
        name: str = "zstore",
        zfs_command: str = "zfs",
        timeout_sec: int = DEFAULT_TIMEOUT_SEC,
    ):
        self._name = name
        self.zfs_command = zfs_command
        self.timeout_sec = timeout_sec

    @property
    def name(self) -> str:
        return self._name

    def create_volume(self, name: str, size_bytes: int) -> Volume:
        # -p creates the bucket dataset on first use
        try:
            self._zfs("create", "-p", "-V", str(size_bytes), name)
        except ZfsCommandError as e:
            if is_out_of_space(e):
                raise PoolOutOfSpaceError(self._name, size_bytes)
            if is_dataset_exists(e):
                raise VolumeExistsError(name)
            raise

        logger.info(f"Created zvol {name} ({size_bytes} bytes)")
        return self.volume(name)

    def volume(self, name: str) -> Volume:
        rows = self._list(name)
        if not rows:
            raise VolumeNotExistsError(name)

        row_name, row_type, volsize = rows[0]
        # Filesystem datasets (such as buckets) are not volumes
        if row_type != DATASET_VOLUME:
            raise VolumeNotExistsError(name)

        return Zvol(self, row_name, volsize)

    def list_volumes(self, bucket: str) -> List[Volume]:
        # Ensure the bucket itself exists before enumerating children
        if not self._list(bucket):
            raise VolumeNotExistsError(bucket)

        rows = self._list(bucket, "-r", "-d", "1", "-t", DATASET_VOLUME)
        return [
            Zvol(self, row_name, volsize)
            for row_name, row_type, volsize in rows
            if row_type == DATASET_VOLUME and row_name != bucket
        ]

    def _list(self, name: str, *flags: str) -> List[tuple]:
        """Run `zfs list` for a dataset, returning (name, type, volsize) rows."""
        try:
            output = self._zfs("list", "-H", "-p", *flags, "-o", self.LIST_COLUMNS, name)
        except ZfsCommandError as e:
            if is_dataset_not_exists(e):
                raise VolumeNotExistsError(name)
            raise

        rows = []
        for line in output.splitlines():
            if not line.strip():
                continue
            fields = line.split("\t")
            if len(fields) != 3:
                raise BackendError(f"Unexpected zfs list output for '{name}'", detail=line)
            row_name, row_type, volsize = fields
            # volsize is "-" for anything that is not a volume
            rows.append((row_name, row_type, int(volsize) if volsize.isdecimal() else 0))
        return rows

    def _zfs(self, *args: str) -> str:
        return run_command([self.zfs_command, *args], timeout_sec=self.timeout_sec)


def open_zpool(
    name: str,
    zfs_command: str = "zfs",
    zpool_command: str = "zpool",
    timeout_sec: int = DEFAULT_TIMEOUT_SEC,
) -> ZfsPool:
    """
    Verify ZFS is usable and the named zpool is online, then wrap it.

    Building a zpool on startup is too risky, so the zpool must already exist.

    Raises:
        ZfsNotImplementedError, ZfsNotEnabledError, ZfsPermissionDeniedError,
        ZpoolNotExistsError, ZpoolUnhealthyError, BackendError
    """
    if not is_enabled():
        raise ZfsNotEnabledError()

    zpool = get_zpool(name, zpool_command=zpool_command, timeout_sec=timeout_sec)

    gib = 1024 * 1024 * 1024
    logger.info(
        f"zpool: {zpool.name} [{zpool.health}] "
        f"[{zpool.allocated / gib:.3f} / {zpool.size / gib:.3f} GB, {zpool.percent_used:03d}%]"
    )

    if zpool.health != ZPOOL_ONLINE:
        raise ZpoolUnhealthyError(zpool.name, zpool.health)

    return ZfsPool(name=zpool.name, zfs_command=zfs_command, timeout_sec=timeout_sec)
