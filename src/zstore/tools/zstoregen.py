"""
zstoregen: set up a temporary zpool for zstored using temporary files.

Meant for development and test hosts. Each vdev is a sparse file sized from
the storage size catalog, and the zpool is striped across all of them.
"""

import logging
import os
import sys
import tempfile
from typing import List, NoReturn, Optional, Sequence

from zstore.errors import (
    ZfsNotImplementedError,
    ZfsPermissionDeniedError,
    ZpoolNotExistsError,
    ZstoreError,
)
from zstore.storage.slugs import slug_size, slugs
from zstore.storage.zfs import create_zpool, get_zpool, is_enabled
from zstore.utils.logger import configure_logging

logger = logging.getLogger(__name__)


def generate_vdevs(
    count: int,
    size_bytes: int,
    directory: Optional[str] = None,
    prefix: str = "zstore",
) -> List[str]:
    """
    Create ``count`` sparse files of ``size_bytes`` each.

    Files already created are removed if a later one fails.

    Returns:
        Paths of the new files, in creation order
    """
    paths: List[str] = []
    try:
        for i in range(count):
            fd, path = tempfile.mkstemp(prefix=prefix, dir=directory)
            paths.append(path)
            try:
                os.ftruncate(fd, size_bytes)
            finally:
                os.close(fd)
            logger.info(f"  - [{i:02d}] {path}")
    except OSError:
        remove_vdevs(paths)
        raise
    return paths


def remove_vdevs(paths: Sequence[str]) -> None:
    """Delete vdev files, ignoring any that are already gone."""
    for path in paths:
        try:
            os.remove(path)
        except FileNotFoundError:
            continue


def fatal(message: str) -> NoReturn:
    logger.critical(message)
    sys.exit(1)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point for the zstoregen command."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Create a temporary, file-backed zpool for zstored",
        prog="zstoregen"
    )
    parser.add_argument(
        "-n",
        dest="count",
        type=int,
        default=1,
        help="number of temporary files to create for zpool"
    )
    parser.add_argument(
        "-s",
        dest="size",
        default="256M",
        help="size slug for each file to add to zpool"
    )
    parser.add_argument(
        "--pool",
        default="zstore",
        help="Name of the zpool to create (default: zstore)"
    )
    parser.add_argument(
        "--dir",
        default=None,
        help="Directory for the temporary files (default: system temp directory)"
    )
    parser.add_argument(
        "--zpool-command",
        default="zpool",
        help="Path to the zpool binary"
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Logging level"
    )

    args = parser.parse_args(argv)
    if args.count < 1:
        parser.error("-n must be at least 1")

    configure_logging(args.log_level.upper())

    try:
        enabled = is_enabled()
    except ZfsNotImplementedError as e:
        fatal(f"zstoregen does not run on the {e.platform!r} operating system")
    if not enabled:
        fatal("ZFS kernel module not loaded, exiting")

    size = slug_size(args.size)
    if size is None:
        fatal(f"invalid size slug: {args.size!r} [sizes: {', '.join(slugs())}]")

    try:
        get_zpool(args.pool, zpool_command=args.zpool_command)
    except ZpoolNotExistsError:
        pass
    except ZfsPermissionDeniedError:
        fatal("permission denied to ZFS virtual device, exiting")
    except ZstoreError as e:
        fatal(f"{e}, exiting")
    else:
        fatal(f"zpool {args.pool!r} already exists, exiting")

    logger.info(f"generating {args.count} temporary files, size {args.size}")
    try:
        vdevs = generate_vdevs(args.count, size, directory=args.dir, prefix=args.pool)
    except OSError as e:
        fatal(f"cannot create temporary files: {e}")

    try:
        create_zpool(args.pool, vdevs, zpool_command=args.zpool_command)
    except ZstoreError as e:
        remove_vdevs(vdevs)
        fatal(f"{e}, exiting")

    logger.info(f"created zpool {args.pool!r} [{args.count} x {args.size}]")


if __name__ == "__main__":
    main()
