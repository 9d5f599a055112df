"""
Volume size catalog.

Size slugs are short labels such as ``256M`` or ``1G`` which map to a fixed
byte count. Clients may only request sizes present in the catalog.
"""

from typing import Dict, Iterable, List, Optional, Tuple

# Common size constants for volume creation
MB = 1 * 1024 * 1024
GB = 1024 * MB

# Available slugs and their sizes in bytes
STORAGE_SIZES: Dict[str, int] = {
    "256M": 256 * MB,
    "512M": 512 * MB,
    "1G": 1 * GB,
    "2G": 2 * GB,
    "4G": 4 * GB,
    "8G": 8 * GB,
}

# Byte suffix precedence used to order slugs
SUFFIX_PRECEDENCE: Dict[str, int] = {
    "B": 0,
    "K": 1,
    "M": 2,
    "G": 3,
    "T": 4,
    "P": 5,
    "E": 6,
    "Z": 7,
    "Y": 8,
}


def slug_size(slug: str) -> Optional[int]:
    """
    Look up the size in bytes of a slug.

    Only exact catalog keys match; there is no prefix or case folding.

    Args:
        slug: Size slug, e.g. "512M"

    Returns:
        Size in bytes, or None if the slug is not in the catalog
    """
    return STORAGE_SIZES.get(slug)


def slug_sort_key(slug: str) -> Tuple[int, int]:
    """
    Sort key for a size slug: suffix precedence first, then magnitude.

    Raises:
        ValueError: If the slug has an unknown suffix or a non-numeric
            magnitude. Slugs come from a hand-written table, so this is a
            programming error rather than bad client input.
    """
    suffix = slug[-1:]
    if suffix not in SUFFIX_PRECEDENCE:
        raise ValueError(f"unknown size slug suffix: {slug!r}")

    magnitude = slug[:-1]
    if not magnitude.isdecimal():
        raise ValueError(f"invalid size slug magnitude: {slug!r}")

    return SUFFIX_PRECEDENCE[suffix], int(magnitude)


def sort_slugs(slugs: Iterable[str]) -> List[str]:
    """Return slugs in ascending size order."""
    return sorted(slugs, key=slug_sort_key)


def slugs() -> List[str]:
    """Return every catalog slug in ascending size order."""
    return sort_slugs(STORAGE_SIZES)
