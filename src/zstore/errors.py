"""
zstore error definitions

Standard exceptions used across the zstore project. Pool implementations
translate backend diagnostics into these types so the HTTP layer only ever
inspects the exception class, never backend error text.
"""

from typing import Optional, Dict, Any


class ZstoreError(Exception):
    """Base exception for all zstore errors"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "UNKNOWN"
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class VolumeNotExistsError(ZstoreError):
    """No volume or bucket exists at the requested name"""

    def __init__(self, name: str):
        super().__init__(
            message=f"Volume '{name}' not found",
            error_code="VOL_NOT_FOUND"
        )
        self.name = name


class VolumeExistsError(ZstoreError):
    """A volume already exists at the requested name"""

    def __init__(self, name: str):
        super().__init__(
            message=f"Volume '{name}' already exists",
            error_code="VOL_EXISTS"
        )
        self.name = name


class PoolOutOfSpaceError(ZstoreError):
    """Pool lacks the capacity to allocate a new volume"""

    def __init__(self, pool: str, size_bytes: int):
        super().__init__(
            message=f"Pool '{pool}' out of space for {size_bytes} byte volume",
            error_code="POOL_OUT_OF_SPACE"
        )
        self.pool = pool
        self.size_bytes = size_bytes


class InvalidSizeError(ZstoreError):
    """Requested size slug is missing or not in the catalog"""

    def __init__(self, slug: Optional[str] = None):
        super().__init__(
            message=f"Invalid size slug: {slug!r}",
            error_code="INVALID_SIZE"
        )
        self.slug = slug


class AddressParseError(ZstoreError):
    """Client address could not be split into host and port"""

    def __init__(self, address: Optional[str], reason: str):
        super().__init__(
            message=f"Cannot parse client address {address!r}: {reason}",
            error_code="ADDRESS_PARSE"
        )
        self.address = address
        self.reason = reason


class BackendError(ZstoreError):
    """Opaque storage backend failure.

    ``detail`` holds backend diagnostics for server-side logging only.
    """

    def __init__(self, message: str, detail: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", "BACKEND_ERROR"),
            details=kwargs,
        )
        self.detail = detail


class ZfsNotImplementedError(BackendError):
    """ZFS is not supported on this operating system"""

    def __init__(self, platform: str):
        super().__init__(
            message=f"zstored does not run on the '{platform}' operating system",
            error_code="ZFS_NOT_IMPLEMENTED",
        )
        self.platform = platform


class ZfsNotEnabledError(BackendError):
    """ZFS kernel module is not loaded"""

    def __init__(self):
        super().__init__(
            message="ZFS kernel module not loaded",
            error_code="ZFS_NOT_ENABLED",
        )


class ZfsPermissionDeniedError(BackendError):
    """Current user cannot open the ZFS virtual device"""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            message="Permission denied to ZFS virtual device",
            detail=detail,
            error_code="ZFS_PERMISSION_DENIED",
        )


class ZpoolNotExistsError(BackendError):
    """Required zpool does not exist"""

    def __init__(self, pool: str, detail: Optional[str] = None):
        super().__init__(
            message=f"Required zpool '{pool}' does not exist",
            detail=detail,
            error_code="ZPOOL_NOT_FOUND",
        )
        self.pool = pool


class ZpoolUnhealthyError(BackendError):
    """Zpool is not ONLINE"""

    def __init__(self, pool: str, health: str):
        super().__init__(
            message=f"Zpool '{pool}' unhealthy, status: '{health}'",
            error_code="ZPOOL_UNHEALTHY",
        )
        self.pool = pool
        self.health = health
