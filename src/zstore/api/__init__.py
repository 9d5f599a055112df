"""
zstore API module

FastAPI application and storage request handling.
"""

from zstore.api.rest import create_app, register_routes, register_exception_handlers
from zstore.api.storage import (
    StorageHandler,
    StorageRequest,
    StorageResponse,
    StorageResult,
    VolumeInfo,
    ErrorResponse,
)

__all__ = [
    "create_app",
    "register_routes",
    "register_exception_handlers",
    "StorageHandler",
    "StorageRequest",
    "StorageResponse",
    "StorageResult",
    "VolumeInfo",
    "ErrorResponse",
]
