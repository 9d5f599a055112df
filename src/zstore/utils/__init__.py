"""
zstore utilities

Logging helpers.
"""

from zstore.utils.logger import (
    configure_logging,
    RequestIdFilter,
    DEFAULT_FORMAT,
)

__all__ = [
    "configure_logging",
    "RequestIdFilter",
    "DEFAULT_FORMAT",
]
