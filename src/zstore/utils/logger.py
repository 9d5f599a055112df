"""
zstore logging setup

Library modules log through ``logging.getLogger(__name__)`` and never attach
handlers of their own. The zstored and zstoregen commands call
configure_logging once at startup, which owns every handler on the root
logger that zstore installs.
"""

import logging
from typing import List, Optional, Union

# Request handling attaches request_id through ``extra``
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"

# Handlers installed by the last configure_logging call
_handlers: List[logging.Handler] = []


class RequestIdFilter(logging.Filter):
    """Give records logged outside a request a placeholder request id."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = "-"
        return True


def configure_logging(
    level: Union[int, str] = logging.INFO,
    file_path: Optional[str] = None,
    format: str = DEFAULT_FORMAT,
) -> List[logging.Handler]:
    """
    Send zstore log records to stderr and, optionally, a file.

    Calling this again replaces the handlers installed by the previous call;
    handlers attached by anything else are left alone.

    Args:
        level: Log level, as a number or a name such as "INFO"
        file_path: Optional file that receives the same records
        format: Log format string

    Returns:
        The handlers now attached to the root logger
    """
    root_logger = logging.getLogger()
    for handler in _handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _handlers.clear()

    root_logger.setLevel(level)

    _handlers.append(logging.StreamHandler())
    if file_path:
        _handlers.append(logging.FileHandler(file_path))

    formatter = logging.Formatter(format)
    for handler in _handlers:
        handler.setFormatter(formatter)
        handler.addFilter(RequestIdFilter())
        root_logger.addHandler(handler)

    return list(_handlers)
