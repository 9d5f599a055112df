"""
zstore command line tools

Utilities for preparing hosts to run zstored.
"""

from zstore.tools.zstoregen import generate_vdevs, remove_vdevs

__all__ = [
    "generate_vdevs",
    "remove_vdevs",
]
