"""
Utility helpers for the health sidecar
"""

from .logger import (
    get_logger,
    configure_logger,
    parse_level,
)

__all__ = [
    'get_logger',
    'configure_logger',
    'parse_level',
]
