"""
Core Components

Configuration and logging.
"""

from resultset.core.config import Settings, get_settings
from resultset.core.logging import configure_logging, trace_statement

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "trace_statement",
]
