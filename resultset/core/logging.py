"""
Logging Configuration

Module loggers are created with logging.getLogger(__name__). Statement
tracing (SQL text plus bind values) goes through the "resultset.trace"
logger and is only emitted when settings.trace is on.
"""

import logging
from typing import Any, Optional, Sequence

from resultset.core import config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

trace_logger = logging.getLogger("resultset.trace")


def configure_logging(level: Optional[str] = None) -> None:
    """Install the default handler/format for the resultset loggers."""
    level_name = (level or config.settings.log_level).upper()
    logging.basicConfig(
        level=logging.WARNING,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
    logging.getLogger("resultset").setLevel(level_name)
    if config.settings.trace:
        trace_logger.setLevel(logging.INFO)


def trace_statement(sql: str, params: Sequence[Any], engine: str = "") -> None:
    """Log a statement about to be executed, if tracing is enabled."""
    if not config.settings.trace:
        return
    prefix = f"[{engine}] " if engine else ""
    trace_logger.info(f"{prefix}{sql} | binds={list(params)!r}")
