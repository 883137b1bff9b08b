"""Observability module for Dream Playground.

Provides structured logging for the CLI and the dream pipeline.
"""

from dreamplayground.observability.logging import (
    bind_session,
    clear_session,
    close_file_logging,
    configure_logging,
    get_logger,
    get_logs_dir,
)

__all__ = [
    "bind_session",
    "clear_session",
    "close_file_logging",
    "configure_logging",
    "get_logger",
    "get_logs_dir",
]
