"""Structured logging for Dream Playground.

Console output goes to stderr through rich, gated by ``-v``. With
``--log-dir`` every event is also appended to ``debug.jsonl`` regardless of
verbosity. Events emitted while a dream session is active carry its
``session_id`` so one dream can be followed through the file.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003 - used at runtime for path operations
from typing import TYPE_CHECKING, Any

import structlog
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from structlog.typing import Processor

JSONL_FILENAME = "debug.jsonl"

# Console level per -v count; anything higher is DEBUG
CONSOLE_LEVELS = {0: logging.WARNING, 1: logging.INFO}

# SDK loggers that flood DEBUG output with transport chatter
NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "urllib3",
    "google_genai",
    "google.genai",
    "langchain",
    "langchain_core",
    "asyncio",
)

_configured = False
_file_handler: logging.FileHandler | None = None
_logs_dir: Path | None = None


def _record_to_entry(record: logging.LogRecord) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "level": record.levelname,
        "logger": record.name,
    }
    if not isinstance(record.msg, dict):
        entry["message"] = record.getMessage()
        return entry

    # structlog hands over its event dict as the record message
    context = {k: v for k, v in record.msg.items() if k not in ("level", "timestamp")}
    entry["message"] = context.pop("event", "")
    entry.update(context)
    return entry


class JSONLFileHandler(logging.FileHandler):
    """Append one JSON object per record."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = json.dumps(_record_to_entry(record), default=str)
            if self.stream:
                self.stream.write(line + "\n")
                self.stream.flush()
        except Exception:
            self.handleError(record)


def _console_handler(verbosity: int) -> RichHandler:
    return RichHandler(
        console=Console(stderr=True),
        level=CONSOLE_LEVELS.get(verbosity, logging.DEBUG),
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=verbosity >= 2,
        show_time=verbosity >= 1,
        show_path=verbosity >= 2,
    )


def configure_logging(
    verbosity: int = 0,
    log_to_file: bool = False,
    log_dir: Path | None = None,
) -> None:
    """Configure stdlib logging and structlog. Safe to call again.

    Args:
        verbosity: 0=WARNING (default), 1=INFO, 2+=DEBUG on the console.
        log_to_file: Also write every event to ``log_dir/debug.jsonl``.
        log_dir: Directory for the JSONL file; created if missing.

    Raises:
        ValueError: If log_to_file=True but log_dir is not provided.
    """
    global _configured, _file_handler, _logs_dir

    if log_to_file and log_dir is None:
        raise ValueError("log_dir is required when log_to_file=True")

    close_file_logging()
    handlers: list[logging.Handler] = [_console_handler(verbosity)]

    if log_to_file and log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        _file_handler = JSONLFileHandler(str(log_dir / JSONL_FILENAME), mode="a")
        _file_handler.setLevel(logging.DEBUG)
        handlers.append(_file_handler)
        _logs_dir = log_dir
    else:
        _logs_dir = None

    # The file handler wants everything; the console handler filters itself
    root_level = logging.DEBUG if (verbosity > 0 or log_to_file) else logging.WARNING
    logging.basicConfig(level=root_level, format="%(message)s", handlers=handlers, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]
    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Return a structlog logger, configuring defaults on first use."""
    if not _configured:
        configure_logging()
    logger: structlog.typing.FilteringBoundLogger = structlog.get_logger(name)
    return logger


def bind_session(description_length: int) -> str:
    """Tag subsequent events with a fresh session id and return it."""
    session_id = uuid.uuid4().hex[:8]
    structlog.contextvars.bind_contextvars(
        session_id=session_id, description_length=description_length
    )
    return session_id


def clear_session() -> None:
    structlog.contextvars.unbind_contextvars("session_id", "description_length")


def get_logs_dir() -> Path | None:
    """Return the JSONL directory if file logging is enabled."""
    return _logs_dir


def close_file_logging() -> None:
    """Close the JSONL handler, if any."""
    global _file_handler
    if _file_handler is not None:
        _file_handler.close()
        _file_handler = None
