"""
Category logging for the heatmap.

Every module asks for `get_logger(__name__)` and is routed to one of four
category loggers under the `heatmap` root:

- system: startup, config, controller commands, navigation, CLI
- data:   quote fetches, catalog reads/writes, AUM refresh, stale fallbacks
- layout: squarified layout, tile composition, rendering
- perf:   timings from perf_logger (tile_compose, quote_fetch, ...)

After `setup_category_logging()` each category writes JSON lines to its own
rotating file (`{log_dir}/heatmap_{env}_{category}.log`) through a queue
listener, so disk I/O never runs on the event loop thread. Console output
is optional and goes through rich.

The cycle id of the running controller command is stamped on every record
at emission time (the listener thread has no access to the caller's
context), so all lines of one command can be grepped together.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime
from pathlib import Path
from queue import Queue
from typing import Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

from rich.console import Console
from rich.logging import RichHandler

from .trace_context import get_cycle_id, get_cycle_label

LOGGER_ROOT = "heatmap"

CATEGORIES: Tuple[str, ...] = ("system", "data", "layout", "perf")

# First matching prefix wins, so more specific paths come first
MODULE_ROUTING: List[Tuple[str, str]] = [
    ("src.infrastructure.quotes", "data"),
    ("src.application.scheduling", "data"),
    ("src.domain.heatmap.layout", "layout"),
    ("src.domain.heatmap.tiles", "layout"),
    ("src.infrastructure.reporting", "layout"),
]

DEFAULT_CATEGORY = "system"

MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 5

_log_timezone: Optional[ZoneInfo] = None
_listeners: List[logging.handlers.QueueListener] = []


def category_for(module_name: str) -> str:
    """Category a module logs under (system when nothing matches)."""
    for prefix, category in MODULE_ROUTING:
        if module_name.startswith(prefix):
            return category
    return DEFAULT_CATEGORY


def get_logger(module_name: str) -> logging.Logger:
    """
    Logger for `module_name`, routed to its category.

    Example:
        logger = get_logger(__name__)
        logger.info("Catalog loaded")
    """
    return logging.getLogger(f"{LOGGER_ROOT}.{category_for(module_name)}")


def set_log_timezone(tz: Optional[str] = None) -> None:
    """Timezone for log timestamps; None or "local" means system local time."""
    global _log_timezone
    _log_timezone = None if tz in (None, "local") else ZoneInfo(tz)


def _timestamp(created: float) -> str:
    if _log_timezone is not None:
        return datetime.fromtimestamp(created, _log_timezone).isoformat()
    return datetime.fromtimestamp(created).astimezone().isoformat()


class CycleFilter(logging.Filter):
    """Stamps the current cycle id, command name and exception text on the record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "cycle"):
            record.cycle = get_cycle_id()
            record.command = get_cycle_label()
        if record.exc_info and not getattr(record, "exception", None):
            record.exception = logging.Formatter().formatException(record.exc_info)
        return True


class _MessageOnly(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


class JSONLineFormatter(logging.Formatter):
    """One JSON object per line: ts, level, cat, cycle, cmd, msg [, data, exception]."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": _timestamp(record.created),
            "level": record.levelname,
            "cat": record.name.rsplit(".", 1)[-1],
            "cycle": getattr(record, "cycle", get_cycle_id()),
            "msg": record.getMessage(),
        }
        command = getattr(record, "command", "")
        if command:
            entry["cmd"] = command
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data
        exception = getattr(record, "exception", None)
        if exception:
            entry["exception"] = exception
        return json.dumps(entry, default=str)


def _file_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    handler.setFormatter(JSONLineFormatter())
    handler.setLevel(level)
    return handler


def _console_handler(verbose: bool) -> logging.Handler:
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=verbose,
    )
    handler.setFormatter(logging.Formatter("[%(cycle)s] %(message)s"))
    handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    return handler


def setup_category_logging(
    env: str,
    log_dir: str = "./logs",
    level: str = "INFO",
    console: bool = False,
    verbose: bool = False,
) -> Dict[str, logging.Logger]:
    """
    Configure the four category loggers.

    Safe to call again: previous handlers and listeners are torn down first.

    Args:
        env: Environment name, part of the file names (dev/prod).
        log_dir: Directory for the category files.
        level: Level for all categories (ignored when verbose).
        console: Also log to stderr.
        verbose: DEBUG everywhere.

    Returns:
        Category name -> logger.
    """
    shutdown_logging()

    effective = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    loggers: Dict[str, logging.Logger] = {}
    for category in CATEGORIES:
        logger = logging.getLogger(f"{LOGGER_ROOT}.{category}")
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)
        for log_filter in logger.filters[:]:
            logger.removeFilter(log_filter)

        logger.setLevel(effective)
        logger.propagate = False
        logger.addFilter(CycleFilter())

        queue: Queue = Queue(-1)
        queue_handler = logging.handlers.QueueHandler(queue)
        queue_handler.setFormatter(_MessageOnly())
        logger.addHandler(queue_handler)

        listener = logging.handlers.QueueListener(
            queue,
            _file_handler(directory / f"{LOGGER_ROOT}_{env}_{category}.log", effective),
            respect_handler_level=True,
        )
        listener.start()
        _listeners.append(listener)

        if console:
            logger.addHandler(_console_handler(verbose))

        loggers[category] = logger

    return loggers


def flush_all_loggers() -> None:
    """Flush handlers attached directly to the category loggers."""
    for category in CATEGORIES:
        for handler in logging.getLogger(f"{LOGGER_ROOT}.{category}").handlers:
            handler.flush()


def shutdown_logging() -> None:
    """Stop the queue listeners; queued records are written before this returns."""
    while _listeners:
        listener = _listeners.pop()
        listener.stop()
        for handler in listener.handlers:
            handler.close()
