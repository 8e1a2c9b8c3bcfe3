"""
Timing logs for the heatmap's two latency-sensitive paths.

- tile_compose: grouping + squarified layout + coloring for one render.
  Runs on the event loop thread, so it must stay well under a frame.
- quote_fetch: one full catalog fetch against the quote endpoint,
  batches and retries included.

Each timing goes to the `heatmap.perf` logger tagged with the current
cycle id. The level escalates with the operation's thresholds:
DEBUG below warn, WARNING from warn, ERROR from error.

Usage:
    with log_timing("tile_compose") as ctx:
        tiles = build_tiles(state, bounds)
        ctx["tiles"] = len(tiles)
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Dict, Generator, Optional

from .trace_context import get_cycle_id, get_cycle_label

PERF_LOGGER_NAME = "heatmap.perf"


@dataclass(frozen=True)
class Thresholds:
    warn_ms: float
    error_ms: float


OPERATION_THRESHOLDS: Dict[str, Thresholds] = {
    "tile_compose": Thresholds(warn_ms=100.0, error_ms=500.0),
    "quote_fetch": Thresholds(warn_ms=5000.0, error_ms=20000.0),
    "aum_refresh": Thresholds(warn_ms=120000.0, error_ms=600000.0),
}

DEFAULT_THRESHOLDS = Thresholds(warn_ms=500.0, error_ms=2000.0)


def thresholds_for(operation: str) -> Thresholds:
    return OPERATION_THRESHOLDS.get(operation, DEFAULT_THRESHOLDS)


def _level_for(duration_ms: float, thresholds: Thresholds) -> int:
    if duration_ms >= thresholds.error_ms:
        return logging.ERROR
    if duration_ms >= thresholds.warn_ms:
        return logging.WARNING
    return logging.DEBUG


def _record(operation: str, started: float, context: Dict[str, Any]) -> None:
    duration_ms = (time.perf_counter() - started) * 1000
    level = _level_for(duration_ms, thresholds_for(operation))
    cycle_id = get_cycle_id()

    data = {"operation": operation, "duration_ms": round(duration_ms, 2), **context}
    command = get_cycle_label()
    if command:
        data["command"] = command

    marker = " (slow)" if level >= logging.WARNING else ""
    logging.getLogger(PERF_LOGGER_NAME).log(
        level,
        f"[{cycle_id}] {operation}: {duration_ms:.1f}ms{marker}",
        extra={"data": data},
    )


@contextmanager
def log_timing(
    operation: str, extra: Optional[Dict[str, Any]] = None
) -> Generator[Dict[str, Any], None, None]:
    """
    Time the block and log it under `operation`.

    Yields:
        Dict the block can fill with context (tile count, batch count...)
        that is attached to the log record.
    """
    context = dict(extra or {})
    started = time.perf_counter()
    try:
        yield context
    finally:
        _record(operation, started, context)


@asynccontextmanager
async def log_timing_async(
    operation: str, extra: Optional[Dict[str, Any]] = None
) -> AsyncGenerator[Dict[str, Any], None]:
    """log_timing() for blocks that await."""
    context = dict(extra or {})
    started = time.perf_counter()
    try:
        yield context
    finally:
        _record(operation, started, context)
