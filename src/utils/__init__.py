"""Utility modules."""

from .logging_setup import (
    setup_category_logging,
    flush_all_loggers,
    shutdown_logging,
    set_log_timezone,
    get_logger,
)
from .trace_context import (
    get_cycle_id,
    new_cycle,
)
from .perf_logger import (
    log_timing,
    log_timing_async,
)
from .timezone import DisplayTimezone, now_utc, age_seconds

__all__ = [
    # Logging setup
    "setup_category_logging",
    "flush_all_loggers",
    "shutdown_logging",
    "set_log_timezone",
    "get_logger",
    # Trace context
    "get_cycle_id",
    "new_cycle",
    # Performance logging
    "log_timing",
    "log_timing_async",
    # Time
    "DisplayTimezone",
    "now_utc",
    "age_seconds",
]
