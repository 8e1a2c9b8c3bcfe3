"""
Cycle tracking for correlating the log lines of one controller command.

Every command the heatmap controller applies (load, refresh, resize,
search, select, back, dimension change) opens a cycle. The cycle carries a
short random id plus the command name; both end up in every log record
emitted while the command runs, including the perf timings of its layout.

Usage:
    with new_cycle("Search") as cycle_id:
        state = navigation.search(state, term)

    logger.info(f"[{get_cycle_id()}] laid out {n} tiles")
"""

from __future__ import annotations

import itertools
import secrets
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Generator, Optional

NO_CYCLE = "------"


@dataclass(frozen=True)
class Cycle:
    id: str
    label: str
    seq: int


_current: ContextVar[Optional[Cycle]] = ContextVar("heatmap_cycle", default=None)
_seq = itertools.count(1)


def get_cycle() -> Optional[Cycle]:
    return _current.get()


def get_cycle_id() -> str:
    """Id of the running cycle, or NO_CYCLE outside any command."""
    cycle = _current.get()
    return cycle.id if cycle is not None else NO_CYCLE


def get_cycle_label() -> str:
    cycle = _current.get()
    return cycle.label if cycle is not None else ""


@contextmanager
def new_cycle(label: str = "") -> Generator[str, None, None]:
    """
    Open a cycle for the duration of the block.

    Cycles nest: a command applied while another one is running gets its
    own id, and the outer cycle is current again on exit.

    Yields:
        The 6-hex cycle id.
    """
    cycle = Cycle(id=secrets.token_hex(3), label=label, seq=next(_seq))
    token = _current.set(cycle)
    try:
        yield cycle.id
    finally:
        _current.reset(token)
