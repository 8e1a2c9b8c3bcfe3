"""
Trigger scheduling for the heatmap controller.

Debouncer:
    Collapses bursts of events (search keystrokes, resize) into a single
    call. Each trigger cancels the pending timer and arms a new one, so
    only the latest arguments are delivered (last-write-wins).

RefreshScheduler:
    Drives the data triggers. The initial load is retried every
    ``load_retry_sec`` until a fetch succeeds, then the dataset is
    refetched every ``refresh_interval_sec``. Fetches are blocking HTTP
    calls and run in a worker thread; results are applied to the
    controller on the event loop thread. A failed fetch never touches
    the navigation state: the last good data stays on screen flagged as
    stale, and when nothing has been shown yet the quote source's cached
    snapshot is rendered instead. Unexpected errors from the source are
    logged and counted like fetch failures; the loop keeps running.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional, Tuple

from src.domain.exceptions import DataUnavailableError
from src.domain.interfaces.quote_source import QuoteSource
from src.utils.logging_setup import get_logger
from src.utils.perf_logger import log_timing_async

from .heatmap_controller import HeatmapController

logger = get_logger(__name__)


class Debouncer:
    """
    Last-write-wins debouncer on the asyncio loop.

    Usage:
        search = Debouncer(0.25, controller.on_search)
        search.trigger("sp")
        search.trigger("spy")   # cancels "sp"; only "spy" is delivered
    """

    def __init__(
        self,
        delay_sec: float,
        callback: Callable[..., Any],
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self._delay = delay_sec
        self._callback = callback
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self._pending_args: Tuple[Any, ...] = ()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def trigger(self, *args: Any) -> None:
        """Schedule the callback with `args`, replacing any pending call."""
        if self._handle is not None:
            self._handle.cancel()
        self._pending_args = args
        self._handle = self._get_loop().call_later(self._delay, self._fire)

    def flush(self) -> None:
        """Fire the pending call now, if any."""
        if self._handle is None:
            return
        self._handle.cancel()
        self._fire()

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            self._pending_args = ()

    def _fire(self) -> None:
        args = self._pending_args
        self._handle = None
        self._pending_args = ()
        try:
            self._callback(*args)
        except Exception as e:
            logger.exception(f"Debounced callback error: {e}")


class RefreshScheduler:
    """
    Initial-load retry loop plus periodic refresh.

    Usage:
        scheduler = RefreshScheduler(source, controller, refresh_interval_sec=3600)
        scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        source: QuoteSource,
        controller: HeatmapController,
        refresh_interval_sec: float = 3600.0,
        load_retry_sec: float = 5.0,
    ):
        """
        Initialize scheduler.

        Args:
            source: Quote source (blocking fetch_quotes).
            controller: Controller that receives the load/refresh triggers.
            refresh_interval_sec: Seconds between refreshes once loaded.
            load_retry_sec: Seconds between initial load attempts.
        """
        self._source = source
        self._controller = controller
        self._refresh_interval = refresh_interval_sec
        self._load_retry = load_retry_sec
        self._task: Optional[asyncio.Task] = None
        self._loaded = False
        self._using_stale = False
        self._fetch_count = 0
        self._failure_count = 0

    @property
    def loaded(self) -> bool:
        """True once a fresh fetch has been applied."""
        return self._loaded

    @property
    def using_stale(self) -> bool:
        """True while the cached snapshot is on screen in place of fresh data."""
        return self._using_stale

    @property
    def fetch_count(self) -> int:
        return self._fetch_count

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Start the background loop on the running event loop."""
        if self.is_running:
            return self._task
        self._task = asyncio.get_running_loop().create_task(self.run())
        logger.info(
            f"Refresh scheduler started (interval={self._refresh_interval}s, "
            f"retry={self._load_retry}s)"
        )
        return self._task

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to exit."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Refresh scheduler stopped")

    async def run(self) -> None:
        """Retry the initial load until it succeeds, then refresh forever."""
        while not await self._fetch_guarded():
            await asyncio.sleep(self._load_retry)

        while True:
            await asyncio.sleep(self._refresh_interval)
            await self._fetch_guarded()

    async def _fetch_guarded(self) -> bool:
        # An unexpected error must not end the loop
        try:
            return await self.fetch_once()
        except Exception as e:
            self._failure_count += 1
            logger.error(f"Unexpected quote fetch error, will retry: {e}", exc_info=True)
            self._mark_failure()
            return False

    async def fetch_once(self) -> bool:
        """
        Fetch once and apply the result.

        Returns:
            True if fresh data was applied, False if the fetch failed.
        """
        self._fetch_count += 1
        try:
            async with log_timing_async("quote_fetch") as ctx:
                instruments = await asyncio.to_thread(self._source.fetch_quotes)
                ctx["instruments"] = len(instruments)
        except DataUnavailableError as e:
            self._failure_count += 1
            logger.warning(f"Quote fetch failed, keeping last data: {e}")
            self._mark_failure()
            return False

        if not instruments:
            self._failure_count += 1
            logger.warning("Quote fetch returned no instruments, keeping last data")
            self._mark_failure()
            return False

        # Flag first: subscribers read it while rendering
        self._using_stale = False
        self._loaded = True
        self._apply(instruments)
        return True

    def _apply(self, instruments) -> None:
        # Load resets to overview; refresh keeps a live zoom
        if self._controller.state.has_data:
            self._controller.on_refresh(instruments)
        else:
            self._controller.on_load(instruments)

    def _mark_failure(self) -> None:
        """Show the last good data, flagged as stale."""
        if self._controller.state.has_data:
            if not self._using_stale:
                self._using_stale = True
                self._controller.redraw()
            return

        snapshot = self._source.get_cached_snapshot()
        if not snapshot:
            logger.info("No cached snapshot yet, heatmap stays empty")
            return
        logger.info(f"Rendering cached snapshot ({len(snapshot)} instruments)")
        self._using_stale = True
        self._controller.on_load(snapshot)
