"""
ETF Heatmap - Main Entry Point

Usage:
    python main.py                              # One-shot render to output/heatmap.html
    python main.py --search spy                 # Render with a search applied
    python main.py --dimension brand --group iShares
    python main.py --mode watch                 # Hourly refresh + console commands
    python main.py --mode refresh-aum           # Update catalog AUM from FMP
"""

from __future__ import annotations
import asyncio
import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from config.config_manager import ConfigManager
from config.models import AppConfig
from src.application import Debouncer, HeatmapController, RefreshScheduler
from src.domain.exceptions import FatalError, QuoteFetchError
from src.domain.heatmap import Rect, Tile, TileLayoutOptions, ViewMode, compute_summary
from src.domain.heatmap.tiles import OverviewStyle
from src.infrastructure.quotes import AumRefresher, YahooQuoteService
from src.infrastructure.reporting.heatmap import (
    HeatmapPageContext,
    format_aum,
    format_change,
    render_heatmap_page,
    render_svg,
)
from src.utils import DisplayTimezone, flush_all_loggers, set_log_timezone, shutdown_logging
from src.utils.logging_setup import get_logger, setup_category_logging

logger = get_logger(__name__)

WATCH_HELP = """Commands:
  search <term>     highlight / drill into the first match (debounced)
  clear             clear the search term
  select <group>    zoom into a group
  back              return to the overview
  dim <dimension>   regroup (e.g. dim brand)
  resize <w> <h>    change the canvas size (debounced)
  refresh           refetch quotes now
  quit              exit"""


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="ETF Heatmap",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                               # Render once (default)
  python main.py --dimension brand --group SPDR
  python main.py --mode watch                  # Keep refreshing, read commands from stdin
  python main.py --mode refresh-aum            # Weekly AUM refresh (needs FMP_API_KEY)
        """
    )

    parser.add_argument(
        "--mode",
        type=str,
        default="render",
        choices=["render", "watch", "refresh-aum"],
        help="Operational mode: render (default), watch, or refresh-aum"
    )

    parser.add_argument(
        "--env",
        type=str,
        default="dev",
        help="Environment config overlay to load (default: dev)"
    )

    parser.add_argument(
        "--config-dir",
        type=str,
        default="config",
        help="Directory holding base.yaml / {env}.yaml / secrets.yaml"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level for all categories)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override the configured log level (ignored if --verbose is set)"
    )

    view_group = parser.add_argument_group("View")
    view_group.add_argument("--dimension", type=str, help="Grouping dimension (e.g. strategy, brand)")
    view_group.add_argument("--group", type=str, help="Zoom into this group after loading")
    view_group.add_argument("--search", type=str, help="Search term (ticker or name substring)")
    view_group.add_argument("--width", type=float, help="Canvas width in pixels")
    view_group.add_argument("--height", type=float, help="Canvas height in pixels")
    view_group.add_argument(
        "--overview-style",
        type=str,
        choices=[s.value for s in OverviewStyle],
        help="Overview presentation (aggregate group tiles or grouped cells)"
    )
    view_group.add_argument("--output", type=str, help="Output HTML path")

    return parser.parse_args(argv)


# =============================================================================
# OUTPUT
# =============================================================================


class HeatmapPageWriter:
    """
    Render subscriber that writes the HTML page on every render.

    Reads the controller only for page chrome (dimension toggle, breadcrumb,
    search term); tiles arrive through the render callback.
    """

    def __init__(
        self,
        controller: HeatmapController,
        config: AppConfig,
        output_path: Path,
        service: Optional[YahooQuoteService] = None,
    ):
        self._controller = controller
        self._service = service
        self._config = config
        self._output_path = output_path
        self._display_tz = DisplayTimezone(config.display.timezone)
        self.stale = False
        self.write_count = 0

    def _fetched_at(self) -> Optional[datetime]:
        # Falls back to now when nothing was fetched yet
        return self._service.fetched_at if self._service is not None else None

    def __call__(self, tiles: List[Tile], view_mode: ViewMode, active_group_key: Optional[str]) -> None:
        state = self._controller.state
        bounds = self._controller.bounds
        svg = render_svg(
            tiles,
            bounds.width,
            bounds.height,
            view_mode=view_mode,
            active_group_key=active_group_key,
            dim_opacity=self._config.render.dim_opacity,
        )
        page = render_heatmap_page(
            HeatmapPageContext(
                title=self._config.render.title,
                svg=svg,
                summary=compute_summary(state.dataset),
                updated_at=self._display_tz.format_time(self._fetched_at(), self._config.display.time_format),
                active_dimension=state.active_dimension,
                dimensions=self._config.navigation.dimensions,
                active_group_key=active_group_key,
                search_term=state.search_term,
                stale=self.stale,
                tile_count=len(tiles),
            )
        )
        self._output_path.parent.mkdir(parents=True, exist_ok=True)
        self._output_path.write_text(page, encoding="utf-8")
        self.write_count += 1
        logger.info(f"Wrote {len(tiles)} tiles ({view_mode.value}) to {self._output_path}")


def print_summary(console: Console, controller: HeatmapController, output_path: Path) -> None:
    """Print the current view as a rich table."""
    state = controller.state
    summary = compute_summary(state.dataset)

    title = f"ETF Heatmap - {state.describe()} by {state.active_dimension}"
    if state.search_term:
        title += f' (search "{state.search_term}")'

    table = Table(title=title)
    table.add_column("Tile", style="cyan")
    table.add_column("Kind")
    table.add_column("Change", justify="right")
    table.add_column("Size", justify="right")

    for tile in controller.tiles:
        if tile.dimmed:
            continue
        style = "green" if tile.change_pct > 0 else "red" if tile.change_pct < 0 else ""
        size = format_aum(tile.weight)
        if tile.is_group:
            size += f" ({tile.member_count})"
        table.add_row(
            tile.label,
            tile.kind.value,
            f"[{style}]{format_change(tile.change_pct)}[/{style}]" if style else format_change(tile.change_pct),
            size,
        )

    console.print(table)
    console.print(
        f"ETFs: {summary.total}  Avg: {format_change(summary.average_change)}  "
        f"Gainers: {summary.gainers}  Losers: {summary.losers}  -> {output_path}"
    )


# =============================================================================
# WIRING
# =============================================================================


def setup_logging(args: argparse.Namespace, config: AppConfig, console: bool = False) -> None:
    set_log_timezone(config.logging.timezone)
    setup_category_logging(
        env=args.env,
        log_dir=config.logging.dir,
        level=args.log_level or config.logging.level,
        console=console or config.logging.console,
        verbose=args.verbose,
    )


def build_controller(args: argparse.Namespace, config: AppConfig) -> HeatmapController:
    """Create the controller from config plus command line overrides."""
    layout = config.layout
    style = OverviewStyle(args.overview_style or layout.overview_style)
    options = TileLayoutOptions(
        overview_style=style,
        padding_outer=layout.padding_outer,
        padding_inner=layout.padding_inner,
        padding_top=layout.padding_top,
    )
    bounds = Rect.from_size(args.width or layout.width, args.height or layout.height)
    return HeatmapController(
        bounds=bounds,
        dimension=config.navigation.default_dimension,
        dimensions=config.navigation.dimensions,
        options=options,
    )


def apply_view_args(args: argparse.Namespace, controller: HeatmapController) -> None:
    if args.dimension:
        controller.on_change_dimension(args.dimension)
    if args.group:
        controller.on_select_group(args.group)
    if args.search:
        controller.on_search(args.search)


# =============================================================================
# MODES
# =============================================================================


def run_render(args: argparse.Namespace, config: AppConfig) -> int:
    """Fetch once, apply the requested view, write the page."""
    output_path = Path(args.output or config.render.output_path)
    service = YahooQuoteService(config.quotes, config.navigation.dimensions)
    controller = build_controller(args, config)
    writer = HeatmapPageWriter(controller, config, output_path, service)
    controller.subscribe(writer)

    try:
        instruments = service.fetch_quotes()
    except QuoteFetchError as e:
        logger.warning(f"Quote fetch failed: {e}")
        # Empty page so the output never shows an older run as current
        controller.on_load([])
        print(f"Data not yet available: {e}")
        return 1

    controller.on_load(instruments)
    apply_view_args(args, controller)
    print_summary(Console(), controller, output_path)
    return 0


async def read_commands(
    controller: HeatmapController,
    scheduler: RefreshScheduler,
    search: Debouncer,
    resize: Debouncer,
) -> None:
    """Read console commands until quit/EOF and feed them to the controller."""
    print(WATCH_HELP, flush=True)
    while True:
        line = await asyncio.to_thread(sys.stdin.readline)
        if not line:
            break
        parts = line.strip().split(maxsplit=1)
        if not parts:
            continue
        command = parts[0].lower()
        argument = parts[1] if len(parts) > 1 else ""

        if command in ("quit", "exit", "q"):
            break
        elif command == "search":
            search.trigger(argument)
        elif command == "clear":
            search.cancel()
            controller.on_search("")
        elif command == "select":
            controller.on_select_group(argument)
        elif command == "back":
            controller.on_back()
        elif command == "dim":
            controller.on_change_dimension(argument)
        elif command == "resize":
            try:
                width, height = (float(v) for v in argument.split())
            except ValueError:
                print("usage: resize <width> <height>", flush=True)
                continue
            resize.trigger(width, height)
        elif command == "refresh":
            await scheduler.fetch_once()
        else:
            print(f"Unknown command: {command}", flush=True)
            continue
        print(f"-> {controller.state.describe()}", flush=True)


async def run_watch(args: argparse.Namespace, config: AppConfig) -> int:
    """Keep the page current: periodic refresh plus debounced console commands."""
    output_path = Path(args.output or config.render.output_path)
    nav = config.navigation
    service = YahooQuoteService(config.quotes, nav.dimensions)
    controller = build_controller(args, config)
    writer = HeatmapPageWriter(controller, config, output_path, service)

    scheduler = RefreshScheduler(
        service,
        controller,
        refresh_interval_sec=nav.refresh_interval_sec,
        load_retry_sec=nav.load_retry_sec,
    )
    search = Debouncer(nav.search_debounce_ms / 1000, controller.on_search)
    resize = Debouncer(nav.resize_debounce_ms / 1000, controller.on_resize)

    # Stale flag is updated before the page is written
    controller.subscribe(lambda *_: setattr(writer, "stale", scheduler.using_stale))
    controller.subscribe(writer)

    scheduler.start()
    try:
        await read_commands(controller, scheduler, search, resize)
    finally:
        search.cancel()
        resize.cancel()
        await scheduler.stop()
    return 0


def run_refresh_aum(args: argparse.Namespace, config: AppConfig) -> int:
    refresher = AumRefresher(
        config.aum_refresh, config.quotes.catalog_path, config.navigation.dimensions
    )
    result = refresher.refresh()
    print(f"Updated {result.updated}/{result.total} ETFs. {result.failed} failed.")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = ConfigManager(config_dir=args.config_dir, env=args.env).load()
    except FatalError as e:
        print(f"Fatal error: {e}")
        sys.exit(1)

    setup_logging(args, config)
    logger.info(f"Starting ETF heatmap (mode={args.mode}, env={args.env})")

    exit_code = 1
    try:
        if args.mode == "watch":
            exit_code = asyncio.run(run_watch(args, config))
        elif args.mode == "refresh-aum":
            exit_code = run_refresh_aum(args, config)
        else:
            exit_code = run_render(args, config)
    except KeyboardInterrupt:
        print("Shutdown requested")
        exit_code = 0
    except FatalError as e:
        logger.exception("Fatal error:")
        print(f"Fatal error: {e}")
    finally:
        flush_all_loggers()
        shutdown_logging()

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
