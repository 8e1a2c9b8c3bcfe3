"""
Tests for HeatmapController.

Verifies:
- Every trigger maps to its transition and renders
- No-op transitions do not render; load/refresh/resize/redraw always do
- Resize changes bounds but never navigation
- Commands issued from a render callback are queued (FIFO), not nested
- A failing subscriber does not corrupt the state
"""

from typing import List, Optional, Tuple

import pytest

from src.application.heatmap_controller import HeatmapController
from src.domain.heatmap.layout import Rect
from src.domain.heatmap.navigation import ViewMode
from src.domain.heatmap.tiles import Tile


class RenderRecorder:
    """Render subscriber that records every call."""

    def __init__(self):
        self.calls: List[Tuple[List[Tile], ViewMode, Optional[str]]] = []

    def __call__(self, tiles, view_mode, active_group_key):
        self.calls.append((tiles, view_mode, active_group_key))

    @property
    def last(self):
        return self.calls[-1]


@pytest.fixture
def controller(bounds) -> HeatmapController:
    return HeatmapController(bounds=bounds, dimension="brand", dimensions=["brand", "strategy"])


@pytest.fixture
def recorder(controller) -> RenderRecorder:
    rec = RenderRecorder()
    controller.subscribe(rec)
    return rec


class TestTriggers:
    """on_* methods drive the state machine."""

    def test_load_renders_overview(self, controller, recorder, sample_instruments):
        controller.on_load(sample_instruments)
        tiles, mode, key = recorder.last
        assert mode is ViewMode.OVERVIEW
        assert key is None
        assert [t.key for t in tiles] == ["BrandX", "BrandY"]

    def test_select_and_back(self, controller, recorder, sample_instruments):
        controller.on_load(sample_instruments)
        controller.on_select_group("BrandY")
        assert recorder.last[1] is ViewMode.DETAIL
        assert recorder.last[2] == "BrandY"
        assert [t.key for t in recorder.last[0]] == ["CCC", "DDD", "EEE"]

        controller.on_back()
        assert recorder.last[1] is ViewMode.OVERVIEW
        assert controller.state.active_group_key is None

    def test_search_drills_in(self, controller, recorder, sample_instruments):
        controller.on_load(sample_instruments)
        controller.on_search("alpha")
        assert controller.state.active_group_key == "BrandX"
        assert recorder.last[2] == "BrandX"

    def test_change_dimension(self, controller, recorder, sample_instruments):
        controller.on_load(sample_instruments)
        controller.on_select_group("BrandX")
        controller.on_change_dimension("strategy")
        assert controller.state.view_mode is ViewMode.OVERVIEW
        assert [t.key for t in recorder.last[0]] == ["Equity", "Bond"]

    def test_unknown_dimension_rejected(self, controller, recorder, sample_instruments):
        controller.on_load(sample_instruments)
        renders = len(recorder.calls)
        controller.on_change_dimension("issuer")
        assert controller.state.active_dimension == "brand"
        assert len(recorder.calls) == renders

    def test_refresh_keeps_zoom(self, controller, recorder, sample_instruments, instrument_factory):
        controller.on_load(sample_instruments)
        controller.on_select_group("BrandY")
        controller.on_refresh([instrument_factory("CCC", brand="BrandY"), instrument_factory("AAA")])
        assert controller.state.active_group_key == "BrandY"
        assert [t.key for t in recorder.last[0]] == ["CCC"]


class TestRenderPolicy:
    """When subscribers are notified."""

    def test_noop_does_not_render(self, controller, recorder, sample_instruments):
        controller.on_load(sample_instruments)
        renders = len(recorder.calls)
        controller.on_back()                    # already overview
        controller.on_select_group("Nope")      # unknown group
        controller.on_search("zzz")             # no match
        controller.on_change_dimension("brand")  # same dimension
        assert len(recorder.calls) == renders

    def test_refresh_always_renders(self, controller, recorder, sample_instruments):
        controller.on_load(sample_instruments)
        renders = len(recorder.calls)
        controller.on_refresh(sample_instruments)
        assert len(recorder.calls) == renders + 1

    def test_redraw_renders_same_state(self, controller, recorder, sample_instruments):
        controller.on_load(sample_instruments)
        controller.on_select_group("BrandY")
        state = controller.state
        renders = len(recorder.calls)

        controller.redraw()
        assert controller.state is state
        assert len(recorder.calls) == renders + 1
        assert recorder.last[1:] == (ViewMode.DETAIL, "BrandY")

    def test_empty_load_renders_nothing_to_draw(self, controller, recorder):
        controller.on_load([])
        assert recorder.last[0] == []


class TestResize:
    """Resize re-renders against new bounds without touching navigation."""

    def test_resize_keeps_state(self, controller, recorder, sample_instruments):
        controller.on_load(sample_instruments)
        controller.on_select_group("BrandY")
        before = controller.state

        controller.on_resize(400, 300)

        assert controller.state is before
        assert controller.bounds == Rect.from_size(400, 300)
        assert recorder.last[1] is ViewMode.DETAIL
        assert all(t.rect.x1 <= 400 and t.rect.y1 <= 300 for t in recorder.last[0])

    def test_zero_size_renders_nothing(self, controller, recorder, sample_instruments):
        controller.on_load(sample_instruments)
        controller.on_resize(0, 0)
        assert recorder.last[0] == []
        controller.on_resize(800, 600)
        assert len(recorder.last[0]) == 2

    def test_refresh_then_resize_consistent(self, controller, recorder, sample_instruments,
                                            instrument_factory):
        """Both triggers observe the latest state and bounds."""
        controller.on_load(sample_instruments)
        controller.on_select_group("BrandY")
        controller.on_refresh([instrument_factory("CCC", brand="BrandY")])
        controller.on_resize(200, 100)
        tiles, mode, key = recorder.last
        assert (mode, key) == (ViewMode.DETAIL, "BrandY")
        assert [t.key for t in tiles] == ["CCC"]
        assert tiles[0].rect.x1 <= 200


class TestCommandQueue:
    """Re-entrant dispatch is serialized."""

    def test_command_from_callback_runs_after_current(self, controller, sample_instruments):
        seen = []

        def drill_once(tiles, mode, key):
            seen.append((mode, key))
            if mode is ViewMode.OVERVIEW and len(seen) == 1:
                controller.on_select_group("BrandX")
                # Not applied yet: still inside the load render
                assert controller.state.view_mode is ViewMode.OVERVIEW

        controller.subscribe(drill_once)
        controller.on_load(sample_instruments)

        assert seen == [(ViewMode.OVERVIEW, None), (ViewMode.DETAIL, "BrandX")]
        assert controller.state.active_group_key == "BrandX"

    def test_failing_subscriber_is_isolated(self, controller, recorder, sample_instruments):
        def broken(tiles, mode, key):
            raise RuntimeError("boom")

        controller.subscribe(broken)
        controller.on_load(sample_instruments)
        controller.on_select_group("BrandX")

        assert controller.state.active_group_key == "BrandX"
        assert recorder.last[2] == "BrandX"

    def test_unsubscribe(self, controller, recorder, sample_instruments):
        controller.unsubscribe(recorder)
        controller.on_load(sample_instruments)
        assert recorder.calls == []
        assert controller.render_count == 1
        assert len(controller.tiles) == 2
