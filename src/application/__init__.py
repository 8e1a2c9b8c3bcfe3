"""Application layer - trigger serialization and scheduling."""

from .heatmap_controller import (
    HeatmapController,
    RenderCallback,
    Command,
    Load,
    Refresh,
    Resize,
    Search,
    SelectGroup,
    Back,
    ChangeDimension,
)
from .scheduling import Debouncer, RefreshScheduler

__all__ = [
    "HeatmapController",
    "RenderCallback",
    "Command",
    "Load",
    "Refresh",
    "Resize",
    "Search",
    "SelectGroup",
    "Back",
    "ChangeDimension",
    "Debouncer",
    "RefreshScheduler",
]
