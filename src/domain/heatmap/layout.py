"""
Squarified treemap layout (Bruls-Huizing-van Wijk).

Pure functions over plain data: no rendering, no navigation state.

Two entry points:
    squarify()     - partition one rectangle among a flat list of weights
    layout_tree()  - lay out a two-level tree (root -> groups -> leaves, or
                     root -> leaves) with outer/inner/top padding

Padding model:
    outer  - inset between a parent's edge and its children
    inner  - gap between adjacent siblings
    top    - band reserved at the top of every group that has children
             (label strip); defaults to `outer`

Siblings are tiled inside the parent's content area grown by inner/2 on each
side, then each sibling is shrunk by inner/2. Adjacent siblings therefore end
up exactly `inner` apart while edge siblings keep exactly `outer` from the
parent edge.

Both functions are iterative. layout_tree() walks the hierarchy with an
explicit work list of (nodes, rect) items so stack depth stays bounded for
very large catalogs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

from src.utils.logging_setup import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle, (x0, y0) top-left and (x1, y1) bottom-right."""

    x0: float
    y0: float
    x1: float
    y1: float

    @classmethod
    def from_size(cls, width: float, height: float) -> "Rect":
        return cls(0.0, 0.0, float(width), float(height))

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    @property
    def area(self) -> float:
        return max(self.width, 0.0) * max(self.height, 0.0)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def inset(self, left: float, top: float, right: float, bottom: float) -> "Rect":
        """
        Shrink by the given amounts (negative values grow the rect).

        A side pair that would cross collapses onto its midpoint instead of
        producing a negative extent.
        """
        x0, x1 = self.x0 + left, self.x1 - right
        y0, y1 = self.y0 + top, self.y1 - bottom
        if x1 < x0:
            x0 = x1 = (x0 + x1) / 2
        if y1 < y0:
            y0 = y1 = (y0 + y1) / 2
        return Rect(x0, y0, x1, y1)

    def shrink(self, amount: float) -> "Rect":
        return self.inset(amount, amount, amount, amount)

    def overlaps(self, other: "Rect", tolerance: float = 1e-9) -> bool:
        """True if the interiors intersect (shared edges do not count)."""
        return (
            min(self.x1, other.x1) - max(self.x0, other.x0) > tolerance
            and min(self.y1, other.y1) - max(self.y0, other.y0) > tolerance
        )

    def contains(self, other: "Rect", tolerance: float = 1e-9) -> bool:
        return (
            other.x0 >= self.x0 - tolerance
            and other.y0 >= self.y0 - tolerance
            and other.x1 <= self.x1 + tolerance
            and other.y1 <= self.y1 + tolerance
        )


@dataclass(frozen=True)
class Padding:
    """Padding applied while laying out a tree (same units as the bounds)."""

    outer: float = 0.0
    inner: float = 0.0
    top: Optional[float] = None

    @property
    def group_top(self) -> float:
        return self.outer if self.top is None else self.top


@dataclass(frozen=True)
class WeightedNode:
    """
    Input node for layout_tree().

    Leaves carry their own weight. A node with children is weighted by the
    sum of its children; its own `weight` is ignored.
    """

    key: str
    weight: float = 0.0
    children: Tuple["WeightedNode", ...] = ()
    payload: Any = field(default=None, compare=False)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def total_weight(self) -> float:
        if self.children:
            return sum(child.total_weight for child in self.children)
        return max(self.weight, 0.0)


@dataclass(frozen=True)
class LayoutRect:
    """Output of layout_tree(): one positioned node."""

    key: str
    rect: Rect
    depth: int
    weight: float
    parent_key: Optional[str] = None
    is_leaf: bool = True
    payload: Any = field(default=None, compare=False)

    @property
    def x0(self) -> float:
        return self.rect.x0

    @property
    def y0(self) -> float:
        return self.rect.y0

    @property
    def x1(self) -> float:
        return self.rect.x1

    @property
    def y1(self) -> float:
        return self.rect.y1


# =============================================================================
# SQUARIFY
# =============================================================================


def _worst_ratio(row_sum: float, min_area: float, max_area: float, side: float) -> float:
    """Worst aspect ratio of a row of rectangles laid along `side`."""
    if row_sum <= 0 or side <= 0 or min_area <= 0:
        return float("inf")
    side_sq = side * side
    row_sq = row_sum * row_sum
    return max(side_sq * max_area / row_sq, row_sq / (side_sq * min_area))


def squarify(weights: Sequence[float], rect: Rect) -> List[Rect]:
    """
    Partition `rect` into one rectangle per weight, area proportional to weight.

    Weights should be sorted descending for the best aspect ratios; output
    order always matches input order. Each row is grown while its worst
    aspect ratio does not get worse, then laid along the shorter side of
    the remaining space.

    Args:
        weights: Non-negative weights (negative values count as 0)
        rect: Rectangle to partition

    Returns:
        List of Rect, same length and order as `weights`, or [] if there
        are no weights or `rect` has no area
    """
    count = len(weights)
    if count == 0 or rect.is_empty:
        return []

    clean = [max(float(w), 0.0) for w in weights]
    total = sum(clean)
    if total <= 0:
        # Nothing to be proportional to: split evenly
        clean = [1.0] * count
        total = float(count)

    scale = rect.area / total
    areas = [w * scale for w in clean]
    result: List[Rect] = [rect] * count

    x0, y0, x1, y1 = rect.x0, rect.y0, rect.x1, rect.y1
    start = 0
    while start < count:
        width = x1 - x0
        height = y1 - y0
        side = min(width, height)

        # Grow the row while the worst aspect ratio does not get worse
        end = start + 1
        row_sum = areas[start]
        row_min = row_max = areas[start]
        worst = _worst_ratio(row_sum, row_min, row_max, side)
        while end < count:
            area = areas[end]
            candidate = _worst_ratio(
                row_sum + area, min(row_min, area), max(row_max, area), side
            )
            if candidate > worst:
                break
            row_sum += area
            row_min = min(row_min, area)
            row_max = max(row_max, area)
            worst = candidate
            end += 1

        last_row = end == count
        if width >= height:
            # Vertical strip on the left edge
            thickness = width if last_row or height <= 0 else min(row_sum / height, width)
            cursor = y0
            for i in range(start, end):
                extent = areas[i] / thickness if thickness > 0 else 0.0
                stop = y1 if i == end - 1 else min(cursor + extent, y1)
                result[i] = Rect(x0, cursor, x0 + thickness, stop)
                cursor = stop
            x0 += thickness
        else:
            # Horizontal strip along the top edge
            thickness = height if last_row or width <= 0 else min(row_sum / width, height)
            cursor = x0
            for i in range(start, end):
                extent = areas[i] / thickness if thickness > 0 else 0.0
                stop = x1 if i == end - 1 else min(cursor + extent, x1)
                result[i] = Rect(cursor, y0, stop, y0 + thickness)
                cursor = stop
            y0 += thickness

        start = end

    return result


# =============================================================================
# HIERARCHICAL LAYOUT
# =============================================================================


def sort_nodes(nodes: Sequence[WeightedNode]) -> List[WeightedNode]:
    """Sort descending by total weight; ties keep input order."""
    return sorted(nodes, key=lambda n: n.total_weight, reverse=True)


def layout_tree(
    nodes: Sequence[WeightedNode],
    bounds: Rect,
    padding: Padding = Padding(),
) -> List[LayoutRect]:
    """
    Lay out a forest of weighted nodes inside `bounds`.

    Every level is sorted descending by total weight before tiling, so the
    largest groups take the top-left positions.

    Args:
        nodes: Top-level nodes (groups with children, or bare leaves)
        bounds: Target rectangle
        padding: Outer/inner/top padding

    Returns:
        LayoutRect for every node, parents before their children. Empty
        input or empty bounds yields [].
    """
    if not nodes or bounds.is_empty:
        return []

    half = padding.inner / 2
    output: List[LayoutRect] = []

    # Work items: (siblings, parent rect, depth of siblings, parent key)
    work: List[Tuple[Sequence[WeightedNode], Rect, int, Optional[str]]] = [
        (nodes, bounds, 0, None)
    ]
    while work:
        siblings, parent_rect, depth, parent_key = work.pop()
        top = padding.outer if depth == 0 else padding.group_top

        # Content area grown by inner/2 so edge children end up `outer` from the edge
        content = parent_rect.inset(
            padding.outer - half, top - half, padding.outer - half, padding.outer - half
        )
        ordered = sort_nodes(siblings)
        tiles = squarify([n.total_weight for n in ordered], content)
        if not tiles:
            # Collapsed parent: children still get (empty) rects
            tiles = [Rect(content.x0, content.y0, content.x0, content.y0)] * len(ordered)

        nested: List[Tuple[Sequence[WeightedNode], Rect, int, Optional[str]]] = []
        for node, tile in zip(ordered, tiles):
            rect = tile.shrink(half)
            output.append(
                LayoutRect(
                    key=node.key,
                    rect=rect,
                    depth=depth,
                    weight=node.total_weight,
                    parent_key=parent_key,
                    is_leaf=node.is_leaf,
                    payload=node.payload,
                )
            )
            if node.children:
                nested.append((node.children, rect, depth + 1, node.key))

        # Reverse so the largest group's children are laid out first
        work.extend(reversed(nested))

    logger.debug(f"Laid out {len(output)} rects in {bounds.width:.0f}x{bounds.height:.0f}")
    return output
