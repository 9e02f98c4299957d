"""Assembly configuration: lane sizing, cell placement and graph policies."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class LaneOrdering(str, enum.Enum):
    """How phase/context lanes are sequenced."""

    ORDER = "order"  # stable sort by the extracted `order` field
    EXTRACTION = "extraction"  # keep the order the model emitted them in


class IntersectionPolicy(str, enum.Enum):
    """Which intersection records survive assembly."""

    KEEP_ALL = "keep_all"  # every model suggestion, whatever its node count
    MIN_NODES = "min_nodes"  # suggestions whose cell holds >= min_intersection_nodes
    DERIVED = "derived"  # one record per crowded cell, suggestions only lend descriptions


ACTOR_COLORS = [
    "#3b82f6",  # blue
    "#10b981",  # green
    "#f59e0b",  # amber
    "#ef4444",  # red
    "#8b5cf6",  # purple
    "#06b6d4",  # cyan
    "#ec4899",  # pink
    "#84cc16",  # lime
    "#f97316",  # orange
    "#14b8a6",  # teal
]

CONTEXT_COLORS = [
    "#3b82f6",
    "#10b981",
    "#f59e0b",
    "#ef4444",
    "#8b5cf6",
    "#06b6d4",
    "#ec4899",
    "#84cc16",
]


@dataclass
class LayoutConfig:
    """Pixel constants for the lane grid. No font metrics, just heuristics."""

    # Phase (column) width
    min_phase_width: int = 250
    char_width: int = 10
    phase_label_padding: int = 60

    # Context (row) height
    min_context_height: int = 200
    name_wrap_cols: int = 12
    description_wrap_cols: int = 18
    line_height: int = 30
    context_label_padding: int = 80

    # Gaps between lanes
    phase_gap: int = 100
    context_gap: int = 80

    # Grid origin, leaves room for the lane labels
    left_margin: int = 180
    top_margin: int = 100

    # Fallback spacing for a lane index the layout has no entry for
    fallback_phase_step: int = 200
    fallback_context_step: int = 150

    # Ring placement inside one cell
    ring_radius: float = 70.0
    scale_radius: bool = False
    min_ring_spacing: float = 130.0

    # Rendered node footprint; positions are top-left corners
    node_width: int = 120
    node_height: int = 60


@dataclass
class AssemblyConfig:
    """Everything the graph assembler needs besides the extracted data."""

    layout: LayoutConfig = field(default_factory=LayoutConfig)
    lane_ordering: LaneOrdering = LaneOrdering.ORDER
    intersection_policy: IntersectionPolicy = IntersectionPolicy.KEEP_ALL
    min_intersection_nodes: int = 2
    actor_colors: list[str] = field(default_factory=lambda: list(ACTOR_COLORS))
    context_colors: list[str] = field(default_factory=lambda: list(CONTEXT_COLORS))
    default_title: str = "New Journey Map"
    description_chars: int = 100
