"""Lane grid layout: phases run left to right, contexts top to bottom.

Lane offsets are cumulative: each lane starts where the previous one ended
plus a fixed gap. The layout is recomputed from scratch whenever the phase or
context list changes; there is no incremental update.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np
from shapely.geometry import Point, box
from shapely.geometry.polygon import Polygon

from journeymap.engine.config import LayoutConfig
from journeymap.engine.sizing import lane_height, lane_width
from journeymap.models.journey import Context, Phase


def _offsets(sizes: Sequence[int], start: int, gap: int) -> list[int]:
    """Start offset of each lane, accumulating ``size + gap`` from ``start``."""
    if not sizes:
        return []
    steps = np.asarray(sizes, dtype=np.int64) + gap
    starts = np.concatenate([np.zeros(1, dtype=np.int64), np.cumsum(steps[:-1])])
    return (starts + start).tolist()


@dataclass
class GridLayout:
    phase_offset_x: list[int] = field(default_factory=list)
    phase_width: list[int] = field(default_factory=list)
    context_offset_y: list[int] = field(default_factory=list)
    context_height: list[int] = field(default_factory=list)
    config: LayoutConfig = field(default_factory=LayoutConfig)

    @property
    def num_phases(self) -> int:
        return len(self.phase_width)

    @property
    def num_contexts(self) -> int:
        return len(self.context_height)

    def _column(self, phase_index: int) -> tuple[float, float]:
        cfg = self.config
        if 0 <= phase_index < self.num_phases:
            return float(self.phase_offset_x[phase_index]), float(self.phase_width[phase_index])
        return float(phase_index * cfg.fallback_phase_step + cfg.left_margin), float(cfg.min_phase_width)

    def _row(self, context_index: int) -> tuple[float, float]:
        cfg = self.config
        if 0 <= context_index < self.num_contexts:
            return float(self.context_offset_y[context_index]), float(self.context_height[context_index])
        return float(context_index * cfg.fallback_context_step + cfg.top_margin), float(cfg.min_context_height)

    def cell_center(self, phase_index: int, context_index: int) -> tuple[float, float]:
        x, w = self._column(phase_index)
        y, h = self._row(context_index)
        return (x + w / 2, y + h / 2)

    def cell_box(self, phase_index: int, context_index: int) -> Polygon:
        """Cell footprint including the trailing gap, so cells tile the grid."""
        x, w = self._column(phase_index)
        y, h = self._row(context_index)
        return box(x, y, x + w + self.config.phase_gap, y + h + self.config.context_gap)

    def locate(self, x: float, y: float) -> tuple[int, int] | None:
        """Cell holding the visual center of a node whose top-left corner is (x, y).

        Drops outside every cell snap to the nearest one. Returns None when the
        grid has no phases or no contexts.
        """
        if self.num_phases == 0 or self.num_contexts == 0:
            return None

        cfg = self.config
        pt = Point(x + cfg.node_width / 2, y + cfg.node_height / 2)

        best: tuple[int, int] = (0, 0)
        best_dist = float("inf")
        for pi in range(self.num_phases):
            for ci in range(self.num_contexts):
                cell = self.cell_box(pi, ci)
                if cell.contains(pt):
                    return (pi, ci)
                dist = cell.distance(pt)
                if dist < best_dist:
                    best = (pi, ci)
                    best_dist = dist
        return best


def build_layout(
    phases: Sequence[Phase],
    contexts: Sequence[Context],
    config: LayoutConfig | None = None,
) -> GridLayout:
    """Size every lane from its text and accumulate offsets, one pass per axis."""
    cfg = config or LayoutConfig()

    phase_width = [lane_width(p.name, cfg) for p in phases]
    context_height = [lane_height(c.name, c.description, cfg) for c in contexts]

    return GridLayout(
        phase_offset_x=_offsets(phase_width, cfg.left_margin, cfg.phase_gap),
        phase_width=phase_width,
        context_offset_y=_offsets(context_height, cfg.top_margin, cfg.context_gap),
        context_height=context_height,
        config=cfg,
    )
