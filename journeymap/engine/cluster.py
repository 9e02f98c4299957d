"""Place the nodes sharing one grid cell on a ring around the cell center.

One node sits on the center. Two or more are spread evenly on a circle,
starting at -90° (straight up) and advancing 360°/count per index, so the
first node of a cell is always on top.
"""

from __future__ import annotations

import math

import numpy as np

from journeymap.engine.config import LayoutConfig

_START_ANGLE = -np.pi / 2


def ring_radius(count: int, config: LayoutConfig | None = None) -> float:
    """Radius for a ring of ``count`` nodes.

    Fixed by default, so large rings overlap. With ``scale_radius`` on, the
    radius grows until adjacent ring positions are ``min_ring_spacing`` apart.
    """
    cfg = config or LayoutConfig()
    if not cfg.scale_radius or count < 2:
        return cfg.ring_radius
    # Chord between neighbours on a ring of radius r: 2 r sin(pi / n)
    needed = cfg.min_ring_spacing / (2 * math.sin(math.pi / count))
    return max(cfg.ring_radius, needed)


def place_in_cell(
    center: tuple[float, float],
    index: int,
    count: int,
    radius: float,
) -> tuple[float, float]:
    """Position of the ``index``-th of ``count`` nodes around ``center``."""
    cx, cy = center
    if count <= 1:
        return (cx, cy)
    angle = _START_ANGLE + (2 * np.pi / count) * index
    return (cx + radius * float(np.cos(angle)), cy + radius * float(np.sin(angle)))


def ring_positions(center: tuple[float, float], count: int, radius: float) -> list[tuple[float, float]]:
    """All ``count`` ring positions at once."""
    return [place_in_cell(center, i, count, radius) for i in range(count)]


def node_position(
    center: tuple[float, float],
    index: int,
    count: int,
    config: LayoutConfig | None = None,
) -> tuple[float, float]:
    """Top-left corner for a node so its footprint is centered on its ring slot."""
    cfg = config or LayoutConfig()
    x, y = place_in_cell(center, index, count, ring_radius(count, cfg))
    return (round(x - cfg.node_width / 2, 2), round(y - cfg.node_height / 2, 2))
