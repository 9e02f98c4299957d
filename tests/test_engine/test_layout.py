"""Tests for the lane grid layout."""

from __future__ import annotations

from journeymap.engine.layout import build_layout
from journeymap.models.journey import Context, Phase


def _phases(*names):
    return [Phase(id=f"phase-{i}", name=n) for i, n in enumerate(names)]


def _contexts(*pairs):
    return [Context(id=f"context-{i}", name=n, description=d) for i, (n, d) in enumerate(pairs)]


def _sample_layout():
    # widths 250, 340; heights 200, 320
    return build_layout(
        _phases("Arrive", "x" * 28),
        _contexts(("Floor", None), ("x" * 30, "y" * 90)),
    )


def test_offsets_accumulate_with_gaps():
    layout = _sample_layout()
    assert layout.phase_width == [250, 340]
    assert layout.phase_offset_x == [180, 530]
    assert layout.context_height == [200, 320]
    assert layout.context_offset_y == [100, 380]


def test_offsets_are_plain_ints():
    layout = _sample_layout()
    assert all(type(x) is int for x in layout.phase_offset_x + layout.context_offset_y)


def test_three_lane_offsets():
    layout = build_layout(_phases("A", "B", "C"), _contexts(("Floor", None)))
    assert layout.phase_offset_x == [180, 530, 880]


def test_lanes_do_not_overlap():
    layout = _sample_layout()
    for i in range(1, layout.num_phases):
        assert layout.phase_offset_x[i] >= layout.phase_offset_x[i - 1] + layout.phase_width[i - 1] + 100


def test_cell_center():
    layout = _sample_layout()
    assert layout.cell_center(0, 0) == (305, 200)
    assert layout.cell_center(1, 1) == (700, 540)


def test_cell_center_out_of_range_uses_fallback_spacing():
    layout = _sample_layout()
    # x = 3 * 200 + 180 with the minimum width
    assert layout.cell_center(3, 0) == (780 + 125, 200)
    # y = 4 * 150 + 100 with the minimum height
    assert layout.cell_center(0, 4) == (305, 700 + 100)


def test_empty_layout():
    layout = build_layout([], [])
    assert layout.num_phases == 0
    assert layout.num_contexts == 0
    assert layout.cell_center(0, 0) == (305, 200)
    assert layout.locate(200, 200) is None


def test_locate_by_node_center():
    layout = _sample_layout()
    # Top-left of a node centered in cell (0, 0)
    assert layout.locate(245, 170) == (0, 0)
    assert layout.locate(700 - 60, 540 - 30) == (1, 1)


def test_locate_includes_trailing_gap():
    layout = _sample_layout()
    # Center at x=480 sits in the gap after the first column
    assert layout.locate(480 - 60, 200 - 30) == (0, 0)


def test_locate_outside_snaps_to_nearest():
    layout = _sample_layout()
    assert layout.locate(5000, 5000) == (1, 1)
    assert layout.locate(-500, -500) == (0, 0)


def test_cell_box_bounds():
    layout = _sample_layout()
    minx, miny, maxx, maxy = layout.cell_box(0, 0).bounds
    assert (minx, miny, maxx, maxy) == (180, 100, 530, 380)
