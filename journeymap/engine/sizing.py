"""Lane sizing from label text. A character-count stand-in for font metrics."""

from __future__ import annotations

import math

from journeymap.engine.config import LayoutConfig

_DEFAULT = LayoutConfig()


def lane_width(label: str, config: LayoutConfig | None = None) -> int:
    """Width of a phase column wide enough for its label."""
    cfg = config or _DEFAULT
    return max(cfg.min_phase_width, len(label or "") * cfg.char_width + cfg.phase_label_padding)


def lane_height(name: str, description: str | None = None, config: LayoutConfig | None = None) -> int:
    """Height of a context row: wrapped name lines plus wrapped description lines."""
    cfg = config or _DEFAULT
    name_lines = math.ceil(len(name or "") / cfg.name_wrap_cols)
    desc_lines = math.ceil(len(description) / cfg.description_wrap_cols) if description else 0
    return max(
        cfg.min_context_height,
        (name_lines + desc_lines) * cfg.line_height + cfg.context_label_padding,
    )
