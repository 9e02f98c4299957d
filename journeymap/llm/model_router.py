"""Task → model selection. Unknown tasks get the mid tier."""

from __future__ import annotations

from journeymap.config import Settings, settings as default_settings

_TASK_MODEL_MAP = {
    "extract": "mid",
    "extract_stream": "mid",
}


def get_model_for_task(task: str, settings: Settings | None = None) -> str:
    cfg = settings or default_settings
    tier = _TASK_MODEL_MAP.get(task, "mid")
    if tier == "cheap":
        return cfg.model_cheap
    elif tier == "mid":
        return cfg.model_mid
    else:
        return cfg.model_frontier
