"""Event types flowing in and out of the extraction pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Union


class Category(str, enum.Enum):
    """Top-level keys of the extraction schema, in emission order."""

    ACTORS = "actors"
    PHASES = "phases"
    CONTEXTS = "contexts"
    NODES = "nodes"
    EDGES = "edges"
    INTERSECTIONS = "intersections"


EXTRACTION_KEYS: tuple[str, ...] = tuple(c.value for c in Category)


# --- Transport side: what the text-generation service hands us ---


@dataclass(frozen=True)
class TextDelta:
    text: str


@dataclass(frozen=True)
class StreamCompleted:
    pass


@dataclass(frozen=True)
class StreamFailed:
    message: str


TransportEvent = Union[TextDelta, StreamCompleted, StreamFailed]


# --- Caller side: what the pipeline publishes ---

COMPLETE = "complete"
ERROR = "error"


@dataclass
class JourneyEvent:
    """One published event: a category batch, ``complete`` or ``error``."""

    type: str
    data: Any = None
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def terminal(self) -> bool:
        return self.type in (COMPLETE, ERROR)
