"""Journey graph models: the assembled map plus the raw shapes the model emits."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ActorKind = Literal["human", "robot", "system", "other"]
Emotion = Literal["positive", "neutral", "negative"]

_ACTOR_KINDS = {"human", "robot", "system", "other"}
_EMOTIONS = {"positive", "neutral", "negative"}


class CamelModel(BaseModel):
    """Base for everything that crosses the wire as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Position(CamelModel):
    x: float = 0.0
    y: float = 0.0


class Actor(CamelModel):
    id: str
    name: str
    kind: ActorKind = "other"
    color: str
    description: str | None = None


class Phase(CamelModel):
    id: str
    name: str
    order: int = 0
    duration: str | None = None


class Context(CamelModel):
    id: str
    name: str
    description: str | None = None
    order: int = 0
    color: str | None = None


class JourneyNode(CamelModel):
    id: str
    actor_ref: str
    phase_ref: str
    context_ref: str
    action: str = ""
    emotion: Emotion = "neutral"
    emotion_score: float = 0.0
    pain_point: str | None = None
    opportunity: str | None = None
    position: Position = Field(default_factory=Position)


class JourneyEdge(CamelModel):
    id: str
    from_node_ref: str
    to_node_ref: str
    description: str = ""


class Intersection(CamelModel):
    id: str
    phase_ref: str
    context_ref: str
    node_refs: list[str] = Field(default_factory=list)
    description: str | None = None


class Journey(CamelModel):
    id: str
    title: str
    description: str = ""
    scenario: str
    actors: list[Actor] = Field(default_factory=list)
    phases: list[Phase] = Field(default_factory=list)
    contexts: list[Context] = Field(default_factory=list)
    nodes: list[JourneyNode] = Field(default_factory=list)
    edges: list[JourneyEdge] = Field(default_factory=list)
    intersections: list[Intersection] = Field(default_factory=list)
    created_at: str
    updated_at: str

    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}

    def get_node(self, node_id: str) -> JourneyNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


# ---------------------------------------------------------------------------
# Raw extraction items. The model is mostly well behaved; these coerce the
# rest into something the assembler can place.
# ---------------------------------------------------------------------------

def _text(value: object) -> str:
    if value is None:
        return ""
    return str(value)


class RawItem(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class RawActor(RawItem):
    name: str = ""
    kind: str = "other"
    description: str = ""

    @field_validator("name", "description", mode="before")
    @classmethod
    def _coerce_text(cls, v: object) -> str:
        return _text(v)

    @field_validator("kind", mode="before")
    @classmethod
    def _coerce_kind(cls, v: object) -> str:
        kind = _text(v).strip().lower()
        return kind if kind in _ACTOR_KINDS else "other"


class RawPhase(RawItem):
    name: str = ""
    order: int = 0
    duration: str = ""

    @field_validator("name", "duration", mode="before")
    @classmethod
    def _coerce_text(cls, v: object) -> str:
        return _text(v)

    @field_validator("order", mode="before")
    @classmethod
    def _coerce_order(cls, v: object) -> int:
        try:
            return int(float(v))  # type: ignore[arg-type]
        except (TypeError, ValueError, OverflowError):
            return 0


class RawContext(RawItem):
    name: str = ""
    description: str = ""
    order: int = 0

    @field_validator("name", "description", mode="before")
    @classmethod
    def _coerce_text(cls, v: object) -> str:
        return _text(v)

    @field_validator("order", mode="before")
    @classmethod
    def _coerce_order(cls, v: object) -> int:
        try:
            return int(float(v))  # type: ignore[arg-type]
        except (TypeError, ValueError, OverflowError):
            return 0


class RawNode(RawItem):
    actor_name: str = ""
    phase_name: str = ""
    context_name: str = ""
    action: str = ""
    emotion: str = "neutral"
    emotion_score: float = 0.0
    pain_point: str = ""
    opportunity: str = ""

    @field_validator(
        "actor_name", "phase_name", "context_name", "action", "pain_point", "opportunity",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, v: object) -> str:
        return _text(v)

    @field_validator("emotion", mode="before")
    @classmethod
    def _coerce_emotion(cls, v: object) -> str:
        emotion = _text(v).strip().lower()
        return emotion if emotion in _EMOTIONS else "neutral"

    @field_validator("emotion_score", mode="before")
    @classmethod
    def _clamp_score(cls, v: object) -> float:
        try:
            score = float(v)  # type: ignore[arg-type]
        except (TypeError, ValueError, OverflowError):
            return 0.0
        if score != score:  # NaN
            return 0.0
        return max(-1.0, min(1.0, score))


class RawEdge(RawItem):
    from_node_index: int = -1
    to_node_index: int = -1
    description: str = ""

    @field_validator("from_node_index", "to_node_index", mode="before")
    @classmethod
    def _coerce_index(cls, v: object) -> int:
        try:
            return int(float(v))  # type: ignore[arg-type]
        except (TypeError, ValueError, OverflowError):
            return -1

    @field_validator("description", mode="before")
    @classmethod
    def _coerce_text(cls, v: object) -> str:
        return _text(v)


class RawIntersection(RawItem):
    phase_name: str = ""
    context_name: str = ""
    actor_names: list[str] = Field(default_factory=list)
    description: str = ""

    @field_validator("phase_name", "context_name", "description", mode="before")
    @classmethod
    def _coerce_text(cls, v: object) -> str:
        return _text(v)

    @field_validator("actor_names", mode="before")
    @classmethod
    def _coerce_names(cls, v: object) -> list[str]:
        if isinstance(v, (list, tuple)):
            return [_text(n) for n in v]
        return []


def timestamp() -> str:
    """ISO-8601 UTC timestamp used for createdAt/updatedAt."""
    return datetime.now(timezone.utc).isoformat()
