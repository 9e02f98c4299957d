"""API request models."""

from __future__ import annotations

from pydantic import Field

from journeymap.models.journey import CamelModel, Emotion


class CreateJourneyRequest(CamelModel):
    scenario: str = Field(..., description="Free-text scenario to extract a journey from")
    title: str | None = Field(default=None, description="Journey title (defaults to 'New Journey Map')")


class UpdateJourneyRequest(CamelModel):
    title: str | None = None
    description: str | None = None


class NodeUpdateRequest(CamelModel):
    action: str | None = None
    emotion: Emotion | None = None
    emotion_score: float | None = Field(default=None, ge=-1.0, le=1.0)
    pain_point: str | None = None
    opportunity: str | None = None


class MoveNodeRequest(CamelModel):
    x: float = Field(..., description="Drop x coordinate (node top-left)")
    y: float = Field(..., description="Drop y coordinate (node top-left)")


class EdgeCreateRequest(CamelModel):
    from_node_ref: str
    to_node_ref: str
    description: str = ""


class EdgeUpdateRequest(CamelModel):
    from_node_ref: str | None = None
    to_node_ref: str | None = None
    description: str | None = None
