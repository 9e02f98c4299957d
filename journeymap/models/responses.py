"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from journeymap.models.journey import CamelModel, Journey


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    llm_configured: bool = False
    journeys_stored: int = 0


class JourneyResponse(CamelModel):
    journey: Journey
    can_undo: bool = False
    can_redo: bool = False


class JourneyListResponse(CamelModel):
    journeys: list[Journey] = Field(default_factory=list)
    total: int = 0


class CreateJourneyResponse(CamelModel):
    success: bool
    journey: Journey | None = None
    error: str | None = None
    warnings: list[str] = Field(default_factory=list)
    processing_time_ms: float = 0.0
