"""FastAPI dependency injection."""

from __future__ import annotations

from fastapi import Request

from journeymap.config import settings
from journeymap.engine.pipeline import JourneyPipeline
from journeymap.llm.client import ExtractionClient
from journeymap.store import JourneyStore


def get_settings():
    return settings


def get_store(request: Request) -> JourneyStore:
    return request.app.state.store


def get_extraction_client(request: Request) -> ExtractionClient:
    return request.app.state.extraction_client


def get_pipeline(request: Request) -> JourneyPipeline:
    return request.app.state.pipeline
