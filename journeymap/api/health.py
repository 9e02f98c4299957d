"""Health check + meta endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from journeymap.dependencies import get_extraction_client, get_store
from journeymap.llm.client import ExtractionClient
from journeymap.models.responses import HealthResponse
from journeymap.store import JourneyStore

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(
    store: JourneyStore = Depends(get_store),
    client: ExtractionClient = Depends(get_extraction_client),
) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version="0.1.0",
        llm_configured=client.configured,
        journeys_stored=len(store),
    )


@router.get("/prompts")
async def prompts() -> dict[str, str]:
    from journeymap.llm.prompts import get_all_templates

    return get_all_templates()
