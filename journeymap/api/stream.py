"""POST /api/journeys/stream: progressive journey extraction over SSE."""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import AsyncGenerator
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import StreamingResponse

from journeymap.dependencies import get_extraction_client, get_pipeline, get_store
from journeymap.engine.events import COMPLETE, JourneyEvent
from journeymap.engine.pipeline import JourneyPipeline
from journeymap.llm.client import ExtractionClient
from journeymap.models.requests import CreateJourneyRequest
from journeymap.store import JourneyStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["journeys"])


def sse_frame(event_type: str, payload: dict[str, Any]) -> str:
    data = json.dumps(jsonable_encoder(payload, by_alias=True))
    return f"event: {event_type}\ndata: {data}\n\n"


def _event_frame(event: JourneyEvent) -> str:
    return sse_frame(event.type, {"type": event.type, "data": event.data, "meta": event.meta})


async def _stream_journey(
    req: CreateJourneyRequest,
    client: ExtractionClient,
    pipeline: JourneyPipeline,
    store: JourneyStore,
) -> AsyncGenerator[str, None]:
    """Relay pipeline events as SSE, storing the journey once it completes."""
    journey_id = str(uuid.uuid4())
    yield sse_frame("start", {"type": "start", "journeyId": journey_id})

    transport = client.stream(req.scenario)
    async for event in pipeline.run_streaming(transport, req.scenario, req.title, journey_id):
        if event.type == COMPLETE:
            store.create(event.data)
        yield _event_frame(event)

    yield f"event: done\ndata: {json.dumps({'type': 'done'})}\n\n"


@router.post("/journeys/stream")
async def stream_journey(
    req: CreateJourneyRequest,
    store: JourneyStore = Depends(get_store),
    client: ExtractionClient = Depends(get_extraction_client),
    pipeline: JourneyPipeline = Depends(get_pipeline),
) -> StreamingResponse:
    if not req.scenario.strip():
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Scenario must not be empty")

    return StreamingResponse(
        _stream_journey(req, client, pipeline, store),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
