"""Master API router — mounts all endpoint routers."""

from __future__ import annotations

from fastapi import APIRouter

from journeymap.api import health, journeys, stream

api_router = APIRouter(prefix="/api")

api_router.include_router(health.router)
# Streaming route first so /journeys/stream is not captured by /journeys/{journey_id}
api_router.include_router(stream.router)
api_router.include_router(journeys.router)
