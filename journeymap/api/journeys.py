"""/api/journeys: create from a scenario, read, edit, undo/redo."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from fastapi import APIRouter, Depends, HTTPException, status

from journeymap.dependencies import get_extraction_client, get_pipeline, get_store
from journeymap.engine import editing
from journeymap.engine.pipeline import JourneyPipeline
from journeymap.llm.client import ExtractionClient, ExtractionError
from journeymap.models.journey import Journey
from journeymap.models.requests import (
    CreateJourneyRequest,
    EdgeCreateRequest,
    EdgeUpdateRequest,
    MoveNodeRequest,
    NodeUpdateRequest,
    UpdateJourneyRequest,
)
from journeymap.models.responses import CreateJourneyResponse, JourneyListResponse, JourneyResponse
from journeymap.store import JourneyStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/journeys", tags=["journeys"])


def _load(store: JourneyStore, journey_id: str) -> Journey:
    journey = store.get(journey_id)
    if journey is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, f"Journey not found: {journey_id}")
    return journey


def _respond(store: JourneyStore, journey: Journey) -> JourneyResponse:
    history = store.history(journey.id)
    return JourneyResponse(
        journey=journey,
        can_undo=bool(history and history.can_undo),
        can_redo=bool(history and history.can_redo),
    )


def _apply(store: JourneyStore, journey_id: str, edit: Callable[[Journey], Journey]) -> JourneyResponse:
    """Run one edit against the stored journey and commit the result."""
    journey = _load(store, journey_id)
    try:
        edited = edit(journey)
    except KeyError as e:
        raise HTTPException(status.HTTP_404_NOT_FOUND, e.args[0] if e.args else "Not found") from e
    except ValueError as e:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(e)) from e
    store.commit(edited)
    return _respond(store, edited)


@router.get("", response_model=JourneyListResponse)
async def list_journeys(store: JourneyStore = Depends(get_store)) -> JourneyListResponse:
    journeys = store.list()
    return JourneyListResponse(journeys=journeys, total=len(journeys))


@router.post("", response_model=CreateJourneyResponse, status_code=status.HTTP_201_CREATED)
async def create_journey(
    req: CreateJourneyRequest,
    store: JourneyStore = Depends(get_store),
    client: ExtractionClient = Depends(get_extraction_client),
    pipeline: JourneyPipeline = Depends(get_pipeline),
) -> CreateJourneyResponse:
    if not req.scenario.strip():
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Scenario must not be empty")

    start = time.perf_counter()
    try:
        extraction = await client.extract(req.scenario)
    except ExtractionError as e:
        logger.warning("Extraction failed: %s", e)
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, str(e)) from e

    result = pipeline.assemble(extraction, req.scenario, req.title)
    store.create(result.journey)
    return CreateJourneyResponse(
        success=True,
        journey=result.journey,
        warnings=result.warnings,
        processing_time_ms=round((time.perf_counter() - start) * 1000, 1),
    )


@router.get("/{journey_id}", response_model=JourneyResponse)
async def get_journey(journey_id: str, store: JourneyStore = Depends(get_store)) -> JourneyResponse:
    return _respond(store, _load(store, journey_id))


@router.put("/{journey_id}", response_model=JourneyResponse)
async def update_journey(
    journey_id: str, req: UpdateJourneyRequest, store: JourneyStore = Depends(get_store)
) -> JourneyResponse:
    return _apply(store, journey_id, lambda j: editing.update_details(j, req.title, req.description))


@router.delete("/{journey_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_journey(journey_id: str, store: JourneyStore = Depends(get_store)) -> None:
    if not store.delete(journey_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, f"Journey not found: {journey_id}")


# --- Nodes ---


@router.patch("/{journey_id}/nodes/{node_id}", response_model=JourneyResponse)
async def update_node(
    journey_id: str, node_id: str, req: NodeUpdateRequest, store: JourneyStore = Depends(get_store)
) -> JourneyResponse:
    fields = req.model_dump(exclude_none=True)
    return _apply(store, journey_id, lambda j: editing.update_node(j, node_id, **fields))


@router.post("/{journey_id}/nodes/{node_id}/move", response_model=JourneyResponse)
async def move_node(
    journey_id: str,
    node_id: str,
    req: MoveNodeRequest,
    store: JourneyStore = Depends(get_store),
    pipeline: JourneyPipeline = Depends(get_pipeline),
) -> JourneyResponse:
    return _apply(store, journey_id, lambda j: editing.move_node(j, node_id, req.x, req.y, pipeline.config))


@router.delete("/{journey_id}/nodes/{node_id}", response_model=JourneyResponse)
async def delete_node(journey_id: str, node_id: str, store: JourneyStore = Depends(get_store)) -> JourneyResponse:
    return _apply(store, journey_id, lambda j: editing.delete_node(j, node_id))


# --- Edges ---


@router.post("/{journey_id}/edges", response_model=JourneyResponse, status_code=status.HTTP_201_CREATED)
async def create_edge(
    journey_id: str, req: EdgeCreateRequest, store: JourneyStore = Depends(get_store)
) -> JourneyResponse:
    return _apply(
        store, journey_id,
        lambda j: editing.connect_nodes(j, req.from_node_ref, req.to_node_ref, req.description),
    )


@router.patch("/{journey_id}/edges/{edge_id}", response_model=JourneyResponse)
async def update_edge(
    journey_id: str, edge_id: str, req: EdgeUpdateRequest, store: JourneyStore = Depends(get_store)
) -> JourneyResponse:
    return _apply(
        store, journey_id,
        lambda j: editing.update_edge(j, edge_id, req.from_node_ref, req.to_node_ref, req.description),
    )


@router.delete("/{journey_id}/edges/{edge_id}", response_model=JourneyResponse)
async def delete_edge(journey_id: str, edge_id: str, store: JourneyStore = Depends(get_store)) -> JourneyResponse:
    return _apply(store, journey_id, lambda j: editing.delete_edge(j, edge_id))


# --- History ---


@router.post("/{journey_id}/undo", response_model=JourneyResponse)
async def undo(journey_id: str, store: JourneyStore = Depends(get_store)) -> JourneyResponse:
    _load(store, journey_id)
    if store.undo(journey_id) is None:
        raise HTTPException(status.HTTP_409_CONFLICT, "Nothing to undo")
    return _respond(store, _load(store, journey_id))


@router.post("/{journey_id}/redo", response_model=JourneyResponse)
async def redo(journey_id: str, store: JourneyStore = Depends(get_store)) -> JourneyResponse:
    _load(store, journey_id)
    if store.redo(journey_id) is None:
        raise HTTPException(status.HTTP_409_CONFLICT, "Nothing to redo")
    return _respond(store, _load(store, journey_id))
