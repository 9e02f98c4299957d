"""Shared test fixtures."""

from __future__ import annotations

import copy
import json

import pytest

from journeymap.engine.events import StreamCompleted, TextDelta


SCENARIO = (
    "Worker A clocks in at the warehouse while Robot AGV boots up beside the charging bay. "
    "Worker A picks items on the floor, the AGV carries the pallet to the loading dock, "
    "and both meet there for the handover."
)

# Extraction payload as the model emits it. Cells:
#   Arrive / Warehouse Floor -> nodes 0, 1
#   Pick / Warehouse Floor   -> node 2
#   Pick / Loading Dock      -> node 3
#   Deliver / Loading Dock   -> nodes 4, 5
EXTRACTION = {
    "actors": [
        {"name": "Worker A", "kind": "human", "description": "Warehouse picker"},
        {"name": "Robot AGV", "kind": "robot", "description": "Automated guided vehicle"},
    ],
    "phases": [
        {"name": "Arrive", "order": 1, "duration": "5 min"},
        {"name": "Pick", "order": 2, "duration": "30 min"},
        {"name": "Deliver", "order": 3},
    ],
    "contexts": [
        {"name": "Warehouse Floor", "description": "Main picking area", "order": 1},
        {"name": "Loading Dock", "order": 2},
    ],
    "nodes": [
        {"actorName": "Worker A", "phaseName": "Arrive", "contextName": "Warehouse Floor",
         "action": "Clocks in", "emotion": "positive", "emotionScore": 0.5},
        {"actorName": "Robot AGV", "phaseName": "Arrive", "contextName": "Warehouse Floor",
         "action": "Boots up", "emotion": "neutral", "emotionScore": 0},
        {"actorName": "Worker A", "phaseName": "Pick", "contextName": "Warehouse Floor",
         "action": "Picks items", "emotion": "negative", "emotionScore": -0.4,
         "painPoint": "Heavy boxes", "opportunity": "Lift assist"},
        {"actorName": "Robot AGV", "phaseName": "Pick", "contextName": "Loading Dock",
         "action": "Carries pallet", "emotion": "neutral", "emotionScore": 0.1},
        {"actorName": "Worker A", "phaseName": "Deliver", "contextName": "Loading Dock",
         "action": "Hands over", "emotion": "positive", "emotionScore": 0.3},
        {"actorName": "Robot AGV", "phaseName": "Deliver", "contextName": "Loading Dock",
         "action": "Returns to dock", "emotion": "neutral", "emotionScore": 0},
    ],
    "edges": [
        {"fromNodeIndex": 0, "toNodeIndex": 2, "description": "Starts picking"},
        {"fromNodeIndex": 2, "toNodeIndex": 4, "description": "Walks to dock"},
        {"fromNodeIndex": 1, "toNodeIndex": 3, "description": "Drives to dock"},
        {"fromNodeIndex": 3, "toNodeIndex": 5, "description": "Unloads"},
    ],
    "intersections": [
        {"phaseName": "Arrive", "contextName": "Warehouse Floor",
         "actorNames": ["Worker A", "Robot AGV"], "description": "Shift start"},
        {"phaseName": "Deliver", "contextName": "Loading Dock",
         "actorNames": ["Worker A", "Robot AGV"], "description": "Pallet handover"},
    ],
}

EXTRACTION_JSON = json.dumps(EXTRACTION, indent=2)


def extraction() -> dict:
    """Fresh deep copy of the sample payload, safe to mutate."""
    return copy.deepcopy(EXTRACTION)


def chunked(text: str, size: int = 7) -> list[str]:
    """Split text into fixed-size deltas, the way a token stream arrives."""
    return [text[i:i + size] for i in range(0, len(text), size)]


async def transport(chunks, end=StreamCompleted()):
    """Async transport over text chunks, terminated by ``end`` (None for no signal)."""
    for chunk in chunks:
        yield TextDelta(chunk)
    if end is not None:
        yield end


class FakeExtractionClient:
    """Stands in for the LLM client: returns the sample payload, whole or streamed."""

    configured = True

    def __init__(self, payload: dict | None = None, chunk_size: int = 11) -> None:
        self.payload = payload if payload is not None else extraction()
        self.chunk_size = chunk_size
        self.calls: list[str] = []

    async def extract(self, scenario: str) -> dict:
        self.calls.append(scenario)
        return copy.deepcopy(self.payload)

    async def stream(self, scenario: str):
        self.calls.append(scenario)
        async for event in transport(chunked(json.dumps(self.payload), self.chunk_size)):
            yield event


@pytest.fixture
def scenario() -> str:
    return SCENARIO


@pytest.fixture
def raw_extraction() -> dict:
    return extraction()


@pytest.fixture
def journey():
    from journeymap.engine.assembler import assemble_journey

    return assemble_journey(extraction(), SCENARIO, journey_id="journey-test").journey
