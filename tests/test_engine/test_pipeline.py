"""Tests for the streaming journey pipeline."""

from __future__ import annotations

import asyncio
import json

from journeymap.engine import pipeline as pipeline_module
from journeymap.engine.events import COMPLETE, ERROR, EXTRACTION_KEYS, StreamFailed, TextDelta
from journeymap.engine.extractor import IncrementalJsonExtractor
from journeymap.engine.pipeline import JourneyPipeline, create_pipeline
from journeymap.models.journey import Journey
from tests.conftest import EXTRACTION_JSON, SCENARIO, chunked, extraction, transport


def _collect(pipeline, source, **kwargs):
    async def _run():
        return [e async for e in pipeline.run_streaming(source, SCENARIO, **kwargs)]

    return asyncio.run(_run())


def test_create_pipeline():
    pipeline = create_pipeline()
    assert isinstance(pipeline, JourneyPipeline)


def test_stream_emits_each_category_then_complete():
    events = _collect(create_pipeline(), transport(chunked(EXTRACTION_JSON)))
    assert [e.type for e in events] == [*EXTRACTION_KEYS, COMPLETE]
    journey = events[-1].data
    assert isinstance(journey, Journey)
    assert len(journey.nodes) == 6
    assert events[-1].meta == {"missing": [], "warnings": []}


def test_category_events_carry_built_entities():
    events = _collect(create_pipeline(), transport(chunked(EXTRACTION_JSON)))
    by_type = {e.type: e for e in events}
    assert [a.id for a in by_type["actors"].data] == ["actor-0", "actor-1"]
    assert by_type["nodes"].data[0].phase_ref == "phase-0"
    assert "elapsed_ms" in by_type["edges"].meta


def test_stream_matches_one_shot():
    pipeline = create_pipeline()
    events = _collect(pipeline, transport(chunked(EXTRACTION_JSON, 3)), journey_id="j")
    streamed = events[-1].data
    one_shot = pipeline.assemble(extraction(), SCENARIO, journey_id="j").journey
    assert streamed.nodes == one_shot.nodes
    assert streamed.edges == one_shot.edges
    assert streamed.intersections == one_shot.intersections


def test_categories_published_before_stream_ends():
    consumed = []
    text = EXTRACTION_JSON
    chunks = chunked(text, 25)

    async def source():
        for chunk in chunks:
            consumed.append(chunk)
            yield TextDelta(chunk)

    async def _run():
        async for event in create_pipeline().run_streaming(source(), SCENARIO):
            if event.type == "actors":
                return "".join(consumed)
        return None

    seen = asyncio.run(_run())
    assert seen is not None
    assert len(seen) < len(text)
    assert '"intersections"' not in seen


def test_failure_emits_single_error():
    cut = EXTRACTION_JSON.index('"nodes"')
    events = _collect(
        create_pipeline(),
        transport(chunked(EXTRACTION_JSON[:cut]), end=StreamFailed("overloaded")),
    )
    assert [e.type for e in events] == ["actors", "phases", "contexts", ERROR]
    assert events[-1].data == {"message": "overloaded"}


def test_transport_exception_emits_error():
    async def source():
        yield TextDelta('{"actors": [')
        raise ConnectionError("socket closed")

    events = _collect(create_pipeline(), source())
    assert [e.type for e in events] == [ERROR]
    assert "socket closed" in events[0].data["message"]


def test_missing_completion_signal_still_completes():
    events = _collect(create_pipeline(), transport(chunked(EXTRACTION_JSON), end=None))
    assert events[-1].type == COMPLETE
    assert len(events[-1].data.edges) == 4


def test_truncated_stream_completes_with_missing():
    cut = EXTRACTION_JSON.index('"intersections"')
    events = _collect(create_pipeline(), transport(chunked(EXTRACTION_JSON[:cut])))
    complete = events[-1]
    assert complete.type == COMPLETE
    assert complete.data.intersections == []
    assert complete.meta["missing"] == ["intersections"]
    assert "intersections: not extracted" in complete.meta["warnings"]


def test_out_of_order_categories_are_deferred():
    payload = extraction()
    reordered = {k: payload[k] for k in ["nodes", "actors", "phases", "contexts", "edges", "intersections"]}
    events = _collect(create_pipeline(), transport(chunked(json.dumps(reordered))))
    assert [e.type for e in events] == [*EXTRACTION_KEYS, COMPLETE]
    assert len(events[-1].data.nodes) == 6


def test_nodes_without_dependencies_built_at_end():
    text = json.dumps({"actors": extraction()["actors"], "nodes": extraction()["nodes"]})
    events = _collect(create_pipeline(), transport(chunked(text)))
    types = [e.type for e in events]
    assert types == ["actors", "nodes", COMPLETE]
    assert events[1].data == []
    assert events[-1].meta["missing"] == ["phases", "contexts", "edges", "intersections"]


def test_title_and_id_pass_through():
    events = _collect(create_pipeline(), transport(chunked(EXTRACTION_JSON)), title="Dock shift", journey_id="abc")
    journey = events[-1].data
    assert journey.title == "Dock shift"
    assert journey.id == "abc"


def test_run_with_callback():
    received = []
    journey = asyncio.run(
        create_pipeline().run(
            transport(chunked(EXTRACTION_JSON)),
            SCENARIO,
            lambda key, data: received.append(key),
        )
    )
    assert received == [*EXTRACTION_KEYS, COMPLETE]
    assert isinstance(journey, Journey)


def test_run_returns_none_on_error():
    received = []
    journey = asyncio.run(
        create_pipeline().run(transport([], end=StreamFailed("nope")), SCENARIO, lambda k, d: received.append(k))
    )
    assert journey is None
    assert received == [ERROR]


def test_completed_before_nodes_degrades_gracefully():
    cut = EXTRACTION_JSON.index('"nodes"')
    events = _collect(create_pipeline(), transport(chunked(EXTRACTION_JSON[:cut])))
    assert [e.type for e in events] == ["actors", "phases", "contexts", COMPLETE]
    journey = events[-1].data
    assert journey.nodes == []
    assert journey.edges == []
    assert journey.intersections == []
    assert [a.id for a in journey.actors] == ["actor-0", "actor-1"]
    assert len(journey.phases) == 3
    assert len(journey.contexts) == 2
    assert events[-1].meta["missing"] == ["nodes", "edges", "intersections"]


def test_cancelled_consumer_closes_extractor(monkeypatch):
    extractors = []

    class RecordingExtractor(IncrementalJsonExtractor):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            extractors.append(self)

    monkeypatch.setattr(pipeline_module, "IncrementalJsonExtractor", RecordingExtractor)

    async def _run():
        seen = []
        stream = create_pipeline().run_streaming(transport(chunked(EXTRACTION_JSON, 25)), SCENARIO)
        async for event in stream:
            seen.append(event.type)
            if event.type == "actors":
                break
        await stream.aclose()
        return seen

    seen = asyncio.run(_run())
    assert seen == ["actors"]
    assert len(extractors) == 1
    assert extractors[0].closed
    assert extractors[0].buffer == ""
    assert extractors[0].feed('"nodes": []}') == []
