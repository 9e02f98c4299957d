"""Pipeline orchestrator — extraction stream in, journey events out."""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import AsyncGenerator, AsyncIterable, Callable, Mapping
from typing import Any

from journeymap.engine.assembler import AssemblyResult, JourneyAssembler, assemble_journey
from journeymap.engine.config import AssemblyConfig
from journeymap.engine.events import (
    COMPLETE,
    ERROR,
    EXTRACTION_KEYS,
    Category,
    JourneyEvent,
    StreamCompleted,
    StreamFailed,
    TextDelta,
    TransportEvent,
)
from journeymap.engine.extractor import IncrementalJsonExtractor
from journeymap.models.journey import Journey

logger = logging.getLogger(__name__)


class JourneyPipeline:
    """Builds journeys from extraction output, one-shot or streaming."""

    def __init__(self, config: AssemblyConfig | None = None) -> None:
        self.config = config or AssemblyConfig()

    def assemble(
        self,
        extraction: Mapping[str, Any],
        scenario: str,
        title: str | None = None,
        journey_id: str | None = None,
    ) -> AssemblyResult:
        """Assemble a journey from a complete extraction payload."""
        start = time.perf_counter()
        result = assemble_journey(extraction, scenario, title, self.config, journey_id)
        j = result.journey
        logger.info(
            "Assembled journey %s: %d actors, %d phases, %d contexts, %d nodes, %d edges, "
            "%d intersections (%d low-confidence refs) in %.1fms",
            j.id, len(j.actors), len(j.phases), len(j.contexts), len(j.nodes), len(j.edges),
            len(j.intersections), len(result.issues), (time.perf_counter() - start) * 1000,
        )
        return result

    async def run_streaming(
        self,
        transport: AsyncIterable[TransportEvent],
        scenario: str,
        title: str | None = None,
        journey_id: str | None = None,
    ) -> AsyncGenerator[JourneyEvent, None]:
        """Consume a token-delta stream, yielding each category as it is built.

        Ends with exactly one ``complete`` event carrying the Journey, or one
        ``error`` event. Categories that never finished streaming come out
        empty. Cancelling the consumer closes the extractor.
        """
        journey_id = journey_id or str(uuid.uuid4())
        extractor = IncrementalJsonExtractor(EXTRACTION_KEYS)
        assembler = JourneyAssembler(self.config)
        start = time.perf_counter()
        deltas = 0
        completed = False

        try:
            try:
                async for event in transport:
                    if isinstance(event, TextDelta):
                        deltas += 1
                        for key, value in extractor.feed(event.text):
                            for built in assembler.apply(Category(key), value):
                                yield self._category_event(built, start)
                    elif isinstance(event, StreamFailed):
                        logger.warning("Extraction stream failed after %d deltas: %s", deltas, event.message)
                        yield JourneyEvent(ERROR, {"message": event.message})
                        return
                    elif isinstance(event, StreamCompleted):
                        completed = True
                        break
                    else:
                        logger.warning("Ignoring unknown transport event %r", event)
            except Exception as e:
                logger.exception("Extraction stream raised after %d deltas", deltas)
                yield JourneyEvent(ERROR, {"message": str(e) or "Streaming extraction failed"})
                return

            if not completed:
                logger.warning("Transport ended without a completion signal; finishing with what arrived")

            missing = extractor.finish()
            for built in assembler.finish():
                yield self._category_event(built, start)

            journey = assembler.journey(journey_id, title, scenario)
            warnings = [i.describe() for i in assembler.issues]
            warnings.extend(f"{key}: not extracted" for key in missing)
            logger.info(
                "Streamed journey %s: %d deltas, %d nodes, %d edges, %d warnings in %.0fms",
                journey.id, deltas, len(journey.nodes), len(journey.edges), len(warnings),
                (time.perf_counter() - start) * 1000,
            )
            yield JourneyEvent(COMPLETE, journey, meta={"missing": missing, "warnings": warnings})
        finally:
            extractor.close()

    async def run(
        self,
        transport: AsyncIterable[TransportEvent],
        scenario: str,
        on_event: Callable[[str, Any], None],
        title: str | None = None,
        journey_id: str | None = None,
    ) -> Journey | None:
        """Callback flavour of ``run_streaming``: ``on_event(key, data)`` per event."""
        journey: Journey | None = None
        async for event in self.run_streaming(transport, scenario, title, journey_id):
            on_event(event.type, event.data)
            if event.type == COMPLETE:
                journey = event.data
        return journey

    @staticmethod
    def _category_event(built: tuple[Category, list[Any]], start: float) -> JourneyEvent:
        category, entities = built
        elapsed_ms = round((time.perf_counter() - start) * 1000, 1)
        logger.debug("  %s: %d built at %.1fms", category.value, len(entities), elapsed_ms)
        return JourneyEvent(category.value, entities, meta={"elapsed_ms": elapsed_ms})


def create_pipeline(config: AssemblyConfig | None = None) -> JourneyPipeline:
    """Factory function for creating a pipeline instance."""
    return JourneyPipeline(config=config)
