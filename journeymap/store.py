"""Process-wide in-memory journey store with per-journey undo history."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from journeymap.models.journey import Journey

logger = logging.getLogger(__name__)


@dataclass
class JourneyHistory:
    """Past/present/future stack for one journey."""

    present: Journey
    past: list[Journey] = field(default_factory=list)
    future: list[Journey] = field(default_factory=list)
    limit: int = 50

    def push(self, journey: Journey) -> None:
        self.past.append(self.present)
        if len(self.past) > self.limit:
            del self.past[: len(self.past) - self.limit]
        self.present = journey
        self.future.clear()

    def undo(self) -> Journey | None:
        if not self.past:
            return None
        self.future.insert(0, self.present)
        self.present = self.past.pop()
        return self.present

    def redo(self) -> Journey | None:
        if not self.future:
            return None
        self.past.append(self.present)
        self.present = self.future.pop(0)
        return self.present

    @property
    def can_undo(self) -> bool:
        return bool(self.past)

    @property
    def can_redo(self) -> bool:
        return bool(self.future)


class JourneyStore:
    def __init__(self, history_limit: int = 50) -> None:
        self._lock = threading.Lock()
        self._journeys: dict[str, JourneyHistory] = {}
        self.history_limit = history_limit

    def create(self, journey: Journey) -> Journey:
        """Store a freshly built journey, replacing any history under its id."""
        with self._lock:
            self._journeys[journey.id] = JourneyHistory(present=journey, limit=self.history_limit)
        logger.debug("Stored journey %s", journey.id)
        return journey

    def get(self, journey_id: str) -> Journey | None:
        with self._lock:
            entry = self._journeys.get(journey_id)
            return entry.present if entry else None

    def list(self) -> list[Journey]:
        """All journeys, most recently updated first."""
        with self._lock:
            journeys = [h.present for h in self._journeys.values()]
        return sorted(journeys, key=lambda j: j.updated_at, reverse=True)

    def commit(self, journey: Journey) -> Journey:
        """Record an edited journey as the new present state."""
        with self._lock:
            entry = self._journeys.get(journey.id)
            if entry is None:
                raise KeyError(f"Journey not found: {journey.id}")
            entry.push(journey)
        return journey

    def undo(self, journey_id: str) -> Journey | None:
        """Step back one edit. None if there is nothing to undo."""
        with self._lock:
            entry = self._journeys.get(journey_id)
            if entry is None:
                raise KeyError(f"Journey not found: {journey_id}")
            return entry.undo()

    def redo(self, journey_id: str) -> Journey | None:
        with self._lock:
            entry = self._journeys.get(journey_id)
            if entry is None:
                raise KeyError(f"Journey not found: {journey_id}")
            return entry.redo()

    def history(self, journey_id: str) -> JourneyHistory | None:
        with self._lock:
            return self._journeys.get(journey_id)

    def delete(self, journey_id: str) -> bool:
        with self._lock:
            return self._journeys.pop(journey_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._journeys)
