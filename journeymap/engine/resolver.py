"""Fuzzy name resolution: map a model-written name back to an extracted entity.

The model refers to actors, phases and contexts by name, and it does not
always spell them the same way twice. Resolution is best-effort, first match
wins:

1. ID form: ``phase-3`` (0-based) or the short form ``P4`` (1-based).
2. Exact name equality.
3. Substring containment in either direction, first candidate in list order.
4. Fallback to index 0.

Step 4 silently misattributes rather than failing. The returned
``MatchQuality`` lets callers log or flag those low-confidence matches.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

# Short-form letter per ID prefix ("P2" -> second phase)
_SHORT_LETTERS = {
    "actor": "A",
    "phase": "P",
    "context": "C",
    "node": "N",
}


class MatchQuality(enum.IntEnum):
    """How a resolution was reached. Higher is more trustworthy."""

    FALLBACK = 0
    PARTIAL = 1
    EXACT = 2
    ID = 3


@dataclass(frozen=True)
class Resolution:
    index: int
    quality: MatchQuality

    @property
    def confident(self) -> bool:
        return self.quality >= MatchQuality.EXACT


def _name_of(candidate: Any) -> str:
    if isinstance(candidate, Mapping):
        name = candidate.get("name", "")
    else:
        name = getattr(candidate, "name", "")
    return "" if name is None else str(name)


def _match_id(query: str, id_prefix: str, count: int) -> int | None:
    long_form = re.fullmatch(rf"{re.escape(id_prefix)}-(\d+)", query)
    if long_form:
        idx = int(long_form.group(1))
        return idx if idx < count else None

    letter = _SHORT_LETTERS.get(id_prefix, id_prefix[:1].upper())
    short_form = re.fullmatch(r"([A-Z])(\d+)", query)
    if short_form and short_form.group(1) == letter:
        idx = int(short_form.group(2)) - 1
        return idx if 0 <= idx < count else None
    return None


def resolve(
    candidates: Sequence[Any],
    query: Any,
    id_prefix: str | None = None,
) -> Resolution:
    """Resolve ``query`` to an index into ``candidates``.

    Never raises for a non-empty candidate list and always returns an index in
    range. An empty list is a caller error.
    """
    if not candidates:
        raise ValueError("Cannot resolve a name against an empty candidate list")

    raw = "" if query is None else str(query)
    text = raw.strip()
    names = [_name_of(c) for c in candidates]

    # Only the ID form tolerates surrounding whitespace
    if id_prefix and text:
        idx = _match_id(text, id_prefix, len(names))
        if idx is not None:
            return Resolution(idx, MatchQuality.ID)

    for i, name in enumerate(names):
        if name == raw:
            return Resolution(i, MatchQuality.EXACT)

    if text:
        for i, name in enumerate(names):
            if name and (raw in name or name in raw):
                return Resolution(i, MatchQuality.PARTIAL)

    return Resolution(0, MatchQuality.FALLBACK)


def resolve_index(candidates: Sequence[Any], query: Any, id_prefix: str | None = None) -> int:
    return resolve(candidates, query, id_prefix).index
