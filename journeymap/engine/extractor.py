"""Incremental extraction of top-level arrays from a streamed JSON object.

The extraction model streams one JSON object of the shape
``{"actors": [...], "phases": [...], ...}`` a few characters at a time. The
assembler wants each category as soon as its array is complete instead of
waiting for the whole response, so the extractor watches the accumulated text
and hands back every ``(key, array)`` pair the moment its closing bracket
arrives.

This is not a general streaming JSON parser. It runs a single-pass structural
scan over the buffer that tracks string literals (quotes and backslash
escapes, even across delta boundaries) and the bracket stack, and only
recognises ``"<key>": [`` directly inside the root object. Once an array
closes, its exact slice is handed to ``json.loads``. A key is emitted at most
once per stream.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from journeymap.engine.events import EXTRACTION_KEYS

logger = logging.getLogger(__name__)


class IncrementalJsonExtractor:
    """Feed text deltas in, get completed top-level arrays out."""

    def __init__(self, keys: Sequence[str] = EXTRACTION_KEYS) -> None:
        self.keys = tuple(keys)
        self._rank = {k: i for i, k in enumerate(self.keys)}
        self.reset()

    def reset(self) -> None:
        """Forget everything; the next feed starts a new stream."""
        self._buffer = ""
        self._pos = 0
        self._closed = False
        self._emitted: set[str] = set()

        # Scanner state
        self._stack: list[str] = []
        self._in_string = False
        self._escape = False
        self._string_start = -1
        self._member: str | None = None  # current key of the root object
        self._after_colon = False
        self._array_key: str | None = None
        self._array_start = -1

    # ------------------------------------------------------------------

    @property
    def buffer(self) -> str:
        return self._buffer

    @property
    def emitted(self) -> frozenset[str]:
        return frozenset(self._emitted)

    @property
    def pending(self) -> list[str]:
        return [k for k in self.keys if k not in self._emitted]

    @property
    def closed(self) -> bool:
        return self._closed

    def feed(self, delta: str) -> list[tuple[str, Any]]:
        """Append a delta; return the arrays it completed, in key order."""
        if self._closed or not delta:
            return []
        self._buffer += delta
        completed = self._scan()
        completed.sort(key=lambda kv: self._rank[kv[0]])
        return completed

    def finish(self) -> list[str]:
        """End of stream. Returns the keys that never completed."""
        missing = self.pending
        if missing:
            logger.info("Stream finished without %s", ", ".join(missing))
        self.close()
        return missing

    def close(self) -> None:
        """Stop emitting and drop the buffered text."""
        self._closed = True
        self._buffer = ""
        self._pos = 0
        self._stack.clear()

    # ------------------------------------------------------------------

    def _scan(self) -> list[tuple[str, Any]]:
        buf = self._buffer
        completed: list[tuple[str, Any]] = []

        for i in range(self._pos, len(buf)):
            c = buf[i]

            if self._in_string:
                if self._escape:
                    self._escape = False
                elif c == "\\":
                    self._escape = True
                elif c == '"':
                    self._in_string = False
                    self._on_string_end(i)
                continue

            if not self._stack:
                # Anything before the root object (code fences, prose) is noise
                if c == "{":
                    self._stack.append(c)
                    self._member = None
                    self._after_colon = False
                continue

            if c == '"':
                self._in_string = True
                self._string_start = i
            elif c == "{" or c == "[":
                if c == "[" and len(self._stack) == 1 and self._after_colon and self._member is not None:
                    self._array_key = self._member
                    self._array_start = i
                self._stack.append(c)
            elif c == "}" or c == "]":
                self._stack.pop()
                if c == "]" and len(self._stack) == 1 and self._array_key is not None:
                    result = self._try_emit(self._array_key, self._array_start, i)
                    if result is not None:
                        completed.append(result)
                    self._array_key = None
            elif len(self._stack) == 1:
                if c == ":" and self._member is not None:
                    self._after_colon = True
                elif c == ",":
                    self._member = None
                    self._after_colon = False

        self._pos = len(buf)
        return completed

    def _on_string_end(self, end: int) -> None:
        if len(self._stack) != 1 or self._after_colon:
            return
        self._member = self._buffer[self._string_start + 1:end]

    def _try_emit(self, key: str, start: int, end: int) -> tuple[str, Any] | None:
        if key not in self._rank or key in self._emitted:
            return None
        try:
            value = json.loads(self._buffer[start:end + 1])
        except json.JSONDecodeError as e:
            logger.debug("Array for %r closed but did not parse: %s", key, e)
            return None
        self._emitted.add(key)
        logger.debug("Extracted %r (%d items) at offset %d", key, len(value), end)
        return (key, value)
