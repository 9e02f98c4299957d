"""Streaming LLM output as transport events."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

from journeymap.engine.events import StreamCompleted, StreamFailed, TextDelta, TransportEvent


def _chunk_text(chunk: Any) -> str:
    """Pull the text out of a streamed message chunk.

    Content is either a plain string or a list of content blocks; only
    ``text`` blocks carry output, everything else (thinking, tool use) is
    dropped.
    """
    content = getattr(chunk, "content", chunk)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type", "") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return ""


async def stream_deltas(llm: Any, messages: list) -> AsyncGenerator[TransportEvent, None]:
    """Relay ``llm.astream`` as TextDelta events, then StreamCompleted.

    A failure mid-stream becomes one StreamFailed and ends the stream.
    """
    try:
        async for chunk in llm.astream(messages):
            text = _chunk_text(chunk)
            if text:
                yield TextDelta(text)
    except Exception as e:
        yield StreamFailed(str(e) or type(e).__name__)
        return

    yield StreamCompleted()
