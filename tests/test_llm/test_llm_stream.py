"""Tests for the LLM transport layer (no network calls)."""

from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace

import pytest

from journeymap.config import Settings
from journeymap.engine.events import StreamCompleted, StreamFailed, TextDelta
from journeymap.llm.client import NOT_CONFIGURED, ExtractionClient, ExtractionError, strip_fences
from journeymap.llm.model_router import get_model_for_task
from journeymap.llm.prompts import format_user_message, get_all_templates, get_prompt_template
from journeymap.llm.stream import _chunk_text, stream_deltas
from tests.conftest import EXTRACTION, EXTRACTION_JSON, chunked


class FakeLLM:
    def __init__(self, chunks=(), response="", fail_after=None):
        self.chunks = list(chunks)
        self.response = response
        self.fail_after = fail_after

    async def astream(self, messages):
        for i, chunk in enumerate(self.chunks):
            if self.fail_after is not None and i == self.fail_after:
                raise RuntimeError("stream dropped")
            yield SimpleNamespace(content=chunk)

    async def ainvoke(self, messages):
        return SimpleNamespace(content=self.response)


def _drain(agen):
    async def _run():
        return [e async for e in agen]

    return asyncio.run(_run())


def _client(api_key="test-key", llm=None):
    client = ExtractionClient(Settings(anthropic_api_key=api_key))
    if llm is not None:
        client._llms["extract"] = llm
        client._llms["extract_stream"] = llm
    return client


class TestChunkText:
    def test_plain_string(self):
        assert _chunk_text(SimpleNamespace(content='{"actors"')) == '{"actors"'

    def test_text_blocks(self):
        chunk = SimpleNamespace(content=[
            {"type": "thinking", "thinking": "hmm"},
            {"type": "text", "text": "[1,"},
            {"type": "text", "text": " 2]"},
        ])
        assert _chunk_text(chunk) == "[1, 2]"

    def test_empty_and_unknown(self):
        assert _chunk_text(SimpleNamespace(content=[])) == ""
        assert _chunk_text(SimpleNamespace(content=None)) == ""


def test_stream_deltas_relays_text():
    events = _drain(stream_deltas(FakeLLM(["a", "", "b"]), []))
    assert events == [TextDelta("a"), TextDelta("b"), StreamCompleted()]


def test_stream_deltas_failure():
    events = _drain(stream_deltas(FakeLLM(["a", "b"], fail_after=1), []))
    assert events == [TextDelta("a"), StreamFailed("stream dropped")]


def test_unconfigured_stream_fails_once():
    events = _drain(_client(api_key="").stream("scenario"))
    assert events == [StreamFailed(NOT_CONFIGURED)]


def test_unconfigured_extract_raises():
    with pytest.raises(ExtractionError):
        asyncio.run(_client(api_key="").extract("scenario"))


def test_extract_strips_fences():
    llm = FakeLLM(response=f"```json\n{EXTRACTION_JSON}\n```")
    assert asyncio.run(_client(llm=llm).extract("scenario")) == EXTRACTION


def test_extract_invalid_json():
    llm = FakeLLM(response="I could not find any actors.")
    with pytest.raises(ExtractionError):
        asyncio.run(_client(llm=llm).extract("scenario"))


def test_extract_non_object():
    llm = FakeLLM(response="[1, 2]")
    with pytest.raises(ExtractionError):
        asyncio.run(_client(llm=llm).extract("scenario"))


def test_client_stream():
    llm = FakeLLM(chunked(json.dumps(EXTRACTION), 13))
    events = _drain(_client(llm=llm).stream("scenario"))
    assert events[-1] == StreamCompleted()
    assert "".join(e.text for e in events[:-1]) == json.dumps(EXTRACTION)


def test_strip_fences():
    assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_fences('{"a": 1}') == '{"a": 1}'


def test_prompts():
    template = get_prompt_template("extract")
    for key in EXTRACTION:
        assert f'"{key}"' in template
    assert get_prompt_template("unknown") == template
    assert "Forklift" in format_user_message("Forklift arrives")
    assert "extract" in get_all_templates()


def test_model_routing():
    settings = Settings(model_mid="mid-model", model_cheap="cheap-model")
    assert get_model_for_task("extract", settings) == "mid-model"
    assert get_model_for_task("extract_stream", settings) == "mid-model"
    assert get_model_for_task("summarize", settings) == "mid-model"
