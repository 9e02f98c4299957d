"""LangChain ChatAnthropic wrapper for scenario extraction."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import AsyncGenerator
from typing import Any

from journeymap.config import Settings, settings as default_settings
from journeymap.engine.events import StreamFailed, TransportEvent
from journeymap.llm.model_router import get_model_for_task
from journeymap.llm.prompts import format_user_message, get_prompt_template
from journeymap.llm.stream import stream_deltas

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "LLM not configured — set ANTHROPIC_API_KEY in .env"

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)


class ExtractionError(RuntimeError):
    """The model could not be reached or did not return a usable JSON object."""


def strip_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


class ExtractionClient:
    """Turns a scenario into the raw extraction payload, whole or streamed."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or default_settings
        self._llms: dict[str, Any] = {}

    @property
    def configured(self) -> bool:
        return bool(self.settings.anthropic_api_key)

    def _get_llm(self, task: str) -> Any:
        """Lazily build one ChatAnthropic per task."""
        llm = self._llms.get(task)
        if llm is None:
            from langchain_anthropic import ChatAnthropic

            llm = ChatAnthropic(
                model=get_model_for_task(task, self.settings),
                api_key=self.settings.anthropic_api_key,
                max_tokens=self.settings.llm_max_tokens,
            )
            self._llms[task] = llm
        return llm

    def _messages(self, task: str, scenario: str) -> list:
        from langchain_core.messages import HumanMessage, SystemMessage

        return [
            SystemMessage(content=get_prompt_template(task)),
            HumanMessage(content=format_user_message(scenario)),
        ]

    async def extract(self, scenario: str) -> dict[str, Any]:
        """One-shot extraction: the whole JSON object in a single response."""
        if not self.configured:
            raise ExtractionError(NOT_CONFIGURED)

        llm = self._get_llm("extract")
        try:
            response = await llm.ainvoke(self._messages("extract", scenario))
        except Exception as e:
            logger.exception("Extraction request failed")
            raise ExtractionError(f"Extraction request failed: {e}") from e

        content = response.content
        if isinstance(content, list):
            content = "".join(b.get("text", "") for b in content if isinstance(b, dict) and b.get("type") == "text")
        text = strip_fences(str(content))
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning("Extraction returned invalid JSON (%d chars): %s", len(text), e)
            raise ExtractionError(f"Model returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ExtractionError("Model returned JSON that is not an object")
        return data

    async def stream(self, scenario: str) -> AsyncGenerator[TransportEvent, None]:
        """Token-delta stream of the extraction, ending in StreamCompleted or StreamFailed."""
        if not self.configured:
            yield StreamFailed(NOT_CONFIGURED)
            return

        try:
            llm = self._get_llm("extract_stream")
            messages = self._messages("extract_stream", scenario)
        except Exception as e:
            logger.exception("Could not set up extraction stream")
            yield StreamFailed(str(e) or type(e).__name__)
            return

        async for event in stream_deltas(llm, messages):
            yield event
