"""Prompt templates for journey extraction."""

from __future__ import annotations

_SCHEMA_GUIDE = """OUTPUT SCHEMA: one JSON object, keys written in EXACTLY this order:

1. "actors": [{"name": str, "kind": "human" | "robot" | "system" | "other", "description": str}]
2. "phases": [{"name": str, "order": int, "duration": str}]
   Time steps of the scenario, left to right. "order" starts at 1.
3. "contexts": [{"name": str, "description": str, "order": int}]
   Physical or digital spaces where the work happens, top to bottom.
4. "nodes": [{"actorName": str, "phaseName": str, "contextName": str, "action": str,
              "emotion": "positive" | "neutral" | "negative", "emotionScore": number in [-1, 1],
              "painPoint": str, "opportunity": str}]
   One node = one actor's state in one (phase, context) cell.
   actorName / phaseName / contextName MUST repeat a name from the lists above verbatim.
5. "edges": [{"fromNodeIndex": int, "toNodeIndex": int, "description": str}]
   0-based indices into "nodes". Usually the same actor moving forward in time.
6. "intersections": [{"phaseName": str, "contextName": str, "actorNames": [str], "description": str}]
   Cells where two or more actors meet."""

_EXTRACT_TEMPLATE = """You are a user journey mapping expert. Read the scenario and extract a multi-actor journey map.

""" + _SCHEMA_GUIDE + """

RULES:
- Write the keys in the order above and finish each array before starting the next one.
- Use an empty string for painPoint / opportunity when there is none.
- Output ONLY the JSON object. No markdown fences. No text before or after it."""

_USER_TEMPLATE = """Extract the journey map elements from this scenario:

{scenario}"""

_TEMPLATES = {
    "extract": _EXTRACT_TEMPLATE,
    "extract_stream": _EXTRACT_TEMPLATE,
}


def get_prompt_template(task: str) -> str:
    return _TEMPLATES.get(task, _EXTRACT_TEMPLATE)


def format_user_message(scenario: str) -> str:
    return _USER_TEMPLATE.format(scenario=scenario)


def get_all_templates() -> dict[str, str]:
    """Return all prompt templates keyed by task name."""
    return {**_TEMPLATES, "user": _USER_TEMPLATE}
