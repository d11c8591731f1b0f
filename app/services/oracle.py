"""
Extraction oracle: free-text note → structured data, via Gemini.

Contract
--------
extract_daily_metrics(note_text, day)       → MetricsExtraction(structured, raw)
extract_procrastination_events(document)    → list[dict]

Both coroutines are fail-safe: SDK/network errors and responses without a
locatable JSON fragment come back as `structured=None` (raw carries an
"Error: ..." diagnostic) or as an empty list. Nothing raises past this module.
Defaults and null handling are NOT applied here; see app/services/extraction.py.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from typing import Any, Optional, Protocol

from google import genai

from app.core.config import settings

logger = logging.getLogger(__name__)

_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")
_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")


def _reject_constant(name: str) -> Any:
    # json.loads accepts NaN / Infinity; strict JSON does not
    raise ValueError(f"non-finite number {name}")


DAILY_METRICS_PROMPT = """
Analyze the following Obsidian daily note for date {day}.
Extract the following metrics in JSON format.
IMPORTANT:
- Only log "procrastination_minutes" or "dispersion_minutes" if they are EXPLICITLY mentioned in minutes/hours or can be calculated from explicit durations of specifically mentioned activities.
- DO NOT assume or infer durations from qualitative phrases like "all day long", "most of the day", or "I procrastinated a lot".
- DO NOT calculate procrastination by looking at gaps between timestamps.
- If no explicit duration is given for a procrastination/dispersion event, use 0 for that specific event.
- If a metric is missing or blank in the note, return null (do not use 0).
- DO NOT assume a late start time is procrastination unless explicitly labeled.

Metrics:
- start_time: HH:MM (24h format)
- work_hours: number (Net productivity hours. If "Total: 9h - 15 min = 8h45min", work_hours is 8.75. If not explicit, estimate from log)
- total_hours: number (Gross hours before deductions)
- procrastination_minutes: number
- dispersion_minutes: number
- mindfulness_moments: number (Count SHORT mindfulness moments or quick meditations during the day, e.g. "10:30 mindfulness" or a ticked "- [x] meditation" inside a deep work section. Do not count the main morning session. 0 if none.)
- meditation_time: number (minutes of the MAIN meditation session, usually in the morning)
- meditation_quality: number (1-5 scale ONLY if explicitly mentioned as "X/5" or "quality: X". Return null if not explicit.)
- meditation_comment: string (user comment about the meditation, null if none)
- sleep_quality: number (1-5 scale. Return null if not mentioned.)
- sleep_comment: string (user comment about sleep or rest, null if none)
- mood_sentiment: string ("Positive", "Neutral", or "Negative", inferred from the overall tone of the day)
- mood_score: number (1-5 scale inferred from the tone, EOD writeup, wins and blockers. 1=very negative, 3=neutral, 5=very positive.)
- mood_comment: string (1-2 sentences explaining the mood sentiment and score)
- is_workday: boolean (False only for weekends, holidays or days explicitly off where no work was intended.)
- textual_info: JSON object containing:
  - most_important_task: string
  - wins: string array
  - blockers: string array
  - summary: string (1-2 sentences summarizing the day)
  - radioactive_tasks: string array (tasks causing stress or avoidance)

Content:
{content}
"""

PROCRASTINATION_PROMPT = """
Analyze the following Procrastination Record markdown file.
Extract a list of all events in a JSON array.
Each event object should have:
- date: "YYYY-MM-DD" (If date is missing, infer from context or leave null)
- time: "HH:MM"
- type: "Procrastination" or "Dispersion" (Infer from section headers or content)
- duration_minutes: number
- activity: string
- trigger: string
- feeling: string
- action_taken: string

Content:
{content}
"""


# ---------------------------------------------------------------------------
# Result type + contract
# ---------------------------------------------------------------------------

@dataclass
class MetricsExtraction:
    """`structured` is None whenever the oracle failed; `raw` is always set."""
    structured: Optional[dict[str, Any]]
    raw: str


class ExtractionOracle(Protocol):
    async def extract_daily_metrics(self, note_text: str, day: date) -> MetricsExtraction:
        ...

    async def extract_procrastination_events(self, document_text: str) -> list[dict[str, Any]]:
        ...


# ---------------------------------------------------------------------------
# Locating JSON in a free-text response
# ---------------------------------------------------------------------------

def find_json_object(text: str) -> Optional[dict[str, Any]]:
    """Return the outermost {...} fragment of `text` if it parses to an object."""
    if not text:
        return None
    match = _OBJECT_PATTERN.search(text)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0), parse_constant=_reject_constant)
    except ValueError:
        logger.warning("Oracle response has no parseable JSON object: %s", text[:200])
        return None
    return parsed if isinstance(parsed, dict) else None


def find_json_array(text: str) -> Optional[list[Any]]:
    """Return the outermost [...] fragment of `text` if it parses to a list."""
    if not text:
        return None
    match = _ARRAY_PATTERN.search(text)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0), parse_constant=_reject_constant)
    except ValueError:
        logger.warning("Oracle response has no parseable JSON array: %s", text[:200])
        return None
    return parsed if isinstance(parsed, list) else None


# ---------------------------------------------------------------------------
# Gemini implementation
# ---------------------------------------------------------------------------

class GeminiOracle:
    def __init__(self, api_key: str, model: str):
        self.api_key = api_key
        self.model = model
        self._client = None

    def _get_client(self):
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def _generate(self, prompt: str) -> str:
        response = await self._get_client().aio.models.generate_content(
            model=self.model,
            contents=prompt,
        )
        return response.text or ""

    async def extract_daily_metrics(self, note_text: str, day: date) -> MetricsExtraction:
        prompt = DAILY_METRICS_PROMPT.format(day=day.isoformat(), content=note_text)
        try:
            text = await self._generate(prompt)
        except Exception as exc:
            logger.warning("Gemini call failed for note %s: %s", day, exc)
            return MetricsExtraction(structured=None, raw=f"Error: {exc}")

        structured = find_json_object(text)
        if structured is None:
            logger.warning("No JSON object in Gemini response for note %s", day)
        return MetricsExtraction(structured=structured, raw=text)

    async def extract_procrastination_events(self, document_text: str) -> list[dict[str, Any]]:
        prompt = PROCRASTINATION_PROMPT.format(content=document_text)
        try:
            text = await self._generate(prompt)
        except Exception as exc:
            logger.warning("Gemini call failed for procrastination record: %s", exc)
            return []

        events = find_json_array(text)
        if events is None:
            logger.warning("No JSON array in Gemini response for procrastination record")
            return []
        return events


@lru_cache
def get_oracle() -> ExtractionOracle:
    """FastAPI dependency; overridden with a scripted oracle in tests."""
    return GeminiOracle(api_key=settings.GEMINI_API_KEY, model=settings.GEMINI_MODEL)
