"""
Parse-and-validate step between the oracle and the stores.

coerce_daily_metrics(structured) → ExtractedMetrics | None
coerce_events(items)             → list[ExtractedEvent]

A shape mismatch never raises: metrics collapse to None (same outcome as an
oracle failure), malformed events are dropped one by one.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError

from app.schemas.extraction import ExtractedEvent, ExtractedMetrics

logger = logging.getLogger(__name__)


def coerce_daily_metrics(structured: Any) -> Optional[ExtractedMetrics]:
    if not isinstance(structured, dict):
        logger.warning(
            "Extraction result is not an object (got %s)", type(structured).__name__
        )
        return None
    try:
        return ExtractedMetrics.model_validate(structured)
    except ValidationError as exc:
        logger.warning("Extraction result failed validation: %s", exc.errors()[:3])
        return None


def coerce_events(items: Any) -> list[ExtractedEvent]:
    if not isinstance(items, list):
        return []

    events: list[ExtractedEvent] = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning("Dropping event #%d: not an object", i)
            continue
        try:
            events.append(ExtractedEvent.model_validate(item))
        except ValidationError as exc:
            logger.warning("Dropping event #%d: %s", i, exc.errors()[:3])
    return events
