"""Lookup of the most recent event recorded for an object."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _last_timestamp(event: dict) -> datetime:
    value = event.get("lastTimestamp")
    if not value:
        return _OLDEST
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def fetch_latest_event(client: Any, namespace: str, name: str) -> dict | None:
    """Return the event about ``name`` with the latest ``lastTimestamp``.

    Events with equal timestamps keep the one listed first; ``None`` is
    returned when there are no events. API errors propagate.
    """
    events = client.list("Event", namespace, field_selector=f"involvedObject.name={name}")
    latest: dict | None = None
    latest_time = _OLDEST
    for event in events:
        timestamp = _last_timestamp(event)
        if latest is None or timestamp > latest_time:
            latest, latest_time = event, timestamp
    return latest