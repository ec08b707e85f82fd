"""Shared helpers for flowpulse core modules.

Kept free of model imports to avoid circular imports between core modules.
"""

import json
from collections.abc import Mapping
from datetime import datetime
from typing import Any

# Payload previews are cut at this many characters in the inspector
PAYLOAD_PREVIEW_LIMIT = 2500


def dig(mapping: Any, *keys: str) -> Any:
    """Walk nested mappings, returning None as soon as a level is missing.

    Example:
        dig({"a": {"b": 1}}, "a", "b") -> 1
        dig({"a": None}, "a", "b") -> None
    """
    current = mapping
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def format_duration(started_at: datetime | None, stopped_at: datetime | None) -> str:
    """Human duration between two timestamps ("-" when either is missing)."""
    if started_at is None or stopped_at is None:
        return "-"
    ms = int((stopped_at - started_at).total_seconds() * 1000)
    if ms < 1000:
        return f"{ms}ms"
    return f"{ms / 1000:.1f}s"


def format_run_time(ms: float) -> str:
    """Format an averaged run time in milliseconds."""
    if ms < 1000:
        return f"{round(ms)}ms"
    return f"{ms / 1000:.2f}s"


def format_timestamp(value: datetime | None) -> str:
    if value is None:
        return "-"
    return value.strftime("%d %b %H:%M")


def format_payload(data: Any, limit: int = PAYLOAD_PREVIEW_LIMIT) -> str:
    """Pretty-print a run payload for display, truncating large ones.

    NOTE: default=str keeps payloads with non-JSON values (datetimes, bytes)
    printable instead of raising.
    """
    if data is None or data == "" or data == [] or data == {}:
        return "No data"
    try:
        text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(data)
    if len(text) > limit:
        return text[:limit] + "\n...(truncated)"
    return text


def truncate_label(text: str, limit: int) -> str:
    """Shorten a label for fixed-width node boxes."""
    return text[:limit] + "..." if len(text) > limit else text
