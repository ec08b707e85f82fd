"""Tests for display helpers."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from flowpulse.core.utils import (
    dig,
    format_duration,
    format_payload,
    format_run_time,
    format_timestamp,
    truncate_label,
)


class TestDig:
    def test_nested_lookup(self):
        assert dig({"a": {"b": {"c": 1}}}, "a", "b", "c") == 1

    def test_missing_level(self):
        assert dig({"a": None}, "a", "b") is None
        assert dig(None, "a") is None
        assert dig({"a": [1]}, "a", "b") is None


class TestFormatting:
    """Tests for duration, timestamp and payload formatting."""

    def test_format_duration(self):
        start = datetime(2024, 5, 1, tzinfo=UTC)
        assert format_duration(start, start + timedelta(milliseconds=450)) == "450ms"
        assert format_duration(start, start + timedelta(milliseconds=2500)) == "2.5s"
        assert format_duration(start, None) == "-"

    def test_format_run_time(self):
        assert format_run_time(812.4) == "812ms"
        assert format_run_time(2000) == "2.00s"

    def test_format_timestamp(self):
        assert format_timestamp(datetime(2024, 5, 1, 9, 5, tzinfo=UTC)) == "01 May 09:05"
        assert format_timestamp(None) == "-"

    def test_format_payload_empty(self):
        assert format_payload(None) == "No data"
        assert format_payload([]) == "No data"
        assert format_payload({}) == "No data"

    def test_format_payload_truncates(self):
        text = format_payload({"blob": "x" * 100}, limit=20)
        assert text.endswith("\n...(truncated)")
        assert len(text) == 20 + len("\n...(truncated)")

    def test_format_payload_non_json_values(self):
        assert "2024-05-01" in format_payload({"at": datetime(2024, 5, 1)})

    def test_truncate_label(self):
        assert truncate_label("short", 10) == "short"
        assert truncate_label("a very long label", 6) == "a very..."
