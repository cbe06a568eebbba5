"""Tests for client timestamp parsing and decision time calculation."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from src.core.tracking_validation.timing import (
    calculate_decision_time,
    parse_client_timestamp,
)


class TestParseClientTimestamp:
    def test_trailing_z_is_utc(self):
        parsed = parse_client_timestamp("2024-01-01T00:00:05Z")
        assert parsed == datetime(2024, 1, 1, 0, 0, 5, tzinfo=UTC)

    def test_lowercase_z(self):
        assert parse_client_timestamp("2024-01-01T00:00:05z") is not None

    def test_milliseconds(self):
        parsed = parse_client_timestamp("2024-01-01T00:00:05.250Z")
        assert parsed.microsecond == 250000

    def test_explicit_offset(self):
        parsed = parse_client_timestamp("2024-01-01T02:00:00+02:00")
        assert parsed.utcoffset() == timedelta(hours=2)
        assert parsed == datetime(2024, 1, 1, tzinfo=UTC)

    def test_naive_is_taken_as_utc(self):
        parsed = parse_client_timestamp("2024-01-01T00:00:00")
        assert parsed.tzinfo is UTC

    @pytest.mark.parametrize("value", [None, "", "   ", "yesterday", 1704067200, "2024-13-01"])
    def test_unparseable_returns_none(self, value):
        assert parse_client_timestamp(value) is None


class TestCalculateDecisionTime:
    def test_five_second_decision(self):
        assert (
            calculate_decision_time("2024-01-01T00:00:00Z", "2024-01-01T00:00:05Z") == 5.0
        )

    def test_fractional_seconds(self):
        assert calculate_decision_time(
            "2024-01-01T00:00:00.000Z", "2024-01-01T00:00:01.500Z"
        ) == pytest.approx(1.5)

    def test_mixed_offsets(self):
        assert (
            calculate_decision_time("2024-01-01T00:00:00Z", "2024-01-01T01:00:10+01:00")
            == 10.0
        )

    def test_out_of_order_is_negative(self):
        assert (
            calculate_decision_time("2024-01-01T00:00:05Z", "2024-01-01T00:00:00Z") == -5.0
        )

    def test_same_instant_is_zero(self):
        ts = "2024-01-01T00:00:00Z"
        assert calculate_decision_time(ts, ts) == 0.0

    @pytest.mark.parametrize(
        ("icon", "decision"),
        [
            (None, "2024-01-01T00:00:05Z"),
            ("2024-01-01T00:00:00Z", None),
            ("not a time", "2024-01-01T00:00:05Z"),
            ("2024-01-01T00:00:00Z", "later"),
        ],
    )
    def test_missing_or_bad_input_is_none(self, icon, decision):
        assert calculate_decision_time(icon, decision) is None

    def test_naive_and_aware_can_be_compared(self):
        result = calculate_decision_time(
            "2024-01-01T00:00:00", datetime(2024, 1, 1, 0, 0, 3, tzinfo=timezone.utc).isoformat()
        )
        assert result == 3.0
