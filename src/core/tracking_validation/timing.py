"""Decision timing derived from client-supplied timestamps."""

from datetime import UTC, datetime
from typing import Any


def parse_client_timestamp(value: Any) -> datetime | None:
    """Parse an ISO 8601 timestamp sent by the browser.

    Accepts a trailing 'Z'. Naive timestamps are taken as UTC so that
    they can be compared with aware ones. Returns None for anything
    that is not a parseable string.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def calculate_decision_time(icon_timestamp: Any, decision_timestamp: Any) -> float | None:
    """Seconds between the permission icon showing and the user's decision.

    Soft-fails to None when either timestamp is missing or unparseable.
    Out-of-order timestamps yield a negative duration, which is kept for
    downstream analysis rather than rejected here.
    """
    start = parse_client_timestamp(icon_timestamp)
    end = parse_client_timestamp(decision_timestamp)
    if start is None or end is None:
        return None
    return (end - start).total_seconds()
