"""Shared test data builders."""

from datetime import UTC, datetime, timedelta
from typing import Any

from src.core.tracking_validation import TrackingEventRecord
from src.models.tracking_event import TrackingEvent


def make_payload(**overrides: Any) -> dict[str, Any]:
    """A well-formed /track body; pass a field as None to drop it."""
    payload: dict[str, Any] = {
        "session_id": "session_1_abc",
        "experiment_run_id": "run_1_abc",
        "user_id": "user_1_abc",
        "ip_address": "1.2.3.4",
        "country": "US",
        "browser": "Chrome",
        "operating_system": "macOS",
        "device_type": "Desktop",
        "consent_decision": "Agree",
        "consent_timestamp": "2024-01-01T00:00:00Z",
        "icon_timestamp": "2024-01-01T00:00:00Z",
        "permission_decision": "allow",
        "decision_timestamp": "2024-01-01T00:00:05Z",
    }
    payload.update(overrides)
    return {k: v for k, v in payload.items() if v is not None}


class FakeTrackingStore:
    """In-memory stand-in for ``TrackingEventStore``."""

    def __init__(self) -> None:
        self.rows: list[TrackingEvent] = []
        self.fail_insert: Exception | None = None
        self.fail_list: Exception | None = None
        self._clock = datetime(2024, 1, 1, tzinfo=UTC)

    async def insert(self, record: TrackingEventRecord) -> int:
        if self.fail_insert is not None:
            raise self.fail_insert
        self._clock += timedelta(seconds=1)
        row = TrackingEvent(
            **record.model_dump(mode="json"),
            id=len(self.rows) + 1,
            created_at=self._clock,
        )
        self.rows.append(row)
        return row.id

    async def list(self) -> list[TrackingEvent]:
        if self.fail_list is not None:
            raise self.fail_list
        return sorted(self.rows, key=lambda r: (r.created_at, r.id), reverse=True)
