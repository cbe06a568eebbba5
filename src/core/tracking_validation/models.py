"""Tracking event Pydantic models.

Pure data models for the validation boundary. No database
dependencies, no SQLAlchemy.
"""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.core.tracking_validation.constants import (
    ERROR_SEPARATOR,
    IP_ADDRESS_MAX_LENGTH,
    MAX_USER_STEP,
    MIN_USER_STEP,
)
from src.core.tracking_validation.enums import (
    ConsentDecision,
    DeviceType,
    FieldCheckType,
    PermissionDecision,
)


class TrackingEventRecord(BaseModel):
    """A validated, storage-ready tracking event."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    experiment_run_id: str
    user_id: str
    user_step: int = Field(default=MIN_USER_STEP, ge=MIN_USER_STEP, le=MAX_USER_STEP)
    ip_address: str = Field(max_length=IP_ADDRESS_MAX_LENGTH)
    country: str = Field(min_length=1)
    browser: str = Field(min_length=1)
    operating_system: str = Field(min_length=1)
    device_type: DeviceType
    consent_decision: ConsentDecision
    consent_timestamp: str
    icon_timestamp: str | None = None
    permission_decision: PermissionDecision
    decision_timestamp: str
    decision_time_taken_sec: float | None = Field(
        default=None,
        description="decision_timestamp minus icon_timestamp, in seconds",
    )
    survey_clicked: str
    survey_timestamp: str


class FieldCheckResult(BaseModel):
    """Result of a single field rule.

    ``value`` holds the normalized field value when the check passed.
    """

    model_config = ConfigDict(frozen=True)

    check_type: FieldCheckType
    passed: bool
    message: str | None = None
    value: Any = None

    @model_validator(mode="after")
    def check_message(self) -> Self:
        if not self.passed and not self.message:
            msg = "a failed check must carry a message"
            raise ValueError(msg)
        return self


class TrackingValidationResult(BaseModel):
    """Outcome of validating one payload: either an event or its errors."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    event: TrackingEventRecord | None = None
    errors: list[str] = Field(default_factory=list)
    check_results: list[FieldCheckResult] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_consistency(self) -> Self:
        """Enforce that valid/invalid states are internally consistent."""
        if self.valid and self.event is None:
            msg = "event is required when the payload is valid"
            raise ValueError(msg)
        if self.valid and self.errors:
            msg = "errors must be empty when the payload is valid"
            raise ValueError(msg)
        if not self.valid and self.event is not None:
            msg = "event must be None when the payload is invalid"
            raise ValueError(msg)
        if not self.valid and not self.errors:
            msg = "errors must not be empty when the payload is invalid"
            raise ValueError(msg)
        return self

    @property
    def message(self) -> str:
        """Errors joined for display."""
        return ERROR_SEPARATOR.join(self.errors)

    @classmethod
    def accepted(
        cls, event: TrackingEventRecord, checks: list[FieldCheckResult]
    ) -> "TrackingValidationResult":
        return cls(valid=True, event=event, check_results=checks)

    @classmethod
    def rejected(
        cls, errors: list[str], checks: list[FieldCheckResult] | None = None
    ) -> "TrackingValidationResult":
        return cls(valid=False, errors=errors, check_results=checks or [])
