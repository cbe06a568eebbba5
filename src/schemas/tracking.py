"""Schemas for the tracking API responses."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TrackingEventResponse(BaseModel):
    """A stored tracking event as returned by GET /data."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    session_id: str
    experiment_run_id: str
    user_id: str
    user_step: int
    ip_address: str
    country: str
    browser: str
    operating_system: str
    device_type: str
    consent_decision: str
    consent_timestamp: str
    icon_timestamp: str | None = None
    permission_decision: str
    decision_timestamp: str
    decision_time_taken_sec: float | None = None
    survey_clicked: str
    survey_timestamp: str
    created_at: datetime | None = None


class TrackAcceptedResponse(BaseModel):
    """Response after a tracking event was stored."""

    success: bool = Field(default=True)
    message: str = Field(description="Human-readable status message")
    id: int | None = Field(default=None, description="Identity of the stored row")


class FailureResponse(BaseModel):
    """Response for a rejected or failed request."""

    success: bool = Field(default=False)
    error: str = Field(description="Short error summary")
    message: str | None = Field(
        default=None,
        description="Detail; for validation failures the joined field errors",
    )


class TrackingDataResponse(BaseModel):
    """Response for GET /data."""

    success: bool = Field(default=True)
    data: list[TrackingEventResponse]
