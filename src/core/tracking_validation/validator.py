"""Tracking event validator.

Turns an untyped JSON payload into a ``TrackingEventRecord`` or the
complete list of field problems. Every rule runs regardless of earlier
failures (no short-circuit) so the client sees all violations at once.
"""

import re
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from src.core.tracking_validation.constants import (
    DEFAULT_USER_STEP,
    ERROR_SEPARATOR,
    EXPERIMENT_RUN_ID_PATTERN,
    FALSY_SURVEY_STRINGS,
    IP_ADDRESS_MAX_LENGTH,
    MAX_USER_STEP,
    MIN_USER_STEP,
    NOT_APPLICABLE,
    SESSION_ID_PATTERN,
    SURVEY_CLICKED,
    USER_ID_PATTERN,
)
from src.core.tracking_validation.enums import (
    ConsentDecision,
    DeviceType,
    FieldCheckType,
    PermissionDecision,
)
from src.core.tracking_validation.models import (
    FieldCheckResult,
    TrackingEventRecord,
    TrackingValidationResult,
)
from src.core.tracking_validation.timing import calculate_decision_time


class TrackingValidationError(ValueError):
    """Raised by ``validate_or_raise`` when a payload breaks any field rule."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(ERROR_SEPARATOR.join(self.errors))


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def is_survey_clicked(value: Any) -> bool:
    """Interpret the client's survey flag, which arrives as bool or string."""
    if isinstance(value, str):
        return value.strip().lower() not in FALSY_SURVEY_STRINGS
    return bool(value)


class TrackingEventValidator:
    """Validates tracking payloads against the fixed event schema.

    Stateless and safe to share between requests.
    """

    def validate(self, payload: Any) -> TrackingValidationResult:
        """Run every field rule against a payload.

        Args:
            payload: Decoded JSON body; anything other than an object is
                rejected outright.

        Returns:
            TrackingValidationResult holding either the normalized event
            or one error message per violated rule, in field order.
        """
        if not isinstance(payload, Mapping):
            return TrackingValidationResult.rejected(["Request body must be a JSON object"])

        checks: list[FieldCheckResult] = [
            self._check_identifier(
                payload, FieldCheckType.session_id, "Session ID", SESSION_ID_PATTERN
            ),
            self._check_identifier(
                payload,
                FieldCheckType.experiment_run_id,
                "Experiment Run ID",
                EXPERIMENT_RUN_ID_PATTERN,
            ),
            self._check_identifier(
                payload, FieldCheckType.user_id, "User ID", USER_ID_PATTERN
            ),
            self._check_user_step(payload),
            self._check_ip_address(payload),
            self._check_country(payload),
            self._check_required_text(
                payload, FieldCheckType.browser, "Browser information is required"
            ),
            self._check_required_text(
                payload,
                FieldCheckType.operating_system,
                "Operating System information is required",
            ),
            self._check_choice(
                payload,
                FieldCheckType.device_type,
                DeviceType,
                "Device type is required",
                "Invalid device type. Must be Desktop, Tablet, or Mobile",
            ),
            self._check_choice(
                payload,
                FieldCheckType.consent_decision,
                ConsentDecision,
                "Consent decision is required",
                "Invalid consent decision. Must be Agree or Disagree",
            ),
            self._check_required_text(
                payload,
                FieldCheckType.consent_timestamp,
                "Consent timestamp is required",
            ),
            self._check_choice(
                payload,
                FieldCheckType.permission_decision,
                PermissionDecision,
                "Permission decision is required",
                "Invalid permission decision value. Must be allow, block, or dismiss",
            ),
            self._check_required_text(
                payload,
                FieldCheckType.decision_timestamp,
                "Decision timestamp is required",
            ),
        ]

        errors = [c.message for c in checks if not c.passed and c.message]
        if errors:
            return TrackingValidationResult.rejected(errors, checks)

        return TrackingValidationResult.accepted(self._normalize(payload, checks), checks)

    def validate_or_raise(self, payload: Any) -> TrackingEventRecord:
        """Like ``validate`` but raises ``TrackingValidationError`` on failure."""
        result = self.validate(payload)
        if result.event is None:
            raise TrackingValidationError(result.errors)
        return result.event

    def _normalize(
        self, payload: Mapping[str, Any], checks: list[FieldCheckResult]
    ) -> TrackingEventRecord:
        """Build the storage-ready record from passing checks plus optional fields."""
        values = {c.check_type.value: c.value for c in checks}

        icon_timestamp = payload.get("icon_timestamp")
        icon_timestamp = None if _is_missing(icon_timestamp) else str(icon_timestamp)

        clicked = is_survey_clicked(payload.get("survey_clicked"))
        survey_timestamp = payload.get("survey_timestamp")
        if clicked and not _is_missing(survey_timestamp):
            survey_timestamp = str(survey_timestamp)
        else:
            survey_timestamp = NOT_APPLICABLE

        return TrackingEventRecord(
            **values,
            icon_timestamp=icon_timestamp,
            decision_time_taken_sec=calculate_decision_time(
                icon_timestamp, values[FieldCheckType.decision_timestamp.value]
            ),
            survey_clicked=SURVEY_CLICKED if clicked else NOT_APPLICABLE,
            survey_timestamp=survey_timestamp,
        )

    def _check_identifier(
        self,
        payload: Mapping[str, Any],
        check_type: FieldCheckType,
        label: str,
        pattern: re.Pattern[str],
    ) -> FieldCheckResult:
        """Identifiers are required and must match their prefix format."""
        value = payload.get(check_type.value)
        if _is_missing(value):
            return FieldCheckResult(
                check_type=check_type, passed=False, message=f"{label} is required"
            )
        if not isinstance(value, str) or not pattern.match(value):
            return FieldCheckResult(
                check_type=check_type, passed=False, message=f"Invalid {label} format"
            )
        return FieldCheckResult(check_type=check_type, passed=True, value=value)

    def _check_user_step(self, payload: Mapping[str, Any]) -> FieldCheckResult:
        """Optional step counter, defaulting to 1, coerced to an int >= 1."""
        check_type = FieldCheckType.user_step
        value = payload.get(check_type.value)
        if _is_missing(value):
            return FieldCheckResult(
                check_type=check_type, passed=True, value=DEFAULT_USER_STEP
            )

        step: int | None = None
        if isinstance(value, bool):
            step = None
        elif isinstance(value, int):
            step = value
        elif isinstance(value, float) and value.is_integer():
            step = int(value)
        elif isinstance(value, str):
            try:
                step = int(value.strip())
            except ValueError:
                step = None

        if step is None or step < MIN_USER_STEP:
            return FieldCheckResult(
                check_type=check_type,
                passed=False,
                message=f"User step must be an integer >= {MIN_USER_STEP}",
            )
        if step > MAX_USER_STEP:
            return FieldCheckResult(
                check_type=check_type, passed=False, message="User step is too large"
            )
        return FieldCheckResult(check_type=check_type, passed=True, value=step)

    def _check_ip_address(self, payload: Mapping[str, Any]) -> FieldCheckResult:
        """IP address is required and may not exceed the IPv6 text length.

        Over-long values are an error here; the stored value is still
        clipped to the column width as a last line of defence.
        """
        check_type = FieldCheckType.ip_address
        value = payload.get(check_type.value)
        if _is_missing(value):
            return FieldCheckResult(
                check_type=check_type, passed=False, message="IP address is required"
            )
        text = str(value)
        if len(text) > IP_ADDRESS_MAX_LENGTH:
            return FieldCheckResult(
                check_type=check_type, passed=False, message="IP address too long"
            )
        return FieldCheckResult(
            check_type=check_type, passed=True, value=text[:IP_ADDRESS_MAX_LENGTH]
        )

    def _check_country(self, payload: Mapping[str, Any]) -> FieldCheckResult:
        check_type = FieldCheckType.country
        value = payload.get(check_type.value)
        if _is_missing(value):
            return FieldCheckResult(
                check_type=check_type, passed=False, message="Country is required"
            )
        if not isinstance(value, str):
            return FieldCheckResult(
                check_type=check_type, passed=False, message="Country must be a string"
            )
        return FieldCheckResult(check_type=check_type, passed=True, value=value)

    def _check_required_text(
        self,
        payload: Mapping[str, Any],
        check_type: FieldCheckType,
        missing_message: str,
    ) -> FieldCheckResult:
        """Presence-only rule; the value is stored as text without parsing.

        A boolean false is treated as absent, like an empty string.
        """
        value = payload.get(check_type.value)
        if _is_missing(value) or value is False:
            return FieldCheckResult(
                check_type=check_type, passed=False, message=missing_message
            )
        return FieldCheckResult(check_type=check_type, passed=True, value=str(value))

    def _check_choice(
        self,
        payload: Mapping[str, Any],
        check_type: FieldCheckType,
        choices: type[StrEnum],
        missing_message: str,
        invalid_message: str,
    ) -> FieldCheckResult:
        """Value must be one of a closed set (case-sensitive)."""
        value = payload.get(check_type.value)
        if _is_missing(value):
            return FieldCheckResult(
                check_type=check_type, passed=False, message=missing_message
            )
        if not isinstance(value, str) or value not in {c.value for c in choices}:
            return FieldCheckResult(
                check_type=check_type, passed=False, message=invalid_message
            )
        return FieldCheckResult(check_type=check_type, passed=True, value=choices(value))


def validate_tracking_payload(payload: Any) -> TrackingValidationResult:
    """Module-level convenience wrapper around ``TrackingEventValidator``."""
    return TrackingEventValidator().validate(payload)
