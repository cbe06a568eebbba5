"""Tracking event validation.

Converts an arbitrary JSON payload from the browser client into a
well-typed, storage-ready ``TrackingEventRecord``. Rules (all evaluated,
no short-circuit):

1. session_id, experiment_run_id, user_id present and well-formed
2. ip_address present and at most 45 characters
3. country, browser, operating_system present (country must be text)
4. device_type, consent_decision, permission_decision from closed sets
5. consent_timestamp and decision_timestamp present
6. user_step, when supplied, an integer >= 1 that fits a BIGINT (default 1)

The derived ``decision_time_taken_sec`` is computed from the icon and
decision timestamps and never taken from the client.
"""

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
from src.core.tracking_validation.validator import (
    TrackingEventValidator,
    TrackingValidationError,
    validate_tracking_payload,
)

__all__ = [
    "ConsentDecision",
    "DeviceType",
    "FieldCheckResult",
    "FieldCheckType",
    "PermissionDecision",
    "TrackingEventRecord",
    "TrackingEventValidator",
    "TrackingValidationError",
    "TrackingValidationResult",
    "calculate_decision_time",
    "validate_tracking_payload",
]
