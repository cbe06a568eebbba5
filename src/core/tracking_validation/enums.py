"""Closed value sets accepted on a tracking event."""

from enum import StrEnum, auto


class DeviceType(StrEnum):
    """Device class reported by the browser client."""

    Desktop = "Desktop"
    Tablet = "Tablet"
    Mobile = "Mobile"


class ConsentDecision(StrEnum):
    """Answer given on the consent banner."""

    Agree = "Agree"
    Disagree = "Disagree"


class PermissionDecision(StrEnum):
    """Outcome of the browser permission prompt."""

    allow = auto()
    block = auto()
    dismiss = auto()


class FieldCheckType(StrEnum):
    """Validation rules applied to an incoming payload, in evaluation order."""

    session_id = auto()
    experiment_run_id = auto()
    user_id = auto()
    user_step = auto()
    ip_address = auto()
    country = auto()
    browser = auto()
    operating_system = auto()
    device_type = auto()
    consent_decision = auto()
    consent_timestamp = auto()
    permission_decision = auto()
    decision_timestamp = auto()
