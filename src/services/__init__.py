# Business Logic Services
from src.services.error_log import ErrorLog, get_error_log
from src.services.tracking_store import (
    ConstraintViolationError,
    PersistenceError,
    RetryPolicy,
    TrackingEventStore,
    ping_database,
)

__all__ = [
    "ErrorLog",
    "get_error_log",
    "ConstraintViolationError",
    "PersistenceError",
    "RetryPolicy",
    "TrackingEventStore",
    "ping_database",
]
