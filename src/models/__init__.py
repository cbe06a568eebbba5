# Database Models
from src.models.base import Base, CreatedAtMixin
from src.models.tracking_event import TrackingEvent

__all__ = [
    "Base",
    "CreatedAtMixin",
    "TrackingEvent",
]
