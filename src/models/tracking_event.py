"""Tracking event model.

One row per accepted consent/permission decision. Rows are written
once by ``POST /track`` and never updated or deleted by the service.
"""

from sqlalchemy import BigInteger, CheckConstraint, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, CreatedAtMixin


class TrackingEvent(Base, CreatedAtMixin):
    """Stores one consent/permission decision submitted by a client session.

    Timestamps supplied by the client are kept verbatim as text; only
    ``created_at`` is assigned by the database.
    """

    __tablename__ = "tracking_events"

    __table_args__ = (
        Index("ix_tracking_events_session_user", "session_id", "user_id"),
        CheckConstraint("user_step >= 1", name="ck_tracking_events_user_step"),
        CheckConstraint(
            "device_type IN ('Desktop', 'Tablet', 'Mobile')",
            name="ck_tracking_events_device_type",
        ),
        CheckConstraint(
            "consent_decision IN ('Agree', 'Disagree')",
            name="ck_tracking_events_consent_decision",
        ),
        CheckConstraint(
            "permission_decision IN ('allow', 'block', 'dismiss')",
            name="ck_tracking_events_permission_decision",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    session_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    experiment_run_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    user_step: Mapped[int] = mapped_column(BigInteger, nullable=False, default=1)

    ip_address: Mapped[str] = mapped_column(
        String(45),  # IPv6 max length
        nullable=False,
    )
    country: Mapped[str] = mapped_column(Text, nullable=False)
    browser: Mapped[str] = mapped_column(Text, nullable=False)
    operating_system: Mapped[str] = mapped_column(Text, nullable=False)
    device_type: Mapped[str] = mapped_column(String(20), nullable=False)

    consent_decision: Mapped[str] = mapped_column(String(20), nullable=False)
    consent_timestamp: Mapped[str] = mapped_column(Text, nullable=False)
    icon_timestamp: Mapped[str | None] = mapped_column(Text, nullable=True)

    permission_decision: Mapped[str] = mapped_column(String(20), nullable=False)
    decision_timestamp: Mapped[str] = mapped_column(Text, nullable=False)
    decision_time_taken_sec: Mapped[float | None] = mapped_column(Float, nullable=True)

    survey_clicked: Mapped[str] = mapped_column(String(10), nullable=False)
    survey_timestamp: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<TrackingEvent(id={self.id}, session_id={self.session_id}, "
            f"permission_decision={self.permission_decision})>"
        )
