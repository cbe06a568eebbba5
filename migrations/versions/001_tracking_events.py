"""Create tracking_events table.

Revision ID: 001_tracking_events
Revises:
Create Date: 2026-10-18
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_tracking_events"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create tracking_events table."""
    op.create_table(
        "tracking_events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("session_id", sa.Text(), nullable=False),
        sa.Column("experiment_run_id", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("user_step", sa.BigInteger(), nullable=False, server_default="1"),
        sa.Column(
            "ip_address",
            sa.String(45),  # IPv6 max length
            nullable=False,
        ),
        sa.Column("country", sa.Text(), nullable=False),
        sa.Column("browser", sa.Text(), nullable=False),
        sa.Column("operating_system", sa.Text(), nullable=False),
        sa.Column("device_type", sa.String(20), nullable=False),
        sa.Column("consent_decision", sa.String(20), nullable=False),
        sa.Column("consent_timestamp", sa.Text(), nullable=False),
        sa.Column("icon_timestamp", sa.Text(), nullable=True),
        sa.Column("permission_decision", sa.String(20), nullable=False),
        sa.Column("decision_timestamp", sa.Text(), nullable=False),
        sa.Column("decision_time_taken_sec", sa.Float(), nullable=True),
        sa.Column("survey_clicked", sa.String(10), nullable=False),
        sa.Column("survey_timestamp", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint("user_step >= 1", name="ck_tracking_events_user_step"),
        sa.CheckConstraint(
            "device_type IN ('Desktop', 'Tablet', 'Mobile')",
            name="ck_tracking_events_device_type",
        ),
        sa.CheckConstraint(
            "consent_decision IN ('Agree', 'Disagree')",
            name="ck_tracking_events_consent_decision",
        ),
        sa.CheckConstraint(
            "permission_decision IN ('allow', 'block', 'dismiss')",
            name="ck_tracking_events_permission_decision",
        ),
    )
    op.create_index("ix_tracking_events_session_id", "tracking_events", ["session_id"])
    op.create_index(
        "ix_tracking_events_experiment_run_id", "tracking_events", ["experiment_run_id"]
    )
    op.create_index("ix_tracking_events_created_at", "tracking_events", ["created_at"])
    op.create_index(
        "ix_tracking_events_session_user", "tracking_events", ["session_id", "user_id"]
    )


def downgrade() -> None:
    """Drop tracking_events table."""
    op.drop_index("ix_tracking_events_session_user", table_name="tracking_events")
    op.drop_index("ix_tracking_events_created_at", table_name="tracking_events")
    op.drop_index("ix_tracking_events_experiment_run_id", table_name="tracking_events")
    op.drop_index("ix_tracking_events_session_id", table_name="tracking_events")
    op.drop_table("tracking_events")
