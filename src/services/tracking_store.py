"""Persistence for tracking events.

``TrackingEventStore`` wraps an injected ``AsyncSession`` and offers the
three operations the HTTP layer needs: insert one event, list all events
most recent first, and ping the database.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import select, text
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from src.config import settings
from src.core.tracking_validation import TrackingEventRecord
from src.logging_config import get_logger
from src.models.tracking_event import TrackingEvent

logger = get_logger(__name__)


class PersistenceError(Exception):
    """Base exception for tracking storage failures."""

    pass


class ConstraintViolationError(PersistenceError):
    """The database rejected the row (a constraint or an out-of-range value)."""

    pass


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry for the insert path.

    A transactional store needs a single attempt; raise ``max_attempts``
    only for flaky backends.
    """

    max_attempts: int = 1
    delay_seconds: float = 0.1

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_attempts=settings.insert_max_attempts,
            delay_seconds=settings.insert_retry_delay_seconds,
        )


class TrackingEventStore:
    """Reads and writes ``tracking_events`` rows through one session."""

    def __init__(self, session: AsyncSession, retry_policy: RetryPolicy | None = None):
        self.session = session
        self.retry_policy = retry_policy or RetryPolicy()

    async def insert(self, record: TrackingEventRecord) -> int:
        """Insert one event as a single-row transaction.

        The identity is obtained by flushing before the commit, so once
        the commit returns the event is stored exactly once and nothing
        further can fail or be retried.

        Args:
            record: Validated event to store

        Returns:
            The identity assigned to the new row

        Raises:
            ConstraintViolationError: The row broke a table constraint or a
                column's value range (not retried)
            PersistenceError: The insert failed on every attempt
        """
        max_attempts = self.retry_policy.max_attempts
        for attempt in range(1, max_attempts + 1):
            row = TrackingEvent(**record.model_dump(mode="json"))
            try:
                self.session.add(row)
                await self.session.flush()
                event_id = row.id
                await self.session.commit()
            except (IntegrityError, DataError) as e:
                await self.session.rollback()
                logger.error(
                    "Tracking event rejected by database constraint",
                    session_id=record.session_id,
                    error=str(e.orig),
                )
                raise ConstraintViolationError(
                    f"Tracking event violates a table constraint: {e.orig}"
                ) from e
            except SQLAlchemyError as e:
                await self.session.rollback()
                if attempt < max_attempts:
                    logger.warning(
                        "Tracking event insert failed, retrying",
                        attempt=attempt,
                        max_attempts=max_attempts,
                        error=str(e),
                    )
                    await asyncio.sleep(self.retry_policy.delay_seconds)
                    continue
                raise PersistenceError(
                    f"Failed to insert tracking event after {max_attempts} attempt(s): {e}"
                ) from e

            logger.info(
                "Tracking event stored",
                event_id=event_id,
                session_id=record.session_id,
                attempt=attempt,
            )
            return event_id

        # Unreachable: the loop either returns or raises
        raise PersistenceError("Tracking event insert did not run")

    async def list(self) -> Sequence[TrackingEvent]:
        """Return every stored event, most recent first."""
        try:
            result = await self.session.execute(
                select(TrackingEvent).order_by(
                    TrackingEvent.created_at.desc(), TrackingEvent.id.desc()
                )
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read tracking events: {e}") from e
        return result.scalars().all()


async def ping_database(engine: AsyncEngine) -> None:
    """Check that the database answers a trivial query.

    Raises:
        PersistenceError: If the database is unreachable
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        raise PersistenceError(f"Database ping failed: {e}") from e
