"""Database migration utilities."""

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import text

from src.database import get_engine

logger = logging.getLogger(__name__)

# Project root: alembic.ini and migrations/ live here
APP_ROOT = Path(__file__).resolve().parent.parent.parent


def get_alembic_config(app_root: Path = APP_ROOT) -> Config:
    """Get Alembic configuration."""
    alembic_ini = app_root / "alembic.ini"

    if not alembic_ini.exists():
        raise FileNotFoundError(f"alembic.ini not found at {alembic_ini}")

    config = Config(str(alembic_ini))
    config.set_main_option("script_location", str(app_root / "migrations"))

    return config


def run_migrations() -> None:
    """
    Upgrade the database to the latest revision.

    Synchronous: alembic's env.py drives its own event loop, so call
    this from a worker thread when an event loop is already running.
    """
    logger.info("Running database migrations...")

    try:
        command.upgrade(get_alembic_config(), "head")
    except Exception as e:
        logger.error(f"Database migration failed: {e}")
        raise
    logger.info("Database migrations completed successfully")


def get_head_revision() -> str | None:
    """Latest revision shipped in migrations/versions."""
    script = ScriptDirectory.from_config(get_alembic_config())
    return script.get_current_head()


async def check_migrations_current() -> bool:
    """
    Check whether the database is at the latest shipped revision.

    Returns:
        True if the stored revision equals the head revision.
    """
    try:
        async with get_engine().connect() as conn:
            result = await conn.execute(
                text("SELECT version_num FROM alembic_version LIMIT 1")
            )
            row = result.fetchone()
    except Exception:
        return False
    return row is not None and row[0] == get_head_revision()
