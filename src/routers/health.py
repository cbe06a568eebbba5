"""Health and liveness endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from src.config import settings
from src.database import get_db_engine
from src.logging_config import get_logger
from src.schemas.health import HealthyResponse, UnhealthyResponse
from src.services.error_log import ErrorLog, get_error_log
from src.services.tracking_store import PersistenceError, ping_database

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthyResponse,
    responses={500: {"model": UnhealthyResponse}},
)
async def health_check(
    engine: AsyncEngine = Depends(get_db_engine),
    error_log: ErrorLog = Depends(get_error_log),
) -> JSONResponse:
    """
    Health check endpoint with database status.

    Returns:
        200 {"status": "healthy", "timestamp", "environment"} when the
        database answers, 500 {"status": "unhealthy", "error"} otherwise,
        regardless of whether any tracking data exists.
    """
    try:
        await ping_database(engine)
    except PersistenceError as e:
        logger.error("Health check failed", error=str(e))
        await error_log.arecord(e, endpoint="/health")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=UnhealthyResponse(error="Database connection failed").model_dump(),
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=HealthyResponse(
            timestamp=datetime.now(UTC),
            environment=settings.environment,
        ).model_dump(mode="json"),
    )


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    """Plain-text liveness check; does not touch the database."""
    return "Tracking server is running successfully!"
