"""Consent Tracker FastAPI Application."""

import asyncio
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from src.config import settings
from src.core.migrations import (
    check_migrations_current,
    get_head_revision,
    run_migrations,
)
from src.core.process_hooks import ProcessFaultHandler
from src.database import close_database
from src.exception_handlers import register_exception_handlers
from src.logging_config import get_logger, setup_logging
from src.middleware import CorrelationIdMiddleware, RequestSizeLimitMiddleware
from src.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from src.routers import health, tracking
from src.services.error_log import get_error_log

setup_logging(
    log_format=settings.log_format,
    log_level=settings.log_level,
    service_name=settings.service_name,
)
logger = get_logger(__name__)

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    ProcessFaultHandler(get_error_log()).install(asyncio.get_running_loop())

    if settings.run_migrations_on_startup:
        await asyncio.to_thread(run_migrations)

    migrations_current = await check_migrations_current()
    if not migrations_current:
        logger.warning(
            "Database schema is not at the latest migration",
            head_revision=get_head_revision(),
        )

    logger.info(
        "Server initialized successfully",
        port=settings.port,
        environment=settings.environment,
        error_log_dir=settings.error_log_dir,
        cors_origins=settings.cors_origins,
        track_rate_limit=settings.track_rate_limit,
        migrations_current=migrations_current,
    )

    yield

    # Shutdown
    logger.info("Shutting down gracefully...")
    await close_database()
    logger.info("Server closed")


app = FastAPI(
    title="Consent Tracker API",
    description="Ingestion endpoint for consent and permission decisions",
    version=APP_VERSION,
    lifespan=lifespan,
)

# slowapi looks the limiter up on app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
register_exception_handlers(app)

# Middleware (order matters: first added = innermost)
app.add_middleware(
    RequestSizeLimitMiddleware,
    max_body_bytes=settings.max_request_size_bytes,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["POST", "GET"],
    allow_headers=["Content-Type"],
    expose_headers=["Content-Disposition"],
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(health.router)
app.include_router(tracking.router)


def run() -> None:
    """Console entry point: serve the app with uvicorn.

    uvicorn handles SIGTERM/SIGINT by draining connections and running
    the lifespan shutdown, which disposes the database pool.
    """
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        proxy_headers=True,
    )


if __name__ == "__main__":
    run()
