"""Top-level exception boundary.

Any exception that escapes a route handler is logged with its traceback,
recorded in the error log, and turned into a generic 500. Internal
detail is only exposed when running in development.
"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.config import settings
from src.logging_config import get_logger
from src.middleware.rate_limit import get_client_ip
from src.services.error_log import get_error_log, redact_headers

logger = get_logger(__name__)


def _cached_body(request: Request) -> Any:
    """Best-effort copy of the request body for the error log."""
    body = getattr(request, "_body", None)
    if not body:
        return None
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError:
        return repr(body[:200])


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Convert an unhandled exception into the generic 500 response."""
    logger.critical(
        "Unhandled error",
        exc_info=(type(exc), exc, exc.__traceback__),
        method=request.method,
        path=request.url.path,
    )
    await get_error_log().arecord(
        exc,
        _cached_body(request),
        url=str(request.url),
        method=request.method,
        ip=get_client_ip(request),
        headers=redact_headers(request.headers),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "Internal server error",
            "message": str(exc) if settings.is_development else "An error occurred",
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(Exception, unhandled_exception_handler)
