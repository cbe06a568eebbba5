"""Rate limiting using slowapi.

``POST /track`` is throttled per client IP to ``settings.track_rate_limit``
(a fixed quota per fixed window). Limits are applied per-endpoint with
``@limiter.limit()``; other routes are unlimited.
"""

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request
from starlette.responses import JSONResponse

from src.config import settings
from src.logging_config import get_logger

logger = get_logger(__name__)

# Tests always use in-memory storage
_storage_uri = "memory://" if settings.testing else settings.rate_limit_storage_uri


def get_client_ip(request: Request) -> str:
    """Extract the real client IP; the service runs behind one reverse proxy."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        # Leftmost entry is the original client
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


limiter = Limiter(
    key_func=get_client_ip,
    storage_uri=_storage_uri,
    enabled=not settings.testing,
)


def track_rate_limit() -> str:
    """Limit string for /track, read at request time so it can be reconfigured."""
    return settings.track_rate_limit


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Return a 429 JSON response when a client exceeds its quota."""
    logger.warning(
        "Rate limit exceeded",
        path=request.url.path,
        client_ip=get_client_ip(request),
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": "Too many requests",
            "message": f"Rate limit exceeded: {exc.detail}",
        },
    )
