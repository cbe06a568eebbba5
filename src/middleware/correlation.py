"""Correlation ID and request logging middleware.

Every request gets a correlation ID (taken from ``X-Correlation-ID`` or
freshly generated) that is bound to the logging context, echoed back in
the response headers, and attached to the start/completion log lines
that record method, path, status and duration.

Uses a pure ASGI middleware rather than BaseHTTPMiddleware to avoid
event loop issues with asyncpg connections.
"""

import time
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from src.logging_config import correlation_id_ctx, get_logger

logger = get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Client-supplied IDs longer than this are replaced
_MAX_CORRELATION_ID_LENGTH = 128


class CorrelationIdMiddleware:
    """Pure ASGI middleware that binds a correlation ID and logs each request."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        correlation_id = headers.get(b"x-correlation-id", b"").decode("latin-1")
        if not correlation_id or len(correlation_id) > _MAX_CORRELATION_ID_LENGTH:
            correlation_id = str(uuid.uuid4())

        token = correlation_id_ctx.set(correlation_id)

        start_time = time.perf_counter()
        status_code: int | None = None
        method = scope.get("method", "")
        path = scope.get("path", "")
        client = scope.get("client")

        logger.info(
            "Request started",
            method=method,
            path=path,
            client_ip=client[0] if client else None,
        )

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status")
                response_headers = list(message.get("headers", []))
                response_headers.append(
                    (CORRELATION_ID_HEADER.lower().encode(), correlation_id.encode())
                )
                message = {**message, "headers": response_headers}
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
            logger.info(
                "Request completed",
                method=method,
                path=path,
                status_code=status_code,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
        except Exception:
            logger.exception(
                "Request failed",
                method=method,
                path=path,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            raise
        finally:
            correlation_id_ctx.reset(token)
