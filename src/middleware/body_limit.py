"""Request body size limit.

Rejects request bodies larger than the configured limit with 413 before
any handler parses them. Declared ``Content-Length`` is checked up front;
chunked bodies are counted as they stream in.

Uses a pure ASGI middleware (not BaseHTTPMiddleware), like the rest of
the middleware stack.
"""

import json

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from src.logging_config import get_logger

logger = get_logger(__name__)


class _BodyTooLarge(Exception):
    pass


class RequestSizeLimitMiddleware:
    """Pure ASGI middleware enforcing a maximum request body size."""

    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        declared = headers.get(b"content-length")
        if declared is not None:
            try:
                declared_size = int(declared)
            except ValueError:
                declared_size = 0
            if declared_size > self.max_body_bytes:
                await self._reject(scope, send, declared_size)
                return

        received = 0
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    raise _BodyTooLarge()
            return message

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, tracking_send)
        except _BodyTooLarge:
            if response_started:
                raise
            await self._reject(scope, send, received)

    async def _reject(self, scope: Scope, send: Send, size: int) -> None:
        logger.warning(
            "Request body too large",
            path=scope.get("path", ""),
            size_bytes=size,
            limit_bytes=self.max_body_bytes,
        )
        body = json.dumps(
            {
                "success": False,
                "error": "Payload too large",
                "message": f"Request body exceeds {self.max_body_bytes} bytes",
            }
        ).encode()
        await send(
            {
                "type": "http.response.start",
                "status": 413,
                "headers": [
                    (b"content-type", b"application/json"),
                    (b"content-length", str(len(body)).encode()),
                ],
            }
        )
        await send({"type": "http.response.body", "body": body})
