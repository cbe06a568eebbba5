"""Tests for the ASGI middleware stack: correlation IDs, body size, CORS."""

import uuid

from httpx import ASGITransport, AsyncClient
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from src.middleware import RequestSizeLimitMiddleware
from tests.helpers import make_payload

ALLOWED_ORIGIN = "https://radiant-concha-b54632.netlify.app"


class TestCorrelationId:
    async def test_generated_when_absent(self, client):
        response = await client.get("/")

        correlation_id = response.headers["x-correlation-id"]
        assert uuid.UUID(correlation_id)

    async def test_client_value_is_echoed(self, client):
        response = await client.get("/", headers={"X-Correlation-ID": "req-123"})
        assert response.headers["x-correlation-id"] == "req-123"

    async def test_oversized_client_value_is_replaced(self, client):
        response = await client.get("/", headers={"X-Correlation-ID": "x" * 200})

        correlation_id = response.headers["x-correlation-id"]
        assert correlation_id != "x" * 200
        assert uuid.UUID(correlation_id)

    async def test_present_on_error_responses(self, client):
        response = await client.post("/track", json={})

        assert response.status_code == 400
        assert "x-correlation-id" in response.headers


class TestRequestSizeLimit:
    async def test_oversized_track_body_rejected(self, client, fake_store):
        body = b'{"padding": "' + b"a" * (1024 * 1024) + b'"}'

        response = await client.post(
            "/track", content=body, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 413
        assert response.json()["error"] == "Payload too large"
        assert fake_store.rows == []

    async def test_normal_body_passes(self, client):
        response = await client.post("/track", json=make_payload())
        assert response.status_code == 200

    async def test_streamed_body_is_counted(self):
        async def echo(request: Request) -> JSONResponse:
            body = await request.body()
            return JSONResponse({"size": len(body)})

        app = Starlette(
            routes=[Route("/echo", echo, methods=["POST"])],
            middleware=[Middleware(RequestSizeLimitMiddleware, max_body_bytes=10)],
        )

        async def chunks():
            yield b"a" * 6
            yield b"b" * 6

        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as c:
            small = await c.post("/echo", content=b"tiny")
            large = await c.post("/echo", content=chunks())

        assert small.json() == {"size": 4}
        assert large.status_code == 413


class TestCors:
    async def test_preflight_allows_configured_origin(self, client):
        response = await client.options(
            "/track",
            headers={
                "Origin": ALLOWED_ORIGIN,
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
        assert "POST" in response.headers["access-control-allow-methods"]

    async def test_preflight_rejects_other_origin(self, client):
        response = await client.options(
            "/track",
            headers={
                "Origin": "https://evil.example.com",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.status_code == 400
        assert "access-control-allow-origin" not in response.headers

    async def test_preflight_rejects_other_methods(self, client):
        response = await client.options(
            "/track",
            headers={"Origin": ALLOWED_ORIGIN, "Access-Control-Request-Method": "DELETE"},
        )
        assert response.status_code == 400

    async def test_simple_request_exposes_headers(self, client):
        response = await client.get("/data", headers={"Origin": ALLOWED_ORIGIN})

        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
        assert response.headers["access-control-expose-headers"] == "Content-Disposition"
