"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ratewindow.core.app_factory import create_app
from ratewindow.core.errors import AppError, RateLimitExceededError
from ratewindow.core.exception_handlers import (
    general_exception_handler,
    setup_exception_handlers,
)


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


def _body(response) -> dict:
    raw = response.body if isinstance(response.body, bytes) else bytes(response.body)
    return json.loads(raw.decode())


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_app_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-app-error")
        async def test_endpoint():
            raise AppError(code="bad_request", message="Request was malformed")

        response = client.get("/test-app-error")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "bad_request"
        assert data["error"]["message"] == "Request was malformed"
        assert "request_id" in data["error"]
        assert "details" not in data["error"]

    def test_app_error_includes_details(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-app-error-details")
        async def test_endpoint():
            raise AppError(
                code="quota",
                message="Quota state attached",
                details={"limit": 10, "remaining": 3},
            )

        response = client.get("/test-app-error-details")

        assert response.status_code == 400
        assert response.json()["error"]["details"] == {"limit": 10, "remaining": 3}

    def test_rate_limit_error_returns_429_with_headers(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-limited")
        async def test_endpoint():
            raise RateLimitExceededError(
                details={"limit": 5, "remaining": 0, "retry_after_ms": 3000},
                headers={"Retry-After": "3"},
            )

        response = client.get("/test-limited")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "3"
        data = response.json()
        assert data["error"]["code"] == "rate_limit_exceeded"
        assert data["error"]["message"] == "Too many requests"
        assert data["error"]["details"]["limit"] == 5

    def test_error_str_is_message(self):
        exc = RateLimitExceededError()

        assert str(exc) == "Too many requests"
        assert exc.status_code == 429


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers

    def test_general_exception_handler_logic(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = RuntimeError("Unexpected error: counter store unavailable")
        response = asyncio.run(general_exception_handler(request, exc))

        data = _body(response)
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        assert "counter store" not in data["error"]["message"]
        assert "request_id" in data["error"]

    def test_general_exception_handler_never_leaks_stack_trace(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        response = asyncio.run(general_exception_handler(request, ValueError("boom")))

        response_text = json.dumps(_body(response))
        assert "Traceback" not in response_text
        assert "ValueError" not in response_text
        assert "boom" not in response_text

    def test_unhandled_route_error_returns_500(self, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-crash")
        async def test_endpoint():
            raise RuntimeError("kaboom")

        client = TestClient(app_with_handlers, raise_server_exceptions=False)
        response = client.get("/test-crash")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "internal_server_error"


def test_setup_exception_handlers_is_repeatable():
    app = FastAPI()

    setup_exception_handlers(app)
    setup_exception_handlers(app)

    assert AppError in app.exception_handlers
    assert Exception in app.exception_handlers


class TestUnhandledErrorsThroughAppStack:
    """Unhandled errors keep request correlation when served by create_app()."""

    @pytest.fixture
    def crashing_client(self) -> TestClient:
        app = create_app()

        @app.get("/api/crash")
        async def crash():
            raise RuntimeError("counter store unavailable")

        return TestClient(app, raise_server_exceptions=False)

    def test_500_echoes_incoming_request_id(self, crashing_client: TestClient):
        response = crashing_client.get("/api/crash", headers={"X-Request-ID": "rid-crash-1"})

        assert response.status_code == 500
        assert response.headers["X-Request-ID"] == "rid-crash-1"
        assert "X-Request-Duration-ms" in response.headers
        data = response.json()
        assert data["error"]["code"] == "internal_server_error"
        assert data["error"]["request_id"] == "rid-crash-1"
        assert "counter store" not in data["error"]["message"]

    def test_500_carries_generated_request_id(self, crashing_client: TestClient):
        response = crashing_client.get("/api/crash")

        assert response.status_code == 500
        generated = response.headers["X-Request-ID"]
        assert generated
        assert response.json()["error"]["request_id"] == generated
