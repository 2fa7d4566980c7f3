"""Tests for logging, error handling and rate limiting."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog
from litestar import Litestar, get
from litestar.testing import TestClient

from cheesepants_py.core.error_handling import ErrorDetail, ErrorResponse, get_exception_handlers
from cheesepants_py.core.logging import CorrelationIdMiddleware, configure_logging
from cheesepants_py.core.rate_limit import RateLimitSettings, get_rate_limit_config
from cheesepants_py.exceptions import StorageError


@get("/boom", sync_to_thread=False)
def boom() -> None:
    """Fail with a storage error."""
    msg = "disk on fire"
    raise StorageError(msg)


@get("/crash", sync_to_thread=False)
def crash() -> None:
    """Fail unexpectedly."""
    msg = "connection string with password"
    raise RuntimeError(msg)


@get("/context", sync_to_thread=False)
def context() -> dict[str, str]:
    """Echo the bound logging context."""
    return {k: str(v) for k, v in structlog.contextvars.get_contextvars().items()}


@pytest.fixture
def error_client() -> Iterator[TestClient[Litestar]]:
    """Create an app with the application error handlers and middleware."""
    app = Litestar(
        route_handlers=[boom, crash, context],
        exception_handlers=get_exception_handlers(),
        middleware=[CorrelationIdMiddleware],
    )
    with TestClient(app=app) as client:
        yield client


class TestErrorHandling:
    """Tests for structured error responses."""

    def test_error_response_to_dict(self) -> None:
        """Test optional fields are omitted when empty."""
        assert ErrorResponse(message="nope", code="not_found").to_dict() == {
            "status": "error",
            "message": "nope",
            "code": "not_found",
        }

        full = ErrorResponse(
            message="bad",
            code="validation_error",
            correlation_id="abc",
            details=[ErrorDetail(field="index", message="must be a number")],
        ).to_dict()
        assert full["correlation_id"] == "abc"
        assert full["details"] == [{"field": "index", "message": "must be a number", "code": "error"}]

    def test_storage_error_is_503(self, error_client: TestClient[Litestar]) -> None:
        """Test storage failures are reported as unavailable."""
        response = error_client.get("/boom", headers={"X-Correlation-ID": "corr-1"})

        assert response.status_code == 503
        assert response.json()["code"] == "storage_error"
        assert response.json()["correlation_id"] == "corr-1"

    def test_unexpected_error_is_500(self, error_client: TestClient[Litestar]) -> None:
        """Test unexpected errors hide their details."""
        response = error_client.get("/crash")

        assert response.status_code == 500
        assert response.json()["code"] == "internal_error"
        assert "password" not in response.json()["message"]

    def test_unknown_route_is_404(self, error_client: TestClient[Litestar]) -> None:
        """Test HTTP exceptions use the structured body."""
        response = error_client.get("/missing")

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"


class TestCorrelationId:
    """Tests for the correlation ID middleware."""

    def test_header_is_echoed(self, error_client: TestClient[Litestar]) -> None:
        """Test a supplied correlation ID is returned and bound for logging."""
        response = error_client.get("/context", headers={"X-Request-ID": "req-7"})

        assert response.headers["x-correlation-id"] == "req-7"
        assert response.json()["correlation_id"] == "req-7"
        assert response.json()["method"] == "GET"

    def test_generated_when_missing(self, error_client: TestClient[Litestar]) -> None:
        """Test an ID is generated when none is supplied."""
        response = error_client.get("/context")
        assert len(response.headers["x-correlation-id"]) == 36


class TestRateLimit:
    """Tests for rate limit settings."""

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test settings are read from the environment."""
        monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
        monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "7")

        settings = RateLimitSettings.from_env()

        assert not settings.enabled
        assert settings.requests_per_minute == 7

    def test_disabled(self) -> None:
        """Test no middleware config is produced when disabled."""
        assert get_rate_limit_config(RateLimitSettings(enabled=False)) is None

    def test_enabled(self) -> None:
        """Test the limit and exclusions are applied."""
        config = get_rate_limit_config(RateLimitSettings(requests_per_minute=5))

        assert config is not None
        assert config.rate_limit == ("minute", 5)
        assert "/ws" in config.exclude


class TestConfigureLogging:
    """Tests for logging setup."""

    @pytest.mark.parametrize("json_logs", [True, False])
    def test_configure(self, json_logs: bool) -> None:
        """Test both renderers can be configured."""
        configure_logging(debug=True, json_logs=json_logs)

        renderer = structlog.get_config()["processors"][-1]
        expected = structlog.processors.JSONRenderer if json_logs else structlog.dev.ConsoleRenderer
        assert isinstance(renderer, expected)
