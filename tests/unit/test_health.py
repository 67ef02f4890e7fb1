"""
Tests for health check endpoints.
"""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from clicktocall.main import app

client = TestClient(app)


def test_healthz_endpoint():
    """Test the basic health check endpoint."""
    response = client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "click-to-call"


def test_healthz_echoes_request_id():
    response = client.get("/healthz", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_readyz_endpoint_all_services_healthy():
    """Test readiness endpoint when Redis answers and vendor endpoints are set."""
    with patch("clicktocall.routes.health.ping", new=AsyncMock(return_value=True)):
        response = client.get("/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is True
    assert data["checks"]["redis"]["ok"] is True
    assert data["checks"]["configuration"]["ok"] is True
    assert data["checks"]["configuration"]["vendor_host"] == "xtone.buf.vaspian.net"
    assert data["checks"]["configuration"]["call_url"].endswith("/ProcessClickToCall.jsp")


def test_readyz_endpoint_redis_unhealthy():
    """Test readiness endpoint when Redis is down."""
    with patch("clicktocall.routes.health.ping", new=AsyncMock(return_value=False)):
        response = client.get("/readyz")

    # Should still return 200, but overall_ok should be False
    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is False
    assert data["checks"]["redis"]["ok"] is False


def test_readyz_endpoint_redis_error():
    with patch(
        "clicktocall.routes.health.ping",
        new=AsyncMock(side_effect=ConnectionError("refused")),
    ):
        response = client.get("/readyz")

    data = response.json()
    assert data["overall_ok"] is False
    assert data["checks"]["redis"]["error"] == "ConnectionError: refused"


def test_readyz_endpoint_missing_vendor_paths():
    with (
        patch("clicktocall.routes.health.ping", new=AsyncMock(return_value=True)),
        patch("clicktocall.routes.health.settings.VENDOR_CALL_PATH", ""),
    ):
        response = client.get("/readyz")

    data = response.json()
    assert data["overall_ok"] is False
    assert data["checks"]["configuration"]["issues"] == ["Vendor endpoint paths not set"]
