"""
Tests for health check endpoints.
"""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)


def test_healthz_endpoint():
    """Test the basic health check endpoint."""
    response = client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "second-brain"


def test_readyz_endpoint_all_services_healthy():
    """Test readiness endpoint when the database is up and AI is configured."""
    with (
        patch(
            "app.routes.health.db_health_check",
            new=AsyncMock(return_value={"healthy": True, "pool_stats": {"pool_size": 2}}),
        ),
        patch("app.routes.health.settings.OPENAI_API_KEY", "sk-test-key"),
    ):
        response = client.get("/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is True

    checks = data["checks"]
    assert checks["database"]["ok"] is True
    assert checks["database"]["pool_stats"] == {"pool_size": 2}
    assert checks["ai"]["ok"] is True
    assert checks["ai"]["rate_governor"]["limit"] == 10


def test_readyz_endpoint_database_unhealthy():
    """Test readiness endpoint when the database is down."""
    with patch(
        "app.routes.health.db_health_check",
        new=AsyncMock(return_value={"healthy": False, "error": "Pool not initialized"}),
    ):
        response = client.get("/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is False
    assert data["checks"]["database"]["ok"] is False
    assert data["checks"]["database"]["error"] == "Pool not initialized"


def test_readyz_endpoint_database_raises():
    """Test readiness endpoint when the health check itself fails."""
    with patch(
        "app.routes.health.db_health_check",
        new=AsyncMock(side_effect=ConnectionError("refused")),
    ):
        response = client.get("/readyz")

    data = response.json()
    assert data["overall_ok"] is False
    assert "ConnectionError" in data["checks"]["database"]["error"]


def test_readyz_ai_not_configured_does_not_fail_readiness():
    """Missing AI key degrades enrichment but the service stays ready."""
    with (
        patch("app.routes.health.db_health_check", new=AsyncMock(return_value={"healthy": True})),
        patch("app.routes.health.settings.OPENAI_API_KEY", None),
    ):
        response = client.get("/readyz")

    data = response.json()
    assert data["overall_ok"] is True
    assert data["checks"]["ai"]["ok"] is False
    assert "error" in data["checks"]["ai"]
