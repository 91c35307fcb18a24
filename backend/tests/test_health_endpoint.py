"""
Integration tests for health check endpoints.
"""
import pytest
from fastapi.testclient import TestClient

from advisorboard.core.errors import AuthenticationError
from advisorboard.main import app


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


def test_basic_health_check(client):
    response = client.get("/health/")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "message": "API is running"}


def test_llm_health_healthy(client, api_services):
    response = client.get("/health/llm")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["active_provider"] == "primary"
    assert data["providers"] == {"primary": True, "secondary": True}
    assert data["cache"]["cache_type"] == "advisor"


def test_llm_health_degraded_when_providers_fail(client, api_services):
    orchestrator, provider = api_services
    provider.outcomes = [AuthenticationError("invalid key")]
    secondary = orchestrator._integration.get_provider("secondary")
    secondary.outcomes = [AuthenticationError("invalid key")]

    data = client.get("/health/llm").json()

    assert data["status"] == "degraded"
    assert data["providers"] == {"primary": False, "secondary": False}
