"""
Pytest configuration and fixtures for backend API tests.
"""

import pytest
from fastapi.testclient import TestClient

from tab_prioritizer.agents.pipeline import TabPrioritizer


@pytest.fixture(autouse=True)
def prioritizer(settings):
    """Install a fallback-only prioritizer as the global service instance."""
    import tab_prioritizer.server.app as app_module

    prioritizer = TabPrioritizer(settings=settings, provider=None)
    app_module._prioritizer = prioritizer
    yield prioritizer
    # Clean up after test
    app_module._prioritizer = None


@pytest.fixture
def client():
    """Test client for the FastAPI app."""
    from tab_prioritizer.server.app import app

    return TestClient(app)


@pytest.fixture
def analyze_payload(sample_tabs_data):
    """Request body for POST /api/analyze."""
    return {"tabs": sample_tabs_data}
