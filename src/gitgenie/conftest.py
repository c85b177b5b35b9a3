"""Fixtures shared by every test package."""

import pytest
from fastapi.testclient import TestClient

from gitgenie.main import app
from gitgenie.services.rate_limiter import limiter


@pytest.fixture
def client() -> TestClient:
    """TestClient over the module-level app; lifespan only runs inside ``with client:``."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def disable_rate_limits():
    """The limiter is process-wide and in memory, so tests would throttle each other."""
    limiter.enabled = False
    yield
    limiter.enabled = True
