"""
Backend-specific test fixtures and configuration.

These fixtures extend the global fixtures with helpers for testing the
FastAPI app, the auth guard and request hooks.
"""

import pytest
from fastapi.testclient import TestClient

from mockapi.core.security import AuthGuard
from mockapi.main import create_app
from mockapi.server import MockServer


# =============================================================================
# App Fixtures
# =============================================================================

@pytest.fixture
def app(settings, store):
    """FastAPI app over the shared store, auth disabled."""
    return create_app(settings, store)


@pytest.fixture
def client(app):
    """TestClient running the app lifespan."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_app(auth_settings, store):
    """FastAPI app with bearer tokens required."""
    return create_app(auth_settings, store)


@pytest.fixture
def auth_client(auth_app):
    """TestClient for the auth-enabled app."""
    with TestClient(auth_app) as c:
        yield c


@pytest.fixture
def mock_server(settings, store):
    """MockServer facade over the shared store (not yet built)."""
    return MockServer(settings, store)


# =============================================================================
# Token Helpers
# =============================================================================

@pytest.fixture
def auth_guard(auth_settings) -> AuthGuard:
    return AuthGuard.from_settings(auth_settings)


@pytest.fixture
def auth_headers(auth_guard):
    """Build an Authorization header for a principal id."""
    def _headers(principal: str = "alice") -> dict:
        return {"Authorization": f"Bearer {auth_guard.generate_token({'sub': principal})}"}
    return _headers


# =============================================================================
# Response Assertion Helpers
# =============================================================================

@pytest.fixture
def assert_error_response():
    """Helper to assert error response structure."""
    def _assert(response, status_code: int, error_contains: str = None):
        assert response.status_code == status_code
        data = response.json()
        assert "error" in data
        if error_contains:
            assert error_contains.lower() in data["error"].lower()
    return _assert


@pytest.fixture
def assert_pagination_response():
    """Helper to assert paginated response structure."""
    def _assert(response, total: int, current_page: int = 1, per_page: int = 10):
        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"data", "pagination"}
        assert data["pagination"]["total"] == total
        assert data["pagination"]["current_page"] == current_page
        assert data["pagination"]["per_page"] == per_page
        return data
    return _assert
