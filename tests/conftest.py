"""Shared fixtures.

The environment is forced to the in-memory backend with Redis off before
the application module is imported (settings are cached on first use).
"""

import os
import tempfile
from collections.abc import Callable, Iterator
from typing import Any

import pytest


os.environ["ENVIRONMENT"] = "testing"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["REDIS_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["LOG_FORMAT"] = "json"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="app-reviews-logs-")
os.environ["WEBSOCKET_PING_INTERVAL_SECONDS"] = "30"

from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app_reviews.auth.permissions import UserRole  # noqa: E402
from app_reviews.auth.schemas import Identity  # noqa: E402
from app_reviews.auth.security import create_access_token  # noqa: E402
from app_reviews.main import create_app  # noqa: E402


@pytest.fixture
def app() -> FastAPI:
    """Fresh application (own hub and stores) per test."""
    return create_app()


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Test client with lifespan run (services wired on app.state)."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Build a signed access token for a user."""

    def _make(
        user_id: str,
        role: UserRole = UserRole.STUDENT,
        name: str | None = None,
        email: str | None = None,
        **claims: Any,
    ) -> str:
        return create_access_token(
            {
                "sub": user_id,
                "name": name if name is not None else f"User {user_id}",
                "email": email or f"{user_id}@example.com",
                "role": role.value,
                **claims,
            }
        )

    return _make


@pytest.fixture
def auth_headers(make_token: Callable[..., str]) -> Callable[..., dict[str, str]]:
    """Authorization header for a user."""

    def _headers(user_id: str, role: UserRole = UserRole.STUDENT, **kw: Any):
        return {"Authorization": f"Bearer {make_token(user_id, role, **kw)}"}

    return _headers


@pytest.fixture
def student() -> Identity:
    return Identity(id="student-1", name="Alice", email="alice@example.com")


@pytest.fixture
def other_student() -> Identity:
    return Identity(id="student-2", name="Bob", email="bob@example.com")


@pytest.fixture
def admin() -> Identity:
    return Identity(
        id="admin-1", name="Carol", email="carol@example.com", role=UserRole.ADMIN
    )


@pytest.fixture
def second_admin() -> Identity:
    return Identity(
        id="admin-2", name="Dave", email="dave@example.com", role=UserRole.ADMIN
    )
