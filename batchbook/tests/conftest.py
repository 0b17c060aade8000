import itertools

import pytest

from batchbook import create_app
from batchbook.core.auth.auth_service import issue_tokens
from batchbook.core.users.models import ROLE_USER
from batchbook.core.users.schemas import UserCreateRequest
from batchbook.core.users.services import create_user
from batchbook.extensions import db


# ==================== Pytest Markers ====================
def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (database, API)")
    config.addinivalue_line("markers", "realtime: Socket.IO gateway tests")


@pytest.fixture()
def app():
    """
    Create a per-test app backed by a fresh in-memory database.

    The schema is built from model metadata; migrations are exercised separately
    via `flask db upgrade`.
    """
    app = create_app("testing")
    ctx = app.app_context()
    ctx.push()
    db.create_all()
    try:
        yield app
    finally:
        db.session.remove()
        db.drop_all()
        ctx.pop()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def make_user(app):
    """Factory creating persisted users with unique emails."""
    counter = itertools.count(1)

    def _make(name: str | None = None, email: str | None = None, password: str = "secret123", role: str = ROLE_USER):
        n = next(counter)
        return create_user(
            UserCreateRequest(
                name=name or f"Writer {n}",
                email=email or f"writer{n}@example.com",
                password=password,
            ),
            role=role,
        )

    return _make


@pytest.fixture()
def user_with_tokens(make_user):
    user = make_user(name="Alice", email="alice@example.com")
    return {"user": user, "user_id": user.id, "tokens": issue_tokens(user)}


@pytest.fixture()
def other_user_tokens(make_user):
    user = make_user(name="Bob", email="bob@example.com")
    return {"user": user, "user_id": user.id, "tokens": issue_tokens(user)}
