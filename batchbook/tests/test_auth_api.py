from __future__ import annotations

import pytest

pytestmark = pytest.mark.integration

from batchbook.core.auth.models import JWTBlocklist
from batchbook.core.users.models import User
from batchbook.platform.outbox.models import OutboxMessage


def _register(client, **overrides):
    payload = {"name": "Casey", "email": "Casey@Example.com", "password": "secret123"}
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)


def test_register_returns_user_and_tokens(app, client):
    resp = _register(client)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["ok"] is True
    assert body["user"]["email"] == "casey@example.com"
    assert body["user"]["role"] == "user"
    assert body["access_token"]
    assert body["refresh_token"]
    assert "password_hash" not in body["user"]

    user = User.query.filter_by(email="casey@example.com").one()
    assert user.password_hash != "secret123"
    assert OutboxMessage.query.filter_by(event_type="auth.user.registered", user_id=user.id).count() == 1


def test_register_rejects_duplicate_email(app, client):
    assert _register(client).status_code == 201
    resp = _register(client, email="casey@example.com")
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "email_already_exists"


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": ""},
        {"name": "x" * 51},
        {"email": "not-an-email"},
        {"password": "short"},
    ],
)
def test_register_validates_payload(app, client, overrides):
    resp = _register(client, **overrides)
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["ok"] is False
    assert body["error"] == "bad_request"
    assert body["details"]


def test_login_success_and_generic_failure(app, client, make_user):
    make_user(email="dana@example.com", password="secret123")

    ok = client.post("/api/auth/login", json={"email": "DANA@example.com", "password": "secret123"})
    assert ok.status_code == 200
    body = ok.get_json()
    assert body["ok"] is True
    assert body["access_token"] and body["refresh_token"] and body["csrf_token"]

    wrong_password = client.post("/api/auth/login", json={"email": "dana@example.com", "password": "nope-nope"})
    unknown_email = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"})
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.get_json() == unknown_email.get_json() == {"ok": False, "error": "invalid_credentials"}


def test_me_requires_token(app, client, user_with_tokens):
    assert client.get("/api/auth/me").status_code == 401
    resp = client.get(
        "/api/auth/me",
        headers={"Authorization": f"Bearer {user_with_tokens['tokens']['access_token']}"},
    )
    assert resp.status_code == 200
    assert resp.get_json()["user"]["id"] == user_with_tokens["user_id"]


def test_malformed_token_gets_generic_unauthorized(app, client):
    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert resp.status_code == 401
    assert resp.get_json() == {"ok": False, "error": "unauthorized"}


def test_refresh_then_logout_revokes_refresh_token(app, client, user_with_tokens):
    refresh_headers = {"Authorization": f"Bearer {user_with_tokens['tokens']['refresh_token']}"}

    resp = client.post("/api/auth/refresh", headers=refresh_headers)
    assert resp.status_code == 200
    assert resp.get_json()["access_token"]

    resp = client.post("/api/auth/logout", headers=refresh_headers)
    assert resp.status_code == 200
    assert JWTBlocklist.query.filter_by(user_id=user_with_tokens["user_id"]).count() == 1

    resp = client.post("/api/auth/refresh", headers=refresh_headers)
    assert resp.status_code == 401


def test_access_token_cannot_refresh(app, client, user_with_tokens):
    resp = client.post(
        "/api/auth/refresh",
        headers={"Authorization": f"Bearer {user_with_tokens['tokens']['access_token']}"},
    )
    assert resp.status_code == 401
