"""Entry API tests.

- GET /api/entries - list with filters and pagination
- POST /api/entries - create
- GET /api/entries/<id> - read
- PUT|PATCH /api/entries/<id> - update
- DELETE /api/entries/<id> - delete
"""

from __future__ import annotations

from datetime import datetime

import pytest

pytestmark = pytest.mark.integration

from batchbook.domains.journal.models import EntryVersion, JournalEntry
from batchbook.domains.journal.services import entry_service, version_service
from batchbook.extensions import db


def _auth_headers(access_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def headers(user_with_tokens):
    return _auth_headers(user_with_tokens["tokens"]["access_token"])


def _create(client, headers, **overrides):
    payload = {"title": "Morning pages", "content": "Woke up early.", "mood": "happy", "tags": ["Work", " focus "]}
    payload.update(overrides)
    return client.post("/api/entries", json=payload, headers=headers)


# ==================== Create ====================


def test_create_entry(app, client, headers, user_with_tokens):
    resp = _create(client, headers, title="  Morning pages  ", tags=[" a ", "", "b", "  "])
    assert resp.status_code == 201
    entry = resp.get_json()["entry"]
    assert entry["title"] == "Morning pages"
    assert entry["tags"] == ["a", "b"]
    assert entry["mood"] == "happy"
    assert entry["user_id"] == user_with_tokens["user_id"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"title": ""},
        {"title": "   "},
        {"title": "x" * 101},
        {"content": "   "},
        {"mood": "ecstatic"},
    ],
)
def test_create_entry_validation(app, client, headers, overrides):
    resp = _create(client, headers, **overrides)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"


def test_create_requires_auth(app, client):
    resp = client.post("/api/entries", json={"title": "t", "content": "c"})
    assert resp.status_code == 401
    assert resp.get_json() == {"ok": False, "error": "unauthorized"}


# ==================== Read / ownership ====================


def test_get_entry_and_foreign_entry_is_not_found(app, client, headers, other_user_tokens):
    entry_id = _create(client, headers).get_json()["entry"]["id"]

    assert client.get(f"/api/entries/{entry_id}", headers=headers).status_code == 200

    other = _auth_headers(other_user_tokens["tokens"]["access_token"])
    foreign = client.get(f"/api/entries/{entry_id}", headers=other)
    missing = client.get("/api/entries/424242", headers=other)
    assert foreign.status_code == missing.status_code == 404
    assert foreign.get_json()["error"] == missing.get_json()["error"] == "not_found"


# ==================== Update / delete ====================


def test_update_entry_partial(app, client, headers):
    entry_id = _create(client, headers).get_json()["entry"]["id"]

    resp = client.patch(f"/api/entries/{entry_id}", json={"content": "Rewritten", "tags": ["x", " "]}, headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()["entry"]
    assert body["content"] == "Rewritten"
    assert body["title"] == "Morning pages"
    assert body["tags"] == ["x"]
    # HTTP updates do not snapshot.
    assert EntryVersion.query.filter_by(entry_id=entry_id).count() == 0


def test_update_foreign_entry_is_not_found(app, client, headers, other_user_tokens):
    entry_id = _create(client, headers).get_json()["entry"]["id"]
    other = _auth_headers(other_user_tokens["tokens"]["access_token"])

    resp = client.put(f"/api/entries/{entry_id}", json={"title": "Hijack"}, headers=other)
    assert resp.status_code == 404
    db.session.expire_all()
    assert db.session.get(JournalEntry, entry_id).title == "Morning pages"


def test_delete_entry_keeps_history(app, client, headers, user_with_tokens):
    entry_id = _create(client, headers).get_json()["entry"]["id"]
    version_service.create_manual_snapshot(entry_id, user_with_tokens["user_id"], note="before delete")

    assert client.delete(f"/api/entries/{entry_id}", headers=headers).status_code == 200
    assert client.get(f"/api/entries/{entry_id}", headers=headers).status_code == 404
    assert client.delete(f"/api/entries/{entry_id}", headers=headers).status_code == 404
    assert EntryVersion.query.filter_by(entry_id=entry_id).count() == 1


# ==================== List ====================


def test_list_newest_first_with_pagination(app, client, headers, user_with_tokens):
    user_id = user_with_tokens["user_id"]
    for i in range(3):
        entry = entry_service.create_entry(user_id, title=f"Entry {i}", content=f"Content {i}")
        entry.created_at = datetime(2026, 1, i + 1, 12, 0)
    db.session.commit()

    resp = client.get("/api/entries?limit=2", headers=headers)
    body = resp.get_json()
    assert resp.status_code == 200
    assert [e["title"] for e in body["items"]] == ["Entry 2", "Entry 1"]
    assert body["total"] == 3
    assert body["pages"] == 2
    assert body["limit"] == 2

    page_two = client.get("/api/entries?limit=2&page=2", headers=headers).get_json()
    assert [e["title"] for e in page_two["items"]] == ["Entry 0"]


def test_list_filters(app, client, headers, user_with_tokens, other_user_tokens):
    user_id = user_with_tokens["user_id"]
    a = entry_service.create_entry(user_id, title="Gym day", content="Lifted 100% effort", mood="tired", tags=["Health"])
    b = entry_service.create_entry(user_id, title="Work notes", content="Shipped the release", tags=["work", "wins"])
    c = entry_service.create_entry(user_id, title="gym day", content="Rest", mood="happy", tags=[])
    entry_service.create_entry(other_user_tokens["user_id"], title="Gym day", content="not mine", tags=["health"])
    a.created_at = datetime(2026, 3, 1, 8, 0)
    b.created_at = datetime(2026, 3, 5, 8, 0)
    c.created_at = datetime(2026, 3, 10, 23, 59)
    db.session.commit()

    def titles(query):
        resp = client.get(f"/api/entries?{query}", headers=headers)
        assert resp.status_code == 200
        return sorted(e["id"] for e in resp.get_json()["items"])

    assert titles("q=GYM") == sorted([a.id, c.id])
    assert titles("q=100%25") == [a.id]
    assert titles("q=gym%20day&exact=true") == sorted([a.id, c.id])
    assert titles("q=gym&exact=true") == []
    assert titles("tags=HEALTH,wins") == sorted([a.id, b.id])
    assert titles("mood=tired") == [a.id]
    assert titles("startDate=2026-03-05&endDate=2026-03-10") == sorted([b.id, c.id])
    assert titles("endDate=2026-03-01") == [a.id]


def test_list_rejects_inverted_date_range(app, client, headers):
    resp = client.get("/api/entries?startDate=2026-03-10&endDate=2026-03-01", headers=headers)
    assert resp.status_code == 400


def test_tag_filter_matches_whole_tags_only(app, client, headers, user_with_tokens):
    user_id = user_with_tokens["user_id"]
    work = entry_service.create_entry(user_id, title="Standup", content="notes", tags=["Work"])
    entry_service.create_entry(user_id, title="Chores", content="dishes", tags=["homework", "work-ish"])
    entry_service.create_entry(user_id, title="Untagged", content="nothing")

    items = client.get("/api/entries?tags=work", headers=headers).get_json()["items"]
    assert [e["id"] for e in items] == [work.id]
    assert client.get("/api/entries?tags=missing", headers=headers).get_json()["total"] == 0
