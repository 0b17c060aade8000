from __future__ import annotations

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

pytestmark = pytest.mark.integration

from batchbook.core.errors import Forbidden, Internal, InvalidEntry, NotFound, ValidationFailed
from batchbook.domains.journal.models import EntryVersion, JournalEntry, VersionSource, sanitize_tags
from batchbook.domains.journal.services import entry_service, version_service
from batchbook.extensions import db
from batchbook.platform.outbox.models import OutboxMessage


@pytest.fixture
def owner(make_user):
    return make_user(name="Owner")


@pytest.fixture
def stranger(make_user):
    return make_user(name="Stranger")


@pytest.fixture
def entry(owner):
    return entry_service.create_entry(owner.id, title="Draft", content="first words", tags=["one"])


# ==================== Entry store ====================


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw, expected",
    [
        ([" a ", "", "b", "  "], ["a", "b"]),
        (["dup", " dup "], ["dup", "dup"]),
        (None, []),
        ([None, " x"], ["x"]),
    ],
)
def test_sanitize_tags(raw, expected):
    assert sanitize_tags(raw) == expected


def test_tags_are_sanitized_on_every_write(owner):
    created = entry_service.create_entry(owner.id, title="T", content="C", tags=[" a ", "", "b", "  "])
    assert created.tags == ["a", "b"]

    updated = entry_service.update_entry(owner.id, created.id, tags=["  c", "   "])
    assert updated.tags == ["c"]


def test_create_stages_outbox_event(owner, entry):
    messages = OutboxMessage.query.filter_by(event_type="journal.entry.created", user_id=owner.id).all()
    assert len(messages) == 1
    assert messages[0].payload["entry_id"] == entry.id


def test_require_owned_entry(owner, stranger, entry):
    assert entry_service.require_owned_entry(owner.id, entry.id).id == entry.id
    with pytest.raises(Forbidden):
        entry_service.require_owned_entry(stranger.id, entry.id)
    with pytest.raises(NotFound):
        entry_service.require_owned_entry(owner.id, entry.id + 1000)


def test_conditional_update_matches_owner_only(owner, stranger, entry):
    assert entry_service.apply_conditional_update(stranger.id, entry.id, title="Hijack", content="x") is None
    db.session.rollback()
    assert db.session.get(JournalEntry, entry.id, populate_existing=True).title == "Draft"

    saved = entry_service.apply_conditional_update(owner.id, entry.id, title="  Mine  ", content="y")
    db.session.commit()
    assert saved.title == "Mine"
    assert saved.content == "y"


@pytest.mark.parametrize("title, content", [("", "body"), ("x" * 101, "body"), ("Title", "   ")])
def test_conditional_update_validates(owner, entry, title, content):
    with pytest.raises(ValidationFailed):
        entry_service.apply_conditional_update(owner.id, entry.id, title=title, content=content)


# ==================== Versioning ====================


def test_snapshot_requires_persisted_entry():
    with pytest.raises(InvalidEntry):
        version_service.snapshot(None)
    with pytest.raises(InvalidEntry):
        version_service.snapshot(JournalEntry(title="t", content="c", user_id=1))


def test_snapshot_rejects_unknown_source(entry):
    with pytest.raises(ValidationFailed):
        version_service.snapshot(entry, source="imported")


def test_manual_snapshot_is_owner_gated(owner, stranger, entry):
    version = version_service.create_manual_snapshot(entry.id, owner.id, note="checkpoint")
    assert version.source == VersionSource.MANUAL.value
    assert version.note == "checkpoint"
    assert version.content == "first words"
    assert version.tags == ["one"]

    with pytest.raises(Forbidden):
        version_service.create_manual_snapshot(entry.id, stranger.id)


def test_autosave_writes_one_auto_version_per_save(owner, entry):
    for content in ("v1", "v2", "v3"):
        saved = version_service.autosave(owner.id, entry.id, title="Draft", content=content)
        assert saved.content == content

    versions = version_service.list_versions(entry.id, owner.id)
    assert [v.content for v in versions] == ["v3", "v2", "v1"]
    assert {v.source for v in versions} == {"auto"}


def test_autosave_by_non_owner_changes_nothing(owner, stranger, entry):
    assert version_service.autosave(stranger.id, entry.id, title="Hijack", content="x") is None
    assert version_service.autosave(owner.id, entry.id + 1000, title="Ghost", content="x") is None

    db.session.expire_all()
    assert db.session.get(JournalEntry, entry.id).content == "first words"
    assert EntryVersion.query.count() == 0


def test_autosave_validation_rolls_back(owner, entry):
    with pytest.raises(ValidationFailed):
        version_service.autosave(owner.id, entry.id, title="", content="x")
    assert EntryVersion.query.count() == 0


def test_autosave_storage_failure_raises_internal(owner, entry):
    boom = OperationalError("INSERT", {}, Exception("disk full"))
    with patch.object(version_service, "snapshot", side_effect=boom):
        with pytest.raises(Internal):
            version_service.autosave(owner.id, entry.id, title="Draft", content="lost")

    db.session.expire_all()
    assert db.session.get(JournalEntry, entry.id).content == "first words"


def test_restore_snapshots_current_state_then_overwrites(owner, entry):
    for content in ("v1", "v2", "v3"):
        version_service.autosave(owner.id, entry.id, title="Draft", content=content)
    first = version_service.list_versions(entry.id, owner.id)[-1]
    assert first.content == "v1"

    restored = version_service.restore(entry.id, first.id, owner.id)

    assert restored.content == "v1"
    versions = version_service.list_versions(entry.id, owner.id)
    assert len(versions) == 4
    assert versions[0].source == VersionSource.RESTORE.value
    assert versions[0].content == "v3"
    assert OutboxMessage.query.filter_by(event_type="journal.entry.restored").count() == 1


def test_restore_rejects_version_of_other_entry(owner, entry):
    other_entry = entry_service.create_entry(owner.id, title="Other", content="other")
    foreign_version = version_service.create_manual_snapshot(other_entry.id, owner.id)

    with pytest.raises(NotFound):
        version_service.restore(entry.id, foreign_version.id, owner.id)
    with pytest.raises(NotFound):
        version_service.get_version(entry.id, foreign_version.id, owner.id)


def test_restore_by_non_owner_is_forbidden(owner, stranger, entry):
    version = version_service.create_manual_snapshot(entry.id, owner.id)
    with pytest.raises(Forbidden):
        version_service.restore(entry.id, version.id, stranger.id)


def test_restore_failure_rolls_back_both_writes(owner, entry):
    version = version_service.create_manual_snapshot(entry.id, owner.id)
    entry_service.update_entry(owner.id, entry.id, content="edited")

    boom = OperationalError("COMMIT", {}, Exception("locked"))
    with patch.object(db.session, "commit", side_effect=boom):
        with pytest.raises(Internal):
            version_service.restore(entry.id, version.id, owner.id)

    db.session.expire_all()
    assert db.session.get(JournalEntry, entry.id).content == "edited"
    assert EntryVersion.query.filter_by(entry_id=entry.id).count() == 1


def test_updated_at_never_moves_backwards(owner, entry):
    ahead = datetime.utcnow() + timedelta(hours=6)
    entry.updated_at = ahead
    db.session.commit()

    saved = version_service.autosave(owner.id, entry.id, title="Draft", content="second words")
    assert saved.updated_at == ahead

    version = EntryVersion.query.filter_by(entry_id=entry.id, source="auto").one()
    restored = version_service.restore(entry.id, version.id, owner.id)
    assert restored.updated_at == ahead

    updated = entry_service.update_entry(owner.id, entry.id, content="third words")
    assert updated.updated_at == ahead


def test_autosave_advances_updated_at(owner, entry):
    before = entry.updated_at
    saved = version_service.autosave(owner.id, entry.id, title="Draft", content="later words")
    assert saved.updated_at >= before
