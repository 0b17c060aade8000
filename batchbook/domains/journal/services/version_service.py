"""Versioning service: snapshot policy around entry mutations.

Sources:
- auto: written together with every realtime save
- manual: explicit user snapshot
- restore: pre-restore state captured before an overwrite
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from batchbook.core.errors import Internal, InvalidEntry, NotFound, ValidationFailed
from batchbook.domains.journal.events import JOURNAL_ENTRY_RESTORED, JOURNAL_VERSION_CREATED
from batchbook.domains.journal.models import EntryVersion, JournalEntry, VersionSource
from batchbook.domains.journal.services import entry_service
from batchbook.extensions import db
from batchbook.platform.outbox import enqueue as enqueue_outbox

logger = logging.getLogger(__name__)


def snapshot(
    entry: Optional[JournalEntry],
    source: VersionSource | str = VersionSource.AUTO,
    note: Optional[str] = None,
    commit: bool = True,
) -> EntryVersion:
    """Capture the entry's current title/content/tags as an immutable version."""
    if entry is None or entry.id is None:
        raise InvalidEntry("A valid entry must be provided to create a version.")
    try:
        source_value = VersionSource(source).value
    except ValueError as exc:
        raise ValidationFailed(f"{source} is not a supported source. Must be auto, manual, or restore.") from exc

    now = datetime.utcnow()
    version = EntryVersion(
        entry_id=entry.id,
        user_id=entry.user_id,
        title=entry.title,
        content=entry.content,
        tags=list(entry.tags or []),
        note=note,
        source=source_value,
        created_at=now,
        updated_at=now,
    )
    db.session.add(version)
    db.session.flush()
    enqueue_outbox(
        JOURNAL_VERSION_CREATED,
        {
            "version_id": version.id,
            "entry_id": entry.id,
            "user_id": entry.user_id,
            "source": source_value,
        },
        user_id=entry.user_id,
    )
    if commit:
        db.session.commit()
    logger.debug("Snapshot %s of entry %s (%s)", version.id, entry.id, source_value)
    return version


def create_manual_snapshot(entry_id: int, user_id: int, note: Optional[str] = None) -> EntryVersion:
    entry = entry_service.require_owned_entry(user_id, entry_id)
    return snapshot(entry, VersionSource.MANUAL, note=note)


def autosave(user_id: int, entry_id: int, *, title: str, content: str) -> Optional[JournalEntry]:
    """Conditionally overwrite title/content and record an auto version.

    Returns None when the entry is missing or owned by someone else; nothing is
    written in that case.
    """
    try:
        entry = entry_service.apply_conditional_update(user_id, entry_id, title=title, content=content)
        if entry is None:
            db.session.rollback()
            return None
        snapshot(entry, VersionSource.AUTO, commit=False)
        db.session.commit()
    except ValidationFailed:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise Internal("An error occurred on the server while saving.") from exc
    return entry


def list_versions(entry_id: int, user_id: int) -> List[EntryVersion]:
    entry_service.require_owned_entry(user_id, entry_id)
    return (
        EntryVersion.query.filter_by(entry_id=entry_id)
        .order_by(EntryVersion.created_at.desc(), EntryVersion.id.desc())
        .all()
    )


def get_version(entry_id: int, version_id: int, user_id: int) -> EntryVersion:
    entry_service.require_owned_entry(user_id, entry_id)
    version = EntryVersion.query.filter_by(id=version_id, entry_id=entry_id).first()
    if version is None:
        raise NotFound("Version not found for the specified entry.")
    return version


def restore(entry_id: int, version_id: int, user_id: int) -> JournalEntry:
    """Overwrite the entry from a historical version, preserving current state first.

    The pre-restore snapshot and the overwrite share one transaction; on failure
    both are rolled back and Internal is raised.
    """
    entry = entry_service.require_owned_entry(user_id, entry_id)
    target = EntryVersion.query.filter_by(id=version_id, entry_id=entry_id).first()
    if target is None:
        raise NotFound("Version to restore not found for this entry.")

    try:
        preserved = snapshot(entry, VersionSource.RESTORE, commit=False)
        entry.title = target.title
        entry.content = target.content
        entry.updated_at = entry_service.next_timestamp(entry.updated_at)
        enqueue_outbox(
            JOURNAL_ENTRY_RESTORED,
            {
                "entry_id": entry.id,
                "user_id": user_id,
                "restored_version_id": target.id,
                "snapshot_version_id": preserved.id,
            },
            user_id=user_id,
        )
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Restore of entry %s to version %s failed", entry_id, version_id)
        raise Internal("Failed to restore the entry.") from exc

    logger.info("Restored entry %s to version %s (snapshot %s)", entry_id, version_id, preserved.id)
    return entry


def delete_versions_for_user(user_id: int) -> int:
    return EntryVersion.query.filter_by(user_id=user_id).delete(synchronize_session=False)
