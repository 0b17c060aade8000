"""Journal mappers for DTO responses."""

from __future__ import annotations

from batchbook.domains.journal.models import EntryVersion, JournalEntry
from batchbook.domains.journal.schemas.entry_schemas import EntryResponse
from batchbook.domains.journal.schemas.version_schemas import VersionResponse


def _iso(value) -> str:
    return value.isoformat() if value else ""


def map_entry(entry: JournalEntry) -> dict:
    return EntryResponse(
        id=entry.id,
        user_id=entry.user_id,
        title=entry.title,
        content=entry.content,
        mood=entry.mood,
        tags=entry.tags or [],
        created_at=_iso(entry.created_at),
        updated_at=_iso(entry.updated_at),
    ).model_dump()


def map_version(version: EntryVersion) -> dict:
    return VersionResponse(
        id=version.id,
        entry_id=version.entry_id,
        user_id=version.user_id,
        title=version.title,
        content=version.content,
        tags=version.tags or [],
        note=version.note,
        source=version.source,
        created_at=_iso(version.created_at),
        updated_at=_iso(version.updated_at),
    ).model_dump()
