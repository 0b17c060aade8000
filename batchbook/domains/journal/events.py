"""Journal domain event catalog."""

from __future__ import annotations

JOURNAL_ENTRY_CREATED = "journal.entry.created"
JOURNAL_ENTRY_UPDATED = "journal.entry.updated"
JOURNAL_ENTRY_DELETED = "journal.entry.deleted"
JOURNAL_VERSION_CREATED = "journal.version.created"
JOURNAL_ENTRY_RESTORED = "journal.entry.restored"

EVENT_CATALOG = {
    JOURNAL_ENTRY_CREATED: {
        "version": "v1",
        "payload": {
            "entry_id": "int",
            "user_id": "int",
            "mood": "str?",
            "tags": "list[str]",
            "created_at": "datetime",
        },
    },
    JOURNAL_ENTRY_UPDATED: {
        "version": "v1",
        "payload": {
            "entry_id": "int",
            "user_id": "int",
            "fields": "list[str]",
            "via": "str",
            "updated_at": "datetime",
        },
    },
    JOURNAL_ENTRY_DELETED: {
        "version": "v1",
        "payload": {"entry_id": "int", "user_id": "int"},
    },
    JOURNAL_VERSION_CREATED: {
        "version": "v1",
        "payload": {
            "version_id": "int",
            "entry_id": "int",
            "user_id": "int",
            "source": "str",
        },
    },
    JOURNAL_ENTRY_RESTORED: {
        "version": "v1",
        "payload": {
            "entry_id": "int",
            "user_id": "int",
            "restored_version_id": "int",
            "snapshot_version_id": "int",
        },
    },
}

__all__ = [
    "EVENT_CATALOG",
    "JOURNAL_ENTRY_CREATED",
    "JOURNAL_ENTRY_UPDATED",
    "JOURNAL_ENTRY_DELETED",
    "JOURNAL_VERSION_CREATED",
    "JOURNAL_ENTRY_RESTORED",
]
