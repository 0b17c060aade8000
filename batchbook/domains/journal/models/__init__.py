"""Journal domain models."""

from batchbook.domains.journal.models.entry import TITLE_MAX_LENGTH, JournalEntry, Mood, sanitize_tags
from batchbook.domains.journal.models.version import EntryVersion, VersionSource

__all__ = [
    "EntryVersion",
    "JournalEntry",
    "Mood",
    "TITLE_MAX_LENGTH",
    "VersionSource",
    "sanitize_tags",
]
