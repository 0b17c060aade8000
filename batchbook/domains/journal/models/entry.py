"""Journal entry model."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional

from sqlalchemy.orm import Mapped, mapped_column, validates

from batchbook.extensions import db

TITLE_MAX_LENGTH = 100


class Mood(str, Enum):
    HAPPY = "happy"
    SAD = "sad"
    NEUTRAL = "neutral"
    ANGRY = "angry"
    EXCITED = "excited"
    ANXIOUS = "anxious"
    GRATEFUL = "grateful"
    TIRED = "tired"
    OTHER = "other"


def sanitize_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """Trim each tag and drop empties, preserving order. Duplicates are kept."""
    if not tags:
        return []
    cleaned = []
    for tag in tags:
        if tag is None:
            continue
        text = str(tag).strip()
        if text:
            cleaned.append(text)
    return cleaned


class JournalEntry(db.Model):
    __tablename__ = "journal_entry"
    __table_args__ = (
        db.Index("ix_journal_entry_user_created_at", "user_id", "created_at"),
        db.Index("ix_journal_entry_user_mood", "user_id", "mood"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    # Ownership is fixed at creation; services never reassign it.
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), index=True, nullable=False)
    title: Mapped[str] = mapped_column(db.String(TITLE_MAX_LENGTH), nullable=False)
    content: Mapped[str] = mapped_column(db.Text, nullable=False)
    mood: Mapped[str | None] = mapped_column(db.String(16))
    tags: Mapped[list] = mapped_column(db.JSON, default=list, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)

    @validates("tags")
    def _validate_tags(self, _key, value):
        return sanitize_tags(value)

    @validates("mood")
    def _validate_mood(self, _key, value):
        if value is None:
            return None
        return Mood(value).value
