"""Immutable entry snapshots."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy.orm import Mapped, mapped_column

from batchbook.extensions import db


class VersionSource(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"
    RESTORE = "restore"


class EntryVersion(db.Model):
    __tablename__ = "entry_version"
    __table_args__ = (
        db.Index("ix_entry_version_entry_created_at", "entry_id", "created_at"),
        db.Index("ix_entry_version_user_created_at", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    # Plain column, not a FK: history is retained after the entry is deleted.
    entry_id: Mapped[int] = mapped_column(db.Integer, nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), index=True, nullable=False)
    title: Mapped[str] = mapped_column(db.String(255), nullable=False)
    content: Mapped[str] = mapped_column(db.Text, nullable=False)
    tags: Mapped[list] = mapped_column(db.JSON, default=list, nullable=False)
    note: Mapped[str | None] = mapped_column(db.String(255))
    source: Mapped[str] = mapped_column(db.String(16), nullable=False, default=VersionSource.AUTO.value)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
