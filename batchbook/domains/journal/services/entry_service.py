"""Entry store: owner-scoped CRUD over journal entries with event emission."""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func, or_, select, update

from batchbook.core.errors import Forbidden, NotFound, ValidationFailed
from batchbook.core.utils.pagination import paginate
from batchbook.domains.journal.events import (
    JOURNAL_ENTRY_CREATED,
    JOURNAL_ENTRY_DELETED,
    JOURNAL_ENTRY_UPDATED,
)
from batchbook.domains.journal.models import TITLE_MAX_LENGTH, JournalEntry, Mood, sanitize_tags
from batchbook.extensions import db
from batchbook.platform.outbox import enqueue as enqueue_outbox

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "content", "mood", "tags")


def create_entry(
    user_id: int,
    *,
    title: str,
    content: str,
    mood: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> JournalEntry:
    entry = JournalEntry(
        user_id=user_id,
        title=_validate_title(title),
        content=_validate_content(content),
        mood=_validate_mood(mood),
        tags=tags or [],
    )
    db.session.add(entry)
    db.session.flush()
    enqueue_outbox(
        JOURNAL_ENTRY_CREATED,
        {
            "entry_id": entry.id,
            "user_id": user_id,
            "mood": entry.mood,
            "tags": entry.tags,
            "created_at": entry.created_at.isoformat() if entry.created_at else datetime.utcnow().isoformat(),
        },
        user_id=user_id,
    )
    db.session.commit()
    return entry


def get_entry(user_id: int, entry_id: int) -> Optional[JournalEntry]:
    return JournalEntry.query.filter_by(id=entry_id, user_id=user_id).first()


def require_owned_entry(user_id: int, entry_id: int) -> JournalEntry:
    """Return the entry or raise NotFound (absent) / Forbidden (someone else's)."""
    entry = db.session.get(JournalEntry, entry_id)
    if entry is None:
        raise NotFound("Entry not found.")
    if entry.user_id != user_id:
        raise Forbidden("You are not authorized to access this entry.")
    return entry


def list_entries(
    user_id: int,
    *,
    q: Optional[str] = None,
    exact: bool = False,
    tags: Optional[List[str]] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    mood: Optional[str] = None,
    page: int = 1,
    per_page: int = 10,
    max_per_page: int = 100,
) -> Dict[str, Any]:
    query = JournalEntry.query.filter_by(user_id=user_id)
    if q:
        if exact:
            needle = q.lower()
            query = query.filter(
                or_(func.lower(JournalEntry.title) == needle, func.lower(JournalEntry.content) == needle)
            )
        else:
            like = f"%{_escape_like(q)}%"
            query = query.filter(
                or_(
                    JournalEntry.title.ilike(like, escape="\\"),
                    JournalEntry.content.ilike(like, escape="\\"),
                )
            )
    if start_date:
        query = query.filter(JournalEntry.created_at >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.filter(JournalEntry.created_at <= datetime.combine(end_date, time.max))
    if mood is not None:
        query = query.filter(JournalEntry.mood == _validate_mood(mood))
    if tags:
        query = query.filter(_has_any_tag(tags))
    query = query.order_by(JournalEntry.created_at.desc(), JournalEntry.id.desc())
    return paginate(query, page=page, per_page=per_page, max_per_page=max_per_page)


def list_all_entries(user_id: int) -> List[JournalEntry]:
    return (
        JournalEntry.query.filter_by(user_id=user_id)
        .order_by(JournalEntry.created_at.desc(), JournalEntry.id.desc())
        .all()
    )


def update_entry(user_id: int, entry_id: int, **fields) -> Optional[JournalEntry]:
    entry = get_entry(user_id, entry_id)
    if not entry:
        return None
    changed = []
    for key in UPDATABLE_FIELDS:
        if key not in fields:
            continue
        val = fields[key]
        if key == "title":
            val = _validate_title(val)
        elif key == "content":
            val = _validate_content(val)
        elif key == "mood":
            val = _validate_mood(val)
        elif key == "tags":
            val = sanitize_tags(val)
        setattr(entry, key, val)
        changed.append(key)
    if not changed:
        return entry
    entry.updated_at = next_timestamp(entry.updated_at)
    _stage_updated_event(entry, changed, via="http")
    db.session.commit()
    return entry


def apply_conditional_update(user_id: int, entry_id: int, *, title: str, content: str) -> Optional[JournalEntry]:
    """Set title/content WHERE id AND owner match. Does not commit.

    Returns None when no row matched (missing entry or not the owner).
    Concurrent callers race; the later write wins.
    """
    title = _validate_title(title)
    content = _validate_content(content)
    result = db.session.execute(
        update(JournalEntry)
        .where(JournalEntry.id == entry_id, JournalEntry.user_id == user_id)
        .values(title=title, content=content, updated_at=_not_before(JournalEntry.updated_at, datetime.utcnow()))
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        return None
    entry = db.session.get(JournalEntry, entry_id, populate_existing=True)
    _stage_updated_event(entry, ["title", "content"], via="realtime")
    return entry


def delete_entry(user_id: int, entry_id: int) -> bool:
    """Delete an entry; its version history is kept."""
    entry = get_entry(user_id, entry_id)
    if not entry:
        return False
    db.session.delete(entry)
    enqueue_outbox(
        JOURNAL_ENTRY_DELETED,
        {"entry_id": entry_id, "user_id": user_id},
        user_id=user_id,
    )
    db.session.commit()
    return True


def word_count(text: str) -> int:
    return len((text or "").split())


def _stage_updated_event(entry: JournalEntry, changed: List[str], via: str) -> None:
    enqueue_outbox(
        JOURNAL_ENTRY_UPDATED,
        {
            "entry_id": entry.id,
            "user_id": entry.user_id,
            "fields": changed,
            "via": via,
            "updated_at": entry.updated_at.isoformat() if entry.updated_at else datetime.utcnow().isoformat(),
        },
        user_id=entry.user_id,
    )


def next_timestamp(previous: Optional[datetime]) -> datetime:
    """Now, unless the stored value is already later (clock skew); never moves backwards."""
    now = datetime.utcnow()
    if previous and previous > now:
        return previous
    return now


def _not_before(column, now: datetime):
    # SQL-side next_timestamp for single-statement updates.
    return case((column > now, column), else_=now)


def _has_any_tag(tags: List[str]):
    """EXISTS over the JSON tag array, case-insensitive, any-of."""
    wanted = sorted({t.lower() for t in tags})
    if db.session.get_bind().dialect.name == "postgresql":
        elements = func.json_array_elements_text(JournalEntry.tags).table_valued("value")
    else:
        elements = func.json_each(JournalEntry.tags).table_valued("value")
    return select(1).select_from(elements).where(func.lower(elements.c.value).in_(wanted)).exists()


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _validate_title(title: Optional[str]) -> str:
    text = (title or "").strip()
    if not text:
        raise ValidationFailed("Title is required and cannot be empty.")
    if len(text) > TITLE_MAX_LENGTH:
        raise ValidationFailed(f"Title cannot be more than {TITLE_MAX_LENGTH} characters.")
    return text


def _validate_content(content: Optional[str]) -> str:
    if content is None or not str(content).strip():
        raise ValidationFailed("Content is required and cannot be empty.")
    return str(content)


def _validate_mood(mood) -> Optional[str]:
    if mood is None or mood == "":
        return None
    try:
        return Mood(mood).value
    except ValueError as exc:
        raise ValidationFailed(f"Unsupported mood: {mood}") from exc
