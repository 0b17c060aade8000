"""User service layer."""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import func

from batchbook.core.auth.events import AUTH_USER_DELETED
from batchbook.core.auth.password import hash_password
from batchbook.core.errors import ValidationFailed
from batchbook.core.users.models import ROLE_USER, User
from batchbook.core.users.schemas import UserCreateRequest, UserUpdateRequest
from batchbook.domains.journal.models import JournalEntry
from batchbook.domains.journal.services.version_service import delete_versions_for_user
from batchbook.extensions import db
from batchbook.platform.outbox import enqueue as enqueue_outbox

logger = logging.getLogger(__name__)


def get_user(user_id) -> Optional[User]:
    if user_id is None:
        return None
    return db.session.get(User, int(user_id))


def create_user(payload: UserCreateRequest, role: str = ROLE_USER) -> User:
    user = User(
        name=payload.name,
        email=payload.email,
        role=role,
        password_hash=hash_password(payload.password),
    )
    db.session.add(user)
    db.session.commit()
    return user


def list_users() -> List[User]:
    return User.query.order_by(User.created_at.desc(), User.id.desc()).all()


def update_user(user: User, payload: UserUpdateRequest) -> User:
    if payload.email and payload.email != user.email:
        taken = User.query.filter(func.lower(User.email) == payload.email, User.id != user.id).first()
        if taken:
            raise ValidationFailed("Email is already in use.", code="email_already_exists")
        user.email = payload.email
    if payload.name is not None:
        user.name = payload.name
    if payload.password:
        user.password_hash = hash_password(payload.password)
    db.session.commit()
    return user


def delete_user_cascade(user: User) -> None:
    """Remove a user together with every entry and version they own."""
    user_id = user.id
    versions = delete_versions_for_user(user_id)
    entries = JournalEntry.query.filter_by(user_id=user_id).delete(synchronize_session=False)
    db.session.delete(user)
    enqueue_outbox(
        AUTH_USER_DELETED,
        {"user_id": user_id, "entries_deleted": entries, "versions_deleted": versions},
        user_id=user_id,
    )
    db.session.commit()
    logger.info("Deleted user %s with %s entries and %s versions", user_id, entries, versions)
