"""Authentication service layer."""

from __future__ import annotations

import logging
from typing import Optional

from flask_jwt_extended import create_access_token, create_refresh_token
from sqlalchemy import func

from batchbook.core.auth.events import AUTH_USER_REGISTERED
from batchbook.core.auth.models import JWTBlocklist
from batchbook.core.auth.password import hash_password, verify_password
from batchbook.core.auth.schemas import RegisterRequest
from batchbook.core.users.models import ROLE_USER, User
from batchbook.extensions import db
from batchbook.platform.outbox import enqueue as enqueue_outbox

logger = logging.getLogger(__name__)


def authenticate_user(email: str, password: str) -> Optional[User]:
    """Return the user if credentials are valid."""
    user = User.query.filter(func.lower(User.email) == email.strip().lower()).first()
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def issue_access_token(user: User) -> str:
    return create_access_token(identity=str(user.id), additional_claims={"roles": user.role_codes})


def issue_tokens(user: User) -> dict[str, str]:
    """Create access and refresh tokens for a user."""
    return {
        "access_token": issue_access_token(user),
        "refresh_token": create_refresh_token(identity=str(user.id)),
    }


def revoke_token(jti: str, user_id: Optional[int] = None) -> None:
    if not jti or is_token_revoked(jti):
        return
    db.session.add(JWTBlocklist(jti=jti, user_id=user_id))
    db.session.commit()


def is_token_revoked(jti: Optional[str]) -> bool:
    if not jti:
        return False
    return db.session.query(JWTBlocklist.id).filter_by(jti=jti).first() is not None


def register_user(payload: RegisterRequest, auto_issue_tokens: bool = True) -> dict:
    """Create a user with the default role and emit a registration event."""
    normalized_email = payload.email.strip().lower()
    existing = User.query.filter(func.lower(User.email) == normalized_email).first()
    if existing:
        raise ValueError("email_already_exists")

    user = User(
        name=payload.name,
        email=normalized_email,
        role=ROLE_USER,
        password_hash=hash_password(payload.password),
    )
    db.session.add(user)
    db.session.flush()  # ensure user.id for events

    enqueue_outbox(
        AUTH_USER_REGISTERED,
        {"user_id": user.id, "email": user.email, "name": user.name},
        user_id=user.id,
    )
    db.session.commit()
    logger.info("Registered user %s", user.id)

    result: dict = {"user": user}
    if auto_issue_tokens:
        result.update(issue_tokens(user))
    return result
