"""Token revocation model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from batchbook.extensions import db


class JWTBlocklist(db.Model):
    __tablename__ = "jwt_blocklist"

    id: Mapped[int] = mapped_column(primary_key=True)
    jti: Mapped[str] = mapped_column(db.String(64), nullable=False, unique=True, index=True)
    user_id: Mapped[int | None] = mapped_column(db.Integer, index=True)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
