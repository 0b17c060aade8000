"""Schemas for auth flows."""

from __future__ import annotations

from batchbook.core.users.schemas import UserCreateRequest


class RegisterRequest(UserCreateRequest):
    """Registration payload: name, email, password."""
