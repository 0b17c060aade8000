"""Auth event catalog."""

from __future__ import annotations

AUTH_USER_REGISTERED = "auth.user.registered"
AUTH_USER_DELETED = "auth.user.deleted"

EVENT_CATALOG = {
    AUTH_USER_REGISTERED: {
        "version": "v1",
        "payload": {"user_id": "int", "email": "str", "name": "str"},
    },
    AUTH_USER_DELETED: {
        "version": "v1",
        "payload": {"user_id": "int", "entries_deleted": "int", "versions_deleted": "int"},
    },
}

__all__ = ["EVENT_CATALOG", "AUTH_USER_REGISTERED", "AUTH_USER_DELETED"]
