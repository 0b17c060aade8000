"""Per-connection state machine for the realtime channel.

States: connecting -> authenticated -> joined -> closed. Every handler is a
pure function from (connection, event outcome) to (new connection, effects).
The gateway performs I/O (token checks, storage) before calling a handler and
applies the returned effects to the transport afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple, Union

from batchbook.realtime.rooms import room_name

SAVE_OK_MESSAGE = "Entry saved successfully."
SAVE_DENIED_MESSAGE = "Save failed: Entry not found or permission denied."
SAVE_SERVER_ERROR_MESSAGE = "An error occurred on the server while saving."
JOIN_DENIED_MESSAGE = "Join failed: Entry not found or permission denied."
JOIN_SERVER_ERROR_MESSAGE = "An error occurred on the server while joining."

EVENT_TYPING = "typing"
EVENT_SYNCED = "synced"
EVENT_SAVE_ERROR = "saveError"
EVENT_JOIN_ERROR = "joinError"


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    AUTHENTICATED = "authenticated"
    JOINED = "joined"
    CLOSED = "closed"


@dataclass(frozen=True)
class Connection:
    sid: str
    state: ConnectionState = ConnectionState.CONNECTING
    user_id: Optional[int] = None
    rooms: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def is_active(self) -> bool:
        return self.state in (ConnectionState.AUTHENTICATED, ConnectionState.JOINED)


@dataclass(frozen=True)
class Emit:
    event: str
    payload: Dict[str, Any]
    to: str
    skip_sid: Optional[str] = None


@dataclass(frozen=True)
class JoinRoom:
    entry_id: int


@dataclass(frozen=True)
class LeaveRoom:
    entry_id: int


@dataclass(frozen=True)
class Refuse:
    reason: str


Effect = Union[Emit, JoinRoom, LeaveRoom, Refuse]


@dataclass(frozen=True)
class Step:
    connection: Connection
    effects: Tuple[Effect, ...] = ()


def _with_rooms(conn: Connection, rooms: FrozenSet[int]) -> Connection:
    state = ConnectionState.JOINED if rooms else ConnectionState.AUTHENTICATED
    return replace(conn, rooms=rooms, state=state)


def on_authenticated(conn: Connection, user_id: int) -> Step:
    if conn.state is not ConnectionState.CONNECTING:
        return Step(conn)
    return Step(replace(conn, state=ConnectionState.AUTHENTICATED, user_id=user_id))


def on_refused(conn: Connection, reason: str) -> Step:
    return Step(replace(conn, state=ConnectionState.CLOSED), (Refuse(f"Authentication error: {reason}"),))


def on_join(conn: Connection, entry_id: Any, allowed: bool, message: str = JOIN_DENIED_MESSAGE) -> Step:
    if not conn.is_active:
        return Step(conn)
    if not allowed:
        return Step(conn, (Emit(EVENT_JOIN_ERROR, {"entryId": entry_id, "message": message}, to=conn.sid),))
    if entry_id in conn.rooms:
        return Step(conn)
    return Step(_with_rooms(conn, conn.rooms | {entry_id}), (JoinRoom(entry_id),))


def on_leave(conn: Connection, entry_id: int) -> Step:
    if not conn.is_active or entry_id not in conn.rooms:
        return Step(conn)
    return Step(_with_rooms(conn, conn.rooms - {entry_id}), (LeaveRoom(entry_id),))


def on_typing(conn: Connection, entry_id: int, content_preview: str) -> Step:
    """Relay to the room minus the sender; ignored unless the sender joined it."""
    if not conn.is_active or entry_id not in conn.rooms:
        return Step(conn)
    payload = {"userId": conn.user_id, "contentPreview": content_preview}
    return Step(conn, (Emit(EVENT_TYPING, payload, to=room_name(entry_id), skip_sid=conn.sid),))


def on_save_succeeded(conn: Connection, entry_id: int, updated_at: Optional[datetime]) -> Step:
    if not conn.is_active:
        return Step(conn)
    payload = {
        "entryId": entry_id,
        "updatedAt": updated_at.isoformat() if updated_at else None,
        "message": SAVE_OK_MESSAGE,
    }
    effects: Tuple[Effect, ...] = (Emit(EVENT_SYNCED, payload, to=room_name(entry_id)),)
    if entry_id not in conn.rooms:
        # Sender never joined: still tell it the save landed.
        effects += (Emit(EVENT_SYNCED, payload, to=conn.sid),)
    return Step(conn, effects)


def on_save_failed(conn: Connection, entry_id: Any, message: str = SAVE_DENIED_MESSAGE) -> Step:
    if not conn.is_active:
        return Step(conn)
    return Step(conn, (Emit(EVENT_SAVE_ERROR, {"entryId": entry_id, "message": message}, to=conn.sid),))


def on_disconnect(conn: Connection) -> Step:
    if conn.state is ConnectionState.CLOSED:
        return Step(conn)
    effects = tuple(LeaveRoom(entry_id) for entry_id in sorted(conn.rooms))
    return Step(replace(conn, state=ConnectionState.CLOSED, rooms=frozenset()), effects)
