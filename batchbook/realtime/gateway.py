"""Realtime collaborative auto-save gateway.

Socket.IO events:
- connect (auth={"token": "<access jwt>"}): refused with a reason when the token is bad
- joinEntry {entryId}: owner-only; others get joinError and stay connected
- leaveEntry {entryId}
- typing {entryId, contentPreview}: relayed to the room except the sender
- save {entryId, title, content}: conditional overwrite + auto version, then synced
- disconnect: membership dropped

Events from one connection are handled one at a time, in arrival order.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, Optional

from flask import request
from flask_socketio import ConnectionRefusedError, join_room, leave_room
from pydantic import ValidationError

from batchbook.core.auth.tokens import authenticate_token
from batchbook.core.errors import BatchbookError, Unauthenticated, ValidationFailed
from batchbook.domains.journal.models import JournalEntry
from batchbook.domains.journal.services import entry_service, version_service
from batchbook.extensions import db
from batchbook.extensions import socketio as default_socketio
from batchbook.realtime import connection as machine
from batchbook.realtime.connection import (
    EVENT_SYNCED,
    JOIN_SERVER_ERROR_MESSAGE,
    SAVE_SERVER_ERROR_MESSAGE,
    Connection,
    Effect,
    Emit,
    JoinRoom,
    LeaveRoom,
    Refuse,
)
from batchbook.realtime.rooms import RoomRegistry, room_name
from batchbook.realtime.schemas import JoinEntryEvent, SaveEvent, TypingEvent

logger = logging.getLogger(__name__)

NAMESPACE = "/"


class RealtimeGateway:
    def __init__(self, socketio=None) -> None:
        self.socketio = socketio or default_socketio
        self.rooms = RoomRegistry()
        self._connections: Dict[str, Connection] = {}
        self._guards: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    # -- wiring -----------------------------------------------------------

    def register(self) -> None:
        """Bind handlers to the current Socket.IO server.

        Must run after ``socketio.init_app``; every init creates a fresh server.
        """
        sio = self.socketio
        sio.on_event("connect", self.handle_connect)
        sio.on_event("disconnect", self.handle_disconnect)
        sio.on_event("joinEntry", self.handle_join)
        sio.on_event("leaveEntry", self.handle_leave)
        sio.on_event("typing", self.handle_typing)
        sio.on_event("save", self.handle_save)

    def reset(self) -> None:
        with self._lock:
            self._connections.clear()
            self._guards.clear()
        self.rooms.clear()

    def connection(self, sid: str) -> Optional[Connection]:
        with self._lock:
            return self._connections.get(sid)

    # -- socket handlers --------------------------------------------------

    def handle_connect(self, auth=None):
        sid = request.sid
        conn = Connection(sid=sid)
        try:
            user_id = authenticate_token(_extract_token(auth))
        except Unauthenticated as exc:
            logger.info("Refused socket %s: %s", sid, exc.message)
            # Raises ConnectionRefusedError through the Refuse effect.
            self._apply(machine.on_refused(conn, exc.message))
        with self._serialized(sid):
            self._apply(machine.on_authenticated(conn, user_id))
        logger.info("Socket %s connected for user %s", sid, user_id)
        return True

    def handle_disconnect(self, reason=None):
        self.disconnect(request.sid, reason)

    def handle_join(self, data=None):
        self.join(request.sid, data)

    def handle_leave(self, data=None):
        self.leave(request.sid, data)

    def handle_typing(self, data=None):
        self.typing(request.sid, data)

    def handle_save(self, data=None):
        self.save(request.sid, data)

    # -- per-connection operations ----------------------------------------

    def disconnect(self, sid: str, reason: Any = None) -> None:
        with self._serialized(sid):
            conn = self.connection(sid)
            if conn is None:
                return
            self._apply(machine.on_disconnect(conn))
            with self._lock:
                self._connections.pop(sid, None)
            self.rooms.discard(sid)
        with self._lock:
            self._guards.pop(sid, None)
        logger.info("Socket %s disconnected (%s)", sid, reason)

    def join(self, sid: str, data: Any = None) -> None:
        with self._serialized(sid):
            conn = self._active(sid)
            if conn is None:
                return
            try:
                event = JoinEntryEvent.model_validate(data or {})
            except ValidationError:
                self._apply(machine.on_join(conn, _raw_entry_id(data), allowed=False))
                return
            try:
                entry = entry_service.get_entry(conn.user_id, event.entry_id)
            except Exception:
                logger.exception("Join of entry %s by socket %s failed", event.entry_id, sid)
                db.session.rollback()
                self._apply(
                    machine.on_join(conn, event.entry_id, allowed=False, message=JOIN_SERVER_ERROR_MESSAGE)
                )
                return
            self._apply(machine.on_join(conn, event.entry_id, allowed=entry is not None))
            if entry is not None:
                logger.debug("Socket %s joined %s", sid, room_name(event.entry_id))

    def leave(self, sid: str, data: Any = None) -> None:
        with self._serialized(sid):
            conn = self._active(sid)
            if conn is None:
                return
            try:
                event = JoinEntryEvent.model_validate(data or {})
            except ValidationError:
                return
            self._apply(machine.on_leave(conn, event.entry_id))

    def typing(self, sid: str, data: Any = None) -> None:
        with self._serialized(sid):
            conn = self._active(sid)
            if conn is None:
                return
            try:
                event = TypingEvent.model_validate(data or {})
            except ValidationError:
                return
            self._apply(machine.on_typing(conn, event.entry_id, event.content_preview))

    def save(self, sid: str, data: Any = None) -> None:
        with self._serialized(sid):
            conn = self._active(sid)
            if conn is None:
                return
            try:
                event = SaveEvent.model_validate(data or {})
            except ValidationError:
                self._apply(machine.on_save_failed(conn, _raw_entry_id(data), "Invalid save payload."))
                return

            try:
                entry = version_service.autosave(
                    conn.user_id, event.entry_id, title=event.title, content=event.content
                )
            except ValidationFailed as exc:
                self._apply(machine.on_save_failed(conn, event.entry_id, exc.message))
                return
            except BatchbookError:
                logger.exception("Realtime save of entry %s failed", event.entry_id)
                self._apply(machine.on_save_failed(conn, event.entry_id, SAVE_SERVER_ERROR_MESSAGE))
                return
            except Exception:
                logger.exception("Unexpected error saving entry %s", event.entry_id)
                db.session.rollback()
                self._apply(machine.on_save_failed(conn, event.entry_id, SAVE_SERVER_ERROR_MESSAGE))
                return

            if entry is None:
                self._apply(machine.on_save_failed(conn, event.entry_id))
                return
            self._apply(machine.on_save_succeeded(conn, entry.id, entry.updated_at))

    # -- outbound ---------------------------------------------------------

    def broadcast_synced(self, entry: JournalEntry, message: str) -> None:
        """Notify everyone viewing an entry that it changed outside a save event."""
        self.broadcast(
            EVENT_SYNCED,
            entry.id,
            {
                "entryId": entry.id,
                "updatedAt": entry.updated_at.isoformat() if entry.updated_at else None,
                "message": message,
            },
        )

    def broadcast(self, event: str, entry_id: int, payload: Dict[str, Any]) -> None:
        self.socketio.emit(event, payload, to=room_name(entry_id), namespace=NAMESPACE)

    # -- internals --------------------------------------------------------

    @contextmanager
    def _serialized(self, sid: str) -> Iterator[None]:
        with self._lock:
            guard = self._guards.setdefault(sid, threading.Lock())
        with guard:
            yield

    def _active(self, sid: str) -> Optional[Connection]:
        conn = self.connection(sid)
        if conn is None or not conn.is_active:
            return None
        return conn

    def _apply(self, step: machine.Step) -> None:
        conn = step.connection
        with self._lock:
            if conn.state is machine.ConnectionState.CLOSED:
                self._connections.pop(conn.sid, None)
            else:
                self._connections[conn.sid] = conn
        self._run_effects(conn, step.effects)

    def _run_effects(self, conn: Connection, effects: Iterable[Effect]) -> None:
        for effect in effects:
            if isinstance(effect, Emit):
                self.socketio.emit(
                    effect.event, effect.payload, to=effect.to, skip_sid=effect.skip_sid, namespace=NAMESPACE
                )
            elif isinstance(effect, JoinRoom):
                join_room(room_name(effect.entry_id), sid=conn.sid, namespace=NAMESPACE)
                self.rooms.join(effect.entry_id, conn.sid)
            elif isinstance(effect, LeaveRoom):
                self.rooms.leave(effect.entry_id, conn.sid)
                if conn.state is not machine.ConnectionState.CLOSED:
                    leave_room(room_name(effect.entry_id), sid=conn.sid, namespace=NAMESPACE)
            elif isinstance(effect, Refuse):
                raise ConnectionRefusedError(effect.reason)


def _extract_token(auth: Any) -> Optional[str]:
    if isinstance(auth, dict) and auth.get("token"):
        return auth.get("token")
    return request.args.get("token") or request.headers.get("Authorization")


def _raw_entry_id(data: Any) -> Any:
    if isinstance(data, dict):
        return data.get("entryId")
    return None


gateway = RealtimeGateway()
