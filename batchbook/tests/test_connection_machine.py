from __future__ import annotations

from datetime import datetime

import pytest

pytestmark = pytest.mark.unit

from batchbook.realtime import connection as machine
from batchbook.realtime.connection import Connection, ConnectionState, Emit, JoinRoom, LeaveRoom, Refuse


def _authed(sid="s1", user_id=7, rooms=()):
    step = machine.on_authenticated(Connection(sid=sid), user_id)
    conn = step.connection
    for entry_id in rooms:
        conn = machine.on_join(conn, entry_id, allowed=True).connection
    return conn


def test_authenticate_moves_to_authenticated():
    step = machine.on_authenticated(Connection(sid="s1"), 7)
    assert step.connection.state is ConnectionState.AUTHENTICATED
    assert step.connection.user_id == 7
    assert step.effects == ()


def test_refusal_closes_with_reason():
    step = machine.on_refused(Connection(sid="s1"), "Token has expired.")
    assert step.connection.state is ConnectionState.CLOSED
    assert step.effects == (Refuse("Authentication error: Token has expired."),)


def test_join_allowed_and_denied():
    conn = _authed()

    step = machine.on_join(conn, 3, allowed=True)
    assert step.connection.state is ConnectionState.JOINED
    assert step.connection.rooms == frozenset({3})
    assert step.effects == (JoinRoom(3),)

    denied = machine.on_join(conn, 4, allowed=False)
    assert denied.connection == conn
    (effect,) = denied.effects
    assert isinstance(effect, Emit)
    assert effect.event == "joinError"
    assert effect.to == "s1"
    assert effect.payload["entryId"] == 4


def test_rejoin_is_idempotent():
    conn = _authed(rooms=[3])
    assert machine.on_join(conn, 3, allowed=True).effects == ()


def test_leave_last_room_returns_to_authenticated():
    conn = _authed(rooms=[3])
    step = machine.on_leave(conn, 3)
    assert step.connection.state is ConnectionState.AUTHENTICATED
    assert step.effects == (LeaveRoom(3),)
    assert machine.on_leave(step.connection, 3).effects == ()


def test_typing_requires_membership_and_skips_sender():
    assert machine.on_typing(_authed(), 3, "hi").effects == ()

    (effect,) = machine.on_typing(_authed(rooms=[3]), 3, "hi").effects
    assert effect == Emit("typing", {"userId": 7, "contentPreview": "hi"}, to="entry:3", skip_sid="s1")


def test_save_succeeded_targets_room_and_unjoined_sender():
    stamp = datetime(2026, 10, 19, 9, 30)

    joined = machine.on_save_succeeded(_authed(rooms=[3]), 3, stamp).effects
    assert [e.to for e in joined] == ["entry:3"]
    assert joined[0].payload == {
        "entryId": 3,
        "updatedAt": "2026-10-19T09:30:00",
        "message": "Entry saved successfully.",
    }

    unjoined = machine.on_save_succeeded(_authed(), 3, stamp).effects
    assert [e.to for e in unjoined] == ["entry:3", "s1"]


def test_save_failed_is_sender_scoped():
    (effect,) = machine.on_save_failed(_authed(), 3).effects
    assert effect.event == "saveError"
    assert effect.to == "s1"
    assert effect.payload == {"entryId": 3, "message": machine.SAVE_DENIED_MESSAGE}


def test_disconnect_leaves_every_room():
    step = machine.on_disconnect(_authed(rooms=[5, 2]))
    assert step.connection.state is ConnectionState.CLOSED
    assert step.connection.rooms == frozenset()
    assert step.effects == (LeaveRoom(2), LeaveRoom(5))
    assert machine.on_disconnect(step.connection).effects == ()


def test_closed_connection_ignores_events():
    closed = machine.on_disconnect(_authed(rooms=[1])).connection
    assert machine.on_join(closed, 1, allowed=True).effects == ()
    assert machine.on_typing(closed, 1, "x").effects == ()
    assert machine.on_save_succeeded(closed, 1, None).effects == ()
    assert machine.on_save_failed(closed, 1).effects == ()
