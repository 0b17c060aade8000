"""Process-local room membership registry.

Holds connection ids (socket sids) only; connection lifetime is owned by the
transport. Not persisted and not shared across processes.
"""

from __future__ import annotations

import threading
from typing import Dict, FrozenSet, Set

ROOM_PREFIX = "entry:"


def room_name(entry_id: int) -> str:
    return f"{ROOM_PREFIX}{entry_id}"


class RoomRegistry:
    def __init__(self) -> None:
        self._members: Dict[int, Set[str]] = {}
        self._lock = threading.Lock()

    def join(self, entry_id: int, sid: str) -> None:
        with self._lock:
            self._members.setdefault(entry_id, set()).add(sid)

    def leave(self, entry_id: int, sid: str) -> None:
        with self._lock:
            members = self._members.get(entry_id)
            if not members:
                return
            members.discard(sid)
            if not members:
                del self._members[entry_id]

    def discard(self, sid: str) -> None:
        """Remove a connection from every room."""
        with self._lock:
            for entry_id in [e for e, m in self._members.items() if sid in m]:
                members = self._members[entry_id]
                members.discard(sid)
                if not members:
                    del self._members[entry_id]

    def members(self, entry_id: int) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._members.get(entry_id, ()))

    def rooms_for(self, sid: str) -> FrozenSet[int]:
        with self._lock:
            return frozenset(e for e, m in self._members.items() if sid in m)

    def is_member(self, entry_id: int, sid: str) -> bool:
        with self._lock:
            return sid in self._members.get(entry_id, ())

    def clear(self) -> None:
        with self._lock:
            self._members.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._members)
