"""Push journal changes made outside the socket channel to open entry rooms.

Consumes outbox events from the in-process bus:
- journal.entry.updated (HTTP edits) -> synced {entryId, updatedAt, message}
- journal.entry.deleted -> entryDeleted {entryId, message}

Realtime saves already sync their room when they land, so their events are skipped.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

from batchbook.core.events.event_bus import EventBus, event_bus
from batchbook.core.events.event_models import DomainEvent
from batchbook.domains.journal.events import JOURNAL_ENTRY_DELETED, JOURNAL_ENTRY_UPDATED
from batchbook.realtime.connection import EVENT_SYNCED

logger = logging.getLogger(__name__)

EVENT_ENTRY_DELETED = "entryDeleted"
ENTRY_UPDATED_MESSAGE = "Entry updated elsewhere."
ENTRY_DELETED_MESSAGE = "Entry was deleted."


class RoomNotifier:
    def __init__(self, gateway, bus: Optional[EventBus] = None) -> None:
        self.gateway = gateway
        self.bus = bus or event_bus

    def subscribe(self) -> None:
        """Attach to the bus; calling it again does not double-deliver."""
        for event_type, handler in self._handlers():
            self.bus.unsubscribe(event_type, handler)
            self.bus.subscribe(event_type, handler)

    def unsubscribe(self) -> None:
        for event_type, handler in self._handlers():
            self.bus.unsubscribe(event_type, handler)

    def on_entry_updated(self, event: DomainEvent) -> None:
        payload = event.payload or {}
        if payload.get("via") == "realtime":
            return
        entry_id = payload.get("entry_id")
        if entry_id is None:
            return
        self.gateway.broadcast(
            EVENT_SYNCED,
            entry_id,
            {"entryId": entry_id, "updatedAt": payload.get("updated_at"), "message": ENTRY_UPDATED_MESSAGE},
        )
        logger.debug("Pushed update of entry %s to its room", entry_id)

    def on_entry_deleted(self, event: DomainEvent) -> None:
        entry_id = (event.payload or {}).get("entry_id")
        if entry_id is None:
            return
        self.gateway.broadcast(
            EVENT_ENTRY_DELETED, entry_id, {"entryId": entry_id, "message": ENTRY_DELETED_MESSAGE}
        )

    def _handlers(self) -> List[Tuple[str, Callable[[DomainEvent], None]]]:
        return [
            (JOURNAL_ENTRY_UPDATED, self.on_entry_updated),
            (JOURNAL_ENTRY_DELETED, self.on_entry_deleted),
        ]
