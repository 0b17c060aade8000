"""Realtime collaboration channel (Socket.IO)."""

from batchbook.realtime.gateway import RealtimeGateway, gateway
from batchbook.realtime.notifications import RoomNotifier

room_notifier = RoomNotifier(gateway)

__all__ = ["RealtimeGateway", "RoomNotifier", "gateway", "room_notifier"]
