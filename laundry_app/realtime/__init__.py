"""
Realtime layer: presence, room routing and event broadcast.

A single RealtimeHub is built at process start (see main.py), stored on
app.state and injected into handlers; nothing here is a module global.
"""

from fastapi import Request

from .broadcaster import EventBroadcaster
from .presence import Identity, PresenceRegistry
from .rooms import Connection, RoomRouter, conversation_channel, identity_channel, role_channel


class RealtimeHub:
    def __init__(self):
        self.rooms = RoomRouter()
        self.presence = PresenceRegistry()
        self.broadcaster = EventBroadcaster(self.rooms)


def get_realtime_hub(request: Request) -> RealtimeHub:
    """Dependency injection for the process-wide RealtimeHub"""
    return request.app.state.realtime


def get_broadcaster(request: Request) -> EventBroadcaster:
    return request.app.state.realtime.broadcaster


__all__ = [
    "Connection",
    "EventBroadcaster",
    "Identity",
    "PresenceRegistry",
    "RealtimeHub",
    "RoomRouter",
    "conversation_channel",
    "get_broadcaster",
    "get_realtime_hub",
    "identity_channel",
    "role_channel",
]
