"""
Room Router
Maps live connections to named broadcast channels and emits events to them.

Channel kinds:
- identity channel: one per (account_type, account_id), "user_{type}_{id}"
- role channel: one per account_type, "role_{type}"
- conversation channel: one per shop/customer/admin chat thread

Delivery is best-effort: emitting to an empty channel is a silent no-op and
nothing is queued for connections that join later.
"""

import logging
import uuid
from typing import Any, Optional, Protocol

from .presence import Identity

logger = logging.getLogger(__name__)


def identity_channel(account_type: str, account_id) -> str:
    return f"user_{account_type}_{account_id}"


def role_channel(account_type: str) -> str:
    return f"role_{account_type}"


def conversation_channel(shop_id, customer_id, admin_id) -> str:
    return f"conversation_{shop_id}_{customer_id}_{admin_id}"


class JsonTransport(Protocol):
    async def send_json(self, data: Any) -> None: ...


class Connection:
    """One live transport session and the channels it has joined"""

    def __init__(self, transport: JsonTransport, connection_id: Optional[str] = None):
        self.id = connection_id or uuid.uuid4().hex
        self.transport = transport
        self.identity: Optional[Identity] = None
        self.channels: set[str] = set()

    async def send(self, event: str, data: Any) -> None:
        await self.transport.send_json({"event": event, "data": data})

    def __repr__(self) -> str:
        return f"<Connection {self.id} identity={self.identity}>"


class RoomRouter:
    """Owns the channel membership map for every live connection.

    Membership mutations never await, so they are atomic on the event loop.
    """

    def __init__(self):
        self._channels: dict[str, set[Connection]] = {}
        self._connections: dict[str, Connection] = {}

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def connect(self, connection: Connection) -> None:
        self._connections[connection.id] = connection

    def join(self, connection: Connection, channel: str) -> None:
        """Idempotent: joining twice is the same as joining once"""
        self._connections.setdefault(connection.id, connection)
        self._channels.setdefault(channel, set()).add(connection)
        connection.channels.add(channel)

    def join_identity(self, connection: Connection, identity: Identity) -> Optional[Identity]:
        """Bind an identity and subscribe to both its identity and role channels.

        Returns the identity previously bound to the connection, if it was a
        different one (its channels are left).
        """
        previous = connection.identity
        if previous is not None and previous != identity:
            self.leave(connection, identity_channel(previous.account_type, previous.account_id))
            self.leave(connection, role_channel(previous.account_type))
        else:
            previous = None

        connection.identity = identity
        self.join(connection, identity_channel(identity.account_type, identity.account_id))
        self.join(connection, role_channel(identity.account_type))
        return previous

    def leave(self, connection: Connection, channel: str) -> None:
        """No-op when the connection never joined the channel"""
        members = self._channels.get(channel)
        if members is not None:
            members.discard(connection)
            if not members:
                del self._channels[channel]
        connection.channels.discard(channel)

    def leave_all(self, connection: Connection) -> None:
        """Drop every membership of a connection; called once on disconnect"""
        for channel in list(connection.channels):
            self.leave(connection, channel)
        self._connections.pop(connection.id, None)

    def members(self, channel: str) -> set[Connection]:
        return set(self._channels.get(channel, ()))

    def channels(self) -> list[str]:
        return list(self._channels)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def emit(self, channel: str, event: str, payload: Any) -> int:
        """Send an event to every current member; returns how many got it"""
        members = list(self._channels.get(channel, ()))
        if not members:
            logger.debug(f"📭 No listeners on {channel} for {event}")
            return 0
        return await self._deliver(members, event, payload, channel)

    async def broadcast(self, event: str, payload: Any, exclude: Optional[Connection] = None) -> int:
        """Send an event to every live connection except `exclude`"""
        targets = [c for c in self._connections.values() if c is not exclude]
        return await self._deliver(targets, event, payload, "*")

    async def _deliver(self, targets: list[Connection], event: str, payload: Any, label: str) -> int:
        delivered = 0
        for connection in targets:
            try:
                await connection.send(event, payload)
                delivered += 1
            except Exception as e:
                logger.warning(f"⚠️ Failed to deliver {event} to {connection.id} on {label}: {e}")
        if delivered:
            logger.debug(f"📡 {event} -> {label} ({delivered} connection(s))")
        return delivered
