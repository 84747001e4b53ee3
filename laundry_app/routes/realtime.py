"""
Realtime gateway - /ws WebSocket endpoint

Frames are JSON objects {"event": <name>, "data": <payload>} in both directions.

Client → server events (server acks join with "joined"):
    join               {accountId, accountType}
    joinConversation   {conversationId} or {shopId, customerId, adminId}
    leaveConversation  {conversationId} or {shopId, customerId, adminId}
    sendMessage        {senderType, senderId, receiverType, receiverId, messageBody, shopId?}

Conversation ids always map to a "conversation_" channel; identity and role
channels are only reachable through join.
"""

import logging
import re
import time
from typing import Any, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..domain.notifications.repository import NotificationRepository
from ..realtime import Connection, Identity, RealtimeHub, conversation_channel
from ..realtime.broadcaster import utc_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])

CONVERSATION_PREFIX = "conversation_"
_CONVERSATION_CHANNEL = re.compile(r"^conversation_\d+_\d+_\d+$")
_RESERVED_PREFIXES = ("user_", "role_")


def _set_tokens_active(session_factory, identity: Identity, active: bool) -> None:
    """Flip the durable device-token flag; failures never touch the presence counter"""
    try:
        db = session_factory()
        try:
            updated = NotificationRepository.set_tokens_active(
                db, identity.account_id, identity.account_type, active
            )
        finally:
            db.close()
        state = "active" if active else "inactive"
        logger.info(f"📱 {updated} device token(s) of {identity.account_type} {identity.account_id} marked {state}")
    except Exception as e:
        logger.error(f"❌ Failed to update device tokens for {identity.account_type} {identity.account_id}: {e}")


async def _release(hub: RealtimeHub, session_factory, connection: Connection, identity: Identity) -> None:
    if hub.presence.release(identity):
        logger.info(f"🔴 {identity.account_type} {identity.account_id} is offline")
        _set_tokens_active(session_factory, identity, False)
        await hub.broadcaster.user_offline(identity, exclude=connection)


async def handle_join(hub: RealtimeHub, session_factory, connection: Connection, data: Any) -> None:
    data = data if isinstance(data, dict) else {}
    identity = Identity.parse(
        data.get("accountId", data.get("userId")), data.get("accountType", data.get("userType"))
    )
    if identity is None:
        logger.warning(f"⚠️ Ignoring join with invalid identity from {connection.id}: {data}")
        return

    if connection.identity == identity:
        logger.debug(f"{connection.id} already joined as {identity.account_type} {identity.account_id}")
    else:
        previous = hub.rooms.join_identity(connection, identity)
        if previous is not None:
            await _release(hub, session_factory, connection, previous)

        logger.info(f"👤 {identity.account_type} {identity.account_id} joined on {connection.id}")
        if hub.presence.acquire(identity):
            logger.info(f"🟢 {identity.account_type} {identity.account_id} is online")
            _set_tokens_active(session_factory, identity, True)
            await hub.broadcaster.user_online(identity, exclude=connection)

    # Ack so the client knows its channels are live
    await connection.send("joined", {**identity.as_payload(), "channels": sorted(connection.channels)})


def _conversation_channel(data: Any) -> Optional[str]:
    """Channel for a joinConversation/leaveConversation payload; None when unusable"""
    if isinstance(data, dict) and data.get("conversationId") is None:
        try:
            return conversation_channel(int(data["shopId"]), int(data["customerId"]), int(data["adminId"]))
        except (KeyError, TypeError, ValueError):
            return None
    if isinstance(data, dict):
        data = data.get("conversationId")
    if isinstance(data, bool) or not isinstance(data, (str, int)):
        return None

    raw = str(data).strip()
    if not raw or raw.lower().startswith(_RESERVED_PREFIXES):
        return None
    if _CONVERSATION_CHANNEL.match(raw):
        return raw
    return f"{CONVERSATION_PREFIX}{raw}"


async def handle_send_message(hub: RealtimeHub, connection: Connection, data: Any) -> None:
    if not isinstance(data, dict):
        logger.warning(f"⚠️ Ignoring malformed sendMessage from {connection.id}")
        return

    sender = Identity.parse(data.get("senderId"), data.get("senderType"))
    receiver = Identity.parse(data.get("receiverId"), data.get("receiverType"))
    if sender is None or receiver is None:
        logger.warning(f"⚠️ Ignoring sendMessage without valid sender/receiver from {connection.id}")
        return
    if connection.identity != sender:
        logger.warning(
            f"⚠️ Ignoring sendMessage from {connection.id}: sender {sender.account_type} {sender.account_id} "
            f"is not the joined identity {connection.identity}"
        )
        return

    message = {**data, "id": int(time.time() * 1000), "createdAt": utc_timestamp()}
    logger.info(
        f"📩 Message {sender.account_type} {sender.account_id} → "
        f"{receiver.account_type} {receiver.account_id}"
    )
    await hub.broadcaster.message_sent(sender, receiver, message)


async def handle_frame(hub: RealtimeHub, session_factory, connection: Connection, frame: Any) -> None:
    """Route one client frame; anything unrecognised is logged and dropped"""
    if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
        logger.warning(f"⚠️ Malformed frame from {connection.id}: {frame!r}")
        return

    event, data = frame["event"], frame.get("data")
    if event == "join":
        await handle_join(hub, session_factory, connection, data)
    elif event in ("joinConversation", "leaveConversation"):
        channel = _conversation_channel(data)
        if channel is None:
            logger.warning(f"⚠️ {event} with unusable conversation from {connection.id}: {data!r}")
        elif event == "joinConversation":
            hub.rooms.join(connection, channel)
            logger.info(f"💬 {connection.id} joined {channel}")
        else:
            hub.rooms.leave(connection, channel)
            logger.info(f"👋 {connection.id} left {channel}")
    elif event == "sendMessage":
        await handle_send_message(hub, connection, data)
    else:
        logger.warning(f"⚠️ Unknown event '{event}' from {connection.id}")


async def handle_disconnect(hub: RealtimeHub, session_factory, connection: Connection) -> None:
    """Runs exactly once per connection: drop memberships, then release presence"""
    hub.rooms.leave_all(connection)
    if connection.identity is not None:
        await _release(hub, session_factory, connection, connection.identity)


@router.websocket("/ws")
async def realtime_gateway(websocket: WebSocket):
    hub: RealtimeHub = websocket.app.state.realtime
    session_factory = websocket.app.state.session_factory

    await websocket.accept()
    connection = Connection(websocket)
    hub.rooms.connect(connection)
    logger.info(f"🟢 Connection opened: {connection.id}")

    try:
        while True:
            try:
                frame = await websocket.receive_json()
            except (ValueError, KeyError, TypeError):
                logger.warning(f"⚠️ Non-JSON frame from {connection.id}; ignored")
                continue
            await handle_frame(hub, session_factory, connection, frame)
    except WebSocketDisconnect as e:
        logger.info(f"🔴 Connection closed: {connection.id} (code {e.code})")
    finally:
        await handle_disconnect(hub, session_factory, connection)
