"""
Event Broadcaster
Turns domain events into realtime emits on the right channels.

Target channels are derived from domain relationships (a shop resolves to
its owning admin) and from the deterministic channel naming in rooms.py.
Every method is best-effort: failures are logged and swallowed so a
committed state change is never undone by a realtime problem.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ..models import Shop
from .presence import Identity
from .rooms import Connection, RoomRouter, identity_channel, role_channel

logger = logging.getLogger(__name__)

SUPERADMIN_CHANNEL = role_channel("superadmin")


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _iso(value) -> Optional[str]:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class EventBroadcaster:
    def __init__(self, router: RoomRouter):
        self.router = router

    def resolve_shop_admin(self, db: Session, shop_id: int) -> Optional[int]:
        """Owning admin of a shop, or None when the shop can't be read"""
        try:
            shop = db.query(Shop).filter(Shop.shop_id == shop_id).first()
            return shop.admin_id if shop else None
        except Exception as e:
            logger.error(f"❌ Failed to resolve admin for shop {shop_id}: {e}")
            return None

    async def _emit_safe(self, channel: str, event: str, payload: dict) -> int:
        try:
            return await self.router.emit(channel, event, payload)
        except Exception as e:
            logger.error(f"❌ Failed to emit {event} to {channel}: {e}")
            return 0

    async def _emit_booking_event(
        self,
        event: str,
        db: Session,
        shop_id: int,
        booking_id: int,
        admin_id: Optional[int] = None,
        **fields,
    ) -> None:
        if admin_id is None:
            admin_id = self.resolve_shop_admin(db, shop_id)

        payload = {"shopId": shop_id, "bookingId": booking_id, "timestamp": utc_timestamp()}
        payload.update({k: _iso(v) for k, v in fields.items() if v is not None})

        if admin_id is not None:
            await self._emit_safe(identity_channel("admin", admin_id), event, payload)
        else:
            logger.warning(f"⚠️ No admin found for shop {shop_id}; {event} sent to superadmins only")
        await self._emit_safe(SUPERADMIN_CHANNEL, event, payload)
        logger.info(f"📡 {event} emitted for booking {booking_id} (shop {shop_id})")

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------

    async def booking_created(self, db: Session, shop_id: int, booking_id: int, status: str, booking_date=None):
        await self._emit_booking_event(
            "bookingCreated", db, shop_id, booking_id, status=status, bookingDate=booking_date
        )

    async def booking_updated(
        self,
        db: Session,
        shop_id: int,
        booking_id: int,
        status: Optional[str] = None,
        booking_date=None,
    ):
        await self._emit_booking_event(
            "bookingUpdated",
            db,
            shop_id,
            booking_id,
            status=status,
            newStatus=status,
            bookingDate=booking_date,
        )

    async def booking_deleted(self, db: Session, shop_id: int, booking_id: int, admin_id: Optional[int] = None):
        await self._emit_booking_event("bookingDeleted", db, shop_id, booking_id, admin_id=admin_id)

    # ------------------------------------------------------------------
    # Deliveries
    # ------------------------------------------------------------------

    async def _emit_delivery_event(
        self, event: str, db: Session, delivery_id: int, booking_id: int, status: str, shop_id: int, customer_id: int
    ) -> None:
        payload = {
            "deliveryId": delivery_id,
            "bookingId": booking_id,
            "status": status,
            "shopId": shop_id,
            "timestamp": utc_timestamp(),
        }
        admin_id = self.resolve_shop_admin(db, shop_id)
        if admin_id is not None:
            await self._emit_safe(identity_channel("admin", admin_id), event, payload)
        await self._emit_safe(identity_channel("customer", customer_id), event, payload)
        logger.info(f"📡 {event} emitted for delivery {delivery_id} ({status})")

    async def delivery_created(self, db: Session, delivery_id, booking_id, status, shop_id, customer_id):
        await self._emit_delivery_event("deliveryCreated", db, delivery_id, booking_id, status, shop_id, customer_id)

    async def delivery_updated(self, db: Session, delivery_id, booking_id, status, shop_id, customer_id):
        await self._emit_delivery_event("deliveryUpdated", db, delivery_id, booking_id, status, shop_id, customer_id)

    # ------------------------------------------------------------------
    # Notifications, chat, presence
    # ------------------------------------------------------------------

    async def notification_created(self, identity: Identity, record: dict) -> int:
        return await self._emit_safe(
            identity_channel(identity.account_type, identity.account_id), "newNotification", record
        )

    async def message_sent(self, sender: Identity, receiver: Identity, message: dict) -> None:
        """Deliver a chat message to the sender (echo) and the receiver identity channels"""
        await self._emit_safe(identity_channel(sender.account_type, sender.account_id), "receiveMessage", message)
        if receiver != sender:
            await self._emit_safe(
                identity_channel(receiver.account_type, receiver.account_id), "receiveMessage", message
            )

    async def user_online(self, identity: Identity, exclude: Optional[Connection] = None) -> None:
        payload = {**identity.as_payload(), "timestamp": utc_timestamp()}
        try:
            await self.router.broadcast("userOnline", payload, exclude=exclude)
        except Exception as e:
            logger.error(f"❌ Failed to broadcast userOnline: {e}")

    async def user_offline(self, identity: Identity, exclude: Optional[Connection] = None) -> None:
        payload = {**identity.as_payload(), "timestamp": utc_timestamp()}
        try:
            await self.router.broadcast("userOffline", payload, exclude=exclude)
        except Exception as e:
            logger.error(f"❌ Failed to broadcast userOffline: {e}")
