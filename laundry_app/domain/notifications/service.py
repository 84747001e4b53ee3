"""Notification service - Inbox, device tokens and the notify fan-out step"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Notification
from ...realtime.broadcaster import EventBroadcaster
from ...realtime.presence import Identity
from ...services.notification_service import DispatchResult, NotificationDispatcher
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


async def notify_identity(
    dispatcher: NotificationDispatcher,
    broadcaster: EventBroadcaster,
    identity: Identity,
    booking_id: Optional[int],
    title: str,
    message: str,
) -> Optional[DispatchResult]:
    """
    Persist a notification, emit it to the recipient's identity channel,
    then push it to every active device of the recipient.

    Never raises: a failure here must not fail the request that triggered it.
    """
    try:
        result = await dispatcher.dispatch(identity, booking_id, title, message)
    except Exception as e:
        logger.error(f"❌ Failed to notify {identity.account_type} {identity.account_id} ({title}): {e}")
        return None

    await broadcaster.notification_created(identity, result.saved_record)
    sent = await dispatcher.push_to_active_tokens(
        identity, title, message, booking_id=booking_id, notification_id=result.notification_id
    )
    return result._replace(push_sent=sent)


def _require_identity(account_id, account_type) -> Identity:
    identity = Identity.parse(account_id, account_type)
    if identity is None:
        raise HTTPException(status_code=400, detail="Account ID and account type are required")
    return identity


class NotificationService:
    """Service layer for the notification inbox and device tokens"""

    def __init__(self, db: Session, dispatcher: NotificationDispatcher, broadcaster: EventBroadcaster):
        self.db = db
        self.repo = NotificationRepository()
        self.dispatcher = dispatcher
        self.broadcaster = broadcaster

    def list_notifications(self, account_id, account_type) -> list[Notification]:
        identity = _require_identity(account_id, account_type)
        return self.repo.get_notifications(self.db, identity.account_id, identity.account_type)

    def mark_read(self, notification_id: int) -> Notification:
        notification = self.repo.get_notification(self.db, notification_id)
        if not notification:
            raise HTTPException(status_code=404, detail="Notification not found")
        return self.repo.mark_read(self.db, notification)

    def mark_all_read(self, account_id, account_type) -> int:
        identity = _require_identity(account_id, account_type)
        count = self.repo.mark_all_read(self.db, identity.account_id, identity.account_type)
        logger.info(f"✅ Marked {count} notification(s) read for {identity.account_type} {identity.account_id}")
        return count

    def register_device_token(self, account_id, account_type, token: Optional[str], shop_id=None):
        identity = Identity.parse(account_id, account_type)
        if identity is None or not (token or "").strip():
            raise HTTPException(status_code=400, detail="Missing required fields")
        row = self.repo.upsert_device_token(
            self.db, identity.account_id, identity.account_type, token.strip(), shop_id
        )
        logger.info(f"📱 Device token saved for {identity.account_type} {identity.account_id}")
        return row

    def deactivate_device_tokens(self, account_id, account_type, token: Optional[str] = None) -> int:
        identity = _require_identity(account_id, account_type)
        return self.repo.set_tokens_active(
            self.db, identity.account_id, identity.account_type, False, token=(token or "").strip() or None
        )

    def delete_device_token(self, token: Optional[str]) -> int:
        if not (token or "").strip():
            raise HTTPException(status_code=400, detail="Token is required")
        return self.repo.delete_device_token(self.db, token.strip())

    async def test_push(self, token: Optional[str]) -> bool:
        if not (token or "").strip():
            raise HTTPException(status_code=400, detail="No token provided")
        return await self.dispatcher.send_push_only(
            token.strip(), "Test Push", "This is a test push without saving to DB"
        )

    # Manual triggers
    async def _send(self, identity: Identity, booking_id: int, title: str, message: str) -> DispatchResult:
        result = await notify_identity(self.dispatcher, self.broadcaster, identity, booking_id, title, message)
        if result is None:
            raise HTTPException(status_code=500, detail="Failed to send notification")
        return result

    async def send_to_shop(self, shop_id, booking_id, title: Optional[str], message: Optional[str]) -> DispatchResult:
        """Notify the admin who owns the shop"""
        if not shop_id or not booking_id or not title or not message:
            raise HTTPException(status_code=400, detail="Missing required fields")
        admin_id = self.broadcaster.resolve_shop_admin(self.db, shop_id)
        if admin_id is None:
            raise HTTPException(status_code=404, detail="Shop not found")
        return await self._send(Identity(admin_id, "admin"), booking_id, title, message)

    async def send_to_customer(
        self, customer_id, booking_id, title: Optional[str], message: Optional[str]
    ) -> DispatchResult:
        if not customer_id or not booking_id or not title or not message:
            raise HTTPException(status_code=400, detail="Missing required fields")
        return await self._send(Identity(customer_id, "customer"), booking_id, title, message)

    async def send_test_notification(self, account_id, account_type, booking_id=None) -> DispatchResult:
        """Save a test notification and push it to the account's first active device"""
        identity = _require_identity(account_id, account_type)
        token = self.repo.first_active_token(self.db, identity.account_id, identity.account_type)
        if not token:
            raise HTTPException(status_code=404, detail="No device token found")
        try:
            return await self.dispatcher.dispatch(
                identity,
                booking_id,
                "Test Notification",
                "This is a test notification",
                device_token=token,
            )
        except Exception as e:
            logger.error(f"❌ Test notification for {identity.account_type} {identity.account_id} failed: {e}")
            raise HTTPException(status_code=500, detail="Failed to send notification") from e
