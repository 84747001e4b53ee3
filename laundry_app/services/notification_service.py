"""
Notification Dispatcher
Persists in-app notifications and delivers push to registered devices.

The notification row is the authoritative part: if the insert fails the
dispatch fails. Push is best-effort; a token FCM reports as permanently
invalid is deleted as routine cleanup. The dispatcher knows nothing about
realtime channels - callers emit the returned record themselves.
"""

import logging
from typing import NamedTuple, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from ..models import DeviceToken, Notification
from ..realtime.presence import Identity
from .push_service import InvalidDeviceTokenError

logger = logging.getLogger(__name__)


class DispatchResult(NamedTuple):
    notification_id: int
    saved_record: dict
    push_sent: int = 0


class NotificationDispatcher:
    def __init__(self, db: Session, push_provider):
        self.db = db
        self.push = push_provider

    async def dispatch(
        self,
        identity: Identity,
        booking_id: Optional[int],
        title: str,
        message: str,
        device_token: Optional[str] = None,
    ) -> DispatchResult:
        """
        Save an in-app notification and optionally push it to one device.

        Not idempotent: two calls create two rows and up to two pushes.

        Raises:
            Any persistence error, after rolling back the session
        """
        notification = Notification(
            account_type=identity.account_type,
            account_id=identity.account_id,
            booking_id=booking_id,
            title=title,
            message=message,
            is_read=False,
        )
        try:
            self.db.add(notification)
            self.db.commit()
            self.db.refresh(notification)
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"❌ Failed to save notification for {identity.account_type} {identity.account_id}: {e}"
            )
            raise

        record = notification.to_dict()
        logger.info(
            f"🔔 Notification {notification.notification_id} saved for "
            f"{identity.account_type} {identity.account_id}: {title}"
        )

        push_sent = 0
        if device_token:
            sent = await self.send_push(
                device_token,
                title,
                message,
                data=self._push_data(identity, booking_id, notification.notification_id),
            )
            push_sent = int(sent)

        return DispatchResult(notification.notification_id, record, push_sent)

    async def push_to_active_tokens(
        self,
        identity: Identity,
        title: str,
        message: str,
        booking_id: Optional[int] = None,
        notification_id: Optional[int] = None,
    ) -> int:
        """Push to every active device of an identity; returns successful sends"""
        try:
            tokens = self.active_tokens(identity)
        except Exception as e:
            logger.error(f"❌ Failed to load device tokens for {identity.account_type} {identity.account_id}: {e}")
            return 0

        if not tokens:
            logger.debug(f"No active device tokens for {identity.account_type} {identity.account_id}")
            return 0

        data = self._push_data(identity, booking_id, notification_id)
        sent = 0
        for token in tokens:
            if await self.send_push(token, title, message, data=data):
                sent += 1
        logger.info(f"📲 Push sent to {sent}/{len(tokens)} device(s) of {identity.account_type} {identity.account_id}")
        return sent

    async def send_push(self, token: str, title: str, message: str, data: Optional[dict] = None) -> bool:
        """One push attempt; never raises"""
        try:
            return bool(await self.push.send(token, title, message, data))
        except InvalidDeviceTokenError as e:
            logger.warning(f"⚠️ Device token rejected by FCM ({e}); removing {token[:20]}...")
            self.purge_token(token)
        except Exception as e:
            logger.error(f"❌ Error sending push to {token[:20]}...: {e}")
        return False

    async def send_push_only(self, token: str, title: str, message: str) -> bool:
        """Push without saving a notification row"""
        return await self.send_push(token, title, message, data={})

    def active_tokens(self, identity: Identity) -> list[str]:
        rows = (
            self.db.query(DeviceToken.token)
            .filter(
                DeviceToken.account_id == identity.account_id,
                DeviceToken.account_type == identity.account_type,
                DeviceToken.is_active.is_(True),
            )
            .all()
        )
        return [row.token for row in rows]

    def purge_token(self, token: str) -> None:
        try:
            deleted = self.db.query(DeviceToken).filter(DeviceToken.token == token).delete(
                synchronize_session=False
            )
            self.db.commit()
            if deleted:
                logger.info(f"🗑️ Removed invalid token from database: {token[:20]}...")
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to delete invalid token: {e}")

    @staticmethod
    def _push_data(identity: Identity, booking_id, notification_id) -> dict:
        return {
            "bookingId": booking_id if booking_id is not None else "",
            "accountType": identity.account_type,
            "notificationId": notification_id if notification_id is not None else "",
        }


def get_push_provider(request: Request):
    """Dependency injection for the process-wide push provider"""
    return request.app.state.push_provider
