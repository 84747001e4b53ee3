"""Notification repository - Database operations for notifications and device tokens"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import DeviceToken, Notification


class NotificationRepository:
    """Repository for notification and device token database operations"""

    @staticmethod
    def get_notifications(db: Session, account_id: int, account_type: str) -> list[Notification]:
        """Get all notifications for an identity, newest first"""
        return (
            db.query(Notification)
            .filter(Notification.account_id == account_id, Notification.account_type == account_type)
            .order_by(Notification.created_at.desc(), Notification.notification_id.desc())
            .all()
        )

    @staticmethod
    def get_notification(db: Session, notification_id: int) -> Optional[Notification]:
        return db.query(Notification).filter(Notification.notification_id == notification_id).first()

    @staticmethod
    def mark_read(db: Session, notification: Notification) -> Notification:
        notification.is_read = True
        db.commit()
        db.refresh(notification)
        return notification

    @staticmethod
    def mark_all_read(db: Session, account_id: int, account_type: str) -> int:
        updated = (
            db.query(Notification)
            .filter(
                Notification.account_id == account_id,
                Notification.account_type == account_type,
                Notification.is_read.is_(False),
            )
            .update({Notification.is_read: True}, synchronize_session=False)
        )
        db.commit()
        return updated

    # Device token methods
    @staticmethod
    def upsert_device_token(
        db: Session, account_id: int, account_type: str, token: str, shop_id: Optional[int] = None
    ) -> DeviceToken:
        """Create or refresh a token; a token moves to whichever account logged in last"""
        row = db.query(DeviceToken).filter(DeviceToken.token == token).first()
        if row:
            row.account_id = account_id
            row.account_type = account_type
            row.shop_id = shop_id
            row.is_active = True
        else:
            row = DeviceToken(
                account_id=account_id,
                account_type=account_type,
                shop_id=shop_id,
                token=token,
                is_active=True,
            )
            db.add(row)
        db.commit()
        db.refresh(row)
        return row

    @staticmethod
    def set_tokens_active(
        db: Session, account_id: int, account_type: str, active: bool, token: Optional[str] = None
    ) -> int:
        query = db.query(DeviceToken).filter(
            DeviceToken.account_id == account_id, DeviceToken.account_type == account_type
        )
        if token:
            query = query.filter(DeviceToken.token == token)
        updated = query.update({DeviceToken.is_active: active}, synchronize_session=False)
        db.commit()
        return updated

    @staticmethod
    def first_active_token(db: Session, account_id: int, account_type: str) -> Optional[str]:
        row = (
            db.query(DeviceToken.token)
            .filter(
                DeviceToken.account_id == account_id,
                DeviceToken.account_type == account_type,
                DeviceToken.is_active.is_(True),
            )
            .order_by(DeviceToken.id)
            .first()
        )
        return row.token if row else None

    @staticmethod
    def delete_device_token(db: Session, token: str) -> int:
        deleted = db.query(DeviceToken).filter(DeviceToken.token == token).delete(synchronize_session=False)
        db.commit()
        return deleted
