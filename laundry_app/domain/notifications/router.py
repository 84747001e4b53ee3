"""Notification router - inbox, device token and notification trigger endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...realtime import get_broadcaster
from ...services.notification_service import NotificationDispatcher, get_push_provider
from .schemas import (
    CustomerNotificationRequest,
    DeviceTokenDeactivate,
    DeviceTokenDelete,
    DeviceTokenUpdate,
    MarkAllReadRequest,
    NotificationResponse,
    ShopNotificationRequest,
    TestNotificationRequest,
    TestPushRequest,
)
from .service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def get_notification_service(
    db: Session = Depends(get_db),
    broadcaster=Depends(get_broadcaster),
    push_provider=Depends(get_push_provider),
) -> NotificationService:
    """Dependency injection for NotificationService"""
    return NotificationService(db, NotificationDispatcher(db, push_provider), broadcaster)


@router.get("", response_model=list[NotificationResponse])
async def get_notifications(
    accountId: Optional[int] = Query(None),
    accountType: Optional[str] = Query(None),
    service: NotificationService = Depends(get_notification_service),
):
    """Get all in-app notifications for an account, newest first"""
    return [NotificationResponse(**n.to_dict()) for n in service.list_notifications(accountId, accountType)]


@router.put("/read-all")
async def mark_all_notifications_read(
    data: MarkAllReadRequest,
    service: NotificationService = Depends(get_notification_service),
):
    """Mark all notifications as read for an account"""
    count = service.mark_all_read(data.accountId, data.accountType)
    return {"success": True, "message": f"Marked {count} notifications as read", "markedCount": count}


@router.put("/{notification_id}/read")
async def mark_notification_read(
    notification_id: int,
    service: NotificationService = Depends(get_notification_service),
):
    """Mark a single notification as read"""
    notification = service.mark_read(notification_id)
    return {
        "success": True,
        "message": "Notification marked as read",
        "notification": notification.to_dict(),
    }


@router.post("/update-device-token")
async def update_device_token(
    data: DeviceTokenUpdate,
    service: NotificationService = Depends(get_notification_service),
):
    """Save or refresh a device token (called by the apps on login)"""
    service.register_device_token(data.accountId, data.accountType, data.token, data.shopId)
    return {"success": True, "message": "Device token saved/updated"}


@router.post("/deactivate-device-token")
async def deactivate_device_token(
    data: DeviceTokenDeactivate,
    service: NotificationService = Depends(get_notification_service),
):
    """Flag device token(s) inactive (logout)"""
    updated = service.deactivate_device_tokens(data.accountId, data.accountType, data.token)
    return {"success": True, "message": f"Deactivated {updated} device token(s)"}


@router.post("/delete-device-token")
async def delete_device_token(
    data: DeviceTokenDelete,
    service: NotificationService = Depends(get_notification_service),
):
    """Hard-delete a device token"""
    deleted = service.delete_device_token(data.token)
    return {"success": True, "message": f"Deleted {deleted} device token(s)"}


@router.post("/test-push")
async def test_push(
    data: TestPushRequest,
    service: NotificationService = Depends(get_notification_service),
):
    """Send a push straight to a token without saving a notification"""
    sent = await service.test_push(data.token)
    return {"success": sent, "message": "Push sent without DB" if sent else "Push not sent"}


@router.post("/send-notification")
async def send_notification_to_shop(
    data: ShopNotificationRequest,
    service: NotificationService = Depends(get_notification_service),
):
    """Save a notification for the shop's admin, emit it and push it"""
    result = await service.send_to_shop(data.shopId, data.bookingId, data.title, data.message)
    return {
        "success": True,
        "notificationId": result.notification_id,
        "pushSent": result.push_sent,
        "message": f"Notification saved and {result.push_sent} push sent",
    }


@router.post("/send-customer")
async def send_notification_to_customer(
    data: CustomerNotificationRequest,
    service: NotificationService = Depends(get_notification_service),
):
    """Save a notification for a customer, emit it and push it"""
    result = await service.send_to_customer(data.customerId, data.bookingId, data.title, data.message)
    return {
        "success": True,
        "notificationId": result.notification_id,
        "pushSent": result.push_sent,
        "message": f"Notification saved and {result.push_sent} push sent to customer",
    }


@router.post("/test")
async def send_test_notification(
    data: TestNotificationRequest,
    service: NotificationService = Depends(get_notification_service),
):
    """Save a test notification and push it to the account's first active device"""
    result = await service.send_test_notification(data.accountId, data.accountType, data.bookingId)
    return {"success": True, "notificationId": result.notification_id, "pushSent": result.push_sent}
