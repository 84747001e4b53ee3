"""Notification domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class DeviceTokenUpdate(BaseModel):
    """Schema for registering a device token on login"""

    accountId: Optional[int] = None
    accountType: Optional[str] = None
    shopId: Optional[int] = None
    token: Optional[str] = None


class DeviceTokenDeactivate(BaseModel):
    """Schema for flagging device token(s) inactive on logout"""

    accountId: Optional[int] = None
    accountType: Optional[str] = None
    token: Optional[str] = None  # When omitted, every token of the account


class DeviceTokenDelete(BaseModel):
    """Schema for hard-deleting a device token"""

    token: Optional[str] = None


class MarkAllReadRequest(BaseModel):
    accountId: Optional[int] = None
    accountType: Optional[str] = None


class TestPushRequest(BaseModel):
    token: Optional[str] = None


class ShopNotificationRequest(BaseModel):
    """Schema for notifying the admin who owns a shop"""

    shopId: Optional[int] = None
    bookingId: Optional[int] = None
    title: Optional[str] = None
    message: Optional[str] = None


class CustomerNotificationRequest(BaseModel):
    """Schema for notifying a customer"""

    customerId: Optional[int] = None
    bookingId: Optional[int] = None
    title: Optional[str] = None
    message: Optional[str] = None


class TestNotificationRequest(BaseModel):
    accountId: Optional[int] = None
    accountType: Optional[str] = None
    bookingId: Optional[int] = None


class NotificationResponse(BaseModel):
    """Schema for notification response"""

    notificationId: int
    accountType: str
    accountId: int
    bookingId: Optional[int] = None
    title: str
    message: str
    isRead: bool
    createdAt: Optional[datetime] = None
