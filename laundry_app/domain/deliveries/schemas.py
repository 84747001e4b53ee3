"""Delivery domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class DeliveryCreate(BaseModel):
    """Schema for creating a delivery for a booking"""

    bookingId: Optional[int] = None
    pickupAddress: Optional[str] = None
    deliveryAddress: Optional[str] = None
    deliveryTime: Optional[datetime] = None
    status: Optional[str] = None


class DeliveryStatusUpdate(BaseModel):
    status: Optional[str] = None


class DeliveryResponse(BaseModel):
    deliveryId: int
    bookingId: int
    customerId: int
    shopId: int
    serviceId: Optional[int] = None
    pickupAddress: Optional[str] = None
    deliveryAddress: Optional[str] = None
    deliveryTime: Optional[datetime] = None
    status: str
