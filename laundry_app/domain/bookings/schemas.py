"""Booking domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class BookingCreate(BaseModel):
    """Schema for creating a new booking"""

    bookingType: Optional[str] = None
    bookingDate: Optional[datetime] = None
    status: Optional[str] = None
    totalAmount: Optional[float] = None
    shopId: Optional[int] = None
    serviceId: Optional[int] = None
    customerId: Optional[int] = None


class BookingStatusUpdate(BaseModel):
    status: Optional[str] = None


class BookingDateUpdate(BaseModel):
    bookingDate: Optional[datetime] = None


class BookingResponse(BaseModel):
    """Schema for booking response"""

    bookingId: int
    bookingType: Optional[str]
    bookingDate: Optional[datetime]
    status: str
    totalAmount: Optional[float] = None
    shopId: int
    serviceId: Optional[int] = None
    customerId: int
    shopName: Optional[str] = None
    customerName: Optional[str] = None
    serviceName: Optional[str] = None
