"""Booking router - FastAPI endpoints for booking operations"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...realtime import get_broadcaster
from ...realtime.broadcaster import EventBroadcaster
from ...services.notification_service import NotificationDispatcher, get_push_provider
from .schemas import BookingCreate, BookingDateUpdate, BookingResponse, BookingStatusUpdate
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(
    db: Session = Depends(get_db),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
    push_provider=Depends(get_push_provider),
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, broadcaster, NotificationDispatcher(db, push_provider))


@router.post("", status_code=201)
async def create_booking(
    data: BookingCreate,
    service: BookingService = Depends(get_booking_service),
):
    """Create a booking (defaults to pending)"""
    booking = await service.create_booking(data)
    return {
        "message": "Booking created successfully",
        "bookingId": booking.booking_id,
        "status": booking.status,
    }


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    service: BookingService = Depends(get_booking_service),
):
    """Get a booking with its shop, customer and service names"""
    c = service.get_booking_context(booking_id)
    booking = service.get_booking(booking_id)
    return BookingResponse(
        bookingId=c.booking_id,
        bookingType=c.booking_type,
        bookingDate=c.booking_date,
        status=c.status,
        totalAmount=float(booking.total_amount) if booking.total_amount is not None else None,
        shopId=c.shop_id,
        serviceId=c.service_id,
        customerId=c.customer_id,
        shopName=c.shop_name,
        customerName=c.customer_name,
        serviceName=c.service_name,
    )


@router.patch("/{booking_id}/status")
async def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    service: BookingService = Depends(get_booking_service),
):
    """Change booking status along an allowed transition"""
    return await service.update_status(booking_id, data.status)


@router.patch("/{booking_id}/date")
async def reschedule_booking(
    booking_id: int,
    data: BookingDateUpdate,
    service: BookingService = Depends(get_booking_service),
):
    """Move a pending or confirmed booking to a new date"""
    return await service.reschedule(booking_id, data.bookingDate)


@router.delete("/{booking_id}")
async def delete_booking(
    booking_id: int,
    service: BookingService = Depends(get_booking_service),
):
    """Delete a booking together with its payments"""
    return await service.delete_booking(booking_id)
