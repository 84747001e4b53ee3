"""Delivery service - Delivery status workflow with one-way booking sync"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Delivery
from ...realtime.broadcaster import EventBroadcaster
from ...realtime.presence import Identity
from ...services.notification_service import NotificationDispatcher
from ...services.status_automation import (
    DELIVERY_STATUSES,
    DELIVERY_TO_BOOKING_STATUS,
    delivery_notification_for,
    normalize_status,
)
from ..notifications.service import notify_identity
from .repository import DeliveryRepository
from .schemas import DeliveryCreate

logger = logging.getLogger(__name__)


def _validate_delivery_status(status: Optional[str]) -> str:
    value = normalize_status(status)
    if not value:
        raise HTTPException(status_code=400, detail="Status is required")
    if value not in DELIVERY_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid status. Must be one of: {', '.join(DELIVERY_STATUSES)}",
        )
    return value


class DeliveryService:
    """Service layer for delivery business logic"""

    def __init__(self, db: Session, broadcaster: EventBroadcaster, dispatcher: NotificationDispatcher):
        self.db = db
        self.repo = DeliveryRepository()
        self.broadcaster = broadcaster
        self.dispatcher = dispatcher

    def get_delivery(self, delivery_id: int) -> Delivery:
        delivery = self.repo.get_delivery(self.db, delivery_id)
        if not delivery:
            raise HTTPException(status_code=404, detail="Delivery not found")
        return delivery

    async def create_delivery(self, data: DeliveryCreate) -> Delivery:
        """Create a delivery for an existing booking"""
        if not data.bookingId:
            raise HTTPException(status_code=400, detail="bookingId is required")
        status = _validate_delivery_status(data.status or "pending")

        booking = self.repo.get_booking(self.db, data.bookingId)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")

        try:
            delivery = self.repo.create_delivery(
                self.db,
                booking_id=booking.booking_id,
                customer_id=booking.customer_id,
                shop_id=booking.shop_id,
                service_id=booking.service_id,
                pickup_address=data.pickupAddress,
                delivery_address=data.deliveryAddress,
                delivery_time=data.deliveryTime,
                status=status,
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create delivery for booking {data.bookingId}: {e}")
            raise HTTPException(status_code=500, detail="Database error") from e

        logger.info(f"🚚 Delivery {delivery.delivery_id} created for booking {delivery.booking_id}")
        await self.broadcaster.delivery_created(
            self.db,
            delivery.delivery_id,
            delivery.booking_id,
            delivery.status,
            delivery.shop_id,
            delivery.customer_id,
        )
        return delivery

    async def update_status(self, delivery_id: int, status: Optional[str]) -> dict:
        """
        Update delivery status, then:
        1. sync the linked booking (ready→ready, out_for_delivery→in_transit, completed→completed)
        2. broadcast deliveryUpdated to the shop admin and the customer
        3. notify the customer

        Steps 1-3 are best-effort once the delivery row is committed.
        """
        new_status = _validate_delivery_status(status)
        delivery = self.get_delivery(delivery_id)

        try:
            delivery = self.repo.update_status(self.db, delivery, new_status)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update delivery {delivery_id}: {e}")
            raise HTTPException(status_code=500, detail="Database error") from e
        logger.info(f"🚚 Delivery {delivery_id} status → {new_status}")

        booking_status = DELIVERY_TO_BOOKING_STATUS.get(new_status)
        if booking_status:
            try:
                synced = self.repo.sync_booking_status(self.db, delivery.booking_id, booking_status)
                if synced:
                    logger.info(f"🔄 Booking {delivery.booking_id} synced to {booking_status}")
                else:
                    logger.warning(f"⚠️ Booking {delivery.booking_id} not found; status {booking_status} not synced")
            except Exception as e:
                self.db.rollback()
                logger.error(f"❌ Failed to sync booking {delivery.booking_id} to {booking_status}: {e}")

        await self.broadcaster.delivery_updated(
            self.db,
            delivery.delivery_id,
            delivery.booking_id,
            new_status,
            delivery.shop_id,
            delivery.customer_id,
        )

        title, message = delivery_notification_for(new_status)
        await notify_identity(
            self.dispatcher,
            self.broadcaster,
            Identity(delivery.customer_id, "customer"),
            delivery.booking_id,
            title,
            message,
        )

        return {"message": "Delivery status updated", "deliveryId": delivery_id, "status": new_status}
