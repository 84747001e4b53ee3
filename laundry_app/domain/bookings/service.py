"""
Booking service - Status transition workflow for bookings

Every mutating operation follows the same order:
    persist → broadcast → notify
Each step is awaited in sequence. Only the persist step can fail the
request; broadcast and notify failures are logged and never undo it.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Booking
from ...realtime.broadcaster import EventBroadcaster
from ...realtime.presence import Identity
from ...services.notification_service import NotificationDispatcher
from ...services.status_automation import (
    booking_created_message,
    booking_notification_for,
    booking_rescheduled_message,
    can_reschedule,
    is_known_booking_status,
    normalize_status,
    validate_status_transition,
)
from ..notifications.service import notify_identity
from .repository import BookingContext, BookingRepository
from .schemas import BookingCreate

logger = logging.getLogger(__name__)


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session, broadcaster: EventBroadcaster, dispatcher: NotificationDispatcher):
        self.db = db
        self.repo = BookingRepository()
        self.broadcaster = broadcaster
        self.dispatcher = dispatcher

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def get_booking_context(self, booking_id: int) -> BookingContext:
        context = self.repo.get_booking_context(self.db, booking_id)
        if not context:
            raise HTTPException(status_code=404, detail="Booking not found")
        return context

    def _load_context(self, booking_id: int) -> Optional[BookingContext]:
        """Re-read booking context for fan-out; None suppresses fan-out only"""
        try:
            return self.repo.get_booking_context(self.db, booking_id)
        except Exception as e:
            logger.error(f"❌ Failed to load context for booking {booking_id}; skipping fan-out: {e}")
            return None

    def _persist(self, operation, *args):
        try:
            return operation(self.db, *args)
        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Database error ({operation.__name__}): {e}")
            raise HTTPException(status_code=500, detail="Database error") from e

    async def _notify(self, identity: Identity, booking_id: int, title: str, message: str) -> None:
        await notify_identity(self.dispatcher, self.broadcaster, identity, booking_id, title, message)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_booking(self, data: BookingCreate) -> Booking:
        """Create a booking, tell the shop admin and superadmins, notify the admin"""
        if (
            not data.bookingType
            or not data.bookingDate
            or data.totalAmount is None
            or not data.shopId
            or not data.serviceId
            or not data.customerId
        ):
            raise HTTPException(status_code=400, detail="All fields are required")

        status = normalize_status(data.status) or "pending"
        if not is_known_booking_status(status):
            raise HTTPException(status_code=400, detail=f"Invalid status: {status}")

        if not self.repo.get_shop(self.db, data.shopId):
            raise HTTPException(status_code=404, detail="Shop not found")

        booking = self._persist(
            lambda db: self.repo.create_booking(
                db,
                booking_type=data.bookingType.strip(),
                booking_date=data.bookingDate,
                status=status,
                total_amount=data.totalAmount,
                shop_id=data.shopId,
                service_id=data.serviceId,
                customer_id=data.customerId,
            )
        )
        logger.info(f"✅ Booking {booking.booking_id} created for shop {booking.shop_id}")

        context = self._load_context(booking.booking_id)
        if context is None:
            return booking

        await self.broadcaster.booking_created(
            self.db, context.shop_id, context.booking_id, context.status, context.booking_date
        )
        if context.admin_id is not None:
            await self._notify(
                Identity(context.admin_id, "admin"),
                context.booking_id,
                "New Booking",
                booking_created_message(
                    context.booking_id, context.booking_date, context.customer_name, context.service_name
                ),
            )
        return booking

    # ------------------------------------------------------------------
    # Status update
    # ------------------------------------------------------------------

    async def update_status(self, booking_id: int, status: Optional[str]) -> dict:
        """
        Apply a validated status change, then broadcast and notify.

        cancelled → shop admin gets "Booking Cancelled"
        confirmed → customer gets "Booking Confirmed" (walk-ins get the date)
        anything else → no notification
        """
        new_status = normalize_status(status)
        if not new_status:
            raise HTTPException(status_code=400, detail="Status is required")
        if not is_known_booking_status(new_status):
            raise HTTPException(status_code=400, detail=f"Invalid status: {new_status}")

        booking = self.get_booking(booking_id)
        if not validate_status_transition(booking.status, new_status):
            raise HTTPException(
                status_code=400,
                detail=f"Cannot change booking status from {booking.status} to {new_status}",
            )

        updated = self._persist(self.repo.update_status, booking_id, new_status)
        if updated == 0:
            raise HTTPException(status_code=404, detail="Booking not found")
        logger.info(f"✅ Booking {booking_id} status: {booking.status} → {new_status}")

        result = {
            "message": "Booking status updated successfully",
            "bookingId": booking_id,
            "newStatus": new_status,
        }

        context = self._load_context(booking_id)
        if context is None:
            return result

        await self.broadcaster.booking_updated(self.db, context.shop_id, booking_id, status=new_status)

        plan = booking_notification_for(
            new_status,
            booking_id,
            booking_type=context.booking_type,
            booking_date=context.booking_date,
            customer_name=context.customer_name,
            service_name=context.service_name,
            shop_name=context.shop_name,
        )
        if plan is None:
            return result

        if plan.recipient == "admin":
            if context.admin_id is None:
                logger.warning(f"⚠️ Shop {context.shop_id} has no admin; '{plan.title}' not sent")
                return result
            recipient = Identity(context.admin_id, "admin")
        else:
            recipient = Identity(context.customer_id, "customer")

        await self._notify(recipient, booking_id, plan.title, plan.message)
        return result

    # ------------------------------------------------------------------
    # Reschedule
    # ------------------------------------------------------------------

    async def reschedule(self, booking_id: int, booking_date: Optional[datetime]) -> dict:
        """Change the booking date; allowed only while pending or confirmed"""
        if not booking_date:
            raise HTTPException(status_code=400, detail="bookingDate is required")

        booking = self.get_booking(booking_id)
        if not can_reschedule(booking.status):
            raise HTTPException(
                status_code=400,
                detail="Reschedule allowed only for pending or confirmed bookings",
            )

        updated = self._persist(self.repo.update_date, booking_id, booking_date)
        if updated == 0:
            raise HTTPException(status_code=404, detail="Booking not found")
        logger.info(f"📅 Booking {booking_id} rescheduled to {booking_date.isoformat()}")

        result = {
            "message": "Booking date updated successfully",
            "bookingId": booking_id,
            "bookingDate": booking_date.isoformat(),
        }

        context = self._load_context(booking_id)
        if context is None:
            return result

        await self.broadcaster.booking_updated(
            self.db, context.shop_id, booking_id, booking_date=context.booking_date
        )
        if context.admin_id is not None:
            await self._notify(
                Identity(context.admin_id, "admin"),
                booking_id,
                "Booking Rescheduled",
                booking_rescheduled_message(
                    booking_id, context.booking_date, context.customer_name, context.service_name
                ),
            )
        return result

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete_booking(self, booking_id: int) -> dict:
        """Delete a booking and its payments, then tell the shop admin and superadmins"""
        # Capture the owning shop while the row still exists
        booking = self.get_booking(booking_id)
        shop_id = booking.shop_id
        shop = self.repo.get_shop(self.db, shop_id)
        admin_id = shop.admin_id if shop else None

        deleted = self._persist(self.repo.delete_booking, booking_id)
        if deleted == 0:
            raise HTTPException(status_code=404, detail="Booking not found")
        logger.info(f"🗑️ Booking {booking_id} and its payments deleted")

        await self.broadcaster.booking_deleted(self.db, shop_id, booking_id, admin_id=admin_id)
        return {"message": "Booking and payment deleted successfully", "bookingId": booking_id}
