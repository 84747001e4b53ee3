"""Booking repository - Database operations for bookings"""

from datetime import datetime
from typing import NamedTuple, Optional

from sqlalchemy.orm import Session

from ...models import Booking, Customer, Payment, Service, Shop


class BookingContext(NamedTuple):
    """Everything the fan-out step needs about a booking"""

    booking_id: int
    booking_type: Optional[str]
    booking_date: Optional[datetime]
    status: str
    shop_id: int
    customer_id: int
    service_id: Optional[int]
    admin_id: Optional[int]
    shop_name: Optional[str]
    customer_name: Optional[str]
    service_name: Optional[str]


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.booking_id == booking_id).first()

    @staticmethod
    def get_shop(db: Session, shop_id: int) -> Optional[Shop]:
        return db.query(Shop).filter(Shop.shop_id == shop_id).first()

    @staticmethod
    def get_booking_context(db: Session, booking_id: int) -> Optional[BookingContext]:
        """Booking joined with shop, customer and service names"""
        row = (
            db.query(Booking, Shop, Customer, Service)
            .outerjoin(Shop, Booking.shop_id == Shop.shop_id)
            .outerjoin(Customer, Booking.customer_id == Customer.customer_id)
            .outerjoin(Service, Booking.service_id == Service.service_id)
            .filter(Booking.booking_id == booking_id)
            .first()
        )
        if not row:
            return None

        booking, shop, customer, service = row
        return BookingContext(
            booking_id=booking.booking_id,
            booking_type=booking.booking_type,
            booking_date=booking.booking_date,
            status=booking.status,
            shop_id=booking.shop_id,
            customer_id=booking.customer_id,
            service_id=booking.service_id,
            admin_id=shop.admin_id if shop else None,
            shop_name=shop.name if shop else None,
            customer_name=(customer.full_name or None) if customer else None,
            service_name=service.offers if service else None,
        )

    @staticmethod
    def create_booking(db: Session, **booking_data) -> Booking:
        booking = Booking(**booking_data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def update_status(db: Session, booking_id: int, status: str) -> int:
        """Returns affected rows"""
        updated = (
            db.query(Booking)
            .filter(Booking.booking_id == booking_id)
            .update({Booking.status: status}, synchronize_session=False)
        )
        db.commit()
        return updated

    @staticmethod
    def update_date(db: Session, booking_id: int, booking_date: datetime) -> int:
        updated = (
            db.query(Booking)
            .filter(Booking.booking_id == booking_id)
            .update({Booking.booking_date: booking_date}, synchronize_session=False)
        )
        db.commit()
        return updated

    @staticmethod
    def delete_booking(db: Session, booking_id: int) -> int:
        """Delete payments first (FK constraint), then the booking, in one commit"""
        db.query(Payment).filter(Payment.booking_id == booking_id).delete(synchronize_session=False)
        deleted = (
            db.query(Booking).filter(Booking.booking_id == booking_id).delete(synchronize_session=False)
        )
        db.commit()
        return deleted
