"""Delivery repository - Database operations for deliveries"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Booking, Delivery


class DeliveryRepository:
    """Repository for delivery database operations"""

    @staticmethod
    def get_delivery(db: Session, delivery_id: int) -> Optional[Delivery]:
        return db.query(Delivery).filter(Delivery.delivery_id == delivery_id).first()

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.booking_id == booking_id).first()

    @staticmethod
    def create_delivery(db: Session, **delivery_data) -> Delivery:
        delivery = Delivery(**delivery_data)
        db.add(delivery)
        db.commit()
        db.refresh(delivery)
        return delivery

    @staticmethod
    def update_status(db: Session, delivery: Delivery, status: str) -> Delivery:
        delivery.status = status
        db.commit()
        db.refresh(delivery)
        return delivery

    @staticmethod
    def sync_booking_status(db: Session, booking_id: int, status: str) -> int:
        """Overwrite the linked booking's status; returns affected rows"""
        updated = (
            db.query(Booking)
            .filter(Booking.booking_id == booking_id)
            .update({Booking.status: status}, synchronize_session=False)
        )
        db.commit()
        return updated
