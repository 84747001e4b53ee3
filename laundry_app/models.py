from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Customer(Base):
    __tablename__ = "customer"

    customer_id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    phone_number = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part).strip()


class Shop(Base):
    __tablename__ = "shop"

    shop_id = Column(Integer, primary_key=True, index=True)
    admin_id = Column(Integer, nullable=False, index=True)  # Owning shop admin
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    services = relationship("Service", back_populates="shop")


class Service(Base):
    __tablename__ = "services"

    service_id = Column(Integer, primary_key=True, index=True)
    shop_id = Column(Integer, ForeignKey("shop.shop_id"), nullable=False, index=True)
    offers = Column(String(255), nullable=False)  # Service name shown to users
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=True)

    shop = relationship("Shop", back_populates="services")


class Booking(Base):
    __tablename__ = "booking"

    booking_id = Column(Integer, primary_key=True, index=True)
    booking_type = Column(String(50), nullable=False)  # walk-in, pickup, delivery
    booking_date = Column(DateTime, nullable=False)
    status = Column(String(50), nullable=False, default="pending", index=True)
    total_amount = Column(Float, nullable=True)
    shop_id = Column(Integer, ForeignKey("shop.shop_id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.service_id"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customer.customer_id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    shop = relationship("Shop")
    service = relationship("Service")
    customer = relationship("Customer")


class Payment(Base):
    __tablename__ = "payment"

    payment_id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("booking.booking_id"), nullable=False, index=True)
    customer_id = Column(Integer, nullable=True)
    shop_id = Column(Integer, nullable=True)
    service_id = Column(Integer, nullable=True)
    payment_method = Column(String(50), nullable=True)  # gcash, cash
    status = Column(String(50), nullable=True)
    date = Column(DateTime(timezone=True), server_default=func.now())


class Delivery(Base):
    __tablename__ = "delivery"

    delivery_id = Column(Integer, primary_key=True, index=True)
    pickup_address = Column(String(500), nullable=True)
    delivery_address = Column(String(500), nullable=True)
    delivery_time = Column(DateTime, nullable=True)
    status = Column(String(50), nullable=False, default="pending")
    booking_id = Column(Integer, ForeignKey("booking.booking_id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customer.customer_id"), nullable=False)
    shop_id = Column(Integer, ForeignKey("shop.shop_id"), nullable=False)
    service_id = Column(Integer, nullable=True)


class Notification(Base):
    __tablename__ = "notifications"

    notification_id = Column(Integer, primary_key=True, index=True)
    account_type = Column(String(20), nullable=False)  # customer, admin, superadmin
    account_id = Column(Integer, nullable=False)
    booking_id = Column(Integer, nullable=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self) -> dict:
        return {
            "notificationId": self.notification_id,
            "accountType": self.account_type,
            "accountId": self.account_id,
            "bookingId": self.booking_id,
            "title": self.title,
            "message": self.message,
            "isRead": bool(self.is_read),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class DeviceToken(Base):
    __tablename__ = "device_tokens"
    __table_args__ = (UniqueConstraint("token", name="uq_device_tokens_token"),)

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, nullable=False, index=True)
    account_type = Column(String(20), nullable=False)
    shop_id = Column(Integer, nullable=True)
    token = Column(String(512), nullable=False)  # FCM registration token
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
