"""
Status vocabularies and transition rules for bookings and deliveries,
plus the notification text each transition produces.

Booking statuses: pending → confirmed → in_transit → completed, cancelled
Delivery statuses: pending → confirmed → ready → out_for_delivery → completed, cancelled
"""

from datetime import date, datetime
from typing import NamedTuple, Optional

BOOKING_STATUSES = ("pending", "confirmed", "ready", "in_transit", "completed", "cancelled")

# Valid manual transitions for bookings
BOOKING_TRANSITIONS = {
    "pending": ["confirmed", "cancelled"],
    "confirmed": ["cancelled", "completed", "in_transit"],
    "ready": ["in_transit", "completed", "cancelled"],  # Reached via delivery sync
    "in_transit": ["completed", "cancelled"],
    "completed": [],  # Terminal state
    "cancelled": [],  # Terminal state
}

RESCHEDULABLE_STATUSES = ("pending", "confirmed")

DELIVERY_STATUSES = ("pending", "confirmed", "ready", "out_for_delivery", "completed", "cancelled")

# One-way sync: delivery status -> booking status
DELIVERY_TO_BOOKING_STATUS = {
    "ready": "ready",
    "out_for_delivery": "in_transit",
    "completed": "completed",
}

WALK_IN_TYPES = ("walk-in", "walk_in", "walkin", "walk in")


class NotificationPlan(NamedTuple):
    recipient: str  # "admin" or "customer"
    title: str
    message: str


def normalize_status(value) -> str:
    return str(value or "").strip().lower()


def is_known_booking_status(status: str) -> bool:
    return status in BOOKING_STATUSES


def validate_status_transition(current_status: str, new_status: str) -> bool:
    """
    Validate if a booking status transition is allowed

    Setting the current status again is always allowed (no-op).
    Unknown current statuses (legacy rows) accept any known target.
    """
    current = normalize_status(current_status)
    if current == new_status:
        return True
    if current not in BOOKING_TRANSITIONS:
        return new_status in BOOKING_STATUSES
    return new_status in BOOKING_TRANSITIONS[current]


def can_reschedule(current_status: str) -> bool:
    return normalize_status(current_status) in RESCHEDULABLE_STATUSES


def is_walk_in(booking_type: Optional[str]) -> bool:
    return normalize_status(booking_type) in WALK_IN_TYPES


def format_booking_date(value) -> str:
    """Human-readable date, e.g. 'March 5, 2026'"""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    if isinstance(value, (datetime, date)):
        return f"{value:%B} {value.day}, {value.year}"
    return str(value) if value else "your scheduled date"


def booking_notification_for(
    new_status: str,
    booking_id: int,
    booking_type: Optional[str] = None,
    booking_date=None,
    customer_name: Optional[str] = None,
    service_name: Optional[str] = None,
    shop_name: Optional[str] = None,
) -> Optional[NotificationPlan]:
    """Which notification a booking status change produces, if any"""
    if new_status == "cancelled":
        if customer_name and service_name:
            message = f"{customer_name} cancelled their booking for {service_name}."
        elif customer_name:
            message = f"{customer_name} cancelled booking #{booking_id}."
        else:
            message = f"Booking #{booking_id} has been cancelled."
        return NotificationPlan("admin", "Booking Cancelled", message)

    if new_status == "confirmed":
        if is_walk_in(booking_type):
            place = shop_name or "the shop"
            message = (
                f"Your walk-in booking has been confirmed for {format_booking_date(booking_date)}. "
                f"Please bring your laundry to {place}."
            )
        else:
            message = "Your booking has been confirmed. We'll keep you updated on your laundry."
        return NotificationPlan("customer", "Booking Confirmed", message)

    return None


def booking_rescheduled_message(
    booking_id: int,
    booking_date,
    customer_name: Optional[str] = None,
    service_name: Optional[str] = None,
) -> str:
    when = format_booking_date(booking_date)
    if customer_name and service_name:
        return f"{customer_name} rescheduled their {service_name} booking to {when}."
    if customer_name:
        return f"{customer_name} rescheduled booking #{booking_id} to {when}."
    return f"Booking #{booking_id} was rescheduled to {when}."


def booking_created_message(
    booking_id: int,
    booking_date,
    customer_name: Optional[str] = None,
    service_name: Optional[str] = None,
) -> str:
    when = format_booking_date(booking_date)
    if customer_name and service_name:
        return f"{customer_name} booked {service_name} for {when}."
    return f"New booking #{booking_id} for {when}."


def delivery_notification_for(status: str) -> tuple[str, str]:
    """Title and message sent to the customer for a delivery status"""
    if status == "ready":
        return "Ready for Pickup", "Your laundry is ready for pickup."
    if status == "out_for_delivery":
        return "Out for Delivery", "Your laundry is on its way!"
    if status == "completed":
        return "Delivery Completed", "Your laundry has been delivered. Thank you!"
    return "Delivery Update", f"Your delivery status is now {status.replace('_', ' ')}."
