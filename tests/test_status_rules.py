"""Booking/delivery status vocabularies and notification text"""

from datetime import datetime

import pytest

from laundry_app.services.status_automation import (
    booking_notification_for,
    can_reschedule,
    delivery_notification_for,
    format_booking_date,
    is_walk_in,
    validate_status_transition,
)


class TestTransitions:
    @pytest.mark.parametrize(
        "current,new",
        [
            ("pending", "confirmed"),
            ("pending", "cancelled"),
            ("confirmed", "in_transit"),
            ("confirmed", "completed"),
            ("ready", "in_transit"),
            ("in_transit", "completed"),
            ("confirmed", "confirmed"),
        ],
    )
    def test_allowed(self, current, new):
        assert validate_status_transition(current, new)

    @pytest.mark.parametrize(
        "current,new",
        [
            ("pending", "completed"),
            ("completed", "pending"),
            ("cancelled", "confirmed"),
            ("in_transit", "pending"),
        ],
    )
    def test_rejected(self, current, new):
        assert not validate_status_transition(current, new)

    def test_reschedule_only_pending_or_confirmed(self):
        assert can_reschedule("pending")
        assert can_reschedule("Confirmed")
        assert not can_reschedule("completed")
        assert not can_reschedule("in_transit")


class TestBookingNotifications:
    def test_cancelled_goes_to_admin(self):
        plan = booking_notification_for("cancelled", 42, customer_name="Maria Santos", service_name="Wash & Fold")
        assert plan.recipient == "admin"
        assert plan.title == "Booking Cancelled"
        assert "Maria Santos" in plan.message

    def test_confirmed_walk_in_contains_formatted_date(self):
        plan = booking_notification_for(
            "confirmed", 42, booking_type="Walk-In", booking_date=datetime(2026, 3, 5, 10, 0)
        )
        assert plan.recipient == "customer"
        assert plan.title == "Booking Confirmed"
        assert "March 5, 2026" in plan.message

    def test_confirmed_other_is_generic(self):
        plan = booking_notification_for("confirmed", 42, booking_type="pickup", booking_date=datetime(2026, 3, 5))
        assert plan.message == "Your booking has been confirmed. We'll keep you updated on your laundry."

    @pytest.mark.parametrize("status", ["pending", "in_transit", "completed", "ready"])
    def test_other_statuses_produce_nothing(self, status):
        assert booking_notification_for(status, 42) is None

    def test_walk_in_spellings(self):
        assert all(is_walk_in(t) for t in ("walk-in", "walk_in", "WALKIN"))
        assert not is_walk_in("delivery")

    def test_format_booking_date_from_iso_string(self):
        assert format_booking_date("2026-03-05T10:00:00Z") == "March 5, 2026"


def test_delivery_titles():
    assert delivery_notification_for("ready")[0] == "Ready for Pickup"
    assert delivery_notification_for("out_for_delivery")[0] == "Out for Delivery"
    assert delivery_notification_for("completed")[0] == "Delivery Completed"
    assert delivery_notification_for("confirmed")[0] == "Delivery Update"
