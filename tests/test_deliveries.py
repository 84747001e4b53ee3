"""Delivery status workflow: one-way booking sync, events and customer notification"""

import logging

from conftest import ADMIN_ID, BOOKING_ID, CUSTOMER_ID, DELIVERY_ID, add_token, join, seed
from laundry_app.domain.deliveries.repository import DeliveryRepository
from laundry_app.models import Booking, Delivery, Notification


def booking_status(db):
    db.expire_all()
    return db.get(Booking, BOOKING_ID).status


class TestDeliveryStatusUpdate:
    def test_out_for_delivery_moves_booking_in_transit(self, client, db, push):
        seed(db, booking_status="confirmed", with_delivery=True)
        add_token(db, "customer-phone", CUSTOMER_ID, "customer")

        response = client.patch(f"/delivery/{DELIVERY_ID}/status", json={"status": "out_for_delivery"})

        assert response.status_code == 200
        assert response.json()["deliveryId"] == DELIVERY_ID
        assert response.json()["status"] == "out_for_delivery"
        assert booking_status(db) == "in_transit"

        rows = db.query(Notification).filter(Notification.account_type == "customer").all()
        assert [r.title for r in rows] == ["Out for Delivery"]
        assert rows[0].account_id == CUSTOMER_ID
        assert [p["title"] for p in push.sent] == ["Out for Delivery"]

    def test_completed_completes_booking(self, client, db):
        seed(db, booking_status="in_transit", with_delivery=True)

        client.patch(f"/delivery/{DELIVERY_ID}/status", json={"status": "completed"})

        assert booking_status(db) == "completed"
        assert db.query(Notification).one().title == "Delivery Completed"

    def test_unmapped_status_leaves_booking_untouched(self, client, db):
        seed(db, booking_status="confirmed", with_delivery=True)

        response = client.patch(f"/delivery/{DELIVERY_ID}/status", json={"status": "pending"})

        assert response.status_code == 200
        assert booking_status(db) == "confirmed"
        assert db.get(Delivery, DELIVERY_ID).status == "pending"
        assert db.query(Notification).one().title == "Delivery Update"

    def test_invalid_status_is_rejected(self, client, db):
        seed(db, with_delivery=True)

        response = client.patch(f"/delivery/{DELIVERY_ID}/status", json={"status": "in_transit"})

        assert response.status_code == 400
        db.expire_all()
        assert db.get(Delivery, DELIVERY_ID).status == "confirmed"
        assert db.query(Notification).count() == 0

    def test_missing_delivery_is_404(self, client, db):
        seed(db)

        assert client.patch("/delivery/999/status", json={"status": "ready"}).status_code == 404

    def test_admin_and_customer_see_delivery_updated(self, client, db):
        seed(db, with_delivery=True)

        with client.websocket_connect("/ws") as admin_ws, client.websocket_connect("/ws") as customer_ws:
            join(admin_ws, ADMIN_ID, "admin")
            join(customer_ws, CUSTOMER_ID, "customer")
            assert admin_ws.receive_json()["event"] == "userOnline"
            client.patch(f"/delivery/{DELIVERY_ID}/status", json={"status": "ready"})

            admin_frame = admin_ws.receive_json()
            assert admin_frame["event"] == "deliveryUpdated"
            assert admin_frame["data"]["deliveryId"] == DELIVERY_ID
            assert admin_frame["data"]["bookingId"] == BOOKING_ID
            assert admin_frame["data"]["status"] == "ready"

            assert customer_ws.receive_json()["event"] == "deliveryUpdated"
            notification = customer_ws.receive_json()
            assert notification["event"] == "newNotification"
            assert notification["data"]["title"] == "Ready for Pickup"


class TestCreateDelivery:
    def test_create_copies_booking_parties(self, client, db):
        seed(db)

        response = client.post(
            "/delivery",
            json={"bookingId": BOOKING_ID, "pickupAddress": "12 Mabini St", "status": "pending"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["customerId"] == CUSTOMER_ID
        assert body["status"] == "pending"

    def test_create_with_unknown_status_writes_nothing(self, client, db):
        seed(db)

        response = client.post("/delivery", json={"bookingId": BOOKING_ID, "status": "teleported"})

        assert response.status_code == 400
        db.expire_all()
        assert db.query(Delivery).count() == 0


class TestBookingSyncFailures:
    def test_sync_failure_still_updates_delivery_and_notifies(self, client, db, push, monkeypatch):
        seed(db, booking_status="confirmed", with_delivery=True)
        add_token(db, "customer-phone", CUSTOMER_ID, "customer")

        def broken_sync(session, booking_id, status):
            raise RuntimeError("lock wait timeout exceeded")

        monkeypatch.setattr(DeliveryRepository, "sync_booking_status", staticmethod(broken_sync))

        response = client.patch(f"/delivery/{DELIVERY_ID}/status", json={"status": "out_for_delivery"})

        assert response.status_code == 200
        assert response.json()["status"] == "out_for_delivery"
        assert booking_status(db) == "confirmed"
        assert db.get(Delivery, DELIVERY_ID).status == "out_for_delivery"
        assert db.query(Notification).one().title == "Out for Delivery"
        assert [p["token"] for p in push.sent] == ["customer-phone"]

    def test_sync_matching_no_booking_is_not_logged_as_synced(self, client, db, caplog):
        seed(db, with_delivery=True)
        db.query(Booking).filter(Booking.booking_id == BOOKING_ID).delete()
        db.commit()

        with caplog.at_level(logging.INFO, logger="laundry_app.domain.deliveries.service"):
            response = client.patch(f"/delivery/{DELIVERY_ID}/status", json={"status": "ready"})

        assert response.status_code == 200
        assert f"Booking {BOOKING_ID} not found; status ready not synced" in caplog.text
        assert "synced to ready" not in caplog.text
