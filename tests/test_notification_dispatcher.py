"""Notification dispatcher: persist first, push best-effort, purge dead tokens"""

import pytest

from conftest import add_token
from laundry_app.models import DeviceToken, Notification
from laundry_app.realtime.presence import Identity
from laundry_app.services.notification_service import NotificationDispatcher

ADMIN = Identity(9, "admin")


class TestDispatch:
    @pytest.mark.asyncio
    async def test_dispatch_persists_and_returns_record(self, db, push):
        dispatcher = NotificationDispatcher(db, push)

        result = await dispatcher.dispatch(ADMIN, 42, "Booking Cancelled", "Booking #42 has been cancelled.")

        row = db.query(Notification).one()
        assert result.notification_id == row.notification_id
        assert result.saved_record["title"] == "Booking Cancelled"
        assert result.saved_record["accountType"] == "admin"
        assert result.saved_record["accountId"] == 9
        assert result.saved_record["isRead"] is False
        assert push.sent == []

    @pytest.mark.asyncio
    async def test_dispatch_with_device_token_pushes_once(self, db, push):
        dispatcher = NotificationDispatcher(db, push)

        result = await dispatcher.dispatch(ADMIN, 42, "New Booking", "Hello", device_token="tok-1")

        assert len(push.sent) == 1
        assert push.sent[0]["data"]["notificationId"] == result.notification_id

    @pytest.mark.asyncio
    async def test_dispatch_is_not_idempotent(self, db, push):
        dispatcher = NotificationDispatcher(db, push)

        await dispatcher.dispatch(ADMIN, 42, "Same", "Same")
        await dispatcher.dispatch(ADMIN, 42, "Same", "Same")

        assert db.query(Notification).count() == 2

    @pytest.mark.asyncio
    async def test_persistence_failure_raises(self, db, push, monkeypatch):
        dispatcher = NotificationDispatcher(db, push)

        def broken_commit():
            raise RuntimeError("database is unreachable")

        monkeypatch.setattr(db, "commit", broken_commit)

        with pytest.raises(RuntimeError):
            await dispatcher.dispatch(ADMIN, 42, "New Booking", "Hello", device_token="tok-1")
        assert push.sent == []


class TestPush:
    @pytest.mark.asyncio
    async def test_dead_token_is_purged_and_notification_kept(self, db, push):
        add_token(db, "dead-token", 9, "admin")
        push.dead_tokens.add("dead-token")
        dispatcher = NotificationDispatcher(db, push)

        await dispatcher.dispatch(ADMIN, 42, "Booking Cancelled", "Cancelled", device_token="dead-token")

        assert db.query(DeviceToken).filter(DeviceToken.token == "dead-token").count() == 0
        assert db.query(Notification).count() == 1

    @pytest.mark.asyncio
    async def test_one_failing_token_does_not_stop_the_rest(self, db, push):
        add_token(db, "tok-a", 9, "admin")
        add_token(db, "tok-b", 9, "admin")
        add_token(db, "tok-c", 9, "admin")
        push.failing_tokens.add("tok-a")
        dispatcher = NotificationDispatcher(db, push)

        sent = await dispatcher.push_to_active_tokens(ADMIN, "New Booking", "Hello", booking_id=42)

        assert sent == 2
        assert {p["token"] for p in push.sent} == {"tok-b", "tok-c"}
        # A transient failure is not a dead token
        assert db.query(DeviceToken).count() == 3

    @pytest.mark.asyncio
    async def test_only_active_tokens_of_the_identity_are_pushed(self, db, push):
        add_token(db, "active", 9, "admin")
        add_token(db, "inactive", 9, "admin", active=False)
        add_token(db, "customer-9", 9, "customer")
        dispatcher = NotificationDispatcher(db, push)

        sent = await dispatcher.push_to_active_tokens(ADMIN, "Title", "Body")

        assert sent == 1
        assert push.sent[0]["token"] == "active"

    @pytest.mark.asyncio
    async def test_send_push_only_saves_nothing(self, db, push):
        dispatcher = NotificationDispatcher(db, push)

        assert await dispatcher.send_push_only("tok", "Test Push", "Body") is True
        assert db.query(Notification).count() == 0
