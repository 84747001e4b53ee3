"""
Shared fixtures: in-memory database, fake push provider, fake transports.

Run: python -m pytest tests -v
"""

import os
from datetime import datetime

# Must be set before laundry_app.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.pop("FIREBASE_CREDENTIALS_PATH", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from laundry_app.database import Base, get_db
from laundry_app.main import app
from laundry_app.models import Booking, Customer, Delivery, DeviceToken, Service, Shop
from laundry_app.realtime import RealtimeHub
from laundry_app.services.push_service import InvalidDeviceTokenError, PushDeliveryError

ADMIN_ID = 9
SHOP_ID = 5
CUSTOMER_ID = 1
SERVICE_ID = 3
BOOKING_ID = 42
DELIVERY_ID = 7

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakePushProvider:
    """Records every send; tokens can be marked dead or failing"""

    def __init__(self):
        self.sent = []
        self.dead_tokens = set()
        self.failing_tokens = set()

    def is_available(self) -> bool:
        return True

    async def send(self, token, title, body, data=None):
        if token in self.dead_tokens:
            raise InvalidDeviceTokenError("Requested entity was not found.")
        if token in self.failing_tokens:
            raise PushDeliveryError("FCM unavailable")
        self.sent.append({"token": token, "title": title, "body": body, "data": data or {}})
        return True


class FakeTransport:
    """Collects frames sent to a Connection"""

    def __init__(self, fail: bool = False):
        self.frames = []
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket closed")
        self.frames.append(data)

    def events(self, name=None):
        return [f for f in self.frames if name is None or f["event"] == name]


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def push():
    return FakePushProvider()


@pytest.fixture
def hub():
    return RealtimeHub()


@pytest.fixture
def client(db, push, hub):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        app.state.session_factory = TestingSessionLocal
        app.state.realtime = hub
        app.state.push_provider = push
        yield test_client
    app.dependency_overrides.clear()


def seed(db, booking_status="pending", booking_type="pickup", with_delivery=False):
    """Customer 1 books shop 5 (admin 9) for service 3 as booking 42"""
    db.add(Customer(customer_id=CUSTOMER_ID, first_name="Maria", last_name="Santos"))
    db.add(Shop(shop_id=SHOP_ID, admin_id=ADMIN_ID, name="Fresh Wash"))
    db.add(Service(service_id=SERVICE_ID, shop_id=SHOP_ID, offers="Wash & Fold", price=150.0))
    db.add(
        Booking(
            booking_id=BOOKING_ID,
            booking_type=booking_type,
            booking_date=datetime(2026, 3, 5, 10, 0),
            status=booking_status,
            total_amount=300.0,
            shop_id=SHOP_ID,
            service_id=SERVICE_ID,
            customer_id=CUSTOMER_ID,
        )
    )
    if with_delivery:
        db.add(
            Delivery(
                delivery_id=DELIVERY_ID,
                pickup_address="12 Mabini St",
                delivery_address="12 Mabini St",
                status="confirmed",
                booking_id=BOOKING_ID,
                customer_id=CUSTOMER_ID,
                shop_id=SHOP_ID,
                service_id=SERVICE_ID,
            )
        )
    db.commit()


def add_token(db, token, account_id, account_type, active=True):
    db.add(DeviceToken(account_id=account_id, account_type=account_type, token=token, is_active=active))
    db.commit()


def join(ws, account_id, account_type):
    """Send join and wait for the server's ack"""
    ws.send_json({"event": "join", "data": {"accountId": account_id, "accountType": account_type}})
    ack = ws.receive_json()
    assert ack["event"] == "joined"
    return ack
