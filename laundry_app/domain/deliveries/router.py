"""Delivery router - FastAPI endpoints for delivery operations"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...realtime import get_broadcaster
from ...realtime.broadcaster import EventBroadcaster
from ...services.notification_service import NotificationDispatcher, get_push_provider
from .schemas import DeliveryCreate, DeliveryResponse, DeliveryStatusUpdate
from .service import DeliveryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/delivery", tags=["Delivery"])


def get_delivery_service(
    db: Session = Depends(get_db),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
    push_provider=Depends(get_push_provider),
) -> DeliveryService:
    """Dependency injection for DeliveryService"""
    return DeliveryService(db, broadcaster, NotificationDispatcher(db, push_provider))


def _to_response(d) -> DeliveryResponse:
    return DeliveryResponse(
        deliveryId=d.delivery_id,
        bookingId=d.booking_id,
        customerId=d.customer_id,
        shopId=d.shop_id,
        serviceId=d.service_id,
        pickupAddress=d.pickup_address,
        deliveryAddress=d.delivery_address,
        deliveryTime=d.delivery_time,
        status=d.status,
    )


@router.post("", response_model=DeliveryResponse, status_code=201)
async def create_delivery(
    data: DeliveryCreate,
    service: DeliveryService = Depends(get_delivery_service),
):
    """Create a delivery for a booking"""
    return _to_response(await service.create_delivery(data))


@router.get("/{delivery_id}", response_model=DeliveryResponse)
async def get_delivery(
    delivery_id: int,
    service: DeliveryService = Depends(get_delivery_service),
):
    return _to_response(service.get_delivery(delivery_id))


@router.patch("/{delivery_id}/status")
async def update_delivery_status(
    delivery_id: int,
    data: DeliveryStatusUpdate,
    service: DeliveryService = Depends(get_delivery_service),
):
    """Update delivery status and sync the linked booking"""
    return await service.update_status(delivery_id, data.status)
