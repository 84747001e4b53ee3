"""Payment service - GCash payment creation and status polling"""

import logging
from typing import Optional

from fastapi import HTTPException

from ...services.payment_service import PaymentNotConfiguredError, PaymentProviderError, PayMongoClient
from .schemas import GCashPaymentCreate

logger = logging.getLogger(__name__)


class PaymentService:
    """Service layer for payment business logic"""

    def __init__(self, client: PayMongoClient):
        self.client = client

    async def create_gcash_payment(self, data: GCashPaymentCreate) -> dict:
        if not data.amount or not data.description or not data.customerInfo:
            raise HTTPException(status_code=400, detail="Amount, description and customerInfo required")
        if data.amount <= 0:
            raise HTTPException(status_code=400, detail="Invalid amount")

        customer = data.customerInfo
        if not customer.name or not customer.email or not customer.phone:
            raise HTTPException(status_code=400, detail="Incomplete customer info")

        try:
            return await self.client.create_gcash_payment(
                data.amount, data.description, customer.model_dump(), data.bookingId
            )
        except PaymentNotConfiguredError as e:
            logger.warning("⚠️ GCash payment requested but PayMongo is not configured")
            raise HTTPException(status_code=503, detail=str(e)) from e
        except PaymentProviderError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

    async def get_payment_status(self, payment_intent_id: Optional[str]) -> dict:
        if not (payment_intent_id or "").strip():
            raise HTTPException(status_code=400, detail="paymentIntentId required")
        try:
            return await self.client.get_payment_status(payment_intent_id.strip())
        except PaymentNotConfiguredError as e:
            raise HTTPException(status_code=503, detail=str(e)) from e
        except PaymentProviderError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
