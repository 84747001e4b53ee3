"""Payment router - GCash payments via PayMongo"""

import logging

from fastapi import APIRouter, Depends

from ...services.payment_service import PayMongoClient, get_payment_client
from .schemas import GCashPaymentCreate
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(client: PayMongoClient = Depends(get_payment_client)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(client)


@router.post("/gcash")
async def create_gcash_payment(
    data: GCashPaymentCreate,
    service: PaymentService = Depends(get_payment_service),
):
    """Start a GCash payment; the app opens redirectUrl and then polls the status"""
    result = await service.create_gcash_payment(data)
    return {"success": True, "data": result, "message": "GCash payment created"}


@router.get("/status/{payment_intent_id}")
async def check_payment_status(
    payment_intent_id: str,
    service: PaymentService = Depends(get_payment_service),
):
    result = await service.get_payment_status(payment_intent_id)
    return {"success": True, "status": result["status"], "data": result["data"]}
