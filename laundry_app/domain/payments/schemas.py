"""Payment domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel


class CustomerInfo(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class GCashPaymentCreate(BaseModel):
    """Schema for starting a GCash payment"""

    amount: Optional[float] = None
    description: Optional[str] = None
    customerInfo: Optional[CustomerInfo] = None
    bookingId: Optional[int] = None
