"""
PayMongo client for GCash payments

Flow (payment intents API):
1. create a payment intent with the secret key
2. create a GCash payment method with the public key
3. attach the method to the intent; the response carries the redirect URL

Clients poll the intent status until it leaves "awaiting_next_action"/"processing".
"""

import logging
from typing import Any, Optional

import httpx
from fastapi import Request

from ..config import (
    PAYMENT_TIMEOUT_SECONDS,
    PAYMONGO_API_URL,
    PAYMONGO_PUBLIC_KEY,
    PAYMONGO_SECRET_KEY,
    PAYMONGO_SUCCESS_URL,
)

logger = logging.getLogger(__name__)

STATEMENT_DESCRIPTOR = "LAUNDRY"
CURRENCY = "PHP"


class PaymentProviderError(Exception):
    """PayMongo rejected the request, timed out or returned something unusable"""


class PaymentNotConfiguredError(PaymentProviderError):
    pass


def _error_detail(response: httpx.Response) -> str:
    try:
        errors = response.json().get("errors") or []
        if errors and errors[0].get("detail"):
            return errors[0]["detail"]
    except ValueError:
        pass
    return f"PayMongo API error ({response.status_code})"


class PayMongoClient:
    def __init__(
        self,
        secret_key: Optional[str] = PAYMONGO_SECRET_KEY,
        public_key: Optional[str] = PAYMONGO_PUBLIC_KEY,
        base_url: str = PAYMONGO_API_URL,
        timeout: float = PAYMENT_TIMEOUT_SECONDS,
        return_url: str = PAYMONGO_SUCCESS_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret_key = secret_key or ""
        self.public_key = public_key or ""
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.return_url = return_url
        self.transport = transport

    def is_configured(self) -> bool:
        return bool(self.secret_key and self.public_key)

    async def _request(self, method: str, path: str, key: str, payload: Optional[dict] = None) -> dict:
        if not self.is_configured():
            raise PaymentNotConfiguredError("PayMongo keys not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as http_client:
                response = await http_client.request(
                    method,
                    f"{self.base_url}{path}",
                    json=payload,
                    auth=(key, ""),
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TimeoutException as e:
            logger.error(f"❌ PayMongo {method} {path} timed out after {self.timeout}s")
            raise PaymentProviderError("Payment provider timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"❌ PayMongo {method} {path} failed: {e}")
            raise PaymentProviderError("Payment provider unreachable") from e

        if response.status_code not in (200, 201):
            detail = _error_detail(response)
            logger.error(f"❌ PayMongo {method} {path} → {response.status_code}: {detail}")
            raise PaymentProviderError(detail)

        try:
            data = response.json().get("data")
        except ValueError:
            data = None
        if not data or not data.get("id"):
            logger.error(f"❌ Invalid response from PayMongo for {method} {path}: {response.text}")
            raise PaymentProviderError("Invalid response from PayMongo")
        return data

    async def create_gcash_payment(
        self, amount: float, description: str, customer_info: dict, booking_id: Optional[int] = None
    ) -> dict[str, Any]:
        """Create and attach a GCash payment; returns what the app needs to redirect"""
        centavos = int(round(amount * 100))

        intent = await self._request(
            "POST",
            "/payment_intents",
            self.secret_key,
            {
                "data": {
                    "attributes": {
                        "amount": centavos,
                        "payment_method_allowed": ["gcash"],
                        "currency": CURRENCY,
                        "description": description,
                        "statement_descriptor": STATEMENT_DESCRIPTOR,
                        "metadata": {
                            "customer_name": customer_info.get("name"),
                            "customer_email": customer_info.get("email"),
                            "customer_phone": customer_info.get("phone"),
                            "booking_id": str(booking_id) if booking_id else "",
                        },
                    }
                }
            },
        )

        method = await self._request(
            "POST",
            "/payment_methods",
            self.public_key,
            {
                "data": {
                    "attributes": {
                        "type": "gcash",
                        "billing": {
                            "name": customer_info.get("name"),
                            "email": customer_info.get("email"),
                            "phone": customer_info.get("phone"),
                        },
                    }
                }
            },
        )

        attached = await self._request(
            "POST",
            f"/payment_intents/{intent['id']}/attach",
            self.secret_key,
            {"data": {"attributes": {"payment_method": method["id"], "return_url": self.return_url}}},
        )
        attrs = attached.get("attributes") or {}
        redirect = (attrs.get("next_action") or {}).get("redirect") or {}

        logger.info(f"💳 GCash payment intent {intent['id']} created ({centavos} centavos)")
        return {
            "paymentIntentId": intent["id"],
            "paymentMethodId": method["id"],
            "redirectUrl": redirect.get("url") or "",
            "clientKey": attrs.get("client_key"),
            "status": attrs.get("status"),
            "amount": centavos,
            "currency": CURRENCY,
        }

    async def get_payment_status(self, payment_intent_id: str) -> dict[str, Any]:
        intent = await self._request("GET", f"/payment_intents/{payment_intent_id}", self.secret_key)
        return {"status": (intent.get("attributes") or {}).get("status"), "data": intent}


def get_payment_client(request: Request) -> PayMongoClient:
    """Dependency injection for the process-wide PayMongo client"""
    return request.app.state.payment_client
