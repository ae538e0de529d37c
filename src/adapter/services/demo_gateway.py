"""
Demo payment gateway.

Issues local checkout URLs instead of calling a real provider, so the full
membership flow can be exercised without gateway credentials. Notifications
use the same signature scheme as HitPay.
"""

import logging
from typing import Any, Dict
from urllib.parse import urlencode
from uuid import uuid4

from pydantic import ValidationError

from src.adapter.services.signature import verify_payload
from src.app.services.payment_gateway import (
    IPaymentGateway,
    PaymentNotification,
    PaymentRedirect,
    PaymentRequest,
    membership_reference,
)
from src.domain.errors import InvalidSignatureError

logger = logging.getLogger(__name__)


class DemoPaymentGateway(IPaymentGateway):
    """In-process gateway used for local development and tests"""

    def __init__(self, frontend_url: str, salt: str):
        self.frontend_url = frontend_url.rstrip("/")
        self.salt = salt

    async def create_payment(self, request: PaymentRequest) -> PaymentRedirect:
        payment_request_id = f"demo_payment_req_{uuid4().hex}"
        query = urlencode(
            {
                "payment_request_id": payment_request_id,
                "reference_number": membership_reference(request.membership_id),
                "amount": f"{request.amount:.2f}",
                "currency": request.currency,
            }
        )
        logger.info(f"Demo payment {payment_request_id} created for membership {request.membership_id}")
        return PaymentRedirect(
            payment_request_id=payment_request_id,
            url=f"{self.frontend_url}/membership/demo-payment?{query}",
        )

    def parse_notification(self, payload: Dict[str, Any]) -> PaymentNotification:
        if not verify_payload(payload, self.salt, payload.get("hmac")):
            raise InvalidSignatureError("Invalid payment notification signature")
        try:
            return PaymentNotification(**payload)
        except ValidationError as exc:
            raise InvalidSignatureError("Malformed payment notification") from exc
