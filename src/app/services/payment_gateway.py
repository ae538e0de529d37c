from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel

from src.domain.entities import PaymentStatus

REFERENCE_PREFIX = "membership_"


def membership_reference(membership_id: UUID) -> str:
    """Reference number sent to the gateway and echoed back in notifications"""
    return f"{REFERENCE_PREFIX}{membership_id}"


def parse_membership_reference(reference: Optional[str]) -> Optional[UUID]:
    if not reference or not reference.startswith(REFERENCE_PREFIX):
        return None
    try:
        return UUID(reference[len(REFERENCE_PREFIX):])
    except ValueError:
        return None


class PaymentRequest(BaseModel):
    """Payment the customer is redirected to the gateway to complete"""

    membership_id: UUID
    customer_id: UUID
    amount: Decimal
    currency: str
    purpose: str
    customer_email: Optional[str] = None


class PaymentRedirect(BaseModel):
    """Gateway-side payment request and the URL the customer is sent to"""

    payment_request_id: str
    url: str


class PaymentNotification(BaseModel):
    """Verified payment status callback from the gateway"""

    payment_id: Optional[str] = None
    payment_request_id: Optional[str] = None
    reference_number: Optional[str] = None
    # Kept as sent; statuses this service does not act on are acknowledged
    status: str
    amount: Optional[str] = None
    currency: Optional[str] = None

    @property
    def payment_status(self) -> Optional[PaymentStatus]:
        try:
            return PaymentStatus(self.status)
        except ValueError:
            return None

    @property
    def membership_id(self) -> Optional[UUID]:
        return parse_membership_reference(self.reference_number)

    @property
    def transaction_id(self) -> Optional[str]:
        return self.payment_id or self.payment_request_id


class IPaymentGateway(ABC):
    """
    Redirect-based payment gateway collaborator.

    The gateway is opaque: this service only creates a payment and gets a
    redirect URL back, then later receives a signed status notification.
    """

    @abstractmethod
    async def create_payment(self, request: PaymentRequest) -> PaymentRedirect:
        """
        Create a payment request and return the redirect URL.

        Raises:
            PaymentGatewayUnavailableError: gateway unreachable after retries
            PaymentRejectedError: gateway refused the request
        """
        pass

    @abstractmethod
    def parse_notification(self, payload: Dict[str, Any]) -> PaymentNotification:
        """
        Verify and parse a status notification.

        Raises:
            InvalidSignatureError: signature missing or wrong
        """
        pass

    async def close(self):
        """Release network resources held by the gateway"""
        pass
