"""
HitPay payment gateway adapter.

Creates one-off payment requests (POST /payment-requests) and verifies the
webhook notifications HitPay posts back once the customer pays.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from src.adapter.services.signature import verify_payload
from src.app.services.payment_gateway import (
    IPaymentGateway,
    PaymentNotification,
    PaymentRedirect,
    PaymentRequest,
    membership_reference,
)
from src.domain.errors import (
    InvalidSignatureError,
    PaymentGatewayUnavailableError,
    PaymentRejectedError,
)

logger = logging.getLogger(__name__)


def _is_transient(exc: BaseException) -> bool:
    """Network failures and 5xx responses are retried, 4xx are not"""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


class HitPayGateway(IPaymentGateway):
    """HitPay implementation of the payment gateway collaborator"""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        salt: str,
        redirect_url: str,
        webhook_url: Optional[str] = None,
        timeout: float = 10.0,
        max_attempts: int = 3,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.salt = salt
        self.redirect_url = redirect_url
        self.webhook_url = webhook_url
        self.max_attempts = max_attempts
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def _build_form(self, request: PaymentRequest) -> Dict[str, str]:
        form = {
            "amount": f"{request.amount:.2f}",
            "currency": request.currency,
            "reference_number": membership_reference(request.membership_id),
            "purpose": request.purpose,
            "redirect_url": self.redirect_url,
        }
        if request.customer_email:
            form["email"] = request.customer_email
        if self.webhook_url:
            form["webhook"] = self.webhook_url
        return form

    async def _post_payment_request(self, form: Dict[str, str]) -> httpx.Response:
        response = await self._client.post(
            f"{self.base_url}/payment-requests",
            data=form,
            headers={
                "X-BUSINESS-API-KEY": self.api_key,
                "X-Requested-With": "XMLHttpRequest",
            },
        )
        response.raise_for_status()
        return response

    async def create_payment(self, request: PaymentRequest) -> PaymentRedirect:
        form = self._build_form(request)

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
                retry=retry_if_exception(_is_transient),
                reraise=False,
            ):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.warning(
                            f"Retrying HitPay payment request for membership "
                            f"{request.membership_id} (attempt {attempt.retry_state.attempt_number})"
                        )
                    response = await self._post_payment_request(form)
        except RetryError as exc:
            logger.error(f"HitPay unreachable for membership {request.membership_id}")
            raise PaymentGatewayUnavailableError(
                "Payment gateway is temporarily unavailable"
            ) from exc
        except httpx.HTTPStatusError as exc:
            logger.error(
                f"HitPay rejected payment request: {exc.response.status_code} {exc.response.text}"
            )
            raise PaymentRejectedError(
                f"Payment gateway rejected the request ({exc.response.status_code})"
            ) from exc

        data = response.json()
        logger.info(
            f"HitPay payment request {data.get('id')} created for membership {request.membership_id}"
        )
        return PaymentRedirect(payment_request_id=data["id"], url=data["url"])

    def parse_notification(self, payload: Dict[str, Any]) -> PaymentNotification:
        if not verify_payload(payload, self.salt, payload.get("hmac")):
            raise InvalidSignatureError("Invalid payment notification signature")
        try:
            return PaymentNotification(**payload)
        except ValidationError as exc:
            raise InvalidSignatureError("Malformed payment notification") from exc

    async def close(self):
        await self._client.aclose()
