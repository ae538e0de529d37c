"""
Handle Payment Webhook Use Case

Processes the gateway's signed payment status callback. Deliveries are
at-least-once, so every branch is safe to replay.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from src.libs.result import Error, Result, Return
from src.app.services.payment_gateway import IPaymentGateway
from src.app.services.read_cache import ReadThroughCache
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import MembershipStatus, PaymentStatus
from src.domain.errors import InvalidSignatureError

from .common import build_audit_event
from .confirm_payment_use_case import ConfirmPaymentUseCase
from .dtos import PaymentWebhookResponse

logger = logging.getLogger(__name__)


class HandlePaymentWebhookUseCase:
    """
    Use case for gateway payment notifications.

    Business Rules:
    - Payload signature must verify (INVALID_SIGNATURE otherwise)
    - completed: confirm the membership's payment (idempotent)
    - failed / cancelled: membership stays PENDING, the attempt is audited,
      the customer can retry payment
    - pending or any status not handled here: acknowledged and ignored
    """

    def __init__(self, uow: UnitOfWork, gateway: IPaymentGateway, cache: ReadThroughCache):
        self.uow = uow
        self.gateway = gateway
        self.cache = cache

    async def execute(
        self, payload: Dict[str, Any], now: Optional[datetime] = None
    ) -> Result[PaymentWebhookResponse]:
        try:
            notification = self.gateway.parse_notification(payload)
        except InvalidSignatureError as exc:
            logger.warning(f"Rejected payment webhook: {exc.message}")
            return Return.err(Error(exc.code, exc.message))

        payment_status = notification.payment_status

        async with self.uow:
            membership = None
            if notification.membership_id is not None:
                membership = await self.uow.memberships.get_by_id(notification.membership_id)
            if membership is None and notification.payment_request_id:
                membership = await self.uow.memberships.get_by_payment_request_id(
                    notification.payment_request_id
                )
            if membership is None:
                logger.warning(
                    f"Payment webhook for unknown membership "
                    f"(reference {notification.reference_number}, "
                    f"request {notification.payment_request_id})"
                )
                return Return.err(Error("MEMBERSHIP_NOT_FOUND", "Membership not found"))

            membership_id = membership.id

            if payment_status in (PaymentStatus.failed, PaymentStatus.cancelled):
                await self.uow.audit_events.create(
                    build_audit_event(
                        membership,
                        f"membership_payment_{payment_status.value}",
                        payment_request_id=notification.payment_request_id,
                        transaction_id=notification.transaction_id,
                        membership_status=membership.status,
                    )
                )
                await self.uow.commit()
                logger.info(
                    f"Payment {payment_status.value} for membership {membership_id}, "
                    f"membership stays {membership.status.value}"
                )
                return Return.ok(
                    PaymentWebhookResponse(
                        status=f"payment_{payment_status.value}",
                        membership_id=str(membership_id),
                    )
                )

            if payment_status != PaymentStatus.completed:
                logger.info(
                    f"Ignoring payment status '{notification.status}' for membership {membership_id}"
                )
                return Return.ok(
                    PaymentWebhookResponse(status="ignored", membership_id=str(membership_id))
                )

            already_confirmed = (
                membership.status != MembershipStatus.pending
                and membership.gateway_transaction_id == notification.transaction_id
            )

        result = await ConfirmPaymentUseCase(self.uow, self.cache).execute(
            membership_id, notification.transaction_id, now=now
        )
        if result.is_err():
            return Return.err(result.error)

        return Return.ok(
            PaymentWebhookResponse(
                status="already_processed" if already_confirmed else "confirmed",
                membership_id=str(membership_id),
            )
        )
