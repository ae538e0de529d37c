"""
Retry Payment Use Case

Issues a fresh gateway redirect for a membership whose payment was
abandoned or failed. The membership id never changes.
"""

import logging
from typing import Optional
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.services.payment_gateway import IPaymentGateway, PaymentRequest
from src.app.services.read_cache import ReadThroughCache
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import MembershipStatus
from src.domain.errors import PaymentGatewayError, PersistenceConflictError

from .common import build_audit_event, invalidate_customer, load_tier, select_current
from .dtos import RetryPaymentResponse

logger = logging.getLogger(__name__)


class RetryPaymentUseCase:
    """
    Use case for retrying a membership payment.

    Business Rules:
    - Membership must be PENDING (otherwise NOT_PENDING)
    - Never creates a second membership
    - Without an explicit membership id, the customer's newest pending
      membership is used
    """

    def __init__(self, uow: UnitOfWork, gateway: IPaymentGateway, cache: ReadThroughCache):
        self.uow = uow
        self.gateway = gateway
        self.cache = cache

    async def execute(
        self,
        customer_id: UUID,
        membership_id: Optional[UUID] = None,
        currency: str = "SGD",
        customer_email: Optional[str] = None,
    ) -> Result[RetryPaymentResponse]:
        """
        Execute retry payment use case.

        Args:
            customer_id: Customer UUID from JWT
            membership_id: Optional explicit membership to pay for
            currency: Currency of the payment request
            customer_email: Optional email forwarded to the gateway

        Returns:
            Result with RetryPaymentResponse, or Error
        """
        async with self.uow:
            if membership_id is not None:
                membership = await self.uow.memberships.get_by_id(membership_id)
                if membership is None or membership.customer_id != customer_id:
                    return Return.err(Error("MEMBERSHIP_NOT_FOUND", "Membership not found"))
            else:
                pending = await self.uow.memberships.get_by_customer_id(
                    customer_id, [MembershipStatus.pending]
                )
                membership = select_current(pending, [MembershipStatus.pending])

            if membership is None or membership.status != MembershipStatus.pending:
                return Return.err(
                    Error("NOT_PENDING", "No membership is awaiting payment")
                )

            tier = await load_tier(self.uow, self.cache, membership.tier_id)
            tier_name = tier.display_name if tier else "Membership"

            try:
                redirect = await self.gateway.create_payment(
                    PaymentRequest(
                        membership_id=membership.id,
                        customer_id=customer_id,
                        amount=membership.price,
                        currency=currency,
                        purpose=f"{tier_name} Membership - {membership.billing_cycle.value}",
                        customer_email=customer_email,
                    )
                )
            except PaymentGatewayError as exc:
                return Return.err(Error(exc.code, exc.message))

            previous_request_id = membership.payment_request_id
            membership.payment_request_id = redirect.payment_request_id
            try:
                membership = await self.uow.memberships.update(membership)
            except PersistenceConflictError as exc:
                return Return.err(Error(exc.code, exc.message))

            await self.uow.audit_events.create(
                build_audit_event(
                    membership,
                    "membership_payment_retried",
                    previous_payment_request_id=previous_request_id,
                    payment_request_id=redirect.payment_request_id,
                )
            )

            await self.uow.commit()

        invalidate_customer(self.cache, customer_id)
        logger.info(f"Payment retried for membership {membership.id}")

        return Return.ok(
            RetryPaymentResponse(membership_id=str(membership.id), payment_url=redirect.url)
        )
