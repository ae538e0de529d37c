"""
Subscribe Use Case

Creates a pending membership and the gateway payment the customer is
redirected to. The membership becomes active only once the payment is
confirmed.
"""

import logging
from datetime import UTC, datetime
from typing import Optional
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.services.payment_gateway import IPaymentGateway, PaymentRequest
from src.app.services.read_cache import ReadThroughCache
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import BillingCycle, Membership, MembershipStatus
from src.domain.errors import PaymentGatewayError
from src.domain.services.membership_lifecycle import get_effective_status

from .common import build_audit_event, invalidate_customer, load_tier
from .dtos import MembershipResponse, SubscribeResponse

logger = logging.getLogger(__name__)


class SubscribeUseCase:
    """
    Use case for subscribing a customer to a membership tier.

    Business Rules:
    - Tier must exist and be active
    - Customer must not already have an ACTIVE or PENDING membership
    - Membership is created PENDING with the price of the chosen cycle
    - A gateway failure rolls back the new membership
    """

    def __init__(self, uow: UnitOfWork, gateway: IPaymentGateway, cache: ReadThroughCache):
        self.uow = uow
        self.gateway = gateway
        self.cache = cache

    async def execute(
        self,
        customer_id: UUID,
        tier_id: UUID,
        billing_cycle: BillingCycle,
        currency: str = "SGD",
        customer_email: Optional[str] = None,
    ) -> Result[SubscribeResponse]:
        """
        Execute subscribe use case.

        Args:
            customer_id: Customer UUID from JWT
            tier_id: Tier to subscribe to
            billing_cycle: monthly or yearly
            currency: Currency of the payment request
            customer_email: Optional email forwarded to the gateway

        Returns:
            Result with SubscribeResponse (pending membership + payment URL), or Error
        """
        async with self.uow:
            tier = await load_tier(self.uow, self.cache, tier_id)
            if tier is None or not tier.is_active:
                return Return.err(Error("TIER_NOT_FOUND", "Membership tier not found"))

            existing = await self.uow.memberships.get_by_customer_id(
                customer_id, [MembershipStatus.active, MembershipStatus.pending]
            )
            if existing:
                return Return.err(
                    Error(
                        "ALREADY_SUBSCRIBED",
                        "Customer already has an active or pending membership",
                    )
                )

            membership = Membership(
                customer_id=customer_id,
                tier_id=tier.id,
                status=MembershipStatus.pending,
                billing_cycle=billing_cycle,
                price=tier.price_for(billing_cycle),
            )
            membership = await self.uow.memberships.create(membership)

            try:
                redirect = await self.gateway.create_payment(
                    PaymentRequest(
                        membership_id=membership.id,
                        customer_id=customer_id,
                        amount=membership.price,
                        currency=currency,
                        purpose=f"{tier.display_name} Membership - {billing_cycle.value}",
                        customer_email=customer_email,
                    )
                )
            except PaymentGatewayError as exc:
                return Return.err(Error(exc.code, exc.message))

            membership.payment_request_id = redirect.payment_request_id
            membership = await self.uow.memberships.update(membership)

            await self.uow.audit_events.create(
                build_audit_event(
                    membership,
                    "membership_subscribed",
                    tier=tier.code,
                    billing_cycle=billing_cycle,
                    price=membership.price,
                    payment_request_id=redirect.payment_request_id,
                )
            )

            await self.uow.commit()

        invalidate_customer(self.cache, customer_id)
        logger.info(f"Customer {customer_id} subscribed to {tier.code.value} (membership {membership.id})")

        effective = get_effective_status(membership, datetime.now(UTC))
        return Return.ok(
            SubscribeResponse(
                membership=MembershipResponse.from_entity(membership, effective, tier),
                payment_url=redirect.url,
            )
        )
