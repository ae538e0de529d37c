"""
Change Plan Use Case

Starts an upgrade or downgrade: a replacement membership is created
PENDING and paid through the gateway. The current membership keeps full
access until the replacement's payment is confirmed.
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
from src.domain.errors import PaymentGatewayError, PersistenceConflictError
from src.domain.services.membership_lifecycle import get_effective_status

from .common import build_audit_event, invalidate_customer, load_tier, select_current
from .dtos import ChangePlanResponse, MembershipResponse

logger = logging.getLogger(__name__)


class ChangePlanUseCase:
    """
    Use case for changing a customer's membership plan.

    Business Rules:
    - Current membership must be ACTIVE (otherwise NOT_ACTIVE)
    - New tier must exist and be active
    - The current membership is not touched here; it is expired when the
      replacement's payment is confirmed, so coverage never lapses and two
      ACTIVE memberships never coexist
    - Requesting the same tier and cycle again while a replacement is pending
      re-issues its payment; a different plan while one is pending fails with
      ALREADY_SUBSCRIBED
    """

    def __init__(self, uow: UnitOfWork, gateway: IPaymentGateway, cache: ReadThroughCache):
        self.uow = uow
        self.gateway = gateway
        self.cache = cache

    async def execute(
        self,
        customer_id: UUID,
        new_tier_id: UUID,
        billing_cycle: BillingCycle,
        membership_id: Optional[UUID] = None,
        currency: str = "SGD",
        customer_email: Optional[str] = None,
    ) -> Result[ChangePlanResponse]:
        """
        Execute change plan use case.

        Args:
            customer_id: Customer UUID from JWT
            new_tier_id: Tier to move to
            billing_cycle: Billing cycle of the new plan
            membership_id: Optional explicit current membership
            currency: Currency of the payment request
            customer_email: Optional email forwarded to the gateway

        Returns:
            Result with ChangePlanResponse (pending replacement + payment URL), or Error
        """
        async with self.uow:
            if membership_id is not None:
                current = await self.uow.memberships.get_by_id(membership_id)
                if current is None or current.customer_id != customer_id:
                    return Return.err(Error("MEMBERSHIP_NOT_FOUND", "Membership not found"))
            else:
                active = await self.uow.memberships.get_by_customer_id(
                    customer_id, [MembershipStatus.active]
                )
                current = select_current(active, [MembershipStatus.active])

            if current is None or current.status != MembershipStatus.active:
                return Return.err(
                    Error("NOT_ACTIVE", "Only an active membership can change plan")
                )

            new_tier = await load_tier(self.uow, self.cache, new_tier_id)
            if new_tier is None or not new_tier.is_active:
                return Return.err(Error("TIER_NOT_FOUND", "Membership tier not found"))

            replacement = await self.uow.memberships.get_pending_replacement(current.id)
            if replacement is not None and (
                replacement.tier_id != new_tier.id or replacement.billing_cycle != billing_cycle
            ):
                return Return.err(
                    Error(
                        "ALREADY_SUBSCRIBED",
                        "Another plan change is already awaiting payment",
                    )
                )

            if replacement is None:
                replacement = await self.uow.memberships.create(
                    Membership(
                        customer_id=customer_id,
                        tier_id=new_tier.id,
                        status=MembershipStatus.pending,
                        billing_cycle=billing_cycle,
                        price=new_tier.price_for(billing_cycle),
                        replaces_membership_id=current.id,
                    )
                )

            try:
                redirect = await self.gateway.create_payment(
                    PaymentRequest(
                        membership_id=replacement.id,
                        customer_id=customer_id,
                        amount=replacement.price,
                        currency=currency,
                        purpose=f"{new_tier.display_name} Membership - {billing_cycle.value} (Plan Change)",
                        customer_email=customer_email,
                    )
                )
            except PaymentGatewayError as exc:
                return Return.err(Error(exc.code, exc.message))

            replacement.payment_request_id = redirect.payment_request_id
            try:
                replacement = await self.uow.memberships.update(replacement)
            except PersistenceConflictError as exc:
                return Return.err(Error(exc.code, exc.message))

            await self.uow.audit_events.create(
                build_audit_event(
                    replacement,
                    "membership_plan_change_requested",
                    current_membership_id=current.id,
                    tier=new_tier.code,
                    billing_cycle=billing_cycle,
                    price=replacement.price,
                    payment_request_id=redirect.payment_request_id,
                )
            )

            await self.uow.commit()

        invalidate_customer(self.cache, customer_id)
        logger.info(
            f"Plan change to {new_tier.code.value} requested for membership {current.id} "
            f"(replacement {replacement.id})"
        )

        effective = get_effective_status(replacement, datetime.now(UTC))
        return Return.ok(
            ChangePlanResponse(
                membership=MembershipResponse.from_entity(replacement, effective, new_tier),
                current_membership_id=str(current.id),
                payment_url=redirect.url,
            )
        )
