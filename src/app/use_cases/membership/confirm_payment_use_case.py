"""
Confirm Payment Use Case

Activates a pending membership once the gateway reports the payment as
completed. Called from the gateway webhook and from admin reconciliation,
so it must tolerate duplicate deliveries.
"""

import logging
from datetime import UTC, datetime
from typing import Optional
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.services.read_cache import ReadThroughCache
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import MembershipStatus
from src.domain.errors import InvalidStateTransitionError, PersistenceConflictError
from src.domain.services import membership_lifecycle as lifecycle

from .common import build_audit_event, invalidate_customer, load_tier
from .dtos import ConfirmPaymentResponse, MembershipResponse

logger = logging.getLogger(__name__)


class ConfirmPaymentUseCase:
    """
    Use case for confirming a membership payment.

    Business Rules:
    - Idempotent on (membership id, gateway transaction id): a replay of the
      recorded transaction returns the membership unchanged
    - Only PENDING memberships can be activated
    - Activation expires the membership being replaced (plan change) and any
      other cancelled membership of the customer, in the same transaction,
      before the new membership becomes ACTIVE
    """

    def __init__(self, uow: UnitOfWork, cache: ReadThroughCache):
        self.uow = uow
        self.cache = cache

    async def execute(
        self,
        membership_id: UUID,
        transaction_id: str,
        now: Optional[datetime] = None,
    ) -> Result[ConfirmPaymentResponse]:
        """
        Execute confirm payment use case.

        Args:
            membership_id: Membership the payment belongs to
            transaction_id: Gateway transaction (payment) id
            now: Confirmation time, defaults to current UTC time

        Returns:
            Result with ConfirmPaymentResponse, or Error
        """
        now = now or datetime.now(UTC)
        replaced_id = None

        async with self.uow:
            membership = await self.uow.memberships.get_by_id(membership_id)
            if membership is None:
                return Return.err(Error("MEMBERSHIP_NOT_FOUND", "Membership not found"))

            tier = await load_tier(self.uow, self.cache, membership.tier_id)

            if (
                membership.status != MembershipStatus.pending
                and membership.gateway_transaction_id == transaction_id
            ):
                logger.info(
                    f"Duplicate confirmation {transaction_id} for membership {membership_id} ignored"
                )
                effective = lifecycle.get_effective_status(membership, now)
                return Return.ok(
                    ConfirmPaymentResponse(
                        membership=MembershipResponse.from_entity(membership, effective, tier),
                        replaced_membership_id=(
                            str(membership.replaces_membership_id)
                            if membership.replaces_membership_id
                            else None
                        ),
                    )
                )

            if membership.status != MembershipStatus.pending:
                return Return.err(
                    Error(
                        "INVALID_STATE_TRANSITION",
                        f"Cannot confirm payment for a {membership.status.value} membership",
                    )
                )

            try:
                # Expire whatever this membership supersedes before activating it
                others = await self.uow.memberships.get_by_customer_id(
                    membership.customer_id,
                    [MembershipStatus.active, MembershipStatus.cancelled],
                )
                for other in others:
                    if other.id == membership.id:
                        continue
                    is_replaced = other.id == membership.replaces_membership_id
                    reason = "Replaced by plan change" if is_replaced else "Superseded by new membership"
                    lifecycle.expire(other, now, reason)
                    await self.uow.memberships.update(other)
                    await self.uow.audit_events.create(
                        build_audit_event(
                            other,
                            "membership_expired",
                            reason=reason,
                            replaced_by=membership.id,
                        )
                    )
                    if is_replaced:
                        replaced_id = str(other.id)

                lifecycle.activate(membership, transaction_id, now)
                membership = await self.uow.memberships.update(membership)
            except InvalidStateTransitionError as exc:
                return Return.err(Error(exc.code, exc.message))
            except PersistenceConflictError as exc:
                return Return.err(Error(exc.code, exc.message))

            await self.uow.audit_events.create(
                build_audit_event(
                    membership,
                    "membership_activated",
                    transaction_id=transaction_id,
                    next_billing_date=membership.next_billing_date,
                    replaced_membership_id=replaced_id,
                )
            )

            await self.uow.commit()

        invalidate_customer(self.cache, membership.customer_id)
        logger.info(f"Membership {membership_id} activated by transaction {transaction_id}")

        effective = lifecycle.get_effective_status(membership, now)
        return Return.ok(
            ConfirmPaymentResponse(
                membership=MembershipResponse.from_entity(membership, effective, tier),
                replaced_membership_id=replaced_id,
            )
        )
