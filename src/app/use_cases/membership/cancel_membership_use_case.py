"""
Cancel Membership Use Case

Ends a membership either at the end of the paid period or immediately.
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

from .common import build_audit_event, invalidate_customer, load_tier, select_current
from .dtos import CancelMembershipResponse, MembershipResponse

logger = logging.getLogger(__name__)


class CancelMembershipUseCase:
    """
    Use case for cancelling a membership.

    Business Rules:
    - ACTIVE + immediate=False: CANCELLED, access continues until the
      next billing date, auto-renew off
    - ACTIVE + immediate=True: EXPIRED now
    - CANCELLED within grace + immediate=True: EXPIRED now (ends grace early)
    - Everything else (PENDING, CANCELLED again, EXPIRED): INVALID_STATE_TRANSITION
    - No refunds are issued
    """

    def __init__(self, uow: UnitOfWork, cache: ReadThroughCache):
        self.uow = uow
        self.cache = cache

    async def execute(
        self,
        customer_id: UUID,
        immediate: bool = False,
        membership_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> Result[CancelMembershipResponse]:
        """
        Execute cancel membership use case.

        Args:
            customer_id: Customer UUID from JWT
            immediate: Revoke access now instead of at period end
            membership_id: Optional explicit membership, defaults to the current one
            now: Cancellation time, defaults to current UTC time

        Returns:
            Result with CancelMembershipResponse, or Error
        """
        now = now or datetime.now(UTC)

        async with self.uow:
            if membership_id is not None:
                membership = await self.uow.memberships.get_by_id(membership_id)
                if membership is None or membership.customer_id != customer_id:
                    return Return.err(Error("MEMBERSHIP_NOT_FOUND", "Membership not found"))
            else:
                memberships = await self.uow.memberships.get_by_customer_id(customer_id)
                membership = select_current(memberships, now=now)
                if membership is None:
                    return Return.err(
                        Error("MEMBERSHIP_NOT_FOUND", "No membership found")
                    )

            previous_status = membership.status
            try:
                lifecycle.cancel(membership, immediate, now)
                membership = await self.uow.memberships.update(membership)
            except InvalidStateTransitionError as exc:
                return Return.err(Error(exc.code, exc.message))
            except PersistenceConflictError as exc:
                return Return.err(Error(exc.code, exc.message))

            action = (
                "membership_expired"
                if membership.status == MembershipStatus.expired
                else "membership_cancelled"
            )
            await self.uow.audit_events.create(
                build_audit_event(
                    membership,
                    action,
                    immediate=immediate,
                    previous_status=previous_status,
                    end_date=membership.end_date,
                    reason=membership.cancellation_reason,
                )
            )

            tier = await load_tier(self.uow, self.cache, membership.tier_id)

            await self.uow.commit()

        invalidate_customer(self.cache, customer_id)
        logger.info(
            f"Membership {membership.id} cancelled ({'immediate' if immediate else 'end of period'}), "
            f"status {previous_status.value} -> {membership.status.value}"
        )

        effective = lifecycle.get_effective_status(membership, now)
        return Return.ok(
            CancelMembershipResponse(
                membership=MembershipResponse.from_entity(membership, effective, tier)
            )
        )
