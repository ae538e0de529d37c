"""
Use Case: Expire Memberships

Housekeeping sweep. Access is already computed lazily, so the sweep only
brings stored statuses in line with what readers see and closes out
abandoned checkouts.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Optional, Set
from uuid import UUID

from pydantic import BaseModel

from src.libs.result import Error, Result, Return
from src.app.services.read_cache import ReadThroughCache
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.membership.common import build_audit_event, invalidate_customer
from src.domain.errors import PersistenceConflictError
from src.domain.services import membership_lifecycle as lifecycle

logger = logging.getLogger(__name__)


class ExpireMembershipsResponse(BaseModel):
    """Response DTO for ExpireMembershipsUseCase"""

    cancelled_expired: int
    pending_expired: int


class ExpireMembershipsUseCase:
    """
    Flip overdue memberships to EXPIRED.

    Business Logic:
    1. CANCELLED memberships whose end_date has passed
    2. PENDING memberships older than the pending expiry window
    3. Audit each transition, invalidate the affected customers

    Idempotent: a second run finds nothing left to expire
    """

    def __init__(self, uow: UnitOfWork, cache: ReadThroughCache, pending_expiry_hours: int = 72):
        self.uow = uow
        self.cache = cache
        self.pending_expiry = timedelta(hours=pending_expiry_hours)

    async def execute(self, now: Optional[datetime] = None) -> Result[ExpireMembershipsResponse]:
        now = now or datetime.now(UTC)
        customers: Set[UUID] = set()

        async with self.uow:
            try:
                ended = await self.uow.memberships.get_cancelled_ended_before(now)
                for membership in ended:
                    lifecycle.expire(membership, now, "Cancellation period ended")
                    await self.uow.memberships.update(membership)
                    await self.uow.audit_events.create(
                        build_audit_event(membership, "membership_expired", reason="period_ended")
                    )
                    customers.add(membership.customer_id)

                stale = await self.uow.memberships.get_pending_created_before(
                    now - self.pending_expiry
                )
                for membership in stale:
                    lifecycle.expire(membership, now, "Payment not completed")
                    await self.uow.memberships.update(membership)
                    await self.uow.audit_events.create(
                        build_audit_event(membership, "membership_expired", reason="payment_abandoned")
                    )
                    customers.add(membership.customer_id)
            except PersistenceConflictError as exc:
                return Return.err(Error(exc.code, exc.message))

            await self.uow.commit()

        for customer_id in customers:
            invalidate_customer(self.cache, customer_id)

        logger.info(
            f"Expiry sweep: {len(ended)} cancelled and {len(stale)} pending memberships expired"
        )
        return Return.ok(
            ExpireMembershipsResponse(cancelled_expired=len(ended), pending_expired=len(stale))
        )
