"""
Record Service Usage Use Case

Counts a new service request against the customer's monthly membership
allowance. Called by the service-request flow once a request is created.
"""

import logging
from datetime import UTC, datetime
from typing import Optional
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.services.read_cache import ReadThroughCache
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import PersistenceConflictError, UsageLimitReachedError
from src.domain.services import membership_lifecycle as lifecycle

from .common import build_audit_event, invalidate_customer, load_tier, select_current
from .dtos import ServiceUsageResponse
from .get_my_membership_use_case import build_analytics

logger = logging.getLogger(__name__)


class RecordServiceUsageUseCase:
    """
    Use case for recording one service request.

    Business Rules:
    - Customer must have a membership with effective access (NOT_ACTIVE otherwise)
    - Usage recorded in an earlier month is rolled over before counting
    - Limited tiers reject the request once the monthly limit is reached
    - Unlimited tiers are only counted
    - The increment is guarded by the membership version
    """

    def __init__(self, uow: UnitOfWork, cache: ReadThroughCache):
        self.uow = uow
        self.cache = cache

    async def execute(
        self, customer_id: UUID, now: Optional[datetime] = None
    ) -> Result[ServiceUsageResponse]:
        now = now or datetime.now(UTC)

        async with self.uow:
            memberships = await self.uow.memberships.get_by_customer_id(customer_id)
            membership = select_current(memberships, now=now)
            if membership is None:
                return Return.err(Error("MEMBERSHIP_NOT_FOUND", "No membership found"))

            effective = lifecycle.get_effective_status(membership, now)
            if not effective.has_active_access:
                return Return.err(Error("NOT_ACTIVE", effective.message))

            tier = await load_tier(self.uow, self.cache, membership.tier_id)
            if tier is None:
                return Return.err(Error("TIER_NOT_FOUND", "Membership tier not found"))

            try:
                lifecycle.record_service_request(membership, tier, now)
                membership = await self.uow.memberships.update(membership)
            except UsageLimitReachedError as exc:
                return Return.err(Error(exc.code, exc.message))
            except PersistenceConflictError as exc:
                return Return.err(Error(exc.code, exc.message))

            await self.uow.audit_events.create(
                build_audit_event(
                    membership,
                    "membership_service_request_recorded",
                    usage_month=membership.usage_month,
                    service_requests_used=membership.service_requests_used,
                )
            )

            await self.uow.commit()

        invalidate_customer(self.cache, customer_id)
        logger.info(
            f"Service request recorded for membership {membership.id} "
            f"({membership.service_requests_used} used in {membership.usage_month})"
        )

        return Return.ok(
            ServiceUsageResponse(
                membership_id=str(membership.id),
                analytics=build_analytics(membership, tier, now),
            )
        )
