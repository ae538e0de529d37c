"""
Check Eligibility Use Case

Tells the service-request flow whether a customer may open a new request
under their membership.
"""

from datetime import UTC, datetime
from typing import Optional
from uuid import UUID

from src.libs.result import Result, Return
from src.app.services.read_cache import ReadThroughCache
from src.app.services.unit_of_work import UnitOfWork
from src.domain.services.membership_lifecycle import current_usage, get_effective_status

from .common import load_current_membership, load_tier
from .dtos import EligibilityResponse


class CheckEligibilityUseCase:
    """
    Use case for checking service request eligibility.

    Business Rules:
    - No membership: allowed, billed per service
    - Membership without effective access (pending, expired, grace over): denied
    - Monthly request limit reached: denied
    - Tiers with unlimited requests are always allowed
    """

    def __init__(self, uow: UnitOfWork, cache: ReadThroughCache):
        self.uow = uow
        self.cache = cache

    async def execute(
        self, customer_id: UUID, now: Optional[datetime] = None
    ) -> Result[EligibilityResponse]:
        now = now or datetime.now(UTC)

        async with self.uow:
            membership = await load_current_membership(self.uow, self.cache, customer_id, now)
            if membership is None:
                return Return.ok(
                    EligibilityResponse(allowed=True, reason="No membership - pay per service")
                )
            tier = await load_tier(self.uow, self.cache, membership.tier_id)

        membership_id = str(membership.id)
        effective = get_effective_status(membership, now)
        if not effective.has_active_access:
            return Return.ok(
                EligibilityResponse(
                    allowed=False, reason=effective.message, membership_id=membership_id
                )
            )

        if tier is None or tier.has_unlimited_requests:
            return Return.ok(
                EligibilityResponse(
                    allowed=True, reason="Unlimited service requests", membership_id=membership_id
                )
            )

        used = current_usage(membership, now)
        limit = tier.service_requests_per_month
        if used >= limit:
            return Return.ok(
                EligibilityResponse(
                    allowed=False,
                    reason=f"Monthly limit reached ({used}/{limit})",
                    membership_id=membership_id,
                )
            )

        return Return.ok(
            EligibilityResponse(
                allowed=True,
                reason=f"Within monthly limit ({used}/{limit})",
                membership_id=membership_id,
            )
        )
