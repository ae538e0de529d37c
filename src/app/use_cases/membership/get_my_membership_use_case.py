"""
Get My Membership Use Case

Returns the customer's current membership with its effective status,
billing summary and usage analytics.
"""

import math
from datetime import UTC, datetime
from typing import Optional
from uuid import UUID

from src.libs.result import Result, Return
from src.app.services.read_cache import ReadThroughCache
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import Membership, MembershipStatus, MembershipTier
from src.domain.services.membership_lifecycle import (
    EffectiveStatus,
    current_usage,
    ensure_utc,
    get_effective_status,
    usage_month_key,
)

from .common import load_current_membership, load_tier
from .dtos import (
    BillingInfo,
    MembershipResponse,
    MyMembershipResponse,
    TierResponse,
    UsageAnalytics,
)


def build_analytics(membership: Membership, tier: MembershipTier, now: datetime) -> UsageAnalytics:
    used = current_usage(membership, now)
    if tier.has_unlimited_requests:
        limit = remaining = None
    else:
        limit = tier.service_requests_per_month
        remaining = max(0, limit - used)

    return UsageAnalytics(
        tier=tier.display_name,
        usage_month=usage_month_key(now),
        service_requests_used=used,
        service_requests_limit=limit,
        service_requests_remaining=remaining,
        material_discount_percent=tier.material_discount_percent,
        annual_inspections=tier.annual_inspections,
        response_time_hours=tier.response_time_hours,
        emergency_service=tier.emergency_service,
        priority_support=tier.priority_support,
        dedicated_manager=tier.dedicated_manager,
    )


def build_billing_info(membership: Membership, now: datetime) -> BillingInfo:
    next_billing = ensure_utc(membership.next_billing_date)
    days_until_renewal = None
    if next_billing is not None and membership.status == MembershipStatus.active:
        days_until_renewal = math.ceil((next_billing - now).total_seconds() / 86400)

    return BillingInfo(
        billing_cycle=membership.billing_cycle,
        price=f"{membership.price:.2f}",
        auto_renew=membership.auto_renew,
        next_billing_date=next_billing,
        period_end_date=ensure_utc(membership.end_date) or next_billing,
        days_until_renewal=days_until_renewal,
    )


class GetMyMembershipUseCase:
    """
    Use case for reading the customer's current membership.

    Business Rules:
    - Current membership: newest ACTIVE, else CANCELLED, else PENDING, else EXPIRED
    - Effective status is recomputed on every call (never cached)
    - Analytics only for memberships with effective access
    """

    def __init__(self, uow: UnitOfWork, cache: ReadThroughCache):
        self.uow = uow
        self.cache = cache

    async def execute(
        self, customer_id: UUID, now: Optional[datetime] = None
    ) -> Result[MyMembershipResponse]:
        now = now or datetime.now(UTC)

        async with self.uow:
            membership = await load_current_membership(self.uow, self.cache, customer_id, now)
            if membership is None:
                return Return.ok(MyMembershipResponse())
            tier = await load_tier(self.uow, self.cache, membership.tier_id)

        effective: EffectiveStatus = get_effective_status(membership, now)

        return Return.ok(
            MyMembershipResponse(
                membership=MembershipResponse.from_entity(membership, effective, tier),
                tier=TierResponse.from_entity(tier) if tier else None,
                billing_info=build_billing_info(membership, now),
                access_message=effective.message,
                can_cancel=effective.status in (MembershipStatus.active, MembershipStatus.cancelled),
                can_change_plan=effective.status == MembershipStatus.active,
                analytics=(
                    build_analytics(membership, tier, now)
                    if tier and effective.has_active_access
                    else None
                ),
            )
        )
