"""
Helpers shared by membership use cases.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import List, Optional, Sequence
from uuid import UUID

from src.app.services.read_cache import CURRENT_MEMBERSHIP, TIER, TIER_LIST, ReadThroughCache
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent, Membership, MembershipStatus, MembershipTier
from src.domain.services.membership_lifecycle import get_effective_status

# Preference order (by effective status) when picking a customer's current membership
CURRENT_STATUS_ORDER = (
    MembershipStatus.active,
    MembershipStatus.cancelled,
    MembershipStatus.pending,
    MembershipStatus.expired,
)


def select_current(
    memberships: Sequence[Membership],
    statuses: Sequence[MembershipStatus] = CURRENT_STATUS_ORDER,
    now: Optional[datetime] = None,
) -> Optional[Membership]:
    """
    Pick the newest membership in the first status of `statuses` that has one.

    Ranks by effective status, so a cancellation whose grace period is over
    counts as expired.
    """
    now = now or datetime.now(UTC)
    effective = {m.id: get_effective_status(m, now).status for m in memberships}
    for status in statuses:
        candidates = [m for m in memberships if effective[m.id] == status]
        if candidates:
            return max(candidates, key=lambda m: m.created_at)
    return None


def build_audit_event(membership: Membership, action: str, **metadata) -> AuditEvent:
    return AuditEvent(
        customer_id=membership.customer_id,
        membership_id=membership.id,
        action=action,
        event_metadata={key: _jsonable(value) for key, value in metadata.items()},
    )


def _jsonable(value):
    if isinstance(value, Enum):
        return value.value
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


async def load_tier(
    uow: UnitOfWork, cache: ReadThroughCache, tier_id: UUID
) -> Optional[MembershipTier]:
    async def loader() -> Optional[MembershipTier]:
        tier = await uow.tiers.get_by_id(tier_id)
        return uow.detach(tier) if tier is not None else None

    return await cache.get_or_load(TIER, tier_id, loader)


async def load_active_tiers(uow: UnitOfWork, cache: ReadThroughCache) -> List[MembershipTier]:
    async def loader() -> List[MembershipTier]:
        return [uow.detach(tier) for tier in await uow.tiers.list_active()]

    return await cache.get_or_load(TIER_LIST, "active", loader)


async def load_current_membership(
    uow: UnitOfWork,
    cache: ReadThroughCache,
    customer_id: UUID,
    now: Optional[datetime] = None,
) -> Optional[Membership]:
    async def loader() -> Optional[Membership]:
        memberships: List[Membership] = await uow.memberships.get_by_customer_id(customer_id)
        current = select_current(memberships, now=now)
        return uow.detach(current) if current is not None else None

    return await cache.get_or_load(CURRENT_MEMBERSHIP, customer_id, loader)


def invalidate_customer(cache: ReadThroughCache, customer_id: UUID) -> None:
    cache.invalidate(CURRENT_MEMBERSHIP, customer_id)


def invalidate_tiers(cache: ReadThroughCache, tier_ids: Sequence[UUID] = ()) -> None:
    cache.invalidate(TIER_LIST, "active")
    for tier_id in tier_ids:
        cache.invalidate(TIER, tier_id)
