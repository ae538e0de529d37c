"""
Membership lifecycle state machine.

Pure functions over Membership records: they mutate the record passed in
and never touch persistence. Every function takes `now` explicitly so the
transitions are deterministic under test.

States: pending -> active -> cancelled -> expired, with
active -> expired (immediate cancel) and cancelled -> expired
(immediate cancel during grace, or end_date passing). expired is terminal.
"""

from datetime import datetime, timedelta, UTC
from typing import Optional

from pydantic import BaseModel

from src.domain.entities import BillingCycle, Membership, MembershipStatus, MembershipTier
from src.domain.errors import InvalidStateTransitionError, UsageLimitReachedError

BILLING_PERIODS = {
    BillingCycle.monthly: timedelta(days=30),
    BillingCycle.yearly: timedelta(days=365),
}


class EffectiveStatus(BaseModel):
    """Access-relevant view of a membership at a point in time"""

    status: MembershipStatus
    has_active_access: bool
    access_ends_at: Optional[datetime] = None
    message: str


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from databases without tz support"""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def billing_period(billing_cycle: BillingCycle) -> timedelta:
    return BILLING_PERIODS[billing_cycle]


def usage_month_key(now: datetime) -> str:
    return now.strftime("%Y-%m")


def current_usage(membership: Membership, now: datetime) -> int:
    """Service requests used in the month of `now`; earlier months no longer count"""
    if membership.usage_month != usage_month_key(now):
        return 0
    return membership.service_requests_used


def get_effective_status(membership: Membership, now: datetime) -> EffectiveStatus:
    """
    Compute the effective status of a membership.

    A cancelled membership whose end_date has passed reads as expired even if
    no sweep has rewritten the stored status yet. Must be used for every
    access check instead of the stored status.
    """
    now = ensure_utc(now)
    end_date = ensure_utc(membership.end_date)

    if membership.status == MembershipStatus.active:
        return EffectiveStatus(
            status=MembershipStatus.active,
            has_active_access=True,
            access_ends_at=ensure_utc(membership.next_billing_date),
            message="Active membership with full access",
        )

    if membership.status == MembershipStatus.cancelled:
        if end_date is not None and end_date > now:
            return EffectiveStatus(
                status=MembershipStatus.cancelled,
                has_active_access=True,
                access_ends_at=end_date,
                message=f"Cancelled - access until {end_date.date().isoformat()}",
            )
        return EffectiveStatus(
            status=MembershipStatus.expired,
            has_active_access=False,
            access_ends_at=end_date,
            message="Cancelled and expired - no access",
        )

    if membership.status == MembershipStatus.expired:
        return EffectiveStatus(
            status=MembershipStatus.expired,
            has_active_access=False,
            access_ends_at=end_date,
            message="Membership expired - no access",
        )

    return EffectiveStatus(
        status=membership.status,
        has_active_access=False,
        access_ends_at=None,
        message="Membership pending payment - no access",
    )


def activate(membership: Membership, transaction_id: str, now: datetime) -> Membership:
    """pending -> active on confirmed payment"""
    if membership.status != MembershipStatus.pending:
        raise InvalidStateTransitionError(
            f"Cannot confirm payment for a {membership.status.value} membership"
        )

    membership.status = MembershipStatus.active
    membership.start_date = now
    membership.next_billing_date = now + billing_period(membership.billing_cycle)
    membership.end_date = None
    membership.auto_renew = True
    membership.gateway_transaction_id = transaction_id
    membership.usage_month = usage_month_key(now)
    membership.service_requests_used = 0
    membership.updated_at = now
    return membership


def cancel(membership: Membership, immediate: bool, now: datetime) -> Membership:
    """
    Cancel a membership.

    active + immediate=False    -> cancelled, access until next_billing_date
    active + immediate=True     -> expired now
    cancelled (in grace) + immediate=True -> expired now
    Anything else is rejected.
    """
    effective = get_effective_status(membership, now)

    if membership.status == MembershipStatus.active:
        membership.cancelled_at = now
        membership.auto_renew = False
        if immediate:
            return expire(membership, now, "Immediate cancellation requested")
        membership.status = MembershipStatus.cancelled
        membership.end_date = membership.next_billing_date
        membership.cancellation_reason = "End-of-period cancellation requested"
        membership.updated_at = now
        return membership

    if effective.status == MembershipStatus.cancelled:
        if not immediate:
            raise InvalidStateTransitionError("Membership is already cancelled")
        return expire(membership, now, "Grace period ended early")

    if effective.status == MembershipStatus.expired:
        raise InvalidStateTransitionError("Membership has already expired")

    raise InvalidStateTransitionError(
        f"Cannot cancel a {membership.status.value} membership"
    )


def expire(membership: Membership, now: datetime, reason: str) -> Membership:
    """Move any non-expired membership to the terminal expired state"""
    if membership.status == MembershipStatus.expired:
        raise InvalidStateTransitionError("Membership has already expired")

    if membership.status == MembershipStatus.active and membership.cancelled_at is None:
        membership.cancelled_at = now

    end_date = ensure_utc(membership.end_date)
    if end_date is None or end_date > now:
        membership.end_date = now

    membership.status = MembershipStatus.expired
    membership.auto_renew = False
    membership.expired_at = now
    membership.cancellation_reason = reason
    membership.updated_at = now
    return membership


def record_service_request(
    membership: Membership, tier: MembershipTier, now: datetime
) -> Membership:
    """Count one service request against the tier's monthly allowance"""
    used = current_usage(membership, now)
    limit = tier.service_requests_per_month
    if not tier.has_unlimited_requests and used >= limit:
        raise UsageLimitReachedError(f"Monthly limit reached ({used}/{limit})")

    membership.usage_month = usage_month_key(now)
    membership.service_requests_used = used + 1
    membership.updated_at = now
    return membership
