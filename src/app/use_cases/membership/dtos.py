"""
Membership Use Case DTOs (Data Transfer Objects)

All Response classes for the membership domain.
Provides type safety and clear contracts between layers.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from src.domain.entities import (
    BillingCycle,
    Membership,
    MembershipStatus,
    MembershipTier,
    TierCode,
)
from src.domain.services.membership_lifecycle import EffectiveStatus, ensure_utc


# ============================================================================
# Tier DTOs
# ============================================================================


class TierFeatures(BaseModel):
    """Feature entitlements of a tier (-1 requests means unlimited)"""

    service_requests_per_month: int
    response_time_hours: int
    material_discount_percent: int
    annual_inspections: int
    emergency_service: bool
    priority_support: bool
    dedicated_manager: bool


class TierResponse(BaseModel):
    """Tier information returned to customers"""

    id: str
    code: TierCode
    display_name: str
    description: str
    monthly_price: str
    yearly_price: str
    features: TierFeatures

    @classmethod
    def from_entity(cls, tier: MembershipTier) -> "TierResponse":
        return cls(
            id=str(tier.id),
            code=tier.code,
            display_name=tier.display_name,
            description=tier.description,
            monthly_price=f"{tier.monthly_price:.2f}",
            yearly_price=f"{tier.price_for(BillingCycle.yearly):.2f}",
            features=TierFeatures(
                service_requests_per_month=tier.service_requests_per_month,
                response_time_hours=tier.response_time_hours,
                material_discount_percent=tier.material_discount_percent,
                annual_inspections=tier.annual_inspections,
                emergency_service=tier.emergency_service,
                priority_support=tier.priority_support,
                dedicated_manager=tier.dedicated_manager,
            ),
        )


class ListTiersResponse(BaseModel):
    """Response for list tiers use case"""

    tiers: List[TierResponse]


# ============================================================================
# Membership DTOs
# ============================================================================


class MembershipResponse(BaseModel):
    """Membership state with its effective (access-relevant) status"""

    id: str
    customer_id: str
    tier_id: str
    tier_code: Optional[TierCode] = None
    status: MembershipStatus
    effective_status: MembershipStatus
    has_active_access: bool
    billing_cycle: BillingCycle
    price: str
    auto_renew: bool
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    next_billing_date: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    replaces_membership_id: Optional[str] = None

    @classmethod
    def from_entity(
        cls,
        membership: Membership,
        effective: EffectiveStatus,
        tier: Optional[MembershipTier] = None,
    ) -> "MembershipResponse":
        return cls(
            id=str(membership.id),
            customer_id=str(membership.customer_id),
            tier_id=str(membership.tier_id),
            tier_code=tier.code if tier else None,
            status=membership.status,
            effective_status=effective.status,
            has_active_access=effective.has_active_access,
            billing_cycle=membership.billing_cycle,
            price=f"{membership.price:.2f}",
            auto_renew=membership.auto_renew,
            start_date=ensure_utc(membership.start_date),
            end_date=ensure_utc(membership.end_date),
            next_billing_date=ensure_utc(membership.next_billing_date),
            cancelled_at=ensure_utc(membership.cancelled_at),
            cancellation_reason=membership.cancellation_reason,
            replaces_membership_id=(
                str(membership.replaces_membership_id)
                if membership.replaces_membership_id
                else None
            ),
        )


class SubscribeResponse(BaseModel):
    """Response for subscribe use case"""

    membership: MembershipResponse
    payment_url: str


class RetryPaymentResponse(BaseModel):
    """Response for retry payment use case"""

    membership_id: str
    payment_url: str


class CancelMembershipResponse(BaseModel):
    """Response for cancel membership use case"""

    membership: MembershipResponse


class ChangePlanResponse(BaseModel):
    """Response for change plan use case"""

    membership: MembershipResponse
    current_membership_id: str
    payment_url: str


class BillingInfo(BaseModel):
    """Billing summary shown alongside the current membership"""

    billing_cycle: BillingCycle
    price: str
    auto_renew: bool
    next_billing_date: Optional[datetime] = None
    period_end_date: Optional[datetime] = None
    days_until_renewal: Optional[int] = None


class UsageAnalytics(BaseModel):
    """Usage of the tier entitlements in the current month"""

    tier: str
    usage_month: Optional[str] = None
    service_requests_used: int
    service_requests_limit: Optional[int] = None  # None means unlimited
    service_requests_remaining: Optional[int] = None  # None means unlimited
    material_discount_percent: int
    annual_inspections: int
    response_time_hours: int
    emergency_service: bool
    priority_support: bool
    dedicated_manager: bool


class MyMembershipResponse(BaseModel):
    """Response for get my membership use case"""

    membership: Optional[MembershipResponse] = None
    tier: Optional[TierResponse] = None
    billing_info: Optional[BillingInfo] = None
    access_message: Optional[str] = None
    can_cancel: bool = False
    can_change_plan: bool = False
    analytics: Optional[UsageAnalytics] = None


class ServiceUsageResponse(BaseModel):
    """Response for record service usage use case"""

    membership_id: str
    analytics: UsageAnalytics


class EligibilityResponse(BaseModel):
    """Response for service request eligibility check"""

    allowed: bool
    reason: str
    membership_id: Optional[str] = None


class ConfirmPaymentResponse(BaseModel):
    """Response for confirm payment use case"""

    membership: MembershipResponse
    replaced_membership_id: Optional[str] = None


class PaymentWebhookResponse(BaseModel):
    """Response for gateway webhook handling"""

    status: str
    membership_id: Optional[str] = None


class MembershipHistoryResponse(BaseModel):
    """Response for membership history (audit events) use case"""

    events: List[Dict[str, Any]]
    next_cursor: Optional[str] = None
