"""
MembershipTier Entity

Subscription plan with fixed pricing and feature entitlements.
"""

from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from .enums import BillingCycle, TierCode

UNLIMITED = -1


class MembershipTier(SQLModel, table=True):
    """
    MembershipTier entity - reference data for subscription plans.

    Business Rules:
    - Read-only to lifecycle operations (seeded by administrators)
    - service_requests_per_month == -1 means unlimited
    - yearly_price falls back to 10 months of monthly_price
    - Inactive tiers cannot be subscribed to
    """

    __tablename__ = "membership_tiers"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    code: TierCode = Field(unique=True, index=True)

    display_name: str = Field(max_length=100)
    description: str = Field(default="", max_length=500)

    monthly_price: Decimal = Field(max_digits=10, decimal_places=2)
    yearly_price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)

    # Feature set
    service_requests_per_month: int = Field(default=0)
    response_time_hours: int = Field(default=72)
    material_discount_percent: int = Field(default=0, ge=0, le=100)
    annual_inspections: int = Field(default=0)
    emergency_service: bool = Field(default=False)
    priority_support: bool = Field(default=False)
    dedicated_manager: bool = Field(default=False)

    is_active: bool = Field(default=True)

    # Timestamps
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), sa_column=Column(DateTime(timezone=True))
    )

    __table_args__ = (Index("idx_membership_tier_active", "is_active"),)

    def price_for(self, billing_cycle: BillingCycle) -> Decimal:
        if billing_cycle == BillingCycle.yearly:
            if self.yearly_price is not None:
                return self.yearly_price
            return self.monthly_price * 10
        return self.monthly_price

    @property
    def has_unlimited_requests(self) -> bool:
        return self.service_requests_per_month == UNLIMITED
