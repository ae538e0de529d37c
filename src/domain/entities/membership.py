"""
Membership Entity

A customer's subscription to a membership tier.
"""

from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Integer, text
from sqlmodel import Column, DateTime, Field, Index, SQLModel

from .enums import BillingCycle, MembershipStatus

# Optimistic concurrency counter, bumped by SQLAlchemy on every UPDATE
version_column = Column("version", Integer, nullable=False, default=1)


class Membership(SQLModel, table=True):
    """
    Membership entity - a customer's subscription to a tier.

    Business Rules:
    - Created PENDING, becomes ACTIVE only after payment confirmation
    - References the tier by id, never embeds it
    - At most one ACTIVE membership per customer (partial unique index)
    - Never deleted, only transitioned (EXPIRED is terminal)
    - Access is derived from status + end_date at read time, never stored
    - replaces_membership_id links a plan-change replacement to the
      membership it supersedes once paid
    """

    __tablename__ = "memberships"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    customer_id: UUID = Field(nullable=False, index=True)
    tier_id: UUID = Field(foreign_key="membership_tiers.id", nullable=False, index=True)

    status: MembershipStatus = Field(default=MembershipStatus.pending)
    billing_cycle: BillingCycle = Field(default=BillingCycle.monthly)
    price: Decimal = Field(max_digits=10, decimal_places=2)
    auto_renew: bool = Field(default=False)

    # Billing period
    start_date: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    end_date: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    next_billing_date: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )

    # Cancellation tracking
    cancelled_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    cancellation_reason: Optional[str] = Field(default=None, max_length=255)
    expired_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )

    # Usage for the current month (reset by an external job)
    service_requests_used: int = Field(default=0)
    usage_month: Optional[str] = Field(default=None, max_length=7)  # YYYY-MM

    # Payment gateway bookkeeping
    payment_request_id: Optional[str] = Field(default=None, max_length=255, index=True)
    gateway_transaction_id: Optional[str] = Field(default=None, max_length=255)

    # Plan change (UC: change plan)
    replaces_membership_id: Optional[UUID] = Field(
        default=None, foreign_key="memberships.id"
    )

    version: int = Field(default=1, sa_column=version_column)

    # Timestamps
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), sa_column=Column(DateTime(timezone=True))
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), sa_column=Column(DateTime(timezone=True))
    )

    __mapper_args__ = {"version_id_col": version_column}

    __table_args__ = (
        Index("idx_membership_customer_status", "customer_id", "status"),
        Index("idx_membership_end_date", "end_date"),
        Index(
            "uq_membership_customer_active",
            "customer_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )
