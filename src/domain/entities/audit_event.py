"""
AuditEvent Entity

Immutable log of membership lifecycle events.
"""

from datetime import datetime, UTC
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, JSON, SQLModel


class AuditEvent(SQLModel, table=True):
    """
    AuditEvent entity - immutable log of membership lifecycle events.

    Business Rules:
    - Immutable (never updated or deleted)
    - One event per lifecycle transition or payment attempt
    - membership_id nullable for customer-level events
    - Metadata stores transition context (tier, cycle, transaction id, etc.)
    """

    __tablename__ = "audit_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    customer_id: Optional[UUID] = Field(default=None, index=True)
    membership_id: Optional[UUID] = Field(default=None)

    action: str = Field(max_length=100)  # e.g., "membership_activated"
    event_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    # Timestamps
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), sa_column=Column(DateTime(timezone=True))
    )

    __table_args__ = (
        Index("idx_audit_created_at", "created_at"),
        Index("idx_audit_customer_action", "customer_id", "action"),
        Index("idx_audit_membership_id", "membership_id"),
    )
