"""
Membership Service Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    BillingCycle,
    MembershipStatus,
    PaymentStatus,
    TierCode,
)

# Export all entities
from .membership_tier import MembershipTier, UNLIMITED
from .membership import Membership
from .audit_event import AuditEvent

__all__ = [
    # Enums
    "BillingCycle",
    "MembershipStatus",
    "PaymentStatus",
    "TierCode",
    # Entities
    "MembershipTier",
    "Membership",
    "AuditEvent",
    # Constants
    "UNLIMITED",
]
