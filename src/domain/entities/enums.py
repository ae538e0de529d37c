"""
Membership Service Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class MembershipStatus(str, Enum):
    """Stored membership lifecycle status"""

    pending = "pending"
    active = "active"
    cancelled = "cancelled"
    expired = "expired"


class BillingCycle(str, Enum):
    """Billing cycle of a membership"""

    monthly = "monthly"
    yearly = "yearly"


class TierCode(str, Enum):
    """Closed set of membership tiers offered to customers"""

    HDB = "HDB"
    CONDOMINIUM = "CONDOMINIUM"
    LANDED_PROPERTY = "LANDED_PROPERTY"
    COMMERCIAL = "COMMERCIAL"


class PaymentStatus(str, Enum):
    """Payment status reported by the payment gateway"""

    pending = "pending"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"
