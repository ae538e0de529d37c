"""
Use Cases

Organized into domain folders:
- membership/: Customer membership lifecycle
- admin/: Staff and scheduler operations

Import from subdirectories for better organization.
"""

from .membership import (
    SubscribeUseCase,
    ConfirmPaymentUseCase,
    RetryPaymentUseCase,
    CancelMembershipUseCase,
    ChangePlanUseCase,
    GetMyMembershipUseCase,
    CheckEligibilityUseCase,
    ListTiersUseCase,
    HandlePaymentWebhookUseCase,
    GetMembershipHistoryUseCase,
    RecordServiceUsageUseCase,
)
from .admin import (
    SeedTiersUseCase,
    ExpireMembershipsUseCase,
)

__all__ = [
    # Membership
    "SubscribeUseCase",
    "ConfirmPaymentUseCase",
    "RetryPaymentUseCase",
    "CancelMembershipUseCase",
    "ChangePlanUseCase",
    "GetMyMembershipUseCase",
    "CheckEligibilityUseCase",
    "ListTiersUseCase",
    "HandlePaymentWebhookUseCase",
    "GetMembershipHistoryUseCase",
    "RecordServiceUsageUseCase",
    # Admin
    "SeedTiersUseCase",
    "ExpireMembershipsUseCase",
]
