"""
Membership Use Cases

Subscription lifecycle of customer memberships.
"""

from .subscribe_use_case import SubscribeUseCase
from .confirm_payment_use_case import ConfirmPaymentUseCase
from .retry_payment_use_case import RetryPaymentUseCase
from .cancel_membership_use_case import CancelMembershipUseCase
from .change_plan_use_case import ChangePlanUseCase
from .get_my_membership_use_case import GetMyMembershipUseCase
from .check_eligibility_use_case import CheckEligibilityUseCase
from .list_tiers_use_case import ListTiersUseCase
from .handle_payment_webhook_use_case import HandlePaymentWebhookUseCase
from .get_membership_history_use_case import GetMembershipHistoryUseCase
from .record_service_usage_use_case import RecordServiceUsageUseCase
from .dtos import (
    TierFeatures,
    TierResponse,
    ListTiersResponse,
    MembershipResponse,
    SubscribeResponse,
    RetryPaymentResponse,
    CancelMembershipResponse,
    ChangePlanResponse,
    BillingInfo,
    UsageAnalytics,
    MyMembershipResponse,
    EligibilityResponse,
    ServiceUsageResponse,
    ConfirmPaymentResponse,
    PaymentWebhookResponse,
    MembershipHistoryResponse,
)

__all__ = [
    # Use Cases
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
    # DTOs - Responses
    "ListTiersResponse",
    "SubscribeResponse",
    "RetryPaymentResponse",
    "CancelMembershipResponse",
    "ChangePlanResponse",
    "MyMembershipResponse",
    "EligibilityResponse",
    "ServiceUsageResponse",
    "ConfirmPaymentResponse",
    "PaymentWebhookResponse",
    "MembershipHistoryResponse",
    # DTOs - Nested Models
    "TierFeatures",
    "TierResponse",
    "MembershipResponse",
    "BillingInfo",
    "UsageAnalytics",
]
