"""
Membership API Routes - Customer Subscription Endpoints

Customer endpoints authenticate with a Bearer JWT (role=customer). The
tier catalogue is public and the webhook is authenticated by the
gateway's payload signature.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import BaseModel, Field

from config import ApplicationConfig
from src.api.error import raise_for_error
from src.app.services.payment_gateway import IPaymentGateway
from src.app.services.read_cache import ReadThroughCache
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.membership import (
    CancelMembershipResponse,
    CancelMembershipUseCase,
    ChangePlanResponse,
    ChangePlanUseCase,
    CheckEligibilityUseCase,
    EligibilityResponse,
    GetMembershipHistoryUseCase,
    GetMyMembershipUseCase,
    HandlePaymentWebhookUseCase,
    ListTiersResponse,
    ListTiersUseCase,
    MembershipHistoryResponse,
    MyMembershipResponse,
    PaymentWebhookResponse,
    RecordServiceUsageUseCase,
    RetryPaymentResponse,
    RetryPaymentUseCase,
    ServiceUsageResponse,
    SubscribeResponse,
    SubscribeUseCase,
)
from src.depends import (
    get_current_customer,
    get_payment_gateway,
    get_read_cache,
    get_unit_of_work,
)
from src.domain.entities import BillingCycle

router = APIRouter(prefix="/membership", tags=["Membership"])


class SubscribeRequest(BaseModel):
    """Subscribe HTTP request payload"""

    tier_id: UUID = Field(..., description="Tier to subscribe to")
    billing_cycle: BillingCycle = Field(BillingCycle.monthly, description="monthly or yearly")


class RetryPaymentRequest(BaseModel):
    """Retry payment HTTP request payload"""

    membership_id: Optional[UUID] = Field(
        None, description="Pending membership, defaults to the customer's pending one"
    )


class CancelMembershipRequest(BaseModel):
    """Cancel membership HTTP request payload"""

    immediate: bool = Field(False, description="Revoke access now instead of at period end")
    membership_id: Optional[UUID] = Field(
        None, description="Membership to cancel, defaults to the current one"
    )


class ChangePlanRequest(BaseModel):
    """Change plan HTTP request payload"""

    new_tier_id: UUID = Field(..., description="Tier to move to")
    billing_cycle: BillingCycle = Field(BillingCycle.monthly, description="monthly or yearly")
    membership_id: Optional[UUID] = Field(
        None, description="Active membership to replace, defaults to the current one"
    )


@router.get("/tiers", status_code=status.HTTP_200_OK, response_model=ListTiersResponse)
async def list_tiers(
    uow: UnitOfWork = Depends(get_unit_of_work),
    cache: ReadThroughCache = Depends(get_read_cache),
):
    """
    List Tiers

    Public catalogue of active membership tiers, cheapest first.
    """
    result = await ListTiersUseCase(uow, cache).execute()
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.post("/payment", status_code=status.HTTP_201_CREATED, response_model=SubscribeResponse)
async def subscribe(
    request: SubscribeRequest,
    current_user: dict = Depends(get_current_customer),
    uow: UnitOfWork = Depends(get_unit_of_work),
    gateway: IPaymentGateway = Depends(get_payment_gateway),
    cache: ReadThroughCache = Depends(get_read_cache),
):
    """
    Subscribe

    Creates a PENDING membership and returns the gateway payment URL.
    Access starts only after the payment is confirmed.

    Raises:
        - 404 Not Found: TIER_NOT_FOUND
        - 409 Conflict: ALREADY_SUBSCRIBED
        - 503 Service Unavailable: PAYMENT_GATEWAY_UNAVAILABLE
    """
    use_case = SubscribeUseCase(uow, gateway, cache)
    result = await use_case.execute(
        customer_id=current_user["customer_id"],
        tier_id=request.tier_id,
        billing_cycle=request.billing_cycle,
        currency=ApplicationConfig.PAYMENT_CURRENCY,
        customer_email=current_user.get("email"),
    )
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.post(
    "/retry-payment", status_code=status.HTTP_200_OK, response_model=RetryPaymentResponse
)
async def retry_payment(
    request: Optional[RetryPaymentRequest] = None,
    current_user: dict = Depends(get_current_customer),
    uow: UnitOfWork = Depends(get_unit_of_work),
    gateway: IPaymentGateway = Depends(get_payment_gateway),
    cache: ReadThroughCache = Depends(get_read_cache),
):
    """
    Retry Payment

    Issues a new payment URL for the same PENDING membership.

    Raises:
        - 404 Not Found: MEMBERSHIP_NOT_FOUND
        - 409 Conflict: NOT_PENDING
        - 503 Service Unavailable: PAYMENT_GATEWAY_UNAVAILABLE
    """
    request = request or RetryPaymentRequest()
    use_case = RetryPaymentUseCase(uow, gateway, cache)
    result = await use_case.execute(
        customer_id=current_user["customer_id"],
        membership_id=request.membership_id,
        currency=ApplicationConfig.PAYMENT_CURRENCY,
        customer_email=current_user.get("email"),
    )
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.put("/cancel", status_code=status.HTTP_200_OK, response_model=CancelMembershipResponse)
async def cancel_membership(
    request: Optional[CancelMembershipRequest] = None,
    current_user: dict = Depends(get_current_customer),
    uow: UnitOfWork = Depends(get_unit_of_work),
    cache: ReadThroughCache = Depends(get_read_cache),
):
    """
    Cancel Membership

    End-of-period cancellation keeps access until the next billing date;
    immediate cancellation expires the membership now. No refunds.

    Raises:
        - 404 Not Found: MEMBERSHIP_NOT_FOUND
        - 409 Conflict: INVALID_STATE_TRANSITION, PERSISTENCE_CONFLICT
    """
    request = request or CancelMembershipRequest()
    use_case = CancelMembershipUseCase(uow, cache)
    result = await use_case.execute(
        customer_id=current_user["customer_id"],
        immediate=request.immediate,
        membership_id=request.membership_id,
    )
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.post(
    "/change-plan-payment", status_code=status.HTTP_200_OK, response_model=ChangePlanResponse
)
async def change_plan(
    request: ChangePlanRequest,
    current_user: dict = Depends(get_current_customer),
    uow: UnitOfWork = Depends(get_unit_of_work),
    gateway: IPaymentGateway = Depends(get_payment_gateway),
    cache: ReadThroughCache = Depends(get_read_cache),
):
    """
    Change Plan

    Creates a PENDING replacement membership and returns its payment URL.
    The current membership stays active until that payment is confirmed.

    Raises:
        - 404 Not Found: TIER_NOT_FOUND, MEMBERSHIP_NOT_FOUND
        - 409 Conflict: NOT_ACTIVE, ALREADY_SUBSCRIBED
        - 503 Service Unavailable: PAYMENT_GATEWAY_UNAVAILABLE
    """
    use_case = ChangePlanUseCase(uow, gateway, cache)
    result = await use_case.execute(
        customer_id=current_user["customer_id"],
        new_tier_id=request.new_tier_id,
        billing_cycle=request.billing_cycle,
        membership_id=request.membership_id,
        currency=ApplicationConfig.PAYMENT_CURRENCY,
        customer_email=current_user.get("email"),
    )
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.get(
    "/my-membership", status_code=status.HTTP_200_OK, response_model=MyMembershipResponse
)
async def get_my_membership(
    current_user: dict = Depends(get_current_customer),
    uow: UnitOfWork = Depends(get_unit_of_work),
    cache: ReadThroughCache = Depends(get_read_cache),
):
    """
    Get My Membership

    Current membership with effective status, billing info and usage.
    Returns an empty body (membership=null) when the customer has none.
    """
    result = await GetMyMembershipUseCase(uow, cache).execute(current_user["customer_id"])
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.get("/eligibility", status_code=status.HTTP_200_OK, response_model=EligibilityResponse)
async def check_eligibility(
    current_user: dict = Depends(get_current_customer),
    uow: UnitOfWork = Depends(get_unit_of_work),
    cache: ReadThroughCache = Depends(get_read_cache),
):
    """Whether the customer may open a service request under their membership"""
    result = await CheckEligibilityUseCase(uow, cache).execute(current_user["customer_id"])
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.post("/usage", status_code=status.HTTP_200_OK, response_model=ServiceUsageResponse)
async def record_service_usage(
    current_user: dict = Depends(get_current_customer),
    uow: UnitOfWork = Depends(get_unit_of_work),
    cache: ReadThroughCache = Depends(get_read_cache),
):
    """
    Record Service Request Usage

    Counts one service request against the monthly allowance of the
    customer's membership.

    Raises:
        - 403 Forbidden: USAGE_LIMIT_REACHED
        - 404 Not Found: MEMBERSHIP_NOT_FOUND
        - 409 Conflict: NOT_ACTIVE, PERSISTENCE_CONFLICT
    """
    result = await RecordServiceUsageUseCase(uow, cache).execute(current_user["customer_id"])
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.get(
    "/history", status_code=status.HTTP_200_OK, response_model=MembershipHistoryResponse
)
async def get_membership_history(
    limit: int = Query(50, ge=1, le=100),
    cursor: Optional[str] = Query(None),
    current_user: dict = Depends(get_current_customer),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """Membership lifecycle events of the customer, newest first"""
    result = await GetMembershipHistoryUseCase(uow).execute(
        current_user["customer_id"], limit=limit, cursor=cursor
    )
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.post("/webhook", status_code=status.HTTP_200_OK, response_model=PaymentWebhookResponse)
async def payment_webhook(
    payload: Dict[str, Any] = Body(...),
    uow: UnitOfWork = Depends(get_unit_of_work),
    gateway: IPaymentGateway = Depends(get_payment_gateway),
    cache: ReadThroughCache = Depends(get_read_cache),
):
    """
    Payment Gateway Webhook

    Signed payment status callback. Safe to deliver more than once.

    Raises:
        - 401 Unauthorized: INVALID_SIGNATURE
        - 404 Not Found: MEMBERSHIP_NOT_FOUND
        - 409 Conflict: INVALID_STATE_TRANSITION, PERSISTENCE_CONFLICT
    """
    result = await HandlePaymentWebhookUseCase(uow, gateway, cache).execute(payload)
    if result.is_err():
        raise_for_error(result.error)
    return result.value
