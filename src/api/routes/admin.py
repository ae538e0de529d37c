"""
Admin API Routes - Membership Administration Endpoints

These endpoints are for staff tooling and schedulers (payment
reconciliation, housekeeping sweep, tier catalogue).
Authentication is via Admin API Key, not customer JWTs.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from config import ApplicationConfig
from src.api.error import raise_for_error
from src.api.utils.admin_auth import verify_admin_api_key
from src.app.services.read_cache import ReadThroughCache
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.admin import (
    ExpireMembershipsResponse,
    ExpireMembershipsUseCase,
    SeedTiersResponse,
    SeedTiersUseCase,
)
from src.app.use_cases.membership import ConfirmPaymentResponse, ConfirmPaymentUseCase
from src.depends import get_read_cache, get_unit_of_work

router = APIRouter(prefix="/admin", tags=["Admin"])


class ConfirmPaymentRequest(BaseModel):
    """Manual payment confirmation payload"""

    transaction_id: str = Field(..., min_length=1, description="Gateway transaction id")


@router.post(
    "/memberships/{membership_id}/confirm-payment",
    status_code=status.HTTP_200_OK,
    response_model=ConfirmPaymentResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def confirm_payment(
    membership_id: UUID,
    request: ConfirmPaymentRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    cache: ReadThroughCache = Depends(get_read_cache),
):
    """
    Confirm Payment

    Reconciliation endpoint to activate a PENDING membership whose payment
    was confirmed outside the webhook. Replaying the same transaction id
    returns the membership unchanged.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 404 Not Found: MEMBERSHIP_NOT_FOUND
        - 409 Conflict: INVALID_STATE_TRANSITION, PERSISTENCE_CONFLICT
    """
    use_case = ConfirmPaymentUseCase(uow, cache)
    result = await use_case.execute(membership_id, request.transaction_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/memberships/expire",
    status_code=status.HTTP_200_OK,
    response_model=ExpireMembershipsResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def expire_memberships(
    uow: UnitOfWork = Depends(get_unit_of_work),
    cache: ReadThroughCache = Depends(get_read_cache),
):
    """
    Expire Memberships

    Scheduler endpoint that flips cancelled memberships past their end date
    and abandoned pending memberships to EXPIRED.

    Requires: X-Admin-API-Key header
    """
    use_case = ExpireMembershipsUseCase(uow, cache, ApplicationConfig.PENDING_EXPIRY_HOURS)
    result = await use_case.execute()

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/membership-tiers/seed",
    status_code=status.HTTP_200_OK,
    response_model=SeedTiersResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def seed_tiers(
    uow: UnitOfWork = Depends(get_unit_of_work),
    cache: ReadThroughCache = Depends(get_read_cache),
):
    """
    Seed Membership Tiers

    Installs or refreshes the default tier catalogue.

    Requires: X-Admin-API-Key header
    """
    result = await SeedTiersUseCase(uow, cache).execute()

    if result.is_err():
        raise_for_error(result.error)

    return result.value
