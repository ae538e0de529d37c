from uuid import uuid4

import pytest

from src.app.services.payment_gateway import PaymentRedirect
from src.app.use_cases.membership import RetryPaymentUseCase
from src.domain.entities import MembershipStatus
from src.domain.errors import PaymentGatewayUnavailableError


@pytest.mark.asyncio
async def test_retry_payment_issues_new_url_for_same_membership(
    mock_uow, mock_gateway, cache, customer_id, hdb_tier, make_membership
):
    """Abandoned checkout: new URL, same membership id, still PENDING"""
    # Arrange
    pending = make_membership(MembershipStatus.pending, payment_request_id="pr_old")
    mock_uow.memberships.get_by_customer_id.return_value = [pending]
    mock_uow.tiers.get_by_id.return_value = hdb_tier
    mock_gateway.create_payment.return_value = PaymentRedirect(
        payment_request_id="pr_new", url="https://pay.example.com/pr_new"
    )

    # Act
    use_case = RetryPaymentUseCase(mock_uow, mock_gateway, cache)
    result = await use_case.execute(customer_id)

    # Assert
    assert result.is_ok()
    assert result.value.membership_id == str(pending.id)
    assert result.value.payment_url == "https://pay.example.com/pr_new"
    assert pending.status == MembershipStatus.pending
    assert pending.payment_request_id == "pr_new"
    mock_uow.memberships.create.assert_not_called()

    audit_event = mock_uow.audit_events.create.call_args.args[0]
    assert audit_event.action == "membership_payment_retried"
    assert audit_event.event_metadata["previous_payment_request_id"] == "pr_old"


@pytest.mark.asyncio
async def test_retry_payment_with_explicit_membership_id(
    mock_uow, mock_gateway, cache, customer_id, hdb_tier, make_membership
):
    pending = make_membership(MembershipStatus.pending)
    mock_uow.memberships.get_by_id.return_value = pending
    mock_uow.tiers.get_by_id.return_value = hdb_tier

    use_case = RetryPaymentUseCase(mock_uow, mock_gateway, cache)
    result = await use_case.execute(customer_id, membership_id=pending.id)

    assert result.is_ok()
    mock_uow.memberships.get_by_id.assert_called_once_with(pending.id)


@pytest.mark.parametrize(
    "status", [MembershipStatus.active, MembershipStatus.cancelled, MembershipStatus.expired]
)
@pytest.mark.asyncio
async def test_retry_payment_requires_pending(
    mock_uow, mock_gateway, cache, customer_id, make_membership, status
):
    membership = make_membership(status)
    mock_uow.memberships.get_by_id.return_value = membership

    use_case = RetryPaymentUseCase(mock_uow, mock_gateway, cache)
    result = await use_case.execute(customer_id, membership_id=membership.id)

    assert result.is_err()
    assert result.error.code == "NOT_PENDING"
    mock_gateway.create_payment.assert_not_called()


@pytest.mark.asyncio
async def test_retry_payment_without_pending_membership(
    mock_uow, mock_gateway, cache, customer_id
):
    use_case = RetryPaymentUseCase(mock_uow, mock_gateway, cache)
    result = await use_case.execute(customer_id)

    assert result.is_err()
    assert result.error.code == "NOT_PENDING"


@pytest.mark.asyncio
async def test_retry_payment_for_other_customers_membership(
    mock_uow, mock_gateway, cache, make_membership
):
    pending = make_membership(MembershipStatus.pending)
    mock_uow.memberships.get_by_id.return_value = pending

    use_case = RetryPaymentUseCase(mock_uow, mock_gateway, cache)
    result = await use_case.execute(uuid4(), membership_id=pending.id)

    assert result.is_err()
    assert result.error.code == "MEMBERSHIP_NOT_FOUND"


@pytest.mark.asyncio
async def test_retry_payment_gateway_unavailable(
    mock_uow, mock_gateway, cache, customer_id, hdb_tier, make_membership
):
    pending = make_membership(MembershipStatus.pending, payment_request_id="pr_old")
    mock_uow.memberships.get_by_customer_id.return_value = [pending]
    mock_uow.tiers.get_by_id.return_value = hdb_tier
    mock_gateway.create_payment.side_effect = PaymentGatewayUnavailableError("down")

    use_case = RetryPaymentUseCase(mock_uow, mock_gateway, cache)
    result = await use_case.execute(customer_id)

    assert result.is_err()
    assert result.error.code == "PAYMENT_GATEWAY_UNAVAILABLE"
    assert pending.payment_request_id == "pr_old"
    mock_uow.commit.assert_not_called()
