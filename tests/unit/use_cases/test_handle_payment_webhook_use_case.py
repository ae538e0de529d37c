from datetime import UTC, datetime
from uuid import uuid4

import pytest

from src.adapter.services.demo_gateway import DemoPaymentGateway
from src.adapter.services.signature import sign_payload
from src.app.services.payment_gateway import membership_reference
from src.app.use_cases.membership import HandlePaymentWebhookUseCase
from src.domain.entities import MembershipStatus

SALT = "unit-test-salt"
NOW = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)


@pytest.fixture
def gateway():
    return DemoPaymentGateway(frontend_url="http://localhost:3000", salt=SALT)


def signed(payload):
    return {**payload, "hmac": sign_payload(payload, SALT)}


@pytest.mark.asyncio
async def test_completed_payment_activates_membership(
    mock_uow, cache, gateway, hdb_tier, make_membership
):
    # Arrange
    pending = make_membership(MembershipStatus.pending, payment_request_id="pr_1")
    mock_uow.memberships.get_by_id.return_value = pending
    mock_uow.tiers.get_by_id.return_value = hdb_tier
    payload = signed(
        {
            "payment_id": "pay_1",
            "payment_request_id": "pr_1",
            "reference_number": membership_reference(pending.id),
            "status": "completed",
            "amount": "25.00",
            "currency": "SGD",
        }
    )

    # Act
    use_case = HandlePaymentWebhookUseCase(mock_uow, gateway, cache)
    result = await use_case.execute(payload, now=NOW)

    # Assert
    assert result.is_ok()
    assert result.value.status == "confirmed"
    assert result.value.membership_id == str(pending.id)
    assert pending.status == MembershipStatus.active
    assert pending.gateway_transaction_id == "pay_1"


@pytest.mark.asyncio
async def test_duplicate_delivery_is_acknowledged(
    mock_uow, cache, gateway, hdb_tier, make_membership
):
    pending = make_membership(MembershipStatus.pending)
    mock_uow.memberships.get_by_id.return_value = pending
    mock_uow.tiers.get_by_id.return_value = hdb_tier
    payload = signed(
        {
            "payment_id": "pay_1",
            "reference_number": membership_reference(pending.id),
            "status": "completed",
        }
    )
    use_case = HandlePaymentWebhookUseCase(mock_uow, gateway, cache)

    await use_case.execute(payload, now=NOW)
    result = await use_case.execute(payload, now=NOW)

    assert result.is_ok()
    assert result.value.status == "already_processed"
    mock_uow.commit.assert_called_once()


@pytest.mark.parametrize("status", ["failed", "cancelled"])
@pytest.mark.asyncio
async def test_failed_payment_leaves_membership_pending(
    mock_uow, cache, gateway, make_membership, status
):
    pending = make_membership(MembershipStatus.pending)
    mock_uow.memberships.get_by_id.return_value = pending
    payload = signed(
        {
            "payment_request_id": "pr_1",
            "reference_number": membership_reference(pending.id),
            "status": status,
        }
    )

    use_case = HandlePaymentWebhookUseCase(mock_uow, gateway, cache)
    result = await use_case.execute(payload, now=NOW)

    assert result.is_ok()
    assert result.value.status == f"payment_{status}"
    assert pending.status == MembershipStatus.pending
    assert mock_uow.audit_events.create.call_args.args[0].action == f"membership_payment_{status}"


@pytest.mark.asyncio
async def test_tampered_payload_is_rejected(mock_uow, cache, gateway, make_membership):
    pending = make_membership(MembershipStatus.pending)
    payload = signed(
        {"reference_number": membership_reference(pending.id), "status": "completed"}
    )
    payload["status"] = "failed"

    use_case = HandlePaymentWebhookUseCase(mock_uow, gateway, cache)
    result = await use_case.execute(payload, now=NOW)

    assert result.is_err()
    assert result.error.code == "INVALID_SIGNATURE"
    mock_uow.memberships.get_by_id.assert_not_called()


@pytest.mark.asyncio
async def test_missing_signature_is_rejected(mock_uow, cache, gateway):
    use_case = HandlePaymentWebhookUseCase(mock_uow, gateway, cache)
    result = await use_case.execute({"status": "completed"}, now=NOW)

    assert result.is_err()
    assert result.error.code == "INVALID_SIGNATURE"


@pytest.mark.asyncio
async def test_falls_back_to_payment_request_lookup(
    mock_uow, cache, gateway, hdb_tier, make_membership
):
    pending = make_membership(MembershipStatus.pending, payment_request_id="pr_9")
    mock_uow.memberships.get_by_payment_request_id.return_value = pending
    mock_uow.memberships.get_by_id.side_effect = lambda membership_id: (
        pending if membership_id == pending.id else None
    )
    mock_uow.tiers.get_by_id.return_value = hdb_tier
    payload = signed({"payment_request_id": "pr_9", "status": "completed"})

    use_case = HandlePaymentWebhookUseCase(mock_uow, gateway, cache)
    result = await use_case.execute(payload, now=NOW)

    assert result.is_ok()
    assert pending.gateway_transaction_id == "pr_9"
    mock_uow.memberships.get_by_payment_request_id.assert_called_once_with("pr_9")


@pytest.mark.asyncio
async def test_unknown_membership(mock_uow, cache, gateway):
    payload = signed({"reference_number": membership_reference(uuid4()), "status": "completed"})

    use_case = HandlePaymentWebhookUseCase(mock_uow, gateway, cache)
    result = await use_case.execute(payload, now=NOW)

    assert result.is_err()
    assert result.error.code == "MEMBERSHIP_NOT_FOUND"


@pytest.mark.parametrize("status", ["pending", "refunded", "expired"])
@pytest.mark.asyncio
async def test_unhandled_status_is_acknowledged_and_ignored(
    mock_uow, cache, gateway, make_membership, status
):
    pending = make_membership(MembershipStatus.pending)
    mock_uow.memberships.get_by_id.return_value = pending
    payload = signed(
        {
            "payment_id": "pay_1",
            "reference_number": membership_reference(pending.id),
            "status": status,
        }
    )

    use_case = HandlePaymentWebhookUseCase(mock_uow, gateway, cache)
    result = await use_case.execute(payload, now=NOW)

    assert result.is_ok()
    assert result.value.status == "ignored"
    assert pending.status == MembershipStatus.pending
    mock_uow.commit.assert_not_called()
