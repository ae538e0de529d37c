from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient

from src.domain.entities import BillingCycle, Membership, MembershipStatus


@pytest.mark.asyncio
async def test_expire_sweep_flips_overdue_memberships(
    client: AsyncClient, db_session, tiers, admin_headers, customer_headers
):
    # Arrange: one cancellation past its end date, one abandoned checkout, one live grace period
    now = datetime.now(UTC)
    tier_id = UUID(tiers["HDB"]["id"])
    ended_customer = uuid4()
    ended = Membership(
        customer_id=ended_customer,
        tier_id=tier_id,
        status=MembershipStatus.cancelled,
        billing_cycle=BillingCycle.monthly,
        price=Decimal("25.00"),
        start_date=now - timedelta(days=40),
        cancelled_at=now - timedelta(days=20),
        end_date=now - timedelta(days=10),
    )
    abandoned = Membership(
        customer_id=uuid4(),
        tier_id=tier_id,
        status=MembershipStatus.pending,
        billing_cycle=BillingCycle.monthly,
        price=Decimal("25.00"),
        created_at=now - timedelta(days=5),
    )
    in_grace = Membership(
        customer_id=uuid4(),
        tier_id=tier_id,
        status=MembershipStatus.cancelled,
        billing_cycle=BillingCycle.monthly,
        price=Decimal("25.00"),
        end_date=now + timedelta(days=5),
    )
    db_session.add_all([ended, abandoned, in_grace])
    await db_session.commit()
    ended_id, in_grace_id = ended.id, in_grace.id

    # Lazily the ended membership already reads as expired
    my = (
        await client.get("/membership/my-membership", headers=customer_headers(ended_customer))
    ).json()
    assert my["membership"]["status"] == "cancelled"
    assert my["membership"]["effective_status"] == "expired"
    assert my["membership"]["has_active_access"] is False

    # Act
    response = await client.post("/admin/memberships/expire", headers=admin_headers)

    # Assert
    assert response.status_code == 200
    assert response.json() == {"cancelled_expired": 1, "pending_expired": 1}

    my = (
        await client.get("/membership/my-membership", headers=customer_headers(ended_customer))
    ).json()
    assert my["membership"]["id"] == str(ended_id)
    assert my["membership"]["status"] == "expired"

    response = await client.post("/admin/memberships/expire", headers=admin_headers)
    assert response.json() == {"cancelled_expired": 0, "pending_expired": 0}

    remaining = await db_session.get(Membership, in_grace_id)
    assert remaining.status == MembershipStatus.cancelled


@pytest.mark.asyncio
async def test_admin_confirm_unknown_membership(client: AsyncClient, admin_headers):
    response = await client.post(
        f"/admin/memberships/{uuid4()}/confirm-payment",
        json={"transaction_id": "pay_x"},
        headers=admin_headers,
    )

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "MEMBERSHIP_NOT_FOUND"


@pytest.mark.asyncio
async def test_admin_confirm_requires_api_key(client: AsyncClient):
    response = await client.post(
        f"/admin/memberships/{uuid4()}/confirm-payment", json={"transaction_id": "pay_x"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_admin_confirm_rejects_already_active_membership(
    client: AsyncClient, tiers, customer_headers, admin_headers
):
    headers = customer_headers()
    response = await client.post(
        "/membership/payment",
        json={"tier_id": tiers["HDB"]["id"], "billing_cycle": "monthly"},
        headers=headers,
    )
    membership_id = response.json()["membership"]["id"]

    first = await client.post(
        f"/admin/memberships/{membership_id}/confirm-payment",
        json={"transaction_id": "pay_1"},
        headers=admin_headers,
    )
    replay = await client.post(
        f"/admin/memberships/{membership_id}/confirm-payment",
        json={"transaction_id": "pay_1"},
        headers=admin_headers,
    )
    other = await client.post(
        f"/admin/memberships/{membership_id}/confirm-payment",
        json={"transaction_id": "pay_2"},
        headers=admin_headers,
    )

    assert first.status_code == 200
    assert replay.status_code == 200
    assert replay.json()["membership"] == first.json()["membership"]
    assert other.status_code == 409
    assert other.json()["error"]["code"] == "INVALID_STATE_TRANSITION"
