from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from src.app.services.read_cache import CURRENT_MEMBERSHIP, TIER, TIER_LIST
from src.app.use_cases.admin import DEFAULT_TIERS, ExpireMembershipsUseCase, SeedTiersUseCase
from src.domain.entities import MembershipStatus, TierCode
from src.domain.errors import PersistenceConflictError

NOW = datetime(2026, 4, 1, 0, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_seed_creates_default_tiers(mock_uow, cache):
    # Act
    result = await SeedTiersUseCase(mock_uow, cache).execute()

    # Assert
    assert result.is_ok()
    assert result.value.created == [
        TierCode.HDB,
        TierCode.CONDOMINIUM,
        TierCode.LANDED_PROPERTY,
        TierCode.COMMERCIAL,
    ]
    assert result.value.updated == []

    created = {call.args[0].code: call.args[0] for call in mock_uow.tiers.create.call_args_list}
    assert created[TierCode.HDB].monthly_price == Decimal("25.00")
    assert created[TierCode.COMMERCIAL].yearly_price == Decimal("500.00")
    assert created[TierCode.COMMERCIAL].dedicated_manager is True
    assert created[TierCode.CONDOMINIUM].response_time_hours == 48
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_seed_updates_existing_tier_and_invalidates_cache(mock_uow, cache, hdb_tier):
    hdb_tier.monthly_price = Decimal("20.00")
    hdb_tier.is_active = False
    mock_uow.tiers.get_by_code.side_effect = lambda code: hdb_tier if code == TierCode.HDB else None
    cache.set(TIER, hdb_tier.id, hdb_tier)
    cache.set(TIER_LIST, "active", [])

    result = await SeedTiersUseCase(mock_uow, cache).execute()

    assert result.value.updated == [TierCode.HDB]
    assert len(result.value.created) == len(DEFAULT_TIERS) - 1
    assert hdb_tier.monthly_price == Decimal("25.00")
    assert hdb_tier.is_active is True
    assert cache.get(TIER, hdb_tier.id) is None
    assert cache.get(TIER_LIST, "active") is None


@pytest.mark.asyncio
async def test_sweep_expires_ended_cancellations_and_stale_pending(
    mock_uow, cache, customer_id, make_membership
):
    # Arrange
    ended = make_membership(MembershipStatus.cancelled, end_date=NOW - timedelta(days=1))
    stale = make_membership(MembershipStatus.pending, created_at=NOW - timedelta(days=5))
    mock_uow.memberships.get_cancelled_ended_before.return_value = [ended]
    mock_uow.memberships.get_pending_created_before.return_value = [stale]
    cache.set(CURRENT_MEMBERSHIP, customer_id, ended)

    # Act
    use_case = ExpireMembershipsUseCase(mock_uow, cache, pending_expiry_hours=72)
    result = await use_case.execute(now=NOW)

    # Assert
    assert result.is_ok()
    assert result.value.cancelled_expired == 1
    assert result.value.pending_expired == 1
    assert ended.status == MembershipStatus.expired
    assert ended.end_date == NOW - timedelta(days=1)
    assert stale.status == MembershipStatus.expired
    assert stale.cancellation_reason == "Payment not completed"
    mock_uow.memberships.get_pending_created_before.assert_called_once_with(
        NOW - timedelta(hours=72)
    )
    assert cache.get(CURRENT_MEMBERSHIP, customer_id) is None
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_sweep_with_nothing_to_expire(mock_uow, cache):
    result = await ExpireMembershipsUseCase(mock_uow, cache).execute(now=NOW)

    assert result.value.cancelled_expired == 0
    assert result.value.pending_expired == 0


@pytest.mark.asyncio
async def test_sweep_conflict(mock_uow, cache, make_membership):
    ended = make_membership(MembershipStatus.cancelled, end_date=NOW - timedelta(days=1))
    mock_uow.memberships.get_cancelled_ended_before.return_value = [ended]
    mock_uow.memberships.update.side_effect = PersistenceConflictError("stale")

    result = await ExpireMembershipsUseCase(mock_uow, cache).execute(now=NOW)

    assert result.is_err()
    assert result.error.code == "PERSISTENCE_CONFLICT"
    mock_uow.commit.assert_not_called()
