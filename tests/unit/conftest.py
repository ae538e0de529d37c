from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.app.services.payment_gateway import PaymentRedirect
from src.app.services.read_cache import ReadThroughCache
from src.domain.entities import (
    BillingCycle,
    Membership,
    MembershipStatus,
    MembershipTier,
    TierCode,
)

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    uow.detach = MagicMock(side_effect=lambda instance: instance)

    # Mock repositories
    uow.memberships = MagicMock()
    uow.memberships.get_by_id = AsyncMock(return_value=None)
    uow.memberships.get_by_customer_id = AsyncMock(return_value=[])
    uow.memberships.get_by_payment_request_id = AsyncMock(return_value=None)
    uow.memberships.get_pending_replacement = AsyncMock(return_value=None)
    uow.memberships.get_cancelled_ended_before = AsyncMock(return_value=[])
    uow.memberships.get_pending_created_before = AsyncMock(return_value=[])
    uow.memberships.create = AsyncMock(side_effect=lambda m: m)
    uow.memberships.update = AsyncMock(side_effect=lambda m: m)

    uow.tiers = MagicMock()
    uow.tiers.get_by_id = AsyncMock(return_value=None)
    uow.tiers.get_by_code = AsyncMock(return_value=None)
    uow.tiers.list_active = AsyncMock(return_value=[])
    uow.tiers.create = AsyncMock(side_effect=lambda t: t)
    uow.tiers.update = AsyncMock(side_effect=lambda t: t)

    uow.audit_events = MagicMock()
    uow.audit_events.create = AsyncMock(side_effect=lambda e: e)
    uow.audit_events.get_by_customer_paginated = AsyncMock(return_value=([], None))

    return uow


@pytest.fixture
def cache():
    return ReadThroughCache(maxsize=128, ttl=60)


@pytest.fixture
def mock_gateway():
    gateway = MagicMock()
    gateway.create_payment = AsyncMock(
        return_value=PaymentRedirect(
            payment_request_id="pr_123", url="https://pay.example.com/pr_123"
        )
    )
    return gateway


@pytest.fixture
def customer_id():
    return uuid4()


@pytest.fixture
def hdb_tier():
    return MembershipTier(
        id=uuid4(),
        code=TierCode.HDB,
        display_name="HDB Plan",
        monthly_price=Decimal("25.00"),
        yearly_price=Decimal("250.00"),
        service_requests_per_month=1,
        response_time_hours=72,
        annual_inspections=12,
    )


@pytest.fixture
def make_membership(customer_id, hdb_tier):
    """Build a membership in any state without touching the lifecycle functions"""

    def _make(status=MembershipStatus.active, **overrides):
        fields = dict(
            id=uuid4(),
            customer_id=customer_id,
            tier_id=hdb_tier.id,
            status=status,
            billing_cycle=BillingCycle.monthly,
            price=Decimal("25.00"),
            created_at=NOW,
        )
        if status == MembershipStatus.active:
            fields.update(
                start_date=NOW,
                next_billing_date=datetime(2026, 3, 31, 9, 0, tzinfo=UTC),
                auto_renew=True,
                gateway_transaction_id="txn_initial",
                usage_month="2026-03",
            )
        fields.update(overrides)
        return Membership(**fields)

    return _make
