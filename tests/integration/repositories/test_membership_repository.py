from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.audit_event_repository import AuditEventRepository
from src.adapter.repositories.membership_repository import MembershipRepository
from src.adapter.repositories.membership_tier_repository import MembershipTierRepository
from src.domain.entities import (
    AuditEvent,
    BillingCycle,
    Membership,
    MembershipStatus,
    MembershipTier,
    TierCode,
)
from src.domain.errors import PersistenceConflictError


async def create_tier(session) -> MembershipTier:
    tier = await MembershipTierRepository(session).create(
        MembershipTier(
            code=TierCode.HDB,
            display_name="HDB Plan",
            monthly_price=Decimal("25.00"),
            service_requests_per_month=1,
        )
    )
    await session.commit()
    return tier


def new_membership(customer_id, tier_id, status=MembershipStatus.pending) -> Membership:
    return Membership(
        customer_id=customer_id,
        tier_id=tier_id,
        status=status,
        billing_cycle=BillingCycle.monthly,
        price=Decimal("25.00"),
    )


@pytest.mark.asyncio
async def test_concurrent_update_raises_persistence_conflict(engine):
    """Two writers on one membership: the second commit attempt is rejected"""
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with Session() as setup:
        tier = await create_tier(setup)
        membership = await MembershipRepository(setup).create(new_membership(uuid4(), tier.id))
        await setup.commit()
        membership_id = membership.id

    async with Session() as first, Session() as second:
        first_repo = MembershipRepository(first)
        second_repo = MembershipRepository(second)
        first_copy = await first_repo.get_by_id(membership_id)
        second_copy = await second_repo.get_by_id(membership_id)

        first_copy.payment_request_id = "pr_first"
        await first_repo.update(first_copy)
        await first.commit()

        second_copy.status = MembershipStatus.active
        with pytest.raises(PersistenceConflictError):
            await second_repo.update(second_copy)
        await second.rollback()

    async with Session() as check:
        stored = await MembershipRepository(check).get_by_id(membership_id)
        assert stored.payment_request_id == "pr_first"
        assert stored.status == MembershipStatus.pending
        assert stored.version == 2


@pytest.mark.asyncio
async def test_only_one_active_membership_per_customer(db_session):
    tier = await create_tier(db_session)
    customer_id = uuid4()
    repo = MembershipRepository(db_session)

    await repo.create(new_membership(customer_id, tier.id, MembershipStatus.active))
    await repo.create(new_membership(customer_id, tier.id, MembershipStatus.cancelled))
    await db_session.commit()

    with pytest.raises(IntegrityError):
        await repo.create(new_membership(customer_id, tier.id, MembershipStatus.active))
    await db_session.rollback()


@pytest.mark.asyncio
async def test_customer_queries(db_session):
    tier = await create_tier(db_session)
    customer_id = uuid4()
    repo = MembershipRepository(db_session)
    now = datetime.now(UTC)

    active = await repo.create(new_membership(customer_id, tier.id, MembershipStatus.active))
    replacement = new_membership(customer_id, tier.id)
    replacement.replaces_membership_id = active.id
    replacement.payment_request_id = "pr_replacement"
    replacement = await repo.create(replacement)
    await repo.create(new_membership(uuid4(), tier.id))
    await db_session.commit()

    mine = await repo.get_by_customer_id(customer_id)
    assert {m.id for m in mine} == {active.id, replacement.id}

    pending = await repo.get_by_customer_id(customer_id, [MembershipStatus.pending])
    assert [m.id for m in pending] == [replacement.id]

    assert (await repo.get_pending_replacement(active.id)).id == replacement.id
    assert (await repo.get_by_payment_request_id("pr_replacement")).id == replacement.id
    assert len(await repo.get_pending_created_before(now + timedelta(minutes=1))) == 2
    assert await repo.get_pending_created_before(now - timedelta(days=1)) == []


@pytest.mark.asyncio
async def test_audit_events_paginate_newest_first(db_session):
    customer_id = uuid4()
    repo = AuditEventRepository(db_session)
    start = datetime(2026, 3, 1, tzinfo=UTC)
    for minute in range(5):
        await repo.create(
            AuditEvent(
                customer_id=customer_id,
                action=f"event_{minute}",
                created_at=start + timedelta(minutes=minute),
            )
        )
    await db_session.commit()

    page_one, cursor = await repo.get_by_customer_paginated(customer_id, limit=3)
    page_two, last_cursor = await repo.get_by_customer_paginated(
        customer_id, limit=3, cursor=cursor
    )

    assert [e.action for e in page_one] == ["event_4", "event_3", "event_2"]
    assert [e.action for e in page_two] == ["event_1", "event_0"]
    assert last_cursor is None

    restarted, _ = await repo.get_by_customer_paginated(customer_id, limit=3, cursor="%%%")
    assert [e.action for e in restarted] == ["event_4", "event_3", "event_2"]
