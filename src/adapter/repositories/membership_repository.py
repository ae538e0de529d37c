import logging
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy.orm.exc import StaleDataError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.membership_repository import IMembershipRepository
from src.domain.entities import Membership, MembershipStatus
from src.domain.errors import PersistenceConflictError

logger = logging.getLogger(__name__)


class MembershipRepository(IMembershipRepository):
    """Membership repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, membership_id: UUID) -> Optional[Membership]:
        """Get membership by ID"""
        stmt = select(Membership).where(Membership.id == membership_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_customer_id(
        self, customer_id: UUID, statuses: Optional[Sequence[MembershipStatus]] = None
    ) -> List[Membership]:
        """Get a customer's memberships, newest first, optionally filtered by status"""
        stmt = select(Membership).where(Membership.customer_id == customer_id)
        if statuses:
            stmt = stmt.where(Membership.status.in_(list(statuses)))
        stmt = stmt.order_by(Membership.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_payment_request_id(self, payment_request_id: str) -> Optional[Membership]:
        """Get the membership a gateway payment request was issued for"""
        stmt = select(Membership).where(Membership.payment_request_id == payment_request_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_pending_replacement(self, membership_id: UUID) -> Optional[Membership]:
        """Get the pending plan-change replacement of a membership, if any"""
        stmt = select(Membership).where(
            Membership.replaces_membership_id == membership_id,
            Membership.status == MembershipStatus.pending,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_cancelled_ended_before(self, cutoff: datetime) -> List[Membership]:
        """Get cancelled memberships whose end_date is at or before cutoff"""
        stmt = select(Membership).where(
            Membership.status == MembershipStatus.cancelled,
            Membership.end_date <= cutoff,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_pending_created_before(self, cutoff: datetime) -> List[Membership]:
        """Get pending memberships created at or before cutoff"""
        stmt = select(Membership).where(
            Membership.status == MembershipStatus.pending,
            Membership.created_at <= cutoff,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, membership: Membership) -> Membership:
        """Create a new membership"""
        self.session.add(membership)
        await self.session.flush()
        await self.session.refresh(membership)
        return membership

    async def update(self, membership: Membership) -> Membership:
        """Update existing membership; the version column guards concurrent writers"""
        # A failed flush expires the instance, so read the id up front
        membership_id = membership.id
        self.session.add(membership)
        try:
            await self.session.flush()
        except StaleDataError as exc:
            logger.warning(f"Concurrent modification of membership {membership_id}")
            raise PersistenceConflictError(
                "Membership was modified concurrently, re-read and retry"
            ) from exc
        await self.session.refresh(membership)
        return membership
