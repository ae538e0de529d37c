from typing import List, Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.membership_tier_repository import IMembershipTierRepository
from src.domain.entities import MembershipTier, TierCode


class MembershipTierRepository(IMembershipTierRepository):
    """MembershipTier repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, tier_id: UUID) -> Optional[MembershipTier]:
        """Get tier by ID"""
        stmt = select(MembershipTier).where(MembershipTier.id == tier_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_code(self, code: TierCode) -> Optional[MembershipTier]:
        """Get tier by code"""
        stmt = select(MembershipTier).where(MembershipTier.code == code)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_active(self) -> List[MembershipTier]:
        """Get active tiers ordered by monthly price"""
        stmt = (
            select(MembershipTier)
            .where(MembershipTier.is_active == True)  # noqa: E712
            .order_by(MembershipTier.monthly_price)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, tier: MembershipTier) -> MembershipTier:
        """Create a new tier"""
        self.session.add(tier)
        await self.session.flush()
        await self.session.refresh(tier)
        return tier

    async def update(self, tier: MembershipTier) -> MembershipTier:
        """Update existing tier"""
        self.session.add(tier)
        await self.session.flush()
        await self.session.refresh(tier)
        return tier
