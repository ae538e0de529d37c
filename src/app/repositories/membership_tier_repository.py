from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from src.domain.entities import MembershipTier, TierCode


class IMembershipTierRepository(ABC):
    """MembershipTier repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, tier_id: UUID) -> Optional[MembershipTier]:
        """Get tier by ID"""
        pass

    @abstractmethod
    async def get_by_code(self, code: TierCode) -> Optional[MembershipTier]:
        """Get tier by code"""
        pass

    @abstractmethod
    async def list_active(self) -> List[MembershipTier]:
        """Get active tiers ordered by monthly price"""
        pass

    @abstractmethod
    async def create(self, tier: MembershipTier) -> MembershipTier:
        """Create a new tier"""
        pass

    @abstractmethod
    async def update(self, tier: MembershipTier) -> MembershipTier:
        """Update existing tier"""
        pass
