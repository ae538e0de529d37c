from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from src.domain.entities import Membership, MembershipStatus


class IMembershipRepository(ABC):
    """Membership repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, membership_id: UUID) -> Optional[Membership]:
        """Get membership by ID"""
        pass

    @abstractmethod
    async def get_by_customer_id(
        self, customer_id: UUID, statuses: Optional[Sequence[MembershipStatus]] = None
    ) -> List[Membership]:
        """Get a customer's memberships, newest first, optionally filtered by status"""
        pass

    @abstractmethod
    async def get_by_payment_request_id(self, payment_request_id: str) -> Optional[Membership]:
        """Get the membership a gateway payment request was issued for"""
        pass

    @abstractmethod
    async def get_pending_replacement(self, membership_id: UUID) -> Optional[Membership]:
        """Get the pending plan-change replacement of a membership, if any"""
        pass

    @abstractmethod
    async def get_cancelled_ended_before(self, cutoff: datetime) -> List[Membership]:
        """Get cancelled memberships whose end_date is at or before cutoff"""
        pass

    @abstractmethod
    async def get_pending_created_before(self, cutoff: datetime) -> List[Membership]:
        """Get pending memberships created at or before cutoff"""
        pass

    @abstractmethod
    async def create(self, membership: Membership) -> Membership:
        """Create a new membership"""
        pass

    @abstractmethod
    async def update(self, membership: Membership) -> Membership:
        """
        Update existing membership.

        Raises:
            PersistenceConflictError: the row changed since it was loaded
        """
        pass
