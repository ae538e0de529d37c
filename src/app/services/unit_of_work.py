from abc import ABC, abstractmethod

from src.app.repositories.audit_event_repository import IAuditEventRepository
from src.app.repositories.membership_repository import IMembershipRepository
from src.app.repositories.membership_tier_repository import IMembershipTierRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    memberships: IMembershipRepository
    tiers: IMembershipTierRepository
    audit_events: IAuditEventRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass

    @abstractmethod
    def detach(self, instance):
        """Detach a loaded entity so it can outlive this unit of work (e.g. in a cache)"""
        pass
