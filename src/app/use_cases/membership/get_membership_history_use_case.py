"""
Get Membership History Use Case

Retrieves the customer's membership audit trail with pagination.
"""

from typing import Optional
from uuid import UUID

from src.libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.services.membership_lifecycle import ensure_utc

from .dtos import MembershipHistoryResponse

MAX_PAGE_SIZE = 100


class GetMembershipHistoryUseCase:
    """
    Use case for retrieving a customer's membership events.

    Business Rules:
    - Results are customer-scoped
    - Results ordered by newest first
    - Supports cursor-based pagination
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, customer_id: UUID, limit: int = 50, cursor: Optional[str] = None
    ) -> Result[MembershipHistoryResponse]:
        """
        Execute get membership history use case.

        Args:
            customer_id: Customer UUID from JWT
            limit: Maximum number of events to return (capped at 100)
            cursor: Pagination cursor (optional)

        Returns:
            Result with events list and next_cursor
        """
        limit = max(1, min(limit, MAX_PAGE_SIZE))

        async with self.uow:
            events, next_cursor = await self.uow.audit_events.get_by_customer_paginated(
                customer_id, limit=limit, cursor=cursor
            )

            events_list = [
                {
                    "action": event.action,
                    "membership_id": str(event.membership_id) if event.membership_id else None,
                    "timestamp": ensure_utc(event.created_at).isoformat(),
                    "metadata": event.event_metadata or {},
                }
                for event in events
            ]

        return Return.ok(MembershipHistoryResponse(events=events_list, next_cursor=next_cursor))
