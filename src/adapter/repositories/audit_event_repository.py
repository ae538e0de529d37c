import base64
import binascii
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.audit_event_repository import IAuditEventRepository
from src.domain.entities import AuditEvent
from src.domain.services.membership_lifecycle import ensure_utc


def encode_cursor(created_at: datetime) -> str:
    return base64.urlsafe_b64encode(ensure_utc(created_at).isoformat().encode("utf-8")).decode("utf-8")


def decode_cursor(cursor: str) -> Optional[datetime]:
    try:
        return ensure_utc(datetime.fromisoformat(base64.urlsafe_b64decode(cursor).decode("utf-8")))
    except (ValueError, TypeError, binascii.Error):
        return None


class AuditEventRepository(IAuditEventRepository):
    """AuditEvent repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, audit_event: AuditEvent) -> AuditEvent:
        """Create a new audit event (immutable)"""
        self.session.add(audit_event)
        await self.session.flush()
        await self.session.refresh(audit_event)
        return audit_event

    async def get_by_customer_paginated(
        self, customer_id: UUID, limit: int = 50, cursor: Optional[str] = None
    ) -> Tuple[List[AuditEvent], Optional[str]]:
        """
        Get a customer's audit events, newest first.

        Cursor format: urlsafe base64 of the created_at of the last event
        returned. An undecodable cursor restarts from the newest event.
        """
        stmt = select(AuditEvent).where(AuditEvent.customer_id == customer_id)

        before = decode_cursor(cursor) if cursor else None
        if before is not None:
            stmt = stmt.where(AuditEvent.created_at < before)

        # One extra row tells us whether another page exists
        stmt = stmt.order_by(AuditEvent.created_at.desc()).limit(limit + 1)
        result = await self.session.exec(stmt)
        events = list(result.all())

        if len(events) <= limit:
            return events, None

        events = events[:limit]
        return events, encode_cursor(events[-1].created_at)
