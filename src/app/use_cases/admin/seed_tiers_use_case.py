"""
Use Case: Seed Membership Tiers

Admin endpoint that installs the default tier catalogue. Tiers are
upserted by code, so running it again refreshes prices and features
without creating duplicates or touching existing memberships.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List

from pydantic import BaseModel

from src.libs.result import Result, Return
from src.app.services.read_cache import ReadThroughCache
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.membership.common import invalidate_tiers
from src.domain.entities import MembershipTier, TierCode

logger = logging.getLogger(__name__)

DEFAULT_TIERS: List[Dict[str, Any]] = [
    {
        "code": TierCode.HDB,
        "display_name": "HDB Plan",
        "description": "Monthly assessment, minor repair labor included, waived transport, parts billed separately",
        "monthly_price": Decimal("25.00"),
        "yearly_price": Decimal("250.00"),
        "service_requests_per_month": 1,
        "response_time_hours": 72,
        "material_discount_percent": 0,
        "annual_inspections": 12,
        "emergency_service": False,
        "priority_support": False,
        "dedicated_manager": False,
    },
    {
        "code": TierCode.CONDOMINIUM,
        "display_name": "Condominium Plan",
        "description": "Same as HDB, with specialized focus on condominium facilities",
        "monthly_price": Decimal("35.00"),
        "yearly_price": Decimal("350.00"),
        "service_requests_per_month": 1,
        "response_time_hours": 48,
        "material_discount_percent": 0,
        "annual_inspections": 12,
        "emergency_service": False,
        "priority_support": True,
        "dedicated_manager": False,
    },
    {
        "code": TierCode.LANDED_PROPERTY,
        "display_name": "Landed Property Plan",
        "description": "Tailored maintenance for landed homes with expanded coverage areas",
        "monthly_price": Decimal("40.00"),
        "yearly_price": Decimal("400.00"),
        "service_requests_per_month": 1,
        "response_time_hours": 48,
        "material_discount_percent": 0,
        "annual_inspections": 12,
        "emergency_service": True,
        "priority_support": True,
        "dedicated_manager": False,
    },
    {
        "code": TierCode.COMMERCIAL,
        "display_name": "Commercial Plan",
        "description": "Comprehensive facility upkeep with customized maintenance schedules",
        "monthly_price": Decimal("50.00"),
        "yearly_price": Decimal("500.00"),
        "service_requests_per_month": 1,
        "response_time_hours": 24,
        "material_discount_percent": 0,
        "annual_inspections": 12,
        "emergency_service": True,
        "priority_support": True,
        "dedicated_manager": True,
    },
]


class SeedTiersResponse(BaseModel):
    """Response DTO for SeedTiersUseCase"""

    created: List[TierCode]
    updated: List[TierCode]


class SeedTiersUseCase:
    """
    Upsert the default membership tiers.

    Business Logic:
    1. Look up each default tier by code
    2. Create missing tiers, overwrite fields of existing ones (re-activating them)
    3. Invalidate cached tier reads

    Idempotent: seeding twice yields the same catalogue
    """

    def __init__(self, uow: UnitOfWork, cache: ReadThroughCache):
        self.uow = uow
        self.cache = cache

    async def execute(self) -> Result[SeedTiersResponse]:
        created: List[TierCode] = []
        updated: List[TierCode] = []
        touched_ids = []

        async with self.uow:
            for data in DEFAULT_TIERS:
                tier = await self.uow.tiers.get_by_code(data["code"])
                if tier is None:
                    tier = await self.uow.tiers.create(MembershipTier(**data, is_active=True))
                    created.append(tier.code)
                else:
                    for field, value in data.items():
                        setattr(tier, field, value)
                    tier.is_active = True
                    tier = await self.uow.tiers.update(tier)
                    updated.append(tier.code)
                touched_ids.append(tier.id)

            await self.uow.commit()

        invalidate_tiers(self.cache, touched_ids)
        logger.info(f"Seeded membership tiers: {len(created)} created, {len(updated)} updated")

        return Return.ok(SeedTiersResponse(created=created, updated=updated))
