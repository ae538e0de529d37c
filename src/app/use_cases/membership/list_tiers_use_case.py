"""
List Tiers Use Case

Public catalogue of the active membership tiers.
"""

from src.libs.result import Result, Return
from src.app.services.read_cache import ReadThroughCache
from src.app.services.unit_of_work import UnitOfWork

from .common import load_active_tiers
from .dtos import ListTiersResponse, TierResponse


class ListTiersUseCase:
    """Active tiers ordered by monthly price; served from the read cache"""

    def __init__(self, uow: UnitOfWork, cache: ReadThroughCache):
        self.uow = uow
        self.cache = cache

    async def execute(self) -> Result[ListTiersResponse]:
        async with self.uow:
            tiers = await load_active_tiers(self.uow, self.cache)

        return Return.ok(ListTiersResponse(tiers=[TierResponse.from_entity(t) for t in tiers]))
