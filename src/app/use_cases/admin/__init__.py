"""Admin use cases for membership operations run by staff and schedulers."""

from .expire_memberships_use_case import ExpireMembershipsResponse, ExpireMembershipsUseCase
from .seed_tiers_use_case import DEFAULT_TIERS, SeedTiersResponse, SeedTiersUseCase

__all__ = [
    "SeedTiersUseCase",
    "SeedTiersResponse",
    "DEFAULT_TIERS",
    "ExpireMembershipsUseCase",
    "ExpireMembershipsResponse",
]
