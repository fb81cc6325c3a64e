from __future__ import annotations

from typing import Protocol
from uuid import UUID

from herdbook.domain.models.breeding_season import BreedingSeason


class BreedingSeasonRepository(Protocol):
    async def add(self, season: BreedingSeason) -> BreedingSeason: ...

    async def get(self, tenant_id: UUID, season_id: str) -> BreedingSeason | None: ...

    async def list(self, tenant_id: UUID) -> list[BreedingSeason]: ...

    async def update(self, season: BreedingSeason) -> BreedingSeason: ...

    async def delete(self, tenant_id: UUID, season_id: str) -> bool: ...
