from __future__ import annotations

from uuid import UUID

from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.application.use_cases.breeding.common import load_season
from herdbook.domain.models.breeding_season import BreedingSeason


async def execute(uow: UnitOfWork, tenant_id: UUID, season_id: str) -> BreedingSeason:
    return await load_season(uow, tenant_id, season_id)
