from __future__ import annotations

from uuid import UUID

from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.domain.models.breeding_season import BreedingSeason


async def execute(
    uow: UnitOfWork, tenant_id: UUID, *, status: str | None = None
) -> list[BreedingSeason]:
    seasons = await uow.breeding_seasons.list(tenant_id)
    if status is not None:
        seasons = [s for s in seasons if s.status == status]
    return sorted(seasons, key=lambda s: s.start_date, reverse=True)
