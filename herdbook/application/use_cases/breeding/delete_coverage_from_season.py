from __future__ import annotations

from uuid import UUID

from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.application.reconciliation.forward import on_coverage_deleted
from herdbook.application.use_cases.breeding.common import (
    SeasonWrite,
    load_coverage,
    load_season,
    save_season_changes,
)
from herdbook.domain.models.breeding_season import BreedingSeason


async def execute(
    uow: UnitOfWork, tenant_id: UUID, season_id: str, coverage_id: str
) -> BreedingSeason:
    season = await load_season(uow, tenant_id, season_id)
    coverage = load_coverage(season, coverage_id)
    season.coverage_records = [c for c in season.coverage_records if c.id != coverage_id]
    population = await uow.animals.list(tenant_id)
    write = SeasonWrite(season)
    write.animals.extend(on_coverage_deleted(population, coverage))
    return await save_season_changes(uow, write)
