from __future__ import annotations

from uuid import UUID

from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.application.reconciliation.changes import ChangedAnimals, save_changed_animals
from herdbook.application.reconciliation.forward import on_coverage_deleted
from herdbook.application.use_cases.breeding.common import load_season


async def execute(uow: UnitOfWork, tenant_id: UUID, season_id: str) -> None:
    """Delete a season and the records its coverages derived on dams and donors."""
    season = await load_season(uow, tenant_id, season_id)
    population = await uow.animals.list(tenant_id)
    changed = ChangedAnimals()
    for coverage in season.coverage_records:
        changed.extend(on_coverage_deleted(population, coverage))
    uow.ensure_write_budget(tenant_id, 1 + len(changed))
    await uow.breeding_seasons.delete(tenant_id, season_id)
    await save_changed_animals(uow, changed)
    await uow.commit()
