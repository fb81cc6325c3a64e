from __future__ import annotations

import logging
from uuid import UUID

from herdbook.application.errors import NotFound
from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.domain.models.breeding_season import BreedingSeason

logger = logging.getLogger(__name__)


def count_coverage_references(seasons: list[BreedingSeason], animal_id: str) -> int:
    count = 0
    for season in seasons:
        for coverage in season.coverage_records:
            refs = {coverage.cow_id, coverage.donor_cow_id, coverage.bull_id} | coverage.linked_calf_ids()
            if animal_id in refs:
                count += 1
    return count


async def execute(uow: UnitOfWork, tenant_id: UUID, animal_id: str) -> None:
    animal = await uow.animals.get(tenant_id, animal_id)
    if not animal:
        raise NotFound("Animal not found")
    uow.ensure_write_budget(tenant_id, 1)
    # Coverage and progeny references are left in place
    seasons = await uow.breeding_seasons.list(tenant_id)
    orphaned = count_coverage_references(seasons, animal_id)
    if orphaned:
        logger.warning(
            "Deleting animal %s (%s) leaves %d coverage references orphaned",
            animal_id,
            animal.tag,
            orphaned,
        )
    await uow.animals.delete(tenant_id, animal_id)
    await uow.commit()
