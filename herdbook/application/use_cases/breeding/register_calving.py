from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from herdbook.application.errors import ConflictError, NotFound
from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.application.reconciliation.forward import (
    expected_calving,
    mark_calved,
    on_coverage_updated,
    outcome_of,
)
from herdbook.application.reconciliation.progeny import link_calf_to_parent
from herdbook.application.use_cases.breeding.common import (
    SeasonWrite,
    ensure_repasse,
    load_coverage,
    load_season,
    save_season_changes,
)
from herdbook.domain.models.breeding_season import BreedingSeason, CoverageRecord
from herdbook.utils.datetime_tz import local_today


@dataclass(slots=True)
class RegisterCalvingInput:
    calf_id: str
    calving_date: date | None = None
    notes: str | None = None
    repasse: bool = False


def find_claim(
    seasons: list[BreedingSeason], calf_id: str
) -> tuple[CoverageRecord, bool] | None:
    for season in seasons:
        for coverage in season.coverage_records:
            if coverage.calf_id == calf_id:
                return coverage, False
            if coverage.repasse is not None and coverage.repasse.calf_id == calf_id:
                return coverage, True
    return None


async def execute(
    uow: UnitOfWork,
    tenant_id: UUID,
    season_id: str,
    coverage_id: str,
    payload: RegisterCalvingInput,
) -> CoverageRecord:
    season = await load_season(uow, tenant_id, season_id)
    coverage = load_coverage(season, coverage_id)
    ensure_repasse(coverage, payload.repasse)
    calf = await uow.animals.get(tenant_id, payload.calf_id)
    if not calf:
        raise NotFound("Calf not found")

    seasons = await uow.breeding_seasons.list(tenant_id)
    claim = find_claim(seasons, calf.id)
    if claim is not None and (claim[0].id, claim[1]) != (coverage.id, payload.repasse):
        raise ConflictError(
            "Calf is already linked to another coverage",
            details={"coverage_id": claim[0].id, "repasse": claim[1]},
        )

    today = local_today()
    before = copy.deepcopy(coverage)
    record = outcome_of(coverage, payload.repasse)
    record.expected_calving_date = expected_calving(coverage, payload.repasse)
    mark_calved(record, calf, payload.calving_date or calf.birth_date or today)
    if payload.notes is not None:
        record.calving_notes = payload.notes
    if record.pregnancy_check_date is None:
        record.pregnancy_check_date = record.actual_calving_date

    population = await uow.animals.list(tenant_id)
    write = SeasonWrite(season)
    write.animals.extend(on_coverage_updated(population, before, coverage, today))
    write.animals.add(link_calf_to_parent(population, calf))
    await save_season_changes(uow, write)
    return coverage
