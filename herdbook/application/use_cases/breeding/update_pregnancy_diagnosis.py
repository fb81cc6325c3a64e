from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.application.reconciliation.forward import on_coverage_updated, set_diagnosis
from herdbook.application.use_cases.breeding.common import (
    SeasonWrite,
    ensure_diagnosis,
    ensure_repasse,
    load_coverage,
    load_season,
    save_season_changes,
)
from herdbook.domain.models.breeding_season import CoverageRecord
from herdbook.utils.datetime_tz import local_today


@dataclass(slots=True)
class UpdateDiagnosisInput:
    result: str  # PENDING, POSITIVE, NEGATIVE
    check_date: date | None = None
    repasse: bool = False


async def execute(
    uow: UnitOfWork,
    tenant_id: UUID,
    season_id: str,
    coverage_id: str,
    payload: UpdateDiagnosisInput,
    today: date | None = None,
) -> CoverageRecord:
    ensure_diagnosis(payload.result)
    today = today or local_today()
    season = await load_season(uow, tenant_id, season_id)
    coverage = load_coverage(season, coverage_id)
    ensure_repasse(coverage, payload.repasse)

    before = copy.deepcopy(coverage)
    set_diagnosis(coverage, payload.result, payload.check_date or today, repasse=payload.repasse)

    population = await uow.animals.list(tenant_id)
    write = SeasonWrite(season)
    write.animals.extend(on_coverage_updated(population, before, coverage, today))
    await save_season_changes(uow, write)
    return coverage
