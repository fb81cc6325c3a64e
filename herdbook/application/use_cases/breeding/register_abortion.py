from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.application.reconciliation.forward import (
    mark_aborted,
    outcome_of,
    record_abortion,
    resolve_dam,
)
from herdbook.application.use_cases.breeding.common import (
    SeasonWrite,
    ensure_repasse,
    load_coverage,
    load_season,
    save_season_changes,
)
from herdbook.domain.models.breeding_season import CoverageRecord
from herdbook.utils.datetime_tz import local_today


@dataclass(slots=True)
class RegisterAbortionInput:
    date: date | None = None
    notes: str | None = None
    repasse: bool = False


async def execute(
    uow: UnitOfWork,
    tenant_id: UUID,
    season_id: str,
    coverage_id: str,
    payload: RegisterAbortionInput,
) -> CoverageRecord:
    season = await load_season(uow, tenant_id, season_id)
    coverage = load_coverage(season, coverage_id)
    ensure_repasse(coverage, payload.repasse)

    mark_aborted(outcome_of(coverage, payload.repasse), payload.notes)
    population = await uow.animals.list(tenant_id)
    write = SeasonWrite(season)
    dam = resolve_dam(population, coverage)
    if dam is not None and record_abortion(
        dam, coverage.id, payload.date or local_today(), repasse=payload.repasse
    ):
        write.animals.add(dam)
    await save_season_changes(uow, write)
    return coverage
