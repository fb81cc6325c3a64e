from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from herdbook.application.errors import ValidationError
from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.application.reconciliation.forward import apply_paternity, outcome_of
from herdbook.application.use_cases.breeding.common import (
    SeasonWrite,
    ensure_repasse,
    load_coverage,
    load_season,
    save_season_changes,
)
from herdbook.domain.models.breeding_season import CoverageRecord


@dataclass(slots=True)
class ConfirmPaternityInput:
    bull_id: str
    repasse: bool = False


async def execute(
    uow: UnitOfWork,
    tenant_id: UUID,
    season_id: str,
    coverage_id: str,
    payload: ConfirmPaternityInput,
) -> CoverageRecord:
    season = await load_season(uow, tenant_id, season_id)
    coverage = load_coverage(season, coverage_id)
    ensure_repasse(coverage, payload.repasse)
    candidates = outcome_of(coverage, payload.repasse).candidate_bulls()
    bull = next((b for b in candidates if b.bull_id == payload.bull_id), None)
    if bull is None:
        raise ValidationError("Bull is not a candidate sire for this coverage")

    population = await uow.animals.list(tenant_id)
    write = SeasonWrite(season)
    write.animals.extend(apply_paternity(population, coverage, bull, repasse=payload.repasse))
    await save_season_changes(uow, write)
    return coverage
