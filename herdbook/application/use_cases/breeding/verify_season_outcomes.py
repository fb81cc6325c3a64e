from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from herdbook.application.errors import ValidationError
from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.application.reconciliation.sweep import CALVING_TOLERANCE_DAYS, SeasonSweep, SweepResult
from herdbook.application.use_cases.breeding.common import SeasonWrite, load_season, save_season_changes
from herdbook.domain.models.breeding_season import BullSwitchConfig
from herdbook.utils.datetime_tz import local_today

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class VerifySeasonInput:
    tolerance_days: int = CALVING_TOLERANCE_DAYS
    bull_switch_configs: list[BullSwitchConfig] = field(default_factory=list)
    today: date | None = None


async def execute(
    uow: UnitOfWork,
    tenant_id: UUID,
    season_id: str,
    payload: VerifySeasonInput,
) -> SweepResult:
    if payload.tolerance_days < 0:
        raise ValidationError("tolerance_days must be >= 0")
    season = await load_season(uow, tenant_id, season_id)
    population = await uow.animals.list(tenant_id)
    seasons = await uow.breeding_seasons.list(tenant_id)
    before = copy.deepcopy(season)

    sweep = SeasonSweep(
        population,
        seasons,
        season,
        today=payload.today or local_today(),
        tolerance_days=payload.tolerance_days,
        bull_switch_configs={c.coverage_id: c for c in payload.bull_switch_configs},
    )
    result = sweep.run()
    if season == before and not sweep.changed:
        logger.debug("Season %s sweep found nothing to write", season_id)
        return result
    write = SeasonWrite(season)
    write.animals.extend(sweep.changed)
    await save_season_changes(uow, write)
    return result
