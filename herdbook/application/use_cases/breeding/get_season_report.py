from __future__ import annotations

from datetime import date
from uuid import UUID

from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.application.use_cases.breeding.common import load_season
from herdbook.domain.services.breeding_metrics import SeasonReport, build_season_report
from herdbook.utils.datetime_tz import local_today


async def execute(
    uow: UnitOfWork,
    tenant_id: UUID,
    season_id: str,
    today: date | None = None,
) -> SeasonReport:
    season = await load_season(uow, tenant_id, season_id)
    return build_season_report(season, today or local_today())
