from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from herdbook.application.errors import ConflictError, ValidationError
from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.application.use_cases.breeding.common import SeasonWrite, load_season, save_season_changes
from herdbook.application.use_cases.breeding.create_breeding_season import validate_season_fields
from herdbook.domain.models.breeding_season import BreedingSeason, BullRef


@dataclass(slots=True)
class UpdateBreedingSeasonInput:
    version: int
    name: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    status: str | None = None
    bulls: list[BullRef] | None = None
    pregnancy_check_days: int | None = None
    notes: str | None = None
    add_exposed_cow_ids: list[str] | None = None
    remove_exposed_cow_ids: list[str] | None = None


async def execute(
    uow: UnitOfWork,
    tenant_id: UUID,
    season_id: str,
    payload: UpdateBreedingSeasonInput,
) -> BreedingSeason:
    if payload.version < 1:
        raise ValidationError("Invalid version value")
    season = await load_season(uow, tenant_id, season_id)
    if season.version != payload.version:
        raise ConflictError("Version mismatch while updating breeding season")

    validate_season_fields(
        payload.name,
        payload.start_date or season.start_date,
        payload.end_date or season.end_date,
        payload.status,
        payload.pregnancy_check_days,
    )
    for field_name in ("name", "start_date", "end_date", "status", "pregnancy_check_days", "notes"):
        value = getattr(payload, field_name)
        if value is not None:
            setattr(season, field_name, value.strip() if field_name == "name" else value)
    if payload.bulls is not None:
        season.bulls = list(payload.bulls)
    if payload.remove_exposed_cow_ids:
        season.remove_exposed_cows(payload.remove_exposed_cow_ids)
    if payload.add_exposed_cow_ids:
        season.add_exposed_cows(payload.add_exposed_cow_ids)
    return await save_season_changes(uow, SeasonWrite(season))
