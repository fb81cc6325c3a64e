from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from herdbook.application.errors import ValidationError
from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.domain.models.breeding_season import BreedingSeason, BullRef, SeasonStatus
from herdbook.domain.services.breeding_metrics import compute_season_metrics


@dataclass(slots=True)
class CreateBreedingSeasonInput:
    name: str
    start_date: date
    end_date: date
    status: str = SeasonStatus.PLANNING.value
    exposed_cow_ids: list[str] = field(default_factory=list)
    bulls: list[BullRef] = field(default_factory=list)
    pregnancy_check_days: int = 60
    notes: str | None = None


def validate_season_fields(
    name: str | None,
    start_date: date | None,
    end_date: date | None,
    status: str | None,
    pregnancy_check_days: int | None,
) -> None:
    if name is not None and not name.strip():
        raise ValidationError("name is required")
    if start_date and end_date and end_date < start_date:
        raise ValidationError("end_date must be on or after start_date")
    if status is not None and status not in {s.value for s in SeasonStatus}:
        raise ValidationError(f"Invalid status: {status}")
    if pregnancy_check_days is not None and pregnancy_check_days < 1:
        raise ValidationError("pregnancy_check_days must be >= 1")


async def execute(
    uow: UnitOfWork, tenant_id: UUID, payload: CreateBreedingSeasonInput
) -> BreedingSeason:
    validate_season_fields(
        payload.name,
        payload.start_date,
        payload.end_date,
        payload.status,
        payload.pregnancy_check_days,
    )
    uow.ensure_write_budget(tenant_id, 1)
    season = BreedingSeason.create(
        tenant_id=tenant_id,
        name=payload.name.strip(),
        start_date=payload.start_date,
        end_date=payload.end_date,
        status=payload.status,
        exposed_cow_ids=payload.exposed_cow_ids,
        bulls=payload.bulls,
        pregnancy_check_days=payload.pregnancy_check_days,
        notes=payload.notes,
    )
    season.metrics = compute_season_metrics(season)
    created = await uow.breeding_seasons.add(season)
    await uow.commit()
    return created
