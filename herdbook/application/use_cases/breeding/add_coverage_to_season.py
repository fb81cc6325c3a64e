from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from herdbook.application.errors import ValidationError
from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.application.reconciliation.forward import on_coverage_added, set_diagnosis
from herdbook.application.use_cases.breeding.common import (
    RepasseInput,
    SeasonWrite,
    apply_repasse_input,
    ensure_coverage_type,
    ensure_diagnosis,
    load_season,
    save_season_changes,
)
from herdbook.domain.models.animal import DiagnosisResult, Sex
from herdbook.domain.models.breeding_season import BreedingSeason, BullRef, CoverageRecord
from herdbook.domain.services.animal_reference import complete_reference
from herdbook.domain.value_objects.parentage_mode import AnimalRef
from herdbook.utils.datetime_tz import local_today


@dataclass(slots=True)
class AddCoverageInput:
    date: date
    type: str
    cow_id: str | None = None
    cow_tag: str | None = None
    bulls: list[BullRef] = field(default_factory=list)
    bull_id: str | None = None
    bull_tag: str | None = None
    semen_code: str | None = None
    donor_cow_id: str | None = None
    donor_cow_tag: str | None = None
    technician: str | None = None
    notes: str | None = None
    pregnancy_result: str = DiagnosisResult.PENDING.value
    pregnancy_check_date: date | None = None
    repasse: RepasseInput | None = None


async def execute(
    uow: UnitOfWork,
    tenant_id: UUID,
    season_id: str,
    payload: AddCoverageInput,
) -> tuple[BreedingSeason, CoverageRecord]:
    ensure_coverage_type(payload.type)
    ensure_diagnosis(payload.pregnancy_result)
    if not payload.cow_id and not (payload.cow_tag or "").strip():
        raise ValidationError("cow_id or cow_tag is required")
    if len(payload.bulls) > 2:
        raise ValidationError("A coverage takes at most two candidate bulls")

    season = await load_season(uow, tenant_id, season_id)
    population = await uow.animals.list(tenant_id)
    cow = complete_reference(
        population, AnimalRef(payload.cow_id, payload.cow_tag), sex=Sex.FEMALE.value
    )
    donor = complete_reference(
        population, AnimalRef(payload.donor_cow_id, payload.donor_cow_tag), sex=Sex.FEMALE.value
    )

    coverage = CoverageRecord.create(
        cow.id or "",
        cow.tag or "",
        payload.date,
        payload.type,
        bulls=list(payload.bulls),
        bull_id=payload.bull_id,
        bull_tag=payload.bull_tag,
        semen_code=payload.semen_code,
        donor_cow_id=donor.id,
        donor_cow_tag=donor.tag,
        technician=payload.technician,
        notes=payload.notes,
    )
    if payload.pregnancy_result != DiagnosisResult.PENDING.value:
        set_diagnosis(
            coverage,
            payload.pregnancy_result,
            payload.pregnancy_check_date or local_today(),
        )
    if payload.repasse is not None:
        apply_repasse_input(coverage, payload.repasse)

    season.coverage_records.append(coverage)
    write = SeasonWrite(season)
    write.animals.extend(on_coverage_added(population, coverage))
    updated = await save_season_changes(uow, write)
    return updated, coverage
