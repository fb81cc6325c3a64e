from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from herdbook.application.errors import ValidationError
from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.application.reconciliation.forward import on_coverage_updated
from herdbook.application.use_cases.breeding.common import (
    RepasseInput,
    SeasonWrite,
    apply_repasse_input,
    ensure_coverage_type,
    ensure_diagnosis,
    load_coverage,
    load_season,
    save_season_changes,
)
from herdbook.domain.models.animal import DiagnosisResult, Sex
from herdbook.domain.models.breeding_season import (
    BreedingSeason,
    BullRef,
    CoverageRecord,
    calculate_expected_calving_date,
)
from herdbook.domain.services.animal_reference import complete_reference
from herdbook.domain.value_objects.parentage_mode import AnimalRef
from herdbook.utils.datetime_tz import local_today


@dataclass(slots=True)
class UpdateCoverageInput:
    """Coverage fields; None leaves the stored value unchanged."""

    date: date | None = None
    type: str | None = None
    cow_id: str | None = None
    cow_tag: str | None = None
    bulls: list[BullRef] | None = None
    bull_id: str | None = None
    bull_tag: str | None = None
    semen_code: str | None = None
    donor_cow_id: str | None = None
    donor_cow_tag: str | None = None
    technician: str | None = None
    notes: str | None = None
    pregnancy_result: str | None = None
    pregnancy_check_date: date | None = None
    repasse: RepasseInput | None = None


async def execute(
    uow: UnitOfWork,
    tenant_id: UUID,
    season_id: str,
    coverage_id: str,
    payload: UpdateCoverageInput,
    today: date | None = None,
) -> tuple[BreedingSeason, CoverageRecord]:
    if payload.type is not None:
        ensure_coverage_type(payload.type)
    if payload.pregnancy_result is not None:
        ensure_diagnosis(payload.pregnancy_result)
    if payload.bulls is not None and len(payload.bulls) > 2:
        raise ValidationError("A coverage takes at most two candidate bulls")

    season = await load_season(uow, tenant_id, season_id)
    coverage = load_coverage(season, coverage_id)
    before = copy.deepcopy(coverage)
    population = await uow.animals.list(tenant_id)

    for field_name in (
        "date",
        "type",
        "cow_id",
        "cow_tag",
        "bull_id",
        "bull_tag",
        "semen_code",
        "donor_cow_id",
        "donor_cow_tag",
        "technician",
        "notes",
        "pregnancy_result",
        "pregnancy_check_date",
    ):
        value = getattr(payload, field_name)
        if value is not None:
            setattr(coverage, field_name, value)
    if payload.bulls is not None:
        coverage.bulls = list(payload.bulls)
    if payload.date is not None:
        coverage.expected_calving_date = calculate_expected_calving_date(coverage.date)
    if (
        coverage.pregnancy_result != before.pregnancy_result
        and coverage.pregnancy_result != DiagnosisResult.PENDING.value
        and payload.pregnancy_check_date is None
    ):
        coverage.pregnancy_check_date = today or local_today()
    if payload.repasse is not None:
        apply_repasse_input(coverage, payload.repasse)

    if payload.cow_id is not None or payload.cow_tag is not None:
        cow = complete_reference(
            population, AnimalRef(payload.cow_id, payload.cow_tag), sex=Sex.FEMALE.value
        )
        coverage.cow_id, coverage.cow_tag = cow.id or "", cow.tag or ""
    if payload.donor_cow_id is not None or payload.donor_cow_tag is not None:
        donor = complete_reference(
            population,
            AnimalRef(payload.donor_cow_id, payload.donor_cow_tag),
            sex=Sex.FEMALE.value,
        )
        coverage.donor_cow_id, coverage.donor_cow_tag = donor.id, donor.tag

    write = SeasonWrite(season)
    write.animals.extend(on_coverage_updated(population, before, coverage, today or local_today()))
    updated = await save_season_changes(uow, write)
    return updated, coverage
