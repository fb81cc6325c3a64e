from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from herdbook.application.errors import NotFound, ValidationError
from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.application.reconciliation.changes import ChangedAnimals, save_changed_animals
from herdbook.domain.models.animal import DiagnosisResult
from herdbook.domain.models.breeding_season import (
    BreedingSeason,
    BullRef,
    CoverageRecord,
    CoverageType,
    RepasseData,
    calculate_expected_calving_date,
)
from herdbook.domain.services.breeding_metrics import compute_season_metrics


@dataclass(slots=True)
class RepasseInput:
    """Repasse fields; None leaves the stored value unchanged."""

    enabled: bool | None = None
    start_date: date | None = None
    end_date: date | None = None
    bulls: list[BullRef] | None = None
    bull_id: str | None = None
    bull_tag: str | None = None
    pregnancy_result: str | None = None
    pregnancy_check_date: date | None = None


def ensure_diagnosis(result: str) -> None:
    if result not in {r.value for r in DiagnosisResult}:
        raise ValidationError(f"Invalid pregnancy result: {result}")


def ensure_coverage_type(coverage_type: str) -> None:
    if coverage_type not in {t.value for t in CoverageType}:
        raise ValidationError(f"Invalid coverage type: {coverage_type}")


def apply_repasse_input(coverage: CoverageRecord, payload: RepasseInput) -> None:
    if payload.pregnancy_result is not None:
        ensure_diagnosis(payload.pregnancy_result)
    repasse = coverage.repasse
    if repasse is None:
        repasse = RepasseData(enabled=bool(payload.enabled))
        coverage.repasse = repasse
    elif payload.enabled is not None:
        repasse.enabled = payload.enabled
    for field_name in (
        "start_date",
        "end_date",
        "bulls",
        "bull_id",
        "bull_tag",
        "pregnancy_result",
        "pregnancy_check_date",
    ):
        value = getattr(payload, field_name)
        if value is not None:
            setattr(repasse, field_name, list(value) if field_name == "bulls" else value)
    if repasse.start_date and repasse.end_date and repasse.end_date < repasse.start_date:
        raise ValidationError("Repasse end_date must be on or after start_date")
    if repasse.pregnancy_result == DiagnosisResult.POSITIVE.value:
        repasse.expected_calving_date = calculate_expected_calving_date(
            repasse.start_date or coverage.date
        )


async def load_season(uow: UnitOfWork, tenant_id: UUID, season_id: str) -> BreedingSeason:
    season = await uow.breeding_seasons.get(tenant_id, season_id)
    if not season:
        raise NotFound("Breeding season not found")
    return season


def load_coverage(season: BreedingSeason, coverage_id: str) -> CoverageRecord:
    coverage = season.find_coverage(coverage_id)
    if not coverage:
        raise NotFound("Coverage not found")
    return coverage


def ensure_repasse(coverage: CoverageRecord, repasse: bool) -> None:
    if repasse and coverage.repasse is None:
        raise ValidationError("Coverage has no repasse")


@dataclass(slots=True)
class SeasonWrite:
    season: BreedingSeason
    animals: ChangedAnimals = field(default_factory=ChangedAnimals)


async def save_season_changes(uow: UnitOfWork, write: SeasonWrite) -> BreedingSeason:
    """Persist the season with fresh metrics plus every animal it touched, then commit."""
    uow.ensure_write_budget(write.season.tenant_id, 1 + len(write.animals))
    write.season.metrics = compute_season_metrics(write.season)
    write.season.bump_version()
    updated = await uow.breeding_seasons.update(write.season)
    await save_changed_animals(uow, write.animals)
    await uow.commit()
    return updated
