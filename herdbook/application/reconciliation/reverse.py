from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import timedelta

from herdbook.application.reconciliation.forward import (
    outcome_of,
    resolve_dam,
    service_date,
    sync_pregnancy_records,
)
from herdbook.domain.models.animal import Animal, DiagnosisResult, Sex
from herdbook.domain.models.breeding_season import (
    BreedingSeason,
    CoverageRecord,
    estimated_conception_date,
)
from herdbook.domain.services.animal_reference import complete_reference
from herdbook.domain.value_objects.parentage_mode import (
    DirectParentage,
    FIVParentage,
    ParentageMode,
    gestating_mother,
    parentage_of,
)

logger = logging.getLogger(__name__)

PARENTAGE_TOLERANCE_DAYS = 45
SEASON_MATCH_MARGIN_DAYS = 60


@dataclass(slots=True)
class CoverageMatch:
    season: BreedingSeason
    coverage: CoverageRecord
    repasse: bool
    distance_days: int


@dataclass(slots=True)
class SireSyncResult:
    match: CoverageMatch
    changed_animals: list[Animal] = field(default_factory=list)


def _repasse_conceived(coverage: CoverageRecord) -> bool:
    return (
        coverage.pregnancy_result == DiagnosisResult.NEGATIVE.value
        and coverage.has_repasse
        and coverage.repasse.pregnancy_result == DiagnosisResult.POSITIVE.value
    )


def _coverage_fits(coverage: CoverageRecord, mode: ParentageMode) -> bool:
    mother = gestating_mother(mode)
    if not mother.matches(coverage.cow_id, coverage.cow_tag):
        return False
    if isinstance(mode, FIVParentage):
        if not coverage.is_fiv:
            return False
        has_coverage_donor = bool(coverage.donor_cow_id or (coverage.donor_cow_tag or "").strip())
        if mode.donor is not None and has_coverage_donor:
            return mode.donor.matches(coverage.donor_cow_id, coverage.donor_cow_tag)
        return True
    return not coverage.is_fiv


def find_coverage_for_calf(
    population: Sequence[Animal],
    seasons: Sequence[BreedingSeason],
    calf: Animal,
    tolerance_days: int = PARENTAGE_TOLERANCE_DAYS,
    margin_days: int = SEASON_MATCH_MARGIN_DAYS,
) -> CoverageMatch | None:
    """Locate the coverage a calf most plausibly came from.

    Seasons are searched newest first and the first season holding a fitting
    coverage wins; inside a season the coverage closest to the estimated
    conception date wins.
    """
    if calf.birth_date is None:
        return None
    mode = parentage_of(calf)
    if mode is None:
        return None
    mother = complete_reference(population, gestating_mother(mode), sex=Sex.FEMALE.value)
    if isinstance(mode, FIVParentage):
        donor = mode.donor
        if donor is not None:
            donor = complete_reference(population, donor, sex=Sex.FEMALE.value)
        mode = FIVParentage(recipient=mother, donor=donor)
    else:
        mode = DirectParentage(dam=mother)

    conception = estimated_conception_date(calf.birth_date)
    margin = timedelta(days=margin_days)
    for season in sorted(seasons, key=lambda s: s.start_date, reverse=True):
        if not (season.start_date - margin <= conception <= season.end_date + margin):
            continue
        best: CoverageMatch | None = None
        for coverage in season.coverage_records:
            if not _coverage_fits(coverage, mode):
                continue
            repasse = _repasse_conceived(coverage)
            distance = abs((service_date(coverage, repasse) - conception).days)
            if distance > tolerance_days:
                continue
            if best is None or distance < best.distance_days:
                best = CoverageMatch(season, coverage, repasse, distance)
        if best is not None:
            return best
    return None


def sync_sire_to_coverage(
    population: Sequence[Animal],
    seasons: Sequence[BreedingSeason],
    calf: Animal,
    tolerance_days: int = PARENTAGE_TOLERANCE_DAYS,
    margin_days: int = SEASON_MATCH_MARGIN_DAYS,
) -> SireSyncResult | None:
    """Write a calf's corrected sire back onto the coverage that produced it."""
    match = find_coverage_for_calf(population, seasons, calf, tolerance_days, margin_days)
    if match is None:
        logger.info("No coverage found for calf %s; sire change not propagated", calf.id)
        return None
    record = outcome_of(match.coverage, match.repasse)
    record.confirmed_sire_id = calf.sire_id
    record.confirmed_sire_tag = calf.sire_name
    result = SireSyncResult(match=match)
    dam = resolve_dam(population, match.coverage)
    if dam is not None and sync_pregnancy_records(dam, match.coverage):
        result.changed_animals.append(dam)
    logger.info(
        "Confirmed sire %s on coverage %s%s of season %s",
        calf.sire_name,
        match.coverage.id,
        " (repasse)" if match.repasse else "",
        match.season.id,
    )
    return result
