"""Coverage changes propagated into the dam's and donor's histories.

Every function works on the population handed in by the caller and returns
the animals it modified; persisting them is left to the use case.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from herdbook.domain.models.animal import (
    AbortionRecord,
    Animal,
    DiagnosisResult,
    OffspringWeightRecord,
    PregnancyRecord,
    PregnancyType,
    Sex,
)
from herdbook.domain.models.breeding_season import (
    PREGNANCY_TYPE_BY_COVERAGE,
    BullRef,
    CalvingResult,
    CoverageRecord,
    RepasseData,
    abortion_record_id,
    calculate_expected_calving_date,
    embryo_placeholder_id,
    embryo_placeholder_label,
    pregnancy_record_id,
)
from herdbook.domain.services.animal_reference import resolve_animal_reference
from herdbook.domain.services.breeding_metrics import coverage_sire_name

logger = logging.getLogger(__name__)

Outcome = CoverageRecord | RepasseData


def outcome_of(coverage: CoverageRecord, repasse: bool) -> Outcome:
    if repasse:
        if coverage.repasse is None:
            raise ValueError(f"Coverage {coverage.id} has no repasse")
        return coverage.repasse
    return coverage


def service_date(coverage: CoverageRecord, repasse: bool) -> date:
    if repasse and coverage.repasse is not None and coverage.repasse.start_date:
        return coverage.repasse.start_date
    return coverage.date


def expected_calving(coverage: CoverageRecord, repasse: bool) -> date:
    record = outcome_of(coverage, repasse)
    return record.expected_calving_date or calculate_expected_calving_date(
        service_date(coverage, repasse)
    )


def resolve_dam(population: Sequence[Animal], coverage: CoverageRecord) -> Animal | None:
    return resolve_animal_reference(
        population, coverage.cow_id, coverage.cow_tag, sex=Sex.FEMALE.value
    )


def resolve_donor(population: Sequence[Animal], coverage: CoverageRecord) -> Animal | None:
    if not coverage.is_fiv or not (coverage.donor_cow_id or coverage.donor_cow_tag):
        return None
    return resolve_animal_reference(
        population, coverage.donor_cow_id, coverage.donor_cow_tag, sex=Sex.FEMALE.value
    )


# --- derived records -----------------------------------------------------------


def main_pregnancy_record(coverage: CoverageRecord) -> PregnancyRecord:
    return PregnancyRecord(
        id=pregnancy_record_id(coverage.id),
        date=coverage.date,
        type=PREGNANCY_TYPE_BY_COVERAGE.get(coverage.type, PregnancyType.NATURAL.value),
        sire_name=coverage_sire_name(coverage),
        result=coverage.pregnancy_result,
    )


def repasse_pregnancy_record(coverage: CoverageRecord) -> PregnancyRecord:
    repasse = outcome_of(coverage, True)
    return PregnancyRecord(
        id=pregnancy_record_id(coverage.id, repasse=True),
        date=service_date(coverage, True),
        type=PregnancyType.NATURAL.value,
        sire_name=coverage_sire_name(repasse),
        result=repasse.pregnancy_result,
    )


def sync_pregnancy_records(dam: Animal, coverage: CoverageRecord) -> bool:
    """Upsert the main and repasse pregnancy records; drop the repasse ones when disabled."""
    before = list(dam.pregnancy_history), list(dam.abortion_history)
    dam.upsert_pregnancy(main_pregnancy_record(coverage))
    if coverage.has_repasse:
        dam.upsert_pregnancy(repasse_pregnancy_record(coverage))
    else:
        dam.remove_pregnancy(pregnancy_record_id(coverage.id, repasse=True))
        dam.remove_abortion(abortion_record_id(coverage.id, repasse=True))
    return (dam.pregnancy_history, dam.abortion_history) != before


def refresh_repasse_expected_calving(coverage: CoverageRecord) -> None:
    """Keep a dated repasse's expected calving on its current service date.

    A repasse without its own start date follows the coverage date.
    """
    repasse = coverage.repasse
    if repasse is None:
        return
    if (
        repasse.expected_calving_date is None
        and repasse.pregnancy_result != DiagnosisResult.POSITIVE.value
    ):
        return
    repasse.expected_calving_date = calculate_expected_calving_date(
        service_date(coverage, True)
    )


def remove_derived_records(dam: Animal, coverage_id: str) -> bool:
    changed = False
    for repasse in (False, True):
        changed |= dam.remove_pregnancy(pregnancy_record_id(coverage_id, repasse=repasse))
        changed |= dam.remove_abortion(abortion_record_id(coverage_id, repasse=repasse))
    return changed


def apply_abortion_rule(
    dam: Animal,
    coverage_id: str,
    previous_result: str,
    current_result: str,
    on_date: date,
    *,
    repasse: bool = False,
) -> bool:
    """Only a positive diagnosis turning negative is a pregnancy loss.

    Moving away from negative withdraws the loss again.
    """
    record_id = abortion_record_id(coverage_id, repasse=repasse)
    if (
        previous_result == DiagnosisResult.POSITIVE.value
        and current_result == DiagnosisResult.NEGATIVE.value
    ):
        return dam.add_abortion(AbortionRecord(id=record_id, date=on_date))
    if current_result != DiagnosisResult.NEGATIVE.value:
        return dam.remove_abortion(record_id)
    return False


def embryo_placeholder(coverage: CoverageRecord) -> OffspringWeightRecord:
    return OffspringWeightRecord(
        id=embryo_placeholder_id(coverage.id),
        offspring_tag=embryo_placeholder_label(coverage.cow_tag),
        coverage_id=coverage.id,
        recipient_id=coverage.cow_id or None,
    )


def upsert_embryo_placeholder(donor: Animal, coverage: CoverageRecord) -> bool:
    existing = donor.find_progeny(embryo_placeholder_id(coverage.id))
    if existing is None:
        donor.progeny.append(embryo_placeholder(coverage))
        return True
    if existing.offspring_id is not None:
        return False
    fresh = embryo_placeholder(coverage)
    if (existing.offspring_tag, existing.recipient_id) == (fresh.offspring_tag, fresh.recipient_id):
        return False
    existing.offspring_tag = fresh.offspring_tag
    existing.recipient_id = fresh.recipient_id
    existing.coverage_id = fresh.coverage_id
    return True


def remove_embryo_placeholder(donor: Animal, coverage_id: str) -> bool:
    """Drop the placeholder unless a born calf has already taken it over."""
    existing = donor.find_progeny(embryo_placeholder_id(coverage_id))
    if existing is None or existing.offspring_id is not None:
        return False
    return donor.remove_progeny(existing.id)


# --- coverage lifecycle --------------------------------------------------------


def on_coverage_added(population: Sequence[Animal], coverage: CoverageRecord) -> list[Animal]:
    changed: list[Animal] = []
    dam = resolve_dam(population, coverage)
    if dam is None:
        logger.debug("Coverage %s: dam %s not found, skipping", coverage.id, coverage.cow_id)
    else:
        sync_pregnancy_records(dam, coverage)
        changed.append(dam)
    donor = resolve_donor(population, coverage)
    if donor is not None and upsert_embryo_placeholder(donor, coverage):
        changed.append(donor)
    return changed


def _diagnosis_of(record: Outcome | None) -> str:
    if record is None:
        return DiagnosisResult.PENDING.value
    if isinstance(record, RepasseData) and not record.enabled:
        return DiagnosisResult.PENDING.value
    return record.pregnancy_result


def on_coverage_updated(
    population: Sequence[Animal],
    before: CoverageRecord,
    after: CoverageRecord,
    today: date,
) -> list[Animal]:
    """Bring dam and donor histories in line with an edited coverage.

    ``before`` is a copy of the coverage taken before the edit.
    """
    changed: dict[str, Animal] = {}
    if after.date != before.date:
        after.recompute_expected_calving()
    refresh_repasse_expected_calving(after)

    old_dam = resolve_dam(population, before)
    dam = resolve_dam(population, after)
    if old_dam is not None and (dam is None or dam.id != old_dam.id):
        loss_ids = {abortion_record_id(after.id), abortion_record_id(after.id, repasse=True)}
        moved = [a for a in old_dam.abortion_history if a.id in loss_ids]
        if remove_derived_records(old_dam, after.id):
            changed[old_dam.id] = old_dam
        if dam is not None:
            for record in moved:
                dam.add_abortion(record)

    if dam is None:
        logger.debug("Coverage %s: dam %s not found, skipping", after.id, after.cow_id)
    else:
        touched = sync_pregnancy_records(dam, after)
        touched |= apply_abortion_rule(
            dam,
            after.id,
            _diagnosis_of(before),
            after.pregnancy_result,
            after.pregnancy_check_date or today,
        )
        if after.has_repasse:
            touched |= apply_abortion_rule(
                dam,
                after.id,
                _diagnosis_of(before.repasse),
                after.repasse.pregnancy_result,
                after.repasse.pregnancy_check_date or today,
                repasse=True,
            )
        if touched or (old_dam is not None and old_dam.id != dam.id):
            changed[dam.id] = dam

    old_donor = resolve_donor(population, before)
    donor = resolve_donor(population, after)
    if old_donor is not None and (donor is None or donor.id != old_donor.id):
        if remove_embryo_placeholder(old_donor, after.id):
            changed[old_donor.id] = old_donor
    if donor is not None and upsert_embryo_placeholder(donor, after):
        changed[donor.id] = donor
    return list(changed.values())


def on_coverage_deleted(population: Sequence[Animal], coverage: CoverageRecord) -> list[Animal]:
    changed: list[Animal] = []
    dam = resolve_dam(population, coverage)
    if dam is not None and remove_derived_records(dam, coverage.id):
        changed.append(dam)
    donor = resolve_donor(population, coverage)
    if donor is not None and remove_embryo_placeholder(donor, coverage.id):
        changed.append(donor)
    return changed


# --- outcomes ------------------------------------------------------------------


def set_diagnosis(
    coverage: CoverageRecord,
    result: str,
    check_date: date,
    *,
    repasse: bool = False,
) -> None:
    record = outcome_of(coverage, repasse)
    record.pregnancy_result = result
    record.pregnancy_check_date = check_date
    if result == DiagnosisResult.POSITIVE.value:
        record.expected_calving_date = calculate_expected_calving_date(
            service_date(coverage, repasse)
        )


def mark_calved(record: Outcome, calf: Animal, calving_date: date | None = None) -> None:
    record.pregnancy_result = DiagnosisResult.POSITIVE.value
    record.calving_result = CalvingResult.CALVED.value
    record.calf_id = calf.id
    record.calf_tag = calf.tag
    record.actual_calving_date = calving_date or calf.birth_date


def mark_aborted(record: Outcome, notes: str | None = None) -> None:
    record.calving_result = CalvingResult.ABORTED.value
    record.calving_notes = notes


def record_abortion(dam: Animal, coverage_id: str, on_date: date, *, repasse: bool = False) -> bool:
    return dam.add_abortion(
        AbortionRecord(id=abortion_record_id(coverage_id, repasse=repasse), date=on_date)
    )


def apply_paternity(
    population: Sequence[Animal],
    coverage: CoverageRecord,
    bull: BullRef,
    *,
    repasse: bool = False,
) -> list[Animal]:
    """Confirm one bull as sire and carry it to the pregnancy record and the calf."""
    record = outcome_of(coverage, repasse)
    record.confirmed_sire_id = bull.bull_id
    record.confirmed_sire_tag = bull.bull_tag
    changed: list[Animal] = []
    dam = resolve_dam(population, coverage)
    if dam is not None:
        sync_pregnancy_records(dam, coverage)
        changed.append(dam)
    if record.calf_id:
        calf = next((a for a in population if a.id == record.calf_id), None)
        if calf is not None and (calf.sire_id, calf.sire_name) != (bull.bull_id, bull.bull_tag):
            calf.sire_id = bull.bull_id
            calf.sire_name = bull.bull_tag
            changed.append(calf)
    return changed
