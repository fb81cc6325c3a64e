from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from herdbook.application.reconciliation.changes import ChangedAnimals
from herdbook.application.reconciliation.forward import (
    apply_abortion_rule,
    apply_paternity,
    mark_aborted,
    mark_calved,
    outcome_of,
    record_abortion,
    resolve_dam,
    service_date,
    sync_pregnancy_records,
)
from herdbook.application.reconciliation.progeny import link_calf_to_parent
from herdbook.domain.models.animal import Animal, DiagnosisResult
from herdbook.domain.models.breeding_season import (
    GESTATION_DAYS,
    BreedingSeason,
    BullRef,
    BullSwitchConfig,
    CalvingResult,
    CoverageRecord,
    CoverageType,
    calculate_expected_calving_date,
    estimated_conception_date,
)
from herdbook.domain.services.breeding_metrics import compute_season_metrics
from herdbook.domain.services.temporal_matching import find_best_match, offspring_born_between
from herdbook.domain.value_objects.parentage_mode import AnimalRef, DirectParentage, FIVParentage

logger = logging.getLogger(__name__)

CALVING_TOLERANCE_DAYS = 30


@dataclass(slots=True)
class SweepResult:
    linked: int = 0
    registered: int = 0
    pending: int = 0
    discovered: int = 0
    paternity_confirmed: int = 0


def discovered_coverage_id(cow_id: str, calf_id: str) -> str:
    return f"discovered_{cow_id}_{calf_id}"


def choose_bull(
    bulls: Sequence[BullRef],
    config: BullSwitchConfig,
    birth_date: date | None,
) -> BullRef | None:
    """Pick the sire among two candidate bulls from a paternity hint."""
    if len(bulls) < 2:
        return None
    if config.selected_bull_index is not None:
        if 0 <= config.selected_bull_index < len(bulls):
            return bulls[config.selected_bull_index]
        return None
    if config.switch_date is not None and birth_date is not None:
        if estimated_conception_date(birth_date) < config.switch_date:
            return bulls[0]
        return bulls[1]
    return None


def linked_calf_ids(seasons: Sequence[BreedingSeason]) -> set[str]:
    ids: set[str] = set()
    for season in seasons:
        for coverage in season.coverage_records:
            ids |= coverage.linked_calf_ids()
    return ids


class SeasonSweep:
    """Registers calving outcomes for every coverage of one season.

    Positive diagnoses get their calf linked, or an abortion once the
    expected date plus tolerance has passed. Negative diagnoses are probed
    for calves anyway, and exposed cows without any coverage get a
    retroactive one when a calf of theirs shows up in the season window.
    """

    def __init__(
        self,
        population: Sequence[Animal],
        seasons: Sequence[BreedingSeason],
        season: BreedingSeason,
        today: date,
        tolerance_days: int = CALVING_TOLERANCE_DAYS,
        bull_switch_configs: Mapping[str, BullSwitchConfig] | None = None,
    ) -> None:
        self.population = list(population)
        self.season = season
        self.today = today
        self.tolerance_days = tolerance_days
        self.bull_switch_configs = dict(bull_switch_configs or {})
        self.excluded = linked_calf_ids(seasons) | linked_calf_ids([season])
        self.changed = ChangedAnimals()
        self.result = SweepResult()

    def run(self) -> SweepResult:
        for coverage in list(self.season.coverage_records):
            self._process_coverage(coverage)
        self._discover_uncovered_exposed_cows()
        self.season.metrics = compute_season_metrics(self.season)
        logger.info(
            "Season %s sweep: linked=%d registered=%d pending=%d discovered=%d paternity=%d",
            self.season.id,
            self.result.linked,
            self.result.registered,
            self.result.pending,
            self.result.discovered,
            self.result.paternity_confirmed,
        )
        return self.result

    def _process_coverage(self, coverage: CoverageRecord) -> None:
        if coverage.pregnancy_result == DiagnosisResult.POSITIVE.value:
            self._resolve_positive(coverage, repasse=False)

        repasse_claimed = False
        if coverage.has_repasse:
            repasse = coverage.repasse
            if repasse.pregnancy_result == DiagnosisResult.POSITIVE.value:
                self._resolve_positive(coverage, repasse=True)
            elif repasse.pregnancy_result == DiagnosisResult.NEGATIVE.value:
                self._probe_missed_pregnancy(coverage, repasse=True)
            repasse_claimed = (
                repasse.pregnancy_result == DiagnosisResult.POSITIVE.value
                or repasse.calf_id is not None
            )

        if coverage.pregnancy_result == DiagnosisResult.NEGATIVE.value and not repasse_claimed:
            self._probe_missed_pregnancy(coverage, repasse=False)

    def _match(self, coverage: CoverageRecord, repasse: bool, expected: date) -> Animal | None:
        breeding_type = CoverageType.NATURAL.value if repasse else coverage.type
        return find_best_match(
            self.population,
            coverage.cow_id,
            expected,
            self.tolerance_days,
            self.excluded,
            breeding_type,
            None if repasse else coverage.donor_cow_id,
            mother_tag=coverage.cow_tag,
            donor_tag=None if repasse else coverage.donor_cow_tag,
        )

    def _resolve_positive(self, coverage: CoverageRecord, repasse: bool) -> None:
        record = outcome_of(coverage, repasse)
        if record.calving_result != CalvingResult.PENDING.value:
            return
        if record.expected_calving_date is None:
            record.expected_calving_date = calculate_expected_calving_date(
                service_date(coverage, repasse)
            )
        expected = record.expected_calving_date
        calf = self._match(coverage, repasse, expected)
        if calf is not None:
            self._link(coverage, repasse, calf)
            self.result.linked += 1
            return
        deadline = expected + timedelta(days=self.tolerance_days)
        if self.today > deadline:
            mark_aborted(
                record,
                f"Aborto presumido: nenhum bezerro encontrado ate {deadline.isoformat()}",
            )
            dam = resolve_dam(self.population, coverage)
            if dam is not None and record_abortion(dam, coverage.id, expected, repasse=repasse):
                self.changed.add(dam)
            self.result.registered += 1
            return
        self.result.pending += 1

    def _probe_missed_pregnancy(self, coverage: CoverageRecord, repasse: bool) -> None:
        record = outcome_of(coverage, repasse)
        if record.calving_result != CalvingResult.PENDING.value:
            return
        expected = calculate_expected_calving_date(service_date(coverage, repasse))
        calf = self._match(coverage, repasse, expected)
        if calf is None:
            return
        record.pregnancy_result = DiagnosisResult.POSITIVE.value
        record.expected_calving_date = expected
        self._link(coverage, repasse, calf)
        dam = resolve_dam(self.population, coverage)
        if dam is not None and apply_abortion_rule(
            dam,
            coverage.id,
            DiagnosisResult.NEGATIVE.value,
            DiagnosisResult.POSITIVE.value,
            self.today,
            repasse=repasse,
        ):
            self.changed.add(dam)
        self.result.discovered += 1
        logger.info(
            "Coverage %s%s: calf %s found despite negative diagnosis",
            coverage.id,
            " (repasse)" if repasse else "",
            calf.id,
        )

    def _link(self, coverage: CoverageRecord, repasse: bool, calf: Animal) -> None:
        record = outcome_of(coverage, repasse)
        mark_calved(record, calf)
        self.excluded.add(calf.id)
        dam = resolve_dam(self.population, coverage)
        if dam is not None and sync_pregnancy_records(dam, coverage):
            self.changed.add(dam)
        self.changed.add(link_calf_to_parent(self.population, calf))
        self._confirm_paternity(coverage, repasse, calf)

    def _confirm_paternity(self, coverage: CoverageRecord, repasse: bool, calf: Animal) -> None:
        record = outcome_of(coverage, repasse)
        if record.confirmed_sire_id:
            return
        config = self.bull_switch_configs.get(coverage.id)
        if config is None:
            return
        bull = choose_bull(record.candidate_bulls(), config, calf.birth_date)
        if bull is None:
            return
        self.changed.extend(apply_paternity(self.population, coverage, bull, repasse=repasse))
        self.result.paternity_confirmed += 1

    def _discover_uncovered_exposed_cows(self) -> None:
        covered = [AnimalRef(c.cow_id, c.cow_tag) for c in self.season.coverage_records]
        gestation = timedelta(days=GESTATION_DAYS)
        tolerance = timedelta(days=self.tolerance_days)
        start = self.season.start_date + gestation - tolerance
        end = self.season.end_date + gestation + tolerance
        by_id = {a.id: a for a in self.population}

        for cow_id in self.season.exposed_cow_ids:
            cow = by_id.get(cow_id)
            if cow is None:
                logger.debug("Exposed cow %s no longer exists, skipping", cow_id)
                continue
            if any(ref.matches(cow.id, cow.tag) for ref in covered):
                continue
            ref = AnimalRef(cow.id, cow.tag)
            calves = offspring_born_between(
                self.population, DirectParentage(dam=ref), start, end, self.excluded
            ) + offspring_born_between(
                self.population, FIVParentage(recipient=ref), start, end, self.excluded
            )
            for calf in sorted(calves, key=lambda a: a.birth_date):
                if calf.id in self.excluded:
                    continue
                self._synthesize_coverage(cow, calf)

    def _synthesize_coverage(self, cow: Animal, calf: Animal) -> None:
        coverage_id = discovered_coverage_id(cow.id, calf.id)
        if self.season.find_coverage(coverage_id) is not None:
            return
        is_fiv = calf.inferred_fiv
        has_sire = bool(calf.sire_id or (calf.sire_name or "").strip())
        coverage = CoverageRecord.create(
            cow.id,
            cow.tag,
            estimated_conception_date(calf.birth_date),
            CoverageType.FIV.value if is_fiv else CoverageType.NATURAL.value,
            coverage_id=coverage_id,
            bulls=[BullRef(calf.sire_id, calf.sire_name or "Desconhecido")] if calf.sire_id else [],
            bull_id=calf.sire_id,
            bull_tag=calf.sire_name,
            confirmed_sire_id=calf.sire_id if has_sire else None,
            confirmed_sire_tag=calf.sire_name if has_sire else None,
            donor_cow_id=calf.donor_id if is_fiv else None,
            donor_cow_tag=calf.donor_tag if is_fiv else None,
            notes="Cobertura retroativa: bezerro encontrado sem cobertura registrada",
        )
        mark_calved(coverage, calf)
        self.season.coverage_records.append(coverage)
        self.excluded.add(calf.id)
        sync_pregnancy_records(cow, coverage)
        self.changed.add(cow)
        self.changed.add(link_calf_to_parent(self.population, calf))
        self.result.discovered += 1
        logger.info("Season %s: retroactive coverage %s created", self.season.id, coverage_id)
