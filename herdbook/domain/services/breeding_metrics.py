from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta

from herdbook.domain.models.animal import DiagnosisResult
from herdbook.domain.models.breeding_season import (
    BreedingSeason,
    BullRef,
    CoverageRecord,
    CoverageType,
    RepasseData,
    SeasonMetrics,
    calculate_expected_calving_date,
)

UNKNOWN_SIRE = "Desconhecido"
PENDING_PATERNITY_MARKER = "(pendente)"


def coverage_sire_name(record: CoverageRecord | RepasseData) -> str:
    """Sire label stored on the dam's pregnancy record.

    Confirmed sire first, then a single bull, then every candidate bull
    flagged as pending, then the semen code.
    """
    if record.confirmed_sire_id or record.confirmed_sire_tag:
        return record.confirmed_sire_tag or "Confirmado"
    bulls = record.candidate_bulls()
    if len(bulls) == 1:
        return bulls[0].bull_tag
    if len(bulls) > 1:
        return " / ".join(b.bull_tag for b in bulls) + f" {PENDING_PATERNITY_MARKER}"
    semen_code = getattr(record, "semen_code", None)
    return semen_code or UNKNOWN_SIRE


def bull_label(record: CoverageRecord | RepasseData) -> str:
    if record.confirmed_sire_id:
        return record.confirmed_sire_tag or "Confirmado"
    bulls = record.candidate_bulls()
    if not bulls:
        return "Sem touro"
    return " / ".join(b.bull_tag for b in bulls)


def has_pending_paternity(record: CoverageRecord | RepasseData) -> bool:
    if record.pregnancy_result != DiagnosisResult.POSITIVE.value:
        return False
    if isinstance(record, RepasseData) and not record.enabled:
        return False
    if isinstance(record, CoverageRecord) and record.type != CoverageType.NATURAL.value:
        return False
    return len(record.candidate_bulls()) > 1 and not record.confirmed_sire_id


def _ratio(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def is_pregnant(coverage: CoverageRecord) -> bool:
    if coverage.pregnancy_result == DiagnosisResult.POSITIVE.value:
        return True
    return coverage.has_repasse and coverage.repasse.pregnancy_result == DiagnosisResult.POSITIVE.value


def compute_season_metrics(season: BreedingSeason) -> SeasonMetrics:
    total_exposed = len(season.exposed_cow_ids)
    total_covered = len(season.coverage_records)
    total_pregnant = sum(1 for c in season.coverage_records if is_pregnant(c))
    return SeasonMetrics(
        total_exposed=total_exposed,
        total_covered=total_covered,
        total_pregnant=total_pregnant,
        pregnancy_rate=_ratio(total_pregnant, total_exposed),
        service_rate=_ratio(total_covered, total_exposed),
        conception_rate=_ratio(total_pregnant, total_covered),
    )


@dataclass(slots=True)
class BullStats:
    bull_id: str
    bull_tag: str
    count: int = 0
    pregnancies: int = 0


@dataclass(slots=True)
class PregnancyCheckDue:
    cow_id: str
    cow_tag: str
    coverage_id: str
    due_date: date
    is_repasse: bool = False


@dataclass(slots=True)
class ExpectedCalving:
    cow_id: str
    cow_tag: str
    coverage_id: str
    expected_date: date
    bull_info: str
    is_fiv: bool = False
    donor_info: str | None = None
    is_repasse: bool = False


@dataclass(slots=True)
class SeasonReport:
    metrics: SeasonMetrics
    total_empty: int = 0
    total_pending: int = 0
    first_service_pregnancy_rate: float = 0.0
    repasse_count: int = 0
    repasse_pregnant: int = 0
    coverages_by_type: dict[str, int] = field(default_factory=dict)
    coverages_by_bull: list[BullStats] = field(default_factory=list)
    daily_coverages: list[tuple[date, int]] = field(default_factory=list)
    pregnancy_checks_due: list[PregnancyCheckDue] = field(default_factory=list)
    expected_calvings: list[ExpectedCalving] = field(default_factory=list)
    pending_paternity_ids: list[str] = field(default_factory=list)
    repasse_eligible_ids: list[str] = field(default_factory=list)


def _count_bulls(
    stats: dict[str, BullStats],
    bulls: list[BullRef],
    pregnant: bool,
    confirmed_id: str | None,
) -> None:
    for bull in bulls:
        entry = stats.setdefault(bull.bull_id, BullStats(bull.bull_id, bull.bull_tag))
        entry.count += 1
        if not pregnant:
            continue
        # Two unconfirmed bulls: the pregnancy is credited to neither
        if confirmed_id:
            if confirmed_id == bull.bull_id:
                entry.pregnancies += 1
        elif len(bulls) == 1:
            entry.pregnancies += 1


def build_season_report(season: BreedingSeason, today: date) -> SeasonReport:
    coverages = season.coverage_records
    pregnant_cows: set[str] = set()
    first_service_pregnant: set[str] = set()
    empty_cows: set[str] = set()
    pending_cows: set[str] = set()
    repasse_count = 0
    repasse_pregnant = 0

    for c in coverages:
        if c.pregnancy_result == DiagnosisResult.POSITIVE.value:
            pregnant_cows.add(c.cow_id)
            first_service_pregnant.add(c.cow_id)
            continue
        if c.has_repasse:
            repasse_count += 1
            if c.repasse.pregnancy_result == DiagnosisResult.POSITIVE.value:
                repasse_pregnant += 1
                pregnant_cows.add(c.cow_id)
            elif c.repasse.pregnancy_result == DiagnosisResult.NEGATIVE.value:
                empty_cows.add(c.cow_id)
            else:
                pending_cows.add(c.cow_id)
            continue
        if c.pregnancy_result == DiagnosisResult.NEGATIVE.value:
            empty_cows.add(c.cow_id)
        else:
            pending_cows.add(c.cow_id)

    by_type = {t.value: 0 for t in CoverageType}
    bull_stats: dict[str, BullStats] = {}
    daily: dict[date, int] = {}
    checks_due: list[PregnancyCheckDue] = []
    calvings: list[ExpectedCalving] = []
    check_days = timedelta(days=season.pregnancy_check_days)

    for c in coverages:
        by_type[c.type] = by_type.get(c.type, 0) + 1
        daily[c.date] = daily.get(c.date, 0) + 1

        main_pregnant = c.pregnancy_result == DiagnosisResult.POSITIVE.value
        if c.type == CoverageType.NATURAL.value and c.candidate_bulls():
            _count_bulls(bull_stats, c.candidate_bulls(), main_pregnant, c.confirmed_sire_id)
        else:
            key = c.bull_id or c.semen_code or "desconhecido"
            entry = bull_stats.setdefault(
                key, BullStats(c.bull_id or "", c.bull_tag or c.semen_code or UNKNOWN_SIRE)
            )
            entry.count += 1
            if main_pregnant:
                entry.pregnancies += 1

        if c.pregnancy_result == DiagnosisResult.PENDING.value and today >= c.date + check_days:
            checks_due.append(PregnancyCheckDue(c.cow_id, c.cow_tag, c.id, c.date + check_days))
        if main_pregnant and c.expected_calving_date:
            calvings.append(
                ExpectedCalving(
                    cow_id=c.cow_id,
                    cow_tag=c.cow_tag,
                    coverage_id=c.id,
                    expected_date=c.expected_calving_date,
                    bull_info=c.bull_tag or c.semen_code or bull_label(c),
                    is_fiv=c.is_fiv,
                    donor_info=c.donor_cow_tag,
                )
            )

        if not c.has_repasse:
            continue
        repasse = c.repasse
        repasse_pregnant_flag = repasse.pregnancy_result == DiagnosisResult.POSITIVE.value
        _count_bulls(
            bull_stats, repasse.candidate_bulls(), repasse_pregnant_flag, repasse.confirmed_sire_id
        )
        start = repasse.start_date or season.start_date
        if repasse.pregnancy_result == DiagnosisResult.PENDING.value and today >= start + check_days:
            checks_due.append(
                PregnancyCheckDue(c.cow_id, c.cow_tag, c.id, start + check_days, is_repasse=True)
            )
        if repasse_pregnant_flag:
            label = bull_label(repasse)
            if has_pending_paternity(repasse):
                label = f"{label} (paternidade pendente)"
            calvings.append(
                ExpectedCalving(
                    cow_id=c.cow_id,
                    cow_tag=c.cow_tag,
                    coverage_id=c.id,
                    expected_date=repasse.expected_calving_date
                    or calculate_expected_calving_date(start),
                    bull_info=label,
                    is_repasse=True,
                )
            )

    metrics = compute_season_metrics(season)
    return SeasonReport(
        metrics=metrics,
        total_empty=len(empty_cows),
        total_pending=len(pending_cows),
        first_service_pregnancy_rate=_ratio(len(first_service_pregnant), metrics.total_exposed),
        repasse_count=repasse_count,
        repasse_pregnant=repasse_pregnant,
        coverages_by_type=by_type,
        coverages_by_bull=sorted(bull_stats.values(), key=lambda b: b.count, reverse=True),
        daily_coverages=sorted(daily.items()),
        pregnancy_checks_due=checks_due,
        expected_calvings=sorted(calvings, key=lambda e: e.expected_date),
        pending_paternity_ids=[
            c.id
            for c in coverages
            if has_pending_paternity(c) or (c.has_repasse and has_pending_paternity(c.repasse))
        ],
        repasse_eligible_ids=[
            c.id
            for c in coverages
            if c.type in (CoverageType.AI.value, CoverageType.IATF.value, CoverageType.FIV.value)
            and c.pregnancy_result == DiagnosisResult.NEGATIVE.value
            and not c.has_repasse
        ],
    )
