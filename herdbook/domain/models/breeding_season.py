from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from uuid import UUID

from herdbook.domain.models.animal import DiagnosisResult, PregnancyType, new_id

GESTATION_DAYS = 283


class CoverageType(str, Enum):
    NATURAL = "NATURAL"
    AI = "AI"
    IATF = "IATF"
    FIV = "FIV"


class CalvingResult(str, Enum):
    PENDING = "PENDING"
    CALVED = "CALVED"
    ABORTED = "ABORTED"


class SeasonStatus(str, Enum):
    PLANNING = "PLANNING"
    ACTIVE = "ACTIVE"
    FINISHED = "FINISHED"


PREGNANCY_TYPE_BY_COVERAGE = {
    CoverageType.NATURAL.value: PregnancyType.NATURAL.value,
    CoverageType.AI.value: PregnancyType.AI.value,
    CoverageType.IATF.value: PregnancyType.AI.value,
    CoverageType.FIV.value: PregnancyType.FIV.value,
}


def calculate_expected_calving_date(coverage_date: date) -> date:
    return coverage_date + timedelta(days=GESTATION_DAYS)


def estimated_conception_date(birth_date: date) -> date:
    return birth_date - timedelta(days=GESTATION_DAYS)


def pregnancy_record_id(coverage_id: str, repasse: bool = False) -> str:
    return f"repasse_{coverage_id}" if repasse else coverage_id


def abortion_record_id(coverage_id: str, repasse: bool = False) -> str:
    return f"abort_repasse_{coverage_id}" if repasse else f"abort_{coverage_id}"


def embryo_placeholder_id(coverage_id: str) -> str:
    return f"fiv_{coverage_id}"


def embryo_placeholder_label(recipient_tag: str) -> str:
    return f"Embriao (receptora: {recipient_tag})"


@dataclass(slots=True)
class BullRef:
    bull_id: str
    bull_tag: str


@dataclass(slots=True)
class RepasseData:
    """Follow-up natural breeding after a negative diagnosis on the main coverage."""

    enabled: bool = False
    start_date: date | None = None
    end_date: date | None = None
    bulls: list[BullRef] = field(default_factory=list)
    # Legacy single-bull fields
    bull_id: str | None = None
    bull_tag: str | None = None
    confirmed_sire_id: str | None = None
    confirmed_sire_tag: str | None = None
    pregnancy_result: str = DiagnosisResult.PENDING.value
    pregnancy_check_date: date | None = None
    expected_calving_date: date | None = None
    calving_result: str = CalvingResult.PENDING.value
    calf_id: str | None = None
    calf_tag: str | None = None
    actual_calving_date: date | None = None
    calving_notes: str | None = None

    def candidate_bulls(self) -> list[BullRef]:
        if self.bulls:
            return list(self.bulls)
        if self.bull_id:
            return [BullRef(bull_id=self.bull_id, bull_tag=self.bull_tag or "Desconhecido")]
        return []

    def service_date(self, coverage_date: date) -> date:
        return self.start_date or coverage_date


@dataclass(slots=True)
class CoverageRecord:
    id: str
    cow_id: str
    cow_tag: str
    date: date
    type: str
    bulls: list[BullRef] = field(default_factory=list)
    # Legacy single-bull fields, also used for AI/IATF sire references
    bull_id: str | None = None
    bull_tag: str | None = None
    semen_code: str | None = None
    donor_cow_id: str | None = None
    donor_cow_tag: str | None = None
    confirmed_sire_id: str | None = None
    confirmed_sire_tag: str | None = None
    technician: str | None = None
    notes: str | None = None
    pregnancy_result: str = DiagnosisResult.PENDING.value
    pregnancy_check_date: date | None = None
    expected_calving_date: date | None = None
    calving_result: str = CalvingResult.PENDING.value
    calf_id: str | None = None
    calf_tag: str | None = None
    actual_calving_date: date | None = None
    calving_notes: str | None = None
    repasse: RepasseData | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(
        cls,
        cow_id: str,
        cow_tag: str,
        coverage_date: date,
        type: str,
        coverage_id: str | None = None,
        **fields,
    ) -> CoverageRecord:
        return cls(
            id=coverage_id or new_id(),
            cow_id=cow_id,
            cow_tag=cow_tag,
            date=coverage_date,
            type=type,
            expected_calving_date=calculate_expected_calving_date(coverage_date),
            **fields,
        )

    @property
    def is_fiv(self) -> bool:
        return self.type == CoverageType.FIV.value

    @property
    def has_repasse(self) -> bool:
        return self.repasse is not None and self.repasse.enabled

    def candidate_bulls(self) -> list[BullRef]:
        if self.bulls:
            return list(self.bulls)
        if self.bull_id:
            return [BullRef(bull_id=self.bull_id, bull_tag=self.bull_tag or "Desconhecido")]
        return []

    def recompute_expected_calving(self) -> None:
        self.expected_calving_date = calculate_expected_calving_date(self.date)

    def linked_calf_ids(self) -> set[str]:
        ids = set()
        if self.calf_id:
            ids.add(self.calf_id)
        if self.repasse is not None and self.repasse.calf_id:
            ids.add(self.repasse.calf_id)
        return ids


@dataclass(slots=True)
class BullSwitchConfig:
    """Paternity hint for a coverage exposed to two bulls.

    Either the index of the bull to confirm, or the date the first bull was
    replaced by the second one.
    """

    coverage_id: str
    selected_bull_index: int | None = None
    switch_date: date | None = None


@dataclass(slots=True)
class SeasonMetrics:
    total_exposed: int = 0
    total_covered: int = 0
    total_pregnant: int = 0
    pregnancy_rate: float = 0.0
    service_rate: float = 0.0
    conception_rate: float = 0.0


@dataclass(slots=True)
class BreedingSeason:
    id: str
    tenant_id: UUID
    name: str
    start_date: date
    end_date: date
    status: str = SeasonStatus.PLANNING.value
    exposed_cow_ids: list[str] = field(default_factory=list)
    bulls: list[BullRef] = field(default_factory=list)
    coverage_records: list[CoverageRecord] = field(default_factory=list)
    metrics: SeasonMetrics | None = None
    pregnancy_check_days: int = 60
    notes: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = 1

    @classmethod
    def create(
        cls,
        tenant_id: UUID,
        name: str,
        start_date: date,
        end_date: date,
        status: str = SeasonStatus.PLANNING.value,
        exposed_cow_ids: list[str] | None = None,
        bulls: list[BullRef] | None = None,
        pregnancy_check_days: int = 60,
        notes: str | None = None,
    ) -> BreedingSeason:
        now = datetime.now(timezone.utc)
        return cls(
            id=new_id(),
            tenant_id=tenant_id,
            name=name,
            start_date=start_date,
            end_date=end_date,
            status=status,
            exposed_cow_ids=list(dict.fromkeys(exposed_cow_ids or [])),
            bulls=list(bulls or []),
            pregnancy_check_days=pregnancy_check_days,
            notes=notes,
            created_at=now,
            updated_at=now,
            version=1,
        )

    def find_coverage(self, coverage_id: str) -> CoverageRecord | None:
        return next((c for c in self.coverage_records if c.id == coverage_id), None)

    def covered_cow_ids(self) -> set[str]:
        return {c.cow_id for c in self.coverage_records}

    def add_exposed_cows(self, cow_ids: list[str]) -> None:
        existing = set(self.exposed_cow_ids)
        self.exposed_cow_ids.extend(c for c in dict.fromkeys(cow_ids) if c not in existing)

    def remove_exposed_cows(self, cow_ids: list[str]) -> None:
        to_remove = set(cow_ids)
        self.exposed_cow_ids = [c for c in self.exposed_cow_ids if c not in to_remove]

    def bump_version(self) -> None:
        self.version += 1
        self.updated_at = datetime.now(timezone.utc)
