from __future__ import annotations

from bisect import insort
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from uuid import UUID, uuid4


class Sex(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


class AnimalStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SOLD = "SOLD"
    DECEASED = "DECEASED"


class WeighingType(str, Enum):
    NONE = "NONE"
    BIRTH = "BIRTH"
    WEANING = "WEANING"
    YEARLING = "YEARLING"
    TURN = "TURN"


class PregnancyType(str, Enum):
    NATURAL = "NATURAL"
    AI = "AI"
    FIV = "FIV"


class DiagnosisResult(str, Enum):
    PENDING = "PENDING"
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"


def new_id() -> str:
    return str(uuid4())


@dataclass(slots=True)
class WeightEntry:
    id: str
    date: date
    weight_kg: float
    type: str = WeighingType.NONE.value


@dataclass(slots=True)
class MedicationItem:
    drug: str
    dose: float
    unit: str  # ml | mg | dose


@dataclass(slots=True)
class MedicationAdministration:
    id: str
    items: list[MedicationItem]
    applied_at: date
    reason: str | None = None
    responsible: str | None = None


@dataclass(slots=True)
class PregnancyRecord:
    id: str  # coverage id, or repasse_<coverage id>
    date: date
    type: str
    sire_name: str
    result: str = DiagnosisResult.PENDING.value


@dataclass(slots=True)
class AbortionRecord:
    id: str  # abort_<coverage id> or abort_repasse_<coverage id>
    date: date


@dataclass(slots=True)
class OffspringWeightRecord:
    id: str
    offspring_tag: str
    offspring_id: str | None = None
    birth_weight_kg: float | None = None
    weaning_weight_kg: float | None = None
    yearling_weight_kg: float | None = None
    # Correlation for FIV embryo placeholders (fiv_<coverage id>)
    coverage_id: str | None = None
    recipient_id: str | None = None


@dataclass(slots=True)
class Animal:
    id: str
    tenant_id: UUID
    tag: str
    sex: str
    name: str | None = None
    breed: str | None = None
    status: str = AnimalStatus.ACTIVE.value
    birth_date: date | None = None
    weight_kg: float = 0.0
    management_area_id: str | None = None

    # Parentage
    dam_id: str | None = None
    dam_tag: str | None = None
    sire_id: str | None = None
    sire_name: str | None = None
    is_fiv: bool = False
    donor_id: str | None = None
    donor_tag: str | None = None
    recipient_id: str | None = None
    recipient_tag: str | None = None

    # Embedded histories
    weight_history: list[WeightEntry] = field(default_factory=list)
    health_history: list[MedicationAdministration] = field(default_factory=list)
    pregnancy_history: list[PregnancyRecord] = field(default_factory=list)
    abortion_history: list[AbortionRecord] = field(default_factory=list)
    progeny: list[OffspringWeightRecord] = field(default_factory=list)

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = 1

    @classmethod
    def create(
        cls,
        tenant_id: UUID,
        tag: str,
        sex: str,
        name: str | None = None,
        breed: str | None = None,
        status: str = AnimalStatus.ACTIVE.value,
        birth_date: date | None = None,
        weight_kg: float = 0.0,
        management_area_id: str | None = None,
        dam_id: str | None = None,
        dam_tag: str | None = None,
        sire_id: str | None = None,
        sire_name: str | None = None,
        is_fiv: bool = False,
        donor_id: str | None = None,
        donor_tag: str | None = None,
        recipient_id: str | None = None,
        recipient_tag: str | None = None,
    ) -> Animal:
        now = datetime.now(timezone.utc)
        animal_id = new_id()
        weight_history = []
        if weight_kg > 0:
            weight_history.append(
                WeightEntry(
                    id=f"initial-{animal_id}",
                    date=birth_date or now.date(),
                    weight_kg=weight_kg,
                )
            )
        return cls(
            id=animal_id,
            tenant_id=tenant_id,
            tag=tag,
            sex=sex,
            name=name,
            breed=breed,
            status=status,
            birth_date=birth_date,
            weight_kg=weight_kg,
            management_area_id=management_area_id,
            dam_id=dam_id,
            dam_tag=dam_tag,
            sire_id=sire_id,
            sire_name=sire_name,
            is_fiv=is_fiv,
            donor_id=donor_id,
            donor_tag=donor_tag,
            recipient_id=recipient_id,
            recipient_tag=recipient_tag,
            weight_history=weight_history,
            created_at=now,
            updated_at=now,
            version=1,
        )

    @property
    def inferred_fiv(self) -> bool:
        """FIV either flagged explicitly or implied by a recipient reference."""
        return bool(self.is_fiv or self.recipient_id or (self.recipient_tag or "").strip())

    def find_pregnancy(self, record_id: str) -> PregnancyRecord | None:
        return next((p for p in self.pregnancy_history if p.id == record_id), None)

    def upsert_pregnancy(self, record: PregnancyRecord) -> None:
        for index, existing in enumerate(self.pregnancy_history):
            if existing.id == record.id:
                if existing.date == record.date:
                    self.pregnancy_history[index] = record
                    return
                del self.pregnancy_history[index]
                break
        # Positional insert; stored histories may not be in date order
        insort(self.pregnancy_history, record, key=lambda p: p.date)

    def remove_pregnancy(self, record_id: str) -> bool:
        before = len(self.pregnancy_history)
        self.pregnancy_history = [p for p in self.pregnancy_history if p.id != record_id]
        return len(self.pregnancy_history) != before

    def add_abortion(self, record: AbortionRecord) -> bool:
        if any(a.id == record.id for a in self.abortion_history):
            return False
        insort(self.abortion_history, record, key=lambda a: a.date)
        return True

    def remove_abortion(self, record_id: str) -> bool:
        before = len(self.abortion_history)
        self.abortion_history = [a for a in self.abortion_history if a.id != record_id]
        return len(self.abortion_history) != before

    def find_progeny(self, record_id: str) -> OffspringWeightRecord | None:
        return next((p for p in self.progeny if p.id == record_id), None)

    def remove_progeny(self, record_id: str) -> bool:
        before = len(self.progeny)
        self.progeny = [p for p in self.progeny if p.id != record_id]
        return len(self.progeny) != before

    def special_weights(self) -> dict[str, float]:
        """Latest birth/weaning/yearling weights keyed by weighing type."""
        weights: dict[str, float] = {}
        for entry in sorted(self.weight_history, key=lambda w: w.date):
            if entry.type in (
                WeighingType.BIRTH.value,
                WeighingType.WEANING.value,
                WeighingType.YEARLING.value,
            ):
                weights[entry.type] = entry.weight_kg
        return weights

    def bump_version(self) -> None:
        self.version += 1
        self.updated_at = datetime.now(timezone.utc)
