from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from herdbook.application.interfaces.unit_of_work import CommitReport, UnitOfWork
from herdbook.application.reconciliation.changes import ChangedAnimals, save_changed_animals
from herdbook.application.reconciliation.progeny import propagate_special_weights
from herdbook.application.use_cases.animals.record_weight import apply_weighing, validate_weighing
from herdbook.domain.models.animal import WeighingType


@dataclass(slots=True)
class WeighingEntryInput:
    animal_id: str
    weight_kg: float


@dataclass(slots=True)
class BatchWeighingInput:
    date: date
    type: str = WeighingType.NONE.value
    entries: list[WeighingEntryInput] = field(default_factory=list)


@dataclass(slots=True)
class BatchResult:
    applied: int = 0
    skipped: int = 0
    skipped_ids: list[str] = field(default_factory=list)
    commit: CommitReport | None = None


async def execute(uow: UnitOfWork, tenant_id: UUID, payload: BatchWeighingInput) -> BatchResult:
    for entry in payload.entries:
        validate_weighing(entry.weight_kg, payload.type)
    propagates = payload.type != WeighingType.NONE.value
    uow.ensure_write_budget(tenant_id, len(payload.entries) * (2 if propagates else 1))

    result = BatchResult()
    population = await uow.animals.list(tenant_id)
    by_id = {a.id: a for a in population}
    weighed = ChangedAnimals()
    parents = ChangedAnimals()
    for entry in payload.entries:
        animal = by_id.get(entry.animal_id)
        if animal is None:
            result.skipped += 1
            result.skipped_ids.append(entry.animal_id)
            continue
        apply_weighing(animal, entry.weight_kg, payload.date, payload.type)
        weighed.add(animal)
        if propagates:
            parents.add(propagate_special_weights(population, animal))
        result.applied += 1

    for animal in weighed:
        parents.discard(animal.id)
    await save_changed_animals(uow, weighed)
    await save_changed_animals(uow, parents)
    result.commit = await uow.commit()
    return result
