from __future__ import annotations

from bisect import insort
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from herdbook.application.errors import NotFound, ValidationError
from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.application.reconciliation.progeny import propagate_special_weights
from herdbook.domain.models.animal import Animal, WeighingType, WeightEntry, new_id


@dataclass(slots=True)
class RecordWeightInput:
    weight_kg: float
    date: date
    type: str = WeighingType.NONE.value


def validate_weighing(weight_kg: float, weighing_type: str) -> None:
    if weight_kg <= 0:
        raise ValidationError("weight_kg must be > 0")
    if weighing_type not in {t.value for t in WeighingType}:
        raise ValidationError(f"Invalid weighing type: {weighing_type}")


def apply_weighing(animal: Animal, weight_kg: float, on_date: date, weighing_type: str) -> WeightEntry:
    entry = WeightEntry(id=new_id(), date=on_date, weight_kg=weight_kg, type=weighing_type)
    insort(animal.weight_history, entry, key=lambda w: w.date)
    # Current weight follows the most recent weighing
    if all(w.date <= on_date for w in animal.weight_history):
        animal.weight_kg = weight_kg
    return entry


async def execute(
    uow: UnitOfWork,
    tenant_id: UUID,
    animal_id: str,
    payload: RecordWeightInput,
) -> Animal:
    validate_weighing(payload.weight_kg, payload.type)
    animal = await uow.animals.get(tenant_id, animal_id)
    if not animal:
        raise NotFound("Animal not found")
    uow.ensure_write_budget(tenant_id, 2)

    apply_weighing(animal, payload.weight_kg, payload.date, payload.type)
    animal.bump_version()
    updated = await uow.animals.update(animal)

    if payload.type != WeighingType.NONE.value:
        population = await uow.animals.list(tenant_id)
        parent = propagate_special_weights(population, animal)
        if parent is not None:
            parent.bump_version()
            await uow.animals.update(parent)
    await uow.commit()
    return updated
