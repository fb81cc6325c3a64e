from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from herdbook.application.errors import NotFound, ValidationError
from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.domain.models.animal import (
    Animal,
    MedicationAdministration,
    MedicationItem,
    new_id,
)

MEDICATION_UNITS = ("ml", "mg", "dose")


@dataclass(slots=True)
class MedicationItemInput:
    drug: str
    dose: float
    unit: str = "ml"


@dataclass(slots=True)
class RecordMedicationInput:
    applied_at: date
    items: list[MedicationItemInput] = field(default_factory=list)
    reason: str | None = None
    responsible: str | None = None


def build_administration(payload: RecordMedicationInput) -> MedicationAdministration:
    if not payload.items:
        raise ValidationError("At least one medication is required")
    items = []
    for item in payload.items:
        if not item.drug.strip():
            raise ValidationError("drug is required")
        if item.dose <= 0:
            raise ValidationError("dose must be > 0")
        if item.unit not in MEDICATION_UNITS:
            raise ValidationError(f"Invalid unit: {item.unit}")
        items.append(MedicationItem(drug=item.drug.strip(), dose=item.dose, unit=item.unit))
    return MedicationAdministration(
        id=new_id(),
        items=items,
        applied_at=payload.applied_at,
        reason=payload.reason,
        responsible=payload.responsible,
    )


async def execute(
    uow: UnitOfWork,
    tenant_id: UUID,
    animal_id: str,
    payload: RecordMedicationInput,
) -> Animal:
    administration = build_administration(payload)
    animal = await uow.animals.get(tenant_id, animal_id)
    if not animal:
        raise NotFound("Animal not found")
    uow.ensure_write_budget(tenant_id, 1)
    await uow.animals.append_history(animal, "health_history", administration)
    await uow.commit()
    return animal
