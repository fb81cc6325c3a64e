from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.application.use_cases.animals.record_medication import (
    RecordMedicationInput,
    build_administration,
)
from herdbook.application.use_cases.batches.apply_batch_weighing import BatchResult


@dataclass(slots=True)
class BatchMedicationInput:
    medication: RecordMedicationInput
    animal_ids: list[str] = field(default_factory=list)


async def execute(uow: UnitOfWork, tenant_id: UUID, payload: BatchMedicationInput) -> BatchResult:
    # Validates the medication before anything is touched
    build_administration(payload.medication)
    animal_ids = list(dict.fromkeys(payload.animal_ids))
    uow.ensure_write_budget(tenant_id, len(animal_ids))

    result = BatchResult()
    for animal_id in animal_ids:
        animal = await uow.animals.get(tenant_id, animal_id)
        if animal is None:
            result.skipped += 1
            result.skipped_ids.append(animal_id)
            continue
        await uow.animals.append_history(
            animal, "health_history", build_administration(payload.medication)
        )
        result.applied += 1
    result.commit = await uow.commit()
    return result
