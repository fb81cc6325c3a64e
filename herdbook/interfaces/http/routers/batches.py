from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from herdbook.application.use_cases.batches import apply_batch_medication, apply_batch_weighing
from herdbook.interfaces.http.deps import get_tenant_id, get_uow
from herdbook.interfaces.http.routers.animals import to_medication_input
from herdbook.interfaces.http.schemas.batches import (
    BatchMedicationRequest,
    BatchResultResponse,
    BatchWeighingRequest,
)

router = APIRouter(prefix="/batches", tags=["batches"])


@router.post("/weighings", response_model=BatchResultResponse)
async def batch_weighing_endpoint(
    payload: BatchWeighingRequest,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    input_data = apply_batch_weighing.BatchWeighingInput(
        date=payload.date,
        type=payload.type,
        entries=[
            apply_batch_weighing.WeighingEntryInput(animal_id=e.animal_id, weight_kg=e.weight_kg)
            for e in payload.entries
        ],
    )
    return await apply_batch_weighing.execute(uow, tenant_id, input_data)


@router.post("/medications", response_model=BatchResultResponse)
async def batch_medication_endpoint(
    payload: BatchMedicationRequest,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    input_data = apply_batch_medication.BatchMedicationInput(
        medication=to_medication_input(payload.medication),
        animal_ids=payload.animal_ids,
    )
    return await apply_batch_medication.execute(uow, tenant_id, input_data)
