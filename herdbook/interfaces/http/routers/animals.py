from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response

from herdbook.application.use_cases.animals import (
    create_animal,
    delete_animal,
    get_animal,
    list_animals,
    record_medication,
    record_weight,
    update_animal,
)
from herdbook.config.settings import Settings
from herdbook.interfaces.http.deps import get_app_settings, get_tenant_id, get_uow
from herdbook.interfaces.http.schemas.animals import (
    AnimalCreate,
    AnimalResponse,
    AnimalsListResponse,
    AnimalUpdate,
    MedicationCreate,
    WeightCreate,
)

router = APIRouter(prefix="/animals", tags=["animals"])


def to_medication_input(payload: MedicationCreate) -> record_medication.RecordMedicationInput:
    return record_medication.RecordMedicationInput(
        applied_at=payload.applied_at,
        items=[
            record_medication.MedicationItemInput(drug=i.drug, dose=i.dose, unit=i.unit)
            for i in payload.items
        ],
        reason=payload.reason,
        responsible=payload.responsible,
    )


@router.get("", response_model=AnimalsListResponse)
async def list_animals_endpoint(
    status: str | None = None,
    sex: str | None = None,
    management_area_id: str | None = None,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    animals = await list_animals.execute(
        uow, tenant_id, status=status, sex=sex, management_area_id=management_area_id
    )
    return {"items": animals, "total": len(animals)}


@router.post("", response_model=AnimalResponse, status_code=status.HTTP_201_CREATED)
async def create_animal_endpoint(
    payload: AnimalCreate,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    input_data = create_animal.CreateAnimalInput(**payload.model_dump())
    return await create_animal.execute(uow, tenant_id, input_data)


@router.get("/{animal_id}", response_model=AnimalResponse)
async def get_animal_endpoint(
    animal_id: str,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    return await get_animal.execute(uow, tenant_id, animal_id)


@router.put("/{animal_id}", response_model=AnimalResponse)
async def update_animal_endpoint(
    animal_id: str,
    payload: AnimalUpdate,
    tenant_id: UUID = Depends(get_tenant_id),
    settings: Settings = Depends(get_app_settings),
    uow=Depends(get_uow),
):
    input_data = update_animal.UpdateAnimalInput(**payload.model_dump())
    return await update_animal.execute(
        uow,
        tenant_id,
        animal_id,
        input_data,
        parentage_tolerance_days=settings.parentage_tolerance_days,
        season_margin_days=settings.season_match_margin_days,
    )


@router.delete("/{animal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_animal_endpoint(
    animal_id: str,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    await delete_animal.execute(uow, tenant_id, animal_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{animal_id}/weights", response_model=AnimalResponse, status_code=status.HTTP_201_CREATED
)
async def record_weight_endpoint(
    animal_id: str,
    payload: WeightCreate,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    input_data = record_weight.RecordWeightInput(
        weight_kg=payload.weight_kg, date=payload.date, type=payload.type
    )
    return await record_weight.execute(uow, tenant_id, animal_id, input_data)


@router.post(
    "/{animal_id}/medications",
    response_model=AnimalResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_medication_endpoint(
    animal_id: str,
    payload: MedicationCreate,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    return await record_medication.execute(
        uow, tenant_id, animal_id, to_medication_input(payload)
    )
