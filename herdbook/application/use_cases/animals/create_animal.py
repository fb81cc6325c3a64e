from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from herdbook.application.errors import ValidationError
from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.application.reconciliation.progeny import link_calf_to_parent
from herdbook.domain.models.animal import Animal, AnimalStatus, Sex
from herdbook.domain.services.animal_reference import complete_reference
from herdbook.domain.value_objects.parentage_mode import AnimalRef


@dataclass(slots=True)
class CreateAnimalInput:
    tag: str
    sex: str
    name: str | None = None
    breed: str | None = None
    status: str = AnimalStatus.ACTIVE.value
    birth_date: date | None = None
    weight_kg: float = 0.0
    management_area_id: str | None = None
    dam_id: str | None = None
    dam_tag: str | None = None
    sire_id: str | None = None
    sire_name: str | None = None
    is_fiv: bool = False
    donor_id: str | None = None
    donor_tag: str | None = None
    recipient_id: str | None = None
    recipient_tag: str | None = None


def validate_animal_fields(sex: str | None, status: str | None, weight_kg: float | None) -> None:
    if sex is not None and sex not in {s.value for s in Sex}:
        raise ValidationError(f"Invalid sex: {sex}")
    if status is not None and status not in {s.value for s in AnimalStatus}:
        raise ValidationError(f"Invalid status: {status}")
    if weight_kg is not None and weight_kg < 0:
        raise ValidationError("weight_kg must be >= 0")


def _female_ref(population: list[Animal], animal_id: str | None, tag: str | None) -> AnimalRef:
    return complete_reference(population, AnimalRef(animal_id, tag), sex=Sex.FEMALE.value)


async def execute(uow: UnitOfWork, tenant_id: UUID, payload: CreateAnimalInput) -> Animal:
    tag = (payload.tag or "").strip()
    if not tag:
        raise ValidationError("tag is required")
    validate_animal_fields(payload.sex, payload.status, payload.weight_kg)

    uow.ensure_write_budget(tenant_id, 2)
    population = await uow.animals.list(tenant_id)
    dam = _female_ref(population, payload.dam_id, payload.dam_tag)
    donor = _female_ref(population, payload.donor_id, payload.donor_tag)
    recipient = _female_ref(population, payload.recipient_id, payload.recipient_tag)

    animal = Animal.create(
        tenant_id=tenant_id,
        tag=tag,
        sex=payload.sex,
        name=payload.name,
        breed=payload.breed,
        status=payload.status,
        birth_date=payload.birth_date,
        weight_kg=payload.weight_kg,
        management_area_id=payload.management_area_id,
        dam_id=dam.id,
        dam_tag=dam.tag,
        sire_id=payload.sire_id,
        sire_name=payload.sire_name,
        is_fiv=payload.is_fiv,
        donor_id=donor.id,
        donor_tag=donor.tag,
        recipient_id=recipient.id,
        recipient_tag=recipient.tag,
    )
    created = await uow.animals.add(animal)

    parent = link_calf_to_parent(population, created, birth_weight_kg=payload.weight_kg)
    if parent is not None:
        parent.bump_version()
        await uow.animals.update(parent)
    await uow.commit()
    return created
