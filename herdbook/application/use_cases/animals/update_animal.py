from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from herdbook.application.errors import ConflictError, NotFound, ValidationError
from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.application.reconciliation.changes import ChangedAnimals, save_changed_animals
from herdbook.application.reconciliation.progeny import (
    move_calf_between_parents,
    progeny_parent,
    propagate_special_weights,
    rename_calf_record,
)
from herdbook.application.reconciliation.reverse import (
    PARENTAGE_TOLERANCE_DAYS,
    SEASON_MATCH_MARGIN_DAYS,
    sync_sire_to_coverage,
)
from herdbook.application.use_cases.animals.create_animal import validate_animal_fields
from herdbook.domain.models.animal import Animal

PARENTAGE_FIELDS = (
    "dam_id",
    "dam_tag",
    "is_fiv",
    "donor_id",
    "donor_tag",
    "recipient_id",
    "recipient_tag",
)


@dataclass(slots=True)
class UpdateAnimalInput:
    version: int
    tag: str | None = None
    name: str | None = None
    sex: str | None = None
    breed: str | None = None
    status: str | None = None
    birth_date: date | None = None
    weight_kg: float | None = None
    management_area_id: str | None = None
    # Genealogy fields
    dam_id: str | None = None
    dam_tag: str | None = None
    sire_id: str | None = None
    sire_name: str | None = None
    is_fiv: bool | None = None
    donor_id: str | None = None
    donor_tag: str | None = None
    recipient_id: str | None = None
    recipient_tag: str | None = None


async def execute(
    uow: UnitOfWork,
    tenant_id: UUID,
    animal_id: str,
    payload: UpdateAnimalInput,
    *,
    parentage_tolerance_days: int = PARENTAGE_TOLERANCE_DAYS,
    season_margin_days: int = SEASON_MATCH_MARGIN_DAYS,
) -> Animal:
    if payload.version < 1:
        raise ValidationError("Invalid version value")
    validate_animal_fields(payload.sex, payload.status, payload.weight_kg)
    if payload.tag is not None and not payload.tag.strip():
        raise ValidationError("tag cannot be empty")

    animal = await uow.animals.get(tenant_id, animal_id)
    if not animal:
        raise NotFound("Animal not found")
    if animal.version != payload.version:
        raise ConflictError("Version mismatch while updating animal")

    data: dict = {}
    for field_name in (
        "tag",
        "name",
        "sex",
        "breed",
        "status",
        "birth_date",
        "weight_kg",
        "management_area_id",
        "sire_id",
        "sire_name",
        *PARENTAGE_FIELDS,
    ):
        value = getattr(payload, field_name)
        if value is not None and value != getattr(animal, field_name):
            data[field_name] = value.strip() if field_name == "tag" else value
    if not data:
        return animal

    uow.ensure_write_budget(tenant_id, 4)
    population = await uow.animals.list(tenant_id)
    previous_parent = progeny_parent(population, animal)

    for field_name, value in data.items():
        setattr(animal, field_name, value)

    changed = ChangedAnimals()
    if any(name in data for name in PARENTAGE_FIELDS):
        changed.extend(move_calf_between_parents(population, animal, previous_parent))
    elif "tag" in data:
        changed.add(rename_calf_record(population, animal))
    changed.add(propagate_special_weights(population, animal))

    if "sire_id" in data or "sire_name" in data:
        seasons = await uow.breeding_seasons.list(tenant_id)
        synced = sync_sire_to_coverage(
            population,
            seasons,
            animal,
            tolerance_days=parentage_tolerance_days,
            margin_days=season_margin_days,
        )
        if synced is not None:
            changed.extend(synced.changed_animals)
            season = synced.match.season
            season.bump_version()
            await uow.breeding_seasons.update(season)

    changed.discard(animal.id)
    animal.bump_version()
    updated = await uow.animals.update(animal)
    await save_changed_animals(uow, changed)
    await uow.commit()
    return updated
