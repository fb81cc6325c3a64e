from __future__ import annotations

from collections.abc import Iterable

from herdbook.domain.models.animal import Animal
from herdbook.domain.value_objects.parentage_mode import AnimalRef, normalize_tag


def resolve_animal_reference(
    population: Iterable[Animal],
    animal_id: str | None,
    tag: str | None,
    *,
    sex: str | None = None,
) -> Animal | None:
    """Resolve a denormalized animal reference.

    Looks the id up first; when there is no id, or it points to an animal that
    no longer exists, falls back to a normalized tag lookup, optionally limited
    to one sex (mothers are always looked up among females).
    """
    animals = list(population)
    if animal_id:
        for animal in animals:
            if animal.id == animal_id:
                return animal
    wanted = normalize_tag(tag)
    if not wanted:
        return None
    for animal in animals:
        if sex is not None and animal.sex != sex:
            continue
        if normalize_tag(animal.tag) == wanted:
            return animal
    return None


def complete_reference(population: Iterable[Animal], ref: AnimalRef, *, sex: str | None = None) -> AnimalRef:
    """Fill in whichever of id/tag is missing when the animal can be found."""
    found = resolve_animal_reference(population, ref.id, ref.tag, sex=sex)
    if found is None:
        return ref
    return AnimalRef(id=found.id, tag=found.tag)
