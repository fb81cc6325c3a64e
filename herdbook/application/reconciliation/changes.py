from __future__ import annotations

from collections.abc import Iterable

from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.domain.models.animal import Animal


class ChangedAnimals:
    """Animals touched by a reconciliation step, de-duplicated by id."""

    def __init__(self) -> None:
        self._animals: dict[str, Animal] = {}

    def add(self, animal: Animal | None) -> None:
        if animal is not None:
            self._animals[animal.id] = animal

    def extend(self, animals: Iterable[Animal | None]) -> None:
        for animal in animals:
            self.add(animal)

    def discard(self, animal_id: str) -> None:
        self._animals.pop(animal_id, None)

    def __iter__(self):
        return iter(list(self._animals.values()))

    def __len__(self) -> int:
        return len(self._animals)

    def __contains__(self, animal_id: object) -> bool:
        return animal_id in self._animals


async def save_changed_animals(uow: UnitOfWork, changed: ChangedAnimals) -> None:
    for animal in changed:
        animal.bump_version()
        await uow.animals.update(animal)
