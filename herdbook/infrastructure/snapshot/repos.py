from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any
from uuid import UUID

from herdbook.application.interfaces.document_store import (
    ANIMALS_COLLECTION,
    BREEDING_SEASONS_COLLECTION,
)
from herdbook.domain.models.animal import Animal
from herdbook.domain.models.breeding_season import BreedingSeason

if TYPE_CHECKING:
    from herdbook.infrastructure.snapshot.unit_of_work import SnapshotUnitOfWork


class _SnapshotRepository:
    """Identity-mapped view of one snapshot collection.

    Reads hand out private copies, one per document for the lifetime of the
    unit of work; writes put that copy back into the snapshot and register
    the change for the next commit.
    """

    collection: str

    def __init__(self, uow: SnapshotUnitOfWork) -> None:
        self._uow = uow
        self._identity: dict[tuple[UUID, str], Any] = {}

    async def _documents(self, tenant_id: UUID) -> dict[str, Any]:
        state = await self._uow.state_for(tenant_id)
        return state.documents(self.collection)

    def _mapped(self, tenant_id: UUID, doc: Any) -> Any:
        key = (tenant_id, doc.id)
        mapped = self._identity.get(key)
        if mapped is None:
            mapped = copy.deepcopy(doc)
            self._identity[key] = mapped
        return mapped

    async def _add(self, entity: Any) -> Any:
        docs = await self._documents(entity.tenant_id)
        if entity.id in docs:
            raise ValueError(f"{self.collection}/{entity.id} already exists")
        self._uow.record_write(self.collection, entity.tenant_id, entity.id, None, created=True)
        docs[entity.id] = entity
        self._identity[(entity.tenant_id, entity.id)] = entity
        return entity

    async def _get(self, tenant_id: UUID, doc_id: str) -> Any | None:
        docs = await self._documents(tenant_id)
        doc = docs.get(doc_id)
        if doc is None:
            return None
        return self._mapped(tenant_id, doc)

    async def _list(self, tenant_id: UUID) -> list[Any]:
        docs = await self._documents(tenant_id)
        return [self._mapped(tenant_id, doc) for doc in docs.values()]

    async def _update(self, entity: Any) -> Any:
        docs = await self._documents(entity.tenant_id)
        previous = docs.get(entity.id)
        if previous is None:
            raise ValueError(f"{self.collection}/{entity.id} not found")
        self._uow.record_write(self.collection, entity.tenant_id, entity.id, previous)
        docs[entity.id] = entity
        self._identity[(entity.tenant_id, entity.id)] = entity
        return entity

    async def delete(self, tenant_id: UUID, doc_id: str) -> bool:
        docs = await self._documents(tenant_id)
        previous = docs.pop(doc_id, None)
        if previous is None:
            return False
        self._uow.record_delete(self.collection, tenant_id, doc_id, previous)
        self._identity.pop((tenant_id, doc_id), None)
        return True

    def clear(self) -> None:
        self._identity.clear()


class AnimalsSnapshotRepository(_SnapshotRepository):
    collection = ANIMALS_COLLECTION

    async def add(self, animal: Animal) -> Animal:
        return await self._add(animal)

    async def get(self, tenant_id: UUID, animal_id: str) -> Animal | None:
        return await self._get(tenant_id, animal_id)

    async def list(self, tenant_id: UUID) -> list[Animal]:
        return await self._list(tenant_id)

    async def update(self, animal: Animal) -> Animal:
        return await self._update(animal)

    async def append_history(self, animal: Animal, field: str, entry: Any) -> None:
        """Append one history entry without rewriting the whole document."""
        docs = await self._documents(animal.tenant_id)
        previous = docs.get(animal.id)
        if previous is None:
            raise ValueError(f"{self.collection}/{animal.id} not found")
        getattr(animal, field).append(entry)
        self._uow.record_append(self.collection, animal.tenant_id, animal.id, previous, field, entry)
        docs[animal.id] = animal
        self._identity[(animal.tenant_id, animal.id)] = animal


class BreedingSeasonsSnapshotRepository(_SnapshotRepository):
    collection = BREEDING_SEASONS_COLLECTION

    async def add(self, season: BreedingSeason) -> BreedingSeason:
        return await self._add(season)

    async def get(self, tenant_id: UUID, season_id: str) -> BreedingSeason | None:
        return await self._get(tenant_id, season_id)

    async def list(self, tenant_id: UUID) -> list[BreedingSeason]:
        return await self._list(tenant_id)

    async def update(self, season: BreedingSeason) -> BreedingSeason:
        return await self._update(season)
