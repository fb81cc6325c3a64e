from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID

from herdbook.application.interfaces.document_store import (
    ANIMALS_COLLECTION,
    BREEDING_SEASONS_COLLECTION,
    DocumentStore,
)
from herdbook.domain.models.animal import Animal
from herdbook.domain.models.breeding_season import BreedingSeason
from herdbook.infrastructure.store.mappers import animal_from_document, season_from_document

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TenantSnapshot:
    tenant_id: UUID
    animals: dict[str, Animal] = field(default_factory=dict)
    seasons: dict[str, BreedingSeason] = field(default_factory=dict)
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def documents(self, collection: str) -> dict:
        if collection == ANIMALS_COLLECTION:
            return self.animals
        if collection == BREEDING_SEASONS_COLLECTION:
            return self.seasons
        raise KeyError(collection)


class HerdSnapshot:
    """In-memory working copy of every tenant's herd.

    Loaded lazily from the document store on first use and treated as the
    optimistic state afterwards; ``resync`` replaces it with what the store
    actually holds.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self._tenants: dict[UUID, TenantSnapshot] = {}
        self._locks: dict[UUID, asyncio.Lock] = {}

    def lock_for(self, tenant_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(tenant_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[tenant_id] = lock
        return lock

    def is_loaded(self, tenant_id: UUID) -> bool:
        return tenant_id in self._tenants

    async def get(self, tenant_id: UUID) -> TenantSnapshot:
        state = self._tenants.get(tenant_id)
        if state is None:
            state = await self._load(tenant_id)
            self._tenants[tenant_id] = state
        return state

    async def resync(self, tenant_id: UUID) -> TenantSnapshot:
        state = await self._load(tenant_id)
        self._tenants[tenant_id] = state
        logger.info(
            "Resynchronised tenant %s snapshot (%d animals, %d seasons)",
            tenant_id,
            len(state.animals),
            len(state.seasons),
        )
        return state

    def invalidate(self, tenant_id: UUID) -> None:
        self._tenants.pop(tenant_id, None)

    async def _load(self, tenant_id: UUID) -> TenantSnapshot:
        state = TenantSnapshot(tenant_id=tenant_id)
        for doc in await self._store.read_all(ANIMALS_COLLECTION, tenant_id):
            animal = animal_from_document(doc, tenant_id)
            state.animals[animal.id] = animal
        for doc in await self._store.read_all(BREEDING_SEASONS_COLLECTION, tenant_id):
            season = season_from_document(doc, tenant_id)
            if season is None:
                logger.warning("Skipping breeding season %s without valid dates", doc.get("id"))
                continue
            state.seasons[season.id] = season
        return state
