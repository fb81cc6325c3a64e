from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from herdbook.application.interfaces.repositories.animals import AnimalRepository
from herdbook.application.interfaces.repositories.breeding_seasons import (
    BreedingSeasonRepository,
)


@dataclass(slots=True)
class CommitReport:
    total_ops: int = 0
    committed_ops: int = 0
    total_chunks: int = 0
    committed_chunks: int = 0

    @property
    def complete(self) -> bool:
        return self.committed_ops == self.total_ops


class UnitOfWork(Protocol):
    animals: AnimalRepository
    breeding_seasons: BreedingSeasonRepository

    async def __aenter__(self) -> UnitOfWork: ...

    async def __aexit__(self, exc_type, exc, tb) -> None: ...

    # Fail fast when the daily write budget cannot cover the estimate
    def ensure_write_budget(self, tenant_id: UUID, estimated_writes: int) -> None: ...

    async def commit(self) -> CommitReport: ...

    async def rollback(self) -> None: ...
