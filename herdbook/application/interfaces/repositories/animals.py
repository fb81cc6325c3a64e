from __future__ import annotations

from typing import Any, Protocol
from uuid import UUID

from herdbook.domain.models.animal import Animal


class AnimalRepository(Protocol):
    async def add(self, animal: Animal) -> Animal: ...

    async def get(self, tenant_id: UUID, animal_id: str) -> Animal | None: ...

    async def list(self, tenant_id: UUID) -> list[Animal]: ...

    async def update(self, animal: Animal) -> Animal: ...

    async def delete(self, tenant_id: UUID, animal_id: str) -> bool: ...

    async def append_history(self, animal: Animal, field: str, entry: Any) -> None: ...
