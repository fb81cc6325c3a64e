from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol
from uuid import UUID

ANIMALS_COLLECTION = "animals"
BREEDING_SEASONS_COLLECTION = "breeding_seasons"

# Per-transaction write limit of the backing document store
MAX_OPS_PER_TRANSACTION = 499


class WriteKind(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"  # overwrite an existing document
    DELETE = "DELETE"
    APPEND = "APPEND"  # append one element to an array field


@dataclass(slots=True)
class WriteOp:
    kind: WriteKind
    collection: str
    tenant_id: UUID
    doc_id: str
    data: dict[str, Any] = field(default_factory=dict)
    field: str | None = None
    value: Any = None


class DocumentStore(Protocol):
    async def read_all(self, collection: str, tenant_id: UUID) -> list[dict[str, Any]]: ...

    async def transactional_write(self, ops: list[WriteOp]) -> None: ...

    async def array_append(
        self,
        collection: str,
        tenant_id: UUID,
        doc_id: str,
        field: str,
        value: Any,
    ) -> None: ...
