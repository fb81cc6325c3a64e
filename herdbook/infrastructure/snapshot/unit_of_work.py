from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import UUID

from herdbook.application.errors import InfrastructureError
from herdbook.application.interfaces.document_store import (
    ANIMALS_COLLECTION,
    MAX_OPS_PER_TRANSACTION,
    DocumentStore,
    WriteKind,
    WriteOp,
)
from herdbook.application.interfaces.unit_of_work import CommitReport
from herdbook.infrastructure.quota.write_quota import WriteQuotaTracker
from herdbook.infrastructure.snapshot.herd_snapshot import HerdSnapshot, TenantSnapshot
from herdbook.infrastructure.snapshot.repos import (
    AnimalsSnapshotRepository,
    BreedingSeasonsSnapshotRepository,
)
from herdbook.infrastructure.store.mappers import (
    HISTORY_ENCODERS,
    animal_to_document,
    season_to_document,
)

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPEND = "APPEND"


@dataclass(slots=True)
class PendingChange:
    collection: str
    tenant_id: UUID
    doc_id: str
    kind: ChangeKind
    # Snapshot object before this unit of work touched it; None for new documents
    previous: Any = None
    appends: list[tuple[str, Any]] = field(default_factory=list)


def chunked(ops: list[WriteOp], size: int) -> list[list[WriteOp]]:
    return [ops[i : i + size] for i in range(0, len(ops), size)]


class SnapshotUnitOfWork:
    """Unit of work over the in-memory herd snapshot.

    Repositories apply changes to the snapshot straight away. ``commit``
    turns them into document writes, split into transactions of at most
    ``max_writes_per_transaction`` operations committed one after another.
    A failed write leaves the store partially updated, so the tenant's
    snapshot is reloaded from the store before the error is raised.
    """

    def __init__(
        self,
        snapshot: HerdSnapshot,
        store: DocumentStore,
        quota: WriteQuotaTracker | None = None,
        max_writes_per_transaction: int = MAX_OPS_PER_TRANSACTION,
    ) -> None:
        self._snapshot = snapshot
        self._store = store
        self._quota = quota
        self._max_writes = min(max_writes_per_transaction, MAX_OPS_PER_TRANSACTION)
        self._pending: dict[tuple[str, UUID, str], PendingChange] = {}
        self._held_locks: dict[UUID, asyncio.Lock] = {}
        self.animals: AnimalsSnapshotRepository | None = None
        self.breeding_seasons: BreedingSeasonsSnapshotRepository | None = None

    async def __aenter__(self) -> SnapshotUnitOfWork:
        self.animals = AnimalsSnapshotRepository(self)
        self.breeding_seasons = BreedingSeasonsSnapshotRepository(self)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if self._pending:
                if exc:
                    for tenant_id in self._pending_tenants():
                        await self._resync(tenant_id)
                    self._pending.clear()
                else:
                    await self.rollback()
        finally:
            for lock in self._held_locks.values():
                lock.release()
            self._held_locks.clear()
            self.animals = None
            self.breeding_seasons = None

    # --- used by the repositories -------------------------------------------

    async def state_for(self, tenant_id: UUID) -> TenantSnapshot:
        if tenant_id not in self._held_locks:
            lock = self._snapshot.lock_for(tenant_id)
            await lock.acquire()
            self._held_locks[tenant_id] = lock
        return await self._snapshot.get(tenant_id)

    def record_write(
        self,
        collection: str,
        tenant_id: UUID,
        doc_id: str,
        previous: Any,
        *,
        created: bool = False,
    ) -> None:
        key = (collection, tenant_id, doc_id)
        change = self._pending.get(key)
        if change is None:
            kind = ChangeKind.CREATE if created else ChangeKind.UPDATE
            self._pending[key] = PendingChange(collection, tenant_id, doc_id, kind, previous)
            return
        if change.kind == ChangeKind.DELETE and created:
            change.kind = ChangeKind.CREATE
        elif change.kind == ChangeKind.APPEND:
            change.kind = ChangeKind.UPDATE
        change.appends.clear()

    def record_append(
        self,
        collection: str,
        tenant_id: UUID,
        doc_id: str,
        previous: Any,
        field_name: str,
        entry: Any,
    ) -> None:
        key = (collection, tenant_id, doc_id)
        change = self._pending.get(key)
        if change is None:
            change = PendingChange(collection, tenant_id, doc_id, ChangeKind.APPEND, previous)
            self._pending[key] = change
        if change.kind == ChangeKind.APPEND:
            change.appends.append((field_name, entry))

    def record_delete(self, collection: str, tenant_id: UUID, doc_id: str, previous: Any) -> None:
        key = (collection, tenant_id, doc_id)
        change = self._pending.get(key)
        if change is None:
            self._pending[key] = PendingChange(
                collection, tenant_id, doc_id, ChangeKind.DELETE, previous
            )
            return
        if change.kind == ChangeKind.CREATE and change.previous is None:
            del self._pending[key]
            return
        change.kind = ChangeKind.DELETE
        change.appends.clear()

    # --- unit of work -------------------------------------------------------

    def ensure_write_budget(self, tenant_id: UUID, estimated_writes: int) -> None:
        if self._quota is not None:
            self._quota.ensure_available(tenant_id, estimated_writes)

    async def commit(self) -> CommitReport:
        ops = await self._build_ops()
        chunks = chunked(ops, self._max_writes)
        report = CommitReport(total_ops=len(ops), total_chunks=len(chunks))
        if not ops:
            return report
        try:
            if len(ops) == 1 and ops[0].kind == WriteKind.APPEND:
                op = ops[0]
                await self._store.array_append(
                    op.collection, op.tenant_id, op.doc_id, op.field, op.value
                )
                self._record_quota(ops)
                report.committed_ops = 1
                report.committed_chunks = 1
            else:
                for chunk in chunks:
                    await self._store.transactional_write(chunk)
                    self._record_quota(chunk)
                    report.committed_ops += len(chunk)
                    report.committed_chunks += 1
        except Exception as exc:
            logger.error(
                "Commit failed after %d of %d operations (%d of %d chunks)",
                report.committed_ops,
                report.total_ops,
                report.committed_chunks,
                report.total_chunks,
                exc_info=True,
            )
            tenants = self._pending_tenants()
            self._pending.clear()
            self._clear_identity_maps()
            for tenant_id in tenants:
                await self._resync(tenant_id)
            raise InfrastructureError(
                "Failed to persist changes",
                details={"committed_ops": report.committed_ops, "total_ops": report.total_ops},
            ) from exc
        self._pending.clear()
        if len(chunks) > 1:
            logger.info("Committed %d operations in %d transactions", len(ops), len(chunks))
        return report

    async def rollback(self) -> None:
        """Put back the snapshot objects this unit of work replaced."""
        for change in reversed(list(self._pending.values())):
            state = await self._snapshot.get(change.tenant_id)
            docs = state.documents(change.collection)
            if change.previous is None:
                docs.pop(change.doc_id, None)
            else:
                docs[change.doc_id] = change.previous
        self._pending.clear()
        self._clear_identity_maps()

    # --- helpers ------------------------------------------------------------

    def _clear_identity_maps(self) -> None:
        if self.animals is not None:
            self.animals.clear()
        if self.breeding_seasons is not None:
            self.breeding_seasons.clear()

    def _pending_tenants(self) -> list[UUID]:
        return list(dict.fromkeys(change.tenant_id for change in self._pending.values()))

    async def _build_ops(self) -> list[WriteOp]:
        ops: list[WriteOp] = []
        for change in self._pending.values():
            if change.kind == ChangeKind.DELETE:
                ops.append(
                    WriteOp(WriteKind.DELETE, change.collection, change.tenant_id, change.doc_id)
                )
                continue
            if change.kind == ChangeKind.APPEND:
                for field_name, entry in change.appends:
                    ops.append(
                        WriteOp(
                            kind=WriteKind.APPEND,
                            collection=change.collection,
                            tenant_id=change.tenant_id,
                            doc_id=change.doc_id,
                            field=field_name,
                            value=HISTORY_ENCODERS[field_name](entry),
                        )
                    )
                continue
            state = await self._snapshot.get(change.tenant_id)
            entity = state.documents(change.collection)[change.doc_id]
            if change.collection == ANIMALS_COLLECTION:
                data = animal_to_document(entity)
            else:
                data = season_to_document(entity)
            kind = WriteKind.CREATE if change.kind == ChangeKind.CREATE else WriteKind.UPDATE
            ops.append(WriteOp(kind, change.collection, change.tenant_id, change.doc_id, data))
        return ops

    def _record_quota(self, ops: list[WriteOp]) -> None:
        if self._quota is None:
            return
        per_tenant: dict[UUID, int] = {}
        for op in ops:
            per_tenant[op.tenant_id] = per_tenant.get(op.tenant_id, 0) + 1
        for tenant_id, writes in per_tenant.items():
            self._quota.record(tenant_id, writes)

    async def _resync(self, tenant_id: UUID) -> None:
        try:
            await self._snapshot.resync(tenant_id)
        except Exception:
            logger.exception("Resync of tenant %s failed; snapshot will reload on next use", tenant_id)
            self._snapshot.invalidate(tenant_id)
