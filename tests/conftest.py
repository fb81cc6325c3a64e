from __future__ import annotations

import copy
import os
from collections.abc import AsyncIterator
from typing import Any
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///default.db")

# ruff: noqa: E402
from herdbook.application.interfaces.document_store import WriteKind, WriteOp
from herdbook.config.settings import Settings
from herdbook.infrastructure.db.base import Base
from herdbook.infrastructure.db.orm import document  # noqa: F401
from herdbook.infrastructure.quota.write_quota import WriteQuotaTracker
from herdbook.infrastructure.snapshot.herd_snapshot import HerdSnapshot
from herdbook.infrastructure.snapshot.unit_of_work import SnapshotUnitOfWork
from herdbook.interfaces.http.main import create_app


class InMemoryDocumentStore:
    """Dict-backed document store that records every write call."""

    def __init__(self) -> None:
        self.docs: dict[tuple[UUID, str, str], dict[str, Any]] = {}
        self.transactions: list[list[WriteOp]] = []
        self.appends: list[WriteOp] = []
        self.reads = 0
        # Index of the write call (transaction or append) that should fail
        self.fail_on_call: int | None = None
        self._calls = 0

    async def read_all(self, collection: str, tenant_id: UUID) -> list[dict[str, Any]]:
        self.reads += 1
        return [
            {**copy.deepcopy(data), "id": doc_id}
            for (tid, coll, doc_id), data in self.docs.items()
            if tid == tenant_id and coll == collection
        ]

    def _maybe_fail(self) -> None:
        call = self._calls
        self._calls += 1
        if self.fail_on_call is not None and call == self.fail_on_call:
            raise RuntimeError("store unavailable")

    async def transactional_write(self, ops: list[WriteOp]) -> None:
        self._maybe_fail()
        staged = copy.deepcopy(self.docs)
        for op in ops:
            key = (op.tenant_id, op.collection, op.doc_id)
            if op.kind == WriteKind.DELETE:
                staged.pop(key, None)
            elif op.kind == WriteKind.APPEND:
                data = staged[key]
                data[op.field] = list(data.get(op.field) or []) + [copy.deepcopy(op.value)]
            else:
                staged[key] = copy.deepcopy(op.data)
        self.docs = staged
        self.transactions.append(list(ops))

    async def array_append(
        self, collection: str, tenant_id: UUID, doc_id: str, field: str, value: Any
    ) -> None:
        self._maybe_fail()
        data = self.docs[(tenant_id, collection, doc_id)]
        data[field] = list(data.get(field) or []) + [copy.deepcopy(value)]
        self.appends.append(
            WriteOp(WriteKind.APPEND, collection, tenant_id, doc_id, field=field, value=value)
        )

    def document(self, tenant_id: UUID, collection: str, doc_id: str) -> dict[str, Any] | None:
        return self.docs.get((tenant_id, collection, doc_id))


@pytest.fixture()
def tenant_id() -> UUID:
    return uuid4()


@pytest.fixture()
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture()
def snapshot(store: InMemoryDocumentStore) -> HerdSnapshot:
    return HerdSnapshot(store)


@pytest.fixture()
def quota() -> WriteQuotaTracker:
    return WriteQuotaTracker(daily_limit=20000)


@pytest.fixture()
def make_uow(snapshot: HerdSnapshot, store: InMemoryDocumentStore, quota: WriteQuotaTracker):
    def factory(max_writes_per_transaction: int = 499) -> SnapshotUnitOfWork:
        return SnapshotUnitOfWork(
            snapshot,
            store,
            quota=quota,
            max_writes_per_transaction=max_writes_per_transaction,
        )

    return factory


@pytest.fixture()
def test_settings(tmp_path) -> Settings:
    db_path = tmp_path / "test.db"
    return Settings.model_validate(
        {
            "database_url": f"sqlite+aiosqlite:///{db_path}",
            "tenant_header": "X-Tenant-ID",
            "log_level": "INFO",
            "environment": "test",
        }
    )


@pytest.fixture()
def app(test_settings: Settings):
    return create_app(settings=test_settings)


@pytest.fixture()
async def client(app) -> AsyncIterator[AsyncClient]:
    engine = app.state.engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    await engine.dispose()


@pytest.fixture()
def tenant_headers(tenant_id: UUID) -> dict[str, str]:
    return {"X-Tenant-ID": str(tenant_id)}
