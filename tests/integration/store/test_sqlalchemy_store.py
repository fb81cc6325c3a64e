from __future__ import annotations

from uuid import uuid4

import pytest

from herdbook.application.interfaces.document_store import (
    ANIMALS_COLLECTION,
    WriteKind,
    WriteOp,
)
from herdbook.infrastructure.db.base import Base
from herdbook.infrastructure.db.session import create_engine, create_session_factory
from herdbook.infrastructure.store.sqlalchemy_store import SQLAlchemyDocumentStore


@pytest.fixture()
async def sql_store(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield SQLAlchemyDocumentStore(create_session_factory(engine))
    await engine.dispose()


def _create(tenant_id, doc_id: str, **data) -> WriteOp:
    return WriteOp(
        kind=WriteKind.CREATE,
        collection=ANIMALS_COLLECTION,
        tenant_id=tenant_id,
        doc_id=doc_id,
        data={"id": doc_id, **data},
    )


async def test_write_and_read_back_documents_per_tenant(sql_store):
    tenant_a, tenant_b = uuid4(), uuid4()
    await sql_store.transactional_write(
        [_create(tenant_a, "a1", tag="V-01"), _create(tenant_b, "b1", tag="V-99")]
    )

    docs = await sql_store.read_all(ANIMALS_COLLECTION, tenant_a)
    assert docs == [{"id": "a1", "tag": "V-01"}]
    assert await sql_store.read_all("breeding_seasons", tenant_a) == []


async def test_update_replaces_the_whole_document(sql_store):
    tenant_id = uuid4()
    await sql_store.transactional_write([_create(tenant_id, "a1", tag="V-01", name="Mimosa")])

    await sql_store.transactional_write(
        [
            WriteOp(
                kind=WriteKind.UPDATE,
                collection=ANIMALS_COLLECTION,
                tenant_id=tenant_id,
                doc_id="a1",
                data={"id": "a1", "tag": "V-02"},
            )
        ]
    )

    docs = await sql_store.read_all(ANIMALS_COLLECTION, tenant_id)
    assert docs == [{"id": "a1", "tag": "V-02"}]


async def test_delete_and_append(sql_store):
    tenant_id = uuid4()
    await sql_store.transactional_write(
        [_create(tenant_id, "a1", tag="V-01"), _create(tenant_id, "a2", tag="V-02")]
    )

    await sql_store.array_append(
        ANIMALS_COLLECTION, tenant_id, "a1", "weight_history", {"id": "w1", "weight_kg": 410.0}
    )
    await sql_store.transactional_write(
        [
            WriteOp(
                kind=WriteKind.DELETE,
                collection=ANIMALS_COLLECTION,
                tenant_id=tenant_id,
                doc_id="a2",
            )
        ]
    )

    docs = await sql_store.read_all(ANIMALS_COLLECTION, tenant_id)
    assert [d["id"] for d in docs] == ["a1"]
    assert docs[0]["weight_history"] == [{"id": "w1", "weight_kg": 410.0}]


async def test_append_to_missing_document_rolls_back_the_transaction(sql_store):
    tenant_id = uuid4()
    ops = [
        _create(tenant_id, "a1", tag="V-01"),
        WriteOp(
            kind=WriteKind.APPEND,
            collection=ANIMALS_COLLECTION,
            tenant_id=tenant_id,
            doc_id="missing",
            field="weight_history",
            value={"id": "w1"},
        ),
    ]

    with pytest.raises(LookupError):
        await sql_store.transactional_write(ops)

    assert await sql_store.read_all(ANIMALS_COLLECTION, tenant_id) == []


async def test_transaction_over_the_operation_limit_is_rejected(sql_store):
    tenant_id = uuid4()
    ops = [_create(tenant_id, f"a{i}") for i in range(500)]

    with pytest.raises(ValueError):
        await sql_store.transactional_write(ops)

    assert await sql_store.read_all(ANIMALS_COLLECTION, tenant_id) == []
