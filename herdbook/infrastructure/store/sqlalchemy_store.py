from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from herdbook.application.interfaces.document_store import (
    MAX_OPS_PER_TRANSACTION,
    WriteKind,
    WriteOp,
)
from herdbook.infrastructure.db.orm.document import DocumentORM

logger = logging.getLogger(__name__)


class SQLAlchemyDocumentStore:
    """Document store over a single JSON table.

    Every transactional write runs inside one database transaction, so a
    chunk either lands completely or not at all.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def read_all(self, collection: str, tenant_id: UUID) -> list[dict[str, Any]]:
        async with self._session_factory() as session:
            stmt = (
                select(DocumentORM)
                .where(DocumentORM.tenant_id == tenant_id)
                .where(DocumentORM.collection == collection)
                .order_by(DocumentORM.created_at, DocumentORM.id)
            )
            result = await session.execute(stmt)
            return [{**orm.data, "id": orm.id} for orm in result.scalars().all()]

    async def transactional_write(self, ops: list[WriteOp]) -> None:
        if len(ops) > MAX_OPS_PER_TRANSACTION:
            raise ValueError(
                f"Transaction exceeds {MAX_OPS_PER_TRANSACTION} operations ({len(ops)})"
            )
        if not ops:
            return
        async with self._session_factory() as session:
            async with session.begin():
                for op in ops:
                    await self._apply(session, op)
        logger.debug("Committed %d document writes", len(ops))

    async def array_append(
        self,
        collection: str,
        tenant_id: UUID,
        doc_id: str,
        field: str,
        value: Any,
    ) -> None:
        await self.transactional_write(
            [
                WriteOp(
                    kind=WriteKind.APPEND,
                    collection=collection,
                    tenant_id=tenant_id,
                    doc_id=doc_id,
                    field=field,
                    value=value,
                )
            ]
        )

    async def _apply(self, session: AsyncSession, op: WriteOp) -> None:
        orm = await session.get(DocumentORM, (op.tenant_id, op.collection, op.doc_id))
        if op.kind == WriteKind.DELETE:
            if orm is not None:
                await session.delete(orm)
            return
        if op.kind == WriteKind.APPEND:
            if orm is None:
                raise LookupError(f"{op.collection}/{op.doc_id} not found for append")
            data = dict(orm.data)
            data[op.field] = list(data.get(op.field) or []) + [op.value]
            orm.data = data
            return
        if orm is None:
            session.add(
                DocumentORM(
                    tenant_id=op.tenant_id,
                    collection=op.collection,
                    id=op.doc_id,
                    data=dict(op.data),
                )
            )
            await session.flush()
            return
        orm.data = dict(op.data)
