from __future__ import annotations

from collections.abc import AsyncIterator
from uuid import UUID

from fastapi import Request

from herdbook.application.errors import ValidationError
from herdbook.config.settings import Settings, get_settings
from herdbook.domain.value_objects.tenant_id import parse_tenant_id
from herdbook.infrastructure.snapshot.unit_of_work import SnapshotUnitOfWork


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


async def get_tenant_id(request: Request) -> UUID:
    settings = get_app_settings(request)
    raw = request.headers.get(settings.tenant_header)
    if not raw:
        raise ValidationError(f"Missing {settings.tenant_header} header")
    try:
        return parse_tenant_id(raw)
    except ValueError as exc:
        raise ValidationError(f"Invalid {settings.tenant_header} header") from exc


async def get_uow(request: Request) -> AsyncIterator[SnapshotUnitOfWork]:
    snapshot = getattr(request.app.state, "snapshot", None)
    store = getattr(request.app.state, "store", None)
    if snapshot is None or store is None:
        raise RuntimeError("Document store not configured")
    settings = get_app_settings(request)
    uow = SnapshotUnitOfWork(
        snapshot,
        store,
        quota=getattr(request.app.state, "write_quota", None),
        max_writes_per_transaction=settings.max_writes_per_transaction,
    )
    async with uow:
        yield uow
