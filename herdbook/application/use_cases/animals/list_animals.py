from __future__ import annotations

from uuid import UUID

from herdbook.application.interfaces.unit_of_work import UnitOfWork
from herdbook.domain.models.animal import Animal


async def execute(
    uow: UnitOfWork,
    tenant_id: UUID,
    *,
    status: str | None = None,
    sex: str | None = None,
    management_area_id: str | None = None,
) -> list[Animal]:
    animals = await uow.animals.list(tenant_id)
    if status is not None:
        animals = [a for a in animals if a.status == status]
    if sex is not None:
        animals = [a for a in animals if a.sex == sex]
    if management_area_id is not None:
        animals = [a for a in animals if a.management_area_id == management_area_id]
    return sorted(animals, key=lambda a: a.tag.lower())
