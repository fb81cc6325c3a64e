from __future__ import annotations

from datetime import date

import pytest

from herdbook.application.errors import InfrastructureError, QuotaExceeded
from herdbook.domain.models.animal import Animal, WeightEntry
from herdbook.infrastructure.quota.write_quota import WriteQuotaTracker
from herdbook.infrastructure.snapshot.unit_of_work import SnapshotUnitOfWork


async def seed(make_uow, tenant_id, count: int, max_writes: int = 499):
    async with make_uow(max_writes) as uow:
        animals = [
            await uow.animals.add(Animal.create(tenant_id=tenant_id, tag=f"V{i}", sex="FEMALE"))
            for i in range(count)
        ]
        report = await uow.commit()
    return animals, report


async def test_commit_splits_writes_into_transactions(make_uow, tenant_id, store):
    _, report = await seed(make_uow, tenant_id, 5, max_writes=2)

    assert [len(t) for t in store.transactions] == [2, 2, 1]
    assert (report.total_ops, report.committed_ops) == (5, 5)
    assert (report.total_chunks, report.committed_chunks) == (3, 3)
    assert report.complete


async def test_failed_chunk_resyncs_snapshot_from_store(make_uow, tenant_id, store):
    store.fail_on_call = 1

    with pytest.raises(InfrastructureError) as exc_info:
        await seed(make_uow, tenant_id, 5, max_writes=2)

    assert exc_info.value.details == {"committed_ops": 2, "total_ops": 5}
    async with make_uow() as uow:
        remaining = await uow.animals.list(tenant_id)
    # Only the first chunk reached the store
    assert len(remaining) == 2


async def test_abandoned_changes_are_rolled_back(make_uow, tenant_id, store):
    (cow,), _ = await seed(make_uow, tenant_id, 1)

    async with make_uow() as uow:
        animal = await uow.animals.get(tenant_id, cow.id)
        animal.name = "Mimosa"
        await uow.animals.update(animal)
        await uow.animals.add(Animal.create(tenant_id=tenant_id, tag="new", sex="MALE"))

    async with make_uow() as uow:
        animals = await uow.animals.list(tenant_id)
    assert [(a.tag, a.name) for a in animals] == [("V0", None)]
    assert len(store.transactions) == 1


async def test_error_inside_unit_of_work_reloads_tenant(make_uow, tenant_id, store):
    (cow,), _ = await seed(make_uow, tenant_id, 1)
    reads = store.reads

    with pytest.raises(RuntimeError):
        async with make_uow() as uow:
            animal = await uow.animals.get(tenant_id, cow.id)
            animal.name = "Mimosa"
            await uow.animals.update(animal)
            raise RuntimeError("boom")

    assert store.reads > reads
    async with make_uow() as uow:
        assert (await uow.animals.get(tenant_id, cow.id)).name is None


async def test_reads_are_private_copies_with_identity(make_uow, tenant_id, snapshot):
    (cow,), _ = await seed(make_uow, tenant_id, 1)

    async with make_uow() as uow:
        first = await uow.animals.get(tenant_id, cow.id)
        second = await uow.animals.get(tenant_id, cow.id)
        assert first is second
        first.weight_history.append(WeightEntry("w1", date(2024, 1, 1), 400.0))
        state = await snapshot.get(tenant_id)
        assert state.animals[cow.id].weight_history == []


async def test_single_append_uses_array_append(make_uow, tenant_id, store):
    (cow,), _ = await seed(make_uow, tenant_id, 1)

    async with make_uow() as uow:
        animal = await uow.animals.get(tenant_id, cow.id)
        entry = WeightEntry("w1", date(2024, 1, 1), 400.0)
        await uow.animals.append_history(animal, "weight_history", entry)
        report = await uow.commit()

    assert report.total_ops == 1
    assert store.appends[0].field == "weight_history"
    assert store.document(tenant_id, "animals", cow.id)["weight_history"][-1]["weight_kg"] == 400.0


async def test_full_update_after_append_rewrites_document(make_uow, tenant_id, store):
    (cow,), _ = await seed(make_uow, tenant_id, 1)

    async with make_uow() as uow:
        animal = await uow.animals.get(tenant_id, cow.id)
        await uow.animals.append_history(
            animal, "weight_history", WeightEntry("w1", date(2024, 1, 1), 400.0)
        )
        animal.weight_kg = 400.0
        await uow.animals.update(animal)
        await uow.commit()

    assert store.appends == []
    stored = store.document(tenant_id, "animals", cow.id)
    assert stored["weight_kg"] == 400.0
    assert len(stored["weight_history"]) == 1


async def test_quota_blocks_writes_beyond_daily_limit(snapshot, store, tenant_id):
    quota = WriteQuotaTracker(daily_limit=3, clock=lambda: date(2024, 1, 1))

    async with SnapshotUnitOfWork(snapshot, store, quota=quota) as uow:
        uow.ensure_write_budget(tenant_id, 2)
        for tag in ("V1", "V2"):
            await uow.animals.add(Animal.create(tenant_id=tenant_id, tag=tag, sex="FEMALE"))
        await uow.commit()

    assert quota.remaining(tenant_id) == 1
    async with SnapshotUnitOfWork(snapshot, store, quota=quota) as uow:
        with pytest.raises(QuotaExceeded) as exc_info:
            uow.ensure_write_budget(tenant_id, 2)
    assert exc_info.value.details["remaining"] == 1


def test_quota_resets_each_day(tenant_id):
    today = {"value": date(2024, 1, 1)}
    quota = WriteQuotaTracker(daily_limit=10, clock=lambda: today["value"])
    quota.record(tenant_id, 10)
    assert quota.remaining(tenant_id) == 0
    today["value"] = date(2024, 1, 2)
    assert quota.remaining(tenant_id) == 10


async def test_delete_of_new_document_writes_nothing(make_uow, tenant_id, store):
    async with make_uow() as uow:
        animal = await uow.animals.add(Animal.create(tenant_id=tenant_id, tag="V1", sex="FEMALE"))
        await uow.animals.delete(tenant_id, animal.id)
        report = await uow.commit()

    assert report.total_ops == 0
    assert store.transactions == []
