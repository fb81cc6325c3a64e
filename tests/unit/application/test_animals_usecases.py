from __future__ import annotations

import logging
from datetime import date

import pytest

from herdbook.application.errors import ConflictError, NotFound, ValidationError
from herdbook.application.use_cases.animals import (
    create_animal,
    delete_animal,
    get_animal,
    list_animals,
    record_medication,
    record_weight,
    update_animal,
)
from herdbook.application.use_cases.batches import apply_batch_medication, apply_batch_weighing
from herdbook.application.use_cases.breeding import add_coverage_to_season, create_breeding_season


async def create(make_uow, tenant_id, **fields):
    fields.setdefault("sex", "FEMALE")
    async with make_uow() as uow:
        return await create_animal.execute(
            uow, tenant_id, create_animal.CreateAnimalInput(**fields)
        )


async def fetch(make_uow, tenant_id, animal_id):
    async with make_uow() as uow:
        return await get_animal.execute(uow, tenant_id, animal_id)


async def test_create_animal_requires_tag_and_valid_sex(make_uow, tenant_id, store):
    with pytest.raises(ValidationError):
        await create(make_uow, tenant_id, tag="   ")
    with pytest.raises(ValidationError):
        await create(make_uow, tenant_id, tag="V1", sex="X")
    assert store.transactions == []


async def test_created_calf_is_added_to_dam_progeny(make_uow, tenant_id, store):
    cow = await create(make_uow, tenant_id, tag="V1")
    calf = await create(
        make_uow,
        tenant_id,
        tag="C1",
        sex="MALE",
        dam_tag="v1",
        birth_date=date(2024, 10, 25),
        weight_kg=31.5,
    )

    assert calf.dam_id == cow.id
    assert calf.dam_tag == "V1"
    dam = await fetch(make_uow, tenant_id, cow.id)
    assert dam.version == 2
    assert [(p.offspring_id, p.birth_weight_kg) for p in dam.progeny] == [(calf.id, 31.5)]
    stored = store.document(tenant_id, "animals", cow.id)
    assert stored["progeny"][0]["offspring_tag"] == "C1"
    assert calf.weight_history[0].id == f"initial-{calf.id}"


async def test_update_with_stale_version_conflicts(make_uow, tenant_id):
    cow = await create(make_uow, tenant_id, tag="V1")
    async with make_uow() as uow:
        with pytest.raises(ConflictError):
            await update_animal.execute(
                uow, tenant_id, cow.id, update_animal.UpdateAnimalInput(version=7, name="Mimosa")
            )
    assert (await fetch(make_uow, tenant_id, cow.id)).name is None


async def test_changing_dam_moves_progeny_record(make_uow, tenant_id):
    first = await create(make_uow, tenant_id, tag="V1")
    second = await create(make_uow, tenant_id, tag="V2")
    calf = await create(make_uow, tenant_id, tag="C1", dam_id=first.id)

    async with make_uow() as uow:
        await update_animal.execute(
            uow,
            tenant_id,
            calf.id,
            update_animal.UpdateAnimalInput(
                version=calf.version, dam_id=second.id, dam_tag=second.tag
            ),
        )

    assert (await fetch(make_uow, tenant_id, first.id)).progeny == []
    moved = (await fetch(make_uow, tenant_id, second.id)).progeny
    assert [p.offspring_id for p in moved] == [calf.id]


async def test_renaming_calf_updates_mother_record(make_uow, tenant_id):
    cow = await create(make_uow, tenant_id, tag="V1")
    calf = await create(make_uow, tenant_id, tag="C1", dam_id=cow.id)

    async with make_uow() as uow:
        await update_animal.execute(
            uow, tenant_id, calf.id, update_animal.UpdateAnimalInput(version=1, tag="C1-B")
        )

    dam = await fetch(make_uow, tenant_id, cow.id)
    assert dam.progeny[0].offspring_tag == "C1-B"


async def test_calf_sire_change_confirms_coverage_sire(make_uow, tenant_id):
    cow = await create(make_uow, tenant_id, tag="V1")
    async with make_uow() as uow:
        season = await create_breeding_season.execute(
            uow,
            tenant_id,
            create_breeding_season.CreateBreedingSeasonInput(
                name="2024", start_date=date(2024, 1, 1), end_date=date(2024, 3, 31)
            ),
        )
    async with make_uow() as uow:
        _, coverage = await add_coverage_to_season.execute(
            uow,
            tenant_id,
            season.id,
            add_coverage_to_season.AddCoverageInput(
                date=date(2024, 1, 10), type="AI", cow_id=cow.id, semen_code="SX-1"
            ),
        )
    calf = await create(
        make_uow, tenant_id, tag="C1", dam_id=cow.id, birth_date=date(2024, 10, 20)
    )

    async with make_uow() as uow:
        await update_animal.execute(
            uow,
            tenant_id,
            calf.id,
            update_animal.UpdateAnimalInput(version=1, sire_id="bull-9", sire_name="Touro 9"),
        )

    async with make_uow() as uow:
        stored = await uow.breeding_seasons.get(tenant_id, season.id)
        dam = await uow.animals.get(tenant_id, cow.id)
    assert stored.find_coverage(coverage.id).confirmed_sire_tag == "Touro 9"
    assert dam.find_pregnancy(coverage.id).sire_name == "Touro 9"


async def test_birth_weighing_propagates_to_mother(make_uow, tenant_id):
    cow = await create(make_uow, tenant_id, tag="V1")
    calf = await create(make_uow, tenant_id, tag="C1", dam_id=cow.id)

    async with make_uow() as uow:
        updated = await record_weight.execute(
            uow,
            tenant_id,
            calf.id,
            record_weight.RecordWeightInput(weight_kg=34.0, date=date(2024, 10, 25), type="BIRTH"),
        )

    assert updated.weight_kg == 34.0
    dam = await fetch(make_uow, tenant_id, cow.id)
    assert dam.progeny[0].birth_weight_kg == 34.0


async def test_weighing_rejects_non_positive_weight(make_uow, tenant_id):
    cow = await create(make_uow, tenant_id, tag="V1")
    async with make_uow() as uow:
        with pytest.raises(ValidationError):
            await record_weight.execute(
                uow,
                tenant_id,
                cow.id,
                record_weight.RecordWeightInput(weight_kg=0, date=date(2024, 1, 1)),
            )


async def test_single_medication_is_appended_without_rewriting_document(
    make_uow, tenant_id, store
):
    cow = await create(make_uow, tenant_id, tag="V1")
    transactions = len(store.transactions)

    async with make_uow() as uow:
        await record_medication.execute(
            uow,
            tenant_id,
            cow.id,
            record_medication.RecordMedicationInput(
                applied_at=date(2024, 5, 1),
                items=[record_medication.MedicationItemInput(drug="Ivermectina", dose=5.0)],
            ),
        )

    assert len(store.transactions) == transactions
    assert len(store.appends) == 1
    stored = store.document(tenant_id, "animals", cow.id)
    assert stored["health_history"][0]["items"][0]["drug"] == "Ivermectina"


async def test_medication_without_items_is_rejected(make_uow, tenant_id):
    cow = await create(make_uow, tenant_id, tag="V1")
    async with make_uow() as uow:
        with pytest.raises(ValidationError):
            await record_medication.execute(
                uow,
                tenant_id,
                cow.id,
                record_medication.RecordMedicationInput(applied_at=date(2024, 5, 1)),
            )


async def test_batch_weighing_skips_unknown_animals(make_uow, tenant_id):
    cow = await create(make_uow, tenant_id, tag="V1")
    async with make_uow() as uow:
        result = await apply_batch_weighing.execute(
            uow,
            tenant_id,
            apply_batch_weighing.BatchWeighingInput(
                date=date(2024, 6, 1),
                entries=[
                    apply_batch_weighing.WeighingEntryInput(animal_id=cow.id, weight_kg=420.0),
                    apply_batch_weighing.WeighingEntryInput(animal_id="ghost", weight_kg=300.0),
                ],
            ),
        )

    assert result.applied == 1
    assert result.skipped_ids == ["ghost"]
    assert result.commit.total_ops == 1
    assert (await fetch(make_uow, tenant_id, cow.id)).weight_kg == 420.0


async def test_batch_medication_appends_to_every_animal(make_uow, tenant_id, store):
    first = await create(make_uow, tenant_id, tag="V1")
    second = await create(make_uow, tenant_id, tag="V2")
    async with make_uow() as uow:
        result = await apply_batch_medication.execute(
            uow,
            tenant_id,
            apply_batch_medication.BatchMedicationInput(
                medication=record_medication.RecordMedicationInput(
                    applied_at=date(2024, 5, 1),
                    items=[record_medication.MedicationItemInput(drug="Vacina", dose=2.0)],
                ),
                animal_ids=[first.id, second.id, first.id],
            ),
        )

    assert result.applied == 2
    assert result.commit.total_ops == 2
    for animal_id in (first.id, second.id):
        assert len(store.document(tenant_id, "animals", animal_id)["health_history"]) == 1


async def test_list_filters_and_sorts_by_tag(make_uow, tenant_id):
    await create(make_uow, tenant_id, tag="b-2")
    await create(make_uow, tenant_id, tag="A-1")
    await create(make_uow, tenant_id, tag="T-1", sex="MALE")

    async with make_uow() as uow:
        females = await list_animals.execute(uow, tenant_id, sex="FEMALE")
    assert [a.tag for a in females] == ["A-1", "b-2"]


async def test_delete_warns_about_orphaned_coverages(make_uow, tenant_id, caplog):
    cow = await create(make_uow, tenant_id, tag="V1")
    async with make_uow() as uow:
        season = await create_breeding_season.execute(
            uow,
            tenant_id,
            create_breeding_season.CreateBreedingSeasonInput(
                name="2024", start_date=date(2024, 1, 1), end_date=date(2024, 3, 31)
            ),
        )
    async with make_uow() as uow:
        await add_coverage_to_season.execute(
            uow,
            tenant_id,
            season.id,
            add_coverage_to_season.AddCoverageInput(
                date=date(2024, 1, 10), type="AI", cow_id=cow.id
            ),
        )

    with caplog.at_level(logging.WARNING):
        async with make_uow() as uow:
            await delete_animal.execute(uow, tenant_id, cow.id)

    assert "orphaned" in caplog.text
    with pytest.raises(NotFound):
        await fetch(make_uow, tenant_id, cow.id)
