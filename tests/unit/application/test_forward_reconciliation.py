from __future__ import annotations

import copy
from datetime import date
from uuid import uuid4

from herdbook.application.reconciliation.forward import (
    on_coverage_added,
    on_coverage_deleted,
    on_coverage_updated,
    set_diagnosis,
)
from herdbook.application.reconciliation.progeny import link_calf_to_parent
from herdbook.domain.models.animal import (
    AbortionRecord,
    Animal,
    OffspringWeightRecord,
    PregnancyRecord,
)
from herdbook.domain.models.breeding_season import BullRef, CoverageRecord, RepasseData

TENANT = uuid4()
TODAY = date(2024, 6, 1)


def animal(tag: str, sex: str = "FEMALE", **fields) -> Animal:
    return Animal.create(tenant_id=TENANT, tag=tag, sex=sex, **fields)


def coverage_for(cow: Animal, **fields) -> CoverageRecord:
    fields.setdefault("bulls", [BullRef("b1", "Touro 1")])
    return CoverageRecord.create(cow.id, cow.tag, date(2024, 1, 10), "NATURAL", **fields)


def edit(population, coverage, **changes):
    before = copy.deepcopy(coverage)
    for name, value in changes.items():
        setattr(coverage, name, value)
    return on_coverage_updated(population, before, coverage, TODAY)


def test_added_coverage_creates_pregnancy_record_on_dam():
    cow = animal("V1")
    coverage = coverage_for(cow)

    changed = on_coverage_added([cow], coverage)

    assert changed == [cow]
    record = cow.find_pregnancy(coverage.id)
    assert record.date == date(2024, 1, 10)
    assert record.type == "NATURAL"
    assert record.sire_name == "Touro 1"
    assert record.result == "PENDING"


def test_positive_to_negative_records_one_abortion_and_back_removes_it():
    cow = animal("V1")
    coverage = coverage_for(cow)
    on_coverage_added([cow], coverage)

    before = copy.deepcopy(coverage)
    set_diagnosis(coverage, "POSITIVE", date(2024, 2, 20))
    on_coverage_updated([cow], before, coverage, TODAY)
    assert cow.abortion_history == []

    before = copy.deepcopy(coverage)
    set_diagnosis(coverage, "NEGATIVE", date(2024, 3, 15))
    on_coverage_updated([cow], before, coverage, TODAY)
    assert [(a.id, a.date) for a in cow.abortion_history] == [
        (f"abort_{coverage.id}", date(2024, 3, 15))
    ]
    assert cow.find_pregnancy(coverage.id).result == "NEGATIVE"

    # Saving the same state again stays idempotent
    before = copy.deepcopy(coverage)
    on_coverage_updated([cow], before, coverage, TODAY)
    assert len(cow.abortion_history) == 1

    before = copy.deepcopy(coverage)
    set_diagnosis(coverage, "POSITIVE", date(2024, 3, 20))
    on_coverage_updated([cow], before, coverage, TODAY)
    assert cow.abortion_history == []


def test_pending_to_negative_is_not_an_abortion():
    cow = animal("V1")
    coverage = coverage_for(cow)
    on_coverage_added([cow], coverage)
    before = copy.deepcopy(coverage)
    set_diagnosis(coverage, "NEGATIVE", date(2024, 2, 20))
    on_coverage_updated([cow], before, coverage, TODAY)
    assert cow.abortion_history == []


def test_repasse_records_follow_enable_and_disable():
    cow = animal("V1")
    coverage = coverage_for(cow, pregnancy_result="NEGATIVE")
    coverage.type = "AI"
    on_coverage_added([cow], coverage)

    edit(
        [cow],
        coverage,
        repasse=RepasseData(
            enabled=True, start_date=date(2024, 2, 15), bulls=[BullRef("b2", "Touro 2")]
        ),
    )
    repasse_record = cow.find_pregnancy(f"repasse_{coverage.id}")
    assert repasse_record.date == date(2024, 2, 15)
    assert repasse_record.type == "NATURAL"
    assert repasse_record.sire_name == "Touro 2"

    before = copy.deepcopy(coverage)
    set_diagnosis(coverage, "POSITIVE", date(2024, 4, 1), repasse=True)
    on_coverage_updated([cow], before, coverage, TODAY)
    before = copy.deepcopy(coverage)
    set_diagnosis(coverage, "NEGATIVE", date(2024, 5, 1), repasse=True)
    on_coverage_updated([cow], before, coverage, TODAY)
    assert cow.abortion_history[0].id == f"abort_repasse_{coverage.id}"

    disabled = copy.deepcopy(coverage.repasse)
    disabled.enabled = False
    edit([cow], coverage, repasse=disabled)
    assert cow.find_pregnancy(f"repasse_{coverage.id}") is None
    assert cow.abortion_history == []


def test_date_change_moves_pregnancy_record_and_expected_calving():
    cow = animal("V1")
    coverage = coverage_for(cow)
    on_coverage_added([cow], coverage)

    edit([cow], coverage, date=date(2024, 2, 1))

    assert cow.find_pregnancy(coverage.id).date == date(2024, 2, 1)
    assert coverage.expected_calving_date == date(2024, 11, 10)


def test_date_change_moves_expected_calving_of_undated_repasse():
    cow = animal("V1")
    coverage = coverage_for(
        cow,
        pregnancy_result="NEGATIVE",
        repasse=RepasseData(
            enabled=True,
            bulls=[BullRef("b2", "Touro 2")],
            pregnancy_result="POSITIVE",
            expected_calving_date=date(2024, 10, 19),
        ),
    )
    coverage.type = "AI"
    on_coverage_added([cow], coverage)

    edit([cow], coverage, date=date(2024, 3, 10))

    assert coverage.repasse.expected_calving_date == date(2024, 12, 18)
    assert cow.find_pregnancy(f"repasse_{coverage.id}").date == date(2024, 3, 10)


def test_dated_repasse_keeps_its_own_expected_calving():
    cow = animal("V1")
    coverage = coverage_for(
        cow,
        pregnancy_result="NEGATIVE",
        repasse=RepasseData(
            enabled=True,
            start_date=date(2024, 2, 15),
            pregnancy_result="POSITIVE",
            expected_calving_date=date(2024, 11, 24),
        ),
    )
    on_coverage_added([cow], coverage)

    edit([cow], coverage, date=date(2024, 1, 20))

    assert coverage.repasse.expected_calving_date == date(2024, 11, 24)


def test_dam_change_moves_derived_records():
    first = animal("V1")
    second = animal("V2")
    population = [first, second]
    coverage = coverage_for(first, pregnancy_result="POSITIVE")
    on_coverage_added(population, coverage)
    before = copy.deepcopy(coverage)
    set_diagnosis(coverage, "NEGATIVE", date(2024, 3, 1))
    on_coverage_updated(population, before, coverage, TODAY)
    assert len(first.abortion_history) == 1

    changed = edit(population, coverage, cow_id=second.id, cow_tag=second.tag)

    assert {a.id for a in changed} == {first.id, second.id}
    assert first.pregnancy_history == []
    assert first.abortion_history == []
    assert second.find_pregnancy(coverage.id) is not None
    assert [a.id for a in second.abortion_history] == [f"abort_{coverage.id}"]


def test_deleted_coverage_removes_every_derived_record():
    cow = animal("V1")
    coverage = coverage_for(
        cow,
        pregnancy_result="NEGATIVE",
        repasse=RepasseData(enabled=True, bulls=[BullRef("b2", "Touro 2")]),
    )
    on_coverage_added([cow], coverage)
    assert len(cow.pregnancy_history) == 2

    assert on_coverage_deleted([cow], coverage) == [cow]
    assert cow.pregnancy_history == []


def test_add_then_delete_restores_existing_histories_exactly():
    recipient = animal("R1")
    donor = animal("D1")
    population = [recipient, donor]
    recipient.pregnancy_history = [
        PregnancyRecord("old2", date(2023, 5, 1), "NATURAL", "Touro 9", "POSITIVE"),
        PregnancyRecord("old1", date(2022, 5, 1), "AI", "Touro 8", "NEGATIVE"),
    ]
    recipient.abortion_history = [AbortionRecord("abort_old", date(2023, 2, 1))]
    donor.progeny = [
        OffspringWeightRecord("prog_x", "B-10", offspring_id="x", birth_weight_kg=30.0)
    ]
    recipient_before = copy.deepcopy(
        (recipient.pregnancy_history, recipient.abortion_history, recipient.progeny)
    )
    donor_before = copy.deepcopy((donor.pregnancy_history, donor.abortion_history, donor.progeny))

    fiv = CoverageRecord.create(
        recipient.id,
        recipient.tag,
        date(2024, 1, 10),
        "FIV",
        donor_cow_id=donor.id,
        donor_cow_tag=donor.tag,
    )
    natural = coverage_for(
        recipient,
        pregnancy_result="POSITIVE",
        repasse=RepasseData(enabled=True, start_date=date(2024, 2, 15)),
    )
    on_coverage_added(population, fiv)
    on_coverage_added(population, natural)
    before = copy.deepcopy(natural)
    set_diagnosis(natural, "NEGATIVE", date(2024, 3, 1))
    on_coverage_updated(population, before, natural, TODAY)
    assert len(recipient.pregnancy_history) == 5
    assert len(recipient.abortion_history) == 2
    assert donor.find_progeny(f"fiv_{fiv.id}").offspring_id is None

    on_coverage_deleted(population, natural)
    on_coverage_deleted(population, fiv)

    assert (
        recipient.pregnancy_history,
        recipient.abortion_history,
        recipient.progeny,
    ) == recipient_before
    assert (donor.pregnancy_history, donor.abortion_history, donor.progeny) == donor_before


def test_fiv_coverage_keeps_embryo_placeholder_on_donor():
    recipient = animal("R1")
    donor = animal("D1")
    population = [recipient, donor]
    coverage = CoverageRecord.create(
        recipient.id,
        recipient.tag,
        date(2024, 1, 10),
        "FIV",
        donor_cow_id=donor.id,
        donor_cow_tag=donor.tag,
    )

    on_coverage_added(population, coverage)
    placeholder = donor.find_progeny(f"fiv_{coverage.id}")
    assert placeholder.offspring_tag == "Embriao (receptora: R1)"
    assert placeholder.recipient_id == recipient.id
    assert recipient.find_pregnancy(coverage.id).type == "FIV"

    # A born calf takes the placeholder over instead of adding a second entry
    calf = animal(
        "F1",
        birth_date=date(2024, 10, 19),
        is_fiv=True,
        recipient_id=recipient.id,
        recipient_tag=recipient.tag,
        donor_id=donor.id,
        donor_tag=donor.tag,
    )
    population.append(calf)
    assert link_calf_to_parent(population, calf, birth_weight_kg=32.0) is donor
    assert len(donor.progeny) == 1
    assert donor.progeny[0].offspring_id == calf.id
    assert donor.progeny[0].birth_weight_kg == 32.0

    # Deleting the coverage no longer drops the claimed record
    on_coverage_deleted(population, coverage)
    assert len(donor.progeny) == 1


def test_unclaimed_placeholder_follows_donor_change():
    recipient = animal("R1")
    donor = animal("D1")
    other = animal("D2")
    population = [recipient, donor, other]
    coverage = CoverageRecord.create(
        recipient.id, recipient.tag, date(2024, 1, 10), "FIV", donor_cow_id=donor.id
    )
    on_coverage_added(population, coverage)

    edit(population, coverage, donor_cow_id=other.id, donor_cow_tag=other.tag)

    assert donor.progeny == []
    assert other.find_progeny(f"fiv_{coverage.id}") is not None
