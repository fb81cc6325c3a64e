from __future__ import annotations

from datetime import date
from uuid import uuid4

from herdbook.application.reconciliation.forward import on_coverage_added
from herdbook.application.reconciliation.reverse import (
    find_coverage_for_calf,
    sync_sire_to_coverage,
)
from herdbook.domain.models.animal import Animal
from herdbook.domain.models.breeding_season import (
    BreedingSeason,
    BullRef,
    CoverageRecord,
    RepasseData,
)

TENANT = uuid4()
BULL_1 = BullRef("b1", "Touro 1")
BULL_2 = BullRef("b2", "Touro 2")


def animal(tag: str, sex: str = "FEMALE", **fields) -> Animal:
    return Animal.create(tenant_id=TENANT, tag=tag, sex=sex, **fields)


def season(name: str, start: date, end: date, *coverages: CoverageRecord) -> BreedingSeason:
    result = BreedingSeason.create(tenant_id=TENANT, name=name, start_date=start, end_date=end)
    result.coverage_records.extend(coverages)
    return result


def test_calf_sire_is_written_back_to_the_coverage_and_dam():
    cow = animal("V1")
    coverage = CoverageRecord.create(
        cow.id,
        cow.tag,
        date(2024, 1, 10),
        "NATURAL",
        bulls=[BULL_1, BULL_2],
        pregnancy_result="POSITIVE",
    )
    on_coverage_added([cow], coverage)
    assert cow.find_pregnancy(coverage.id).sire_name == "Touro 1 / Touro 2 (pendente)"
    calf = animal(
        "C1", birth_date=date(2024, 10, 25), dam_id=cow.id, sire_id="b2", sire_name="Touro 2"
    )
    population = [cow, calf]
    breeding = season("2024", date(2024, 1, 1), date(2024, 3, 31), coverage)

    result = sync_sire_to_coverage(population, [breeding], calf)

    assert result is not None
    assert result.match.coverage is coverage
    assert not result.match.repasse
    assert coverage.confirmed_sire_id == "b2"
    assert coverage.confirmed_sire_tag == "Touro 2"
    assert result.changed_animals == [cow]
    assert cow.find_pregnancy(coverage.id).sire_name == "Touro 2"


def test_repasse_takes_the_sire_when_it_conceived():
    cow = animal("V1")
    coverage = CoverageRecord.create(
        cow.id,
        cow.tag,
        date(2024, 1, 10),
        "IATF",
        pregnancy_result="NEGATIVE",
        repasse=RepasseData(
            enabled=True,
            start_date=date(2024, 2, 20),
            bulls=[BULL_1, BULL_2],
            pregnancy_result="POSITIVE",
        ),
    )
    calf = animal("C1", birth_date=date(2024, 11, 29), dam_tag="v1", sire_id="b1", sire_name="Touro 1")
    breeding = season("2024", date(2024, 1, 1), date(2024, 3, 31), coverage)

    result = sync_sire_to_coverage([cow, calf], [breeding], calf)

    assert result.match.repasse
    assert result.match.distance_days == 0
    assert coverage.repasse.confirmed_sire_id == "b1"
    assert coverage.confirmed_sire_id is None


def test_newest_season_wins_over_a_closer_older_coverage():
    cow = animal("V1")
    older = CoverageRecord.create(cow.id, cow.tag, date(2023, 12, 30), "NATURAL")
    newer = CoverageRecord.create(cow.id, cow.tag, date(2024, 1, 20), "NATURAL")
    seasons = [
        season("2023", date(2023, 10, 1), date(2023, 12, 31), older),
        season("2024", date(2024, 1, 1), date(2024, 3, 31), newer),
    ]
    calf = animal("C1", birth_date=date(2024, 10, 10), dam_id=cow.id)

    match = find_coverage_for_calf([cow, calf], seasons, calf)

    assert match.coverage is newer
    assert match.distance_days == 19


def test_fiv_calf_only_matches_fiv_coverage_of_its_recipient():
    recipient = animal("R1")
    donor = animal("D1")
    natural = CoverageRecord.create(recipient.id, recipient.tag, date(2024, 1, 10), "NATURAL")
    fiv = CoverageRecord.create(
        recipient.id,
        recipient.tag,
        date(2024, 1, 12),
        "FIV",
        donor_cow_id=donor.id,
        donor_cow_tag=donor.tag,
    )
    calf = animal(
        "F1",
        birth_date=date(2024, 10, 19),
        recipient_id=recipient.id,
        donor_tag="d1",
        sire_name="Touro FIV",
    )
    breeding = season("2024", date(2024, 1, 1), date(2024, 3, 31), natural, fiv)

    match = find_coverage_for_calf([recipient, donor, calf], [breeding], calf)

    assert match.coverage is fiv


def test_no_coverage_within_tolerance_leaves_everything_untouched():
    cow = animal("V1")
    coverage = CoverageRecord.create(cow.id, cow.tag, date(2024, 1, 10), "NATURAL")
    calf = animal("C1", birth_date=date(2025, 3, 1), dam_id=cow.id, sire_name="Touro X")
    breeding = season("2024", date(2024, 1, 1), date(2024, 3, 31), coverage)

    assert sync_sire_to_coverage([cow, calf], [breeding], calf) is None
    assert coverage.confirmed_sire_tag is None
