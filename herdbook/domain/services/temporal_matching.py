from __future__ import annotations

from collections.abc import Collection, Iterable
from datetime import date, timedelta

from herdbook.domain.models.animal import Animal
from herdbook.domain.models.breeding_season import CoverageType
from herdbook.domain.value_objects.parentage_mode import (
    AnimalRef,
    DirectParentage,
    FIVParentage,
    ParentageMode,
    is_offspring_of,
)


def coverage_parentage(
    breeding_type: str,
    mother: AnimalRef,
    donor: AnimalRef | None = None,
) -> ParentageMode:
    """Parentage a calf of this kind of coverage is expected to carry."""
    if breeding_type == CoverageType.FIV.value:
        if donor is not None and donor.is_empty:
            donor = None
        return FIVParentage(recipient=mother, donor=donor)
    return DirectParentage(dam=mother)


def _lookup_tag(population: list[Animal], animal_id: str | None) -> str | None:
    if not animal_id:
        return None
    return next((a.tag for a in population if a.id == animal_id), None)


def offspring_born_between(
    population: Iterable[Animal],
    mode: ParentageMode,
    start: date,
    end: date,
    excluded_ids: Collection[str] = (),
) -> list[Animal]:
    return [
        animal
        for animal in population
        if animal.birth_date is not None
        and start <= animal.birth_date <= end
        and animal.id not in excluded_ids
        and is_offspring_of(animal, mode)
    ]


def find_best_match(
    population: Iterable[Animal],
    mother_id: str,
    expected_date: date,
    tolerance_days: int,
    excluded_ids: Collection[str],
    breeding_type: str,
    donor_id: str | None = None,
    *,
    mother_tag: str | None = None,
    donor_tag: str | None = None,
) -> Animal | None:
    """Pick the calf most likely born from a given breeding event.

    Only children of the mother under the breeding type's parentage mode are
    considered: FIV coverages match FIV calves through the recipient (and the
    donor when given), every other type matches non-FIV calves through the dam.
    Candidates must be born within ``tolerance_days`` of ``expected_date`` and
    not be excluded; the closest birth date wins.
    """
    animals = list(population)
    mother = AnimalRef(mother_id, mother_tag or _lookup_tag(animals, mother_id))
    donor = None
    if donor_id or donor_tag:
        donor = AnimalRef(donor_id, donor_tag or _lookup_tag(animals, donor_id))
    mode = coverage_parentage(breeding_type, mother, donor)

    window = timedelta(days=tolerance_days)
    candidates = offspring_born_between(
        animals, mode, expected_date - window, expected_date + window, excluded_ids
    )
    if not candidates:
        return None
    return min(candidates, key=lambda a: abs((a.birth_date - expected_date).days))
