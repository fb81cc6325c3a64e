from __future__ import annotations

import copy
import logging
from collections.abc import Sequence

from herdbook.domain.models.animal import Animal, OffspringWeightRecord, Sex, WeighingType
from herdbook.domain.services.animal_reference import resolve_animal_reference
from herdbook.domain.value_objects.parentage_mode import normalize_tag

logger = logging.getLogger(__name__)

EMBRYO_PLACEHOLDER_PREFIX = "fiv_"


def progeny_record_id(calf_id: str) -> str:
    return f"prog_{calf_id}"


def progeny_parent(population: Sequence[Animal], calf: Animal) -> Animal | None:
    """Animal that holds the calf in its progeny list: the donor for FIV calves, else the dam."""
    if calf.inferred_fiv:
        return resolve_animal_reference(
            population, calf.donor_id, calf.donor_tag, sex=Sex.FEMALE.value
        )
    return resolve_animal_reference(population, calf.dam_id, calf.dam_tag, sex=Sex.FEMALE.value)


def find_calf_record(parent: Animal, calf: Animal) -> OffspringWeightRecord | None:
    tag = normalize_tag(calf.tag)
    for record in parent.progeny:
        if record.offspring_id == calf.id:
            return record
    for record in parent.progeny:
        if record.offspring_id is None and tag and normalize_tag(record.offspring_tag) == tag:
            return record
    return None


def _is_open_placeholder(record: OffspringWeightRecord) -> bool:
    return record.offspring_id is None and record.id.startswith(EMBRYO_PLACEHOLDER_PREFIX)


def find_embryo_placeholder(donor: Animal, calf: Animal) -> OffspringWeightRecord | None:
    """Unclaimed embryo placeholder on the donor gestated by the calf's recipient."""
    recipient_tag = normalize_tag(calf.recipient_tag)
    for record in donor.progeny:
        if not _is_open_placeholder(record):
            continue
        if record.recipient_id and calf.recipient_id:
            if record.recipient_id == calf.recipient_id:
                return record
            continue
        # Records written before the recipient id was stored only carry the label
        if recipient_tag and recipient_tag in normalize_tag(record.offspring_tag):
            return record
    return None


def link_calf_to_parent(
    population: Sequence[Animal],
    calf: Animal,
    birth_weight_kg: float | None = None,
) -> Animal | None:
    """Add the calf to its mother's progeny; returns the mother when it changed."""
    parent = progeny_parent(population, calf)
    if parent is None:
        logger.debug("No progeny parent found for calf %s", calf.id)
        return None
    if find_calf_record(parent, calf) is not None:
        return None
    weight = birth_weight_kg if birth_weight_kg and birth_weight_kg > 0 else None
    if calf.inferred_fiv:
        placeholder = find_embryo_placeholder(parent, calf)
        if placeholder is not None:
            placeholder.offspring_tag = calf.tag
            placeholder.offspring_id = calf.id
            if weight is not None:
                placeholder.birth_weight_kg = weight
            return parent
    parent.progeny.append(
        OffspringWeightRecord(
            id=progeny_record_id(calf.id),
            offspring_tag=calf.tag,
            offspring_id=calf.id,
            birth_weight_kg=weight,
            recipient_id=calf.recipient_id if calf.inferred_fiv else None,
        )
    )
    return parent


def propagate_special_weights(population: Sequence[Animal], calf: Animal) -> Animal | None:
    """Copy birth/weaning/yearling weights onto the mother's progeny record."""
    weights = calf.special_weights()
    if not weights:
        return None
    parent = progeny_parent(population, calf)
    if parent is None:
        return None
    record = find_calf_record(parent, calf)
    if record is None:
        record = OffspringWeightRecord(
            id=progeny_record_id(calf.id), offspring_tag=calf.tag, offspring_id=calf.id
        )
        parent.progeny.append(record)
        before = None
    else:
        before = copy.copy(record)
    record.offspring_tag = calf.tag
    record.offspring_id = calf.id
    record.birth_weight_kg = weights.get(WeighingType.BIRTH.value, record.birth_weight_kg)
    record.weaning_weight_kg = weights.get(WeighingType.WEANING.value, record.weaning_weight_kg)
    record.yearling_weight_kg = weights.get(WeighingType.YEARLING.value, record.yearling_weight_kg)
    return None if record == before else parent


def rename_calf_record(population: Sequence[Animal], calf: Animal) -> Animal | None:
    parent = progeny_parent(population, calf)
    if parent is None:
        return None
    record = next((r for r in parent.progeny if r.offspring_id == calf.id), None)
    if record is None or record.offspring_tag == calf.tag:
        return None
    record.offspring_tag = calf.tag
    return parent


def move_calf_between_parents(
    population: Sequence[Animal],
    calf: Animal,
    previous_parent: Animal | None,
) -> list[Animal]:
    """Re-home the progeny record after the calf's dam or donor changed."""
    changed: list[Animal] = []
    new_parent = progeny_parent(population, calf)
    if previous_parent is not None and (new_parent is None or new_parent.id != previous_parent.id):
        record = find_calf_record(previous_parent, calf)
        if record is not None:
            previous_parent.remove_progeny(record.id)
            changed.append(previous_parent)
            if new_parent is not None and find_calf_record(new_parent, calf) is None:
                record.id = progeny_record_id(calf.id)
                record.offspring_id = calf.id
                new_parent.progeny.append(record)
                changed.append(new_parent)
            return changed
    linked = link_calf_to_parent(population, calf)
    if linked is not None:
        changed.append(linked)
    return changed
