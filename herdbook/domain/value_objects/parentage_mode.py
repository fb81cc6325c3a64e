from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from herdbook.domain.models.animal import Animal


def normalize_tag(tag: str | None) -> str:
    """Tags are typed by hand; compare them trimmed and case-folded."""
    return (tag or "").strip().lower()


@dataclass(frozen=True, slots=True)
class AnimalRef:
    id: str | None = None
    tag: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.id and not normalize_tag(self.tag)

    def matches(self, other_id: str | None, other_tag: str | None) -> bool:
        if self.id and other_id and self.id == other_id:
            return True
        mine = normalize_tag(self.tag)
        return bool(mine) and mine == normalize_tag(other_tag)


@dataclass(frozen=True, slots=True)
class DirectParentage:
    dam: AnimalRef


@dataclass(frozen=True, slots=True)
class FIVParentage:
    recipient: AnimalRef
    donor: AnimalRef | None = None


ParentageMode = Union[DirectParentage, FIVParentage]


def parentage_of(animal: Animal) -> ParentageMode | None:
    """Lineage of an animal as recorded on its own parentage fields."""
    if animal.inferred_fiv:
        recipient = AnimalRef(animal.recipient_id, animal.recipient_tag)
        if recipient.is_empty:
            return None
        donor = AnimalRef(animal.donor_id, animal.donor_tag)
        return FIVParentage(recipient=recipient, donor=None if donor.is_empty else donor)
    dam = AnimalRef(animal.dam_id, animal.dam_tag)
    if dam.is_empty:
        return None
    return DirectParentage(dam=dam)


def is_offspring_of(child: Animal, mode: ParentageMode) -> bool:
    """Direct and FIV matching are mutually exclusive."""
    if isinstance(mode, FIVParentage):
        if not child.inferred_fiv:
            return False
        if not mode.recipient.matches(child.recipient_id, child.recipient_tag):
            return False
        if mode.donor is not None and not mode.donor.is_empty:
            return mode.donor.matches(child.donor_id, child.donor_tag)
        return True
    if child.inferred_fiv:
        return False
    return mode.dam.matches(child.dam_id, child.dam_tag)


def gestating_mother(mode: ParentageMode) -> AnimalRef:
    if isinstance(mode, FIVParentage):
        return mode.recipient
    return mode.dam
