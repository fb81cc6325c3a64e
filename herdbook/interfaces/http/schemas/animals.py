from __future__ import annotations

import datetime as dt
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _strip_optional(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    return v or None


class AnimalCreate(BaseModel):
    tag: str
    sex: str  # MALE, FEMALE
    name: str | None = None
    breed: str | None = None
    status: str = "ACTIVE"
    birth_date: dt.date | None = None
    weight_kg: float = Field(default=0.0, ge=0)
    management_area_id: str | None = None
    # Genealogy fields
    dam_id: str | None = None
    dam_tag: str | None = None
    sire_id: str | None = None
    sire_name: str | None = None
    is_fiv: bool = False
    donor_id: str | None = None
    donor_tag: str | None = None
    recipient_id: str | None = None
    recipient_tag: str | None = None

    @field_validator("dam_tag", "sire_name", "donor_tag", "recipient_tag")
    def strip_tags(cls, v: str | None) -> str | None:
        return _strip_optional(v)


class AnimalUpdate(BaseModel):
    version: int
    tag: str | None = None
    name: str | None = None
    sex: str | None = None
    breed: str | None = None
    status: str | None = None
    birth_date: dt.date | None = None
    weight_kg: float | None = Field(default=None, ge=0)
    management_area_id: str | None = None
    dam_id: str | None = None
    dam_tag: str | None = None
    sire_id: str | None = None
    sire_name: str | None = None
    is_fiv: bool | None = None
    donor_id: str | None = None
    donor_tag: str | None = None
    recipient_id: str | None = None
    recipient_tag: str | None = None

    @field_validator("dam_tag", "sire_name", "donor_tag", "recipient_tag")
    def strip_tags(cls, v: str | None) -> str | None:
        return _strip_optional(v)


class WeightEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    date: dt.date
    weight_kg: float
    type: str


class MedicationItemSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    drug: str
    dose: float = Field(gt=0)
    unit: str = "ml"  # ml, mg, dose


class MedicationAdministrationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    items: list[MedicationItemSchema]
    applied_at: dt.date
    reason: str | None = None
    responsible: str | None = None


class PregnancyRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    date: dt.date
    type: str
    sire_name: str
    result: str


class AbortionRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    date: dt.date


class OffspringWeightRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    offspring_tag: str
    offspring_id: str | None = None
    birth_weight_kg: float | None = None
    weaning_weight_kg: float | None = None
    yearling_weight_kg: float | None = None
    coverage_id: str | None = None
    recipient_id: str | None = None


class AnimalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: UUID
    tag: str
    sex: str
    name: str | None
    breed: str | None
    status: str
    birth_date: dt.date | None
    weight_kg: float
    management_area_id: str | None
    dam_id: str | None
    dam_tag: str | None
    sire_id: str | None
    sire_name: str | None
    is_fiv: bool
    donor_id: str | None
    donor_tag: str | None
    recipient_id: str | None
    recipient_tag: str | None
    weight_history: list[WeightEntryResponse] = []
    health_history: list[MedicationAdministrationResponse] = []
    pregnancy_history: list[PregnancyRecordResponse] = []
    abortion_history: list[AbortionRecordResponse] = []
    progeny: list[OffspringWeightRecordResponse] = []
    created_at: dt.datetime
    updated_at: dt.datetime
    version: int


class AnimalsListResponse(BaseModel):
    items: list[AnimalResponse]
    total: int


class WeightCreate(BaseModel):
    weight_kg: float = Field(gt=0)
    date: dt.date
    type: str = "NONE"  # NONE, BIRTH, WEANING, YEARLING, TURN


class MedicationCreate(BaseModel):
    applied_at: dt.date
    items: list[MedicationItemSchema] = Field(min_length=1)
    reason: str | None = None
    responsible: str | None = None

    @field_validator("reason", "responsible")
    def strip_text(cls, v: str | None) -> str | None:
        return _strip_optional(v)
