from __future__ import annotations

import datetime as dt
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BullRefSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    bull_id: str
    bull_tag: str


class RepasseInput(BaseModel):
    enabled: bool | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    bulls: list[BullRefSchema] | None = Field(default=None, max_length=2)
    bull_id: str | None = None
    bull_tag: str | None = None
    pregnancy_result: str | None = None
    pregnancy_check_date: dt.date | None = None


class RepasseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    enabled: bool
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    bulls: list[BullRefSchema] = []
    bull_id: str | None = None
    bull_tag: str | None = None
    confirmed_sire_id: str | None = None
    confirmed_sire_tag: str | None = None
    pregnancy_result: str
    pregnancy_check_date: dt.date | None = None
    expected_calving_date: dt.date | None = None
    calving_result: str
    calf_id: str | None = None
    calf_tag: str | None = None
    actual_calving_date: dt.date | None = None
    calving_notes: str | None = None


class CoverageCreate(BaseModel):
    date: dt.date
    type: str  # NATURAL, AI, IATF, FIV
    cow_id: str | None = None
    cow_tag: str | None = None
    bulls: list[BullRefSchema] = Field(default_factory=list, max_length=2)
    bull_id: str | None = None
    bull_tag: str | None = None
    semen_code: str | None = None
    donor_cow_id: str | None = None
    donor_cow_tag: str | None = None
    technician: str | None = None
    notes: str | None = None
    pregnancy_result: str = "PENDING"
    pregnancy_check_date: dt.date | None = None
    repasse: RepasseInput | None = None

    @model_validator(mode="after")
    def ensure_cow(self) -> CoverageCreate:
        if not self.cow_id and not (self.cow_tag or "").strip():
            raise ValueError("cow_id or cow_tag is required")
        return self


class CoverageUpdate(BaseModel):
    date: dt.date | None = None
    type: str | None = None
    cow_id: str | None = None
    cow_tag: str | None = None
    bulls: list[BullRefSchema] | None = Field(default=None, max_length=2)
    bull_id: str | None = None
    bull_tag: str | None = None
    semen_code: str | None = None
    donor_cow_id: str | None = None
    donor_cow_tag: str | None = None
    technician: str | None = None
    notes: str | None = None
    pregnancy_result: str | None = None
    pregnancy_check_date: dt.date | None = None
    repasse: RepasseInput | None = None


class CoverageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    cow_id: str
    cow_tag: str
    date: dt.date
    type: str
    bulls: list[BullRefSchema] = []
    bull_id: str | None = None
    bull_tag: str | None = None
    semen_code: str | None = None
    donor_cow_id: str | None = None
    donor_cow_tag: str | None = None
    confirmed_sire_id: str | None = None
    confirmed_sire_tag: str | None = None
    technician: str | None = None
    notes: str | None = None
    pregnancy_result: str
    pregnancy_check_date: dt.date | None = None
    expected_calving_date: dt.date | None = None
    calving_result: str
    calf_id: str | None = None
    calf_tag: str | None = None
    actual_calving_date: dt.date | None = None
    calving_notes: str | None = None
    repasse: RepasseResponse | None = None
    created_at: dt.datetime


class SeasonMetricsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_exposed: int
    total_covered: int
    total_pregnant: int
    pregnancy_rate: float
    service_rate: float
    conception_rate: float


class BreedingSeasonCreate(BaseModel):
    name: str
    start_date: dt.date
    end_date: dt.date
    status: str = "PLANNING"  # PLANNING, ACTIVE, FINISHED
    exposed_cow_ids: list[str] = []
    bulls: list[BullRefSchema] = []
    pregnancy_check_days: int = Field(default=60, ge=1)
    notes: str | None = None


class BreedingSeasonUpdate(BaseModel):
    version: int
    name: str | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    status: str | None = None
    bulls: list[BullRefSchema] | None = None
    pregnancy_check_days: int | None = Field(default=None, ge=1)
    notes: str | None = None
    add_exposed_cow_ids: list[str] | None = None
    remove_exposed_cow_ids: list[str] | None = None


class BreedingSeasonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: UUID
    name: str
    start_date: dt.date
    end_date: dt.date
    status: str
    exposed_cow_ids: list[str]
    bulls: list[BullRefSchema]
    coverage_records: list[CoverageResponse]
    metrics: SeasonMetricsResponse | None = None
    pregnancy_check_days: int
    notes: str | None = None
    created_at: dt.datetime
    updated_at: dt.datetime
    version: int


class BreedingSeasonsListResponse(BaseModel):
    items: list[BreedingSeasonResponse]
    total: int


class CoverageMutationResponse(BaseModel):
    season: BreedingSeasonResponse
    coverage: CoverageResponse


class DiagnosisInput(BaseModel):
    result: str  # PENDING, POSITIVE, NEGATIVE
    check_date: dt.date | None = None
    repasse: bool = False


class PaternityInput(BaseModel):
    bull_id: str
    repasse: bool = False


class AbortionInput(BaseModel):
    date: dt.date | None = None
    notes: str | None = None
    repasse: bool = False


class CalvingInput(BaseModel):
    calf_id: str
    calving_date: dt.date | None = None
    notes: str | None = None
    repasse: bool = False


class BullSwitchConfigSchema(BaseModel):
    coverage_id: str
    selected_bull_index: int | None = Field(default=None, ge=0, le=1)
    switch_date: dt.date | None = None


class VerifySeasonRequest(BaseModel):
    tolerance_days: int | None = Field(default=None, ge=0)
    bull_switch_configs: list[BullSwitchConfigSchema] = []
    today: dt.date | None = None


class SweepResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    linked: int
    registered: int
    pending: int
    discovered: int
    paternity_confirmed: int


class BullStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    bull_id: str
    bull_tag: str
    count: int
    pregnancies: int


class PregnancyCheckDueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    cow_id: str
    cow_tag: str
    coverage_id: str
    due_date: dt.date
    is_repasse: bool


class ExpectedCalvingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    cow_id: str
    cow_tag: str
    coverage_id: str
    expected_date: dt.date
    bull_info: str
    is_fiv: bool
    donor_info: str | None = None
    is_repasse: bool


class DailyCoverageCount(BaseModel):
    date: dt.date
    count: int


class SeasonReportResponse(BaseModel):
    metrics: SeasonMetricsResponse
    total_empty: int
    total_pending: int
    first_service_pregnancy_rate: float
    repasse_count: int
    repasse_pregnant: int
    coverages_by_type: dict[str, int]
    coverages_by_bull: list[BullStatsResponse]
    daily_coverages: list[DailyCoverageCount]
    pregnancy_checks_due: list[PregnancyCheckDueResponse]
    expected_calvings: list[ExpectedCalvingResponse]
    pending_paternity_ids: list[str]
    repasse_eligible_ids: list[str]
