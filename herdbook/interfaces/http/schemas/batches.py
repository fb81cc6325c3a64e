from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field

from herdbook.interfaces.http.schemas.animals import MedicationCreate


class WeighingEntry(BaseModel):
    animal_id: str
    weight_kg: float = Field(gt=0)


class BatchWeighingRequest(BaseModel):
    date: dt.date
    type: str = "NONE"
    entries: list[WeighingEntry] = Field(min_length=1)


class BatchMedicationRequest(BaseModel):
    medication: MedicationCreate
    animal_ids: list[str] = Field(min_length=1)


class CommitReportResponse(BaseModel):
    total_ops: int
    committed_ops: int
    total_chunks: int
    committed_chunks: int


class BatchResultResponse(BaseModel):
    applied: int
    skipped: int
    skipped_ids: list[str] = []
    commit: CommitReportResponse | None = None
