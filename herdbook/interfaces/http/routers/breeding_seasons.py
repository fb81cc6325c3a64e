from __future__ import annotations

from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response

from herdbook.application.use_cases.breeding import (
    add_coverage_to_season,
    confirm_paternity,
    create_breeding_season,
    delete_breeding_season,
    delete_coverage_from_season,
    get_breeding_season,
    get_season_report,
    list_breeding_seasons,
    register_abortion,
    register_calving,
    update_breeding_season,
    update_coverage_in_season,
    update_pregnancy_diagnosis,
    verify_season_outcomes,
)
from herdbook.application.use_cases.breeding.common import RepasseInput as RepasseFields
from herdbook.config.settings import Settings
from herdbook.domain.models.breeding_season import BullRef, BullSwitchConfig
from herdbook.interfaces.http.deps import get_app_settings, get_tenant_id, get_uow
from herdbook.interfaces.http.schemas.breeding_seasons import (
    AbortionInput,
    BreedingSeasonCreate,
    BreedingSeasonResponse,
    BreedingSeasonsListResponse,
    BreedingSeasonUpdate,
    BullRefSchema,
    CalvingInput,
    CoverageCreate,
    CoverageMutationResponse,
    CoverageResponse,
    CoverageUpdate,
    DiagnosisInput,
    PaternityInput,
    RepasseInput,
    SeasonReportResponse,
    SweepResultResponse,
    VerifySeasonRequest,
)

router = APIRouter(prefix="/breeding-seasons", tags=["breeding"])


def _bulls(items: list[BullRefSchema] | None) -> list[BullRef] | None:
    if items is None:
        return None
    return [BullRef(bull_id=b.bull_id, bull_tag=b.bull_tag) for b in items]


def _repasse(payload: RepasseInput | None) -> RepasseFields | None:
    if payload is None:
        return None
    data = payload.model_dump(exclude={"bulls"})
    return RepasseFields(bulls=_bulls(payload.bulls), **data)


@router.get("", response_model=BreedingSeasonsListResponse)
async def list_seasons_endpoint(
    status: str | None = None,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    seasons = await list_breeding_seasons.execute(uow, tenant_id, status=status)
    return {"items": seasons, "total": len(seasons)}


@router.post("", response_model=BreedingSeasonResponse, status_code=status.HTTP_201_CREATED)
async def create_season_endpoint(
    payload: BreedingSeasonCreate,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    input_data = create_breeding_season.CreateBreedingSeasonInput(
        name=payload.name,
        start_date=payload.start_date,
        end_date=payload.end_date,
        status=payload.status,
        exposed_cow_ids=payload.exposed_cow_ids,
        bulls=_bulls(payload.bulls),
        pregnancy_check_days=payload.pregnancy_check_days,
        notes=payload.notes,
    )
    return await create_breeding_season.execute(uow, tenant_id, input_data)


@router.get("/{season_id}", response_model=BreedingSeasonResponse)
async def get_season_endpoint(
    season_id: str,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    return await get_breeding_season.execute(uow, tenant_id, season_id)


@router.put("/{season_id}", response_model=BreedingSeasonResponse)
async def update_season_endpoint(
    season_id: str,
    payload: BreedingSeasonUpdate,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    data = payload.model_dump(exclude={"bulls"})
    input_data = update_breeding_season.UpdateBreedingSeasonInput(
        bulls=_bulls(payload.bulls), **data
    )
    return await update_breeding_season.execute(uow, tenant_id, season_id, input_data)


@router.delete("/{season_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_season_endpoint(
    season_id: str,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    await delete_breeding_season.execute(uow, tenant_id, season_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{season_id}/report", response_model=SeasonReportResponse)
async def season_report_endpoint(
    season_id: str,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    report = await get_season_report.execute(uow, tenant_id, season_id)
    data = asdict(report)
    data["daily_coverages"] = [{"date": d, "count": n} for d, n in report.daily_coverages]
    return data


@router.post(
    "/{season_id}/coverages",
    response_model=CoverageMutationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_coverage_endpoint(
    season_id: str,
    payload: CoverageCreate,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    data = payload.model_dump(exclude={"bulls", "repasse"})
    input_data = add_coverage_to_season.AddCoverageInput(
        bulls=_bulls(payload.bulls), repasse=_repasse(payload.repasse), **data
    )
    season, coverage = await add_coverage_to_season.execute(uow, tenant_id, season_id, input_data)
    return {"season": season, "coverage": coverage}


@router.put("/{season_id}/coverages/{coverage_id}", response_model=CoverageMutationResponse)
async def update_coverage_endpoint(
    season_id: str,
    coverage_id: str,
    payload: CoverageUpdate,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    data = payload.model_dump(exclude={"bulls", "repasse"})
    input_data = update_coverage_in_season.UpdateCoverageInput(
        bulls=_bulls(payload.bulls), repasse=_repasse(payload.repasse), **data
    )
    season, coverage = await update_coverage_in_season.execute(
        uow, tenant_id, season_id, coverage_id, input_data
    )
    return {"season": season, "coverage": coverage}


@router.delete("/{season_id}/coverages/{coverage_id}", response_model=BreedingSeasonResponse)
async def delete_coverage_endpoint(
    season_id: str,
    coverage_id: str,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    return await delete_coverage_from_season.execute(uow, tenant_id, season_id, coverage_id)


@router.post("/{season_id}/coverages/{coverage_id}/diagnosis", response_model=CoverageResponse)
async def diagnosis_endpoint(
    season_id: str,
    coverage_id: str,
    payload: DiagnosisInput,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    input_data = update_pregnancy_diagnosis.UpdateDiagnosisInput(**payload.model_dump())
    return await update_pregnancy_diagnosis.execute(
        uow, tenant_id, season_id, coverage_id, input_data
    )


@router.post("/{season_id}/coverages/{coverage_id}/paternity", response_model=CoverageResponse)
async def paternity_endpoint(
    season_id: str,
    coverage_id: str,
    payload: PaternityInput,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    input_data = confirm_paternity.ConfirmPaternityInput(**payload.model_dump())
    return await confirm_paternity.execute(uow, tenant_id, season_id, coverage_id, input_data)


@router.post("/{season_id}/coverages/{coverage_id}/abortion", response_model=CoverageResponse)
async def abortion_endpoint(
    season_id: str,
    coverage_id: str,
    payload: AbortionInput,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    input_data = register_abortion.RegisterAbortionInput(**payload.model_dump())
    return await register_abortion.execute(uow, tenant_id, season_id, coverage_id, input_data)


@router.post("/{season_id}/coverages/{coverage_id}/calving", response_model=CoverageResponse)
async def calving_endpoint(
    season_id: str,
    coverage_id: str,
    payload: CalvingInput,
    tenant_id: UUID = Depends(get_tenant_id),
    uow=Depends(get_uow),
):
    input_data = register_calving.RegisterCalvingInput(**payload.model_dump())
    return await register_calving.execute(uow, tenant_id, season_id, coverage_id, input_data)


@router.post("/{season_id}/verify", response_model=SweepResultResponse)
async def verify_season_endpoint(
    season_id: str,
    payload: VerifySeasonRequest,
    tenant_id: UUID = Depends(get_tenant_id),
    settings: Settings = Depends(get_app_settings),
    uow=Depends(get_uow),
):
    tolerance = payload.tolerance_days
    if tolerance is None:
        tolerance = settings.calving_tolerance_days
    input_data = verify_season_outcomes.VerifySeasonInput(
        tolerance_days=tolerance,
        bull_switch_configs=[
            BullSwitchConfig(
                coverage_id=c.coverage_id,
                selected_bull_index=c.selected_bull_index,
                switch_date=c.switch_date,
            )
            for c in payload.bull_switch_configs
        ],
        today=payload.today,
    )
    return await verify_season_outcomes.execute(uow, tenant_id, season_id, input_data)
