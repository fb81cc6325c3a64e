from __future__ import annotations

from typing import Any
from uuid import UUID

from herdbook.domain.models.animal import (
    AbortionRecord,
    Animal,
    AnimalStatus,
    DiagnosisResult,
    MedicationAdministration,
    MedicationItem,
    OffspringWeightRecord,
    PregnancyRecord,
    WeighingType,
    WeightEntry,
)
from herdbook.domain.models.breeding_season import (
    BreedingSeason,
    BullRef,
    CalvingResult,
    CoverageRecord,
    RepasseData,
    SeasonMetrics,
    SeasonStatus,
)
from herdbook.infrastructure.store.codec import decode_date, decode_datetime, drop_none, encode_date

# --- animal histories ---------------------------------------------------------


def weight_entry_to_document(entry: WeightEntry) -> dict[str, Any]:
    return drop_none(
        {
            "id": entry.id,
            "date": encode_date(entry.date),
            "weight_kg": entry.weight_kg,
            "type": entry.type,
        }
    )


def medication_to_document(record: MedicationAdministration) -> dict[str, Any]:
    return drop_none(
        {
            "id": record.id,
            "items": [
                {"drug": item.drug, "dose": item.dose, "unit": item.unit} for item in record.items
            ],
            "applied_at": encode_date(record.applied_at),
            "reason": record.reason,
            "responsible": record.responsible,
        }
    )


def pregnancy_to_document(record: PregnancyRecord) -> dict[str, Any]:
    return drop_none(
        {
            "id": record.id,
            "date": encode_date(record.date),
            "type": record.type,
            "sire_name": record.sire_name,
            "result": record.result,
        }
    )


def abortion_to_document(record: AbortionRecord) -> dict[str, Any]:
    return drop_none({"id": record.id, "date": encode_date(record.date)})


def offspring_to_document(record: OffspringWeightRecord) -> dict[str, Any]:
    return drop_none(
        {
            "id": record.id,
            "offspring_tag": record.offspring_tag,
            "offspring_id": record.offspring_id,
            "birth_weight_kg": record.birth_weight_kg,
            "weaning_weight_kg": record.weaning_weight_kg,
            "yearling_weight_kg": record.yearling_weight_kg,
            "coverage_id": record.coverage_id,
            "recipient_id": record.recipient_id,
        }
    )


HISTORY_ENCODERS = {
    "weight_history": weight_entry_to_document,
    "health_history": medication_to_document,
    "pregnancy_history": pregnancy_to_document,
    "abortion_history": abortion_to_document,
    "progeny": offspring_to_document,
}


def _weight_from_document(doc: dict[str, Any]) -> WeightEntry | None:
    entry_date = decode_date(doc.get("date"))
    if entry_date is None:
        return None
    return WeightEntry(
        id=doc["id"],
        date=entry_date,
        weight_kg=float(doc.get("weight_kg") or 0),
        type=doc.get("type") or WeighingType.NONE.value,
    )


def _medication_from_document(doc: dict[str, Any]) -> MedicationAdministration | None:
    applied_at = decode_date(doc.get("applied_at"))
    if applied_at is None:
        return None
    return MedicationAdministration(
        id=doc["id"],
        items=[
            MedicationItem(drug=i.get("drug", ""), dose=float(i.get("dose") or 0), unit=i.get("unit", "ml"))
            for i in doc.get("items") or []
        ],
        applied_at=applied_at,
        reason=doc.get("reason"),
        responsible=doc.get("responsible"),
    )


def _pregnancy_from_document(doc: dict[str, Any]) -> PregnancyRecord | None:
    record_date = decode_date(doc.get("date"))
    if record_date is None:
        return None
    return PregnancyRecord(
        id=doc["id"],
        date=record_date,
        type=doc.get("type") or "",
        sire_name=doc.get("sire_name") or "",
        result=doc.get("result") or DiagnosisResult.PENDING.value,
    )


def _abortion_from_document(doc: dict[str, Any]) -> AbortionRecord | None:
    record_date = decode_date(doc.get("date"))
    if record_date is None:
        return None
    return AbortionRecord(id=doc["id"], date=record_date)


def _offspring_from_document(doc: dict[str, Any]) -> OffspringWeightRecord:
    return OffspringWeightRecord(
        id=doc["id"],
        offspring_tag=doc.get("offspring_tag") or "",
        offspring_id=doc.get("offspring_id"),
        birth_weight_kg=doc.get("birth_weight_kg"),
        weaning_weight_kg=doc.get("weaning_weight_kg"),
        yearling_weight_kg=doc.get("yearling_weight_kg"),
        coverage_id=doc.get("coverage_id"),
        recipient_id=doc.get("recipient_id"),
    )


def _decode_list(items: Any, decoder) -> list:
    decoded = (decoder(item) for item in items or [])
    return [item for item in decoded if item is not None]


# --- animal -------------------------------------------------------------------


def animal_to_document(animal: Animal) -> dict[str, Any]:
    return drop_none(
        {
            "id": animal.id,
            "tenant_id": str(animal.tenant_id),
            "tag": animal.tag,
            "name": animal.name,
            "sex": animal.sex,
            "breed": animal.breed,
            "status": animal.status,
            "birth_date": encode_date(animal.birth_date),
            "weight_kg": animal.weight_kg,
            "management_area_id": animal.management_area_id,
            "dam_id": animal.dam_id,
            "dam_tag": animal.dam_tag,
            "sire_id": animal.sire_id,
            "sire_name": animal.sire_name,
            "is_fiv": animal.is_fiv,
            "donor_id": animal.donor_id,
            "donor_tag": animal.donor_tag,
            "recipient_id": animal.recipient_id,
            "recipient_tag": animal.recipient_tag,
            "weight_history": [weight_entry_to_document(w) for w in animal.weight_history],
            "health_history": [medication_to_document(m) for m in animal.health_history],
            "pregnancy_history": [pregnancy_to_document(p) for p in animal.pregnancy_history],
            "abortion_history": [abortion_to_document(a) for a in animal.abortion_history],
            "progeny": [offspring_to_document(o) for o in animal.progeny],
            "created_at": animal.created_at.isoformat(),
            "updated_at": animal.updated_at.isoformat(),
            "version": animal.version,
        }
    )


def animal_from_document(doc: dict[str, Any], tenant_id: UUID) -> Animal:
    return Animal(
        id=doc["id"],
        tenant_id=tenant_id,
        tag=doc.get("tag") or "",
        sex=doc.get("sex") or "",
        name=doc.get("name"),
        breed=doc.get("breed"),
        status=doc.get("status") or AnimalStatus.ACTIVE.value,
        birth_date=decode_date(doc.get("birth_date")),
        weight_kg=float(doc.get("weight_kg") or 0),
        management_area_id=doc.get("management_area_id"),
        dam_id=doc.get("dam_id"),
        dam_tag=doc.get("dam_tag"),
        sire_id=doc.get("sire_id"),
        sire_name=doc.get("sire_name"),
        is_fiv=bool(doc.get("is_fiv", False)),
        donor_id=doc.get("donor_id"),
        donor_tag=doc.get("donor_tag"),
        recipient_id=doc.get("recipient_id"),
        recipient_tag=doc.get("recipient_tag"),
        weight_history=_decode_list(doc.get("weight_history"), _weight_from_document),
        health_history=_decode_list(doc.get("health_history"), _medication_from_document),
        pregnancy_history=_decode_list(doc.get("pregnancy_history"), _pregnancy_from_document),
        abortion_history=_decode_list(doc.get("abortion_history"), _abortion_from_document),
        progeny=_decode_list(doc.get("progeny"), _offspring_from_document),
        created_at=decode_datetime(doc.get("created_at")),
        updated_at=decode_datetime(doc.get("updated_at")),
        version=int(doc.get("version") or 1),
    )


# --- breeding season ----------------------------------------------------------


def _bulls_to_document(bulls: list[BullRef]) -> list[dict[str, Any]]:
    return [{"bull_id": b.bull_id, "bull_tag": b.bull_tag} for b in bulls]


def _bulls_from_document(items: Any) -> list[BullRef]:
    return [
        BullRef(bull_id=b.get("bull_id", ""), bull_tag=b.get("bull_tag") or "Desconhecido")
        for b in items or []
    ]


def _outcome_to_document(record: CoverageRecord | RepasseData) -> dict[str, Any]:
    return {
        "bulls": _bulls_to_document(record.bulls),
        "bull_id": record.bull_id,
        "bull_tag": record.bull_tag,
        "confirmed_sire_id": record.confirmed_sire_id,
        "confirmed_sire_tag": record.confirmed_sire_tag,
        "pregnancy_result": record.pregnancy_result,
        "pregnancy_check_date": encode_date(record.pregnancy_check_date),
        "expected_calving_date": encode_date(record.expected_calving_date),
        "calving_result": record.calving_result,
        "calf_id": record.calf_id,
        "calf_tag": record.calf_tag,
        "actual_calving_date": encode_date(record.actual_calving_date),
        "calving_notes": record.calving_notes,
    }


def _outcome_from_document(doc: dict[str, Any]) -> dict[str, Any]:
    return {
        "bulls": _bulls_from_document(doc.get("bulls")),
        "bull_id": doc.get("bull_id"),
        "bull_tag": doc.get("bull_tag"),
        "confirmed_sire_id": doc.get("confirmed_sire_id"),
        "confirmed_sire_tag": doc.get("confirmed_sire_tag"),
        "pregnancy_result": doc.get("pregnancy_result") or DiagnosisResult.PENDING.value,
        "pregnancy_check_date": decode_date(doc.get("pregnancy_check_date")),
        "expected_calving_date": decode_date(doc.get("expected_calving_date")),
        "calving_result": doc.get("calving_result") or CalvingResult.PENDING.value,
        "calf_id": doc.get("calf_id"),
        "calf_tag": doc.get("calf_tag"),
        "actual_calving_date": decode_date(doc.get("actual_calving_date")),
        "calving_notes": doc.get("calving_notes"),
    }


def repasse_to_document(repasse: RepasseData) -> dict[str, Any]:
    return drop_none(
        {
            "enabled": repasse.enabled,
            "start_date": encode_date(repasse.start_date),
            "end_date": encode_date(repasse.end_date),
            **_outcome_to_document(repasse),
        }
    )


def repasse_from_document(doc: dict[str, Any]) -> RepasseData:
    return RepasseData(
        enabled=bool(doc.get("enabled", False)),
        start_date=decode_date(doc.get("start_date")),
        end_date=decode_date(doc.get("end_date")),
        **_outcome_from_document(doc),
    )


def coverage_to_document(coverage: CoverageRecord) -> dict[str, Any]:
    return drop_none(
        {
            "id": coverage.id,
            "cow_id": coverage.cow_id,
            "cow_tag": coverage.cow_tag,
            "date": encode_date(coverage.date),
            "type": coverage.type,
            "semen_code": coverage.semen_code,
            "donor_cow_id": coverage.donor_cow_id,
            "donor_cow_tag": coverage.donor_cow_tag,
            "technician": coverage.technician,
            "notes": coverage.notes,
            **_outcome_to_document(coverage),
            "repasse": repasse_to_document(coverage.repasse) if coverage.repasse else None,
            "created_at": coverage.created_at.isoformat(),
        }
    )


def coverage_from_document(doc: dict[str, Any]) -> CoverageRecord | None:
    coverage_date = decode_date(doc.get("date"))
    if coverage_date is None:
        return None
    repasse = doc.get("repasse")
    return CoverageRecord(
        id=doc["id"],
        cow_id=doc.get("cow_id") or "",
        cow_tag=doc.get("cow_tag") or "",
        date=coverage_date,
        type=doc.get("type") or "",
        semen_code=doc.get("semen_code"),
        donor_cow_id=doc.get("donor_cow_id"),
        donor_cow_tag=doc.get("donor_cow_tag"),
        technician=doc.get("technician"),
        notes=doc.get("notes"),
        repasse=repasse_from_document(repasse) if repasse else None,
        created_at=decode_datetime(doc.get("created_at")),
        **_outcome_from_document(doc),
    )


def metrics_to_document(metrics: SeasonMetrics) -> dict[str, Any]:
    return {
        "total_exposed": metrics.total_exposed,
        "total_covered": metrics.total_covered,
        "total_pregnant": metrics.total_pregnant,
        "pregnancy_rate": metrics.pregnancy_rate,
        "service_rate": metrics.service_rate,
        "conception_rate": metrics.conception_rate,
    }


def season_to_document(season: BreedingSeason) -> dict[str, Any]:
    return drop_none(
        {
            "id": season.id,
            "tenant_id": str(season.tenant_id),
            "name": season.name,
            "start_date": encode_date(season.start_date),
            "end_date": encode_date(season.end_date),
            "status": season.status,
            "exposed_cow_ids": list(season.exposed_cow_ids),
            "bulls": _bulls_to_document(season.bulls),
            "coverage_records": [coverage_to_document(c) for c in season.coverage_records],
            "metrics": metrics_to_document(season.metrics) if season.metrics else None,
            "pregnancy_check_days": season.pregnancy_check_days,
            "notes": season.notes,
            "created_at": season.created_at.isoformat(),
            "updated_at": season.updated_at.isoformat(),
            "version": season.version,
        }
    )


def season_from_document(doc: dict[str, Any], tenant_id: UUID) -> BreedingSeason | None:
    start_date = decode_date(doc.get("start_date"))
    end_date = decode_date(doc.get("end_date"))
    if start_date is None or end_date is None:
        return None
    metrics = doc.get("metrics")
    return BreedingSeason(
        id=doc["id"],
        tenant_id=tenant_id,
        name=doc.get("name") or "",
        start_date=start_date,
        end_date=end_date,
        status=doc.get("status") or SeasonStatus.PLANNING.value,
        exposed_cow_ids=list(doc.get("exposed_cow_ids") or []),
        bulls=_bulls_from_document(doc.get("bulls")),
        coverage_records=_decode_list(doc.get("coverage_records"), coverage_from_document),
        metrics=SeasonMetrics(**metrics) if metrics else None,
        pregnancy_check_days=int(doc.get("pregnancy_check_days") or 60),
        notes=doc.get("notes"),
        created_at=decode_datetime(doc.get("created_at")),
        updated_at=decode_datetime(doc.get("updated_at")),
        version=int(doc.get("version") or 1),
    )
