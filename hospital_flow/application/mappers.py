from __future__ import annotations

from datetime import date, datetime
from typing import Any

from hospital_flow.application.dto.operations_dto import (
    DoctorResponse,
    InstrumentSetResponse,
    ServiceRequestResponse,
)
from hospital_flow.application.dto.patient_dto import (
    FinancialRecordResponse,
    PatientResponse,
    SlotDto,
)
from hospital_flow.domain.constants import (
    Department,
    DischargeStatus,
    PatientStatus,
    ServiceRequestStatus,
    ServiceRequestType,
    SterilizationStage,
    TriageLevel,
)
from hospital_flow.domain.models.operations import Doctor, InstrumentSet, ServiceRequest
from hospital_flow.domain.models.patient import FinancialRecord, PatientRecord, SlotRef


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_datetime(raw: Any) -> datetime | None:
    if not raw:
        return None
    return datetime.fromisoformat(str(raw))


def _parse_date(raw: Any) -> date | None:
    if not raw:
        return None
    return date.fromisoformat(str(raw))


def slot_to_payload(slot: SlotRef | None) -> dict[str, Any] | None:
    if slot is None:
        return None
    return {
        "department": slot.department.value,
        "bedNumber": slot.bed_number,
        "floor": slot.floor,
        "room": slot.room,
    }


def slot_from_payload(payload: dict[str, Any] | None) -> SlotRef | None:
    if not payload:
        return None
    return SlotRef(
        department=Department(payload["department"]),
        bed_number=payload.get("bedNumber"),
        floor=payload.get("floor"),
        room=payload.get("room"),
    )


def record_to_payload(record: FinancialRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "type": record.type,
        "description": record.description,
        "amount": record.amount,
        "timestamp": record.timestamp.isoformat(),
    }


def record_from_payload(payload: dict[str, Any]) -> FinancialRecord:
    timestamp = _parse_datetime(payload.get("timestamp"))
    if timestamp is None:
        raise ValueError(f"Financial record {payload.get('id')} has no timestamp")
    return FinancialRecord(
        id=str(payload["id"]),
        type=str(payload.get("type") or "other"),
        description=str(payload.get("description") or ""),
        amount=int(payload["amount"]),
        timestamp=timestamp,
    )


def patient_to_payload(patient: PatientRecord) -> dict[str, Any]:
    return {
        "id": patient.id,
        "patientName": patient.name,
        "createdAt": patient.created_at.isoformat(),
        "department": patient.department.value,
        "status": patient.status.value,
        "dob": _iso(patient.date_of_birth),
        "triageLevel": patient.triage_level.value if patient.triage_level else None,
        "slot": slot_to_payload(patient.slot),
        "doctorId": patient.attending_doctor_id,
        "admittedAt": _iso(patient.admitted_at),
        "dischargeStatus": patient.discharge_status.value if patient.discharge_status else None,
        "dischargedAt": _iso(patient.discharged_at),
        "notes": patient.notes,
        "financialRecords": [record_to_payload(r) for r in patient.financial_records],
    }


def patient_from_payload(payload: dict[str, Any]) -> PatientRecord:
    created_at = _parse_datetime(payload.get("createdAt"))
    if created_at is None:
        raise ValueError(f"Patient {payload.get('id')} has no creation timestamp")
    triage = payload.get("triageLevel")
    discharge_status = payload.get("dischargeStatus")
    return PatientRecord(
        id=str(payload["id"]),
        name=str(payload["patientName"]),
        created_at=created_at,
        department=Department(payload["department"]),
        status=PatientStatus(payload["status"]),
        date_of_birth=_parse_date(payload.get("dob")),
        triage_level=TriageLevel(triage) if triage else None,
        slot=slot_from_payload(payload.get("slot")),
        attending_doctor_id=payload.get("doctorId"),
        admitted_at=_parse_datetime(payload.get("admittedAt")),
        discharge_status=DischargeStatus(discharge_status) if discharge_status else None,
        discharged_at=_parse_datetime(payload.get("dischargedAt")),
        notes=str(payload.get("notes") or ""),
        financial_records=[record_from_payload(r) for r in payload.get("financialRecords") or []],
    )


def slot_to_dto(slot: SlotRef | None) -> SlotDto | None:
    if slot is None:
        return None
    return SlotDto(
        department=slot.department,
        bed_number=slot.bed_number,
        floor=slot.floor,
        room=slot.room,
        label=slot.label,
    )


def record_to_response(record: FinancialRecord) -> FinancialRecordResponse:
    return FinancialRecordResponse(
        id=record.id,
        type=record.type,
        description=record.description,
        amount=record.amount,
        timestamp=record.timestamp,
    )


def patient_to_response(patient: PatientRecord, balance: int) -> PatientResponse:
    return PatientResponse(
        id=patient.id,
        name=patient.name,
        created_at=patient.created_at,
        department=patient.department,
        status=patient.status,
        date_of_birth=patient.date_of_birth,
        triage_level=patient.triage_level,
        slot=slot_to_dto(patient.slot),
        attending_doctor_id=patient.attending_doctor_id,
        admitted_at=patient.admitted_at,
        discharge_status=patient.discharge_status.value if patient.discharge_status else None,
        discharged_at=patient.discharged_at,
        notes=patient.notes,
        balance=balance,
    )


def instrument_to_payload(item: InstrumentSet) -> dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "department": item.department,
        "status": item.stage.value,
        "cycleStartTime": item.cycle_start,
        "cycleDuration": item.cycle_duration,
        "createdAt": item.created_at,
        "completedAt": item.completed_at,
    }


def instrument_from_payload(payload: dict[str, Any]) -> InstrumentSet:
    cycle_start = payload.get("cycleStartTime")
    return InstrumentSet(
        id=str(payload["id"]),
        name=str(payload["name"]),
        department=str(payload["department"]),
        stage=SterilizationStage(payload["status"]),
        cycle_duration=float(payload["cycleDuration"]),
        cycle_start=float(cycle_start) if cycle_start is not None else None,
        created_at=payload.get("createdAt"),
        completed_at=payload.get("completedAt"),
    )


def instrument_to_response(item: InstrumentSet, progress: float) -> InstrumentSetResponse:
    return InstrumentSetResponse(
        id=item.id,
        name=item.name,
        department=item.department,
        stage=item.stage,
        cycle_start=item.cycle_start,
        cycle_duration=item.cycle_duration,
        progress=progress,
    )


def service_request_to_payload(item: ServiceRequest) -> dict[str, Any]:
    return {
        "id": item.id,
        "type": item.type.value,
        "description": item.description,
        "department": item.department,
        "status": item.status.value,
        "createdAt": item.created_at.isoformat(),
        "updatedAt": _iso(item.updated_at),
    }


def service_request_from_payload(payload: dict[str, Any]) -> ServiceRequest:
    created_at = _parse_datetime(payload.get("createdAt"))
    if created_at is None:
        raise ValueError(f"Service request {payload.get('id')} has no creation timestamp")
    return ServiceRequest(
        id=str(payload["id"]),
        type=ServiceRequestType(payload["type"]),
        description=str(payload.get("description") or ""),
        department=str(payload.get("department") or ""),
        status=ServiceRequestStatus(payload["status"]),
        created_at=created_at,
        updated_at=_parse_datetime(payload.get("updatedAt")),
    )


def service_request_to_response(item: ServiceRequest) -> ServiceRequestResponse:
    return ServiceRequestResponse(
        id=item.id,
        type=item.type,
        description=item.description,
        department=item.department,
        status=item.status,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


def doctor_to_payload(doctor: Doctor) -> dict[str, Any]:
    return {
        "id": doctor.id,
        "name": doctor.name,
        "specialty": doctor.specialty,
        "createdAt": doctor.created_at.isoformat(),
        "isPartner": doctor.is_partner,
        "referralCount": doctor.referral_count,
        "referralNotes": list(doctor.referral_notes),
    }


def doctor_from_payload(payload: dict[str, Any]) -> Doctor:
    created_at = _parse_datetime(payload.get("createdAt"))
    if created_at is None:
        raise ValueError(f"Doctor {payload.get('id')} has no creation timestamp")
    return Doctor(
        id=str(payload["id"]),
        name=str(payload["name"]),
        specialty=str(payload.get("specialty") or ""),
        created_at=created_at,
        is_partner=bool(payload.get("isPartner", False)),
        referral_count=int(payload.get("referralCount") or 0),
        referral_notes=[str(n) for n in payload.get("referralNotes") or []],
    )


def doctor_to_response(doctor: Doctor) -> DoctorResponse:
    return DoctorResponse(
        id=doctor.id,
        name=doctor.name,
        specialty=doctor.specialty,
        is_partner=doctor.is_partner,
        referral_count=doctor.referral_count,
        referral_notes=list(doctor.referral_notes),
    )
