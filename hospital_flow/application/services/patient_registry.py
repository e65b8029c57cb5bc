from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

from hospital_flow.application.dto.patient_dto import (
    FinancialRecordCreateRequest,
    FinancialRecordResponse,
    LedgerStatement,
    PatientCreateRequest,
    PatientResponse,
    PatientUpdateRequest,
)
from hospital_flow.application.dto.simulation_dto import DepartmentLoad
from hospital_flow.application.errors import (
    AlreadyDischargedError,
    AppError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from hospital_flow.application.mappers import (
    patient_from_payload,
    patient_to_payload,
    patient_to_response,
    record_to_response,
)
from hospital_flow.application.services.ledger import Ledger
from hospital_flow.application.services.resource_allocator import ResourceAllocator
from hospital_flow.application.services.snapshot_store import PATIENTS_KEY, CollectionStore
from hospital_flow.domain.constants import (
    ARCHIVE_DEPARTMENT,
    DEFAULT_EMERGENCY_CAPACITY,
    EDITABLE_STATUSES,
    ICU_ADMISSION_FEE,
    WARD_ADMISSION_FEE,
    Department,
    DischargeStatus,
    FinancialRecordType,
    PatientStatus,
    TriageLevel,
)
from hospital_flow.domain.models.patient import PatientRecord, SlotRef
from hospital_flow.domain.rules.slot_rules import parse_discharge_status


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ReferralCollaborator(Protocol):
    def increment_referral(self, doctor_id: str, note: str) -> object: ...


def parse_triage_level(raw: str | TriageLevel | None) -> TriageLevel | None:
    if raw is None or raw == "":
        return None
    try:
        return TriageLevel(str(raw).strip().lower())
    except ValueError as exc:
        raise ValidationError(f"Unknown triage level: {raw}") from exc


class PatientRegistry:
    """Canonical patient records and their admit/transfer/discharge lifecycle.

    The registry is the only owner of the ``patients`` collection: it keeps the
    slot allocator and the ledger in step with the records and writes the whole
    collection back after every successful change.
    """

    def __init__(
        self,
        store: CollectionStore | None = None,
        allocator: ResourceAllocator | None = None,
        ledger: Ledger | None = None,
        referrals: ReferralCollaborator | None = None,
        clock: Callable[[], datetime] = _utc_now,
        emergency_capacity: int = DEFAULT_EMERGENCY_CAPACITY,
        icu_admission_fee: int = ICU_ADMISSION_FEE,
        ward_admission_fee: int = WARD_ADMISSION_FEE,
    ) -> None:
        if icu_admission_fee < 0 or ward_admission_fee < 0:
            raise ValueError("Admission fees must not be negative")
        self.store = store
        self.allocator = allocator or ResourceAllocator(
            emergency_capacity=emergency_capacity, is_active=self.is_active
        )
        self.ledger = ledger or Ledger(clock=clock)
        self.referrals = referrals
        self.icu_admission_fee = icu_admission_fee
        self.ward_admission_fee = ward_admission_fee
        self._clock = clock
        self._patients: dict[str, PatientRecord] = {}

    # -- persistence -----------------------------------------------------

    def load(self, default_seed: Callable[[], list[PatientRecord]] | None = None) -> int:
        payload = self.store.read(PATIENTS_KEY) if self.store else None
        if payload is None:
            patients = default_seed() if default_seed else []
            seeded = True
        else:
            patients = [patient_from_payload(item) for item in payload]
            seeded = False

        self._patients = {p.id: p for p in patients}
        self.allocator.reset()
        for patient in patients:
            self.ledger.load(patient.id, patient.financial_records)
            if not patient.is_active:
                continue
            if patient.slot is not None:
                try:
                    self.allocator.acquire(patient.slot, patient.id)
                except AppError:
                    logging.getLogger(__name__).warning(
                        "Stored slot %s of patient %s is taken; clearing it", patient.slot.label, patient.id
                    )
                    patient.slot = None
            elif patient.department == Department.EMERGENCY:
                self.allocator.record_emergency(patient.id)
        if seeded:
            self._persist()
        return len(self._patients)

    def _persist(self) -> None:
        if self.store is None:
            return
        for patient in self._patients.values():
            patient.financial_records = list(self.ledger.records(patient.id))
        self.store.write(PATIENTS_KEY, [patient_to_payload(p) for p in self._patients.values()])

    # -- lookup ----------------------------------------------------------

    def _require(self, patient_id: str | None) -> PatientRecord:
        if not patient_id:
            raise ValidationError("Patient id is required")
        patient = self._patients.get(patient_id)
        if patient is None:
            raise NotFoundError(f"Patient {patient_id} not found")
        return patient

    def _require_active(self, patient_id: str | None) -> PatientRecord:
        patient = self._require(patient_id)
        if not patient.is_active:
            raise AlreadyDischargedError(f"Patient {patient.id} is already discharged")
        return patient

    def _response(self, patient: PatientRecord) -> PatientResponse:
        return patient_to_response(patient, self.ledger.balance(patient.id))

    def is_active(self, patient_id: str) -> bool:
        patient = self._patients.get(patient_id)
        return patient is not None and patient.is_active

    def get(self, patient_id: str) -> PatientResponse:
        return self._response(self._require(patient_id))

    def list_patients(
        self,
        department: Department | None = None,
        *,
        include_discharged: bool = False,
    ) -> list[PatientResponse]:
        results: list[PatientResponse] = []
        for patient in self._patients.values():
            if not include_discharged and not patient.is_active:
                continue
            if department is not None and patient.department != department:
                continue
            results.append(self._response(patient))
        return results

    def department_loads(self) -> dict[str, DepartmentLoad]:
        return {
            department.value: self.allocator.department_load(department)
            for department in (Department.EMERGENCY, Department.ICU, Department.WARDS)
        }

    # -- lifecycle -------------------------------------------------------

    def register(self, request: PatientCreateRequest) -> PatientResponse:
        now = self._clock()
        patient = PatientRecord(
            id=f"pat-{uuid4().hex[:12]}",
            name=request.name,
            created_at=now,
            department=request.department,
            status=PatientStatus.WAITING,
            date_of_birth=request.date_of_birth,
            triage_level=request.triage_level if request.department == Department.EMERGENCY else None,
            attending_doctor_id=request.referring_doctor_id,
            notes=request.notes,
        )
        self._patients[patient.id] = patient
        self.ledger.load(patient.id, ())
        if patient.department == Department.EMERGENCY:
            self.allocator.record_emergency(patient.id)
        self._persist()
        logging.getLogger(__name__).info("Registered patient %s (%s)", patient.id, patient.name)

        if request.referring_doctor_id and self.referrals is not None:
            note = f"{patient.name} referred on {now.date().isoformat()}"
            try:
                self.referrals.increment_referral(request.referring_doctor_id, note)
            except AppError as exc:
                # Registration is not rolled back when the referral update fails.
                logging.getLogger(__name__).warning(
                    "Referral update for doctor %s failed: %s", request.referring_doctor_id, exc
                )
        return self._response(patient)

    def admit_to_emergency(
        self, patient_id: str | None, triage_level: str | TriageLevel | None = None
    ) -> PatientResponse:
        patient = self._require_active(patient_id)
        triage = parse_triage_level(triage_level)
        self.allocator.record_emergency(patient.id)
        patient.slot = None
        patient.department = Department.EMERGENCY
        patient.status = PatientStatus.WAITING
        if triage is not None:
            patient.triage_level = triage
        elif patient.triage_level is None:
            patient.triage_level = TriageLevel.STABLE
        self._persist()
        logging.getLogger(__name__).info("Patient %s admitted to emergency", patient.id)
        return self._response(patient)

    def transfer_to_icu(self, patient_id: str | None, bed: int | None = None) -> PatientResponse:
        patient = self._require_active(patient_id)
        if bed is None:
            if patient.department == Department.ICU and patient.slot is not None:
                return self._response(patient)
            slot = self.allocator.find_free(Department.ICU)
            if slot is None:
                raise ConflictError("No free ICU bed")
        else:
            slot = SlotRef.icu(bed)
        return self._move_into_slot(patient, slot, fee=self.icu_admission_fee, fee_label="ICU admission fee")

    def transfer_to_ward(
        self,
        patient_id: str | None,
        floor: int | None = None,
        room: int | None = None,
    ) -> PatientResponse:
        patient = self._require_active(patient_id)
        if floor is None and room is None:
            if patient.department == Department.WARDS and patient.slot is not None:
                return self._response(patient)
            slot = self.allocator.find_free(Department.WARDS)
            if slot is None:
                raise ConflictError("No free ward room")
        elif floor is None or room is None:
            raise ValidationError("Ward transfer needs both floor and room")
        else:
            slot = SlotRef.ward(floor, room)
        return self._move_into_slot(patient, slot, fee=self.ward_admission_fee, fee_label="Ward admission fee")

    def _move_into_slot(self, patient: PatientRecord, slot: SlotRef, *, fee: int, fee_label: str) -> PatientResponse:
        if patient.slot == slot and patient.department == slot.department:
            return self._response(patient)
        # A zero fee means admission is free; no ledger entry is written.
        fee_record = (
            FinancialRecordCreateRequest(
                type=FinancialRecordType.INPATIENT.value,
                description=f"{fee_label} ({slot.label})",
                amount=fee,
            )
            if fee
            else None
        )
        self.allocator.acquire(slot, patient.id)
        patient.slot = slot
        patient.department = slot.department
        patient.status = PatientStatus.ADMITTED
        patient.triage_level = None
        patient.admitted_at = self._clock()
        if fee_record is not None:
            self.ledger.append(patient.id, fee_record)
        self._persist()
        logging.getLogger(__name__).info("Patient %s moved to %s", patient.id, slot.label)
        return self._response(patient)

    def discharge(self, patient_id: str | None, outcome: str | DischargeStatus | None) -> PatientResponse:
        """Archive the patient; ``outcome`` is an exact status or text naming exactly one."""
        patient = self._require_active(patient_id)
        try:
            status = parse_discharge_status(outcome)
        except ValueError as exc:
            raise ValidationError(f"Unknown discharge outcome: {outcome}") from exc
        self.allocator.release_patient(patient.id)
        patient.slot = None
        patient.status = PatientStatus.DISCHARGED
        patient.discharge_status = status
        patient.department = ARCHIVE_DEPARTMENT
        patient.triage_level = None
        patient.discharged_at = self._clock()
        self._persist()
        logging.getLogger(__name__).info("Patient %s discharged (%s)", patient.id, status.value)
        return self._response(patient)

    def update(self, patient_id: str, request: PatientUpdateRequest) -> PatientResponse:
        """Merge the given fields into the record; the last write wins."""
        patient = self._require(patient_id)
        changes = request.model_dump(exclude_unset=True)
        status = changes.get("status")
        if status is not None and status not in EDITABLE_STATUSES:
            raise ValidationError(f"Status {status} is set by admission or discharge only")
        if status is not None and not patient.is_active:
            raise AlreadyDischargedError(f"Patient {patient.id} is already discharged")
        if changes.get("triage_level") is not None and patient.department != Department.EMERGENCY:
            raise ValidationError("Triage level applies to emergency patients only")
        for key, value in changes.items():
            if key in {"name", "notes"} and value is None:
                continue
            setattr(patient, key, value)
        self._persist()
        return self._response(patient)

    # -- money -----------------------------------------------------------

    def add_financial_record(self, patient_id: str, request: FinancialRecordCreateRequest) -> FinancialRecordResponse:
        patient = self._require(patient_id)
        record = self.ledger.append(patient.id, request)
        self._persist()
        return record_to_response(record)

    def record_charge(self, patient_id: str, amount: int, description: str, record_type: str = "other") -> FinancialRecordResponse:
        if amount <= 0:
            raise ValidationError("Charge amount must be positive")
        return self.add_financial_record(
            patient_id,
            FinancialRecordCreateRequest(type=record_type, description=description, amount=amount),
        )

    def record_payment(self, patient_id: str, amount: int, description: str = "Payment") -> FinancialRecordResponse:
        if amount <= 0:
            raise ValidationError("Payment amount must be positive")
        return self.add_financial_record(
            patient_id,
            FinancialRecordCreateRequest(
                type=FinancialRecordType.PAYMENT.value, description=description, amount=-amount
            ),
        )

    def balance(self, patient_id: str) -> int:
        return self.ledger.balance(self._require(patient_id).id)

    def statement(self, patient_id: str) -> LedgerStatement:
        return self.ledger.statement(self._require(patient_id).id)
