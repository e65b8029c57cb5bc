from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hospital_flow.domain.constants import Department, PatientStatus, TriageLevel


class PatientCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    date_of_birth: date | None = None
    department: Department = Department.RECEPTION
    triage_level: TriageLevel | None = None
    referring_doctor_id: str | None = None
    notes: str = ""

    @field_validator("department")
    @classmethod
    def _validate_department(cls, v: Department) -> Department:
        if v in {Department.ICU, Department.WARDS, Department.MEDICAL_RECORDS}:
            raise ValueError("Patients enter ICU, wards and records only through transfer or discharge")
        return v


class PatientUpdateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1)
    date_of_birth: date | None = None
    triage_level: TriageLevel | None = None
    status: PatientStatus | None = None
    attending_doctor_id: str | None = None
    notes: str | None = None


class SlotDto(BaseModel):
    department: Department
    bed_number: int | None = None
    floor: int | None = None
    room: int | None = None
    label: str


class FinancialRecordCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    type: str = Field(..., min_length=1)
    description: str = ""
    amount: int


class FinancialRecordResponse(BaseModel):
    id: str
    type: str
    description: str
    amount: int
    timestamp: datetime


class LedgerStatement(BaseModel):
    patient_id: str
    total_charges: int
    total_payments: int
    balance: int
    records: list[FinancialRecordResponse] = Field(default_factory=list)


class PatientResponse(BaseModel):
    id: str
    name: str
    created_at: datetime
    department: Department
    status: PatientStatus
    date_of_birth: date | None = None
    triage_level: TriageLevel | None = None
    slot: SlotDto | None = None
    attending_doctor_id: str | None = None
    admitted_at: datetime | None = None
    discharge_status: str | None = None
    discharged_at: datetime | None = None
    notes: str = ""
    balance: int = 0
