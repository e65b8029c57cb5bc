from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from hospital_flow.domain.constants import (
    Department,
    DischargeStatus,
    PatientStatus,
    TriageLevel,
)


@dataclass(frozen=True, slots=True)
class SlotRef:
    department: Department
    bed_number: int | None = None
    floor: int | None = None
    room: int | None = None

    @classmethod
    def icu(cls, bed_number: int) -> SlotRef:
        return cls(department=Department.ICU, bed_number=bed_number)

    @classmethod
    def ward(cls, floor: int, room: int) -> SlotRef:
        return cls(department=Department.WARDS, floor=floor, room=room)

    @property
    def label(self) -> str:
        if self.department == Department.ICU:
            return f"ICU bed {self.bed_number}"
        # Room numbers read as floor * 100 + room on the ward boards.
        return f"ward room {(self.floor or 0) * 100 + (self.room or 0)}"


@dataclass(frozen=True, slots=True)
class FinancialRecord:
    id: str
    type: str
    description: str
    amount: int
    timestamp: datetime


@dataclass(slots=True)
class PatientRecord:
    id: str
    name: str
    created_at: datetime
    department: Department
    status: PatientStatus
    date_of_birth: date | None = None
    triage_level: TriageLevel | None = None
    slot: SlotRef | None = None
    attending_doctor_id: str | None = None
    admitted_at: datetime | None = None
    discharge_status: DischargeStatus | None = None
    discharged_at: datetime | None = None
    notes: str = ""
    financial_records: list[FinancialRecord] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status != PatientStatus.DISCHARGED
