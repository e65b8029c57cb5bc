from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from hospital_flow.domain.constants import (
    ServiceRequestStatus,
    ServiceRequestType,
    SterilizationStage,
)


@dataclass(slots=True)
class InstrumentSet:
    id: str
    name: str
    department: str
    stage: SterilizationStage
    cycle_duration: float
    cycle_start: float | None = None
    created_at: float | None = None
    completed_at: float | None = None


@dataclass(slots=True)
class ServiceRequest:
    id: str
    type: ServiceRequestType
    description: str
    department: str
    status: ServiceRequestStatus
    created_at: datetime
    updated_at: datetime | None = None


@dataclass(slots=True)
class Doctor:
    id: str
    name: str
    specialty: str
    created_at: datetime
    is_partner: bool = False
    referral_count: int = 0
    referral_notes: list[str] = field(default_factory=list)
