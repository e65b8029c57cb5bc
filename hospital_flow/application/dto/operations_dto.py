from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from hospital_flow.domain.constants import (
    ServiceRequestStatus,
    ServiceRequestType,
    SterilizationStage,
)


class SterilizationRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(..., min_length=1)
    department: str = Field(..., min_length=1)
    cycle_duration: float | None = Field(default=None, gt=0)


class InstrumentSetResponse(BaseModel):
    id: str
    name: str
    department: str
    stage: SterilizationStage
    cycle_start: float | None = None
    cycle_duration: float
    progress: float = 0.0


class ServiceRequestCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    type: ServiceRequestType = ServiceRequestType.MAINTENANCE
    description: str = Field(..., min_length=1)
    department: str = "reception"


class ServiceRequestResponse(BaseModel):
    id: str
    type: ServiceRequestType
    description: str
    department: str
    status: ServiceRequestStatus
    created_at: datetime
    updated_at: datetime | None = None


class DoctorCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    specialty: str = Field(..., min_length=1)
    is_partner: bool = False


class DoctorResponse(BaseModel):
    id: str
    name: str
    specialty: str
    is_partner: bool
    referral_count: int
    referral_notes: list[str] = Field(default_factory=list)
