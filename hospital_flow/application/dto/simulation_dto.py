from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class _ActionBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    details: str | None = None


class AdmitToEmergencyAction(_ActionBase):
    action: Literal["ADMIT_PATIENT_TO_EMERGENCY"] = "ADMIT_PATIENT_TO_EMERGENCY"
    patient_id: str | None = Field(default=None, alias="patientId")
    triage_level: str | None = Field(default=None, alias="triageLevel")


class TransferToIcuAction(_ActionBase):
    action: Literal["TRANSFER_PATIENT_FROM_EMERGENCY_TO_ICU"] = "TRANSFER_PATIENT_FROM_EMERGENCY_TO_ICU"
    patient_id: str | None = Field(default=None, alias="patientId")
    bed: int | None = None


class TransferToWardAction(_ActionBase):
    action: Literal["TRANSFER_PATIENT_FROM_EMERGENCY_TO_WARD"] = "TRANSFER_PATIENT_FROM_EMERGENCY_TO_WARD"
    patient_id: str | None = Field(default=None, alias="patientId")
    floor: int | None = None
    room: int | None = None


class DischargeAction(_ActionBase):
    action: Literal["DISCHARGE_PATIENT"] = "DISCHARGE_PATIENT"
    patient_id: str | None = Field(default=None, alias="patientId")
    status: str | None = None


class CreateServiceRequestAction(_ActionBase):
    action: Literal["CREATE_SERVICE_REQUEST"] = "CREATE_SERVICE_REQUEST"
    request_type: str | None = Field(default=None, alias="requestType")
    department: str | None = None


class AdvanceServiceRequestAction(_ActionBase):
    action: Literal["ADVANCE_SERVICE_REQUEST"] = "ADVANCE_SERVICE_REQUEST"
    # The decision source historically put the request id into patientId.
    request_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("requestId", "request_id", "patientId", "patient_id"),
        serialization_alias="requestId",
    )


class NoAction(_ActionBase):
    action: Literal["NO_ACTION"] = "NO_ACTION"


SimulationAction = Annotated[
    AdmitToEmergencyAction
    | TransferToIcuAction
    | TransferToWardAction
    | DischargeAction
    | CreateServiceRequestAction
    | AdvanceServiceRequestAction
    | NoAction,
    Field(discriminator="action"),
]


class ActionBatch(BaseModel):
    actions: list[SimulationAction] = Field(default_factory=list)


class PatientSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    patient_name: str = Field(alias="patientName")
    department: str
    status: str
    triage_level: str | None = Field(default=None, alias="triageLevel")
    admitted_at: datetime | None = Field(default=None, alias="admittedAt")
    bed_number: int | None = Field(default=None, alias="bedNumber")
    floor: int | None = None
    room: int | None = None


class DoctorSummary(BaseModel):
    id: str
    name: str
    specialty: str


class DepartmentLoad(BaseModel):
    count: int
    capacity: int

    @property
    def has_space(self) -> bool:
        return self.count < self.capacity


class ServiceRequestSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: str
    status: str
    department: str
    created_at: datetime | None = Field(default=None, alias="createdAt")


class InstrumentSetSummary(BaseModel):
    id: str
    name: str
    department: str
    status: str
    progress: float = 0.0


class HospitalSnapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    taken_at: datetime = Field(alias="takenAt")
    patients: list[PatientSummary] = Field(default_factory=list)
    doctors: list[DoctorSummary] = Field(default_factory=list)
    departments: dict[str, DepartmentLoad] = Field(default_factory=dict)
    service_requests: list[ServiceRequestSummary] = Field(default_factory=list, alias="serviceRequests")
    instrument_sets: list[InstrumentSetSummary] = Field(default_factory=list, alias="instrumentSets")
