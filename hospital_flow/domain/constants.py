from __future__ import annotations

from enum import StrEnum

ICU_BED_COUNT = 12
WARD_FLOOR_COUNT = 20
WARD_ROOMS_PER_FLOOR = 10
DEFAULT_EMERGENCY_CAPACITY = 50

ICU_ADMISSION_FEE = 150_000
WARD_ADMISSION_FEE = 150_000

STERILIZATION_MIN_CYCLE_SECONDS = 15 * 60
STERILIZATION_MAX_CYCLE_SECONDS = 30 * 60


class Department(StrEnum):
    RECEPTION = "reception"
    EMERGENCY = "emergency"
    ICU = "icu"
    WARDS = "wards"
    SURGICAL_OPERATIONS = "surgicalOperations"
    INTERNAL_MEDICINE = "internalMedicine"
    GENERAL_SURGERY = "generalSurgery"
    OB_GYN = "obGyn"
    PEDIATRICS = "pediatrics"
    ORTHOPEDICS = "orthopedics"
    UROLOGY = "urology"
    ENT = "ent"
    OPHTHALMOLOGY = "ophthalmology"
    DERMATOLOGY = "dermatology"
    CARDIOLOGY = "cardiology"
    NEUROLOGY = "neurology"
    ONCOLOGY = "oncology"
    NEPHROLOGY = "nephrology"
    LABORATORIES = "laboratories"
    PHARMACY = "pharmacy"
    RADIOLOGY = "radiology"
    STERILIZATION = "sterilization"
    SERVICES = "services"
    MEDICAL_RECORDS = "medicalRecords"

    @classmethod
    def values(cls) -> list[str]:
        return [item.value for item in cls]


ARCHIVE_DEPARTMENT = Department.MEDICAL_RECORDS


class PatientStatus(StrEnum):
    WAITING = "Waiting"
    IN_TREATMENT = "In Treatment"
    OBSERVATION = "Observation"
    ADMITTED = "Admitted"
    DISCHARGED = "Discharged"

    @classmethod
    def values(cls) -> list[str]:
        return [item.value for item in cls]


# Statuses reachable through plain field edits; the rest belong to admit/transfer/discharge.
EDITABLE_STATUSES = frozenset({PatientStatus.WAITING, PatientStatus.IN_TREATMENT, PatientStatus.OBSERVATION})


class TriageLevel(StrEnum):
    MINOR = "minor"
    STABLE = "stable"
    URGENT = "urgent"
    CRITICAL = "critical"

    @classmethod
    def values(cls) -> list[str]:
        return [item.value for item in cls]


class DischargeStatus(StrEnum):
    RECOVERED = "recovered"
    DECEASED = "deceased"

    @classmethod
    def values(cls) -> list[str]:
        return [item.value for item in cls]


class SterilizationStage(StrEnum):
    CLEANING = "cleaning"
    PACKAGING = "packaging"
    STERILIZING = "sterilizing"
    STORAGE = "storage"

    @classmethod
    def values(cls) -> list[str]:
        return [item.value for item in cls]


STERILIZATION_STAGE_ORDER: tuple[SterilizationStage, ...] = (
    SterilizationStage.CLEANING,
    SterilizationStage.PACKAGING,
    SterilizationStage.STERILIZING,
    SterilizationStage.STORAGE,
)


class ServiceRequestType(StrEnum):
    MAINTENANCE = "maintenance"
    CLEANING = "cleaning"
    CATERING = "catering"

    @classmethod
    def values(cls) -> list[str]:
        return [item.value for item in cls]


class ServiceRequestStatus(StrEnum):
    NEW = "new"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    @classmethod
    def values(cls) -> list[str]:
        return [item.value for item in cls]


SERVICE_REQUEST_STATUS_ORDER: tuple[ServiceRequestStatus, ...] = (
    ServiceRequestStatus.NEW,
    ServiceRequestStatus.IN_PROGRESS,
    ServiceRequestStatus.COMPLETED,
)


class FinancialRecordType(StrEnum):
    INPATIENT = "inpatient"
    LABORATORY = "laboratory"
    RADIOLOGY = "radiology"
    PHARMACY = "pharmacy"
    PAYMENT = "payment"
    OTHER = "other"

    @classmethod
    def values(cls) -> list[str]:
        return [item.value for item in cls]
