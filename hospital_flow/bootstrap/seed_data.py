from __future__ import annotations

import random
from datetime import UTC, datetime, timedelta

from hospital_flow.domain.constants import (
    STERILIZATION_MAX_CYCLE_SECONDS,
    STERILIZATION_MIN_CYCLE_SECONDS,
    STERILIZATION_STAGE_ORDER,
    ServiceRequestStatus,
    ServiceRequestType,
    SterilizationStage,
)
from hospital_flow.domain.models.operations import Doctor, InstrumentSet, ServiceRequest
from hospital_flow.domain.models.patient import PatientRecord

INSTRUMENT_TYPES = (
    "General Surgery Tray",
    "Laparoscopy Set",
    "Orthopedic Set",
    "Dental Kit",
    "Cardiac Set",
)
INSTRUMENT_DEPARTMENTS = ("surgicalOperations", "icu", "emergency", "ent", "obGyn")
DEFAULT_INSTRUMENT_SET_COUNT = 15

DEFAULT_DOCTORS = (
    ("doc-1", "Dr. Amal Haddad", "Cardiology", True),
    ("doc-2", "Dr. Omar Nasser", "General Surgery", False),
    ("doc-3", "Dr. Lina Farouk", "Pediatrics", True),
    ("doc-4", "Dr. Yusuf Karim", "Internal Medicine", False),
)


def default_patients() -> list[PatientRecord]:
    return []


def default_doctors(now: datetime | None = None) -> list[Doctor]:
    created = now or datetime.now(UTC)
    return [
        Doctor(id=doc_id, name=name, specialty=specialty, created_at=created, is_partner=partner)
        for doc_id, name, specialty, partner in DEFAULT_DOCTORS
    ]


def default_instrument_sets(now: float, rng: random.Random | None = None) -> list[InstrumentSet]:
    """Spread the starter sets round-robin over the four stages.

    Sterilizing sets started sometime in the last half hour with a 15-30
    minute cycle, so some of them complete on the first sweep.
    """
    rng = rng or random.Random()
    sets: list[InstrumentSet] = []
    for i in range(DEFAULT_INSTRUMENT_SET_COUNT):
        stage = STERILIZATION_STAGE_ORDER[i % len(STERILIZATION_STAGE_ORDER)]
        duration = rng.uniform(STERILIZATION_MIN_CYCLE_SECONDS, STERILIZATION_MAX_CYCLE_SECONDS)
        item = InstrumentSet(
            id=f"set-{i + 1}",
            name=f"{INSTRUMENT_TYPES[i % len(INSTRUMENT_TYPES)]} #{i // len(INSTRUMENT_TYPES) + 1}",
            department=INSTRUMENT_DEPARTMENTS[i % len(INSTRUMENT_DEPARTMENTS)],
            stage=stage,
            cycle_duration=duration,
            created_at=now,
        )
        if stage == SterilizationStage.STERILIZING:
            item.cycle_start = now - rng.uniform(0, STERILIZATION_MAX_CYCLE_SECONDS)
        elif stage == SterilizationStage.STORAGE:
            item.completed_at = now
        sets.append(item)
    return sets


def default_service_requests(now: datetime) -> list[ServiceRequest]:
    return [
        ServiceRequest(
            id="svc-1",
            type=ServiceRequestType.MAINTENANCE,
            description="Leaking faucet in Room 302",
            department="icu",
            status=ServiceRequestStatus.NEW,
            created_at=now,
        ),
        ServiceRequest(
            id="svc-2",
            type=ServiceRequestType.CLEANING,
            description="Emergency cleanup in Operating Room 1",
            department="surgicalOperations",
            status=ServiceRequestStatus.IN_PROGRESS,
            created_at=now - timedelta(minutes=30),
        ),
        ServiceRequest(
            id="svc-3",
            type=ServiceRequestType.CATERING,
            description="Special dietary meal for patient in Ward B, Bed 5",
            department="internalMedicine",
            status=ServiceRequestStatus.NEW,
            created_at=now - timedelta(minutes=5),
        ),
        ServiceRequest(
            id="svc-4",
            type=ServiceRequestType.MAINTENANCE,
            description="AC unit not working in main lobby",
            department="reception",
            status=ServiceRequestStatus.COMPLETED,
            created_at=now - timedelta(hours=2),
        ),
    ]
