from __future__ import annotations

from datetime import UTC, datetime

import pytest

from hospital_flow.application.dto.operations_dto import DoctorCreateRequest
from hospital_flow.application.dto.patient_dto import PatientCreateRequest
from hospital_flow.application.errors import NotFoundError
from hospital_flow.application.services.doctor_directory import DoctorDirectory
from hospital_flow.application.services.patient_registry import PatientRegistry
from hospital_flow.application.services.snapshot_store import DOCTORS_KEY
from hospital_flow.bootstrap.seed_data import default_doctors

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


def test_load_seeds_defaults_once(memory_store) -> None:
    directory = DoctorDirectory(store=memory_store, clock=lambda: NOW)
    assert directory.load(default_doctors) == 4
    assert len(memory_store.collections[DOCTORS_KEY]) == 4

    again = DoctorDirectory(store=memory_store)
    assert again.load(lambda: []) == 4


def test_increment_referral_counts_and_keeps_notes(memory_store) -> None:
    directory = DoctorDirectory(store=memory_store, clock=lambda: NOW)
    directory.load()
    doctor = directory.add(DoctorCreateRequest(name="Dr. Noor Saleh", specialty="Neurology", is_partner=True))

    directory.increment_referral(doctor.id, "First patient")
    updated = directory.increment_referral(doctor.id, "Second patient")

    assert updated.referral_count == 2
    assert updated.referral_notes == ["First patient", "Second patient"]
    assert memory_store.collections[DOCTORS_KEY][0]["referralCount"] == 2

    directory.reset_referrals()
    assert directory.get(doctor.id).referral_count == 0


def test_increment_unknown_doctor_raises() -> None:
    directory = DoctorDirectory()
    directory.load()
    with pytest.raises(NotFoundError):
        directory.increment_referral("doc-missing", "note")


def test_registry_uses_directory_for_referrals() -> None:
    directory = DoctorDirectory(clock=lambda: NOW)
    directory.load(default_doctors)
    registry = PatientRegistry(referrals=directory, clock=lambda: NOW)
    registry.load()

    registry.register(PatientCreateRequest(name="Maya", referring_doctor_id="doc-2"))

    doctor = directory.get("doc-2")
    assert doctor.referral_count == 1
    assert doctor.referral_notes == ["Maya referred on 2026-03-01"]
