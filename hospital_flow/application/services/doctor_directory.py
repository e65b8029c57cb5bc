from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

from hospital_flow.application.dto.operations_dto import DoctorCreateRequest, DoctorResponse
from hospital_flow.application.errors import NotFoundError
from hospital_flow.application.mappers import doctor_from_payload, doctor_to_payload, doctor_to_response
from hospital_flow.application.services.snapshot_store import DOCTORS_KEY, CollectionStore
from hospital_flow.domain.models.operations import Doctor


def _utc_now() -> datetime:
    return datetime.now(UTC)


class DoctorDirectory:
    def __init__(
        self,
        store: CollectionStore | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.store = store
        self._clock = clock
        self._doctors: dict[str, Doctor] = {}

    def load(self, default_seed: Callable[[], list[Doctor]] | None = None) -> int:
        payload = self.store.read(DOCTORS_KEY) if self.store else None
        if payload is None:
            doctors = default_seed() if default_seed else []
            self._doctors = {d.id: d for d in doctors}
            self._persist()
        else:
            self._doctors = {d.id: d for d in (doctor_from_payload(item) for item in payload)}
        return len(self._doctors)

    def _persist(self) -> None:
        if self.store is None:
            return
        self.store.write(DOCTORS_KEY, [doctor_to_payload(d) for d in self._doctors.values()])

    def add(self, request: DoctorCreateRequest) -> DoctorResponse:
        doctor = Doctor(
            id=f"doc-{uuid4().hex[:12]}",
            name=request.name,
            specialty=request.specialty,
            created_at=self._clock(),
            is_partner=request.is_partner,
        )
        self._doctors[doctor.id] = doctor
        self._persist()
        return doctor_to_response(doctor)

    def get(self, doctor_id: str) -> DoctorResponse:
        doctor = self._doctors.get(doctor_id)
        if doctor is None:
            raise NotFoundError(f"Doctor {doctor_id} not found")
        return doctor_to_response(doctor)

    def list_doctors(self) -> list[DoctorResponse]:
        return [doctor_to_response(d) for d in self._doctors.values()]

    def increment_referral(self, doctor_id: str, note: str) -> DoctorResponse:
        doctor = self._doctors.get(doctor_id)
        if doctor is None:
            raise NotFoundError(f"Doctor {doctor_id} not found")
        doctor.referral_count += 1
        doctor.referral_notes.append(note)
        self._persist()
        logging.getLogger(__name__).info(
            "Referral recorded for doctor %s (total %d)", doctor_id, doctor.referral_count
        )
        return doctor_to_response(doctor)

    def reset_referrals(self) -> None:
        for doctor in self._doctors.values():
            doctor.referral_count = 0
            doctor.referral_notes = []
        self._persist()
