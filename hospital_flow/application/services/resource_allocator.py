from __future__ import annotations

import logging
from collections.abc import Callable

from hospital_flow.application.dto.simulation_dto import DepartmentLoad
from hospital_flow.application.errors import ConflictError, ValidationError
from hospital_flow.domain.constants import DEFAULT_EMERGENCY_CAPACITY, Department
from hospital_flow.domain.models.patient import SlotRef
from hospital_flow.domain.rules.slot_rules import iter_slots, slot_capacity, validate_slot


def _always_active(_patient_id: str) -> bool:
    return True


class ResourceAllocator:
    """Exclusive occupancy of ICU beds and ward rooms.

    Emergency has no slot pool, only an advisory headcount: intake above the
    capacity is recorded and logged but never refused.
    """

    def __init__(
        self,
        emergency_capacity: int = DEFAULT_EMERGENCY_CAPACITY,
        is_active: Callable[[str], bool] = _always_active,
    ) -> None:
        self.emergency_capacity = emergency_capacity
        self._is_active = is_active
        self._occupants: dict[SlotRef, str] = {}
        self._held: dict[str, SlotRef] = {}
        self._emergency: set[str] = set()

    def acquire(self, slot: SlotRef, patient_id: str) -> SlotRef:
        try:
            validate_slot(slot)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        occupant = self._occupants.get(slot)
        if occupant == patient_id:
            return slot
        if occupant is not None:
            if self._is_active(occupant):
                raise ConflictError(f"{slot.label} is occupied by patient {occupant}")
            logging.getLogger(__name__).warning(
                "Evicting inactive patient %s from %s", occupant, slot.label
            )
            self._held.pop(occupant, None)

        previous = self._held.get(patient_id)
        if previous is not None:
            self._occupants.pop(previous, None)
        self._emergency.discard(patient_id)
        self._occupants[slot] = patient_id
        self._held[patient_id] = slot
        return slot

    def release(self, slot: SlotRef) -> None:
        occupant = self._occupants.pop(slot, None)
        if occupant is not None and self._held.get(occupant) == slot:
            del self._held[occupant]

    def release_patient(self, patient_id: str) -> SlotRef | None:
        self._emergency.discard(patient_id)
        slot = self._held.get(patient_id)
        if slot is not None:
            self.release(slot)
        return slot

    def occupant(self, slot: SlotRef) -> str | None:
        return self._occupants.get(slot)

    def slot_of(self, patient_id: str) -> SlotRef | None:
        return self._held.get(patient_id)

    def find_free(self, department: Department) -> SlotRef | None:
        try:
            candidates = iter_slots(department)
            for slot in candidates:
                occupant = self._occupants.get(slot)
                if occupant is None or not self._is_active(occupant):
                    return slot
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        return None

    def occupied_count(self, department: Department) -> int:
        return sum(1 for slot in self._occupants if slot.department == department)

    def record_emergency(self, patient_id: str) -> bool:
        """Count a patient in emergency; returns False when that exceeds capacity."""
        previous = self._held.get(patient_id)
        if previous is not None:
            self.release(previous)
        self._emergency.add(patient_id)
        within = len(self._emergency) <= self.emergency_capacity
        if not within:
            logging.getLogger(__name__).warning(
                "Emergency over capacity: %d/%d", len(self._emergency), self.emergency_capacity
            )
        return within

    def department_load(self, department: Department) -> DepartmentLoad:
        if department == Department.EMERGENCY:
            return DepartmentLoad(count=len(self._emergency), capacity=self.emergency_capacity)
        try:
            capacity = slot_capacity(department)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        return DepartmentLoad(count=self.occupied_count(department), capacity=capacity)

    def reset(self) -> None:
        self._occupants.clear()
        self._held.clear()
        self._emergency.clear()
