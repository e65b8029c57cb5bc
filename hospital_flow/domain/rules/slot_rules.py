from __future__ import annotations

from collections.abc import Iterator

from hospital_flow.domain.constants import (
    ICU_BED_COUNT,
    WARD_FLOOR_COUNT,
    WARD_ROOMS_PER_FLOOR,
    Department,
    DischargeStatus,
)
from hospital_flow.domain.models.patient import SlotRef


def validate_slot(slot: SlotRef) -> None:
    if slot.department == Department.ICU:
        if slot.bed_number is None or not 1 <= slot.bed_number <= ICU_BED_COUNT:
            raise ValueError(f"ICU bed must be between 1 and {ICU_BED_COUNT}")
        return
    if slot.department == Department.WARDS:
        if slot.floor is None or not 1 <= slot.floor <= WARD_FLOOR_COUNT:
            raise ValueError(f"Ward floor must be between 1 and {WARD_FLOOR_COUNT}")
        if slot.room is None or not 1 <= slot.room <= WARD_ROOMS_PER_FLOOR:
            raise ValueError(f"Ward room must be between 1 and {WARD_ROOMS_PER_FLOOR}")
        return
    raise ValueError(f"Department {slot.department} has no addressable slots")


def iter_slots(department: Department) -> Iterator[SlotRef]:
    """Walk a department's fixed identifier space in allocation order."""
    if department == Department.ICU:
        for bed in range(1, ICU_BED_COUNT + 1):
            yield SlotRef.icu(bed)
        return
    if department == Department.WARDS:
        for floor in range(1, WARD_FLOOR_COUNT + 1):
            for room in range(1, WARD_ROOMS_PER_FLOOR + 1):
                yield SlotRef.ward(floor, room)
        return
    raise ValueError(f"Department {department} has no addressable slots")


def slot_capacity(department: Department) -> int:
    if department == Department.ICU:
        return ICU_BED_COUNT
    if department == Department.WARDS:
        return WARD_FLOOR_COUNT * WARD_ROOMS_PER_FLOOR
    raise ValueError(f"Department {department} has no addressable slots")


def parse_discharge_status(raw: str | None) -> DischargeStatus:
    text = (raw or "").strip().lower()
    if not text:
        raise ValueError("Discharge outcome is required")
    for status in DischargeStatus:
        if text == status.value:
            return status
    # Free-text details such as "Patient recovered well".
    matches = [status for status in DischargeStatus if status.value in text]
    if len(matches) == 1:
        return matches[0]
    raise ValueError(f"Unknown discharge outcome: {raw}")
