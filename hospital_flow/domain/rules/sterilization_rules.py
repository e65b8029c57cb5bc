from __future__ import annotations

from hospital_flow.domain.constants import STERILIZATION_STAGE_ORDER, SterilizationStage


def next_stage(stage: SterilizationStage) -> SterilizationStage:
    """Return the stage after ``stage``; Storage is terminal and maps to itself."""
    index = STERILIZATION_STAGE_ORDER.index(stage)
    if index == len(STERILIZATION_STAGE_ORDER) - 1:
        return stage
    return STERILIZATION_STAGE_ORDER[index + 1]


def validate_stage_transition(from_stage: SterilizationStage, to_stage: SterilizationStage) -> None:
    if from_stage == to_stage:
        return
    if STERILIZATION_STAGE_ORDER.index(to_stage) < STERILIZATION_STAGE_ORDER.index(from_stage):
        raise ValueError(f"Stage cannot move back from {from_stage} to {to_stage}")


def cycle_progress(
    stage: SterilizationStage,
    cycle_start: float | None,
    cycle_duration: float,
    now: float,
) -> float:
    """Percentage of the sterilization cycle elapsed at ``now``, clamped to [0, 100].

    Only meaningful while the set is sterilizing; any other stage reports 0.
    The value depends on the arguments alone, so sampling it never changes state.
    """
    if stage != SterilizationStage.STERILIZING or cycle_start is None:
        return 0.0
    if cycle_duration <= 0:
        return 100.0
    percent = 100.0 * (now - cycle_start) / cycle_duration
    return max(0.0, min(100.0, percent))


def is_cycle_complete(
    stage: SterilizationStage,
    cycle_start: float | None,
    cycle_duration: float,
    now: float,
) -> bool:
    if stage != SterilizationStage.STERILIZING or cycle_start is None:
        return False
    return now - cycle_start >= cycle_duration
