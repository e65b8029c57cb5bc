from __future__ import annotations

from typing import Any, Protocol

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from hospital_flow.application.dto.simulation_dto import ActionBatch, HospitalSnapshot, SimulationAction
from hospital_flow.application.errors import OracleError


class DecisionOracle(Protocol):
    async def decide(self, snapshot: HospitalSnapshot) -> list[SimulationAction]: ...


_ACTION_LIST = TypeAdapter(list[SimulationAction])


def parse_action_batch(payload: Any) -> list[SimulationAction]:
    """Accept ``{"actions": [...]}`` or a bare list; anything else is an OracleError."""
    try:
        if isinstance(payload, list):
            return _ACTION_LIST.validate_python(payload)
        if isinstance(payload, dict):
            return ActionBatch.model_validate(payload).actions
    except PydanticValidationError as exc:
        raise OracleError(f"Decision payload does not match the action schema: {exc.error_count()} error(s)") from exc
    raise OracleError(f"Unexpected decision payload type: {type(payload).__name__}")
