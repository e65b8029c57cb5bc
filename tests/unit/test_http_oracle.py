from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime

import httpx
import pytest

from hospital_flow.application.dto.simulation_dto import (
    DepartmentLoad,
    DischargeAction,
    HospitalSnapshot,
    PatientSummary,
)
from hospital_flow.application.errors import OracleError
from hospital_flow.infrastructure.oracle.http_oracle import HttpDecisionOracle

URL = "http://oracle.test/decide"


def _snapshot() -> HospitalSnapshot:
    return HospitalSnapshot(
        taken_at=datetime(2026, 3, 1, 12, 0, tzinfo=UTC),
        patients=[
            PatientSummary(id="pat-1", patient_name="Omar", department="icu", status="Admitted", bed_number=3)
        ],
        departments={"icu": DepartmentLoad(count=1, capacity=12)},
    )


def _decide(handler) -> list:
    async def _run() -> list:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            oracle = HttpDecisionOracle(URL, client=client)
            return await oracle.decide(_snapshot())

    return asyncio.run(_run())


def test_posts_camel_case_snapshot_and_parses_actions() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200, json={"actions": [{"action": "DISCHARGE_PATIENT", "patientId": "pat-1", "status": "recovered"}]}
        )

    actions = _decide(handler)

    assert seen["body"]["takenAt"].startswith("2026-03-01T12:00:00")
    assert seen["body"]["patients"][0]["patientName"] == "Omar"
    assert seen["body"]["patients"][0]["bedNumber"] == 3
    assert seen["body"]["departments"]["icu"] == {"count": 1, "capacity": 12}
    assert len(actions) == 1 and isinstance(actions[0], DischargeAction)


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, text="busy"),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json={"actions": [{"action": "UNKNOWN"}]}),
    ],
)
def test_bad_responses_raise_oracle_error(response: httpx.Response) -> None:
    with pytest.raises(OracleError):
        _decide(lambda request: response)


def test_transport_failure_raises_oracle_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(OracleError):
        _decide(handler)


def test_aclose_leaves_injected_client_open() -> None:
    async def _run() -> bool:
        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={}))) as client:
            oracle = HttpDecisionOracle(URL, client=client)
            await oracle.aclose()
            return client.is_closed

    assert asyncio.run(_run()) is False
