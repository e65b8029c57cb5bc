from __future__ import annotations

import logging

import httpx

from hospital_flow import __version__
from hospital_flow.application.dto.simulation_dto import HospitalSnapshot, SimulationAction
from hospital_flow.application.errors import OracleError
from hospital_flow.application.oracles.base import parse_action_batch


class HttpDecisionOracle:
    """Posts the hospital snapshot to a decision endpoint and parses the reply."""

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=min(timeout, 5.0)),
            headers={"User-Agent": f"hospital-flow/{__version__}"},
        )

    async def decide(self, snapshot: HospitalSnapshot) -> list[SimulationAction]:
        body = snapshot.model_dump(mode="json", by_alias=True)
        try:
            response = await self._client.post(self.url, json=body)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise OracleError(f"Decision endpoint answered {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise OracleError(f"Decision endpoint unreachable: {exc}") from exc
        except ValueError as exc:
            raise OracleError("Decision endpoint returned invalid JSON") from exc
        actions = parse_action_batch(payload)
        logging.getLogger(__name__).debug("Decision endpoint proposed %d action(s)", len(actions))
        return actions

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
