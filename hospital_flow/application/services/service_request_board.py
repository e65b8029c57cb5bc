from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

from hospital_flow.application.dto.operations_dto import ServiceRequestCreateRequest, ServiceRequestResponse
from hospital_flow.application.errors import NotFoundError
from hospital_flow.application.mappers import (
    service_request_from_payload,
    service_request_to_payload,
    service_request_to_response,
)
from hospital_flow.application.services.snapshot_store import SERVICE_REQUESTS_KEY, CollectionStore
from hospital_flow.domain.constants import SERVICE_REQUEST_STATUS_ORDER, ServiceRequestStatus
from hospital_flow.domain.models.operations import ServiceRequest


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ServiceRequestBoard:
    def __init__(
        self,
        store: CollectionStore | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.store = store
        self._clock = clock
        self._requests: dict[str, ServiceRequest] = {}

    def load(self, default_seed: Callable[[datetime], list[ServiceRequest]] | None = None) -> int:
        payload = self.store.read(SERVICE_REQUESTS_KEY) if self.store else None
        if payload is None:
            requests = default_seed(self._clock()) if default_seed else []
            self._requests = {r.id: r for r in requests}
            self._persist()
        else:
            self._requests = {r.id: r for r in (service_request_from_payload(item) for item in payload)}
        return len(self._requests)

    def _persist(self) -> None:
        if self.store is None:
            return
        self.store.write(SERVICE_REQUESTS_KEY, [service_request_to_payload(r) for r in self._requests.values()])

    def create(self, request: ServiceRequestCreateRequest) -> ServiceRequestResponse:
        item = ServiceRequest(
            id=f"svc-{uuid4().hex[:12]}",
            type=request.type,
            description=request.description,
            department=request.department,
            status=ServiceRequestStatus.NEW,
            created_at=self._clock(),
        )
        self._requests[item.id] = item
        self._persist()
        logging.getLogger(__name__).info("Service request %s created (%s)", item.id, item.type.value)
        return service_request_to_response(item)

    def get(self, request_id: str) -> ServiceRequestResponse:
        item = self._requests.get(request_id)
        if item is None:
            raise NotFoundError(f"Service request {request_id} not found")
        return service_request_to_response(item)

    def list_requests(self, status: ServiceRequestStatus | None = None) -> list[ServiceRequestResponse]:
        return [
            service_request_to_response(item)
            for item in self._requests.values()
            if status is None or item.status == status
        ]

    def list_open(self) -> list[ServiceRequestResponse]:
        items = sorted(
            (r for r in self._requests.values() if r.status != ServiceRequestStatus.COMPLETED),
            key=lambda r: r.created_at,
        )
        return [service_request_to_response(item) for item in items]

    def advance(self, request_id: str | None = None) -> ServiceRequestResponse:
        """Move a request one status forward; without an id, the oldest open request."""
        if request_id:
            item = self._requests.get(request_id)
            if item is None:
                raise NotFoundError(f"Service request {request_id} not found")
        else:
            open_items = self.list_open()
            if not open_items:
                raise NotFoundError("No open service request to advance")
            item = self._requests[open_items[0].id]

        index = SERVICE_REQUEST_STATUS_ORDER.index(item.status)
        if index == len(SERVICE_REQUEST_STATUS_ORDER) - 1:
            return service_request_to_response(item)
        item.status = SERVICE_REQUEST_STATUS_ORDER[index + 1]
        item.updated_at = self._clock()
        self._persist()
        logging.getLogger(__name__).info("Service request %s is now %s", item.id, item.status.value)
        return service_request_to_response(item)
