from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from hospital_flow.application.dto.operations_dto import ServiceRequestCreateRequest
from hospital_flow.application.errors import NotFoundError
from hospital_flow.application.services.service_request_board import ServiceRequestBoard
from hospital_flow.application.services.snapshot_store import SERVICE_REQUESTS_KEY
from hospital_flow.bootstrap.seed_data import default_service_requests
from hospital_flow.domain.constants import ServiceRequestStatus, ServiceRequestType

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


def test_create_and_advance_forward_only() -> None:
    board = ServiceRequestBoard(clock=lambda: NOW)
    item = board.create(
        ServiceRequestCreateRequest(type=ServiceRequestType.CLEANING, description="Spill in OR 2", department="surgicalOperations")
    )
    assert item.status == ServiceRequestStatus.NEW

    assert board.advance(item.id).status == ServiceRequestStatus.IN_PROGRESS
    assert board.advance(item.id).status == ServiceRequestStatus.COMPLETED
    assert board.advance(item.id).status == ServiceRequestStatus.COMPLETED
    assert board.list_open() == []


def test_advance_without_id_takes_oldest_open(memory_store) -> None:
    board = ServiceRequestBoard(store=memory_store, clock=lambda: NOW)
    board.load(default_service_requests)

    advanced = board.advance()

    # svc-2 is the oldest open request (svc-4 is already completed).
    assert advanced.id == "svc-2"
    assert advanced.status == ServiceRequestStatus.COMPLETED
    stored = {item["id"]: item["status"] for item in memory_store.collections[SERVICE_REQUESTS_KEY]}
    assert stored["svc-2"] == "completed"


def test_list_open_is_oldest_first() -> None:
    board = ServiceRequestBoard(clock=lambda: NOW)
    board.load(default_service_requests)
    assert [r.id for r in board.list_open()] == ["svc-2", "svc-3", "svc-1"]
    assert len(board.list_requests(ServiceRequestStatus.COMPLETED)) == 1


def test_missing_request_and_empty_board() -> None:
    board = ServiceRequestBoard(clock=lambda: NOW)
    board.load()
    with pytest.raises(NotFoundError):
        board.advance("svc-missing")
    with pytest.raises(NotFoundError):
        board.advance()


def test_requests_survive_reload(memory_store) -> None:
    clock_value = [NOW]
    board = ServiceRequestBoard(store=memory_store, clock=lambda: clock_value[0])
    board.load()
    item = board.create(ServiceRequestCreateRequest(description="Lunch trays", type="catering"))
    clock_value[0] = NOW + timedelta(minutes=3)
    board.advance(item.id)

    reloaded = ServiceRequestBoard(store=memory_store)
    reloaded.load()
    restored = reloaded.get(item.id)
    assert restored.status == ServiceRequestStatus.IN_PROGRESS
    assert restored.created_at == NOW
    assert restored.updated_at == NOW + timedelta(minutes=3)
