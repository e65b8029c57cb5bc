from __future__ import annotations

import asyncio
import random
from datetime import UTC, datetime

from hospital_flow.application.dto.operations_dto import SterilizationRequest
from hospital_flow.application.dto.patient_dto import PatientCreateRequest
from hospital_flow.application.dto.simulation_dto import (
    AdmitToEmergencyAction,
    AdvanceServiceRequestAction,
    CreateServiceRequestAction,
    DischargeAction,
    HospitalSnapshot,
    NoAction,
    TransferToIcuAction,
    TransferToWardAction,
)
from hospital_flow.application.errors import OracleError
from hospital_flow.application.notifications import NotificationCenter
from hospital_flow.application.services.doctor_directory import DoctorDirectory
from hospital_flow.application.services.orchestrator import Orchestrator
from hospital_flow.application.services.patient_registry import PatientRegistry
from hospital_flow.application.services.service_request_board import ServiceRequestBoard
from hospital_flow.application.services.sterilization_pipeline import SterilizationPipeline
from hospital_flow.bootstrap.seed_data import default_doctors, default_service_requests
from hospital_flow.domain.constants import Department, PatientStatus, ServiceRequestStatus, TriageLevel
from hospital_flow.domain.models.patient import SlotRef

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class ScriptedOracle:
    def __init__(self, *batches) -> None:
        self.batches = list(batches)
        self.snapshots: list[HospitalSnapshot] = []

    async def decide(self, snapshot: HospitalSnapshot) -> list:
        self.snapshots.append(snapshot)
        return self.batches.pop(0) if self.batches else []


class SlowOracle:
    def __init__(self, delay: float) -> None:
        self.delay = delay
        self.calls = 0

    async def decide(self, snapshot: HospitalSnapshot) -> list:
        self.calls += 1
        await asyncio.sleep(self.delay)
        return [NoAction()]


class FailingOracle:
    async def decide(self, snapshot: HospitalSnapshot) -> list:
        raise OracleError("Decision endpoint answered 500")


class BrokenOracle:
    async def decide(self, snapshot: HospitalSnapshot) -> list:
        raise KeyError("choices")


class FlakyStore:
    """Holds collections in memory; the next write fails once `fail_next` is set."""

    def __init__(self) -> None:
        self.collections: dict[str, list[dict]] = {}
        self.fail_next = False

    def read(self, key: str) -> list[dict] | None:
        return self.collections.get(key)

    def write(self, key: str, items: list[dict]) -> None:
        if self.fail_next:
            self.fail_next = False
            raise RuntimeError("disk I/O error")
        self.collections[key] = [dict(item) for item in items]


class StoppingOracle:
    """Stops the orchestrator while the decision is in flight."""

    def __init__(self, batch: list) -> None:
        self.batch = batch
        self.orchestrator: Orchestrator | None = None

    async def decide(self, snapshot: HospitalSnapshot) -> list:
        assert self.orchestrator is not None
        self.orchestrator.toggle()
        await asyncio.sleep(0)
        return self.batch


class FakeClock:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _build(oracle, clock: FakeClock | None = None, store=None, **kwargs) -> Orchestrator:
    registry = PatientRegistry(store=store, clock=lambda: NOW)
    registry.load()
    pipeline = SterilizationPipeline(clock=clock or FakeClock(1_000.0), rng=random.Random(3))
    pipeline.load()
    board = ServiceRequestBoard(clock=lambda: NOW)
    board.load(default_service_requests)
    doctors = DoctorDirectory(clock=lambda: NOW)
    doctors.load(default_doctors)
    return Orchestrator(
        registry=registry,
        sterilization=pipeline,
        service_requests=board,
        doctors=doctors,
        oracle=oracle,
        notifier=NotificationCenter(),
        clock=lambda: NOW,
        **kwargs,
    )


def _emergency(orchestrator: Orchestrator, name: str = "P1", triage: str = "critical") -> str:
    return orchestrator.registry.register(
        PatientCreateRequest(name=name, department=Department.EMERGENCY, triage_level=triage)
    ).id


def _titles(orchestrator: Orchestrator) -> list[str]:
    return [n.title for n in reversed(orchestrator.notifier.recent())]


def test_stale_action_after_discharge_is_skipped() -> None:
    oracle = ScriptedOracle()
    orchestrator = _build(oracle)
    p1 = _emergency(orchestrator)
    oracle.batches.append(
        [
            DischargeAction(patient_id=p1, status="recovered"),
            TransferToIcuAction(patient_id=p1, bed=3),
        ]
    )

    report = asyncio.run(orchestrator.decision_tick())

    patient = orchestrator.registry.get(p1)
    assert patient.status == PatientStatus.DISCHARGED
    assert patient.discharge_status == "recovered"
    assert patient.department == Department.MEDICAL_RECORDS
    assert orchestrator.registry.allocator.occupant(SlotRef.icu(3)) is None
    assert len(report.applied) == 1
    assert [(s.action, s.target) for s in report.skipped] == [("TRANSFER_PATIENT_FROM_EMERGENCY_TO_ICU", p1)]
    assert _titles(orchestrator) == ["Patient discharged", "Action skipped"]


def test_oracle_timeout_drops_batch_with_one_notification() -> None:
    orchestrator = _build(SlowOracle(delay=1.0), oracle_timeout=0.01)
    p1 = _emergency(orchestrator)

    report = asyncio.run(orchestrator.decision_tick())

    assert report.error is not None and "timed out" in report.error
    assert not report.changed_state
    assert orchestrator.registry.get(p1).status == PatientStatus.WAITING
    notes = orchestrator.notifier.recent()
    assert len(notes) == 1
    assert notes[0].title == "Decision oracle error"
    assert notes[0].level == "warning"


def test_oracle_error_drops_batch() -> None:
    orchestrator = _build(FailingOracle())
    report = asyncio.run(orchestrator.decision_tick())
    assert report.error == "Decision endpoint answered 500"
    assert _titles(orchestrator) == ["Decision oracle error"]


def test_unexpected_oracle_exception_drops_batch() -> None:
    orchestrator = _build(BrokenOracle())
    p1 = _emergency(orchestrator)

    report = asyncio.run(orchestrator.decision_tick())

    assert report.error is not None and "KeyError" in report.error
    assert not report.changed_state
    assert orchestrator.registry.get(p1).status == PatientStatus.WAITING
    assert _titles(orchestrator) == ["Decision oracle error"]


def test_failed_write_skips_action_and_batch_continues() -> None:
    oracle = ScriptedOracle()
    store = FlakyStore()
    orchestrator = _build(oracle, store=store)
    p1 = _emergency(orchestrator, "P1")
    p2 = _emergency(orchestrator, "P2")
    oracle.batches.append(
        [
            DischargeAction(patient_id=p1, status="recovered"),
            TransferToIcuAction(patient_id=p2, bed=4),
        ]
    )
    store.fail_next = True

    report = asyncio.run(orchestrator.decision_tick())

    assert [(s.action, s.target) for s in report.skipped] == [("DISCHARGE_PATIENT", p1)]
    assert report.skipped[0].reason == "disk I/O error"
    assert len(report.applied) == 1
    assert orchestrator.registry.allocator.occupant(SlotRef.icu(4)) == p2
    assert _titles(orchestrator) == ["Action failed", "Patient transferred to ICU"]
    assert orchestrator.notifier.recent()[-1].level == "error"
    stored = {item["id"]: item["status"] for item in store.collections["patients"]}
    assert stored[p1] == PatientStatus.DISCHARGED.value
    assert stored[p2] == PatientStatus.ADMITTED.value


def test_decision_loop_keeps_ticking_after_timeouts() -> None:
    oracle = SlowOracle(delay=1.0)
    orchestrator = _build(oracle, decision_interval=0.01, sweep_interval=0.01, oracle_timeout=0.01)

    async def _run() -> None:
        orchestrator.start()
        await asyncio.sleep(0.2)
        await orchestrator.aclose()

    asyncio.run(_run())

    assert oracle.calls >= 2
    assert all(n.title == "Decision oracle error" for n in orchestrator.notifier.recent())


def test_result_arriving_after_stop_is_discarded() -> None:
    oracle = StoppingOracle([])
    orchestrator = _build(oracle)
    oracle.orchestrator = orchestrator
    p1 = _emergency(orchestrator)
    oracle.batch = [DischargeAction(patient_id=p1, status="recovered")]

    report = asyncio.run(orchestrator.decision_tick())

    assert report.discarded
    assert not orchestrator.running
    assert orchestrator.registry.get(p1).status == PatientStatus.WAITING
    assert orchestrator.notifier.recent() == []


def test_stopped_orchestrator_does_not_tick() -> None:
    oracle = SlowOracle(delay=0.0)
    orchestrator = _build(oracle, decision_interval=0.01, sweep_interval=0.01, running=False)

    async def _run() -> None:
        orchestrator.start()
        await asyncio.sleep(0.1)
        await orchestrator.aclose()

    asyncio.run(_run())

    assert oracle.calls == 0
    assert orchestrator.toggle() is True


def test_walk_in_admission_registers_new_patient() -> None:
    orchestrator = _build(
        ScriptedOracle([AdmitToEmergencyAction(details="Lina Aziz", triage_level="urgent"), NoAction()])
    )

    report = asyncio.run(orchestrator.decision_tick())

    (patient,) = orchestrator.registry.list_patients()
    assert patient.name == "Lina Aziz"
    assert patient.department == Department.EMERGENCY
    assert patient.triage_level == TriageLevel.URGENT
    assert len(report.applied) == 1
    assert _titles(orchestrator) == ["Patient admitted to emergency"]


def test_walk_in_with_unknown_triage_is_skipped_without_registration() -> None:
    orchestrator = _build(ScriptedOracle([AdmitToEmergencyAction(details="Ghost", triage_level="purple")]))

    report = asyncio.run(orchestrator.decision_tick())

    assert orchestrator.registry.list_patients() == []
    assert len(report.skipped) == 1


def test_transfers_and_discharge_from_details() -> None:
    oracle = ScriptedOracle()
    orchestrator = _build(oracle)
    a = _emergency(orchestrator, "A", "critical")
    b = _emergency(orchestrator, "B", "stable")
    oracle.batches.append(
        [
            TransferToIcuAction(patient_id=a),
            TransferToWardAction(patient_id=b, floor=4, room=2),
            DischargeAction(patient_id=a, details="Patient recovered and went home"),
        ]
    )

    report = asyncio.run(orchestrator.decision_tick())

    assert len(report.applied) == 3 and report.skipped == []
    assert orchestrator.registry.get(a).discharge_status == "recovered"
    ward = orchestrator.registry.get(b)
    assert ward.slot is not None and ward.slot.label == "ward room 402"
    assert orchestrator.registry.allocator.occupant(SlotRef.icu(1)) is None


def test_discharge_without_outcome_is_skipped() -> None:
    oracle = ScriptedOracle()
    orchestrator = _build(oracle)
    a = _emergency(orchestrator)
    oracle.batches.append([DischargeAction(patient_id=a)])

    report = asyncio.run(orchestrator.decision_tick())

    assert report.applied == []
    assert orchestrator.registry.get(a).status == PatientStatus.WAITING


def test_service_request_actions() -> None:
    orchestrator = _build(
        ScriptedOracle(
            [
                CreateServiceRequestAction(request_type="catering", department="icu", details="Night meals"),
                AdvanceServiceRequestAction(request_id="svc-1"),
                CreateServiceRequestAction(request_type="plumbing"),
            ]
        )
    )

    report = asyncio.run(orchestrator.decision_tick())

    assert len(report.applied) == 2 and len(report.skipped) == 1
    board = orchestrator.service_requests
    assert board.get("svc-1").status == ServiceRequestStatus.IN_PROGRESS
    assert any(r.description == "Night meals" for r in board.list_requests())


def test_snapshot_reflects_live_state() -> None:
    oracle = ScriptedOracle([])
    orchestrator = _build(oracle)
    a = _emergency(orchestrator)
    orchestrator.registry.transfer_to_icu(a, bed=2)
    orchestrator.sterilization.request(SterilizationRequest(description="Cardiac Set", department="icu"))

    asyncio.run(orchestrator.decision_tick())
    snapshot = oracle.snapshots[0]

    assert snapshot.taken_at == NOW
    assert snapshot.departments["icu"].count == 1
    assert snapshot.departments["emergency"].count == 0
    assert snapshot.patients[0].bed_number == 2
    assert len(snapshot.doctors) == 4
    assert {r.id for r in snapshot.service_requests} == {"svc-1", "svc-2", "svc-3"}
    assert snapshot.instrument_sets[0].status == "cleaning"


def test_sweep_tick_notifies_each_completed_set() -> None:
    clock = FakeClock(0.0)
    orchestrator = _build(ScriptedOracle(), clock=clock)
    pipeline = orchestrator.sterilization
    ids = []
    for name in ("Set A", "Set B"):
        item = pipeline.request(SterilizationRequest(description=name, department="icu", cycle_duration=900))
        pipeline.advance(item.id)
        pipeline.advance(item.id)
        ids.append(item.id)

    clock.now = 899.0
    assert orchestrator.sweep_tick() == []
    clock.now = 900.0
    completed = orchestrator.sweep_tick()

    assert sorted(c.id for c in completed) == sorted(ids)
    assert _titles(orchestrator) == ["Sterilization complete", "Sterilization complete"]
    assert orchestrator.sweep_tick() == []
