from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from pydantic import ValidationError as PydanticValidationError

from hospital_flow.application.dto.operations_dto import InstrumentSetResponse, ServiceRequestCreateRequest
from hospital_flow.application.dto.patient_dto import PatientCreateRequest
from hospital_flow.application.dto.simulation_dto import (
    AdmitToEmergencyAction,
    AdvanceServiceRequestAction,
    CreateServiceRequestAction,
    DischargeAction,
    DoctorSummary,
    HospitalSnapshot,
    InstrumentSetSummary,
    NoAction,
    PatientSummary,
    ServiceRequestSummary,
    SimulationAction,
    TransferToIcuAction,
    TransferToWardAction,
)
from hospital_flow.application.errors import AppError, OracleError, ValidationError
from hospital_flow.application.notifications import Notification, NotificationSink
from hospital_flow.application.oracles.base import DecisionOracle
from hospital_flow.application.services.doctor_directory import DoctorDirectory
from hospital_flow.application.services.patient_registry import PatientRegistry, parse_triage_level
from hospital_flow.application.services.service_request_board import ServiceRequestBoard
from hospital_flow.application.services.sterilization_pipeline import SterilizationPipeline
from hospital_flow.domain.constants import Department, ServiceRequestType


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class SkippedAction:
    action: str
    target: str | None
    reason: str


@dataclass(slots=True)
class TickReport:
    applied: list[str] = field(default_factory=list)
    skipped: list[SkippedAction] = field(default_factory=list)
    discarded: bool = False
    error: str | None = None

    @property
    def changed_state(self) -> bool:
        return bool(self.applied)


class Orchestrator:
    """Runs the decision loop and the sterilization sweep on one event loop.

    Oracle batches are advisory: every action is checked against the live
    registry right before it is applied, and a failing action is skipped
    without stopping the rest of the batch. Neither loop ends on an error;
    only ``toggle()`` pauses them.
    """

    def __init__(
        self,
        registry: PatientRegistry,
        sterilization: SterilizationPipeline,
        service_requests: ServiceRequestBoard,
        doctors: DoctorDirectory,
        oracle: DecisionOracle,
        notifier: NotificationSink,
        decision_interval: float = 10.0,
        sweep_interval: float = 2.0,
        oracle_timeout: float = 30.0,
        running: bool = True,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.registry = registry
        self.sterilization = sterilization
        self.service_requests = service_requests
        self.doctors = doctors
        self.oracle = oracle
        self.notifier = notifier
        self.decision_interval = decision_interval
        self.sweep_interval = sweep_interval
        self.oracle_timeout = oracle_timeout
        self._running = running
        self._clock = clock
        self._tasks: list[asyncio.Task] = []

    # -- state -----------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    def toggle(self) -> bool:
        self._running = not self._running
        logging.getLogger(__name__).info("Orchestrator %s", "running" if self._running else "stopped")
        return self._running

    # -- scheduling ------------------------------------------------------

    def start(self) -> None:
        """Schedule both loops on the running event loop (idempotent)."""
        if any(not task.done() for task in self._tasks):
            return
        self._tasks = [
            asyncio.create_task(self._decision_loop(), name="decision-loop"),
            asyncio.create_task(self._sweep_loop(), name="sweep-loop"),
        ]

    async def run_forever(self) -> None:
        self.start()
        try:
            await asyncio.gather(*self._tasks)
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        closer = getattr(self.oracle, "aclose", None)
        if closer is not None:
            await closer()

    async def _decision_loop(self) -> None:
        while True:
            await asyncio.sleep(self.decision_interval)
            if not self._running:
                continue
            try:
                await self.decision_tick()
            except Exception:
                logging.getLogger(__name__).exception("Decision tick failed")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            if not self._running:
                continue
            try:
                self.sweep_tick()
            except Exception:
                logging.getLogger(__name__).exception("Sterilization sweep failed")

    # -- snapshot --------------------------------------------------------

    def build_snapshot(self) -> HospitalSnapshot:
        patients = []
        for p in self.registry.list_patients():
            patients.append(
                PatientSummary(
                    id=p.id,
                    patient_name=p.name,
                    department=p.department.value,
                    status=p.status.value,
                    triage_level=p.triage_level.value if p.triage_level else None,
                    admitted_at=p.admitted_at,
                    bed_number=p.slot.bed_number if p.slot else None,
                    floor=p.slot.floor if p.slot else None,
                    room=p.slot.room if p.slot else None,
                )
            )
        return HospitalSnapshot(
            taken_at=self._clock(),
            patients=patients,
            doctors=[DoctorSummary(id=d.id, name=d.name, specialty=d.specialty) for d in self.doctors.list_doctors()],
            departments=self.registry.department_loads(),
            service_requests=[
                ServiceRequestSummary(
                    id=r.id,
                    type=r.type.value,
                    status=r.status.value,
                    department=r.department,
                    created_at=r.created_at,
                )
                for r in self.service_requests.list_open()
            ],
            instrument_sets=[
                InstrumentSetSummary(
                    id=s.id,
                    name=s.name,
                    department=s.department,
                    status=s.stage.value,
                    progress=s.progress,
                )
                for s in self.sterilization.list_sets()
            ],
        )

    # -- ticks -----------------------------------------------------------

    async def decision_tick(self) -> TickReport:
        report = TickReport()
        snapshot = self.build_snapshot()
        try:
            actions = await asyncio.wait_for(self.oracle.decide(snapshot), timeout=self.oracle_timeout)
        except TimeoutError:
            report.error = f"Decision oracle timed out after {self.oracle_timeout:g}s"
        except OracleError as exc:
            report.error = str(exc)
        except Exception as exc:
            logging.getLogger(__name__).exception("Decision oracle raised unexpectedly")
            report.error = f"Decision oracle failed: {type(exc).__name__}: {exc}"
        if report.error is not None:
            logging.getLogger(__name__).warning("Decision batch dropped: %s", report.error)
            self.notifier.notify(
                Notification(title="Decision oracle error", description=report.error, level="warning")
            )
            return report

        if not self._running:
            report.discarded = True
            logging.getLogger(__name__).info("Orchestrator stopped; discarding %d action(s)", len(actions))
            return report

        for action in actions:
            if isinstance(action, NoAction):
                continue
            target = getattr(action, "patient_id", None) or getattr(action, "request_id", None)
            try:
                notification = self._apply(action)
            except AppError as exc:
                report.skipped.append(SkippedAction(action=action.action, target=target, reason=str(exc)))
                logging.getLogger(__name__).warning("Skipped %s for %s: %s", action.action, target or "-", exc)
                self.notifier.notify(
                    Notification(
                        title="Action skipped",
                        description=f"{action.action}: {exc}",
                        level="info",
                        entity_type="action",
                        entity_id=target,
                    )
                )
                continue
            except Exception as exc:
                reason = str(exc) or type(exc).__name__
                report.skipped.append(SkippedAction(action=action.action, target=target, reason=reason))
                logging.getLogger(__name__).exception("Failed to apply %s for %s", action.action, target or "-")
                self.notifier.notify(
                    Notification(
                        title="Action failed",
                        description=f"{action.action}: {reason}",
                        level="error",
                        entity_type="action",
                        entity_id=target,
                    )
                )
                continue
            report.applied.append(notification.description)
            self.notifier.notify(notification)
        return report

    def sweep_tick(self) -> list[InstrumentSetResponse]:
        completed = self.sterilization.sweep_complete()
        for item in completed:
            self.notifier.notify(
                Notification(
                    title="Sterilization complete",
                    description=f"{item.name} ({item.department}) moved to storage",
                    level="success",
                    entity_type="instrument_set",
                    entity_id=item.id,
                )
            )
        return completed

    # -- actions ---------------------------------------------------------

    def _apply(self, action: SimulationAction) -> Notification:
        if isinstance(action, AdmitToEmergencyAction):
            return self._admit(action)
        if isinstance(action, TransferToIcuAction):
            patient = self.registry.transfer_to_icu(action.patient_id, action.bed)
            return self._patient_event("Patient transferred to ICU", patient.id, f"{patient.name} -> {patient.slot.label}")
        if isinstance(action, TransferToWardAction):
            patient = self.registry.transfer_to_ward(action.patient_id, action.floor, action.room)
            return self._patient_event("Patient transferred to ward", patient.id, f"{patient.name} -> {patient.slot.label}")
        if isinstance(action, DischargeAction):
            patient = self.registry.discharge(action.patient_id, action.status or action.details)
            return self._patient_event(
                "Patient discharged", patient.id, f"{patient.name} discharged ({patient.discharge_status})"
            )
        if isinstance(action, CreateServiceRequestAction):
            return self._create_service_request(action)
        if isinstance(action, AdvanceServiceRequestAction):
            item = self.service_requests.advance(action.request_id)
            return Notification(
                title="Service request updated",
                description=f"{item.type.value} request {item.id} is {item.status.value}",
                level="success",
                entity_type="service_request",
                entity_id=item.id,
            )
        raise ValidationError(f"Unsupported action {action.action}")

    def _admit(self, action: AdmitToEmergencyAction) -> Notification:
        triage = parse_triage_level(action.triage_level)
        patient_id = action.patient_id
        if not patient_id:
            name = action.details or "Walk-in patient"
            try:
                request = PatientCreateRequest(name=name, department=Department.EMERGENCY, triage_level=triage)
            except PydanticValidationError as exc:
                raise ValidationError(f"Invalid walk-in registration: {exc.error_count()} error(s)") from exc
            patient_id = self.registry.register(request).id
        patient = self.registry.admit_to_emergency(patient_id, triage)
        return self._patient_event(
            "Patient admitted to emergency",
            patient.id,
            f"{patient.name} ({patient.triage_level.value if patient.triage_level else 'untriaged'})",
        )

    def _create_service_request(self, action: CreateServiceRequestAction) -> Notification:
        raw_type = (action.request_type or ServiceRequestType.MAINTENANCE.value).strip().lower()
        try:
            request = ServiceRequestCreateRequest(
                type=raw_type,
                description=action.details or f"{raw_type} request",
                department=action.department or Department.RECEPTION.value,
            )
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid service request: {exc.error_count()} error(s)") from exc
        item = self.service_requests.create(request)
        return Notification(
            title="Service request created",
            description=f"{item.type.value} for {item.department}: {item.description}",
            level="success",
            entity_type="service_request",
            entity_id=item.id,
        )

    @staticmethod
    def _patient_event(title: str, patient_id: str, description: str) -> Notification:
        return Notification(
            title=title,
            description=description,
            level="success",
            entity_type="patient",
            entity_id=patient_id,
        )
