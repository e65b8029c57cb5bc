from __future__ import annotations

from dataclasses import dataclass

from hospital_flow.application.notifications import (
    AuditNotificationSink,
    LoggingNotificationSink,
    NotificationCenter,
)
from hospital_flow.application.oracles.base import DecisionOracle
from hospital_flow.application.oracles.rule_based import RuleBasedOracle
from hospital_flow.application.services.doctor_directory import DoctorDirectory
from hospital_flow.application.services.orchestrator import Orchestrator
from hospital_flow.application.services.patient_registry import PatientRegistry
from hospital_flow.application.services.service_request_board import ServiceRequestBoard
from hospital_flow.application.services.snapshot_store import SnapshotStore
from hospital_flow.application.services.sterilization_pipeline import SterilizationPipeline
from hospital_flow.config import Settings, settings as default_settings
from hospital_flow.infrastructure.db.repositories.audit_repo import AuditLogRepository
from hospital_flow.infrastructure.db.repositories.snapshot_repo import SnapshotRepository
from hospital_flow.infrastructure.db.session import SessionFactory, session_scope
from hospital_flow.infrastructure.oracle.http_oracle import HttpDecisionOracle


@dataclass
class Container:
    snapshot_repo: SnapshotRepository
    audit_repo: AuditLogRepository
    snapshot_store: SnapshotStore

    notification_center: NotificationCenter
    doctor_directory: DoctorDirectory
    patient_registry: PatientRegistry
    sterilization_pipeline: SterilizationPipeline
    service_request_board: ServiceRequestBoard
    oracle: DecisionOracle
    orchestrator: Orchestrator


def build_oracle(config: Settings) -> DecisionOracle:
    if config.oracle_url:
        return HttpDecisionOracle(config.oracle_url, timeout=config.oracle_timeout_seconds)
    return RuleBasedOracle()


def build_container(
    config: Settings | None = None,
    session_factory: SessionFactory = session_scope,
    oracle: DecisionOracle | None = None,
) -> Container:
    config = config or default_settings
    snapshot_repo = SnapshotRepository()
    audit_repo = AuditLogRepository()
    snapshot_store = SnapshotStore(repo=snapshot_repo, session_factory=session_factory)

    notification_center = NotificationCenter(
        sinks=[
            LoggingNotificationSink(),
            AuditNotificationSink(audit_repo=audit_repo, session_factory=session_factory),
        ]
    )
    doctor_directory = DoctorDirectory(store=snapshot_store)
    patient_registry = PatientRegistry(
        store=snapshot_store,
        referrals=doctor_directory,
        emergency_capacity=config.emergency_capacity,
    )
    sterilization_pipeline = SterilizationPipeline(store=snapshot_store)
    service_request_board = ServiceRequestBoard(store=snapshot_store)
    oracle = oracle or build_oracle(config)
    orchestrator = Orchestrator(
        registry=patient_registry,
        sterilization=sterilization_pipeline,
        service_requests=service_request_board,
        doctors=doctor_directory,
        oracle=oracle,
        notifier=notification_center,
        decision_interval=config.decision_interval_seconds,
        sweep_interval=config.sweep_interval_seconds,
        oracle_timeout=config.oracle_timeout_seconds,
        running=config.autostart,
    )

    return Container(
        snapshot_repo=snapshot_repo,
        audit_repo=audit_repo,
        snapshot_store=snapshot_store,
        notification_center=notification_center,
        doctor_directory=doctor_directory,
        patient_registry=patient_registry,
        sterilization_pipeline=sterilization_pipeline,
        service_request_board=service_request_board,
        oracle=oracle,
        orchestrator=orchestrator,
    )
