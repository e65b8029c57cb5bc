from __future__ import annotations

import itertools
from datetime import timedelta

from hospital_flow.application.dto.simulation_dto import (
    AdmitToEmergencyAction,
    AdvanceServiceRequestAction,
    DepartmentLoad,
    DischargeAction,
    HospitalSnapshot,
    NoAction,
    PatientSummary,
    SimulationAction,
    TransferToIcuAction,
    TransferToWardAction,
)
from hospital_flow.domain.constants import Department, DischargeStatus, PatientStatus, TriageLevel

_WALK_IN_TRIAGE = (TriageLevel.STABLE, TriageLevel.URGENT, TriageLevel.CRITICAL, TriageLevel.MINOR)


def _has_space(load: DepartmentLoad | None) -> bool:
    return load is not None and load.has_space


class RuleBasedOracle:
    """Deterministic stand-in for the external decision source.

    Rules, in priority order: admit a walk-in while emergency has room, move a
    critical emergency patient to ICU, move a stable or urgent one to a ward,
    discharge the longest-admitted inpatient past the minimum stay, advance
    the oldest open service request. At most ``max_actions`` per tick.
    """

    def __init__(
        self,
        max_actions: int = 3,
        min_stay: timedelta = timedelta(minutes=5),
        admit_walk_ins: bool = True,
    ) -> None:
        self.max_actions = max_actions
        self.min_stay = min_stay
        self.admit_walk_ins = admit_walk_ins
        self._walk_ins = itertools.count(1)

    async def decide(self, snapshot: HospitalSnapshot) -> list[SimulationAction]:
        return self.plan(snapshot)

    def plan(self, snapshot: HospitalSnapshot) -> list[SimulationAction]:
        loads = snapshot.departments
        emergency = [
            p
            for p in snapshot.patients
            if p.department == Department.EMERGENCY and p.status != PatientStatus.DISCHARGED
        ]
        actions: list[SimulationAction] = []

        if self.admit_walk_ins and _has_space(loads.get(Department.EMERGENCY)):
            number = next(self._walk_ins)
            actions.append(
                AdmitToEmergencyAction(
                    details=f"Walk-in patient {number}",
                    triage_level=_WALK_IN_TRIAGE[(number - 1) % len(_WALK_IN_TRIAGE)].value,
                )
            )

        critical = self._first_with_triage(emergency, {TriageLevel.CRITICAL})
        if critical is not None and _has_space(loads.get(Department.ICU)):
            actions.append(TransferToIcuAction(patient_id=critical.id))

        ward_candidate = self._first_with_triage(emergency, {TriageLevel.STABLE, TriageLevel.URGENT})
        if ward_candidate is not None and _has_space(loads.get(Department.WARDS)):
            actions.append(TransferToWardAction(patient_id=ward_candidate.id))

        discharge = self._discharge_candidate(snapshot)
        if discharge is not None:
            actions.append(
                DischargeAction(patient_id=discharge.id, status=DischargeStatus.RECOVERED.value)
            )

        if snapshot.service_requests:
            oldest = min(
                snapshot.service_requests,
                key=lambda r: (r.created_at is None, r.created_at or snapshot.taken_at),
            )
            actions.append(AdvanceServiceRequestAction(request_id=oldest.id))

        if not actions:
            return [NoAction(details="Nothing to do this cycle")]
        return actions[: self.max_actions]

    @staticmethod
    def _first_with_triage(patients: list[PatientSummary], levels: set[TriageLevel]) -> PatientSummary | None:
        for patient in patients:
            if patient.triage_level in levels:
                return patient
        return None

    def _discharge_candidate(self, snapshot: HospitalSnapshot) -> PatientSummary | None:
        cutoff = snapshot.taken_at - self.min_stay
        inpatients = [
            p
            for p in snapshot.patients
            if p.department in (Department.ICU, Department.WARDS)
            and p.status == PatientStatus.ADMITTED
            and p.admitted_at is not None
            and p.admitted_at <= cutoff
        ]
        if not inpatients:
            return None
        return min(inpatients, key=lambda p: p.admitted_at)  # type: ignore[arg-type,return-value]
