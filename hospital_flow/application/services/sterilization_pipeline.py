from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable

from hospital_flow.application.dto.operations_dto import InstrumentSetResponse, SterilizationRequest
from hospital_flow.application.errors import NotFoundError
from hospital_flow.application.mappers import (
    instrument_from_payload,
    instrument_to_payload,
    instrument_to_response,
)
from hospital_flow.application.services.snapshot_store import INSTRUMENT_SETS_KEY, CollectionStore
from hospital_flow.domain.constants import (
    STERILIZATION_MAX_CYCLE_SECONDS,
    STERILIZATION_MIN_CYCLE_SECONDS,
    SterilizationStage,
)
from hospital_flow.domain.models.operations import InstrumentSet
from hospital_flow.domain.rules.sterilization_rules import (
    cycle_progress,
    is_cycle_complete,
    next_stage,
    validate_stage_transition,
)


class SterilizationPipeline:
    """Instrument turnaround: cleaning, packaging, sterilizing, storage.

    Times are epoch seconds. Progress is computed from the clock on every
    read, so a suspended process resumes with the right value.
    """

    def __init__(
        self,
        store: CollectionStore | None = None,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
        min_cycle_seconds: float = STERILIZATION_MIN_CYCLE_SECONDS,
        max_cycle_seconds: float = STERILIZATION_MAX_CYCLE_SECONDS,
    ) -> None:
        self.store = store
        self._clock = clock
        self._rng = rng or random.Random()
        self.min_cycle_seconds = min_cycle_seconds
        self.max_cycle_seconds = max_cycle_seconds
        self._sets: dict[str, InstrumentSet] = {}
        self._counter = 0

    def load(self, default_seed: Callable[[float], list[InstrumentSet]] | None = None) -> int:
        payload = self.store.read(INSTRUMENT_SETS_KEY) if self.store else None
        if payload is None:
            sets = default_seed(self._clock()) if default_seed else []
            self._sets = {s.id: s for s in sets}
            self._persist()
        else:
            self._sets = {s.id: s for s in (instrument_from_payload(item) for item in payload)}
        return len(self._sets)

    def _persist(self) -> None:
        if self.store is None:
            return
        self.store.write(INSTRUMENT_SETS_KEY, [instrument_to_payload(s) for s in self._sets.values()])

    def _draw_duration(self) -> float:
        return self._rng.uniform(self.min_cycle_seconds, self.max_cycle_seconds)

    def _require(self, set_id: str) -> InstrumentSet:
        item = self._sets.get(set_id)
        if item is None:
            raise NotFoundError(f"Instrument set {set_id} not found")
        return item

    def _response(self, item: InstrumentSet, now: float | None = None) -> InstrumentSetResponse:
        return instrument_to_response(item, self.progress(item, self._clock() if now is None else now))

    def request(self, request: SterilizationRequest) -> InstrumentSetResponse:
        now = self._clock()
        self._counter += 1
        item = InstrumentSet(
            id=f"set-{int(now * 1000)}-{self._counter}",
            name=request.description,
            department=request.department,
            stage=SterilizationStage.CLEANING,
            cycle_duration=request.cycle_duration or self._draw_duration(),
            created_at=now,
        )
        self._sets[item.id] = item
        self._persist()
        logging.getLogger(__name__).info("Instrument set %s queued for cleaning (%s)", item.id, item.department)
        return self._response(item, now)

    def get(self, set_id: str) -> InstrumentSetResponse:
        return self._response(self._require(set_id))

    def list_sets(self, stage: SterilizationStage | None = None) -> list[InstrumentSetResponse]:
        now = self._clock()
        return [
            self._response(item, now)
            for item in self._sets.values()
            if stage is None or item.stage == stage
        ]

    def progress(self, item: InstrumentSet | InstrumentSetResponse, now: float) -> float:
        return cycle_progress(item.stage, item.cycle_start, item.cycle_duration, now)

    def progress_of(self, set_id: str, now: float | None = None) -> float:
        return self.progress(self._require(set_id), self._clock() if now is None else now)

    def advance(self, set_id: str) -> SterilizationStage:
        item = self._require(set_id)
        target = next_stage(item.stage)
        if target == item.stage:
            return item.stage
        validate_stage_transition(item.stage, target)
        now = self._clock()
        if target == SterilizationStage.STERILIZING:
            item.cycle_start = now
            if item.cycle_duration <= 0:
                item.cycle_duration = self._draw_duration()
        elif target == SterilizationStage.STORAGE:
            item.completed_at = now
        item.stage = target
        self._persist()
        logging.getLogger(__name__).info("Instrument set %s moved to %s", item.id, target.value)
        return target

    def sweep_complete(self, now: float | None = None) -> list[InstrumentSetResponse]:
        """Move every finished sterilizing set to storage and return the moved sets."""
        moment = self._clock() if now is None else now
        completed: list[InstrumentSet] = []
        for item in self._sets.values():
            if is_cycle_complete(item.stage, item.cycle_start, item.cycle_duration, moment):
                item.stage = SterilizationStage.STORAGE
                item.completed_at = moment
                completed.append(item)
        if completed:
            self._persist()
            logging.getLogger(__name__).info("Sterilization sweep completed %d set(s)", len(completed))
        return [self._response(item, moment) for item in completed]
