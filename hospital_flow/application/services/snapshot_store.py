from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any, Protocol

from hospital_flow.infrastructure.db.repositories.snapshot_repo import SnapshotRepository
from hospital_flow.infrastructure.db.session import session_scope

PATIENTS_KEY = "patients"
DOCTORS_KEY = "doctors"
INSTRUMENT_SETS_KEY = "instrument_sets"
SERVICE_REQUESTS_KEY = "service_requests"


class CollectionStore(Protocol):
    def read(self, key: str) -> list[dict[str, Any]] | None: ...

    def write(self, key: str, items: list[dict[str, Any]]) -> None: ...


class SnapshotStore:
    """Whole-collection persistence: every write replaces the stored list for a key."""

    def __init__(
        self,
        repo: SnapshotRepository | None = None,
        session_factory: Callable = session_scope,
    ) -> None:
        self.repo = repo or SnapshotRepository()
        self.session_factory = session_factory

    def read(self, key: str) -> list[dict[str, Any]] | None:
        with self.session_factory() as session:
            raw = self.repo.get_payload(session, key)
        if raw is None:
            return None
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError(f"Snapshot {key!r} is not a list")
        return data

    def write(self, key: str, items: list[dict[str, Any]]) -> None:
        payload = json.dumps(items, ensure_ascii=False, separators=(",", ":"))
        with self.session_factory() as session:
            self.repo.upsert(session, key, payload)
        logging.getLogger(__name__).debug("Stored snapshot %s (%d items)", key, len(items))
