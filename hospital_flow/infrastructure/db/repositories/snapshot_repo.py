from __future__ import annotations

from typing import cast

from sqlalchemy.orm import Session

from hospital_flow.infrastructure.db.models_sqlalchemy import CollectionSnapshot, utc_now


class SnapshotRepository:
    def get_payload(self, session: Session, key: str) -> str | None:
        row = session.get(CollectionSnapshot, key)
        if row is None:
            return None
        return cast(str, row.payload_json)

    def upsert(self, session: Session, key: str, payload_json: str) -> CollectionSnapshot:
        row = session.get(CollectionSnapshot, key)
        if row is None:
            row = CollectionSnapshot(key=key, payload_json=payload_json)
            session.add(row)
        else:
            row.payload_json = payload_json  # type: ignore[assignment]
            row.updated_at = utc_now()  # type: ignore[assignment]
        session.flush()
        return row
