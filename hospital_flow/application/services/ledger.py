from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from uuid import uuid4

from hospital_flow.application.dto.patient_dto import FinancialRecordCreateRequest, LedgerStatement
from hospital_flow.application.errors import ValidationError
from hospital_flow.application.mappers import record_to_response
from hospital_flow.domain.models.patient import FinancialRecord


def _utc_now() -> datetime:
    return datetime.now(UTC)


class Ledger:
    """Append-only financial records per patient.

    Records are frozen once appended; the balance is summed on demand so there
    is no cached total to fall out of date.
    """

    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        self._clock = clock
        self._records: dict[str, list[FinancialRecord]] = {}

    def load(self, patient_id: str, records: Iterable[FinancialRecord]) -> None:
        self._records[patient_id] = list(records)

    def append(self, patient_id: str, request: FinancialRecordCreateRequest) -> FinancialRecord:
        if request.amount == 0:
            raise ValidationError("Financial record amount must not be zero")
        record = FinancialRecord(
            id=f"fin-{uuid4().hex}",
            type=request.type,
            description=request.description,
            amount=request.amount,
            timestamp=self._clock(),
        )
        self._records.setdefault(patient_id, []).append(record)
        logging.getLogger(__name__).info(
            "Ledger %s: %s %+d (%s)", patient_id, record.type, record.amount, record.description
        )
        return record

    def records(self, patient_id: str) -> tuple[FinancialRecord, ...]:
        return tuple(self._records.get(patient_id, ()))

    def balance(self, patient_id: str) -> int:
        return sum(record.amount for record in self._records.get(patient_id, ()))

    def statement(self, patient_id: str) -> LedgerStatement:
        records = self._records.get(patient_id, [])
        charges = sum(r.amount for r in records if r.amount > 0)
        payments = sum(-r.amount for r in records if r.amount < 0)
        return LedgerStatement(
            patient_id=patient_id,
            total_charges=charges,
            total_payments=payments,
            balance=charges - payments,
            records=[record_to_response(r) for r in records],
        )
