from __future__ import annotations

import json
import logging
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal, Protocol

from hospital_flow.infrastructure.db.repositories.audit_repo import AuditLogRepository
from hospital_flow.infrastructure.db.session import session_scope

NotificationLevel = Literal["success", "info", "warning", "error"]


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class Notification:
    title: str
    description: str
    level: NotificationLevel = "info"
    entity_type: str | None = None
    entity_id: str | None = None
    created_at: datetime = field(default_factory=_utc_now)


class NotificationSink(Protocol):
    def notify(self, notification: Notification) -> None: ...


class LoggingNotificationSink:
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(__name__)

    def notify(self, notification: Notification) -> None:
        if notification.level == "error":
            self.logger.error("%s: %s", notification.title, notification.description)
        elif notification.level == "warning":
            self.logger.warning("%s: %s", notification.title, notification.description)
        else:
            self.logger.info("%s: %s", notification.title, notification.description)


class AuditNotificationSink:
    """Persist every notification into the audit log."""

    def __init__(
        self,
        audit_repo: AuditLogRepository | None = None,
        session_factory: Callable = session_scope,
    ) -> None:
        self.audit_repo = audit_repo or AuditLogRepository()
        self.session_factory = session_factory

    def notify(self, notification: Notification) -> None:
        with self.session_factory() as session:
            self.audit_repo.add_event(
                session,
                entity_type=notification.entity_type or "system",
                entity_id=notification.entity_id or "-",
                action=notification.title,
                payload_json=json.dumps(
                    {"description": notification.description, "level": notification.level},
                    ensure_ascii=False,
                ),
            )


class NotificationCenter:
    """Fan notifications out to sinks and remember the most recent ones.

    Delivery is fire-and-forget: a failing sink is logged and skipped, the
    caller never sees its exception.
    """

    def __init__(self, sinks: Iterable[NotificationSink] = (), history_size: int = 100) -> None:
        self._sinks: list[NotificationSink] = list(sinks)
        self._history: deque[Notification] = deque(maxlen=history_size)

    def add_sink(self, sink: NotificationSink) -> None:
        self._sinks.append(sink)

    def notify(self, notification: Notification) -> None:
        self._history.appendleft(notification)
        for sink in self._sinks:
            try:
                sink.notify(notification)
            except Exception:  # noqa: BLE001
                logging.getLogger(__name__).warning(
                    "Notification sink %s failed", type(sink).__name__, exc_info=True
                )

    def recent(self, limit: int | None = None) -> list[Notification]:
        items = list(self._history)
        return items if limit is None else items[:limit]

    def clear(self) -> None:
        self._history.clear()
