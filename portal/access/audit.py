"""Audit events emitted by customer-view (impersonation) transitions."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("portal.audit")

CUSTOMER_VIEW_ENTERED = "customer_view.entered"
CUSTOMER_VIEW_SITE_SWITCHED = "customer_view.site_switched"
CUSTOMER_VIEW_EXITED = "customer_view.exited"

COMPANY_LEVEL = "COMPANY_LEVEL"


@dataclass(frozen=True)
class AuditEvent:
    event_type: str
    customer_id: str
    timestamp: str
    fields: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "eventType": self.event_type,
            "customerId": self.customer_id,
            "timestamp": self.timestamp,
            **self.fields,
        }


AuditSink = Callable[[AuditEvent], None]


class LoggingAuditSink:
    """Writes each event to the ``portal.audit`` logger."""

    def __call__(self, event: AuditEvent) -> None:
        audit_logger.info("[AUDIT] %s %s", event.event_type, event.to_dict())


class RecordingAuditSink:
    """Keeps events in memory, newest last."""

    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    def __call__(self, event: AuditEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list[AuditEvent]:
        return [e for e in self.events if e.event_type == event_type]


class FanoutAuditSink:
    def __init__(self, *sinks: AuditSink) -> None:
        self._sinks = sinks

    def __call__(self, event: AuditEvent) -> None:
        for sink in self._sinks:
            emit(sink, event)


def emit(sink: AuditSink | None, event: AuditEvent) -> None:
    """Deliver an event. Sink failures are logged and never reach the caller."""
    if sink is None:
        return
    try:
        sink(event)
    except Exception:
        logger.exception("Audit sink failed event_type=%s customer_id=%s", event.event_type, event.customer_id)
