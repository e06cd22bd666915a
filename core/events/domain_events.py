"""Billing domain events: lifecycle notifications and cache invalidation triggers."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from threading import RLock
from typing import Any, Callable

from core.domain.approval import Actor
from core.events.signal import Signal

logger = logging.getLogger(__name__)


class BillingEventType(str, Enum):
    INVOICE_SUBMITTED = "invoice.submitted"
    INVOICE_APPROVED = "invoice.approved"
    INVOICE_REJECTED = "invoice.rejected"
    INVOICE_PAID = "invoice.paid"
    PAYMENT_GENERATED = "payment.generated"
    PAYMENT_SUBMITTED = "payment.submitted"
    PAYMENT_APPROVED = "payment.approved"
    PAYMENT_REJECTED = "payment.rejected"
    PAYMENT_COMPLETED = "payment.completed"


@dataclass(frozen=True)
class BillingEvent:
    type: BillingEventType
    project_id: str
    actor: Actor
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


EventHandler = Callable[[BillingEvent], None]


class EventBus:
    """One Signal per event type; handlers receive the full BillingEvent."""

    def __init__(self) -> None:
        self._signals: dict[BillingEventType, Signal[BillingEvent]] = {}
        self._lock = RLock()

    def _signal(self, event_type: BillingEventType) -> Signal[BillingEvent]:
        event_type = BillingEventType(event_type)
        with self._lock:
            signal = self._signals.get(event_type)
            if signal is None:
                signal = Signal()
                self._signals[event_type] = signal
            return signal

    def subscribe(
        self,
        event_type: BillingEventType,
        handler: EventHandler,
        *,
        weak: bool = False,
    ) -> None:
        self._signal(event_type).connect(handler, weak=weak)

    def unsubscribe(self, event_type: BillingEventType, handler: EventHandler) -> None:
        self._signal(event_type).disconnect(handler)

    def receivers(self, event_type: BillingEventType) -> int:
        return self._signal(event_type).receivers()

    def publish(self, event: BillingEvent) -> None:
        logger.debug("Publishing %s for project %s", event.type.value, event.project_id)
        self._signal(event.type).emit(event)

    def emit(
        self,
        event_type: BillingEventType,
        project_id: str,
        actor: Actor,
        payload: dict[str, Any] | None = None,
    ) -> BillingEvent:
        event = BillingEvent(
            type=BillingEventType(event_type),
            project_id=project_id,
            actor=actor,
            payload=payload or {},
        )
        self.publish(event)
        return event


# SINGLE global instance
domain_events = EventBus()


__all__ = ["BillingEventType", "BillingEvent", "EventHandler", "EventBus", "domain_events"]
