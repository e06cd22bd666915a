from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from sqlalchemy.orm import Session

from core.events.domain_events import EventBus, domain_events
from core.services.billing import BillingLifecycleService, PayableGenerationService
from core.services.finance import FinanceService, SummaryCache
from infra.db.billing import SqlAlchemyBillingRecordRepository
from infra.operational_support import bind_trace_id

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ServiceGraph:
    session: Session
    event_bus: EventBus
    record_repo: SqlAlchemyBillingRecordRepository
    lifecycle_service: BillingLifecycleService
    generation_service: PayableGenerationService
    finance_service: FinanceService

    def as_dict(self) -> dict[str, Any]:
        return {
            "session": self.session,
            "event_bus": self.event_bus,
            "record_repo": self.record_repo,
            "lifecycle_service": self.lifecycle_service,
            "generation_service": self.generation_service,
            "finance_service": self.finance_service,
        }

    def close(self) -> None:
        self.finance_service.close()


def build_service_graph(session: Session, event_bus: EventBus | None = None) -> ServiceGraph:
    bus = event_bus or domain_events
    record_repo = SqlAlchemyBillingRecordRepository(session)
    return ServiceGraph(
        session=session,
        event_bus=bus,
        record_repo=record_repo,
        lifecycle_service=BillingLifecycleService(session, record_repo, event_bus=bus),
        generation_service=PayableGenerationService(session, record_repo, event_bus=bus),
        finance_service=FinanceService(record_repo=record_repo, cache=SummaryCache(), event_bus=bus),
    )


def run_traced(func: Callable[..., T], *args: Any, trace_id: str | None = None, **kwargs: Any) -> T:
    """Call `func` with a trace id bound, so its log lines share one id."""
    with bind_trace_id(trace_id) as bound:
        logger.debug("Running %s under trace %s", getattr(func, "__name__", func), bound)
        return func(*args, **kwargs)


__all__ = ["ServiceGraph", "build_service_graph", "run_traced"]
