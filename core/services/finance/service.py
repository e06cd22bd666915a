from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from core.events.domain_events import BillingEvent, BillingEventType, EventBus, domain_events
from core.interfaces import BillingRecordRepository
from core.models import BillingRecord
from core.services.finance.aggregation import (
    calculate_billing_progress,
    calculate_contractor_summary,
    calculate_financial_summary,
    calculate_overdue_summary,
    calculate_payment_progress,
)
from core.services.finance.cache import SummaryCache
from core.services.finance.models import (
    BillingProgress,
    ContractorSummary,
    FinancialSummary,
    OverdueSummary,
    PaymentProgress,
)

logger = logging.getLogger(__name__)

INVALIDATING_EVENTS = (
    BillingEventType.INVOICE_APPROVED,
    # receivable payments are recorded outside this package; published externally
    BillingEventType.INVOICE_PAID,
    BillingEventType.PAYMENT_APPROVED,
    BillingEventType.PAYMENT_COMPLETED,
)


class FinanceService:
    """Billing/payment progress read models with a per-project summary cache.

    The cache entry for a project is dropped whenever an approval or payment
    event for that project arrives on the event bus. Delivery is best effort,
    so a caller that needs a fresh figure should call `financial_summary`
    rather than `get_cached_summary`. The subscription is weak, so a service
    dropped without `close()` stops listening once collected.
    """

    def __init__(
        self,
        *,
        record_repo: BillingRecordRepository | None = None,
        cache: SummaryCache | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._record_repo = record_repo
        self._cache: SummaryCache = cache if cache is not None else SummaryCache()
        self._events: EventBus = event_bus or domain_events
        for event_type in INVALIDATING_EVENTS:
            self._events.subscribe(event_type, self._on_billing_event, weak=True)

    def close(self) -> None:
        for event_type in INVALIDATING_EVENTS:
            self._events.unsubscribe(event_type, self._on_billing_event)

    def _on_billing_event(self, event: BillingEvent) -> None:
        if self._cache.invalidate(event.project_id):
            logger.info(
                "Event %s received, cleared financial summary cache for project %s",
                event.type.value,
                event.project_id,
            )

    def billing_progress(
        self,
        records: Iterable[BillingRecord],
        task_id: str,
        total_billable: float,
    ) -> BillingProgress:
        return calculate_billing_progress(records, task_id, total_billable)

    def payment_progress(
        self,
        records: Iterable[BillingRecord],
        task_id: str,
        total_payable: float,
    ) -> PaymentProgress:
        return calculate_payment_progress(records, task_id, total_payable)

    def financial_summary(
        self,
        records: Iterable[BillingRecord],
        project_id: str,
        *,
        now: datetime | None = None,
    ) -> FinancialSummary:
        summary = calculate_financial_summary(records, project_id, now=now)
        self._cache.put(project_id, summary)
        return summary

    def overdue_summary(
        self,
        records: Iterable[BillingRecord],
        project_id: str,
        *,
        now: datetime | None = None,
    ) -> OverdueSummary:
        return calculate_overdue_summary(records, project_id, now=now)

    def contractor_summary(
        self,
        records: Iterable[BillingRecord],
        contractor_id: str,
    ) -> ContractorSummary:
        return calculate_contractor_summary(records, contractor_id)

    def project_financial_summary(self, project_id: str) -> FinancialSummary:
        cached = self._cache.get(project_id)
        if cached is not None:
            return cached
        if self._record_repo is None:
            raise RuntimeError("FinanceService was built without a record repository.")
        return self.financial_summary(self._record_repo.list_by_project(project_id), project_id)

    def get_cached_summary(self, project_id: str) -> Optional[FinancialSummary]:
        return self._cache.get(project_id)

    def clear_cache(self) -> None:
        self._cache.clear()

    def get_last_updated(self) -> Optional[datetime]:
        return self._cache.last_updated


__all__ = ["FinanceService", "INVALIDATING_EVENTS"]
