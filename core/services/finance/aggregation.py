"""Pure progress and summary calculations over one project's billing records.

None of these functions touch the cache or storage; `FinanceService` layers
caching on top of `calculate_financial_summary`.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Sequence

from core.models import BillingRecord, BillingStatus, RecordType
from core.services.finance.helpers import as_utc, money_sum, month_start, percentage
from core.services.finance.models import (
    BillingProgress,
    ContractorSummary,
    FinancialSummary,
    OverdueSummary,
    PayableSummary,
    PaymentProgress,
    ReceivableSummary,
)

APPROVED_OR_FURTHER = frozenset(
    {
        BillingStatus.APPROVED,
        BillingStatus.INVOICED,
        BillingStatus.PARTIAL_PAID,
        BillingStatus.PAID,
    }
)
COLLECTED_STATUSES = frozenset({BillingStatus.PAID, BillingStatus.PARTIAL_PAID})
SETTLED_STATUSES = frozenset({BillingStatus.PAID, BillingStatus.CANCELLED})


def _of_type(records: Iterable[BillingRecord], record_type: RecordType) -> list[BillingRecord]:
    return [r for r in records if r.record_type == record_type]


def _approved_total(records: Sequence[BillingRecord]) -> float:
    return money_sum(r.total for r in records if r.status in APPROVED_OR_FURTHER)


def _collected_total(records: Sequence[BillingRecord]) -> float:
    return money_sum(r.paid_amount or 0.0 for r in records if r.status in COLLECTED_STATUSES)


def is_overdue(record: BillingRecord, now: datetime) -> bool:
    return record.status not in SETTLED_STATUSES and as_utc(record.due_date) < now


def calculate_billing_progress(
    records: Iterable[BillingRecord],
    task_id: str,
    total_billable: float,
) -> BillingProgress:
    task_records = [r for r in _of_type(records, RecordType.RECEIVABLE) if task_id in r.task_ids]
    billed = _approved_total(task_records)
    paid = _collected_total(task_records)
    return BillingProgress(
        task_id=task_id,
        total_billable=total_billable,
        billed_amount=billed,
        paid_amount=paid,
        billing_percentage=percentage(billed, total_billable),
        collection_percentage=percentage(paid, billed),
    )


def calculate_payment_progress(
    records: Iterable[BillingRecord],
    task_id: str,
    total_payable: float,
) -> PaymentProgress:
    task_records = [r for r in _of_type(records, RecordType.PAYABLE) if task_id in r.task_ids]
    approved = _approved_total(task_records)
    paid = _collected_total(task_records)
    return PaymentProgress(
        task_id=task_id,
        total_payable=total_payable,
        approved_amount=approved,
        paid_amount=paid,
        approval_percentage=percentage(approved, total_payable),
        payment_percentage=percentage(paid, approved),
    )


def calculate_financial_summary(
    records: Iterable[BillingRecord],
    project_id: str,
    *,
    now: datetime | None = None,
) -> FinancialSummary:
    now = as_utc(now or datetime.now(timezone.utc))
    records = list(records)
    receivables = _of_type(records, RecordType.RECEIVABLE)
    payables = _of_type(records, RecordType.PAYABLE)

    receivable_total = _approved_total(receivables)
    collected = _collected_total(receivables)
    receivable_summary = ReceivableSummary(
        total=receivable_total,
        collected=collected,
        pending=receivable_total - collected,
        collection_rate=percentage(collected, receivable_total),
    )
    payable_total = _approved_total(payables)
    paid = _collected_total(payables)
    payable_summary = PayableSummary(
        total=payable_total,
        paid=paid,
        pending=payable_total - paid,
        payment_rate=percentage(paid, payable_total),
    )

    gross_profit = collected - paid
    overdue = [r for r in receivables if is_overdue(r, now)]
    first_of_month = month_start(now)
    billed_this_month = [r for r in receivables if first_of_month <= as_utc(r.created_at) < now]
    received_this_month = [
        r for r in receivables if r.paid_date is not None and first_of_month <= as_utc(r.paid_date) < now
    ]

    return FinancialSummary(
        project_id=project_id,
        receivables=receivable_summary,
        payables=payable_summary,
        gross_profit=gross_profit,
        gross_profit_margin=percentage(gross_profit, collected),
        as_of=now,
        overdue_receivable=money_sum(r.total for r in overdue),
        overdue_invoice_count=len(overdue),
        receivable_invoice_count=len(receivables),
        paid_receivable_count=sum(1 for r in receivables if r.status == BillingStatus.PAID),
        monthly_billed=money_sum(r.total for r in billed_this_month),
        monthly_received=money_sum(r.paid_amount or 0.0 for r in received_this_month),
    )


def calculate_overdue_summary(
    records: Iterable[BillingRecord],
    project_id: str,
    *,
    now: datetime | None = None,
) -> OverdueSummary:
    now = as_utc(now or datetime.now(timezone.utc))
    records = list(records)
    overdue_receivables = [r for r in _of_type(records, RecordType.RECEIVABLE) if is_overdue(r, now)]
    overdue_payables = [r for r in _of_type(records, RecordType.PAYABLE) if is_overdue(r, now)]
    return OverdueSummary(
        project_id=project_id,
        overdue_receivable_count=len(overdue_receivables),
        overdue_receivable_amount=money_sum(r.total for r in overdue_receivables),
        overdue_payable_count=len(overdue_payables),
        overdue_payable_amount=money_sum(r.total for r in overdue_payables),
        as_of=now,
    )


def calculate_contractor_summary(
    records: Iterable[BillingRecord],
    contractor_id: str,
) -> ContractorSummary:
    payments = [
        r
        for r in _of_type(records, RecordType.PAYABLE)
        if r.paying_party is not None and r.paying_party.id == contractor_id
    ]
    total_payable = money_sum(r.total for r in payments)
    # Only fully paid records count here, falling back to the record total.
    paid = money_sum(
        r.total if r.paid_amount is None else r.paid_amount
        for r in payments
        if r.status == BillingStatus.PAID
    )
    return ContractorSummary(
        contractor_id=contractor_id,
        contractor_name=payments[0].paying_party.name if payments else "",
        total_payable=total_payable,
        paid_amount=paid,
        pending_amount=total_payable - paid,
        payment_count=len(payments),
    )


__all__ = [
    "APPROVED_OR_FURTHER",
    "COLLECTED_STATUSES",
    "is_overdue",
    "calculate_billing_progress",
    "calculate_payment_progress",
    "calculate_financial_summary",
    "calculate_overdue_summary",
    "calculate_contractor_summary",
]
