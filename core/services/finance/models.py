from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class BillingProgress:
    task_id: str
    total_billable: float
    billed_amount: float
    paid_amount: float
    billing_percentage: float
    collection_percentage: float


@dataclass(frozen=True)
class PaymentProgress:
    task_id: str
    total_payable: float
    approved_amount: float
    paid_amount: float
    approval_percentage: float
    payment_percentage: float


@dataclass(frozen=True)
class ReceivableSummary:
    total: float
    collected: float
    pending: float
    collection_rate: float


@dataclass(frozen=True)
class PayableSummary:
    total: float
    paid: float
    pending: float
    payment_rate: float


@dataclass(frozen=True)
class FinancialSummary:
    project_id: str
    receivables: ReceivableSummary
    payables: PayableSummary
    gross_profit: float
    gross_profit_margin: float
    as_of: datetime
    overdue_receivable: float
    overdue_invoice_count: int
    receivable_invoice_count: int
    paid_receivable_count: int
    monthly_billed: float
    monthly_received: float

    @property
    def total_billed(self) -> float:
        return self.receivables.total

    @property
    def total_received(self) -> float:
        return self.receivables.collected

    @property
    def accounts_receivable_balance(self) -> float:
        return self.receivables.pending

    @property
    def accounts_payable_balance(self) -> float:
        return self.payables.pending


@dataclass(frozen=True)
class OverdueSummary:
    project_id: str
    overdue_receivable_count: int
    overdue_receivable_amount: float
    overdue_payable_count: int
    overdue_payable_amount: float
    as_of: datetime


@dataclass(frozen=True)
class ContractorSummary:
    contractor_id: str
    contractor_name: str
    total_payable: float
    paid_amount: float
    pending_amount: float
    payment_count: int


__all__ = [
    "BillingProgress",
    "PaymentProgress",
    "ReceivableSummary",
    "PayableSummary",
    "FinancialSummary",
    "OverdueSummary",
    "ContractorSummary",
]
