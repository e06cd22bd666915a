from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from core.models import BillingRecord, PaymentMethod


@dataclass(frozen=True)
class BankInfo:
    bank_name: str
    account_number: str
    transaction_id: str


@dataclass(frozen=True)
class PaymentInfo:
    """One incoming payment against a payable; `amount` is this payment only."""

    amount: float
    method: PaymentMethod
    paid_date: Optional[datetime] = None
    reference: Optional[str] = None
    bank_info: Optional[BankInfo] = None


@dataclass(frozen=True)
class AcceptanceData:
    id: str
    project_id: str
    contract_id: str
    total_amount: float
    accepted_at: datetime
    task_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class ContractData:
    id: str
    project_id: str
    contract_number: str
    owner_id: str
    owner_name: str
    contractor_id: str
    contractor_name: str
    payment_term_days: int = 0
    contractor_rate: float = 1.0
    management_fee_rate: float = 0.0


@dataclass(frozen=True)
class GeneratePayableOptions:
    payment_percentage: float = 100.0
    tax_rate: Optional[float] = None
    due_date: Optional[datetime] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class BatchFailure:
    key: str
    code: str
    message: str


@dataclass
class BatchResult:
    succeeded: list[BillingRecord] = field(default_factory=list)
    failed: list[BatchFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


__all__ = [
    "BankInfo",
    "PaymentInfo",
    "AcceptanceData",
    "ContractData",
    "GeneratePayableOptions",
    "BatchFailure",
    "BatchResult",
]
