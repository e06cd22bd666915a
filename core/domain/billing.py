from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Optional

from core.domain.approval import ApprovalWorkflow
from core.domain.enums import BillingStatus, PaymentMethod, RecordType
from core.domain.identifiers import generate_id


@dataclass(frozen=True)
class PartyInfo:
    id: str
    name: str
    tax_id: str = ""
    address: str = ""
    contact_name: str = ""
    contact_phone: str = ""
    contact_email: str = ""


@dataclass(frozen=True)
class LineItem:
    id: str
    source_item_id: str
    description: str
    unit: str
    quantity: float
    unit_price: float
    amount: float
    completion_percentage: float = 0.0
    previous_billed: float = 0.0
    current_billing: float = 0.0

    @staticmethod
    def create(
        source_item_id: str,
        description: str,
        *,
        unit: str = "lot",
        quantity: float = 1.0,
        unit_price: float = 0.0,
        amount: float | None = None,
        completion_percentage: float = 100.0,
        previous_billed: float = 0.0,
        current_billing: float | None = None,
    ) -> "LineItem":
        resolved_amount = unit_price * quantity if amount is None else amount
        return LineItem(
            id=generate_id(),
            source_item_id=source_item_id,
            description=description,
            unit=unit,
            quantity=quantity,
            unit_price=unit_price,
            amount=resolved_amount,
            completion_percentage=completion_percentage,
            previous_billed=previous_billed,
            current_billing=resolved_amount if current_billing is None else current_billing,
        )


@dataclass(frozen=True)
class InvoicingInfo:
    """Tax invoice issued by the contractor against a payable."""

    invoice_number: str
    invoice_date: date
    tax_id: str
    amount: float
    attachment_ids: tuple[str, ...] = ()


@dataclass
class BillingRecord:
    id: str
    project_id: str
    record_number: str
    record_type: RecordType
    contract_id: str
    billing_party: Optional[PartyInfo]
    paying_party: Optional[PartyInfo]
    due_date: datetime
    created_by: str
    acceptance_id: Optional[str] = None
    task_ids: frozenset[str] = field(default_factory=frozenset)
    line_items: list[LineItem] = field(default_factory=list)
    subtotal: float = 0.0
    tax: float = 0.0
    tax_rate: float = 0.0
    total: float = 0.0
    billing_percentage: float = 0.0
    status: BillingStatus = BillingStatus.DRAFT
    approval_workflow: ApprovalWorkflow = field(default_factory=ApprovalWorkflow)
    paid_date: Optional[datetime] = None
    paid_amount: Optional[float] = None
    payment_method: Optional[PaymentMethod] = None
    invoicing: Optional[InvoicingInfo] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    notes: Optional[str] = None
    attachment_ids: tuple[str, ...] = ()
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_by: Optional[str] = None
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = 1

    @property
    def is_receivable(self) -> bool:
        return self.record_type == RecordType.RECEIVABLE

    @property
    def is_payable(self) -> bool:
        return self.record_type == RecordType.PAYABLE

    @staticmethod
    def create(
        project_id: str,
        record_number: str,
        record_type: RecordType,
        contract_id: str,
        *,
        billing_party: PartyInfo,
        paying_party: PartyInfo,
        due_date: datetime,
        created_by: str,
        line_items: list[LineItem] | None = None,
        subtotal: float = 0.0,
        tax: float = 0.0,
        tax_rate: float = 0.0,
        billing_percentage: float = 0.0,
        acceptance_id: str | None = None,
        task_ids: frozenset[str] | set[str] | None = None,
        approval_workflow: ApprovalWorkflow | None = None,
        notes: str | None = None,
    ) -> "BillingRecord":
        now = datetime.now(timezone.utc)
        return BillingRecord(
            id=generate_id(),
            project_id=project_id,
            record_number=record_number,
            record_type=record_type,
            contract_id=contract_id,
            billing_party=billing_party,
            paying_party=paying_party,
            due_date=due_date,
            created_by=created_by,
            acceptance_id=acceptance_id,
            task_ids=frozenset(task_ids or ()),
            line_items=list(line_items or []),
            subtotal=subtotal,
            tax=tax,
            tax_rate=tax_rate,
            total=subtotal + tax,
            billing_percentage=billing_percentage,
            approval_workflow=approval_workflow or ApprovalWorkflow(),
            notes=notes,
            created_at=now,
            updated_at=now,
        )


__all__ = ["PartyInfo", "LineItem", "InvoicingInfo", "BillingRecord"]
