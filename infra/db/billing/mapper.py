from __future__ import annotations

import json
from dataclasses import asdict
from datetime import date, datetime, timezone
from typing import Any, Optional

from core.models import (
    ApprovalAction,
    ApprovalHistoryEntry,
    ApprovalWorkflow,
    Approver,
    ApproverStatus,
    BillingRecord,
    BillingStatus,
    InvoicingInfo,
    LineItem,
    PartyInfo,
    PaymentMethod,
    RecordType,
    RosterMode,
)
from infra.db.models import BillingRecordORM


def _to_json(payload: Any) -> str:
    return json.dumps(payload, default=str, ensure_ascii=False)


def _from_json(raw: str | None, default: Any) -> Any:
    if not raw:
        return default
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return default
    return value if isinstance(value, type(default)) else default


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _stored(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc)


def _dt(raw: str | None) -> Optional[datetime]:
    return _utc(datetime.fromisoformat(raw)) if raw else None


def _party_to_json(party: Optional[PartyInfo]) -> Optional[str]:
    return _to_json(asdict(party)) if party is not None else None


def _party_from_json(raw: str | None) -> Optional[PartyInfo]:
    data = _from_json(raw, {})
    return PartyInfo(**data) if data else None


def _approver_to_dict(approver: Approver) -> dict[str, Any]:
    return {
        "step_number": approver.step_number,
        "user_id": approver.user_id,
        "user_name": approver.user_name,
        "role": approver.role,
        "status": approver.status.value,
        "approved_at": approver.approved_at.isoformat() if approver.approved_at else None,
        "comments": approver.comments,
    }


def _approver_from_dict(data: dict[str, Any]) -> Approver:
    return Approver(
        step_number=int(data["step_number"]),
        user_id=data["user_id"],
        user_name=data.get("user_name", ""),
        role=data.get("role", ""),
        status=ApproverStatus(data.get("status", ApproverStatus.PENDING.value)),
        approved_at=_dt(data.get("approved_at")),
        comments=data.get("comments"),
    )


def _history_to_dict(entry: ApprovalHistoryEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "step_number": entry.step_number,
        "action": entry.action.value,
        "user_id": entry.user_id,
        "user_name": entry.user_name,
        "timestamp": entry.timestamp.isoformat(),
        "previous_status": entry.previous_status.value,
        "new_status": entry.new_status.value,
        "comments": entry.comments,
    }


def _history_from_dict(data: dict[str, Any]) -> ApprovalHistoryEntry:
    return ApprovalHistoryEntry(
        id=data["id"],
        step_number=int(data["step_number"]),
        action=ApprovalAction(data["action"]),
        user_id=data["user_id"],
        user_name=data.get("user_name", ""),
        timestamp=_dt(data["timestamp"]),
        previous_status=BillingStatus(data["previous_status"]),
        new_status=BillingStatus(data["new_status"]),
        comments=data.get("comments"),
    )


def workflow_to_json(workflow: ApprovalWorkflow) -> str:
    return _to_json(
        {
            "current_step": workflow.current_step,
            "total_steps": workflow.total_steps,
            "roster_mode": workflow.roster_mode.value,
            "approvers": [_approver_to_dict(a) for a in workflow.approvers],
            "history": [_history_to_dict(h) for h in workflow.history],
        }
    )


def workflow_from_json(raw: str | None) -> ApprovalWorkflow:
    data = _from_json(raw, {})
    if not data:
        return ApprovalWorkflow()
    return ApprovalWorkflow(
        current_step=int(data.get("current_step", 0)),
        total_steps=int(data.get("total_steps", ApprovalWorkflow().total_steps)),
        approvers=tuple(_approver_from_dict(a) for a in data.get("approvers", [])),
        history=tuple(_history_from_dict(h) for h in data.get("history", [])),
        roster_mode=RosterMode(data.get("roster_mode", RosterMode.OPEN.value)),
    )


def _invoicing_to_json(invoicing: Optional[InvoicingInfo]) -> Optional[str]:
    if invoicing is None:
        return None
    return _to_json(
        {
            "invoice_number": invoicing.invoice_number,
            "invoice_date": invoicing.invoice_date.isoformat(),
            "tax_id": invoicing.tax_id,
            "amount": invoicing.amount,
            "attachment_ids": list(invoicing.attachment_ids),
        }
    )


def _invoicing_from_json(raw: str | None) -> Optional[InvoicingInfo]:
    data = _from_json(raw, {})
    if not data:
        return None
    return InvoicingInfo(
        invoice_number=data["invoice_number"],
        invoice_date=date.fromisoformat(data["invoice_date"]),
        tax_id=data.get("tax_id", ""),
        amount=float(data["amount"]),
        attachment_ids=tuple(data.get("attachment_ids", [])),
    )


def record_to_values(record: BillingRecord) -> dict[str, Any]:
    """Column values for `record`, without `id` and `version`."""
    return {
        "project_id": record.project_id,
        "record_number": record.record_number,
        "record_type": record.record_type.value,
        "contract_id": record.contract_id,
        "acceptance_id": record.acceptance_id,
        "task_ids_json": _to_json(sorted(record.task_ids)),
        "billing_party_json": _party_to_json(record.billing_party),
        "paying_party_json": _party_to_json(record.paying_party),
        "line_items_json": _to_json([asdict(item) for item in record.line_items]),
        "subtotal": record.subtotal,
        "tax": record.tax,
        "tax_rate": record.tax_rate,
        "total": record.total,
        "billing_percentage": record.billing_percentage,
        "status": record.status.value,
        "workflow_json": workflow_to_json(record.approval_workflow),
        "due_date": _stored(record.due_date),
        "paid_date": _stored(record.paid_date),
        "paid_amount": record.paid_amount,
        "payment_method": record.payment_method.value if record.payment_method else None,
        "invoicing_json": _invoicing_to_json(record.invoicing),
        "metadata_json": _to_json(record.metadata),
        "notes": record.notes,
        "attachment_ids_json": _to_json(list(record.attachment_ids)),
        "created_by": record.created_by,
        "created_at": _stored(record.created_at),
        "updated_by": record.updated_by,
        "updated_at": _stored(record.updated_at),
    }


def record_to_orm(record: BillingRecord) -> BillingRecordORM:
    return BillingRecordORM(id=record.id, version=record.version, **record_to_values(record))


def record_from_orm(obj: BillingRecordORM) -> BillingRecord:
    return BillingRecord(
        id=obj.id,
        project_id=obj.project_id,
        record_number=obj.record_number,
        record_type=RecordType(obj.record_type),
        contract_id=obj.contract_id,
        billing_party=_party_from_json(obj.billing_party_json),
        paying_party=_party_from_json(obj.paying_party_json),
        due_date=_utc(obj.due_date),
        created_by=obj.created_by,
        acceptance_id=obj.acceptance_id,
        task_ids=frozenset(_from_json(obj.task_ids_json, [])),
        line_items=[LineItem(**item) for item in _from_json(obj.line_items_json, [])],
        subtotal=obj.subtotal,
        tax=obj.tax,
        tax_rate=obj.tax_rate,
        total=obj.total,
        billing_percentage=obj.billing_percentage,
        status=BillingStatus(obj.status),
        approval_workflow=workflow_from_json(obj.workflow_json),
        paid_date=_utc(obj.paid_date),
        paid_amount=obj.paid_amount,
        payment_method=PaymentMethod(obj.payment_method) if obj.payment_method else None,
        invoicing=_invoicing_from_json(obj.invoicing_json),
        metadata=_from_json(obj.metadata_json, {}),
        notes=obj.notes,
        attachment_ids=tuple(_from_json(obj.attachment_ids_json, [])),
        created_at=_utc(obj.created_at),
        updated_by=obj.updated_by,
        updated_at=_utc(obj.updated_at),
        version=getattr(obj, "version", 1),
    )


__all__ = [
    "record_to_orm",
    "record_from_orm",
    "record_to_values",
    "workflow_to_json",
    "workflow_from_json",
]
