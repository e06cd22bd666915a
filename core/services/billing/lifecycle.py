from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from sqlalchemy.orm import Session

from core.events.domain_events import BillingEventType, EventBus, domain_events
from core.exceptions import NotFoundError, NotPendingApprovalError, ValidationError, WrongRecordTypeError
from core.interfaces import BillingRecordRepository
from core.models import (
    Actor,
    ApprovalAction,
    ApprovalHistoryEntry,
    ApproverStatus,
    BillingRecord,
    BillingStatus,
    InvoicingInfo,
    RecordType,
    RosterMode,
)
from core.services.billing.models import PaymentInfo
from core.services.billing.transitions import (
    PENDING_APPROVAL_STATUSES,
    get_available_transitions,
    is_pending_approval,
    validate_transition,
)
from core.services.billing.workflow import (
    ApproverSpec,
    append_history,
    build_history_entry,
    check_permission,
    initialize_workflow,
    is_fully_approved,
    record_decision,
    reset_workflow,
)
from core.services.finance.helpers import to_cents

logger = logging.getLogger(__name__)

_SUBMITTED_EVENT = {
    RecordType.RECEIVABLE: BillingEventType.INVOICE_SUBMITTED,
    RecordType.PAYABLE: BillingEventType.PAYMENT_SUBMITTED,
}
_APPROVED_EVENT = {
    RecordType.RECEIVABLE: BillingEventType.INVOICE_APPROVED,
    RecordType.PAYABLE: BillingEventType.PAYMENT_APPROVED,
}
_REJECTED_EVENT = {
    RecordType.RECEIVABLE: BillingEventType.INVOICE_REJECTED,
    RecordType.PAYABLE: BillingEventType.PAYMENT_REJECTED,
}

RETURN_TO_DRAFT_COMMENT = "Returned to draft for editing"


class BillingLifecycleService:
    """Drives a single billing record through submit/approve/reject/pay.

    Each command is load -> check -> transform -> persist (version checked)
    -> publish. Nothing is written when a check fails.
    """

    def __init__(
        self,
        session: Session,
        record_repo: BillingRecordRepository,
        event_bus: EventBus | None = None,
    ):
        self._session: Session = session
        self._record_repo: BillingRecordRepository = record_repo
        self._events: EventBus = event_bus or domain_events

    # ---------------- approval workflow ----------------

    def submit(
        self,
        project_id: str,
        record_id: str,
        actor: Actor,
        *,
        approvers: Optional[Iterable[ApproverSpec]] = None,
        comments: str | None = None,
    ) -> BillingRecord:
        logger.info("Submitting billing record %s in project %s", record_id, project_id)
        record = self._load(project_id, record_id)
        validate_transition(record.status, BillingStatus.SUBMITTED)
        self._validate_for_submit(record)

        workflow = initialize_workflow(record.approval_workflow, approvers)
        workflow = append_history(
            workflow,
            build_history_entry(
                workflow.current_step,
                ApprovalAction.SUBMIT,
                actor,
                record.status,
                BillingStatus.SUBMITTED,
                comments,
            ),
        )
        updated = self._persist(
            record,
            actor,
            status=BillingStatus.SUBMITTED,
            approval_workflow=workflow,
        )
        self._events.emit(
            _SUBMITTED_EVENT[record.record_type],
            project_id,
            actor,
            {
                "record_id": record.id,
                "record_number": record.record_number,
                "previous_status": record.status.value,
                "new_status": BillingStatus.SUBMITTED.value,
                "amount": record.total,
                "paying_party_id": record.paying_party.id if record.paying_party else None,
            },
        )
        logger.info("Billing record %s submitted for approval", record_id)
        return updated

    def approve(
        self,
        project_id: str,
        record_id: str,
        actor: Actor,
        *,
        comments: str | None = None,
    ) -> BillingRecord:
        logger.info("Approving billing record %s in project %s", record_id, project_id)
        record = self._load(project_id, record_id)
        self._require_pending_approval(record, BillingStatus.APPROVED)
        check_permission(record.approval_workflow, actor)

        workflow = record_decision(record.approval_workflow, actor, ApproverStatus.APPROVED, comments)
        fully_approved = is_fully_approved(workflow)
        new_status = BillingStatus.APPROVED if fully_approved else BillingStatus.UNDER_REVIEW
        if new_status != record.status:
            validate_transition(record.status, new_status)
        workflow = append_history(
            workflow,
            build_history_entry(
                workflow.current_step - 1,
                ApprovalAction.APPROVE,
                actor,
                record.status,
                new_status,
                comments,
            ),
        )
        updated = self._persist(record, actor, status=new_status, approval_workflow=workflow)
        self._events.emit(
            _APPROVED_EVENT[record.record_type],
            project_id,
            actor,
            {
                "record_id": record.id,
                "record_number": record.record_number,
                "previous_status": record.status.value,
                "new_status": new_status.value,
                "is_fully_approved": fully_approved,
                "current_step": workflow.current_step,
                "total_steps": workflow.total_steps,
            },
        )
        logger.info(
            "Billing record %s approved (step %s/%s, fully: %s)",
            record_id,
            workflow.current_step,
            workflow.total_steps,
            fully_approved,
        )
        return updated

    def reject(
        self,
        project_id: str,
        record_id: str,
        actor: Actor,
        *,
        reason: str,
    ) -> BillingRecord:
        logger.info("Rejecting billing record %s in project %s", record_id, project_id)
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Rejection reason is required.", code="REJECTION_REASON_REQUIRED")
        record = self._load(project_id, record_id)
        self._require_pending_approval(record, BillingStatus.REJECTED)
        check_permission(record.approval_workflow, actor)

        workflow = record_decision(record.approval_workflow, actor, ApproverStatus.REJECTED, reason)
        validate_transition(record.status, BillingStatus.REJECTED)
        workflow = append_history(
            workflow,
            build_history_entry(
                workflow.current_step,
                ApprovalAction.REJECT,
                actor,
                record.status,
                BillingStatus.REJECTED,
                reason,
            ),
        )
        updated = self._persist(
            record,
            actor,
            status=BillingStatus.REJECTED,
            approval_workflow=workflow,
        )
        self._events.emit(
            _REJECTED_EVENT[record.record_type],
            project_id,
            actor,
            {
                "record_id": record.id,
                "record_number": record.record_number,
                "previous_status": record.status.value,
                "new_status": BillingStatus.REJECTED.value,
                "reason": reason,
            },
        )
        logger.info("Billing record %s rejected: %s", record_id, reason)
        return updated

    def cancel(
        self,
        project_id: str,
        record_id: str,
        actor: Actor,
        *,
        reason: str | None = None,
    ) -> BillingRecord:
        logger.info("Cancelling billing record %s in project %s", record_id, project_id)
        record = self._load(project_id, record_id)
        validate_transition(record.status, BillingStatus.CANCELLED)

        workflow = append_history(
            record.approval_workflow,
            build_history_entry(
                record.approval_workflow.current_step,
                ApprovalAction.CANCEL,
                actor,
                record.status,
                BillingStatus.CANCELLED,
                reason,
            ),
        )
        updated = self._persist(
            record,
            actor,
            status=BillingStatus.CANCELLED,
            approval_workflow=workflow,
        )
        logger.info("Billing record %s cancelled: %s", record_id, reason or "-")
        return updated

    def return_to_draft(self, project_id: str, record_id: str, actor: Actor) -> BillingRecord:
        logger.info("Returning billing record %s to draft", record_id)
        record = self._load(project_id, record_id)
        validate_transition(record.status, BillingStatus.DRAFT)

        workflow = append_history(
            reset_workflow(record.approval_workflow),
            build_history_entry(
                0,
                ApprovalAction.RETURN,
                actor,
                record.status,
                BillingStatus.DRAFT,
                RETURN_TO_DRAFT_COMMENT,
            ),
        )
        updated = self._persist(record, actor, status=BillingStatus.DRAFT, approval_workflow=workflow)
        logger.info("Billing record %s returned to draft", record_id)
        return updated

    # ---------------- payables ----------------

    def mark_as_invoiced(
        self,
        project_id: str,
        record_id: str,
        actor: Actor,
        invoice: InvoicingInfo,
    ) -> BillingRecord:
        logger.info("Marking payable %s as invoiced", record_id)
        record = self._load(project_id, record_id)
        self._require_payable(record)
        validate_transition(record.status, BillingStatus.INVOICED)
        if not (invoice.invoice_number or "").strip():
            raise ValidationError("Invoice number is required.", code="INVOICE_NUMBER_REQUIRED")
        if invoice.amount <= 0:
            raise ValidationError("Invoice amount must be greater than 0.", code="INVOICE_AMOUNT_INVALID")

        updated = self._persist(
            record,
            actor,
            status=BillingStatus.INVOICED,
            invoicing=replace(invoice, attachment_ids=tuple(invoice.attachment_ids or ())),
        )
        logger.info("Payable %s marked as invoiced: %s", record_id, invoice.invoice_number)
        return updated

    def mark_as_paid(
        self,
        project_id: str,
        record_id: str,
        actor: Actor,
        payment: PaymentInfo,
    ) -> BillingRecord:
        logger.info("Recording payment of %s on payable %s", payment.amount, record_id)
        record = self._load(project_id, record_id)
        self._require_payable(record)
        if to_cents(payment.amount) <= 0:
            raise ValidationError("Payment amount must be at least one cent.", code="PAYMENT_AMOUNT_INVALID")

        # accumulate and compare in cents
        previous_paid = to_cents(record.paid_amount or 0)
        paid_cents = previous_paid + to_cents(payment.amount)
        total_cents = to_cents(record.total)
        if paid_cents > total_cents:
            raise ValidationError(
                f"Payment of {payment.amount} exceeds the outstanding balance "
                f"{total_cents - previous_paid}.",
                code="PAYMENT_EXCEEDS_BALANCE",
            )
        total_paid = float(paid_cents)
        new_status = BillingStatus.PAID if paid_cents >= total_cents else BillingStatus.PARTIAL_PAID
        # a further instalment on a partially paid record keeps its status
        if not (record.status == BillingStatus.PARTIAL_PAID and new_status == BillingStatus.PARTIAL_PAID):
            validate_transition(record.status, new_status)

        metadata = dict(record.metadata)
        if payment.reference is not None:
            metadata["payment_reference"] = payment.reference
        if payment.bank_info is not None:
            metadata["bank_info"] = {
                "bank_name": payment.bank_info.bank_name,
                "account_number": payment.bank_info.account_number,
                "transaction_id": payment.bank_info.transaction_id,
            }
        updated = self._persist(
            record,
            actor,
            status=new_status,
            paid_date=payment.paid_date or datetime.now(timezone.utc),
            paid_amount=total_paid,
            payment_method=payment.method,
            metadata=metadata,
        )
        fully_paid = new_status == BillingStatus.PAID
        self._events.emit(
            BillingEventType.PAYMENT_COMPLETED,
            project_id,
            actor,
            {
                "record_id": record.id,
                "amount": payment.amount,
                "total_paid": total_paid,
                "is_fully_paid": fully_paid,
                "method": payment.method.value,
                "contractor_id": record.paying_party.id if record.paying_party else None,
            },
        )
        logger.info(
            "Payable %s payment recorded: %s/%s (fully paid: %s)",
            record_id,
            total_paid,
            record.total,
            fully_paid,
        )
        return updated

    # ---------------- queries ----------------

    def get_record(self, project_id: str, record_id: str) -> BillingRecord:
        return self._load(project_id, record_id)

    def get_approval_history(self, project_id: str, record_id: str) -> List[ApprovalHistoryEntry]:
        return list(self._load(project_id, record_id).approval_workflow.history)

    def list_pending_approval(self, project_id: str, user_id: str) -> List[BillingRecord]:
        pending = self._record_repo.list_by_project(
            project_id,
            statuses=set(PENDING_APPROVAL_STATUSES),
        )
        out: list[BillingRecord] = []
        for record in pending:
            workflow = record.approval_workflow
            if workflow.roster_mode == RosterMode.OPEN:
                out.append(record)
                continue
            scheduled = workflow.current_approver
            if scheduled is None or scheduled.user_id == user_id:
                out.append(record)
        return out

    # ---------------- helpers ----------------

    def _load(self, project_id: str, record_id: str) -> BillingRecord:
        record = self._record_repo.get(project_id, record_id)
        if record is None:
            raise NotFoundError(f"Billing record not found: {record_id}", code="RECORD_NOT_FOUND")
        return record

    @staticmethod
    def _validate_for_submit(record: BillingRecord) -> None:
        if not record.line_items:
            raise ValidationError("Billing record must have at least one line item.", code="NO_LINE_ITEMS")
        if record.total <= 0:
            raise ValidationError("Billing record total must be greater than 0.", code="NON_POSITIVE_TOTAL")
        if record.billing_party is None or record.paying_party is None:
            raise ValidationError(
                "Billing record must have billing and paying party information.",
                code="MISSING_PARTY",
            )

    @staticmethod
    def _require_pending_approval(record: BillingRecord, target: BillingStatus) -> None:
        if not is_pending_approval(record.status):
            raise NotPendingApprovalError(
                record.status,
                target,
                get_available_transitions(record.status),
            )

    @staticmethod
    def _require_payable(record: BillingRecord) -> None:
        if record.record_type != RecordType.PAYABLE:
            raise WrongRecordTypeError(RecordType.PAYABLE, record.record_type)

    def _persist(self, record: BillingRecord, actor: Actor, **changes: Any) -> BillingRecord:
        updated = replace(
            record,
            **changes,
            updated_by=actor.user_id,
            updated_at=datetime.now(timezone.utc),
        )
        try:
            updated.version = self._record_repo.update(updated, expected_version=record.version)
            self._session.commit()
        except Exception as e:
            self._session.rollback()
            logger.error("Failed to persist billing record %s: %s", record.id, e)
            raise e
        return self._record_repo.get(record.project_id, record.id) or updated


__all__ = ["BillingLifecycleService", "RETURN_TO_DRAFT_COMMENT"]
