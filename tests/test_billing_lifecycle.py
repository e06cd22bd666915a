from __future__ import annotations

import pytest

from core.events.domain_events import BillingEventType
from core.exceptions import (
    InvalidTransitionError,
    NotAuthorizedError,
    NotFoundError,
    NotPendingApprovalError,
    ValidationError,
    WrongRecordTypeError,
)
from core.models import (
    Actor,
    ApprovalAction,
    ApproverStatus,
    BillingStatus,
    PaymentMethod,
    RosterMode,
)
from core.services.billing import PaymentInfo

ALICE = Actor(user_id="u-alice", user_name="Alice", role="pm")
BOB = Actor(user_id="u-bob", user_name="Bob", role="finance")
CAROL = Actor(user_id="u-carol", user_name="Carol", role="director")


def _collect(event_bus, *event_types):
    seen = []
    for event_type in event_types:
        event_bus.subscribe(event_type, seen.append)
    return seen


def test_submit_moves_draft_to_submitted_and_emits(services, event_bus, make_receivable, submitter):
    ls = services["lifecycle_service"]
    seen = _collect(event_bus, BillingEventType.INVOICE_SUBMITTED)
    record = make_receivable()

    submitted = ls.submit(record.project_id, record.id, submitter, approvers=[ALICE, BOB])

    assert submitted.status == BillingStatus.SUBMITTED
    assert submitted.version == record.version + 1
    assert submitted.updated_by == submitter.user_id
    workflow = submitted.approval_workflow
    assert workflow.current_step == 1
    assert workflow.roster_mode == RosterMode.FIXED
    assert [h.action for h in workflow.history] == [ApprovalAction.SUBMIT]
    assert workflow.history[0].step_number == 1
    assert [e.payload["record_id"] for e in seen] == [record.id]


def test_submit_without_line_items_leaves_draft_in_store(services, event_bus, make_receivable, submitter):
    ls = services["lifecycle_service"]
    seen = _collect(event_bus, BillingEventType.INVOICE_SUBMITTED)
    record = make_receivable(amount=None)

    with pytest.raises(ValidationError) as exc:
        ls.submit(record.project_id, record.id, submitter)

    assert exc.value.code == "NO_LINE_ITEMS"
    stored = ls.get_record(record.project_id, record.id)
    assert stored.status == BillingStatus.DRAFT
    assert stored.version == record.version
    assert stored.approval_workflow.history == ()
    assert seen == []


def test_three_step_roster_passes_through_under_review(services, event_bus, make_receivable, submitter):
    ls = services["lifecycle_service"]
    seen = _collect(event_bus, BillingEventType.INVOICE_APPROVED)
    record = make_receivable()
    ls.submit(record.project_id, record.id, submitter, approvers=[ALICE, BOB, CAROL])

    first = ls.approve(record.project_id, record.id, ALICE, comments="quantities checked")
    assert first.status == BillingStatus.UNDER_REVIEW
    assert first.approval_workflow.current_step == 2

    second = ls.approve(record.project_id, record.id, BOB)
    assert second.status == BillingStatus.APPROVED
    assert second.approval_workflow.current_step == 3
    assert [a.status for a in second.approval_workflow.approvers] == [
        ApproverStatus.APPROVED,
        ApproverStatus.APPROVED,
        ApproverStatus.PENDING,
    ]
    assert [(h.action, h.step_number) for h in second.approval_workflow.history] == [
        (ApprovalAction.SUBMIT, 1),
        (ApprovalAction.APPROVE, 1),
        (ApprovalAction.APPROVE, 2),
    ]
    assert [e.payload["is_fully_approved"] for e in seen] == [False, True]


def test_two_step_roster_is_approved_after_one_approval(services, make_receivable, submitter):
    ls = services["lifecycle_service"]
    record = make_receivable()
    ls.submit(record.project_id, record.id, submitter, approvers=[ALICE, BOB])

    approved = ls.approve(record.project_id, record.id, ALICE)

    assert approved.status == BillingStatus.APPROVED
    workflow = approved.approval_workflow
    assert (workflow.current_step, workflow.total_steps) == (2, 2)
    assert [a.status for a in workflow.approvers] == [ApproverStatus.APPROVED, ApproverStatus.PENDING]
    with pytest.raises(NotPendingApprovalError):
        ls.approve(record.project_id, record.id, BOB)


def test_single_approver_goes_straight_to_approved(services, make_receivable, submitter):
    ls = services["lifecycle_service"]
    record = make_receivable()
    ls.submit(record.project_id, record.id, submitter, approvers=[ALICE])

    approved = ls.approve(record.project_id, record.id, ALICE)

    assert approved.status == BillingStatus.APPROVED
    assert approved.approval_workflow.history[-1].previous_status == BillingStatus.SUBMITTED


def test_wrong_approver_is_rejected(services, make_receivable, submitter):
    ls = services["lifecycle_service"]
    record = make_receivable()
    ls.submit(record.project_id, record.id, submitter, approvers=[ALICE, BOB])

    with pytest.raises(NotAuthorizedError):
        ls.approve(record.project_id, record.id, BOB)

    assert ls.get_record(record.project_id, record.id).status == BillingStatus.SUBMITTED


def test_approve_on_draft_fails_before_permission_check(services, make_receivable, monkeypatch):
    ls = services["lifecycle_service"]
    record = make_receivable()

    def _fail(*_args, **_kwargs):
        raise AssertionError("permission check must not run")

    monkeypatch.setattr("core.services.billing.lifecycle.check_permission", _fail)

    with pytest.raises(NotPendingApprovalError) as exc:
        ls.approve(record.project_id, record.id, ALICE)
    assert exc.value.code == "NOT_PENDING_APPROVAL"
    assert isinstance(exc.value, InvalidTransitionError)
    assert exc.value.allowed == ["cancelled", "submitted"]


def test_open_workflow_records_the_actual_approver(services, make_receivable, submitter, monkeypatch):
    monkeypatch.setenv("BILLING_DEFAULT_APPROVAL_STEPS", "3")
    ls = services["lifecycle_service"]
    record = make_receivable()
    ls.submit(record.project_id, record.id, submitter)

    reviewed = ls.approve(record.project_id, record.id, BOB)
    assert reviewed.status == BillingStatus.UNDER_REVIEW
    done = ls.approve(record.project_id, record.id, ALICE)

    assert done.status == BillingStatus.APPROVED
    assert [a.user_id for a in done.approval_workflow.approvers] == ["u-bob", "u-alice"]


def test_reject_requires_reason(services, make_receivable, submitter):
    ls = services["lifecycle_service"]
    record = make_receivable()
    ls.submit(record.project_id, record.id, submitter)

    with pytest.raises(ValidationError) as exc:
        ls.reject(record.project_id, record.id, ALICE, reason="   ")
    assert exc.value.code == "REJECTION_REASON_REQUIRED"


def test_reject_then_return_to_draft_resets_workflow(services, event_bus, make_receivable, submitter):
    ls = services["lifecycle_service"]
    seen = _collect(event_bus, BillingEventType.INVOICE_REJECTED)
    record = make_receivable()
    ls.submit(record.project_id, record.id, submitter, approvers=[ALICE, BOB])

    rejected = ls.reject(record.project_id, record.id, ALICE, reason="missing measurements")
    assert rejected.status == BillingStatus.REJECTED
    assert rejected.approval_workflow.current_step == 1
    assert seen[0].payload["reason"] == "missing measurements"

    drafted = ls.return_to_draft(record.project_id, record.id, submitter)
    workflow = drafted.approval_workflow
    assert drafted.status == BillingStatus.DRAFT
    assert workflow.current_step == 0
    assert [a.user_id for a in workflow.approvers] == ["u-alice", "u-bob"]
    assert all(a.status == ApproverStatus.PENDING for a in workflow.approvers)
    assert [h.action for h in workflow.history] == [
        ApprovalAction.SUBMIT,
        ApprovalAction.REJECT,
        ApprovalAction.RETURN,
    ]
    assert workflow.history[-1].step_number == 0

    resubmitted = ls.submit(record.project_id, record.id, submitter)
    assert resubmitted.status == BillingStatus.SUBMITTED
    assert len(resubmitted.approval_workflow.history) == 4


def test_cancel_only_from_draft(services, event_bus, make_receivable, submitter):
    ls = services["lifecycle_service"]
    seen = _collect(event_bus, *BillingEventType)
    draft = make_receivable()

    cancelled = ls.cancel(draft.project_id, draft.id, submitter, reason="duplicate")
    assert cancelled.status == BillingStatus.CANCELLED
    assert cancelled.approval_workflow.history[-1].action == ApprovalAction.CANCEL
    assert seen == []

    other = make_receivable()
    ls.submit(other.project_id, other.id, submitter)
    with pytest.raises(InvalidTransitionError):
        ls.cancel(other.project_id, other.id, submitter)


def test_unknown_record_raises_not_found(services):
    with pytest.raises(NotFoundError) as exc:
        services["lifecycle_service"].get_record("proj-1", "missing")
    assert exc.value.code == "RECORD_NOT_FOUND"


def test_record_is_scoped_to_its_project(services, make_receivable):
    record = make_receivable()

    with pytest.raises(NotFoundError):
        services["lifecycle_service"].get_record("another-project", record.id)


def test_payment_commands_reject_receivables(services, make_receivable, submitter):
    ls = services["lifecycle_service"]
    record = make_receivable()

    with pytest.raises(WrongRecordTypeError):
        ls.mark_as_paid(
            record.project_id,
            record.id,
            submitter,
            PaymentInfo(amount=10.0, method=PaymentMethod.CASH),
        )


def test_history_and_pending_queries(services, make_receivable, submitter):
    ls = services["lifecycle_service"]
    mine = make_receivable()
    open_one = make_receivable()
    ls.submit(mine.project_id, mine.id, submitter, approvers=[ALICE, BOB])
    ls.submit(open_one.project_id, open_one.id, submitter)
    make_receivable()

    assert {r.id for r in ls.list_pending_approval(mine.project_id, "u-alice")} == {mine.id, open_one.id}
    assert {r.id for r in ls.list_pending_approval(mine.project_id, "u-bob")} == {open_one.id}

    history = ls.get_approval_history(mine.project_id, mine.id)
    assert [h.action for h in history] == [ApprovalAction.SUBMIT]
    assert history[0].user_id == submitter.user_id
