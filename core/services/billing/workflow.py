"""Pure transformations of the approval workflow embedded in a billing record.

Every function returns a new ApprovalWorkflow; nothing here touches storage.
History is only ever extended through `append_history`, which the lifecycle
service calls once per command.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional, Union

from core.exceptions import NotAuthorizedError, ValidationError
from core.models import (
    DEFAULT_TOTAL_STEPS,
    Actor,
    ApprovalAction,
    ApprovalHistoryEntry,
    ApprovalWorkflow,
    Approver,
    ApproverStatus,
    BillingStatus,
    RosterMode,
)

ApproverSpec = Union[Mapping[str, str], Actor]


def create_workflow(total_steps: int = DEFAULT_TOTAL_STEPS) -> ApprovalWorkflow:
    if total_steps < 1:
        raise ValidationError("Approval workflow needs at least one step.", code="INVALID_TOTAL_STEPS")
    return ApprovalWorkflow(current_step=0, total_steps=total_steps)


def _to_approver(step_number: int, spec: ApproverSpec) -> Approver:
    if isinstance(spec, Actor):
        user_id, user_name, role = spec.user_id, spec.user_name, spec.role
    else:
        user_id = str(spec.get("user_id") or "").strip()
        user_name = str(spec.get("user_name") or "")
        role = str(spec.get("role") or "")
    if not user_id:
        raise ValidationError(
            f"Approver for step {step_number} has no user id.",
            code="APPROVER_USER_REQUIRED",
        )
    return Approver(step_number=step_number, user_id=user_id, user_name=user_name, role=role)


def initialize_workflow(
    workflow: ApprovalWorkflow,
    custom_approvers: Optional[Iterable[ApproverSpec]] = None,
) -> ApprovalWorkflow:
    approvers = list(custom_approvers or [])
    if approvers:
        roster = tuple(_to_approver(index, spec) for index, spec in enumerate(approvers, start=1))
        workflow = replace(
            workflow,
            approvers=roster,
            total_steps=len(roster),
            roster_mode=RosterMode.FIXED,
        )
    return replace(workflow, current_step=1)


def check_permission(workflow: ApprovalWorkflow, actor: Actor) -> None:
    if workflow.roster_mode != RosterMode.FIXED or not workflow.approvers:
        return
    scheduled = workflow.current_approver
    if scheduled is not None and scheduled.user_id != actor.user_id:
        raise NotAuthorizedError(actor.user_id, workflow.current_step, scheduled.user_id)


def record_decision(
    workflow: ApprovalWorkflow,
    actor: Actor,
    decision: ApproverStatus,
    comments: Optional[str] = None,
    *,
    decided_at: Optional[datetime] = None,
) -> ApprovalWorkflow:
    decision = ApproverStatus(decision)
    if decision == ApproverStatus.PENDING:
        raise ValidationError("A decision must approve or reject.", code="INVALID_DECISION")
    decided_at = decided_at or datetime.now(timezone.utc)
    step = workflow.current_step

    scheduled = workflow.approver_for_step(step)
    if scheduled is not None:
        updated = replace(scheduled, status=decision, approved_at=decided_at, comments=comments)
        if workflow.roster_mode == RosterMode.OPEN:
            updated = replace(
                updated,
                user_id=actor.user_id,
                user_name=actor.user_name,
                role=actor.role,
            )
        approvers = tuple(updated if a.step_number == step else a for a in workflow.approvers)
    else:
        approvers = workflow.approvers + (
            Approver(
                step_number=step,
                user_id=actor.user_id,
                user_name=actor.user_name,
                role=actor.role,
                status=decision,
                approved_at=decided_at,
                comments=comments,
            ),
        )

    next_step = step + 1 if decision == ApproverStatus.APPROVED else step
    return replace(workflow, approvers=approvers, current_step=next_step)


def reset_workflow(workflow: ApprovalWorkflow) -> ApprovalWorkflow:
    return replace(
        workflow,
        current_step=0,
        approvers=tuple(
            replace(a, status=ApproverStatus.PENDING, approved_at=None, comments=None)
            for a in workflow.approvers
        ),
    )


def is_fully_approved(workflow: ApprovalWorkflow) -> bool:
    """True once the step counter reaches `total_steps`.

    The counter starts at 1 on submit, so a roster of N steps is complete
    after N - 1 approvals and the last scheduled approver stays pending.
    """
    return workflow.current_step >= workflow.total_steps


def build_history_entry(
    step_number: int,
    action: ApprovalAction,
    actor: Actor,
    previous_status: BillingStatus,
    new_status: BillingStatus,
    comments: Optional[str] = None,
) -> ApprovalHistoryEntry:
    return ApprovalHistoryEntry.create(
        step_number=step_number,
        action=action,
        actor=actor,
        previous_status=previous_status,
        new_status=new_status,
        comments=comments,
    )


def append_history(workflow: ApprovalWorkflow, entry: ApprovalHistoryEntry) -> ApprovalWorkflow:
    return replace(workflow, history=workflow.history + (entry,))


__all__ = [
    "ApproverSpec",
    "create_workflow",
    "initialize_workflow",
    "check_permission",
    "record_decision",
    "reset_workflow",
    "is_fully_approved",
    "build_history_entry",
    "append_history",
]
