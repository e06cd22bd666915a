from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from core.domain.enums import ApprovalAction, ApproverStatus, BillingStatus, RosterMode
from core.domain.identifiers import generate_id

DEFAULT_TOTAL_STEPS = 2


@dataclass(frozen=True)
class Actor:
    user_id: str
    user_name: str = ""
    role: str = ""


SYSTEM_ACTOR = Actor(user_id="system", user_name="System", role="system")


@dataclass(frozen=True)
class Approver:
    step_number: int
    user_id: str
    user_name: str = ""
    role: str = ""
    status: ApproverStatus = ApproverStatus.PENDING
    approved_at: Optional[datetime] = None
    comments: Optional[str] = None


@dataclass(frozen=True)
class ApprovalHistoryEntry:
    id: str
    step_number: int
    action: ApprovalAction
    user_id: str
    user_name: str
    timestamp: datetime
    previous_status: BillingStatus
    new_status: BillingStatus
    comments: Optional[str] = None

    @staticmethod
    def create(
        step_number: int,
        action: ApprovalAction,
        actor: Actor,
        previous_status: BillingStatus,
        new_status: BillingStatus,
        comments: Optional[str] = None,
    ) -> "ApprovalHistoryEntry":
        return ApprovalHistoryEntry(
            id=generate_id(),
            step_number=step_number,
            action=action,
            user_id=actor.user_id,
            user_name=actor.user_name,
            timestamp=datetime.now(timezone.utc),
            previous_status=previous_status,
            new_status=new_status,
            comments=comments,
        )


@dataclass(frozen=True)
class ApprovalWorkflow:
    """Approval state embedded in a single billing record.

    `roster_mode` is FIXED once a roster has been assigned on submit; an OPEN
    workflow lets any actor decide the current step.
    """

    current_step: int = 0
    total_steps: int = DEFAULT_TOTAL_STEPS
    approvers: tuple[Approver, ...] = field(default_factory=tuple)
    history: tuple[ApprovalHistoryEntry, ...] = field(default_factory=tuple)
    roster_mode: RosterMode = RosterMode.OPEN

    def approver_for_step(self, step_number: int) -> Optional[Approver]:
        for approver in self.approvers:
            if approver.step_number == step_number:
                return approver
        return None

    @property
    def current_approver(self) -> Optional[Approver]:
        return self.approver_for_step(self.current_step)


__all__ = [
    "DEFAULT_TOTAL_STEPS",
    "Actor",
    "SYSTEM_ACTOR",
    "Approver",
    "ApprovalHistoryEntry",
    "ApprovalWorkflow",
]
