from __future__ import annotations

from core.exceptions import InvalidTransitionError
from core.models import BillingStatus

_TRANSITIONS: dict[BillingStatus, frozenset[BillingStatus]] = {
    BillingStatus.DRAFT: frozenset({BillingStatus.SUBMITTED, BillingStatus.CANCELLED}),
    BillingStatus.SUBMITTED: frozenset(
        {BillingStatus.UNDER_REVIEW, BillingStatus.APPROVED, BillingStatus.REJECTED}
    ),
    BillingStatus.UNDER_REVIEW: frozenset({BillingStatus.APPROVED, BillingStatus.REJECTED}),
    BillingStatus.APPROVED: frozenset({BillingStatus.INVOICED}),
    BillingStatus.REJECTED: frozenset({BillingStatus.DRAFT}),
    BillingStatus.INVOICED: frozenset({BillingStatus.PARTIAL_PAID, BillingStatus.PAID}),
    BillingStatus.PARTIAL_PAID: frozenset({BillingStatus.PAID}),
    BillingStatus.PAID: frozenset(),
    BillingStatus.CANCELLED: frozenset(),
}

_missing = set(BillingStatus) - set(_TRANSITIONS)
if _missing:
    raise RuntimeError(
        "Transition table does not cover statuses: "
        + ", ".join(sorted(s.value for s in _missing))
    )

TERMINAL_STATUSES = frozenset({BillingStatus.PAID, BillingStatus.CANCELLED})
PENDING_APPROVAL_STATUSES = frozenset({BillingStatus.SUBMITTED, BillingStatus.UNDER_REVIEW})
EDITABLE_STATUSES = frozenset({BillingStatus.DRAFT, BillingStatus.REJECTED})


def _as_status(value: BillingStatus | str) -> BillingStatus:
    if isinstance(value, BillingStatus):
        return value
    return BillingStatus(str(value).strip().lower())


def get_available_transitions(status: BillingStatus | str) -> frozenset[BillingStatus]:
    return _TRANSITIONS[_as_status(status)]


def can_transition(from_status: BillingStatus | str, to_status: BillingStatus | str) -> bool:
    return _as_status(to_status) in get_available_transitions(from_status)


def validate_transition(from_status: BillingStatus | str, to_status: BillingStatus | str) -> None:
    if not can_transition(from_status, to_status):
        raise InvalidTransitionError(
            _as_status(from_status),
            _as_status(to_status),
            get_available_transitions(from_status),
        )


def is_terminal_status(status: BillingStatus | str) -> bool:
    return _as_status(status) in TERMINAL_STATUSES


def is_pending_approval(status: BillingStatus | str) -> bool:
    return _as_status(status) in PENDING_APPROVAL_STATUSES


def is_editable(status: BillingStatus | str) -> bool:
    return _as_status(status) in EDITABLE_STATUSES


__all__ = [
    "TERMINAL_STATUSES",
    "PENDING_APPROVAL_STATUSES",
    "EDITABLE_STATUSES",
    "get_available_transitions",
    "can_transition",
    "validate_transition",
    "is_terminal_status",
    "is_pending_approval",
    "is_editable",
]
