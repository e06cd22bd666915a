# core/exceptions.py
from __future__ import annotations

from typing import Iterable


class DomainError(Exception):
    """Base class for domain-level errors."""
    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when data is invalid or violates constraints."""


class NotFoundError(DomainError):
    """Raised when an entity is not found."""


class BusinessRuleError(DomainError):
    """Raised when business rules are violated."""


class ConcurrencyError(DomainError):
    """Raised when optimistic locking detects a stale update."""


def _status_value(status: object) -> str:
    return str(getattr(status, "value", status))


class InvalidTransitionError(BusinessRuleError):
    """Raised when a billing record is moved to a status it cannot reach."""
    def __init__(
        self,
        from_status: object,
        to_status: object,
        allowed: Iterable[object],
        *,
        message: str | None = None,
        code: str = "INVALID_TRANSITION",
    ):
        self.from_status = _status_value(from_status)
        self.to_status = _status_value(to_status)
        self.allowed = sorted(_status_value(s) for s in allowed)
        allowed_label = ", ".join(self.allowed) or "none"
        super().__init__(
            message
            or f"Invalid status transition: {self.from_status} -> {self.to_status}. "
            f"Allowed: {allowed_label}.",
            code=code,
        )


class NotPendingApprovalError(InvalidTransitionError):
    """Raised when approve/reject is attempted outside submitted/under_review."""
    def __init__(self, status: object, target: object, allowed: Iterable[object]):
        super().__init__(
            status,
            target,
            allowed,
            message=f"Record is not pending approval: current status is {_status_value(status)}.",
            code="NOT_PENDING_APPROVAL",
        )


class NotAuthorizedError(DomainError):
    """Raised when the actor is not the scheduled approver for the current step."""
    def __init__(self, user_id: str, step: int, expected_user_id: str):
        self.user_id = user_id
        self.step = step
        self.expected_user_id = expected_user_id
        super().__init__(
            f"User {user_id} is not the approver for step {step}. Expected: {expected_user_id}.",
            code="NOT_AUTHORIZED",
        )


class WrongRecordTypeError(BusinessRuleError):
    """Raised when a payment-only command targets a receivable (or vice versa)."""
    def __init__(self, expected: object, actual: object):
        self.expected = _status_value(expected)
        self.actual = _status_value(actual)
        super().__init__(
            f"Operation requires a {self.expected} record, got {self.actual}.",
            code="WRONG_RECORD_TYPE",
        )
