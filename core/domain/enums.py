from __future__ import annotations

from enum import Enum


class BillingStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    INVOICED = "invoiced"
    PARTIAL_PAID = "partial_paid"
    PAID = "paid"
    CANCELLED = "cancelled"


class RecordType(str, Enum):
    RECEIVABLE = "receivable"
    PAYABLE = "payable"


class ApproverStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalAction(str, Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"
    RETURN = "return"


class RosterMode(str, Enum):
    FIXED = "fixed"
    OPEN = "open"


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "bank_transfer"
    CHECK = "check"
    CASH = "cash"
    OTHER = "other"


__all__ = [
    "BillingStatus",
    "RecordType",
    "ApproverStatus",
    "ApprovalAction",
    "RosterMode",
    "PaymentMethod",
]
