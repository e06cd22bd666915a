from core.domain.approval import (
    DEFAULT_TOTAL_STEPS,
    SYSTEM_ACTOR,
    Actor,
    ApprovalHistoryEntry,
    ApprovalWorkflow,
    Approver,
)
from core.domain.billing import BillingRecord, InvoicingInfo, LineItem, PartyInfo
from core.domain.enums import (
    ApprovalAction,
    ApproverStatus,
    BillingStatus,
    PaymentMethod,
    RecordType,
    RosterMode,
)
from core.domain.identifiers import generate_id, record_number

__all__ = [
    "generate_id",
    "record_number",
    "BillingStatus",
    "RecordType",
    "ApproverStatus",
    "ApprovalAction",
    "RosterMode",
    "PaymentMethod",
    "DEFAULT_TOTAL_STEPS",
    "Actor",
    "SYSTEM_ACTOR",
    "Approver",
    "ApprovalHistoryEntry",
    "ApprovalWorkflow",
    "PartyInfo",
    "LineItem",
    "InvoicingInfo",
    "BillingRecord",
]
