from core.services.billing.generation import PayableGenerationService
from core.services.billing.lifecycle import BillingLifecycleService
from core.services.billing.models import (
    AcceptanceData,
    BankInfo,
    BatchFailure,
    BatchResult,
    ContractData,
    GeneratePayableOptions,
    PaymentInfo,
)

__all__ = [
    "BillingLifecycleService",
    "PayableGenerationService",
    "AcceptanceData",
    "BankInfo",
    "BatchFailure",
    "BatchResult",
    "ContractData",
    "GeneratePayableOptions",
    "PaymentInfo",
]
