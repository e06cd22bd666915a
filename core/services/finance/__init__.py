from .cache import SummaryCache
from .models import (
    BillingProgress,
    ContractorSummary,
    FinancialSummary,
    OverdueSummary,
    PayableSummary,
    PaymentProgress,
    ReceivableSummary,
)
from .service import FinanceService

__all__ = [
    "FinanceService",
    "SummaryCache",
    "BillingProgress",
    "PaymentProgress",
    "ReceivableSummary",
    "PayableSummary",
    "FinancialSummary",
    "OverdueSummary",
    "ContractorSummary",
]
