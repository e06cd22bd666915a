from .billing import BillingLifecycleService, PayableGenerationService
from .finance import FinanceService

__all__ = [
    "BillingLifecycleService",
    "PayableGenerationService",
    "FinanceService",
]
