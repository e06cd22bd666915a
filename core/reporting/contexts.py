from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from core.models import BillingRecord
from core.services.finance.models import ContractorSummary, FinancialSummary, OverdueSummary


@dataclass
class FinanceReportContext:
    project_id: str
    summary: FinancialSummary
    overdue: OverdueSummary
    contractors: List[ContractorSummary]
    records: List[BillingRecord] = field(default_factory=list)
    as_of: datetime | None = None
