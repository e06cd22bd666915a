"""Reporting API wrappers around renderer classes."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List

from core.models import BillingRecord, RecordType
from core.services.finance import FinanceService
from core.reporting.renderers.excel import ExcelReportRenderer
from core.reporting.renderers.pdf import PdfReportRenderer
from core.reporting.contexts import FinanceReportContext


def _ensure_parent(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _contractor_ids(records: List[BillingRecord]) -> List[str]:
    seen: dict[str, None] = {}
    for r in records:
        if r.record_type == RecordType.PAYABLE and r.paying_party is not None:
            seen.setdefault(r.paying_party.id, None)
    return list(seen)


def build_finance_context(
    finance_service: FinanceService,
    records: Iterable[BillingRecord],
    project_id: str,
    as_of: datetime | None = None,
) -> FinanceReportContext:
    as_of = as_of or datetime.now(timezone.utc)
    records = [r for r in records if r.project_id == project_id]
    return FinanceReportContext(
        project_id=project_id,
        summary=finance_service.financial_summary(records, project_id, now=as_of),
        overdue=finance_service.overdue_summary(records, project_id, now=as_of),
        contractors=[
            finance_service.contractor_summary(records, contractor_id)
            for contractor_id in _contractor_ids(records)
        ],
        records=records,
        as_of=as_of,
    )


def export_financial_summary_excel(
    finance_service: FinanceService,
    records: Iterable[BillingRecord],
    project_id: str,
    output_path: str | Path,
    as_of: datetime | None = None,
) -> Path:
    ctx = build_finance_context(finance_service, records, project_id, as_of=as_of)
    return ExcelReportRenderer().render(ctx, _ensure_parent(Path(output_path)))


def export_financial_summary_pdf(
    finance_service: FinanceService,
    records: Iterable[BillingRecord],
    project_id: str,
    output_path: str | Path,
    as_of: datetime | None = None,
) -> Path:
    ctx = build_finance_context(finance_service, records, project_id, as_of=as_of)
    return PdfReportRenderer().render(ctx, _ensure_parent(Path(output_path)))
