from pathlib import Path
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side

from core.reporting.contexts import FinanceReportContext

MONEY_FORMAT = "#,##0.00"


class ExcelReportRenderer:
    def render(self, ctx: FinanceReportContext, output_path: Path) -> Path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb = Workbook()

        header_font = Font(bold=True)
        title_font = Font(bold=True, size=14)
        center = Alignment(horizontal="center")
        thin_border = Border(
            left=Side(style="thin"),
            right=Side(style="thin"),
            top=Side(style="thin"),
            bottom=Side(style="thin"),
        )
        header_fill = PatternFill("solid", fgColor="DDDDDD")
        summary = ctx.summary

        # ---------------- Summary ----------------
        ws = wb.active
        ws.title = "Summary"

        ws["A1"] = f"Financial Summary - {ctx.project_id}"
        ws["A1"].font = title_font

        row = 3

        def kv(key, value, money=True):
            nonlocal row
            ws[f"A{row}"] = key
            ws[f"B{row}"] = value
            ws[f"A{row}"].font = header_font
            ws[f"A{row}"].border = thin_border
            ws[f"B{row}"].border = thin_border
            if money:
                ws[f"B{row}"].number_format = MONEY_FORMAT
            row += 1

        kv("As of", summary.as_of.isoformat(), money=False)

        row += 1
        kv("Receivables - billed", summary.receivables.total)
        kv("Receivables - collected", summary.receivables.collected)
        kv("Receivables - pending", summary.receivables.pending)
        kv("Collection rate %", summary.receivables.collection_rate)

        row += 1
        kv("Payables - approved", summary.payables.total)
        kv("Payables - paid", summary.payables.paid)
        kv("Payables - pending", summary.payables.pending)
        kv("Payment rate %", summary.payables.payment_rate)

        row += 1
        kv("Gross profit", summary.gross_profit)
        kv("Gross profit margin %", summary.gross_profit_margin)
        kv("Billed this month", summary.monthly_billed)
        kv("Received this month", summary.monthly_received)

        row += 1
        kv("Overdue receivables", ctx.overdue.overdue_receivable_count, money=False)
        kv("Overdue receivable amount", ctx.overdue.overdue_receivable_amount)
        kv("Overdue payables", ctx.overdue.overdue_payable_count, money=False)
        kv("Overdue payable amount", ctx.overdue.overdue_payable_amount)

        ws.column_dimensions["A"].width = 30
        ws.column_dimensions["B"].width = 25

        # ---------------- Contractors ----------------
        ws_contractors = wb.create_sheet("Contractors")
        headers = ["Contractor ID", "Name", "Payable", "Paid", "Pending", "Records"]
        for col_index, h in enumerate(headers, start=1):
            cell = ws_contractors.cell(row=1, column=col_index, value=h)
            cell.font = header_font
            cell.alignment = center
            cell.fill = header_fill
            cell.border = thin_border

        for row_index, c in enumerate(ctx.contractors, start=2):
            values = [c.contractor_id, c.contractor_name, c.total_payable, c.paid_amount, c.pending_amount, c.payment_count]
            for col_index, value in enumerate(values, start=1):
                cell = ws_contractors.cell(row=row_index, column=col_index, value=value)
                cell.border = thin_border
                if 3 <= col_index <= 5:
                    cell.number_format = MONEY_FORMAT

        for col in ("A", "B", "C", "D", "E"):
            ws_contractors.column_dimensions[col].width = 20

        # ---------------- Records ----------------
        ws_records = wb.create_sheet("Records")
        headers = ["Number", "Type", "Status", "Total", "Paid", "Due date", "Paying party"]
        for col_index, h in enumerate(headers, start=1):
            cell = ws_records.cell(row=1, column=col_index, value=h)
            cell.font = header_font
            cell.alignment = center
            cell.fill = header_fill
            cell.border = thin_border

        for row_index, r in enumerate(ctx.records, start=2):
            values = [
                r.record_number,
                r.record_type.value,
                r.status.value,
                r.total,
                r.paid_amount or 0.0,
                r.due_date.date().isoformat(),
                r.paying_party.name if r.paying_party else "",
            ]
            for col_index, value in enumerate(values, start=1):
                cell = ws_records.cell(row=row_index, column=col_index, value=value)
                cell.border = thin_border
                if col_index in (4, 5):
                    cell.number_format = MONEY_FORMAT

        wb.save(output_path)
        return output_path
