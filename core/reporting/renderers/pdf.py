from pathlib import Path
from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.platypus import (
    SimpleDocTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
)
from reportlab.lib.styles import getSampleStyleSheet

from core.reporting.contexts import FinanceReportContext

_TABLE_STYLE = TableStyle([
    ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
])


class PdfReportRenderer:
    def render(self, ctx: FinanceReportContext, output_path: Path) -> Path:
        doc = SimpleDocTemplate(
            str(output_path),
            pagesize=A4,
            leftMargin=40,
            rightMargin=40,
            topMargin=40,
            bottomMargin=40,
        )

        styles = getSampleStyleSheet()
        story = []
        summary = ctx.summary

        # ---------------- Title ----------------
        story.append(Paragraph(f"Financial Summary - {ctx.project_id}", styles["Title"]))
        story.append(Paragraph(f"As of {summary.as_of:%Y-%m-%d %H:%M} UTC", styles["Normal"]))
        story.append(Spacer(1, 12))

        # ---------------- Receivables / payables ----------------
        data = [
            ["", "Receivables", "Payables"],
            ["Approved total", f"{summary.receivables.total:,.2f}", f"{summary.payables.total:,.2f}"],
            ["Collected / paid", f"{summary.receivables.collected:,.2f}", f"{summary.payables.paid:,.2f}"],
            ["Pending", f"{summary.receivables.pending:,.2f}", f"{summary.payables.pending:,.2f}"],
            ["Rate %", f"{summary.receivables.collection_rate:.2f}", f"{summary.payables.payment_rate:.2f}"],
            [
                "Overdue",
                f"{ctx.overdue.overdue_receivable_amount:,.2f} ({ctx.overdue.overdue_receivable_count})",
                f"{ctx.overdue.overdue_payable_amount:,.2f} ({ctx.overdue.overdue_payable_count})",
            ],
        ]
        table = Table(data, colWidths=[160, 150, 150])
        table.setStyle(_TABLE_STYLE)
        story.append(table)
        story.append(Spacer(1, 12))

        info = [
            f"Gross profit: {summary.gross_profit:,.2f}",
            f"Gross profit margin: {summary.gross_profit_margin:.2f}%",
            f"Billed this month: {summary.monthly_billed:,.2f}",
            f"Received this month: {summary.monthly_received:,.2f}",
        ]
        for line in info:
            story.append(Paragraph(line, styles["Normal"]))
        story.append(Spacer(1, 16))

        # ---------------- Contractors ----------------
        if ctx.contractors:
            story.append(Paragraph("Contractor Payments", styles["Heading2"]))
            story.append(Spacer(1, 8))

            data = [["Contractor", "Payable", "Paid", "Pending"]]
            for c in ctx.contractors:
                data.append([
                    c.contractor_name or c.contractor_id,
                    f"{c.total_payable:,.2f}",
                    f"{c.paid_amount:,.2f}",
                    f"{c.pending_amount:,.2f}",
                ])

            table = Table(data, colWidths=[200, 100, 100, 100])
            table.setStyle(_TABLE_STYLE)
            story.append(table)

        doc.build(story)
        return output_path
