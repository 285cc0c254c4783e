"""
PDF Liquidation Report

Only the All view can be exported: a liquidation report lists every
claim, so a per-category summary is not a valid report. Asking for a
PDF under any other period returns a notice instead of a file.

Report layout:
- Title "Liquidation Report" and the period title
- Grid table: Date, Transaction, Client/Prospect, Purpose, Category, Amount
- Purpose cell highlighted in light red where the purpose is missing
- Bold TOTAL row
- "Submitted by" signature block

DESIGN DECISION: Row construction (build_report_table) is separate from
drawing, so flagged rows and totals can be checked without parsing a PDF.
"""

import io
from datetime import date
from decimal import Decimal
from typing import Optional
from xml.sax.saxutils import escape

from pydantic import BaseModel, Field
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from resiboko.models.transaction import TransactionRecord
from resiboko.queries.summary import Summary
from resiboko.reports.files import ExportFile, ExportResult, format_currency


PDF_ONLY_FOR_ALL_NOTICE = "PDF generation is only available for the 'All' transactions view."

REPORT_HEADER = ["Date", "Transaction", "Client/Prospect", "Purpose", "Category", "Amount"]
PURPOSE_COLUMN = 3

# Base-14 PDF fonts have no peso sign glyph
PDF_CURRENCY_SYMBOL = "PHP "

HEADER_BLUE = colors.Color(41 / 255, 128 / 255, 185 / 255)
MISSING_PURPOSE_RED = colors.Color(255 / 255, 235 / 255, 238 / 255)


class ReportRow(BaseModel):
    cells: list[str]
    flagged: bool = Field(
        default=False,
        description="Purpose is missing; highlighted in the report"
    )


class ReportTable(BaseModel):
    header: list[str] = Field(default_factory=lambda: list(REPORT_HEADER))
    rows: list[ReportRow] = Field(default_factory=list)
    total: Decimal = Decimal("0")
    total_row: list[str] = Field(default_factory=list)

    @property
    def flagged_indexes(self) -> list[int]:
        return [i for i, row in enumerate(self.rows) if row.flagged]


def build_report_table(
    records: list[TransactionRecord],
    currency_symbol: str = PDF_CURRENCY_SYMBOL,
) -> ReportTable:
    """Rows of the liquidation report, one per record, plus the total."""
    rows = []
    for r in records:
        rows.append(ReportRow(
            cells=[
                r.date.isoformat() if r.date else "N/A",
                r.name or "N/A",
                r.counterparty or "N/A",
                r.purpose or "N/A",
                r.category.value if r.category else "N/A",
                format_currency(r.amount, currency_symbol),
            ],
            flagged=not r.has_purpose,
        ))

    total = sum((r.amount or Decimal("0") for r in records), Decimal("0"))
    return ReportTable(
        rows=rows,
        total=total,
        total_row=["", "", "", "", "TOTAL", format_currency(total, currency_symbol)],
    )


def _table_style(table: ReportTable) -> TableStyle:
    commands = [
        ('BACKGROUND', (0, 0), (-1, 0), HEADER_BLUE),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('ALIGN', (-1, 0), (-1, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 8),
    ]
    for index in table.flagged_indexes:
        row = index + 1  # header is row 0
        commands.append(
            ('BACKGROUND', (PURPOSE_COLUMN, row), (PURPOSE_COLUMN, row), MISSING_PURPOSE_RED)
        )
    return TableStyle(commands)


def render_pdf(summary: Summary, currency_symbol: str = PDF_CURRENCY_SYMBOL) -> bytes:
    """Draw the liquidation report for an All summary."""
    table = build_report_table(summary.records, currency_symbol)

    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        rightMargin=40,
        leftMargin=40,
        topMargin=50,
        bottomMargin=40,
        title="Liquidation Report",
        invariant=1,  # no timestamps, same input gives the same bytes
    )
    styles = getSampleStyleSheet()
    cell_style = ParagraphStyle(name='ReportCell', parent=styles['Normal'], fontSize=9, leading=11)
    subtitle_style = ParagraphStyle(name='ReportSubtitle', parent=styles['Normal'], textColor=colors.grey)

    def cell(text: str) -> Paragraph:
        return Paragraph(escape(text), cell_style)

    data = [table.header]
    for row in table.rows:
        date_cell, name, client, purpose, category, amount = row.cells
        data.append([date_cell, cell(name), cell(client), cell(purpose), category, amount])
    data.append(table.total_row)

    story = [
        Paragraph("Liquidation Report", styles['Title']),
        Paragraph(escape(summary.title), subtitle_style),
        Spacer(1, 12),
    ]

    pdf_table = Table(data, colWidths=[60, 110, 90, 110, 80, 65], repeatRows=1)
    pdf_table.setStyle(_table_style(table))
    story.append(pdf_table)

    story.append(Spacer(1, 30))
    story.append(Paragraph("Submitted by:", styles['Normal']))
    story.append(Spacer(1, 20))
    story.append(Paragraph("_________________________", styles['Normal']))
    story.append(Paragraph("Signature over Printed Name", styles['Normal']))

    doc.build(story)
    return buf.getvalue()


def pdf_file_name(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"ResiboKo_Liquidation_{today.isoformat()}.pdf"


def export_pdf(summary: Summary, today: Optional[date] = None) -> ExportResult:
    """
    Build the PDF liquidation report.

    Returns a notice instead of a file unless the summary is the All view.
    """
    if not summary.is_all:
        return ExportResult(notice=PDF_ONLY_FOR_ALL_NOTICE)

    return ExportResult(
        file=ExportFile(
            file_name=pdf_file_name(today),
            mime_type="application/pdf",
            content=render_pdf(summary),
        )
    )
