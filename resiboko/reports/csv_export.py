"""
CSV Export

Two layouts, picked by the summary period:

All view - one row per record, in display order:
    Date,Transaction,Amount,Category,Client/Prospect,Purpose
    2026-10-15,"Shell Gas",500,Transportation,"Ayala","Site tripping"

Any other view - one row per category total:
    Category,"Total Amount for Summary for October 2026"
    Transportation,150

Free-text columns are always quoted with embedded quotes doubled.
Output is deterministic: the same summary gives the same bytes.
"""

from datetime import date
from typing import Optional

from resiboko.models.transaction import TransactionRecord
from resiboko.queries.summary import UNCATEGORIZED, Summary
from resiboko.reports.files import ExportFile, plain_amount


RECORD_HEADER = "Date,Transaction,Amount,Category,Client/Prospect,Purpose"


def quote(value: Optional[str]) -> str:
    """Wrap free text in quotes, doubling embedded quotes."""
    return '"' + (value or "").replace('"', '""') + '"'


def record_row(record: TransactionRecord) -> str:
    return ",".join([
        record.date.isoformat() if record.date else "",
        quote(record.name),
        plain_amount(record.amount),
        record.category.value if record.category else UNCATEGORIZED,
        quote(record.counterparty),
        quote(record.purpose),
    ])


def render_csv(summary: Summary) -> str:
    """CSV text for a summary."""
    if summary.is_all:
        lines = [RECORD_HEADER] + [record_row(r) for r in summary.records]
    else:
        lines = ["Category," + quote(f"Total Amount for {summary.title}")] + [
            f"{t.category},{plain_amount(t.total)}" for t in summary.totals
        ]
    return "\n".join(lines)


def csv_file_name(summary: Summary, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"ResiboKo_Export_{summary.period.value}_{today.isoformat()}.csv"


def export_csv(summary: Summary, today: Optional[date] = None) -> ExportFile:
    """Build the CSV download for the current view."""
    return ExportFile(
        file_name=csv_file_name(summary, today),
        mime_type="text/csv",
        content=render_csv(summary).encode("utf-8"),
    )
