"""Report exports package (CSV and PDF)."""

from resiboko.reports.files import (
    ExportFile,
    ExportResult,
    format_currency,
    plain_amount,
)
from resiboko.reports.csv_export import (
    RECORD_HEADER,
    export_csv,
    render_csv,
)
from resiboko.reports.pdf_export import (
    PDF_ONLY_FOR_ALL_NOTICE,
    ReportRow,
    ReportTable,
    build_report_table,
    export_pdf,
    render_pdf,
)

__all__ = [
    "ExportFile",
    "ExportResult",
    "format_currency",
    "plain_amount",
    "RECORD_HEADER",
    "export_csv",
    "render_csv",
    "PDF_ONLY_FOR_ALL_NOTICE",
    "ReportRow",
    "ReportTable",
    "build_report_table",
    "export_pdf",
    "render_pdf",
]
