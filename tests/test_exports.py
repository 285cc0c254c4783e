"""
Tests for CSV and PDF exports.
"""

import csv
import io
from datetime import date
from decimal import Decimal

from conftest import make_record
from resiboko.models.transaction import TransactionCategory
from resiboko.queries import Period, summarize
from resiboko.reports import (
    PDF_ONLY_FOR_ALL_NOTICE,
    build_report_table,
    export_csv,
    export_pdf,
    format_currency,
    plain_amount,
    render_csv,
)


class TestFormatting:
    """Tests for amount formatting helpers."""

    def test_plain_amount(self):
        """Test amounts are written without trailing zeros."""
        assert plain_amount(Decimal("50")) == "50"
        assert plain_amount(Decimal("12.50")) == "12.5"
        assert plain_amount(Decimal("1E+3")) == "1000"
        assert plain_amount(None) == "0"

    def test_format_currency(self):
        """Test peso formatting with thousands separator."""
        assert format_currency(Decimal("1234.5")) == "₱1,234.50"
        assert format_currency(None) == "₱0.00"


class TestCsvExport:
    """Tests for the CSV export."""

    def test_all_view_rows(self, today):
        """Test the All view writes one quoted row per record."""
        records = [
            make_record("Shell", "500", date(2026, 10, 15),
                        counterparty="Ayala", purpose="Site tripping", record_id=1),
        ]
        text = render_csv(summarize(records, Period.ALL, today))
        assert text == (
            "Date,Transaction,Amount,Category,Client/Prospect,Purpose\n"
            '2026-10-15,"Shell",500,Transportation,"Ayala","Site tripping"'
        )

    def test_embedded_quotes_doubled(self, today):
        """Test quotes inside free text are doubled."""
        records = [make_record('Kuya "J" Eatery', purpose=None, record_id=1)]
        text = render_csv(summarize(records, Period.ALL, today))
        assert '"Kuya ""J"" Eatery"' in text
        assert text.endswith(',"",""')

    def test_period_view_totals(self, today):
        """Test non-All views export category totals."""
        records = [
            make_record(amount="50", category=TransactionCategory.TRANSPORTATION),
            make_record(amount="12.5", category=TransactionCategory.FOOD_AND_DRINK),
        ]
        text = render_csv(summarize(records, Period.MONTHLY, today))
        assert text.split("\n") == [
            'Category,"Total Amount for Summary for October 2026"',
            "Transportation,50",
            "Food & Drink,12.5",
        ]

    def test_daily_header_keeps_two_columns(self, today):
        """Test the comma in a daily title does not add a column."""
        records = [make_record(amount="89.5", txn_date=today)]
        text = render_csv(summarize(records, Period.DAILY, today))

        rows = list(csv.reader(io.StringIO(text)))
        assert rows[0] == ["Category", "Total Amount for Summary for October 18, 2026"]
        assert all(len(row) == 2 for row in rows)

    def test_export_file(self, sample_records, today):
        """Test file name, mime type and UTF-8 content."""
        export = export_csv(summarize(sample_records, Period.ALL, today), today=today)
        assert export.file_name == "ResiboKo_Export_All_2026-10-18.csv"
        assert export.mime_type == "text/csv"
        assert export.content.decode("utf-8").startswith("Date,Transaction")

    def test_export_is_deterministic(self, sample_records, today):
        """Test the same input gives byte-identical output."""
        summary = summarize(sample_records, Period.ALL, today)
        assert export_csv(summary, today).content == export_csv(summary, today).content


class TestPdfExport:
    """Tests for the PDF liquidation report."""

    def test_report_rows_flag_missing_purpose(self, sample_records):
        """Test that records without a purpose are flagged."""
        table = build_report_table(sample_records)
        assert table.flagged_indexes == [1]
        assert table.rows[1].cells[3] == "N/A"

    def test_report_total_row(self, sample_records):
        """Test the total row sums every amount."""
        table = build_report_table(sample_records, currency_symbol="₱")
        assert table.total == Decimal("909.5")
        assert table.total_row == ["", "", "", "", "TOTAL", "₱909.50"]

    def test_report_row_columns(self, sample_records):
        """Test column order: date, name, client, purpose, category, amount."""
        table = build_report_table(sample_records, currency_symbol="₱")
        assert table.rows[0].cells == [
            "2026-10-15", "Shell Gas", "Ayala Land", "Site tripping",
            "Transportation", "₱500.00",
        ]

    def test_pdf_only_for_all_view(self, sample_records, today):
        """Test non-All periods give a notice and no file."""
        result = export_pdf(summarize(sample_records, Period.MONTHLY, today), today=today)
        assert result.ok is False
        assert result.file is None
        assert result.notice == PDF_ONLY_FOR_ALL_NOTICE

    def test_pdf_generated_for_all_view(self, sample_records, today):
        """Test the All view produces a PDF file."""
        result = export_pdf(summarize(sample_records, Period.ALL, today), today=today)
        assert result.ok is True
        assert result.file.file_name == "ResiboKo_Liquidation_2026-10-18.pdf"
        assert result.file.mime_type == "application/pdf"
        assert result.file.content.startswith(b"%PDF")

    def test_pdf_is_deterministic(self, sample_records, today):
        """Test the same input gives byte-identical PDFs."""
        summary = summarize(sample_records, Period.ALL, today)
        first = export_pdf(summary, today).file.content
        second = export_pdf(summary, today).file.content
        assert first == second
