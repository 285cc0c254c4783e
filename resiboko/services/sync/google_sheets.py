"""
Google Sheets Sync

DESIGN DECISION: Writing straight to Google Sheets with a service
account is offered next to the Apps Script endpoint because:
1. No script has to be deployed on the spreadsheet
2. Managers can read the sheet directly
3. Failures are visible (the API answers, unlike a no-cors POST)

TRADEOFFS:
- Needs a service account and sharing the sheet with it
- Each push clears and rewrites the whole worksheet (last write wins)
"""

import asyncio
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials

from resiboko.config import GoogleSheetsSettings, get_settings
from resiboko.models.transaction import TransactionRecord
from resiboko.services.sync.interface import (
    SHEET_COLUMNS,
    SheetSyncInterface,
    SyncConfigurationError,
    SyncError,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet lookup.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise SyncConfigurationError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise SyncError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise SyncConfigurationError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_receipts_sheet(self) -> gspread.Worksheet:
        """Get or create the receipts worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.receipts_sheet_name)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=self._settings.receipts_sheet_name,
                rows=1000,
                cols=len(SHEET_COLUMNS),
            )
            sheet.append_row(SHEET_COLUMNS)
        return sheet


class GoogleSheetsSync(SheetSyncInterface):
    """
    Sync backend that rewrites a worksheet with one row per record.
    """

    name = "google_sheets"

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def record_to_row(record: TransactionRecord) -> list:
        """Convert a record to a spreadsheet row in SHEET_COLUMNS order."""
        return [
            str(record.id) if record.id is not None else "",
            record.date.isoformat() if record.date else "",
            record.name or "",
            float(record.amount) if record.amount is not None else "",
            record.category.value if record.category else "",
            record.counterparty or "",
            record.purpose or "",
        ]

    def _write(self, records: list[TransactionRecord]) -> None:
        sheet = self._client.get_receipts_sheet()
        rows = [SHEET_COLUMNS] + [self.record_to_row(r) for r in records]
        sheet.clear()
        sheet.update(range_name="A1", values=rows, value_input_option="RAW")

    async def push(self, records: list[TransactionRecord]) -> bool:
        try:
            await asyncio.to_thread(self._write, records)
            return True
        except SyncError:
            raise
        except Exception as e:
            raise SyncError(f"Failed to write records to Google Sheets: {e}")
