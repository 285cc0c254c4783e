"""
Transaction Validation

DESIGN DECISION: Validation happens at two distinct points:

UPLOAD CHECK (before anything is sent to the AI):
- Size: photos and voice notes over the configured limit are refused

EXTRACTION CHECK (after the AI returns a draft):
- Year check: receipts dated outside the current year are rejected
  before the user spends time reviewing them

SAVE CHECK (when the user presses Save):
- Completeness: name, amount, date and category must all be present
- Nothing partial is ever persisted

IMPORTANT: Validation NEVER silently fixes issues.
It raises, and the caller shows the message to the user.
"""

from datetime import date
from typing import Optional

from resiboko.config import get_settings
from resiboko.models.transaction import TransactionRecord


class TransactionValidationError(Exception):
    """Base exception for validation failures."""
    pass


class IncompleteRecordError(TransactionValidationError):
    """Record is missing one of the fields required for saving."""

    def __init__(self, missing_fields: list[str]):
        self.missing_fields = missing_fields
        super().__init__("Cannot save incomplete receipt data.")


class YearMismatchError(TransactionValidationError):
    """Extracted receipt is dated outside the current year."""

    def __init__(self, receipt_year: int, current_year: int):
        self.receipt_year = receipt_year
        self.current_year = current_year
        super().__init__(
            f"This receipt is from {receipt_year}. "
            f"Only transactions for the current year ({current_year}) are allowed."
        )


class UploadTooLargeError(TransactionValidationError):
    """Captured file exceeds the upload size limit."""

    def __init__(self, size_bytes: int, limit_bytes: int):
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f"This file is {size_bytes / (1024 * 1024):.1f} MB. "
            f"The limit is {limit_bytes // (1024 * 1024)} MB."
        )


class TransactionValidator:
    """
    Validates transaction drafts before review and before saving.
    """

    def __init__(
        self,
        restrict_to_current_year: Optional[bool] = None,
        max_upload_bytes: Optional[int] = None,
    ):
        """
        Initialize validator.

        Args:
            restrict_to_current_year: Override for the year check.
            max_upload_bytes: Override for the upload size limit.
                Either one left as None is read from AppSettings.
        """
        if restrict_to_current_year is None or max_upload_bytes is None:
            app_settings = get_settings().app
            if restrict_to_current_year is None:
                restrict_to_current_year = app_settings.restrict_to_current_year
            if max_upload_bytes is None:
                max_upload_bytes = app_settings.max_upload_size_bytes
        self._restrict_year = restrict_to_current_year
        self._max_upload_bytes = max_upload_bytes

    def check_upload_size(self, size_bytes: int) -> None:
        """Raise UploadTooLargeError if a captured file is over the limit."""
        if size_bytes > self._max_upload_bytes:
            raise UploadTooLargeError(size_bytes, self._max_upload_bytes)

    def check_complete(self, record: TransactionRecord) -> None:
        """Raise IncompleteRecordError unless the record can be saved."""
        missing = record.missing_fields()
        if missing:
            raise IncompleteRecordError(missing)

    def check_year(
        self,
        record: TransactionRecord,
        today: Optional[date] = None,
    ) -> None:
        """
        Raise YearMismatchError if the record is dated outside this year.

        Records without a date pass; the user fills the date in review.
        """
        if not self._restrict_year or record.date is None:
            return

        current_year = (today or date.today()).year
        if record.date.year != current_year:
            raise YearMismatchError(record.date.year, current_year)
