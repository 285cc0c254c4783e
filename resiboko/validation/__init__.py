"""Validation package."""

from resiboko.validation.validator import (
    IncompleteRecordError,
    TransactionValidationError,
    TransactionValidator,
    UploadTooLargeError,
    YearMismatchError,
)

__all__ = [
    "IncompleteRecordError",
    "TransactionValidationError",
    "TransactionValidator",
    "UploadTooLargeError",
    "YearMismatchError",
]
