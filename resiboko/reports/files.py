"""
Export file models and shared formatting helpers.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class ExportFile(BaseModel):
    """A generated file, ready to be offered as a download."""

    file_name: str
    mime_type: str
    content: bytes = Field(repr=False)


class ExportResult(BaseModel):
    """
    Outcome of an export request.

    Either `file` is set, or `notice` explains why no file was made.
    A notice is not an error; the UI shows it as information.
    """

    file: Optional[ExportFile] = None
    notice: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.file is not None


def plain_amount(amount: Optional[Decimal]) -> str:
    """Amount as a plain decimal string: 50, 12.5, 0."""
    if amount is None:
        return "0"
    return format(amount.normalize(), "f")


def format_currency(amount: Optional[Decimal], symbol: str = "₱") -> str:
    """Amount with currency symbol and thousands separator: ₱1,234.50"""
    return f"{symbol}{(amount or Decimal('0')):,.2f}"
