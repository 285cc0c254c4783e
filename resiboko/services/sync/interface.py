"""
Abstract Sync Interface

DESIGN DECISION: Sync is one-way and whole-list. Every push sends the
complete record list; the receiving spreadsheet is overwritten, so the
last push wins. There is no merge, no retry and, unless explicitly
configured, no acknowledgement check.
"""

from abc import ABC, abstractmethod

from resiboko.models.transaction import TransactionRecord


# Column order used by every spreadsheet backend
SHEET_COLUMNS = [
    "id",
    "transaction_date",
    "transaction_name",
    "total_amount",
    "category",
    "client_or_prospect",
    "purpose",
]


class SheetSyncInterface(ABC):
    """
    Abstract interface for pushing records to an external spreadsheet.
    """

    name: str = "sync"

    @abstractmethod
    async def push(self, records: list[TransactionRecord]) -> bool:
        """
        Send the full record list.

        Args:
            records: Every saved record, in display order

        Returns:
            True once the transport accepted the request

        Raises:
            SyncError: If the request could not be sent
        """
        pass


class SyncError(Exception):
    """Base exception for sync operations."""
    pass


class SyncConfigurationError(SyncError):
    """The selected sync backend is missing configuration."""
    pass
