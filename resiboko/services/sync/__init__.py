"""
Sync Services Package

One-way push of the record list to an external spreadsheet.
"""

from typing import Optional

from resiboko.config import Settings, get_settings
from resiboko.services.sync.interface import (
    SHEET_COLUMNS,
    SheetSyncInterface,
    SyncConfigurationError,
    SyncError,
)
from resiboko.services.sync.apps_script import AppsScriptSync
from resiboko.services.sync.google_sheets import GoogleSheetsClient, GoogleSheetsSync


def create_sync_backend(settings: Optional[Settings] = None) -> SheetSyncInterface:
    """
    Build the sync backend selected in SyncSettings.

    Raises:
        SyncConfigurationError: If the backend is missing configuration
    """
    settings = settings or get_settings()
    sync_settings = settings.sync

    if sync_settings.backend == "google_sheets":
        try:
            sheets_settings = settings.google_sheets
        except Exception as e:
            raise SyncConfigurationError(f"Google Sheets is not configured: {e}")
        return GoogleSheetsSync(GoogleSheetsClient(sheets_settings))

    if not sync_settings.apps_script_url:
        raise SyncConfigurationError("SYNC_APPS_SCRIPT_URL is not set")

    return AppsScriptSync(
        url=sync_settings.apps_script_url,
        verify_response=sync_settings.verify_response,
        timeout=sync_settings.timeout_seconds,
    )


__all__ = [
    "SHEET_COLUMNS",
    "AppsScriptSync",
    "GoogleSheetsClient",
    "GoogleSheetsSync",
    "SheetSyncInterface",
    "SyncConfigurationError",
    "SyncError",
    "create_sync_backend",
]
