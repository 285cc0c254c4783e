"""
Apps Script Sync

Posts the record list as JSON to a Google Apps Script web app, which
writes it into the spreadsheet on its side.

The request is fire-and-forget: once the transport accepts it, the
sync counts as done. The response is only inspected when
verify_response is enabled.
"""

import asyncio
from typing import Optional

import requests
import structlog

from resiboko.models.transaction import TransactionRecord
from resiboko.services.sync.interface import SheetSyncInterface, SyncError


logger = structlog.get_logger(__name__)


class AppsScriptSync(SheetSyncInterface):
    """Sync backend for an Apps Script web app endpoint."""

    name = "apps_script"

    def __init__(
        self,
        url: str,
        verify_response: bool = False,
        timeout: Optional[float] = None,
    ):
        self._url = url
        self._verify_response = verify_response
        self._timeout = timeout

    @staticmethod
    def build_payload(records: list[TransactionRecord]) -> dict:
        """Request body: {"receipts": [...]} with wire field names."""
        return {"receipts": [r.to_storage_dict() for r in records]}

    def _post(self, payload: dict) -> requests.Response:
        return requests.post(
            self._url,
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=self._timeout,
        )

    async def push(self, records: list[TransactionRecord]) -> bool:
        payload = self.build_payload(records)

        try:
            response = await asyncio.to_thread(self._post, payload)
        except requests.RequestException as e:
            raise SyncError(f"Failed to reach sync endpoint: {e}") from e

        if self._verify_response:
            try:
                response.raise_for_status()
            except requests.HTTPError as e:
                raise SyncError(f"Sync endpoint rejected the request: {e}") from e

        logger.info(
            "apps_script_sync_sent",
            record_count=len(records),
            status_code=getattr(response, "status_code", None),
        )
        return True
