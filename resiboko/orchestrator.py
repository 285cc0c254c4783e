"""
Main Orchestrator for ResiboKo

This module ties together all the components and defines the
end-to-end flows for:
1. Receipt Capture (image/voice → Gemini → year check → review → save)
2. Insights (question + all records → Kuya Claims answer)
3. Reports (period summary → CSV/PDF export, spreadsheet sync)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No record persists without the user pressing Save
- No incomplete record is ever persisted
- Every step is audited

Flows are stateless over the record list. Each operation takes the
current list and returns the new one; the Streamlit session is the only
place that holds it.
"""

from datetime import date
from typing import Optional
from uuid import UUID

import structlog

from resiboko.agents import (
    AnalysisError,
    ExtractionError,
    InsightsAgent,
    ReceiptExtractionAgent,
)
from resiboko.audit import AuditLogger, create_correlation_id
from resiboko.config import Settings, get_settings
from resiboko.models.transaction import CaptureSource, TransactionRecord
from resiboko.queries import Period, Summary, summarize
from resiboko.reports import ExportFile, ExportResult, export_csv, export_pdf
from resiboko.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    RecordStore,
    StorageError,
    delete_record,
    insert_record,
    new_record_id,
)
from resiboko.services.sync import (
    SheetSyncInterface,
    SyncConfigurationError,
    SyncError,
    create_sync_backend,
)
from resiboko.validation import (
    IncompleteRecordError,
    TransactionValidator,
    UploadTooLargeError,
    YearMismatchError,
)


logger = structlog.get_logger(__name__)


class ReceiptCaptureFlow:
    """
    Orchestrates the receipt capture flow.

    Flow:
    1. Capture → image bytes, audio bytes, or a manual draft
    2. Extract → Gemini fills the six fields (draft, not saved)
    3. Year check → drafts from another year are rejected
    4. Review → Present to user (PAUSE - user edits and confirms)
    5. Save → completeness check, insert, persist

    The system NEVER auto-saves.
    """

    def __init__(
        self,
        record_store: RecordStore,
        extraction_agent: Optional[ReceiptExtractionAgent] = None,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._record_store = record_store
        self._extraction_agent = extraction_agent
        self._validator = validator or TransactionValidator()
        self._audit_logger = audit_logger

    def _agent(self) -> ReceiptExtractionAgent:
        # Built on first use so the app starts without a Gemini key
        if self._extraction_agent is None:
            try:
                self._extraction_agent = ReceiptExtractionAgent()
            except Exception as e:
                raise ExtractionError(f"Gemini is not available: {e}") from e
        return self._extraction_agent

    def load(self) -> list[TransactionRecord]:
        """Rehydrate the saved records."""
        return self._record_store.load()

    async def _checked(
        self,
        draft: TransactionRecord,
        source: CaptureSource,
        correlation_id: UUID,
        today: Optional[date],
    ) -> TransactionRecord:
        try:
            self._validator.check_year(draft, today=today)
        except YearMismatchError as e:
            if self._audit_logger:
                await self._audit_logger.log_year_mismatch(
                    receipt_year=e.receipt_year,
                    current_year=e.current_year,
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_receipt_analyzed(
                source=source.value,
                category=draft.category.value if draft.category else None,
                correlation_id=correlation_id,
            )
        return draft

    async def _failed(
        self,
        source: CaptureSource,
        error: ExtractionError,
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_extraction_failed(
                source=source.value,
                error_message=str(error),
                correlation_id=correlation_id,
            )

    async def _check_size(
        self,
        payload: bytes,
        source: CaptureSource,
        correlation_id: UUID,
    ) -> None:
        try:
            self._validator.check_upload_size(len(payload))
        except UploadTooLargeError as e:
            if self._audit_logger:
                await self._audit_logger.log_extraction_failed(
                    source=source.value,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

    async def analyze_image(
        self,
        image_bytes: bytes,
        mime_type: str,
        source: CaptureSource = CaptureSource.IMAGE,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> TransactionRecord:
        """
        Extract a draft from an uploaded or camera image.

        Raises:
            UploadTooLargeError: If the image is over the size limit
            ExtractionError: If Gemini fails or returns malformed data
            YearMismatchError: If the receipt is from another year
        """
        correlation_id = correlation_id or create_correlation_id()
        await self._check_size(image_bytes, source, correlation_id)
        try:
            draft = await self._agent().extract_from_image(image_bytes, mime_type)
        except ExtractionError as e:
            await self._failed(source, e, correlation_id)
            raise
        return await self._checked(draft, source, correlation_id, today)

    async def analyze_audio(
        self,
        audio_bytes: bytes,
        mime_type: str,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> TransactionRecord:
        """
        Extract a draft from a voice note.

        Raises:
            UploadTooLargeError: If the recording is over the size limit
            ExtractionError: If Gemini fails or returns malformed data
            YearMismatchError: If the spoken date is in another year
        """
        correlation_id = correlation_id or create_correlation_id()
        await self._check_size(audio_bytes, CaptureSource.AUDIO, correlation_id)
        try:
            draft = await self._agent().extract_from_audio(audio_bytes, mime_type, today=today)
        except ExtractionError as e:
            await self._failed(CaptureSource.AUDIO, e, correlation_id)
            raise
        return await self._checked(draft, CaptureSource.AUDIO, correlation_id, today)

    async def save(
        self,
        records: list[TransactionRecord],
        draft: TransactionRecord,
        correlation_id: Optional[UUID] = None,
    ) -> list[TransactionRecord]:
        """
        Save a reviewed draft.

        CRITICAL: This is called ONLY after the user presses Save.

        Returns:
            The new record list (persisted)

        Raises:
            IncompleteRecordError: If name, amount, date or category is missing.
                The list is left unchanged.
        """
        try:
            self._validator.check_complete(draft)
        except IncompleteRecordError as e:
            if self._audit_logger:
                await self._audit_logger.log_save_rejected(
                    missing_fields=e.missing_fields,
                    correlation_id=correlation_id,
                )
            raise

        record_id = new_record_id()
        updated = insert_record(records, draft, record_id=record_id)
        await self._persist(updated, correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_record_saved(
                record_id=record_id,
                name=draft.name,
                amount=str(draft.amount),
                correlation_id=correlation_id,
            )
        return updated

    async def _persist(
        self,
        records: list[TransactionRecord],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        # The list stays usable for the session even if the write fails
        if not self._record_store.persist(records) and self._audit_logger:
            await self._audit_logger.log_error(
                error_type="storage_write_failed",
                error_message="Could not write the record list to local storage",
                details={"record_count": len(records)},
                correlation_id=correlation_id,
            )

    async def discard(self, correlation_id: Optional[UUID] = None) -> None:
        """Record that the user dropped the draft without saving."""
        if self._audit_logger:
            await self._audit_logger.log_draft_discarded(correlation_id=correlation_id)

    async def delete(
        self,
        records: list[TransactionRecord],
        record_id: int,
    ) -> list[TransactionRecord]:
        """Delete by id, persist, and return the new list."""
        updated = delete_record(records, record_id)
        await self._persist(updated)

        if self._audit_logger:
            await self._audit_logger.log_record_deleted(
                record_id=record_id,
                removed=len(records) - len(updated),
            )
        return updated


class InsightsFlow:
    """
    Orchestrates the "Ask Kuya Claims" flow.

    The whole record list is sent with the question; the answer text
    is returned as-is for the markup renderer.
    """

    def __init__(
        self,
        insights_agent: Optional[InsightsAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._insights_agent = insights_agent
        self._audit_logger = audit_logger

    def _agent(self) -> InsightsAgent:
        if self._insights_agent is None:
            try:
                self._insights_agent = InsightsAgent()
            except Exception as e:
                raise AnalysisError(f"Gemini is not available: {e}") from e
        return self._insights_agent

    async def ask(
        self,
        records: list[TransactionRecord],
        query: str,
        correlation_id: Optional[UUID] = None,
    ) -> str:
        """
        Answer a question about the records.

        Raises:
            ValueError: If the query is blank
            AnalysisError: If Gemini fails
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            answer = await self._agent().analyze(records, query)
        except AnalysisError as e:
            if self._audit_logger:
                await self._audit_logger.log_analysis_failed(
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_query_answered(
                query=query,
                record_count=len(records),
                correlation_id=correlation_id,
            )
        return answer


class ReportFlow:
    """
    Orchestrates summaries, exports and spreadsheet sync.
    """

    def __init__(
        self,
        sync_backend: Optional[SheetSyncInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._sync_backend = sync_backend
        self._audit_logger = audit_logger

    @property
    def can_sync(self) -> bool:
        return self._sync_backend is not None

    def summarize(
        self,
        records: list[TransactionRecord],
        period: Period,
        today: Optional[date] = None,
    ) -> Summary:
        return summarize(records, period, today)

    async def export_csv(self, summary: Summary, today: Optional[date] = None) -> ExportFile:
        export = export_csv(summary, today)
        if self._audit_logger:
            await self._audit_logger.log_export("csv", summary.period.value, export.file_name)
        return export

    async def export_pdf(self, summary: Summary, today: Optional[date] = None) -> ExportResult:
        """PDF liquidation report; a notice instead of a file outside the All view."""
        result = export_pdf(summary, today)
        if self._audit_logger:
            await self._audit_logger.log_export(
                "pdf",
                summary.period.value,
                result.file.file_name if result.ok else None,
            )
        return result

    async def sync(self, records: list[TransactionRecord]) -> bool:
        """
        Push the full record list to the spreadsheet.

        Raises:
            SyncConfigurationError: If no sync backend is configured
            SyncError: If the push fails
        """
        if self._sync_backend is None:
            raise SyncConfigurationError("Spreadsheet sync is not configured")

        backend = self._sync_backend.name
        try:
            result = await self._sync_backend.push(records)
        except SyncError as e:
            if self._audit_logger:
                await self._audit_logger.log_sync_failed(backend, str(e))
            raise

        if self._audit_logger:
            await self._audit_logger.log_sync_completed(backend, len(records))
        return result


def create_app_components(
    use_storage: bool = True,
    settings: Optional[Settings] = None,
) -> tuple[ReceiptCaptureFlow, InsightsFlow, ReportFlow, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the local JSON file store.
                    Set to False for a session-only in-memory store.
        settings: Settings override; defaults to get_settings()

    Returns:
        (capture_flow, insights_flow, report_flow, audit_logger)
    """
    settings = settings or get_settings()
    audit_logger = AuditLogger()
    storage_settings = settings.storage
    app_settings = settings.app

    storage = None
    if use_storage:
        file_storage = JsonFileStorage(storage_settings.storage_path)
        try:
            file_storage.check_writable()
            storage = file_storage
        except StorageError as e:
            # File store not available - continue in memory
            logger.warning("local_storage_unavailable", error=str(e))
    if storage is None:
        storage = InMemoryStorage()

    record_store = RecordStore(storage, key=storage_settings.records_key)

    sync_backend = None
    try:
        sync_backend = create_sync_backend(settings)
    except SyncConfigurationError as e:
        logger.info("sync_not_configured", reason=str(e))

    capture_flow = ReceiptCaptureFlow(
        record_store=record_store,
        validator=TransactionValidator(
            restrict_to_current_year=app_settings.restrict_to_current_year,
            max_upload_bytes=app_settings.max_upload_size_bytes,
        ),
        audit_logger=audit_logger,
    )
    insights_flow = InsightsFlow(audit_logger=audit_logger)
    report_flow = ReportFlow(sync_backend=sync_backend, audit_logger=audit_logger)

    return capture_flow, insights_flow, report_flow, audit_logger
