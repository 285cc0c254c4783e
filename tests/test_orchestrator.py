"""
Integration tests for the capture, insights and report flows.

Gemini and the sync endpoint are faked; storage is in memory.
"""

import asyncio
import json
from datetime import date

import pytest

from conftest import FakeModel, make_record
from resiboko.agents import AnalysisError, ExtractionError, InsightsAgent, ReceiptExtractionAgent
from resiboko.audit import AuditLogger
from resiboko.config import Settings
from resiboko.models.audit import AuditEventType
from resiboko.models.transaction import CaptureSource, TransactionCategory, TransactionRecord
from resiboko.orchestrator import InsightsFlow, ReceiptCaptureFlow, ReportFlow, create_app_components
from resiboko.queries import Period
from resiboko.reports import PDF_ONLY_FOR_ALL_NOTICE
from resiboko.services.storage import InMemoryStorage, RecordStore, StorageWriteError
from resiboko.services.sync import SheetSyncInterface, SyncConfigurationError, SyncError
from resiboko.validation import (
    IncompleteRecordError,
    TransactionValidator,
    UploadTooLargeError,
    YearMismatchError,
)


class FakeSync(SheetSyncInterface):
    name = "fake"

    def __init__(self, error=None):
        self.error = error
        self.pushed = []

    async def push(self, records):
        self.pushed.append(list(records))
        if self.error is not None:
            raise self.error
        return True


def event_types(audit_logger: AuditLogger) -> list[AuditEventType]:
    return [e.event_type for e in reversed(audit_logger.recent_events)]


def capture_flow(record_store, model=None, audit_logger=None) -> ReceiptCaptureFlow:
    return ReceiptCaptureFlow(
        record_store=record_store,
        extraction_agent=ReceiptExtractionAgent(model=model or FakeModel()),
        validator=TransactionValidator(restrict_to_current_year=True),
        audit_logger=audit_logger,
    )


class TestReceiptCaptureFlow:
    """Tests for capture, review and save."""

    def test_analyze_image_returns_draft(self, record_store, today):
        """Test a successful image extraction returns an unsaved draft."""
        model = FakeModel(json.dumps({
            "transaction_name": "Shell",
            "total_amount": 500,
            "transaction_date": "2026-10-15",
            "category": "Transportation",
        }))
        audit = AuditLogger()
        flow = capture_flow(record_store, model, audit)

        draft = asyncio.run(flow.analyze_image(b"img", "image/jpeg", today=today))

        assert draft.name == "Shell"
        assert draft.id is None
        assert record_store.load() == []
        assert event_types(audit) == [AuditEventType.RECEIPT_ANALYZED]
        assert audit.recent_events[0].details["source"] == CaptureSource.IMAGE.value

    def test_year_mismatch_rejected(self, record_store, today):
        """Test a receipt from another year is rejected and audited."""
        model = FakeModel('{"transaction_name": "Shell", "transaction_date": "2025-12-30"}')
        audit = AuditLogger()
        flow = capture_flow(record_store, model, audit)

        with pytest.raises(YearMismatchError, match="This receipt is from 2025"):
            asyncio.run(flow.analyze_image(b"img", "image/jpeg", today=today))
        assert event_types(audit) == [AuditEventType.YEAR_MISMATCH_REJECTED]

    def test_year_check_applies_to_audio(self, record_store, today):
        """Test a spoken date from another year is rejected too."""
        model = FakeModel('{"transaction_date": "2024-01-05"}')
        flow = capture_flow(record_store, model)

        with pytest.raises(YearMismatchError):
            asyncio.run(flow.analyze_audio(b"wav", "audio/wav", today=today))

    def test_audio_defaults_to_today(self, record_store, today):
        """Test a voice note without a date is dated today."""
        flow = capture_flow(record_store, FakeModel('{"transaction_name": "Jeep"}'))
        draft = asyncio.run(flow.analyze_audio(b"wav", "audio/wav", today=today))
        assert draft.date == today

    def test_extraction_failure_audited(self, record_store):
        """Test extraction errors are audited and re-raised."""
        audit = AuditLogger()
        flow = capture_flow(record_store, FakeModel("not json"), audit)

        with pytest.raises(ExtractionError):
            asyncio.run(flow.analyze_image(b"img", "image/png", source=CaptureSource.CAMERA))
        assert event_types(audit) == [AuditEventType.EXTRACTION_FAILED]
        assert audit.recent_events[0].details["source"] == "camera"

    def test_save_persists_and_sorts(self, record_store, sample_records):
        """Test saving inserts in date order and persists the list."""
        flow = capture_flow(record_store)
        draft = make_record("Mercury Drug", "215", date(2026, 10, 13),
                            TransactionCategory.HEALTH_AND_WELLNESS)

        updated = asyncio.run(flow.save(sample_records, draft))

        assert [r.name for r in updated] == ["Shell Gas", "Mercury Drug", "Starbucks", "NLEX Toll"]
        assert updated[1].id is not None
        assert [r.id for r in record_store.load()] == [r.id for r in updated]

    def test_incomplete_manual_entry_not_saved(self, record_store, sample_records):
        """Test a manual entry missing category fails and is not in the list."""
        audit = AuditLogger()
        flow = capture_flow(record_store, audit_logger=audit)
        draft = TransactionRecord(name="Toll", amount=50, date=date(2026, 10, 18))

        with pytest.raises(IncompleteRecordError, match="Cannot save incomplete receipt data."):
            asyncio.run(flow.save(sample_records, draft))

        assert len(sample_records) == 3
        assert record_store.load() == []
        assert event_types(audit) == [AuditEventType.SAVE_REJECTED]

    def test_delete_persists(self, record_store, sample_records):
        """Test delete removes the record and persists the rest."""
        audit = AuditLogger()
        flow = capture_flow(record_store, audit_logger=audit)

        updated = asyncio.run(flow.delete(sample_records, 2))

        assert [r.id for r in updated] == [3, 1]
        assert [r.id for r in flow.load()] == [3, 1]
        assert audit.recent_events[0].details["removed"] == 1

    def test_discard_audited(self, record_store):
        """Test discarding a draft only writes an audit event."""
        audit = AuditLogger()
        flow = capture_flow(record_store, audit_logger=audit)
        asyncio.run(flow.discard())
        assert event_types(audit) == [AuditEventType.DRAFT_DISCARDED]
        assert record_store.load() == []


class TestInsightsFlow:
    """Tests for the Ask Kuya Claims flow."""

    def test_ask_returns_answer(self, sample_records):
        """Test the answer text is passed through and audited."""
        audit = AuditLogger()
        flow = InsightsFlow(InsightsAgent(model=FakeModel("Clear na clear!")), audit)

        answer = asyncio.run(flow.ask(sample_records, "Are my claims ready for submission?"))

        assert answer == "Clear na clear!"
        assert event_types(audit) == [AuditEventType.QUERY_ANSWERED]

    def test_ask_failure(self, sample_records):
        """Test analysis failures are audited and re-raised."""
        audit = AuditLogger()
        flow = InsightsFlow(InsightsAgent(model=FakeModel(error=RuntimeError("boom"))), audit)

        with pytest.raises(AnalysisError):
            asyncio.run(flow.ask(sample_records, "Any issues?"))
        assert event_types(audit) == [AuditEventType.ANALYSIS_FAILED]


class TestReportFlow:
    """Tests for exports and sync."""

    def test_pdf_notice_outside_all(self, sample_records, today):
        """Test a PDF request under Monthly gives the notice and is audited."""
        audit = AuditLogger()
        flow = ReportFlow(audit_logger=audit)
        summary = flow.summarize(sample_records, Period.MONTHLY, today)

        result = asyncio.run(flow.export_pdf(summary, today))

        assert result.notice == PDF_ONLY_FOR_ALL_NOTICE
        assert event_types(audit) == [AuditEventType.EXPORT_UNAVAILABLE]

    def test_csv_export_audited(self, sample_records, today):
        """Test a CSV export is audited with its file name."""
        audit = AuditLogger()
        flow = ReportFlow(audit_logger=audit)
        summary = flow.summarize(sample_records, Period.ALL, today)

        export = asyncio.run(flow.export_csv(summary, today))

        assert export.file_name == "ResiboKo_Export_All_2026-10-18.csv"
        assert audit.recent_events[0].details["file_name"] == export.file_name

    def test_sync_pushes_full_list(self, sample_records):
        """Test sync sends every record in one push."""
        backend = FakeSync()
        audit = AuditLogger()
        flow = ReportFlow(sync_backend=backend, audit_logger=audit)

        assert asyncio.run(flow.sync(sample_records)) is True
        assert backend.pushed == [sample_records]
        assert event_types(audit) == [AuditEventType.SYNC_COMPLETED]

    def test_sync_failure_not_retried(self, sample_records):
        """Test a failed sync is audited, raised and not retried."""
        backend = FakeSync(error=SyncError("endpoint down"))
        audit = AuditLogger()
        flow = ReportFlow(sync_backend=backend, audit_logger=audit)

        with pytest.raises(SyncError):
            asyncio.run(flow.sync(sample_records))
        assert len(backend.pushed) == 1
        assert event_types(audit) == [AuditEventType.SYNC_FAILED]

    def test_sync_not_configured(self, sample_records):
        """Test sync without a backend raises a configuration error."""
        flow = ReportFlow()
        assert flow.can_sync is False
        with pytest.raises(SyncConfigurationError):
            asyncio.run(flow.sync(sample_records))


class TestCreateAppComponents:
    """Tests for the component factory."""

    def test_wires_flows_without_sync(self, monkeypatch, tmp_path):
        """Test the factory builds working flows when sync is not configured."""
        monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path))
        monkeypatch.delenv("SYNC_BACKEND", raising=False)
        monkeypatch.delenv("SYNC_APPS_SCRIPT_URL", raising=False)

        capture, insights, report, audit = create_app_components(settings=Settings())

        assert isinstance(capture, ReceiptCaptureFlow)
        assert isinstance(insights, InsightsFlow)
        assert report.can_sync is False
        assert capture.load() == []

        asyncio.run(capture.save([], make_record()))
        assert (tmp_path / "storage.json").exists()
        assert event_types(audit) == [AuditEventType.RECORD_SAVED]

    def test_records_survive_restart(self, monkeypatch, tmp_path):
        """Test records saved by one set of components load in the next."""
        monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path))
        first, _, _, _ = create_app_components(settings=Settings())
        saved = asyncio.run(first.save([], make_record("Jollibee", "185")))

        second, _, _, _ = create_app_components(settings=Settings())

        assert [r.id for r in second.load()] == [saved[0].id]

    def test_in_memory_when_storage_disabled(self, monkeypatch, tmp_path):
        """Test use_storage=False keeps records off disk."""
        monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path))
        capture, _, _, _ = create_app_components(use_storage=False, settings=Settings())
        asyncio.run(capture.save([], make_record()))
        assert not (tmp_path / "storage.json").exists()

    def test_unwritable_data_dir_falls_back_to_memory(self, monkeypatch, tmp_path):
        """Test records stay in memory when the data directory cannot be created."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        monkeypatch.setenv("STORAGE_DATA_DIR", str(blocker / "data"))

        capture, _, _, _ = create_app_components(settings=Settings())
        saved = asyncio.run(capture.save([], make_record()))

        assert len(saved) == 1
        assert [r.id for r in capture.load()] == [saved[0].id]
        assert blocker.read_text() == "not a directory"


class TestGeminiNotConfigured:
    """Tests for flows built without a Gemini key."""

    def test_capture_raises_extraction_error(self, monkeypatch, tmp_path, record_store):
        """Test a missing API key surfaces as an audited ExtractionError."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        audit = AuditLogger()
        flow = ReceiptCaptureFlow(
            record_store=record_store,
            validator=TransactionValidator(restrict_to_current_year=True),
            audit_logger=audit,
        )

        with pytest.raises(ExtractionError, match="Gemini is not available"):
            asyncio.run(flow.analyze_image(b"img", "image/jpeg"))
        with pytest.raises(ExtractionError):
            asyncio.run(flow.analyze_audio(b"wav", "audio/wav"))
        assert event_types(audit) == [AuditEventType.EXTRACTION_FAILED] * 2

    def test_insights_raises_analysis_error(self, monkeypatch, tmp_path, sample_records):
        """Test a missing API key surfaces as an audited AnalysisError."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        audit = AuditLogger()

        with pytest.raises(AnalysisError, match="Gemini is not available"):
            asyncio.run(InsightsFlow(audit_logger=audit).ask(sample_records, "Any issues?"))
        assert event_types(audit) == [AuditEventType.ANALYSIS_FAILED]


class FailingStorage(InMemoryStorage):
    def set(self, key, value):
        raise StorageWriteError("disk full")


class TestUploadAndStorageFailures:
    """Tests for oversized captures and failed writes."""

    def test_oversized_image_rejected_before_extraction(self, record_store):
        """Test a file over the limit never reaches Gemini."""
        model = FakeModel('{"transaction_name": "Shell"}')
        audit = AuditLogger()
        flow = ReceiptCaptureFlow(
            record_store=record_store,
            extraction_agent=ReceiptExtractionAgent(model=model),
            validator=TransactionValidator(restrict_to_current_year=True, max_upload_bytes=10),
            audit_logger=audit,
        )

        with pytest.raises(UploadTooLargeError):
            asyncio.run(flow.analyze_image(b"x" * 11, "image/jpeg"))
        with pytest.raises(UploadTooLargeError):
            asyncio.run(flow.analyze_audio(b"x" * 11, "audio/wav"))

        assert model.calls == []
        assert event_types(audit) == [AuditEventType.EXTRACTION_FAILED] * 2

    def test_write_failure_audited(self, sample_records):
        """Test a save that cannot be persisted still returns the list and is audited."""
        audit = AuditLogger()
        flow = ReceiptCaptureFlow(
            record_store=RecordStore(FailingStorage()),
            validator=TransactionValidator(restrict_to_current_year=True),
            audit_logger=audit,
        )
        draft = make_record("Jollibee", "185")

        updated = asyncio.run(flow.save(sample_records, draft))

        assert len(updated) == 4
        assert event_types(audit) == [AuditEventType.SYSTEM_ERROR, AuditEventType.RECORD_SAVED]
        error_event = audit.recent_events[1]
        assert error_event.details["record_count"] == 4
        assert "storage_write_failed" in error_event.description

    def test_delete_write_failure_audited(self, sample_records):
        """Test a delete that cannot be persisted is audited too."""
        audit = AuditLogger()
        flow = ReceiptCaptureFlow(
            record_store=RecordStore(FailingStorage()),
            validator=TransactionValidator(restrict_to_current_year=True),
            audit_logger=audit,
        )
        asyncio.run(flow.delete(sample_records, 3))
        assert event_types(audit) == [AuditEventType.SYSTEM_ERROR, AuditEventType.RECORD_DELETED]
