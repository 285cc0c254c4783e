"""
Audit Logger

DESIGN DECISION: Auditing must never break the user flow. A failed
write makes log() return False and the action carries on.
This provides:
1. Traceability of each capture-review-save cycle
2. Debugging capability when Gemini or sync misbehaves

The audit logger:
- Is async to match the flows that call it
- Logs locally only; records never leave the device through it
- Never raises (a logging failure must not break a save)
- Correlation IDs tie a capture to its save or discard
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from resiboko.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Writes one structured log line per event. Events are also kept in
    memory for the current session so the UI can show recent activity.
    """

    def __init__(self, keep_last: int = 50):
        """
        Args:
            keep_last: How many recent events to keep in memory
        """
        self._logger = structlog.get_logger("resiboko.audit")
        self._keep_last = keep_last
        self._recent: list[AuditEvent] = []

    @property
    def recent_events(self) -> list[AuditEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._recent))

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if local logging failed; never raises.
        """
        self._recent.append(event)
        del self._recent[:-self._keep_last]

        log_dict = event.to_log_dict()
        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False
        return True

    async def log_receipt_analyzed(
        self,
        source: str,
        category: Optional[str],
        correlation_id: UUID,
    ) -> None:
        """Log a successful extraction."""
        await self.log(AuditEventBuilder.receipt_analyzed(
            source=source,
            category=category,
            correlation_id=correlation_id,
        ))

    async def log_extraction_failed(
        self,
        source: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log an extraction failure."""
        await self.log(AuditEventBuilder.extraction_failed(
            source=source,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_year_mismatch(
        self,
        receipt_year: int,
        current_year: int,
        correlation_id: UUID,
    ) -> None:
        """Log a draft dropped for being outside the current year."""
        await self.log(AuditEventBuilder.year_mismatch_rejected(
            receipt_year=receipt_year,
            current_year=current_year,
            correlation_id=correlation_id,
        ))

    async def log_record_saved(
        self,
        record_id: int,
        name: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log record save."""
        await self.log(AuditEventBuilder.record_saved(
            record_id=record_id,
            name=name,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_save_rejected(
        self,
        missing_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a save attempt on an incomplete draft."""
        await self.log(AuditEventBuilder.save_rejected(
            missing_fields=missing_fields,
            correlation_id=correlation_id,
        ))

    async def log_draft_discarded(self, correlation_id: Optional[UUID] = None) -> None:
        await self.log(AuditEventBuilder.draft_discarded(correlation_id=correlation_id))

    async def log_record_deleted(self, record_id: int, removed: int) -> None:
        await self.log(AuditEventBuilder.record_deleted(record_id=record_id, removed=removed))

    async def log_query_answered(
        self,
        query: str,
        record_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log an answered Kuya Claims question."""
        await self.log(AuditEventBuilder.query_answered(
            query=query,
            record_count=record_count,
            correlation_id=correlation_id,
        ))

    async def log_analysis_failed(
        self,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.analysis_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_export(
        self,
        export_type: str,
        period: str,
        file_name: Optional[str],
    ) -> None:
        """Log an export; a missing file name means it was not available."""
        if file_name is None:
            event = AuditEventBuilder.export_unavailable(export_type=export_type, period=period)
        else:
            event = AuditEventBuilder.export_generated(
                export_type=export_type,
                period=period,
                file_name=file_name,
            )
        await self.log(event)

    async def log_sync_completed(self, backend: str, record_count: int) -> None:
        await self.log(AuditEventBuilder.sync_completed(backend=backend, record_count=record_count))

    async def log_sync_failed(self, backend: str, error_message: str) -> None:
        await self.log(AuditEventBuilder.sync_failed(backend=backend, error_message=error_message))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a receipt capture).
    Pass it through all subsequent operations.
    """
    return uuid4()
