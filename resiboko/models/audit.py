"""
Audit Models for ResiboKo

Each capture, save, delete, question, export and sync emits one event.
The trail gives:
1. Traceability of every save, delete, export and sync
2. Debugging information when the AI or a backend misbehaves
3. A way to reconstruct what happened to a liquidation report

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every user-triggered action has its own event type.
    """
    # Capture and extraction
    RECEIPT_ANALYZED = "receipt_analyzed"
    EXTRACTION_FAILED = "extraction_failed"
    YEAR_MISMATCH_REJECTED = "year_mismatch_rejected"

    # Review and persistence
    RECORD_SAVED = "record_saved"
    SAVE_REJECTED = "save_rejected"
    DRAFT_DISCARDED = "draft_discarded"
    RECORD_DELETED = "record_deleted"

    # Insights
    QUERY_ANSWERED = "query_answered"
    ANALYSIS_FAILED = "analysis_failed"

    # Reporting
    EXPORT_GENERATED = "export_generated"
    EXPORT_UNAVAILABLE = "export_unavailable"

    # Sync
    SYNC_COMPLETED = "sync_completed"
    SYNC_FAILED = "sync_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Serialized to one JSON log line by AuditLogger.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which record is this about?
    entity_id: Optional[int] = Field(
        default=None,
        description="ID of the transaction record this event relates to"
    )

    # Links the events of one capture or report action
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one capture-review-save cycle)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Flatten to JSON-safe values for the structlog event.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    One constructor per event type, so call sites only pass the facts.

    Usage:
        event = AuditEventBuilder.record_saved(record_id, name, amount, correlation_id)
        event = AuditEventBuilder.sync_failed("apps_script", str(error))
    """

    @staticmethod
    def receipt_analyzed(
        source: str,
        category: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_ANALYZED,
            correlation_id=correlation_id,
            description=f"Receipt analyzed from {source}",
            details={
                "source": source,
                "category": category,
            },
            is_user_action=True,
        )

    @staticmethod
    def extraction_failed(
        source: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"Extraction from {source} failed",
            details={"source": source},
            error_message=error_message,
        )

    @staticmethod
    def year_mismatch_rejected(
        receipt_year: int,
        current_year: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.YEAR_MISMATCH_REJECTED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Receipt from {receipt_year} rejected (current year {current_year})",
            details={
                "receipt_year": receipt_year,
                "current_year": current_year,
            },
        )

    @staticmethod
    def record_saved(
        record_id: int,
        name: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_SAVED,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Record saved: {name} - ₱{amount}",
            details={
                "name": name,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def save_rejected(
        missing_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_REJECTED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description="Save rejected: record is incomplete",
            details={"missing_fields": missing_fields},
            is_user_action=True,
        )

    @staticmethod
    def draft_discarded(
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DRAFT_DISCARDED,
            correlation_id=correlation_id,
            description="User discarded the draft record",
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(
        record_id: int,
        removed: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            entity_id=record_id,
            description=f"Record deleted ({removed} removed)",
            details={"removed": removed},
            is_user_action=True,
        )

    @staticmethod
    def query_answered(
        query: str,
        record_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.QUERY_ANSWERED,
            correlation_id=correlation_id,
            description=f"Query answered over {record_count} records",
            details={
                "query": query[:200],
                "record_count": record_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def analysis_failed(
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ANALYSIS_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description="Spending analysis failed",
            error_message=error_message,
        )

    @staticmethod
    def export_generated(
        export_type: str,
        period: str,
        file_name: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_GENERATED,
            description=f"{export_type.upper()} export generated: {file_name}",
            details={
                "export_type": export_type,
                "period": period,
                "file_name": file_name,
            },
            is_user_action=True,
        )

    @staticmethod
    def export_unavailable(
        export_type: str,
        period: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_UNAVAILABLE,
            severity=AuditSeverity.WARNING,
            description=f"{export_type.upper()} export not available for {period}",
            details={
                "export_type": export_type,
                "period": period,
            },
            is_user_action=True,
        )

    @staticmethod
    def sync_completed(
        backend: str,
        record_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_COMPLETED,
            description=f"Synced {record_count} records via {backend}",
            details={
                "backend": backend,
                "record_count": record_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def sync_failed(
        backend: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Sync via {backend} failed",
            details={"backend": backend},
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
