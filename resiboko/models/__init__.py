"""
Data Models Package

This package contains all Pydantic models used in ResiboKo.
All data flowing through the system must conform to these schemas.
"""

from resiboko.models.transaction import (
    REQUIRED_FIELDS,
    CaptureSource,
    TransactionCategory,
    TransactionRecord,
)
from resiboko.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "REQUIRED_FIELDS",
    "CaptureSource",
    "TransactionCategory",
    "TransactionRecord",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
