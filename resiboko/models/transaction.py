"""
Core Data Models for ResiboKo

These models define the schemas for all transaction data flowing
through the system. They are designed to:
1. Enforce type safety at runtime
2. Keep the persisted/synced JSON shape stable (wire names)
3. Be serializable for storage, sync and logging

DESIGN DECISION: A single model covers both the transient draft
(anything may be missing) and the saved record (id assigned,
required fields present). Completeness is checked at save time,
not at construction, because the review form edits partial drafts.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionCategory(str, Enum):
    """
    Supported expense categories.

    DESIGN DECISION: The set is closed. Whatever the model returns
    outside of it collapses to OTHER, so a saved record can always be
    grouped and reported.
    """
    FOOD_AND_DRINK = "Food & Drink"
    GROCERIES = "Groceries"
    TRANSPORTATION = "Transportation"
    SHOPPING = "Shopping"
    UTILITIES = "Utilities"
    ENTERTAINMENT = "Entertainment"
    HEALTH_AND_WELLNESS = "Health & Wellness"
    TRAVEL = "Travel"
    OTHER = "Other"

    @classmethod
    def coerce(cls, value: Any) -> "TransactionCategory":
        """Map any value onto the enumeration, falling back to OTHER."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        return cls.OTHER

    @classmethod
    def values(cls) -> list[str]:
        return [category.value for category in cls]


class CaptureSource(str, Enum):
    """Where a draft record came from."""
    IMAGE = "image"
    CAMERA = "camera"
    AUDIO = "audio"
    MANUAL = "manual"


# Fields that must be present before a record may be saved
REQUIRED_FIELDS = ("name", "amount", "date", "category")


# =============================================================================
# CORE TRANSACTION MODEL
# =============================================================================

class TransactionRecord(BaseModel):
    """
    A single expense transaction.

    Field names are the Python-side names; aliases are the wire names
    used in local storage, the sync payload and the AI response schema.

    Either form can be used to construct a record:
        TransactionRecord(name="Shell", amount=500)
        TransactionRecord(transaction_name="Shell", total_amount=500)
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
    )

    id: Optional[int] = Field(
        default=None,
        description="Assigned at save time (epoch milliseconds)"
    )
    name: Optional[str] = Field(
        default=None,
        alias="transaction_name",
        max_length=200,
        description="Merchant or transaction label"
    )
    amount: Optional[Decimal] = Field(
        default=None,
        alias="total_amount",
        ge=0,
        description="Total amount in PHP"
    )
    date: Optional[dt.date] = Field(
        default=None,
        alias="transaction_date",
        description="Calendar date of the transaction"
    )
    category: Optional[TransactionCategory] = Field(
        default=None,
        description="Expense category"
    )
    counterparty: Optional[str] = Field(
        default=None,
        alias="client_or_prospect",
        max_length=200,
        description="Client or prospect the expense was for"
    )
    purpose: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Business justification"
    )

    @field_validator('name', 'counterparty', 'purpose', mode='before')
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Empty strings mean the field was not filled."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_serializer('amount', when_used='json')
    def serialize_amount(self, v: Optional[Decimal]) -> Optional[float]:
        # Stored and synced as a JSON number, not a string
        return float(v) if v is not None else None

    @property
    def is_complete(self) -> bool:
        """Can this record be saved?"""
        return not self.missing_fields()

    @property
    def has_purpose(self) -> bool:
        return self.purpose is not None

    def missing_fields(self) -> list[str]:
        """Names of required fields that are still empty."""
        return [f for f in REQUIRED_FIELDS if getattr(self, f) is None]

    def to_storage_dict(self) -> dict:
        """JSON-ready dict using the wire field names."""
        return self.model_dump(mode="json", by_alias=True)
