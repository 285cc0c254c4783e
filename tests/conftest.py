"""
Shared fixtures.

No test talks to Gemini, Google Sheets or an Apps Script endpoint:
models are faked and requests.post is monkeypatched per test.
"""

from datetime import date
from decimal import Decimal

import pytest

from resiboko.models.transaction import TransactionCategory, TransactionRecord
from resiboko.services.storage import InMemoryStorage, RecordStore


TODAY = date(2026, 10, 18)  # a Sunday


class FakeResponse:
    def __init__(self, text: str):
        self.text = text


class FakeModel:
    """Stands in for genai.GenerativeModel."""

    def __init__(self, text: str = "{}", error: Exception = None):
        self.text = text
        self.error = error
        self.calls = []

    async def generate_content_async(self, contents, **kwargs):
        self.calls.append((contents, kwargs))
        if self.error is not None:
            raise self.error
        return FakeResponse(self.text)


def make_record(
    name="Shell Gas",
    amount="500",
    txn_date=date(2026, 10, 15),
    category=TransactionCategory.TRANSPORTATION,
    counterparty=None,
    purpose="Site tripping",
    record_id=None,
) -> TransactionRecord:
    return TransactionRecord(
        id=record_id,
        name=name,
        amount=Decimal(amount) if amount is not None else None,
        date=txn_date,
        category=category,
        counterparty=counterparty,
        purpose=purpose,
    )


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def record_store(storage):
    return RecordStore(storage)


@pytest.fixture
def sample_records():
    """Three saved records, newest first."""
    return [
        make_record("Shell Gas", "500", date(2026, 10, 15), record_id=3,
                    counterparty="Ayala Land"),
        make_record("Starbucks", "320", date(2026, 10, 12),
                    TransactionCategory.FOOD_AND_DRINK, counterparty="SM Prime",
                    purpose=None, record_id=2),
        make_record("NLEX Toll", "89.5", date(2026, 7, 3), record_id=1),
    ]
