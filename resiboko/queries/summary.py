"""
Summary Engine

DESIGN DECISION: Summaries are DETERMINISTIC and pure.
They take the record list and a period, anchored to "today",
and return a Summary. No storage access, no UI state.

Period windows (day granularity):
- Daily:     date >= today
- Weekly:    Monday..Sunday of the current week, both inclusive
- Monthly:   date >= first day of the month
- Quarterly: date >= first day of the Jan/Apr/Jul/Oct quarter
- Yearly:    date >= January 1
- All:       no filtering

For every period except All the filtered records are totalled per
category, in order of first appearance.
"""

from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from resiboko.models.transaction import TransactionRecord


UNCATEGORIZED = "Uncategorized"


class Period(str, Enum):
    """Summary period selector. ALL is the initial selection."""
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    YEARLY = "Yearly"
    ALL = "All"


class CategoryTotal(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str
    total: Decimal


class Summary(BaseModel):
    """
    Result of summarizing records for one period.

    For Period.ALL, `records` holds the records in stored order and
    `totals` is empty. For every other period, `totals` holds one
    entry per category and `records` holds the filtered records the
    totals were computed from.
    """
    period: Period
    title: str
    records: list[TransactionRecord] = Field(default_factory=list)
    totals: list[CategoryTotal] = Field(default_factory=list)

    @property
    def is_all(self) -> bool:
        return self.period == Period.ALL

    @property
    def is_empty(self) -> bool:
        return not (self.records if self.is_all else self.totals)

    @property
    def grand_total(self) -> Decimal:
        if self.is_all:
            return sum((r.amount or Decimal("0") for r in self.records), Decimal("0"))
        return sum((t.total for t in self.totals), Decimal("0"))


def week_range(today: date) -> tuple[date, date]:
    """
    Monday..Sunday of the week containing today.

    Sunday belongs to the week that started the previous Monday.
    """
    start = today - timedelta(days=today.weekday())
    return start, start + timedelta(days=6)


def quarter_start(today: date) -> date:
    """First day of the calendar quarter containing today."""
    return date(today.year, 3 * ((today.month - 1) // 3) + 1, 1)


def quarter_number(today: date) -> int:
    return (today.month - 1) // 3 + 1


def _in_window(record_date: date, period: Period, today: date) -> bool:
    if period == Period.DAILY:
        return record_date >= today
    if period == Period.WEEKLY:
        start, end = week_range(today)
        return start <= record_date <= end
    if period == Period.MONTHLY:
        return record_date >= today.replace(day=1)
    if period == Period.QUARTERLY:
        return record_date >= quarter_start(today)
    if period == Period.YEARLY:
        return record_date >= date(today.year, 1, 1)
    return True


def filter_records(
    records: list[TransactionRecord],
    period: Period,
    today: Optional[date] = None,
) -> list[TransactionRecord]:
    """
    Records that fall into the period window, in their stored order.

    Records without a date never fall into a windowed period.
    """
    if period == Period.ALL:
        return list(records)

    today = today or date.today()
    return [
        r for r in records
        if r.date is not None and _in_window(r.date, period, today)
    ]


def aggregate_by_category(records: list[TransactionRecord]) -> list[CategoryTotal]:
    """
    Total amount per category, in order of first appearance.

    A missing amount counts as zero; a missing category is grouped
    as "Uncategorized".
    """
    totals: dict[str, Decimal] = {}
    for record in records:
        key = record.category.value if record.category else UNCATEGORIZED
        totals[key] = totals.get(key, Decimal("0")) + (record.amount or Decimal("0"))
    return [CategoryTotal(category=k, total=v) for k, v in totals.items()]


def _short_date(d: date) -> str:
    # 10/12/2026, no zero padding
    return f"{d.month}/{d.day}/{d.year}"


def period_title(period: Period, today: Optional[date] = None) -> str:
    """Human-readable description of the resolved window."""
    today = today or date.today()

    if period == Period.DAILY:
        return f"Summary for {today:%B} {today.day}, {today.year}"
    if period == Period.WEEKLY:
        start, end = week_range(today)
        return f"Summary for {_short_date(start)} - {_short_date(end)}"
    if period == Period.MONTHLY:
        return f"Summary for {today:%B} {today.year}"
    if period == Period.QUARTERLY:
        return f"Summary for Q{quarter_number(today)} {today.year}"
    if period == Period.YEARLY:
        return f"Summary for {today.year}"
    return "All Transactions"


def summarize(
    records: list[TransactionRecord],
    period: Period,
    today: Optional[date] = None,
) -> Summary:
    """
    Summarize records for a period.

    Args:
        records: Saved records in stored order
        period: Selected period
        today: Anchor date; defaults to date.today()
    """
    today = today or date.today()
    filtered = filter_records(records, period, today)
    title = period_title(period, today)

    if period == Period.ALL:
        return Summary(period=period, title=title, records=filtered)

    return Summary(
        period=period,
        title=title,
        records=filtered,
        totals=aggregate_by_category(filtered),
    )
