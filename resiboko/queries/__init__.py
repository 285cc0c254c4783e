"""Summary queries package."""

from resiboko.queries.summary import (
    UNCATEGORIZED,
    CategoryTotal,
    Period,
    Summary,
    aggregate_by_category,
    filter_records,
    period_title,
    quarter_start,
    summarize,
    week_range,
)

__all__ = [
    "UNCATEGORIZED",
    "CategoryTotal",
    "Period",
    "Summary",
    "aggregate_by_category",
    "filter_records",
    "period_title",
    "quarter_start",
    "summarize",
    "week_range",
]
