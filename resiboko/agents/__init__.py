"""AI Agents package."""

from resiboko.agents.ai_agents import (
    AIServiceError,
    AnalysisError,
    ExtractionError,
    InsightsAgent,
    ReceiptExtractionAgent,
    format_transactions_table,
    record_from_response,
)
from resiboko.agents.markup import MarkupBlock, Span, render_analysis, to_html

__all__ = [
    "AIServiceError",
    "AnalysisError",
    "ExtractionError",
    "InsightsAgent",
    "ReceiptExtractionAgent",
    "format_transactions_table",
    "record_from_response",
    "MarkupBlock",
    "Span",
    "render_analysis",
    "to_html",
]
