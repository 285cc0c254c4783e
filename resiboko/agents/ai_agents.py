"""
AI Agents for ResiboKo

DESIGN DECISION: All field-level intelligence is delegated to Gemini.
Our code only formats requests and validates/defaults responses.

CRITICAL BOUNDARIES:

1. RECEIPT EXTRACTION AGENT:
   - CAN: Read an image or a voice note into the six transaction fields
   - CANNOT: Save anything (the user reviews every draft)
   - CANNOT: Invent a category outside the closed list (collapses to Other)
   - MUST: Leave fields empty rather than guess a wrong type

2. INSIGHTS AGENT ("Kuya Claims"):
   - CAN: Answer free-text questions over the full record table
   - CAN: Point out claims likely to be rejected by a manager
   - Returns plain text; the UI renders a tiny markup subset

Failures are never retried. They are wrapped in ExtractionError or
AnalysisError and the UI offers the user a retry.
"""

import copy
import json
import math
from datetime import date
from decimal import Decimal
from typing import Any, Optional

import google.generativeai as genai
import structlog

from resiboko.config import GeminiSettings, get_settings
from resiboko.models.transaction import TransactionCategory, TransactionRecord


logger = structlog.get_logger(__name__)


class AIServiceError(Exception):
    """Base exception for AI service failures."""
    pass


class ExtractionError(AIServiceError):
    """Receipt extraction failed (transport, model or malformed JSON)."""
    pass


class AnalysisError(AIServiceError):
    """Spending analysis failed."""
    pass


CATEGORY_LIST = ", ".join(TransactionCategory.values())

EXPENSE_HINTS = (
    "Also extract the client/prospect name if mentioned, and the purpose of "
    "the expense (e.g., tripping, client coffee, toll, or parking). If any "
    "information is not found, return null for that field."
)


def receipt_schema(date_description: str) -> dict:
    """
    Response schema for structured extraction.

    Field names are the wire names of TransactionRecord.
    """
    return {
        "type": "OBJECT",
        "properties": {
            "transaction_name": {
                "type": "STRING",
                "description": "The name of the merchant or transaction.",
            },
            "total_amount": {
                "type": "NUMBER",
                "description": "The final total amount of the transaction.",
            },
            "transaction_date": {
                "type": "STRING",
                "description": date_description,
            },
            "category": {
                "type": "STRING",
                "description": f"The category of the purchase. Must be one of: {CATEGORY_LIST}.",
            },
            "client_or_prospect": {
                "type": "STRING",
                "description": "The client or prospect name associated with the expense.",
            },
            "purpose": {
                "type": "STRING",
                "description": "The purpose of the expense, e.g., tripping, client coffee, toll.",
            },
        },
    }


def _clean_text(value: Any, max_length: int) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value[:max_length] if value else None


def _clean_amount(value: Any) -> Optional[Decimal]:
    # bool is an int subclass; JSON true is not an amount
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return Decimal(str(value))


def _clean_date(value: Any) -> Optional[date]:
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def record_from_response(
    data: dict,
    default_date: Optional[date] = None,
) -> TransactionRecord:
    """
    Build a draft record from the model's JSON object.

    Every field is defaulted independently:
    - total_amount that is not a non-negative number -> empty
    - category outside the closed list -> Other
    - empty or non-string text -> empty
    - missing or unreadable date -> default_date
    """
    return TransactionRecord(
        name=_clean_text(data.get("transaction_name"), 200),
        amount=_clean_amount(data.get("total_amount")),
        date=_clean_date(data.get("transaction_date")) or default_date,
        category=TransactionCategory.coerce(data.get("category")),
        counterparty=_clean_text(data.get("client_or_prospect"), 200),
        purpose=_clean_text(data.get("purpose"), 500),
    )


RECEIPT_SCHEMA = receipt_schema("The date of the transaction in YYYY-MM-DD format.")


def parse_json_object(text: str) -> dict:
    """
    Parse a structured response.

    Raises:
        ExtractionError: If the text is not a JSON object
    """
    try:
        data = json.loads(text.strip())
    except ValueError as e:
        raise ExtractionError(f"Model returned malformed JSON: {e}") from e
    if not isinstance(data, dict):
        raise ExtractionError("Model returned JSON that is not an object")
    return data


class _GeminiAgent:
    """Shared Gemini model setup."""

    max_output_tokens: Optional[int] = None

    def __init__(
        self,
        model: Optional[Any] = None,
        settings: Optional[GeminiSettings] = None,
    ):
        """
        Args:
            model: Pre-built model exposing generate_content_async.
                   If None, a GenerativeModel is configured from settings.
            settings: Gemini settings; defaults to get_settings().gemini
        """
        if model is not None:
            self._model = model
            return
        self._settings = settings or get_settings().gemini
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self.max_output_tokens or self._settings.max_tokens,
            }
        )


class ReceiptExtractionAgent(_GeminiAgent):
    """
    Turns a receipt photo or a voice note into a draft TransactionRecord.

    BOUNDARIES:
    - NEVER persists data
    - Returns a draft; missing fields stay empty for the user to fill
    """

    max_output_tokens = 512

    async def _extract(
        self,
        prompt: str,
        payload: bytes,
        mime_type: str,
        schema: dict,
    ) -> dict:
        try:
            response = await self._model.generate_content_async(
                [prompt, {"mime_type": mime_type, "data": payload}],
                generation_config={
                    "response_mime_type": "application/json",
                    "response_schema": copy.deepcopy(schema),
                },
            )
            text = response.text
        except Exception as e:
            logger.error("gemini_extraction_failed", mime_type=mime_type, error=str(e))
            raise ExtractionError(f"Gemini request failed: {e}") from e

        return parse_json_object(text)

    async def extract_from_image(
        self,
        image_bytes: bytes,
        mime_type: str = "image/jpeg",
    ) -> TransactionRecord:
        """
        Extract a draft record from a receipt image.

        A missing date stays empty.
        """
        prompt = (
            "Analyze the receipt image and extract the following information. "
            "The transaction date should be in YYYY-MM-DD format. "
            f"For the category, choose the most appropriate one from this list: {CATEGORY_LIST}. "
            f"{EXPENSE_HINTS}"
        )
        data = await self._extract(prompt, image_bytes, mime_type, RECEIPT_SCHEMA)
        return record_from_response(data)

    async def extract_from_audio(
        self,
        audio_bytes: bytes,
        mime_type: str = "audio/wav",
        today: Optional[date] = None,
    ) -> TransactionRecord:
        """
        Extract a draft record from a spoken description.

        Today's date is given to the model for relative phrases
        ("kanina", "yesterday"), and a missing date defaults to it.
        """
        today = today or date.today()
        prompt = (
            "Analyze the following audio and extract the transaction details. "
            f"Today's date is {today.isoformat()}. "
            f"For the category, choose the most appropriate one from this list: {CATEGORY_LIST}. "
            f"{EXPENSE_HINTS}"
        )
        data = await self._extract(
            prompt,
            audio_bytes,
            mime_type,
            receipt_schema(
                f"The date in YYYY-MM-DD format. If the user says 'today', use {today.isoformat()}."
            ),
        )
        return record_from_response(data, default_date=today)


TABLE_HEADER = "Date,Transaction,Amount,Category,Client/Prospect,Purpose"

KUYA_CLAIMS_PROMPT = """
**Persona:** You are "Kuya Claims," an expert and professional liquidation assistant for a field sales agent in the Philippines. Your tone is direct, helpful, and professional, using "Taglish" where it makes sense (e.g., "para aprubado," "baka ma-flag," "sayang," "clear na clear"). Your single goal is to ensure the agent's liquidation report is 100% compliant and gets approved by their manager with zero rejections. All currency is in Philippine Pesos (PHP).

**Objective:** Analyze the user's transaction data based on their query. The user's query is: "{query}".

First, answer the user's query directly.

Second, PROACTIVELY scan all transactions for "Reimbursement Leaks." A "Reimbursement Leak" is any expense that a manager might flag or reject, causing the agent to lose money. Find the top 2-3 most critical risks.

**Reimbursement Leak Categories:**

1.  **"Baka Ma-Flag" (Missing Details):**
    * THIS IS THE #1 RISK. Scan for transactions where 'purpose' or 'client_or_prospect' is 'N/A' or empty.
    * Sum the total amount (₱) of these "incomplete" claims. This is money at risk.

2.  **"Di-Clear" Expenses (Vague Descriptions):**
    * Identify generic transaction names (e.g., '7-Eleven', 'Grab', 'Misc', 'Convenience Store') where the 'purpose' is also generic (e.g., 'Food', 'Transpo').
    * Explain *why* a manager might question this (e.g., "Was this a personal snack or a client treat?").

3.  **"Sayang" Claims (Potential Missed Reimbursements):**
    * If you see many 'Transportation' receipts but no 'Mileage' logs, ask if they used their own car and forgot to claim mileage.
    * If you see "personal-looking" categories like 'Groceries' or 'Shopping', gently warn that these need a very strong business 'purpose' to be approved.

**Output Format (Strictly follow this):**

Start with a direct answer to the user's query: "{query}". Use the '₱' symbol for currency.

Then, if you found any reimbursement leaks, present them using this "card" structure:

---
**Risk #1: [Leak Title - e.g., Incomplete Purpose on 3 Claims 📄]**
* **Observation:** [Simple, non-judgmental data. e.g., "Nakita ko na may 3 transactions (total ₱850) na walang 'purpose' field, like your 'Gas' receipt on Oct 15."]
* **The Risk:** [Explain why this is a problem for reimbursement. e.g., "Managers often flag claims without a clear business purpose. Baka ma-delay or ma-reject ang reimbursement mo dito."]
* **Para Aprubado! (Tip):** [Provide a simple, concrete action. e.g., "Just tap 'edit' on those items and add a quick purpose, like 'Site tripping for Client Ayala' or 'Team meeting.' This makes your liquidation clear na clear!"]
---

End with an encouraging sign-off.

**Example Report (if user asks "How much did I spend on gas?"):**

"You spent a total of **₱4,500 on gas** this month across 5 transactions.

I also scanned your report for any risks, and I found one potential leak:

---
**Risk #1: Missing Client Tags on 2 Claims 👥**
* **Observation:** Nakita ko na yung 'Client Coffee' (₱320) and 'Team Lunch' (₱1,200) transactions mo ay walang naka-tag na 'client_or_prospect'.
* **The Risk:** Your manager might ask *who* these meetings were for before approving the claim. Sayang if it gets delayed!
* **Para Aprubado! (Tip):** Mabilis lang 'to! Just edit those two claims and add the client or team name to the 'Client/Prospect' field. That way, your report is 100% compliant.
---

Great job logging your expenses. Let's get these approved!

**Now, analyze the following transaction data based on the user's query:**
{transactions}
"""


def format_transactions_table(records: list[TransactionRecord]) -> str:
    """
    Comma-separated table of all records for the analysis prompt.

    Absent fields are written as N/A; amounts have two decimals.
    """
    if not records:
        return "No transactions available."

    lines = [TABLE_HEADER]
    for r in records:
        lines.append(",".join([
            r.date.isoformat() if r.date else "N/A",
            r.name or "N/A",
            f"{r.amount:.2f}" if r.amount is not None else "N/A",
            r.category.value if r.category else "N/A",
            r.counterparty or "N/A",
            r.purpose or "N/A",
        ]))
    return "\n".join(lines) + "\n"


def build_analysis_prompt(records: list[TransactionRecord], query: str) -> str:
    return KUYA_CLAIMS_PROMPT.format(
        query=query,
        transactions=format_transactions_table(records),
    )


class InsightsAgent(_GeminiAgent):
    """
    "Kuya Claims": answers questions over the saved records.

    The model sees every record and the user's question, and its
    text answer is returned verbatim - no parsing, no schema.
    """

    max_output_tokens = None

    format_transactions_table = staticmethod(format_transactions_table)

    async def analyze(
        self,
        records: list[TransactionRecord],
        query: str,
    ) -> str:
        """
        Answer a free-text question about the records.

        Raises:
            ValueError: If the query is blank
            AnalysisError: If the model call fails
        """
        if not query or not query.strip():
            raise ValueError("Query must not be empty")

        prompt = build_analysis_prompt(records, query.strip())

        try:
            response = await self._model.generate_content_async(prompt)
            return response.text
        except Exception as e:
            logger.error("gemini_analysis_failed", error=str(e))
            raise AnalysisError(f"Gemini request failed: {e}") from e
