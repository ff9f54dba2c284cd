"""
Gemini client for merchant classification and document extraction.

Every response is requested as JSON and treated as untrusted: callers
validate and default the parsed content.
"""
import json
from typing import Any, Dict, List, Optional

import google.generativeai as genai

from finance_tracker.config.settings import Settings
from finance_tracker.domain.enums import Category
from finance_tracker.logging_setup import get_logger

logger = get_logger(__name__)


class MissingAPIKeyError(Exception):
    """Raised when AI features are used without an API key."""
    pass

class ExtractionError(Exception):
    """Raised when the AI service fails or returns unparsable content."""
    pass


RECEIPT_PROMPT = (
    "Analyze this receipt. Extract the merchant name, total amount and date "
    "(YYYY-MM-DD). Return a JSON object with keys merchant, amount, date."
)

STATEMENT_PROMPT = """
Analyze this bank statement and extract all transactions into a JSON array.
Each element has keys: date (YYYY-MM-DD), merchant, amount, type, category.

For Zelle / P2P transfers the merchant is the RECIPIENT name
("Zelle to John Doe" -> "John Doe"). Read the memo: rent, mortgage, internet
or utilities mean type 'fixed_bill'; dinner or groceries mean 'spending'.

type is one of: income, fixed_bill, flexible_bill, spending.
category is one of: {categories}.
"""

PAYSTUB_PROMPT = (
    "Analyze this paystub. Extract the payer (employer), total net pay amount "
    "and pay date (YYYY-MM-DD). Return a JSON object with keys payer, amount, date."
)

CLASSIFY_PROMPT = """
Classify the merchant "{merchant}" into exactly one of the following categories: {categories}.
If it is a salary or deposit, use 'Income'.
If it is unclear, use 'Other'.
Return a JSON object with a single key "category".
"""

BANKS_PROMPT = (
    'List up to 5 popular banking institutions that match the prefix or name "{query}". '
    "Return a JSON array of names."
)


def parse_json_response(text: Optional[str]) -> Any:
    """
    Parse a JSON response body, tolerating markdown code fences.

    Raises:
        ExtractionError: If the body is empty or not valid JSON
    """
    if not text:
        raise ExtractionError("Empty response from AI service")

    cleaned = text.replace("```json", "").replace("```", "").strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Unparsable response from AI service: {e}") from e


class GeminiClient:
    """
    Thin wrapper over the Gemini API.

    Uses a fast model for merchant classification and a stronger model for
    document reasoning.

    Usage:
        client = GeminiClient.from_settings(Settings.load())
        category = client.classify_merchant("Netflix")
        rows = client.analyze_statement(pdf_bytes, "application/pdf")
    """

    def __init__(
        self,
        api_key: Optional[str],
        classification_model: str = "gemini-2.0-flash",
        document_model: str = "gemini-2.5-pro",
        temperature: float = 0.0,
    ):
        if not api_key:
            raise MissingAPIKeyError(
                "No Gemini API key configured (set GOOGLE_API_KEY)"
            )

        genai.configure(api_key=api_key)
        self.temperature = temperature
        self.classification_model = genai.GenerativeModel(classification_model)
        self.document_model = genai.GenerativeModel(document_model)
        logger.debug(
            "Gemini client ready (classification=%s, documents=%s)",
            classification_model, document_model,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiClient":
        return cls(
            api_key=settings.api_key,
            classification_model=settings.classification_model,
            document_model=settings.document_model,
            temperature=settings.temperature,
        )

    def _generate_json(self, model, contents) -> Any:
        try:
            response = model.generate_content(
                contents,
                generation_config=genai.GenerationConfig(
                    temperature=self.temperature,
                    response_mime_type="application/json",
                ),
            )
            text = response.text
        except Exception as e:
            raise ExtractionError(f"AI service call failed: {e}") from e

        return parse_json_response(text)

    def _generate_from_document(self, data: bytes, mime_type: str, prompt: str) -> Any:
        document_part = {"mime_type": mime_type, "data": data}
        return self._generate_json(self.document_model, [document_part, prompt])

    def classify_merchant(self, merchant: str) -> Category:
        """
        Classify a merchant into one of the fixed categories.

        Returns OTHER on any failure or out-of-set answer.
        """
        categories = ", ".join(c.value for c in Category)
        try:
            data = self._generate_json(
                self.classification_model,
                CLASSIFY_PROMPT.format(merchant=merchant, categories=categories),
            )
        except ExtractionError as e:
            logger.warning("Merchant classification failed for %r: %s", merchant, e)
            return Category.OTHER

        if not isinstance(data, dict):
            return Category.OTHER
        return Category.from_label(data.get("category"))

    def parse_receipt(self, data: bytes, mime_type: str) -> Dict[str, Any]:
        """Extract merchant, amount and date from a receipt image"""
        result = self._generate_from_document(data, mime_type, RECEIPT_PROMPT)
        if not isinstance(result, dict):
            raise ExtractionError("Receipt response is not a JSON object")
        return result

    def analyze_statement(self, data: bytes, mime_type: str) -> List[Dict[str, Any]]:
        """Extract every transaction from a bank statement"""
        categories = ", ".join(c.value for c in Category)
        result = self._generate_from_document(
            data, mime_type, STATEMENT_PROMPT.format(categories=categories)
        )
        if not isinstance(result, list):
            raise ExtractionError("Statement response is not a JSON array")
        return result

    def analyze_paystub(self, data: bytes, mime_type: str) -> Dict[str, Any]:
        """Extract payer, net pay and date from a paystub"""
        result = self._generate_from_document(data, mime_type, PAYSTUB_PROMPT)
        if not isinstance(result, dict):
            raise ExtractionError("Paystub response is not a JSON object")
        return result

    def suggest_banks(self, query: str) -> List[str]:
        """Suggest up to 5 bank names matching a query; empty on failure"""
        if len(query.strip()) < 2:
            return []

        try:
            data = self._generate_json(
                self.classification_model, BANKS_PROMPT.format(query=query)
            )
        except ExtractionError as e:
            logger.warning("Bank suggestions failed for %r: %s", query, e)
            return []

        if not isinstance(data, list):
            return []
        return [str(name) for name in data if name][:5]
