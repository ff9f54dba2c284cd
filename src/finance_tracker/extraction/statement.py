from typing import Any, Dict, List

from finance_tracker.domain.models import Transaction
from finance_tracker.extraction.base import DocumentExtractor
from finance_tracker.extraction.records import normalize_record
from finance_tracker.logging_setup import get_logger

logger = get_logger(__name__)

class StatementExtractor(DocumentExtractor):
    """
    Extractor for bank statements (PDF or images).

    The AI service infers type and category per row, reading transfer memos
    so rent paid over Zelle can already arrive as a fixed bill.
    """

    def _request(self, data: bytes, mime_type: str) -> List[Dict[str, Any]]:
        return self.client.analyze_statement(data, mime_type)

    def _to_transactions(self, raw: List[Any]) -> List[Transaction]:
        transactions = []
        for row in raw:
            if not isinstance(row, dict):
                logger.warning("Skipping statement row that is not an object: %r", row)
                continue
            transactions.append(normalize_record(row))
        return transactions
