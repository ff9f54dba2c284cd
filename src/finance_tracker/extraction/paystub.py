from typing import Any, Dict, List

from finance_tracker.domain.enums import TransactionType
from finance_tracker.domain.models import Transaction
from finance_tracker.extraction.base import DocumentExtractor
from finance_tracker.extraction.records import normalize_record, parse_amount
from finance_tracker.logging_setup import get_logger

logger = get_logger(__name__)

DEFAULT_PAYER = "Employer"

class PaystubExtractor(DocumentExtractor):
    """
    Extractor for paystubs.

    A paystub yields one income transaction for the net pay, paid by the
    employer. Without a net pay amount nothing is imported.
    """

    def _request(self, data: bytes, mime_type: str) -> Dict[str, Any]:
        return self.client.analyze_paystub(data, mime_type)

    def _to_transactions(self, raw: Dict[str, Any]) -> List[Transaction]:
        if not parse_amount(raw.get("amount")):
            logger.warning("Paystub has no net pay amount, nothing to import")
            return []

        record = {
            "merchant": raw.get("payer") or raw.get("merchant"),
            "amount": raw.get("amount"),
            "date": raw.get("date"),
            "type": TransactionType.INCOME.value,
        }
        return [normalize_record(record, default_merchant=DEFAULT_PAYER)]
