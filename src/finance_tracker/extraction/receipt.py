from typing import Any, Dict, List

from finance_tracker.domain.models import Transaction
from finance_tracker.extraction.base import DocumentExtractor
from finance_tracker.extraction.records import UNKNOWN_MERCHANT, normalize_record

class ReceiptExtractor(DocumentExtractor):
    """
    Extractor for receipt photos and scans.

    A receipt yields one expense. The receipt carries no category or type,
    so the merchant is categorized and the type is suggested from that
    category, the same way a manual entry is.
    """

    def _request(self, data: bytes, mime_type: str) -> Dict[str, Any]:
        return self.client.parse_receipt(data, mime_type)

    def _to_transactions(self, raw: Dict[str, Any]) -> List[Transaction]:
        record = dict(raw)
        merchant = str(record.get("merchant") or "").strip()

        if merchant:
            category = self.categorization_engine.categorize(merchant)
            record["category"] = category.value
            record["type"] = self.categorization_engine.suggest_type(category).value
        else:
            record["merchant"] = UNKNOWN_MERCHANT

        return [normalize_record(record)]
