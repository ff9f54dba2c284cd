"""
Normalization of untrusted records returned by the AI extraction service.

Records are partial and unvalidated: missing fields are defaulted rather than
rejected, so the user can fix them before confirming an import.
"""
import math
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from finance_tracker.domain.enums import Category, TransactionType
from finance_tracker.domain.models import Transaction, new_transaction_id

UNKNOWN_MERCHANT = "Unknown"


def parse_amount(value: Any) -> Decimal:
    """
    Coerce an extracted amount to a non-negative Decimal.

    Non-numeric values become zero. The sign is dropped since the
    transaction type carries it.
    """
    if isinstance(value, bool) or value is None:
        return Decimal("0")

    if isinstance(value, float) and not math.isfinite(value):
        return Decimal("0")

    if isinstance(value, str):
        value = value.replace("$", "").replace(",", "").strip()

    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")

    if not amount.is_finite():
        return Decimal("0")

    return abs(amount)


def parse_date(value: Any, default: Optional[datetime] = None) -> datetime:
    """
    Parse an ISO-8601 date or timestamp.

    Timezone-aware values are converted to naive local time so every stored
    date compares with every other. Unparseable values fall back to
    `default`, or now.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return default or datetime.now()
    else:
        return default or datetime.now()

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_type(value: Any, default: TransactionType) -> TransactionType:
    """Resolve a transaction type label, falling back to `default`"""
    if isinstance(value, TransactionType):
        return value
    if isinstance(value, str):
        try:
            return TransactionType(value.strip().lower())
        except ValueError:
            pass
    return default


def normalize_record(
    raw: Mapping[str, Any],
    default_type: TransactionType = TransactionType.SPENDING,
    default_merchant: str = UNKNOWN_MERCHANT,
) -> Transaction:
    """
    Build a Transaction from an extracted record.

    Args:
        raw: Record with any of merchant, amount, date, type, category
            (an id in the record is ignored, a fresh one is assigned)
        default_type: Type to use when the record has none (or an unknown one)
        default_merchant: Merchant to use when the record has none

    Returns:
        A Transaction with every field populated
    """
    merchant = str(raw.get("merchant") or "").strip() or default_merchant
    txn_type = parse_type(raw.get("type"), default_type)

    if txn_type == TransactionType.INCOME:
        category = Category.INCOME
    else:
        category = Category.from_label(raw.get("category"))

    return Transaction(
        id=new_transaction_id(),
        date=parse_date(raw.get("date")),
        merchant=merchant,
        amount=parse_amount(raw.get("amount")),
        type=txn_type,
        category=category,
    )
