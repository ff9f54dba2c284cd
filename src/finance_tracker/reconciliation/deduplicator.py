"""
Duplicate suppression for imported transaction batches.

Imports can overlap (re-scanning the same statement, or a statement period
that covers an already imported paystub), so a candidate whose
(day, amount, merchant) triple is already known gets dropped. This is an
exact-match filter: near-duplicates with a different merchant spelling survive.
"""
from decimal import Decimal
from typing import Iterable, List, Sequence

from finance_tracker.domain.models import Transaction

# Amounts closer than one cent are the same amount
AMOUNT_TOLERANCE = Decimal("0.01")


def normalize_merchant(merchant: str) -> str:
    """Lower-case and trim a merchant name for exact comparison"""
    return merchant.strip().lower()


def is_duplicate(candidate: Transaction, existing: Transaction) -> bool:
    """
    Check whether two transactions describe the same real-world record.

    Args:
        candidate: Newly extracted transaction
        existing: Transaction already in the history

    Returns:
        True if day, amount (within a cent) and normalized merchant all match
    """
    return (
        candidate.date.date() == existing.date.date()
        and abs(candidate.amount - existing.amount) < AMOUNT_TOLERANCE
        and normalize_merchant(candidate.merchant) == normalize_merchant(existing.merchant)
    )


def dedupe(
    existing: Iterable[Transaction],
    incoming: Sequence[Transaction],
) -> List[Transaction]:
    """
    Filter out incoming transactions already present in the history.

    Args:
        existing: Current transaction history (read only)
        incoming: Candidate batch, in import order

    Returns:
        The subsequence of incoming with no duplicate in existing
    """
    history = list(existing)
    return [
        txn for txn in incoming
        if not any(is_duplicate(txn, known) for known in history)
    ]
