"""
Recurring bill detection.

A single extracted record cannot know that it recurs, so this runs as a
second pass over the accumulated history: an expense is promoted to a fixed
bill when a non-income record for the same merchant (fuzzy match) and a
similar amount exists in a different calendar month.
"""
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, List, Sequence

from finance_tracker.domain.enums import TransactionType
from finance_tracker.domain.models import Transaction

# Variable-rate bills drift month to month but stay within this band
RECURRENCE_AMOUNT_TOLERANCE = Decimal("10.00")

# Checked in order, at most one is stripped
TRANSFER_PREFIXES = ("zelle to ", "zelle transfer to ", "transfer to ")


def clean_merchant_name(merchant: str) -> str:
    """
    Normalize a merchant name for fuzzy comparison.

    Example:
        >>> clean_merchant_name("Zelle to John Doe ")
        'john doe'
    """
    name = merchant.lower()
    for prefix in TRANSFER_PREFIXES:
        if name.startswith(prefix):
            name = name[len(prefix):]
            break
    return name.strip()


def names_match(current_name: str, previous_name: str) -> bool:
    """Bidirectional substring match between two cleaned merchant names"""
    return (
        previous_name == current_name
        or current_name in previous_name
        or previous_name in current_name
    )


def is_recurrence_evidence(candidate: Transaction, previous: Transaction) -> bool:
    """
    Check whether a previous transaction shows the candidate is recurring.

    The month comparison uses the month number only, so January 2024 and
    January 2025 count as the same month.
    """
    if previous.is_income:
        return False

    return (
        names_match(
            clean_merchant_name(candidate.merchant),
            clean_merchant_name(previous.merchant),
        )
        and abs(previous.amount - candidate.amount) < RECURRENCE_AMOUNT_TOLERANCE
        and previous.date.month != candidate.date.month
    )


def classify_recurring(
    existing: Iterable[Transaction],
    incoming: Sequence[Transaction],
) -> List[Transaction]:
    """
    Upgrade incoming expenses to fixed bills when the history shows they recur.

    Income is never reclassified, and a record already typed as a fixed bill
    is never downgraded.

    Args:
        existing: Current transaction history (read only)
        incoming: Deduplicated batch

    Returns:
        The batch in the same order, with upgraded copies where evidence exists
    """
    history = list(existing)
    classified = []

    for txn in incoming:
        if txn.is_income:
            classified.append(txn)
            continue

        if any(is_recurrence_evidence(txn, previous) for previous in history):
            classified.append(replace(txn, type=TransactionType.FIXED_BILL))
        else:
            classified.append(txn)

    return classified
