from dataclasses import dataclass, field
from typing import List, Sequence

from finance_tracker.domain.enums import TransactionType
from finance_tracker.domain.models import Transaction
from finance_tracker.logging_setup import get_logger
from finance_tracker.reconciliation.deduplicator import dedupe
from finance_tracker.reconciliation.recurrence import classify_recurring

logger = get_logger(__name__)


@dataclass
class MergeResult:
    """Outcome of merging one imported batch into the history"""
    history: List[Transaction]
    accepted: List[Transaction] = field(default_factory=list)
    skipped: List[Transaction] = field(default_factory=list)
    upgraded: List[Transaction] = field(default_factory=list)


def merge(
    history: Sequence[Transaction],
    batch: Sequence[Transaction],
) -> MergeResult:
    """
    Merge an imported batch into the transaction history.

    Duplicates are dropped, recurring expenses are promoted to fixed bills,
    and the surviving records are prepended to the history in batch order.

    Args:
        history: Current transactions (snapshot, not modified)
        batch: Newly imported transactions

    Returns:
        MergeResult with the new history and the accepted/skipped records
    """
    deduped = dedupe(history, batch)
    classified = classify_recurring(history, deduped)

    kept = {id(txn) for txn in deduped}
    skipped = [txn for txn in batch if id(txn) not in kept]

    # classify_recurring preserves order, so pairs line up
    upgraded = [
        after for before, after in zip(deduped, classified)
        if after.type == TransactionType.FIXED_BILL
        and before.type != TransactionType.FIXED_BILL
    ]

    logger.debug(
        "Merged batch of %d: %d accepted (%d recurring), %d duplicates",
        len(batch), len(classified), len(upgraded), len(skipped),
    )

    return MergeResult(
        history=classified + list(history),
        accepted=classified,
        skipped=skipped,
        upgraded=upgraded,
    )
