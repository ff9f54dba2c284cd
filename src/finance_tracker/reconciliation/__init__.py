"""
Reconciliation of imported transaction batches with the existing history.

Quick Start:
    >>> from finance_tracker.reconciliation import merge
    >>>
    >>> result = merge(history, batch)
    >>> history = result.history
"""
from finance_tracker.reconciliation.deduplicator import dedupe, is_duplicate
from finance_tracker.reconciliation.recurrence import (
    classify_recurring,
    clean_merchant_name,
    is_recurrence_evidence,
)
from finance_tracker.reconciliation.merge import MergeResult, merge

__all__ = [
    "dedupe",
    "is_duplicate",
    "classify_recurring",
    "clean_merchant_name",
    "is_recurrence_evidence",
    "MergeResult",
    "merge",
]
