from typing import List, Optional, Sequence, Tuple

from finance_tracker.domain.models import Transaction
from finance_tracker.logging_setup import get_logger
from finance_tracker.reconciliation import MergeResult, merge
from finance_tracker.repositories.base import TransactionNotFoundError, TransactionRepository

logger = get_logger(__name__)

class TransactionStore:
    """
    Owned, versioned in-memory transaction list.

    Loaded wholesale from the repository on init and saved wholesale after
    every mutation. The version counter increments once per mutation.
    Callers must serialize access: merges assume one consistent snapshot.

    Usage:
        store = TransactionStore(repository)
        store.add(transaction)
        result = store.merge(imported)
    """

    def __init__(self, repository: TransactionRepository, autoload: bool = True):
        self.repository = repository
        self._transactions: List[Transaction] = []
        self.version = 0

        if autoload:
            self.load()

    def load(self) -> None:
        """Replace the in-memory list with what the repository holds"""
        self._transactions = self.repository.load_all()
        logger.debug("Loaded %d transactions", len(self._transactions))

    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        """Read-only snapshot in list order"""
        return tuple(self._transactions)

    def sorted_by_date(self) -> List[Transaction]:
        """Transactions sorted newest first, the display order"""
        return sorted(self._transactions, key=lambda t: t.date, reverse=True)

    def get(self, transaction_id: str) -> Optional[Transaction]:
        """Find a transaction by ID, or None if it doesn't exist"""
        for txn in self._transactions:
            if txn.id == transaction_id:
                return txn
        return None

    def add(self, transaction: Transaction) -> Transaction:
        """
        Prepend a single user-entered transaction.

        Single adds skip deduplication and recurrence detection.
        """
        self._commit([transaction] + self._transactions)
        return transaction

    def preview_merge(self, batch: Sequence[Transaction]) -> MergeResult:
        """Compute the merge of an imported batch without saving it"""
        return merge(self._transactions, batch)

    def merge(self, batch: Sequence[Transaction]) -> MergeResult:
        """
        Merge an imported batch into the history and save.

        Returns:
            MergeResult describing accepted, skipped and upgraded records
        """
        result = merge(self._transactions, batch)
        if result.accepted:
            self._commit(result.history)
        return result

    def update(self, transaction: Transaction) -> Transaction:
        """
        Replace the stored transaction with the same ID.

        Raises:
            TransactionNotFoundError: If no transaction has that ID
        """
        for index, txn in enumerate(self._transactions):
            if txn.id == transaction.id:
                updated = list(self._transactions)
                updated[index] = transaction
                self._commit(updated)
                return transaction

        raise TransactionNotFoundError(
            f"Transaction with ID {transaction.id} not found"
        )

    def delete(self, transaction_id: str) -> bool:
        """
        Delete a transaction by ID.

        Returns:
            True if deleted, False if not found
        """
        remaining = [t for t in self._transactions if t.id != transaction_id]
        if len(remaining) == len(self._transactions):
            return False

        self._commit(remaining)
        return True

    def _commit(self, transactions: List[Transaction]) -> None:
        self.repository.save_all(transactions)
        self._transactions = transactions
        self.version += 1

    def __len__(self) -> int:
        return len(self._transactions)
