from abc import ABC, abstractmethod
from typing import List, Sequence

from finance_tracker.domain.models import Transaction

class TransactionNotFoundError(LookupError):
    """No stored transaction has the requested ID"""

class TransactionRepository(ABC):
    """
    Storage backend for the transaction history.

    The history is read and written as one list. save_all replaces the
    stored set atomically and load_all returns it in the saved order,
    newest-first display order being the store's concern.
    """

    @abstractmethod
    def load_all(self) -> List[Transaction]:
        ...

    @abstractmethod
    def save_all(self, transactions: Sequence[Transaction]) -> None:
        ...
