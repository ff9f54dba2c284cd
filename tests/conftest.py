import pytest
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Sequence

from finance_tracker.domain.enums import Category, TransactionType
from finance_tracker.domain.models import Transaction
from finance_tracker.repositories.base import TransactionRepository


class InMemoryTransactionRepository(TransactionRepository):
    """Repository double that keeps saved lists in memory"""

    def __init__(self, transactions: Sequence[Transaction] = ()):
        self.saved: List[Transaction] = list(transactions)
        self.save_count = 0

    def load_all(self) -> List[Transaction]:
        return list(self.saved)

    def save_all(self, transactions: Sequence[Transaction]) -> None:
        self.saved = list(transactions)
        self.save_count += 1


@pytest.fixture
def make_transaction() -> Callable[..., Transaction]:
    """Build transactions from compact literals"""

    def _make(
        merchant: str = "Netflix",
        amount: str | float = "15.99",
        date: str = "2024-03-01",
        type: str = "spending",
        category: Category = Category.OTHER,
    ) -> Transaction:
        return Transaction(
            date=datetime.fromisoformat(date),
            merchant=merchant,
            amount=Decimal(str(amount)),
            type=TransactionType(type),
            category=category,
        )

    return _make


@pytest.fixture
def memory_repository() -> InMemoryTransactionRepository:
    return InMemoryTransactionRepository()
