import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from finance_tracker.domain.enums import Category, TransactionType


def new_transaction_id() -> str:
    """Generate an opaque unique identifier for a transaction"""
    return uuid.uuid4().hex


@dataclass
class Transaction:
    """Core domain model representing a single transaction"""
    date: datetime
    merchant: str
    amount: Decimal
    type: TransactionType = TransactionType.SPENDING
    category: Category = Category.OTHER
    id: str = field(default_factory=new_transaction_id)

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    @property
    def signed_amount(self) -> Decimal:
        """Return amount with sign for net calculations"""
        return self.amount if self.is_income else -self.amount

    def __repr__(self):
        sign = "+" if self.is_income else "-"
        return (
            f"Transaction({self.date.date()}, {self.merchant[:30]}, "
            f"{sign}${self.amount}, {self.type.value})"
        )
