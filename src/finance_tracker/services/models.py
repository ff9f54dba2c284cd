"""
Service layer models - DTOs for service operations.

These models represent the results of service operations, not domain entities.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List

from finance_tracker.domain.enums import Category, TransactionType
from finance_tracker.domain.models import Transaction

@dataclass
class ImportResult:
    """
    Result of importing a document.

    Provides detailed feedback about what happened during import:
    - How many transactions were extracted
    - Which ones were new vs duplicates
    - Which new ones were recognized as recurring fixed bills
    - Which ones the user excluded before committing
    """
    filepath: str
    kind: str
    extracted: List[Transaction] = field(default_factory=list)
    imported: List[Transaction] = field(default_factory=list)
    skipped: List[Transaction] = field(default_factory=list)
    upgraded: List[Transaction] = field(default_factory=list)
    excluded: List[Transaction] = field(default_factory=list)
    dry_run: bool = False

    @property
    def total_extracted(self) -> int:
        return len(self.extracted)

    def status_of(self, transaction: Transaction) -> str:
        """One of new, recurring, duplicate or excluded for an extracted row"""
        if any(t.id == transaction.id for t in self.excluded):
            return "excluded"
        if any(t.id == transaction.id for t in self.skipped):
            return "duplicate"
        if any(t.id == transaction.id for t in self.upgraded):
            return "recurring"
        return "new"

    @property
    def new_transactions(self) -> int:
        return len(self.imported)

    @property
    def duplicates_skipped(self) -> int:
        return len(self.skipped)

    @property
    def success(self) -> bool:
        """Import is successful if at least one transaction is imported"""
        return self.new_transactions > 0

    def __str__(self) -> str:
        "Human-readable summary"
        lines = [
            f"Import summary for {self.kind}:",
            f" 📄 File: {self.filepath}",
            f" ✅ New transactions: {self.new_transactions}",
            f" 🔁 Recognized as fixed bills: {len(self.upgraded)}",
            f" ⏭️ Duplicates Skipped: {self.duplicates_skipped}",
            f" 🚫 Excluded: {len(self.excluded)}",
        ]
        return "\n".join(lines)

@dataclass
class MonthlySummary:
    """
    Summary of transactions for a specific month.

    Income against fixed and flexible expenses; spending and flexible bills
    both count as flexible.
    """

    year: int
    month: int
    transactions: List[Transaction] = field(default_factory=list)

    @property
    def start_date(self) -> date:
        """First day of the month"""
        return date(self.year, self.month, 1)

    def _total(self, *types: TransactionType) -> Decimal:
        return sum(
            (t.amount for t in self.transactions if t.type in types),
            Decimal("0"),
        )

    @property
    def total_income(self) -> Decimal:
        return self._total(TransactionType.INCOME)

    @property
    def total_fixed(self) -> Decimal:
        return self._total(TransactionType.FIXED_BILL)

    @property
    def total_flexible(self) -> Decimal:
        return self._total(TransactionType.FLEXIBLE_BILL, TransactionType.SPENDING)

    @property
    def total_expenses(self) -> Decimal:
        return self.total_fixed + self.total_flexible

    @property
    def balance(self) -> Decimal:
        """Income minus all expenses"""
        return self.total_income - self.total_expenses

    @property
    def total_transactions(self) -> int:
        return len(self.transactions)

    @property
    def income(self) -> List[Transaction]:
        return [t for t in self.transactions if t.is_income]

    @property
    def fixed_bills(self) -> List[Transaction]:
        return [t for t in self.transactions if t.type == TransactionType.FIXED_BILL]

    @property
    def money_spent(self) -> List[Transaction]:
        """Every expense of the month, newest first"""
        return sorted(
            (t for t in self.transactions if not t.is_income),
            key=lambda t: t.date,
            reverse=True,
        )

    @property
    def expenses_by_category(self) -> List[tuple[Category, Decimal]]:
        """Expense totals per category, largest first"""
        totals = defaultdict(Decimal)
        for txn in self.transactions:
            if not txn.is_income:
                totals[txn.category] += txn.amount
        return sorted(totals.items(), key=lambda x: x[1], reverse=True)

    def __str__(self) -> str:
        """Human-readable summary"""
        month_name = self.start_date.strftime("%B %Y")

        lines = [
            f"📊 Monthly Summary - {month_name}",
            f"",
            f"Transactions: {self.total_transactions}",
            f"  💰 Income:   ${self.total_income:,.2f}",
            f"  🏠 Fixed:    ${self.total_fixed:,.2f}",
            f"  🛒 Flexible: ${self.total_flexible:,.2f}",
            f"  {'📈' if self.balance >= 0 else '📉'} Balance:  ${self.balance:,.2f}",
        ]

        if self.expenses_by_category:
            lines.append(f"\nTop Spending Categories:")
            for category, amount in self.expenses_by_category[:5]:
                lines.append(f"  • {category.value}: ${amount:,.2f}")

        return "\n".join(lines)
