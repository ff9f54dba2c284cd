import sqlite3
from datetime import datetime
from decimal import Decimal
from typing import List, Sequence

from finance_tracker.database.connection import DatabaseManager
from finance_tracker.domain.enums import Category, TransactionType
from finance_tracker.domain.models import Transaction
from finance_tracker.logging_setup import get_logger
from finance_tracker.repositories.base import TransactionRepository

logger = get_logger(__name__)

class SQLiteTransactionRepository(TransactionRepository):
    """
    SQLite implementation of the TransactionRepository.

    Stores the list wholesale using raw SQL. A position column keeps the
    list order stable across load/save cycles.
    """

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def load_all(self) -> List[Transaction]:
        """Load all transactions in stored order."""
        conn = self.db.get_connection()
        cursor = conn.execute("SELECT * FROM transactions ORDER BY position")
        rows = cursor.fetchall()

        return [self._row_to_transaction(row) for row in rows]

    def save_all(self, transactions: Sequence[Transaction]) -> None:
        """Replace every stored transaction in a single database transaction."""
        with self.db.transaction() as conn:
            conn.execute("DELETE FROM transactions")
            conn.executemany(
                """
                INSERT INTO transactions (
                    id, position, date, merchant, amount, type, category
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        txn.id,
                        position,
                        txn.date.isoformat(),
                        txn.merchant,
                        str(txn.amount), # Store as string for precision
                        txn.type.value,
                        txn.category.value,
                    )
                    for position, txn in enumerate(transactions)
                ],
            )

        logger.debug("Saved %d transactions", len(transactions))

    def _row_to_transaction(self, row: sqlite3.Row) -> Transaction:
        """Convert database row to Transaction object."""
        return Transaction(
            id=row["id"],
            date=datetime.fromisoformat(row["date"]),
            merchant=row["merchant"],
            amount=Decimal(row["amount"]),
            type=TransactionType(row["type"]),
            category=Category.from_label(row["category"]),
        )
