from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Collection, List, Optional, Sequence, Type

import pandas as pd

from finance_tracker.categorization import CategorizationEngine
from finance_tracker.categorization.rules import resolve_category
from finance_tracker.config.settings import Settings
from finance_tracker.domain.enums import Category, DocumentKind, TransactionType
from finance_tracker.domain.models import Transaction
from finance_tracker.extraction import ExtractorFactory, GeminiClient, MissingAPIKeyError
from finance_tracker.extraction.records import parse_amount, parse_date
from finance_tracker.logging_setup import get_logger
from finance_tracker.repositories.base import TransactionNotFoundError
from finance_tracker.repositories.store import TransactionStore
from finance_tracker.services.models import ImportResult, MonthlySummary

logger = get_logger(__name__)

CSV_COLUMNS = ["Date", "Merchant", "Amount", "Type", "Category", "ID"]
EDITABLE_FIELDS = {"date", "merchant", "amount", "type", "category"}


def _validate_merchant(merchant: str) -> str:
    merchant = (merchant or "").strip()
    if not merchant:
        raise ValueError("Merchant is required")
    return merchant


def _validate_amount(amount) -> Decimal:
    parsed = parse_amount(amount)
    if parsed <= 0:
        raise ValueError(f"Amount must be a positive number, got {amount!r}")
    return parsed


def _category_for_type(transaction_type: TransactionType, category: Category) -> Category:
    """Income is always categorized Income, and only income is"""
    if transaction_type == TransactionType.INCOME:
        return Category.INCOME
    if category == Category.INCOME:
        return Category.OTHER
    return category

class TransactionService:

    def __init__(
        self,
        store: TransactionStore,
        settings: Optional[Settings] = None,
        client: Optional[GeminiClient] = None,
        categorization_engine: Optional[CategorizationEngine] = None,
        extractor_factory: Type[ExtractorFactory] = ExtractorFactory,
    ):
        self.store = store
        self._settings = settings
        self._client = client
        self._categorization_engine = categorization_engine
        self.extractor_factory = extractor_factory

    @property
    def settings(self) -> Settings:
        """Lazy-load settings"""
        if self._settings is None:
            self._settings = Settings.load()
        return self._settings

    @property
    def client(self) -> GeminiClient:
        """
        Lazy-create the Gemini client.

        Raises:
            MissingAPIKeyError: If no API key is configured
        """
        if self._client is None:
            self._client = GeminiClient.from_settings(self.settings)
        return self._client

    @property
    def categorization_engine(self) -> CategorizationEngine:
        """Lazy-load categorization engine, with AI fallback when a key is set"""
        if self._categorization_engine is None:
            try:
                classifier = self.client
            except MissingAPIKeyError:
                logger.warning("No API key configured, categorizing with rules only")
                classifier = None
            self._categorization_engine = CategorizationEngine(classifier=classifier)
        return self._categorization_engine

    def extract_document(self, filepath: Path, kind: DocumentKind | str) -> List[Transaction]:
        """
        Extract transactions from a document without touching the history.

        The rows are pending: callers may review, revise or exclude them
        before handing them to commit_import.

        Returns:
            Extracted transactions in document order, empty if extraction failed
        """
        kind = DocumentKind(kind)

        if not self.extractor_factory.is_loaded():
            self.extractor_factory.load_extractors_from_config()

        extractor = self.extractor_factory.create_extractor(
            kind,
            client=self.client,
            categorization_engine=self.categorization_engine,
        )
        return extractor.extract(filepath)

    def commit_import(
        self,
        filepath: Path,
        kind: DocumentKind | str,
        transactions: Sequence[Transaction],
        dry_run: bool = False,
        exclude: Collection[int] = (),
    ) -> ImportResult:
        """
        Merge reviewed rows into the history.

        Duplicates are skipped and recurring expenses become fixed bills.

        Args:
            filepath: The document the rows came from
            kind: The kind of document
            transactions: Extracted rows, possibly revised, in document order
            dry_run: Compute the merge without saving
            exclude: 1-based row numbers the user deselected

        Raises:
            ValueError: If an excluded row number doesn't exist
        """
        kind = DocumentKind(kind)
        if not transactions:
            return ImportResult(filepath=str(filepath), kind=kind.value, dry_run=dry_run)

        unknown = sorted(n for n in exclude if not 1 <= n <= len(transactions))
        if unknown:
            raise ValueError(
                f"No row {', '.join(map(str, unknown))} to exclude "
                f"({len(transactions)} rows extracted)"
            )

        excluded = [t for n, t in enumerate(transactions, start=1) if n in exclude]
        kept = [t for n, t in enumerate(transactions, start=1) if n not in exclude]

        result = ImportResult(
            filepath=str(filepath),
            kind=kind.value,
            extracted=list(transactions),
            excluded=excluded,
            dry_run=dry_run,
        )
        if not kept:
            return result

        if dry_run:
            merged = self.store.preview_merge(kept)
        else:
            merged = self.store.merge(kept)

        logger.info(
            "Imported %d of %d transactions from %s (%d duplicates, %d fixed bills, %d excluded)",
            len(merged.accepted), len(transactions), filepath,
            len(merged.skipped), len(merged.upgraded), len(excluded),
        )

        result.imported = merged.accepted
        result.skipped = merged.skipped
        result.upgraded = merged.upgraded
        return result

    def import_document(
        self,
        filepath: Path,
        kind: DocumentKind | str,
        dry_run: bool = False,
        exclude: Collection[int] = (),
    ) -> ImportResult:
        """
        Import transactions from a receipt, statement or paystub.

        Extracts, then commits every row not excluded. When extraction
        fails nothing is merged and the history is left untouched.

        Args:
            filepath: The path to the document
            kind: The kind of document
            dry_run: Preview without saving
            exclude: 1-based row numbers to leave out

        Returns:
            An ImportResult.
        """
        transactions = self.extract_document(filepath, kind)
        return self.commit_import(filepath, kind, transactions, dry_run=dry_run, exclude=exclude)

    def revise(self, transaction: Transaction, **changes) -> Transaction:
        """
        Copy of a transaction with validated changes applied.

        Used for stored edits and for pending rows under review alike.

        Raises:
            ValueError: If an unknown field is given, the merchant is
                emptied or the amount is not positive
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot edit fields: {', '.join(sorted(unknown))}")

        if "merchant" in changes:
            changes["merchant"] = _validate_merchant(changes["merchant"])
        if "amount" in changes:
            changes["amount"] = _validate_amount(changes["amount"])
        if "date" in changes:
            changes["date"] = parse_date(changes["date"], default=transaction.date)
        if "type" in changes:
            changes["type"] = TransactionType(changes["type"])
        if isinstance(changes.get("category"), str):
            changes["category"] = resolve_category(changes["category"])

        revised = replace(transaction, **changes)
        return replace(revised, category=_category_for_type(revised.type, revised.category))

    def add_transaction(
        self,
        merchant: str,
        amount: Decimal | float | str,
        date: Optional[datetime] = None,
        transaction_type: Optional[TransactionType] = None,
        category: Optional[Category] = None,
        auto_categorize: bool = False,
    ) -> Transaction:
        """
        Add a single manually entered transaction.

        Single adds are prepended as-is, without duplicate or recurrence checks.

        Args:
            merchant: Vendor, or payer for income
            amount: Positive amount
            date: When it happened, defaults to now
            transaction_type: Defaults to the type suggested by the category
                when auto-categorizing, otherwise spending
            category: Defaults to the categorized merchant when
                auto-categorizing, otherwise Other
            auto_categorize: Categorize the merchant with rules and AI

        Raises:
            ValueError: If merchant is empty or amount is not positive
        """
        merchant = _validate_merchant(merchant)
        parsed_amount = _validate_amount(amount)

        if auto_categorize and category is None:
            category = self.categorization_engine.categorize(merchant)
            if transaction_type is None:
                transaction_type = self.categorization_engine.suggest_type(category)

        transaction_type = transaction_type or TransactionType.SPENDING
        category = _category_for_type(transaction_type, category or Category.OTHER)

        transaction = Transaction(
            date=parse_date(date),
            merchant=merchant,
            amount=parsed_amount,
            type=transaction_type,
            category=category,
        )
        return self.store.add(transaction)

    def update_transaction(self, transaction_id: str, **changes) -> Transaction:
        """
        Edit a transaction in place, keeping its ID.

        Args:
            transaction_id: ID of the transaction to edit
            **changes: Any of date, merchant, amount, type, category

        Raises:
            TransactionNotFoundError: If transaction doesn't exist
            ValueError: If an unknown field is given, the merchant is
                emptied or the amount is not positive
        """
        existing = self.store.get(transaction_id)
        if existing is None:
            raise TransactionNotFoundError(
                f"Transaction with ID {transaction_id} not found"
            )

        return self.store.update(self.revise(existing, **changes))

    def delete_transaction(self, transaction_id: str) -> bool:
        """Delete a transaction, True if it existed"""
        return self.store.delete(transaction_id)

    def get_transactions(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> List[Transaction]:
        """
        Query transactions with optional filters, newest first.

        Args:
            year: Only transactions from this year
            month: Only transactions from this month (1-12)
            transaction_type: Only transactions of this type

        Example:
            ### Get all January 2025 fixed bills
            bills = service.get_transactions(
                year=2025,
                month=1,
                transaction_type=TransactionType.FIXED_BILL
            )
        """
        transactions = self.store.sorted_by_date()

        if year is not None:
            transactions = [t for t in transactions if t.date.year == year]

        if month is not None:
            transactions = [t for t in transactions if t.date.month == month]

        if transaction_type is not None:
            transactions = [t for t in transactions if t.type == transaction_type]

        return transactions

    def get_monthly_summary(self, year: int, month: int) -> MonthlySummary:
        """Get summary for a specific month"""
        return MonthlySummary(
            year=year,
            month=month,
            transactions=self.get_transactions(year=year, month=month),
        )

    def export_csv(
        self,
        path: Path,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> int:
        """
        Export transactions to a CSV file.

        A month export needs both year and month; year alone exports that
        year; no filter exports the full history.

        Returns:
            Number of transactions written (nothing is written when zero)
        """
        transactions = self.get_transactions(year=year, month=month)
        if not transactions:
            return 0

        df = pd.DataFrame(
            [
                [
                    t.date.date().isoformat(),
                    t.merchant,
                    f"{t.amount:.2f}",
                    t.type.value,
                    t.category.value,
                    t.id,
                ]
                for t in transactions
            ],
            columns=CSV_COLUMNS,
        )

        Path(path).parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(path, index=False)

        logger.info("Exported %d transactions to %s", len(transactions), path)
        return len(transactions)

    def suggest_banks(self, query: str) -> List[str]:
        """Ask the AI service for bank names matching a query"""
        return self.client.suggest_banks(query)
