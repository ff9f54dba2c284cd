"""
End-to-end import tests: real extractors, real SQLite storage and a
stubbed Gemini client.
"""
import pytest
from datetime import datetime
from decimal import Decimal

from finance_tracker.database.connection import DatabaseConfig, DatabaseManager
from finance_tracker.domain.enums import Category, DocumentKind, TransactionType
from finance_tracker.extraction import ExtractorFactory
from finance_tracker.repositories.sqlite_transaction_repository import SQLiteTransactionRepository
from finance_tracker.repositories.store import TransactionStore
from finance_tracker.services.transaction_service import TransactionService

STATEMENT_ROWS = [
    {"date": "2024-03-01", "merchant": "Zelle to John Doe", "amount": 1200.00, "type": "spending", "category": "Housing"},
    {"date": "2024-03-03", "merchant": "NETFLIX.COM", "amount": 15.99, "type": "spending", "category": "Entertainment"},
    {"date": "2024-03-15", "merchant": "Acme Corp Payroll", "amount": 3000.00, "type": "income", "category": "Income"},
]


@pytest.fixture(autouse=True)
def reset_factory():
    """Each test loads the registry from config"""
    ExtractorFactory._registry = {}
    ExtractorFactory._locked = False
    yield
    ExtractorFactory._registry = {}
    ExtractorFactory._locked = False


@pytest.fixture
def db(tmp_path):
    with DatabaseManager(DatabaseConfig(tmp_path / "transactions.db")) as db:
        yield db


@pytest.fixture
def client(mocker):
    client = mocker.Mock()
    client.analyze_statement.return_value = STATEMENT_ROWS
    client.classify_merchant.return_value = Category.OTHER
    return client


def build_service(db, client) -> TransactionService:
    store = TransactionStore(SQLiteTransactionRepository(db))
    return TransactionService(store=store, client=client)


@pytest.fixture
def statement(tmp_path):
    path = tmp_path / "march.pdf"
    path.write_bytes(b"%PDF-1.4")
    return path


@pytest.mark.integration
class TestStatementImport:

    def test_first_import_stores_everything(self, db, client, statement):
        service = build_service(db, client)

        result = service.import_document(statement, DocumentKind.STATEMENT)

        assert result.new_transactions == 3
        reloaded = build_service(db, client).get_transactions()
        assert {t.merchant for t in reloaded} == {"Zelle to John Doe", "NETFLIX.COM", "Acme Corp Payroll"}
        payroll = next(t for t in reloaded if t.is_income)
        assert payroll.amount == Decimal("3000.0")
        assert payroll.category == Category.INCOME

    def test_reimport_is_idempotent(self, db, client, statement):
        build_service(db, client).import_document(statement, "statement")

        result = build_service(db, client).import_document(statement, "statement")

        assert result.new_transactions == 0
        assert result.duplicates_skipped == 3
        assert len(build_service(db, client).get_transactions()) == 3

    def test_next_month_rent_becomes_fixed_bill(self, db, client, statement, tmp_path):
        build_service(db, client).import_document(statement, "statement")

        client.analyze_statement.return_value = [
            {"date": "2024-04-01", "merchant": "John Doe", "amount": 1195.00, "type": "spending", "category": "Housing"},
            {"date": "2024-04-15", "merchant": "Acme Corp Payroll", "amount": 3000.00, "type": "income", "category": "Income"},
        ]
        april = tmp_path / "april.pdf"
        april.write_bytes(b"%PDF-1.4")

        result = build_service(db, client).import_document(april, "statement")

        assert result.new_transactions == 2
        assert [t.merchant for t in result.upgraded] == ["John Doe"]
        april_bills = build_service(db, client).get_transactions(
            year=2024, month=4, transaction_type=TransactionType.FIXED_BILL
        )
        assert [t.amount for t in april_bills] == [Decimal("1195.0")]

    def test_failed_extraction_keeps_history(self, db, client, statement):
        from finance_tracker.extraction.client import ExtractionError

        build_service(db, client).import_document(statement, "statement")
        client.analyze_statement.side_effect = ExtractionError("quota exceeded")

        result = build_service(db, client).import_document(statement, "statement")

        assert result.total_extracted == 0
        assert len(build_service(db, client).get_transactions()) == 3


@pytest.mark.integration
class TestPaystubAndReceiptImport:

    def test_paystub_adds_income(self, db, client, statement):
        client.analyze_paystub.return_value = {"payer": "Acme Corp", "amount": 2500, "date": "2024-03-29"}
        service = build_service(db, client)

        result = service.import_document(statement, "paystub")

        assert result.new_transactions == 1
        summary = service.get_monthly_summary(2024, 3)
        assert summary.total_income == Decimal("2500")

    def test_receipt_categorized_by_rules(self, db, client, tmp_path):
        receipt = tmp_path / "receipt.jpg"
        receipt.write_bytes(b"\xff\xd8\xff")
        client.parse_receipt.return_value = {"merchant": "Starbucks", "amount": "6.45", "date": "2024-03-02T08:15:00"}
        service = build_service(db, client)

        result = service.import_document(receipt, "receipt")

        txn = result.imported[0]
        assert txn.category == Category.FOOD
        assert txn.type == TransactionType.SPENDING
        assert txn.date == datetime(2024, 3, 2, 8, 15)
        client.classify_merchant.assert_not_called()


@pytest.mark.integration
class TestExtractedIds:

    def test_row_numbers_from_ai_do_not_collide(self, db, client, statement, tmp_path):
        client.analyze_statement.return_value = [
            {"id": "1", "date": "2024-03-03", "merchant": "Netflix", "amount": 15.99},
        ]
        build_service(db, client).import_document(statement, "statement")

        client.analyze_statement.return_value = [
            {"id": "1", "date": "2024-03-09", "merchant": "Hulu", "amount": 9.99},
        ]
        result = build_service(db, client).import_document(statement, "statement")

        assert result.new_transactions == 1
        stored = build_service(db, client).get_transactions()
        assert [t.merchant for t in stored] == ["Hulu", "Netflix"]
        assert len({t.id for t in stored}) == 2
