import pytest
from datetime import datetime
from decimal import Decimal

from typer.testing import CliRunner

from finance_tracker import cli
from finance_tracker.domain.enums import Category, TransactionType
from finance_tracker.repositories.store import TransactionStore
from finance_tracker.services.transaction_service import TransactionService

runner = CliRunner()


@pytest.fixture
def service(memory_repository, mocker):
    """Service on in-memory storage, installed as the CLI's service"""
    client = mocker.Mock()
    client.classify_merchant.return_value = Category.OTHER
    service = TransactionService(store=TransactionStore(memory_repository), client=client)
    mocker.patch.object(cli.state, "service", service)
    mocker.patch.object(cli, "configure_logging")
    return service


@pytest.mark.unit
class TestCliCommands:

    def test_add_and_list(self, service):
        result = runner.invoke(cli.app, ["add", "Netflix", "15.99", "--date", "2024-03-01"])

        assert result.exit_code == 0, result.output
        assert "Added" in result.output
        txn = service.store.transactions[0]
        assert txn.amount == Decimal("15.99")
        assert txn.category == Category.ENTERTAINMENT

        result = runner.invoke(cli.app, ["list", "--month", "3", "--year", "2024"])

        assert result.exit_code == 0, result.output
        assert "Netflix" in result.output

    def test_add_invalid_amount_fails(self, service):
        result = runner.invoke(cli.app, ["add", "Netflix", "free"])

        assert result.exit_code == 1
        assert "Error" in result.output
        assert len(service.store) == 0

    def test_add_invalid_date_is_usage_error(self, service):
        result = runner.invoke(cli.app, ["add", "Netflix", "1", "--date", "yesterday"])

        assert result.exit_code == 2

    def test_offset_date_keeps_history_listable(self, service):
        runner.invoke(cli.app, ["add", "Netflix", "15.99", "--date", "2024-03-01"])

        result = runner.invoke(cli.app, ["add", "Hulu", "9.99", "--date", "2024-03-02T10:00+05:00"])

        assert result.exit_code == 0, result.output
        assert all(t.date.tzinfo is None for t in service.store.transactions)

        result = runner.invoke(cli.app, ["list", "--month", "3", "--year", "2024"])

        assert result.exit_code == 0, result.output
        assert "Hulu" in result.output
        assert "Netflix" in result.output

    def test_report_empty_month(self, service):
        result = runner.invoke(cli.app, ["report", "--month", "6", "--year", "2023"])

        assert result.exit_code == 0
        assert "No transactions found for June 2023" in result.output

    def test_report_shows_totals(self, service):
        service.add_transaction("Acme Corp", 3000, date=datetime(2024, 3, 15),
                                transaction_type=TransactionType.INCOME)
        service.add_transaction("Landlord", 1200, date=datetime(2024, 3, 1),
                                transaction_type=TransactionType.FIXED_BILL,
                                category=Category.HOUSING)

        result = runner.invoke(cli.app, ["report", "--month", "3", "--year", "2024"])

        assert result.exit_code == 0, result.output
        assert "3,000.00" in result.output
        assert "1,200.00" in result.output
        assert "Housing" in result.output

    def test_edit_by_id_prefix(self, service):
        txn = service.add_transaction("Gym", 40)

        result = runner.invoke(cli.app, ["edit", txn.id[:8], "--type", "fixed_bill"])

        assert result.exit_code == 0, result.output
        assert service.store.get(txn.id).type == TransactionType.FIXED_BILL

    def test_delete_with_yes(self, service):
        txn = service.add_transaction("Gym", 40)

        result = runner.invoke(cli.app, ["delete", txn.id[:8], "--yes"])

        assert result.exit_code == 0, result.output
        assert len(service.store) == 0

    def test_delete_unknown_id(self, service):
        result = runner.invoke(cli.app, ["delete", "deadbeef", "--yes"])

        assert result.exit_code == 2

    def test_export(self, service, tmp_path):
        service.add_transaction("Gym", 40, date=datetime(2024, 3, 5))
        path = tmp_path / "march.csv"

        result = runner.invoke(cli.app, ["export", str(path), "--month", "3", "--year", "2024"])

        assert result.exit_code == 0, result.output
        assert path.exists()

    def test_banks(self, service):
        service.client.suggest_banks.return_value = ["Chase", "Chime"]

        result = runner.invoke(cli.app, ["banks", "ch"])

        assert result.exit_code == 0
        assert "Chase" in result.output
        assert "Chime" in result.output


@pytest.fixture
def statement(tmp_path):
    path = tmp_path / "march.pdf"
    path.write_bytes(b"%PDF-1.4")
    return path


@pytest.fixture
def extracted(service, mocker, make_transaction):
    rows = [
        make_transaction("Netflix", date="2024-03-01"),
        make_transaction("Card Payment", 500, date="2024-03-02"),
        make_transaction("Hulu", "9.99", date="2024-03-03"),
    ]
    mocker.patch.object(service, "extract_document", return_value=rows)
    return rows


@pytest.mark.unit
class TestCliImport:

    def test_import_all_rows(self, service, statement, extracted):
        result = runner.invoke(cli.app, ["import", str(statement)])

        assert result.exit_code == 0, result.output
        assert "Imported 3 new transactions" in result.output
        assert len(service.store) == 3

    def test_dry_run_with_exclude_previews_only(self, service, statement, extracted):
        result = runner.invoke(cli.app, ["import", str(statement), "--dry-run", "--exclude", "2"])

        assert result.exit_code == 0, result.output
        assert "EXCLUDED" in result.output
        assert "Would import: 2" in result.output
        assert len(service.store) == 0

    def test_exclude_leaves_rows_out(self, service, statement, extracted):
        result = runner.invoke(cli.app, ["import", str(statement), "-x", "2"])

        assert result.exit_code == 0, result.output
        assert [t.merchant for t in service.store.transactions] == ["Netflix", "Hulu"]

    def test_exclude_unknown_row_fails(self, service, statement, extracted):
        result = runner.invoke(cli.app, ["import", str(statement), "--exclude", "9"])

        assert result.exit_code == 1
        assert len(service.store) == 0

    def test_review_excludes_and_edits_rows(self, service, statement, extracted):
        answers = "\n".join([
            "y", "n",                   # Netflix: keep as is
            "n",                        # Card Payment: leave out
            "y", "y",                   # Hulu: keep and edit
            "Hulu Plus", "12.99", "", "fixed_bill", "Entertainment",
        ]) + "\n"

        result = runner.invoke(cli.app, ["import", str(statement), "--review"], input=answers)

        assert result.exit_code == 0, result.output
        stored = {t.merchant: t for t in service.store.transactions}
        assert set(stored) == {"Netflix", "Hulu Plus"}
        assert stored["Hulu Plus"].amount == Decimal("12.99")
        assert stored["Hulu Plus"].type == TransactionType.FIXED_BILL
        assert stored["Hulu Plus"].date == datetime(2024, 3, 3)

    def test_review_reprompts_invalid_edit(self, service, statement, extracted):
        answers = "\n".join([
            "y", "y",
            "Netflix", "0", "", "", "",          # amount rejected
            "Netflix", "17.99", "", "", "",
            "y", "n",
            "y", "n",
        ]) + "\n"

        result = runner.invoke(cli.app, ["import", str(statement), "--review"], input=answers)

        assert result.exit_code == 0, result.output
        assert "Amount must be a positive number" in result.output
        assert service.store.transactions[0].amount == Decimal("17.99")
