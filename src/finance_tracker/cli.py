import typer
from pathlib import Path
from typing import List, Optional, Set, Tuple
from datetime import date, datetime

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from finance_tracker.config.settings import Settings
from finance_tracker.database.connection import DatabaseConfig, DatabaseManager
from finance_tracker.domain.enums import Category, DocumentKind, TransactionType
from finance_tracker.domain.models import Transaction
from finance_tracker.extraction.records import parse_date
from finance_tracker.logging_setup import configure_logging
from finance_tracker.repositories.sqlite_transaction_repository import SQLiteTransactionRepository
from finance_tracker.repositories.store import TransactionStore
from finance_tracker.services.models import ImportResult, MonthlySummary
from finance_tracker.services.transaction_service import TransactionService

app = typer.Typer(
    name="finance-tracker",
    help="Track income, bills and spending with AI-assisted imports",
    add_completion=False,
)

console = Console()

REPORT_ROWS = 15

TYPE_STYLES = {
    TransactionType.INCOME: "green",
    TransactionType.FIXED_BILL: "red",
    TransactionType.FLEXIBLE_BILL: "yellow",
    TransactionType.SPENDING: "magenta",
}

IMPORT_STATUS = {
    "new": "[green]NEW[/green]",
    "recurring": "[cyan]RECURRING[/cyan]",
    "duplicate": "[yellow]DUP[/yellow]",
    "excluded": "[dim]EXCLUDED[/dim]",
}

class State:
    verbose: bool = False
    service: Optional[TransactionService] = None


state = State()


def build_service(settings: Settings) -> TransactionService:
    """Wire the SQLite repository, store and service together"""
    db_manager = DatabaseManager(DatabaseConfig(settings.db_path))
    repository = SQLiteTransactionRepository(db_manager)
    store = TransactionStore(repository)
    return TransactionService(store, settings=settings)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose output",
    )
):
    """
    Finance Tracker - Record, import and review your monthly finances.
    """
    settings = Settings.load()
    configure_logging("DEBUG" if verbose else settings.log_level)

    if state.service is None:
        state.service = build_service(settings)

    state.verbose = verbose


def _fail(e: Exception):
    console.print(f"[bold red]Error:[/bold red] {e}")
    if state.verbose:
        console.print_exception()
    raise typer.Exit(code=1)


def _parse_date(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Invalid date '{value}', expected YYYY-MM-DD")
    # Offsets are converted to naive local time like every stored date
    return parse_date(parsed)


def _amount_markup(txn: Transaction) -> str:
    color = TYPE_STYLES[txn.type]
    sign = "+" if txn.is_income else "-"
    return f"[{color}]{sign}${txn.amount:,.2f}[/{color}]"


def _transactions_table(transactions: List[Transaction], title: Optional[str] = None) -> Table:
    table = Table(title=title, show_header=True, padding=(0, 1))
    table.add_column("Date", style="cyan", width=12)
    table.add_column("Merchant", style="white", max_width=40)
    table.add_column("Type", style="dim", width=13)
    table.add_column("Category", style="dim", width=16)
    table.add_column("Amount", justify="right", width=12)
    table.add_column("ID", style="dim", no_wrap=True)

    for txn in transactions:
        merchant = txn.merchant[:37] + "..." if len(txn.merchant) > 40 else txn.merchant
        table.add_row(
            str(txn.date.date()),
            merchant,
            txn.type.value,
            txn.category.value,
            _amount_markup(txn),
            txn.id[:8],
        )
    return table


def _resolve_id(prefix: str) -> str:
    """Expand an ID prefix (as shown in tables) to the full ID"""
    matches = [t.id for t in state.service.store.transactions if t.id.startswith(prefix)]
    if not matches:
        raise typer.BadParameter(f"No transaction with ID '{prefix}'")
    if len(matches) > 1:
        raise typer.BadParameter(f"ID prefix '{prefix}' is ambiguous")
    return matches[0]


def _prompt_changes(txn: Transaction) -> Transaction:
    """Ask for each field with the current value as default until it validates"""
    while True:
        try:
            return state.service.revise(
                txn,
                merchant=typer.prompt("Merchant", default=txn.merchant),
                amount=typer.prompt("Amount", default=f"{txn.amount:.2f}"),
                date=_parse_date(typer.prompt("Date", default=txn.date.isoformat())),
                type=typer.prompt("Type", default=txn.type.value),
                category=typer.prompt("Category", default=txn.category.value),
            )
        except (ValueError, typer.BadParameter) as e:
            console.print(f"[red]{e}[/red]")


def _review_rows(
    transactions: List[Transaction],
    excluded: Set[int],
) -> Tuple[List[Transaction], Set[int]]:
    """Let the user deselect or correct each extracted row before committing"""
    reviewed = []
    excluded = set(excluded)

    for number, txn in enumerate(transactions, start=1):
        if number in excluded:
            reviewed.append(txn)
            continue

        console.print(
            f"\n[bold]#{number}[/bold] {txn.date.date()}  {txn.merchant}  "
            f"{_amount_markup(txn)} ({txn.type.value}, {txn.category.value})"
        )
        if not typer.confirm("Include?", default=True):
            excluded.add(number)
        elif typer.confirm("Edit?", default=False):
            txn = _prompt_changes(txn)
        reviewed.append(txn)

    return reviewed, excluded


def _import_preview(result: ImportResult) -> Table:
    table = Table(title="Preview")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("Merchant", style="white")
    table.add_column("Type", style="dim")
    table.add_column("Category", style="magenta")
    table.add_column("Amount", justify="right")
    table.add_column("Status", justify="center")

    upgraded = {t.id: t for t in result.upgraded}
    for number, txn in enumerate(result.extracted, start=1):
        txn = upgraded.get(txn.id, txn)
        table.add_row(
            str(number),
            str(txn.date.date()),
            txn.merchant[:40],
            txn.type.value,
            txn.category.value,
            _amount_markup(txn),
            IMPORT_STATUS[result.status_of(txn)],
        )
    return table


@app.command(name="import")
def import_document(
    filepath: Path = typer.Argument(
        ...,
        help="Path to the receipt, statement or paystub",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    kind: DocumentKind = typer.Option(
        DocumentKind.STATEMENT,
        "--kind", "-k",
        help="Kind of document",
        case_sensitive=False,
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Preview without saving",
    ),
    exclude: Optional[List[int]] = typer.Option(
        None,
        "--exclude", "-x",
        help="Row number to leave out, as numbered in the preview (repeatable)",
        min=1,
    ),
    review: bool = typer.Option(
        False,
        "--review",
        help="Confirm or edit each extracted row before committing",
    ),
):
    """
    Import transactions from a document using AI extraction.

    Duplicates of known transactions are skipped, and expenses that recur
    from another month are marked as fixed bills. Rows can be left out with
    --exclude or reviewed one by one with --review. A new extraction may
    number rows differently, so --review is the safer way to fix a batch.

    Examples:
        finance-tracker import statement.pdf --dry-run
        finance-tracker import statement.pdf --exclude 3 --exclude 7
        finance-tracker import receipt.jpg --kind receipt --review
    """
    try:
        console.print(Panel.fit(
            f"[bold cyan]Import[/bold cyan]\n"
            f"File: {filepath}\n"
            f"Kind: {kind.value}\n"
            f"Mode: {'DRY RUN' if dry_run else 'LIVE'}{' with review' if review else ''}",
            border_style="cyan"
        ))

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Analyzing document...", total=None)
            transactions = state.service.extract_document(filepath, kind)

        console.print(f"[bold]Found {len(transactions)} transactions[/bold]")
        if not transactions:
            console.print("[yellow]Nothing could be extracted, no changes made[/yellow]")
            return

        excluded = set(exclude or [])
        if review:
            transactions, excluded = _review_rows(transactions, excluded)

        result = state.service.commit_import(
            filepath,
            kind,
            transactions,
            dry_run=dry_run,
            exclude=excluded,
        )

        console.print("")
        console.print(_import_preview(result))
        console.print("")

        if dry_run:
            console.print("[yellow]DRY RUN - No changes made[/yellow]")
            console.print(f"[green]✓[/green] Would import: {result.new_transactions}")
            console.print(f"[yellow]⏭️[/yellow]  Would skip: {result.duplicates_skipped}")
        else:
            console.print(f"[bold green]✓ Imported {result.new_transactions} new transactions[/bold green]")
            if result.upgraded:
                console.print(f"[cyan]🔁 {len(result.upgraded)} recognized as fixed bills[/cyan]")
            if result.skipped:
                console.print(f"[yellow]⏭️  Skipped {result.duplicates_skipped} duplicates[/yellow]")
        if result.excluded:
            console.print(f"[dim]🚫 Excluded {len(result.excluded)} rows[/dim]")

    except typer.Abort:
        raise
    except Exception as e:
        _fail(e)


@app.command(name="add")
def add_transaction(
    merchant: str = typer.Argument(..., help="Merchant, or payer for income"),
    amount: str = typer.Argument(..., help="Amount, e.g. 15.99"),
    transaction_type: Optional[TransactionType] = typer.Option(
        None,
        "--type", "-t",
        help="Transaction type",
        case_sensitive=False,
    ),
    category: Optional[Category] = typer.Option(
        None,
        "--category", "-c",
        help="Category",
        case_sensitive=False,
    ),
    on: Optional[str] = typer.Option(
        None,
        "--date", "-d",
        help="Date (YYYY-MM-DD), defaults to now",
    ),
    categorize: bool = typer.Option(
        True,
        "--categorize/--no-categorize",
        help="Categorize the merchant automatically",
    ),
):
    """
    Add a single transaction.

    Examples:
        finance-tracker add "Netflix" 15.99
        finance-tracker add "Acme Corp" 2500 --type income
        finance-tracker add "Landlord" 1200 --type fixed_bill --category Housing
    """
    try:
        txn = state.service.add_transaction(
            merchant=merchant,
            amount=amount,
            date=_parse_date(on),
            transaction_type=transaction_type,
            category=category,
            auto_categorize=categorize,
        )
        console.print(
            f"[bold green]✓ Added[/bold green] {txn.merchant} "
            f"{_amount_markup(txn)} ({txn.type.value}, {txn.category.value}) "
            f"[dim]{txn.id[:8]}[/dim]"
        )
    except typer.BadParameter:
        raise
    except Exception as e:
        _fail(e)


@app.command(name="list")
def list_transactions(
    month: Optional[int] = typer.Option(
        None,
        "--month", "-m",
        help="Month (1-12)",
        min=1,
        max=12
    ),
    year: Optional[int] = typer.Option(
        None,
        "--year", "-y",
        help="Year",
    ),
    transaction_type: Optional[TransactionType] = typer.Option(
        None,
        "--type", "-t",
        help="Only this transaction type",
        case_sensitive=False,
    ),
):
    """
    List transactions, newest first.

    Examples:
        finance-tracker list
        finance-tracker list --month 3 --year 2024 --type fixed_bill
    """
    try:
        if month is not None and year is None:
            year = date.today().year

        transactions = state.service.get_transactions(
            year=year,
            month=month,
            transaction_type=transaction_type,
        )

        if not transactions:
            console.print("[yellow]No transactions found[/yellow]")
            return

        console.print(_transactions_table(transactions))
        console.print(f"\n[dim]{len(transactions)} transactions[/dim]")
    except Exception as e:
        _fail(e)


def _summary_panel(summary: MonthlySummary, month_name: str) -> Panel:
    balance_style = "green" if summary.balance >= 0 else "red"
    body = "\n".join([
        f"Transactions  {summary.total_transactions}",
        "",
        f"[green]Income[/green]        ${summary.total_income:>12,.2f}",
        f"[red]Fixed bills[/red]   ${summary.total_fixed:>12,.2f}",
        f"[yellow]Flexible[/yellow]      ${summary.total_flexible:>12,.2f}",
        "─" * 28,
        f"[bold {balance_style}]Balance[/bold {balance_style}]       ${summary.balance:>12,.2f}",
    ])
    return Panel(body, title=f"[bold]{month_name}[/bold]", border_style="cyan", padding=(1, 2))


def _category_table(summary: MonthlySummary) -> Table:
    table = Table(title="Spending by Category", box=None, padding=(0, 2), title_justify="left")
    table.add_column("Category", style="cyan", no_wrap=True)
    table.add_column("Amount", justify="right", style="red")
    table.add_column("Share", justify="right", style="dim")
    table.add_column("", style="red")

    for category, amount in summary.expenses_by_category:
        share = amount / summary.total_expenses if summary.total_expenses > 0 else 0
        table.add_row(
            category.value,
            f"${amount:,.2f}",
            f"{share:.0%}",
            "█" * round(share * 20),
        )
    return table


@app.command(name="report")
def report(
    month: Optional[int] = typer.Option(
        None,
        "--month", "-m",
        help="Month (1-12), defaults to the current month",
        min=1,
        max=12
    ),
    year: Optional[int] = typer.Option(
        None,
        "--year", "-y",
        help="Year, defaults to the current year",
    ),
):
    """
    Show the income, fixed bills and money spent of one month.

    Examples:
        finance-tracker report
        finance-tracker report --month 2 --year 2025
    """
    try:
        today = date.today()
        summary = state.service.get_monthly_summary(
            year=year or today.year,
            month=month or today.month,
        )
        month_name = summary.start_date.strftime("%B %Y")

        if not summary.transactions:
            console.print(f"[yellow]No transactions found for {month_name}[/yellow]")
            return

        console.print(_summary_panel(summary, month_name))

        if summary.expenses_by_category:
            console.print(_category_table(summary))

        for title, transactions in (
            ("Income", summary.income),
            ("Fixed Bills", summary.fixed_bills),
        ):
            if transactions:
                console.print("")
                console.print(_transactions_table(transactions, title=title))

        spent = summary.money_spent
        if spent:
            console.print("")
            console.print(_transactions_table(spent[:REPORT_ROWS], title="Money Spent"))
            if len(spent) > REPORT_ROWS:
                console.print(f"[dim]Showing {REPORT_ROWS} of {len(spent)} expenses, use 'list' for all[/dim]")

    except Exception as e:
        _fail(e)


@app.command(name="edit")
def edit_transaction(
    transaction_id: str = typer.Argument(..., help="Transaction ID (or unique prefix)"),
    merchant: Optional[str] = typer.Option(None, "--merchant", help="New merchant"),
    amount: Optional[str] = typer.Option(None, "--amount", help="New amount"),
    transaction_type: Optional[TransactionType] = typer.Option(
        None, "--type", "-t", help="New type", case_sensitive=False,
    ),
    category: Optional[Category] = typer.Option(
        None, "--category", "-c", help="New category", case_sensitive=False,
    ),
    on: Optional[str] = typer.Option(None, "--date", "-d", help="New date (YYYY-MM-DD)"),
):
    """
    Edit a transaction in place.

    Example:
        finance-tracker edit 3f2a9c1b --type fixed_bill --category Utilities
    """
    try:
        changes = {
            "merchant": merchant,
            "amount": amount,
            "type": transaction_type,
            "category": category,
            "date": _parse_date(on),
        }
        changes = {k: v for k, v in changes.items() if v is not None}

        if not changes:
            console.print("[yellow]Nothing to change[/yellow]")
            return

        txn = state.service.update_transaction(_resolve_id(transaction_id), **changes)
        console.print(
            f"[bold green]✓ Updated[/bold green] {txn.merchant} "
            f"{_amount_markup(txn)} ({txn.type.value}, {txn.category.value})"
        )
    except typer.BadParameter:
        raise
    except Exception as e:
        _fail(e)


@app.command(name="delete")
def delete_transaction(
    transaction_id: str = typer.Argument(..., help="Transaction ID (or unique prefix)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a transaction."""
    try:
        full_id = _resolve_id(transaction_id)
        txn = state.service.store.get(full_id)

        if not yes:
            typer.confirm(f"Delete {txn.merchant} ${txn.amount:,.2f} on {txn.date.date()}?", abort=True)

        state.service.delete_transaction(full_id)
        console.print(f"[bold green]✓ Deleted[/bold green] {txn.merchant}")
    except (typer.BadParameter, typer.Abort):
        raise
    except Exception as e:
        _fail(e)


@app.command(name="export")
def export_transactions(
    path: Path = typer.Argument(..., help="Destination CSV file", dir_okay=False),
    month: Optional[int] = typer.Option(None, "--month", "-m", help="Month (1-12)", min=1, max=12),
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Year (alone: year to date)"),
):
    """
    Export transactions to CSV.

    Examples:
        finance-tracker export all.csv
        finance-tracker export march.csv --month 3 --year 2024
        finance-tracker export ytd.csv --year 2024
    """
    try:
        if month is not None and year is None:
            year = date.today().year

        count = state.service.export_csv(path, year=year, month=month)

        if count == 0:
            console.print("[yellow]No transactions to export[/yellow]")
            return

        console.print(f"[bold green]✓ Exported {count} transactions to {path}[/bold green]")
    except Exception as e:
        _fail(e)


@app.command(name="banks")
def suggest_banks(
    query: str = typer.Argument(..., help="Bank name or prefix"),
):
    """Suggest bank names matching a query."""
    try:
        names = state.service.suggest_banks(query)
        if not names:
            console.print("[yellow]No suggestions[/yellow]")
            return
        for name in names:
            console.print(f"  • {name}")
    except Exception as e:
        _fail(e)


def cli_main():
    """Entry point for the CLI"""
    app()


if __name__ == "__main__":
    cli_main()
