"""CLI commands for recording expenses and settling up."""

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..config import load_settings
from ..db import Database
from ..exceptions import ExpensiverError, LedgerValidationError
from ..models import Group
from ..ui import confirm_action, resolve_member, select_member_interactive
from .ledger import total_owed_by, total_paid_by
from .money import format_money
from .reports import search_expenses, sort_expenses
from .service import LedgerService

console = Console()

group_app = typer.Typer(help="Create, join and inspect groups")
member_app = typer.Typer(help="Manage group members")
expense_app = typer.Typer(help="Record and browse expenses")
settlement_app = typer.Typer(help="Record payments between members")
budget_app = typer.Typer(help="Track spending goals")

SPLIT_TYPES = ["equal", "unequal", "percentage", "shares", "adjustment", "exclude"]
SORT_METHODS = ["date-desc", "date-asc", "amount-desc", "amount-asc"]
BUDGET_PERIODS = ["weekly", "monthly", "quarterly", "yearly", "custom"]


def setup_logging(verbose: bool = False, level_name: str = "INFO"):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@contextmanager
def open_service(verbose: bool = False) -> Iterator[LedgerService]:
    """Yield a LedgerService, reporting errors and closing the database."""
    db = None
    try:
        settings = load_settings()
        setup_logging(verbose, settings.log_level)
        db = Database(settings.database_path)
        yield LedgerService(settings, db)
    except LedgerValidationError as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        sys.exit(1)
    except ExpensiverError as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)
    finally:
        if db is not None:
            db.close()


def parse_assignments(group: Group, entries: list[str]) -> dict[str, str]:
    """
    Parse ``name=value`` pairs into a member-id keyed mapping.

    Raises:
        typer.BadParameter: If an entry has no ``=``
    """
    values: dict[str, str] = {}
    for entry in entries:
        name, sep, value = entry.partition("=")
        if not sep:
            raise typer.BadParameter(f"Expected NAME=VALUE, got '{entry}'")
        values[resolve_member(group, name).id] = value.strip()
    return values


def _pick_member(group: Group, name_or_id: str | None, label: str) -> str:
    if name_or_id:
        return resolve_member(group, name_or_id).id
    console.print(f"\n[bold]{label}[/bold]")
    member_id = select_member_interactive(group, label)
    if member_id is None:
        console.print("[yellow]No member selected.[/yellow]")
        raise typer.Exit(0)
    return member_id


def _parse_date(value: datetime | None):
    return value.date() if value else None


# ============================================================================
# Groups
# ============================================================================


@group_app.command("create")
def create_group(
    name: str = typer.Argument(..., help="Group name"),
    members: str = typer.Option("", "--members", "-m", help="Comma-separated member names"),
    currency: str | None = typer.Option(None, "--currency", help="Currency symbol"),
    category: str = typer.Option("other", "--category", help="Group category"),
    description: str = typer.Option("", "--description", "-d"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Create a new group. You are added as its first member."""
    with open_service(verbose) as service:
        group = service.create_group(
            name=name,
            currency=currency,
            category=category,
            member_names=members.split(",") if members else [],
            description=description,
        )
        console.print(f"\n[bold green]✓ Group \"{group.name}\" created![/bold green]")
        console.print(f"  ID: {group.id}")
        console.print(f"  Invite code: [cyan]{group.invite_code}[/cyan]\n")


@group_app.command("join")
def join_group(
    code: str = typer.Argument(..., help="Invite code or group id"),
    name: str | None = typer.Option(None, "--name", help="Your name in this group"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Join a group by invite code or id."""
    with open_service(verbose) as service:
        group = service.join_group(code, display_name=name)
        console.print(f"\n[bold green]✓ You have joined \"{group.name}\"![/bold green]\n")


@group_app.command("list")
def list_groups(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List all groups, most recently active first."""
    with open_service(verbose) as service:
        groups = service.list_groups()
        if not groups:
            console.print("[yellow]No groups yet. Create or join one to get started.[/yellow]")
            return

        table = Table(title="Groups", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Members", justify="right")
        table.add_column("Expenses", justify="right")
        table.add_column("Last activity", style="dim")
        for group in groups:
            table.add_row(
                group.id,
                group.name,
                str(len(group.members)),
                str(len(group.expenses)),
                group.last_activity.strftime("%Y-%m-%d %H:%M"),
            )
        console.print(table)


@group_app.command("show")
def show_group(
    group_id: str = typer.Argument(..., help="Group id or invite code"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show a group's members and headline numbers."""
    with open_service(verbose) as service:
        group = service.get_group(group_id)
        summary = service.summary(group.id)

        console.print(f"\n[bold]{group.name}[/bold] ({group.category})")
        if group.description:
            console.print(f"  {group.description}")
        console.print(f"  ID: {group.id}   Invite code: [cyan]{group.invite_code}[/cyan]")
        console.print(
            f"  Total: {format_money(summary.total_expenses, group.currency)} over "
            f"{summary.expense_count} expenses "
            f"(avg {format_money(summary.average_expense, group.currency)})"
        )
        console.print("  Members: " + ", ".join(m.name for m in group.members))
        console.print()


@group_app.command("delete")
def delete_group(
    group_id: str = typer.Argument(..., help="Group id or invite code"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Delete a group and all of its history."""
    with open_service(verbose) as service:
        group = service.get_group(group_id)
        if not yes and not confirm_action(f"Delete group \"{group.name}\"?"):
            console.print("[yellow]Cancelled.[/yellow]")
            return
        service.delete_group(group.id)
        console.print("[bold green]✓ Group deleted.[/bold green]")


@group_app.command("export")
def export_group(
    group_id: str = typer.Argument(..., help="Group id or invite code"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write JSON here"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Export a group's members and expenses as JSON."""
    with open_service(verbose) as service:
        group = service.get_group(group_id)
        data = service.export(group.id).model_dump(mode="json")
        text = json.dumps(data, indent=2, ensure_ascii=False)

        if output is None:
            output = Path(f"{'-'.join(group.name.split())}-expenses.json")
        output.write_text(text, encoding="utf-8")
        console.print(f"[bold green]✓ Exported to {output}[/bold green]")


# ============================================================================
# Members
# ============================================================================


@member_app.command("add")
def add_member(
    group_id: str = typer.Argument(..., help="Group id or invite code"),
    name: str = typer.Argument(..., help="Member name"),
    email: str | None = typer.Option(None, "--email"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Add a member to a group."""
    with open_service(verbose) as service:
        member = service.add_member(group_id, name, email=email)
        console.print(f"[bold green]✓ Member \"{member.name}\" added.[/bold green]")


# ============================================================================
# Expenses
# ============================================================================


@expense_app.command("add")
def add_expense(
    group_id: str = typer.Argument(..., help="Group id or invite code"),
    description: str = typer.Argument(..., help="What the expense was for"),
    amount: str = typer.Argument(..., help="Total amount"),
    paid_by: str | None = typer.Option(None, "--paid-by", "-p", help="Single payer"),
    payers: list[str] = typer.Option(
        [], "--payer", help="NAME=AMOUNT for multiple payers (repeatable)"
    ),
    split_type: str = typer.Option(
        "equal", "--split", "-s", help=f"One of: {', '.join(SPLIT_TYPES)}"
    ),
    participants: list[str] = typer.Option(
        [], "--with", "-w", help="Members sharing the expense (default: everyone)"
    ),
    values: list[str] = typer.Option(
        [], "--value", help="NAME=VALUE for custom splits (repeatable)"
    ),
    category: str = typer.Option("other", "--category", "-c"),
    on: datetime | None = typer.Option(None, "--date", formats=["%Y-%m-%d"]),
    notes: str = typer.Option("", "--notes"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Record an expense.

    Custom splits take one --value per member: an exact amount (unequal),
    a percentage, a share count, or a signed adjustment.
    """
    if split_type not in SPLIT_TYPES:
        raise typer.BadParameter(f"Unknown split type '{split_type}'")

    with open_service(verbose) as service:
        group = service.get_group(group_id)

        participant_ids = (
            [resolve_member(group, p).id for p in participants]
            if participants
            else [m.id for m in group.members]
        )
        split_values = parse_assignments(group, values)

        payer_id = None
        contributions = None
        if payers:
            contributions = list(parse_assignments(group, payers).items())
        else:
            payer_id = _pick_member(group, paid_by, "Paid by")

        expense = service.add_expense(
            group.id,
            description=description,
            amount=amount,
            participant_ids=participant_ids,
            split_type=split_type,  # type: ignore[arg-type]
            split_values=split_values,
            payer_id=payer_id,
            payer_contributions=contributions,
            category=category,
            expense_date=_parse_date(on),
            notes=notes,
        )

        table = Table(title=expense.description, show_header=True, header_style="bold magenta")
        table.add_column("Member", style="cyan")
        table.add_column("Owes", justify="right")
        for split in expense.splits:
            table.add_row(group.member_name(split.member_id), format_money(split.amount, group.currency))
        console.print(table)
        console.print("[bold green]✓ Expense added.[/bold green]")


@expense_app.command("delete")
def delete_expense(
    group_id: str = typer.Argument(..., help="Group id or invite code"),
    expense_id: str = typer.Argument(..., help="Expense id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Delete an expense."""
    with open_service(verbose) as service:
        if not yes and not confirm_action("Are you sure you want to delete this expense?"):
            console.print("[yellow]Cancelled.[/yellow]")
            return
        expense = service.delete_expense(group_id, expense_id)
        console.print(f"[bold green]✓ Deleted \"{expense.description}\".[/bold green]")


@expense_app.command("list")
def list_expenses(
    group_id: str = typer.Argument(..., help="Group id or invite code"),
    search: str = typer.Option("", "--search", help="Filter by text"),
    sort: str = typer.Option("date-desc", "--sort", help=f"One of: {', '.join(SORT_METHODS)}"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List a group's expenses."""
    if sort not in SORT_METHODS:
        raise typer.BadParameter(f"Unknown sort method '{sort}'")

    with open_service(verbose) as service:
        group = service.get_group(group_id)
        matching = {e.id for e in search_expenses(group, search)}
        expenses = [e for e in sort_expenses(group, sort) if e.id in matching]  # type: ignore[arg-type]

        table = Table(title="Expenses", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Date")
        table.add_column("Description", style="cyan")
        table.add_column("Paid by")
        table.add_column("Split", style="yellow")
        table.add_column("Amount", justify="right")
        for expense in expenses:
            payer_names = ", ".join(group.member_name(p.member_id) for p in expense.payers)
            table.add_row(
                expense.id,
                str(expense.date),
                expense.description,
                payer_names,
                expense.split_type,
                format_money(expense.amount, group.currency),
            )
        console.print(table)


# ============================================================================
# Settlements
# ============================================================================


@settlement_app.command("add")
def settle_up(
    group_id: str = typer.Argument(..., help="Group id or invite code"),
    from_member: str | None = typer.Option(None, "--from", help="Who paid"),
    to_member: str | None = typer.Option(None, "--to", help="Who received"),
    amount: str | None = typer.Option(None, "--amount", help="Defaults to the payer's full debt"),
    on: datetime | None = typer.Option(None, "--date", formats=["%Y-%m-%d"]),
    notes: str = typer.Option("", "--notes"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Record a payment from one member to another."""
    with open_service(verbose) as service:
        group = service.get_group(group_id)
        from_id = _pick_member(group, from_member, "From")

        suggestion = service.suggest_settlement(group.id, from_id)
        if to_member is None and suggestion is not None and suggestion.from_id == from_id:
            to_id = suggestion.to_id
        else:
            to_id = _pick_member(group, to_member, "To")

        if amount is None:
            if suggestion is None or suggestion.from_id != from_id:
                raise typer.BadParameter("No outstanding debt to suggest; pass --amount")
            amount = str(suggestion.amount)

        settlement = service.settle_up(
            group.id,
            from_id=from_id,
            to_id=to_id,
            amount=amount,
            settlement_date=_parse_date(on),
            notes=notes,
        )
        console.print(
            f"[bold green]✓ Settlement of "
            f"{format_money(settlement.amount, group.currency)} recorded![/bold green]"
        )


@settlement_app.command("delete")
def delete_settlement(
    group_id: str = typer.Argument(..., help="Group id or invite code"),
    settlement_id: str = typer.Argument(..., help="Settlement id"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Delete a recorded settlement."""
    with open_service(verbose) as service:
        service.delete_settlement(group_id, settlement_id)
        console.print("[bold green]✓ Settlement deleted.[/bold green]")


@settlement_app.command("plan")
def show_plan(
    group_id: str = typer.Argument(..., help="Group id or invite code"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show who should pay whom to settle every balance."""
    with open_service(verbose) as service:
        group = service.get_group(group_id)
        transfers = service.settlement_plan(group.id)
        if not transfers:
            console.print("[green]All settled up![/green]")
            return

        table = Table(title="Suggested Settlements", show_header=True, header_style="bold magenta")
        table.add_column("From", style="red")
        table.add_column("To", style="green")
        table.add_column("Amount", justify="right")
        for transfer in transfers:
            table.add_row(
                group.member_name(transfer.from_id),
                group.member_name(transfer.to_id),
                format_money(transfer.amount, group.currency),
            )
        console.print(table)


# ============================================================================
# Budgets
# ============================================================================


@budget_app.command("add")
def add_budget(
    group_id: str = typer.Argument(..., help="Group id or invite code"),
    name: str = typer.Argument(..., help="Budget name"),
    amount: str = typer.Argument(..., help="Budget limit"),
    category: str = typer.Option("all", "--category", "-c"),
    period: str = typer.Option("monthly", "--period", help=f"One of: {', '.join(BUDGET_PERIODS)}"),
    start: datetime | None = typer.Option(None, "--start", formats=["%Y-%m-%d"]),
    end: datetime | None = typer.Option(None, "--end", formats=["%Y-%m-%d"]),
    notes: str = typer.Option("", "--notes"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Add a budget to a group."""
    if period not in BUDGET_PERIODS:
        raise typer.BadParameter(f"Unknown period '{period}'")

    with open_service(verbose) as service:
        budget = service.add_budget(
            group_id,
            name=name,
            amount=amount,
            category=category,
            period=period,  # type: ignore[arg-type]
            start_date=_parse_date(start),
            end_date=_parse_date(end),
            notes=notes,
        )
        console.print(f"[bold green]✓ Budget \"{budget.name}\" added.[/bold green]")


@budget_app.command("delete")
def delete_budget(
    group_id: str = typer.Argument(..., help="Group id or invite code"),
    budget_id: str = typer.Argument(..., help="Budget id"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Delete a budget."""
    with open_service(verbose) as service:
        service.delete_budget(group_id, budget_id)
        console.print("[bold green]✓ Budget deleted.[/bold green]")


@budget_app.command("list")
def list_budgets(
    group_id: str = typer.Argument(..., help="Group id or invite code"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show spending against each budget."""
    with open_service(verbose) as service:
        group = service.get_group(group_id)
        statuses = service.budget_statuses(group.id)
        if not statuses:
            console.print("[yellow]No budgets yet.[/yellow]")
            return

        table = Table(title="Budgets", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Category")
        table.add_column("Budget", justify="right")
        table.add_column("Spent", justify="right")
        table.add_column("Remaining", justify="right")
        table.add_column("Used", justify="right")
        for status in statuses:
            remaining = format_money(status.remaining, group.currency)
            table.add_row(
                status.budget.id,
                status.budget.name,
                status.budget.category,
                format_money(status.budget.amount, group.currency),
                format_money(status.spent, group.currency),
                f"[red]{remaining}[/red]" if status.over_budget else remaining,
                f"{status.percent_used}%",
            )
        console.print(table)


# ============================================================================
# Reports
# ============================================================================


def balances(
    group_id: str = typer.Argument(..., help="Group id or invite code"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show what each member has paid, owes and their net balance."""
    with open_service(verbose) as service:
        group = service.get_group(group_id)

        table = Table(title="Balances", show_header=True, header_style="bold magenta")
        table.add_column("Member", style="cyan")
        table.add_column("Paid", justify="right")
        table.add_column("Owed", justify="right")
        table.add_column("Balance", justify="right")
        for entry in service.balances(group.id):
            balance = format_money(entry.balance, group.currency)
            if entry.balance > 0:
                balance = f"[green]{balance}[/green]"
            elif entry.balance < 0:
                balance = f"[red]{balance}[/red]"
            table.add_row(
                entry.member_name,
                format_money(total_paid_by(group, entry.member_id), group.currency),
                format_money(total_owed_by(group, entry.member_id), group.currency),
                balance,
            )
        console.print(table)


def history(
    group_id: str = typer.Argument(..., help="Group id or invite code"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show expenses and settlements, newest first."""
    with open_service(verbose) as service:
        group = service.get_group(group_id)
        items = service.history(group.id)
        if not items:
            console.print("[yellow]No activity yet.[/yellow]")
            return

        table = Table(title="Activity History", show_header=True, header_style="bold magenta")
        table.add_column("Date")
        table.add_column("Type", style="yellow")
        table.add_column("Description", style="cyan")
        table.add_column("Amount", justify="right")
        for item in items:
            table.add_row(
                str(item.date),
                item.kind,
                item.description,
                format_money(item.amount, group.currency),
            )
        console.print(table)


def stats(
    group_id: str = typer.Argument(..., help="Group id or invite code"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show spending statistics for a group."""
    with open_service(verbose) as service:
        group = service.get_group(group_id)
        summary = service.summary(group.id)

        console.print(f"\n[bold]{group.name} statistics[/bold]")
        console.print(f"  Total expenses: {format_money(summary.total_expenses, group.currency)}")
        console.print(f"  Expense count:  {summary.expense_count}")
        console.print(f"  Average:        {format_money(summary.average_expense, group.currency)}")
        console.print(f"  Members:        {summary.member_count}")
        if summary.most_recent_expense_date:
            console.print(f"  Most recent:    {summary.most_recent_expense_date}")
        if summary.top_payer_id:
            console.print(
                f"  Top payer:      {group.member_name(summary.top_payer_id)} "
                f"({format_money(summary.top_payer_amount, group.currency)})"
            )

        if summary.category_totals:
            table = Table(title="By Category", show_header=True, header_style="bold magenta")
            table.add_column("Category", style="cyan")
            table.add_column("Total", justify="right")
            table.add_column("Share", justify="right")
            for name, total in sorted(
                summary.category_totals.items(), key=lambda kv: kv[1], reverse=True
            ):
                share = total / summary.total_expenses * 100
                table.add_row(name, format_money(total, group.currency), f"{share:.0f}%")
            console.print(table)
