"""CLI for Expensiver."""

import typer

from .ledger.cli import (
    balances,
    budget_app,
    expense_app,
    group_app,
    history,
    member_app,
    settlement_app,
    stats,
)
from .mcp_server import run_server

app = typer.Typer(
    name="expensiver",
    help="Track shared group expenses and settle up",
)

app.add_typer(group_app, name="group")
app.add_typer(member_app, name="member")
app.add_typer(expense_app, name="expense")
app.add_typer(settlement_app, name="settlement")
app.add_typer(budget_app, name="budget")

app.command()(balances)
app.command()(history)
app.command()(stats)


@app.command()
def mcp():
    """Start the MCP server exposing the ledger as tools."""
    run_server()


if __name__ == "__main__":
    app()
