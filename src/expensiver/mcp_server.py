"""MCP server for Expensiver: exposes the group ledger as tools."""

import logging
from dataclasses import dataclass

from mcp.server.fastmcp import FastMCP

from .config import load_settings
from .db import Database
from .exceptions import ExpensiverError
from .ledger.money import format_money
from .ledger.service import LedgerService
from .ui import resolve_member

logger = logging.getLogger(__name__)

mcp_app = FastMCP("expensiver")

# ---------------------------------------------------------------------------
# Session state: one MCP server process holds one database connection
# ---------------------------------------------------------------------------

WORKFLOW_INSTRUCTIONS = """\
You are helping a group track shared expenses. Follow this workflow:

1. DISCOVER: Call list_groups and pick the group the user means.

2. RECORD: Call add_expense for each new expense. Members are referred to by
   name. For custom splits pass one value per member: an exact amount
   (unequal), a percentage, a share count, or a signed adjustment.

3. REVIEW: Call show_balances to see who is owed and who owes.

4. SETTLE: Call plan_settlements for suggested payments. When the user says
   a payment was made, call record_settlement.

Positive balances are owed money, negative balances owe money.\
"""


@dataclass
class SessionState:
    """Holds state between MCP tool calls."""

    service: LedgerService | None = None
    db: Database | None = None


_state = SessionState()


def _ensure_service() -> LedgerService:
    """Lazily initialize the LedgerService (loads .env config)."""
    if _state.service is None:
        settings = load_settings()
        _state.db = Database(settings.database_path)
        _state.service = LedgerService(settings, _state.db)
    return _state.service


# ---------------------------------------------------------------------------
# MCP Tools
# ---------------------------------------------------------------------------


@mcp_app.tool()
def list_groups() -> str:
    """List all groups with their ids, invite codes and members."""
    try:
        service = _ensure_service()
        groups = service.list_groups()
        if not groups:
            return "No groups found."

        lines = ["Groups:"]
        for group in groups:
            members = ", ".join(m.name for m in group.members)
            lines.append(
                f"- {group.name} (id: {group.id}, code: {group.invite_code}) | {members}"
            )
        return "\n".join(lines)
    except ExpensiverError as e:
        return f"Error: {e}"


@mcp_app.tool()
def show_balances(group_id: str) -> str:
    """Show every member's net balance in a group.

    Args:
        group_id: Group id or invite code.
    """
    try:
        service = _ensure_service()
        group = service.get_group(group_id)
        lines = [f"Balances for {group.name}:"]
        for entry in service.balances(group.id):
            lines.append(
                f"  - {entry.member_name}: {format_money(entry.balance, group.currency)}"
            )
        return "\n".join(lines)
    except ExpensiverError as e:
        return f"Error: {e}"


@mcp_app.tool()
def plan_settlements(group_id: str) -> str:
    """Suggest payments that would settle every balance in a group.

    Args:
        group_id: Group id or invite code.
    """
    try:
        service = _ensure_service()
        group = service.get_group(group_id)
        transfers = service.settlement_plan(group.id)
        if not transfers:
            return "Everyone is settled up."

        lines = ["Suggested settlements:"]
        for transfer in transfers:
            lines.append(
                f"  - {group.member_name(transfer.from_id)} pays "
                f"{group.member_name(transfer.to_id)} "
                f"{format_money(transfer.amount, group.currency)}"
            )
        return "\n".join(lines)
    except ExpensiverError as e:
        return f"Error: {e}"


@mcp_app.tool()
def add_expense(
    group_id: str,
    description: str,
    amount: str,
    paid_by: str,
    participants: list[str] | None = None,
    split_type: str = "equal",
    values: dict[str, str] | None = None,
    category: str = "other",
) -> str:
    """Record an expense paid by one member.

    Args:
        group_id: Group id or invite code.
        description: What the expense was for.
        amount: Total amount.
        paid_by: Name of the member who paid.
        participants: Names of members sharing it (default: everyone).
        split_type: equal, unequal, percentage, shares, adjustment or exclude.
        values: Member name -> value for custom split types.
        category: Expense category.
    """
    try:
        service = _ensure_service()
        group = service.get_group(group_id)

        participant_ids = (
            [resolve_member(group, name).id for name in participants]
            if participants
            else [m.id for m in group.members]
        )
        split_values = {
            resolve_member(group, name).id: value
            for name, value in (values or {}).items()
        }

        expense = service.add_expense(
            group.id,
            description=description,
            amount=amount,
            participant_ids=participant_ids,
            split_type=split_type,  # type: ignore[arg-type]
            split_values=split_values,
            payer_id=resolve_member(group, paid_by).id,
            category=category,
        )

        shares = ", ".join(
            f"{group.member_name(s.member_id)} {format_money(s.amount, group.currency)}"
            for s in expense.splits
        )
        return f"Recorded '{expense.description}' (id: {expense.id}): {shares}"
    except ExpensiverError as e:
        return f"Error: {e}"
    except ValueError as e:
        return f"Failed to add expense: {e}"


@mcp_app.tool()
def record_settlement(group_id: str, from_member: str, to_member: str, amount: str) -> str:
    """Record a payment from one member to another.

    Args:
        group_id: Group id or invite code.
        from_member: Name of the member who paid.
        to_member: Name of the member who received the money.
        amount: Amount paid.
    """
    try:
        service = _ensure_service()
        group = service.get_group(group_id)
        settlement = service.settle_up(
            group.id,
            from_id=resolve_member(group, from_member).id,
            to_id=resolve_member(group, to_member).id,
            amount=amount,
        )
        return (
            f"Settlement of {format_money(settlement.amount, group.currency)} "
            f"recorded: {settlement.notes}"
        )
    except ExpensiverError as e:
        return f"Error: {e}"


# ---------------------------------------------------------------------------
# MCP Prompt
# ---------------------------------------------------------------------------


@mcp_app.prompt()
def expense_workflow() -> str:
    """Instructions for recording expenses and settling up."""
    return WORKFLOW_INSTRUCTIONS


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run_server():
    """Start the MCP server (stdio transport)."""
    mcp_app.run(transport="stdio")
