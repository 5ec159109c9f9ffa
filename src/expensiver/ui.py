"""Interactive prompts for picking group members."""

import logging
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from .exceptions import NotFoundError
from .models import Group, Member

logger = logging.getLogger(__name__)


def fuzzy_match(query: str, text: str) -> bool:
    """
    Fuzzy match: all characters in query must appear in order in text.

    Example:
        query="al" matches "Alice"
        query="bb" matches "Bobby"
    """
    query_idx = 0
    for char in text:
        if query_idx < len(query) and char == query[query_idx]:
            query_idx += 1
    return query_idx == len(query)


class MemberCompleter(Completer):
    """Fuzzy search completer for group members."""

    def __init__(self, members: list[Member]):
        """Initialize the completer with the group's members."""
        self.members = members
        self.name_to_id = {member.name: member.id for member in members}

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions."""
        query = document.text.lower()

        for member in self.members:
            if not query or fuzzy_match(query, member.name.lower()):
                yield Completion(
                    text=member.name,
                    start_position=-len(document.text),
                    display=member.name,
                )


def resolve_member(group: Group, name_or_id: str) -> Member:
    """
    Find a member by id, or by name ignoring case.

    Raises:
        NotFoundError: If nothing matches
    """
    member = group.find_member(name_or_id)
    if member is not None:
        return member

    wanted = name_or_id.strip().lower()
    for member in group.members:
        if member.name.lower() == wanted:
            return member
    raise NotFoundError("member", name_or_id)


def select_member_interactive(group: Group, label: str) -> str | None:
    """
    Interactive member selection with fuzzy search.

    Args:
        group: The group whose members can be picked
        label: What the member is being picked for, e.g. "Paid by"

    Returns:
        Selected member ID, or None to cancel
    """
    print("   Type to search, press Enter to confirm, Ctrl+C to cancel\n")

    completer = MemberCompleter(group.members)
    session: PromptSession[str] = PromptSession(completer=completer)

    try:
        while True:
            result = session.prompt(f"{label}: ", complete_while_typing=True)

            if not result:
                return None

            member_id = completer.name_to_id.get(result)
            if member_id:
                logger.debug(f"User selected member: {result}")
                return member_id

            print("Unknown member. Please select from the list or press Tab to complete.")

    except (KeyboardInterrupt, EOFError):
        print("\nCancelled")
        return None


def confirm_action(message: str) -> bool:
    """Simple yes/no confirmation, defaulting to no."""
    response = input(f"{message} [y/N] ").strip().lower()
    return response in ("y", "yes")
