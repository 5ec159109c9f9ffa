"""Tests for member lookup and the fuzzy completer."""

import pytest
from prompt_toolkit.document import Document

from expensiver.exceptions import NotFoundError
from expensiver.ui import MemberCompleter, fuzzy_match, resolve_member


class TestFuzzyMatch:
    @pytest.mark.parametrize(
        ("query", "text", "expected"),
        [
            ("al", "alice", True),
            ("ace", "alice", True),
            ("ea", "alice", False),
            ("", "bob", True),
            ("bobb", "bob", False),
        ],
    )
    def test_match(self, query, text, expected):
        assert fuzzy_match(query, text) is expected


class TestResolveMember:
    def test_by_id(self, group, ids):
        assert resolve_member(group, ids["Bob"]).name == "Bob"

    def test_by_name_ignoring_case(self, group, ids):
        assert resolve_member(group, " carol ").id == ids["Carol"]

    def test_unknown(self, group):
        with pytest.raises(NotFoundError):
            resolve_member(group, "Mallory")


class TestMemberCompleter:
    def test_completes_fuzzy_names(self, group):
        completer = MemberCompleter(group.members)

        completions = list(completer.get_completions(Document("ao"), None))

        assert [c.text for c in completions] == ["Carol"]

    def test_empty_query_lists_everyone(self, group):
        completer = MemberCompleter(group.members)

        completions = list(completer.get_completions(Document(""), None))

        assert [c.text for c in completions] == ["Alice", "Bob", "Carol"]
