"""Tests for ticket extraction and stacked branch name parsing."""

import doctest

import pytest

import pystackup.branches.ticket as ticket_module
from pystackup.branches.ticket import (
    branch_ticket_key, extract_ticket, is_stacked_name, normalize_ticket,
    parse_stacked_branch, ticket_key,
)


def test_doctests() -> None:
    """The examples in the module docstrings hold."""
    failures, _ = doctest.testmod(ticket_module)
    assert failures == 0


@pytest.mark.parametrize("name", ["BR-1234-x", "br_1234_x", "Br1234X"])
def test_spellings_share_one_key(name: str) -> None:
    assert ticket_key(name) == "br1234"


@pytest.mark.parametrize("name", [
    "BR-1234-x", "br_1234", "ABC-1-fix", "feature-branch", "x", "", "stacked/br1/BR-2-y",
])
def test_normalize_is_idempotent(name: str) -> None:
    ticket = extract_ticket(name)
    if ticket is None:
        return
    once = normalize_ticket(ticket)
    assert normalize_ticket(once) == once


class TestExtractTicket:
    """Leading match only."""

    def test_no_ticket(self) -> None:
        assert extract_ticket("feature-branch") is None
        assert extract_ticket("1234-fix") is None
        assert extract_ticket("") is None

    def test_not_at_start(self) -> None:
        assert extract_ticket("fix/BR-1234") is None

    def test_double_separator_stops_match(self) -> None:
        assert extract_ticket("BR--1234") is None

    def test_stops_at_first_non_digit(self) -> None:
        assert extract_ticket("BR-12a34") == "BR-12"


class TestStackedNames:
    def test_well_formed(self) -> None:
        assert parse_stacked_branch("stacked/br1234/BR-5555-child") == ("br1234", "BR-5555-child")

    def test_rest_may_contain_slashes(self) -> None:
        assert parse_stacked_branch("stacked/br1234/team/BR-5555") == ("br1234", "team/BR-5555")

    @pytest.mark.parametrize("name", ["stacked/br1234", "stacked//x", "stacked/", "stacked/br1234/"])
    def test_malformed(self, name: str) -> None:
        assert is_stacked_name(name)
        assert parse_stacked_branch(name) is None

    def test_regular_name_is_not_stacked(self) -> None:
        assert not is_stacked_name("BR-1234-parent")
        assert parse_stacked_branch("BR-1234-parent") is None


class TestBranchTicketKey:
    def test_regular_uses_leading_ticket(self) -> None:
        assert branch_ticket_key("BR-1234-parent") == "br1234"

    def test_stacked_uses_rest(self) -> None:
        assert branch_ticket_key("stacked/br1234/BR-5555-child") == "br5555"

    def test_malformed_stacked_has_no_key(self) -> None:
        assert branch_ticket_key("stacked/br1234") is None
