"""Ticket extraction from branch names.

Terminology:
    ticket: A work item identifier at the start of a branch name, e.g. "BR-1234",
            "br_1234" or "BR1234". Pattern: letters, an optional "-" or "_",
            then digits.

    ticket key: The normalized form used for comparisons, e.g. "br1234".

    stacked branch: A branch named stacked/<parent-ticket>/<rest>. Its own
            ticket is the one at the start of <rest>.
"""

import re
from typing import Optional, Tuple

from ..typing import TicketKey

STACKED_PREFIX = "stacked/"

_TICKET_RE = re.compile(r"^([A-Za-z]+[-_]?[0-9]+)")
_STACKED_RE = re.compile(r"^stacked/([^/]+)/(.+)$")


def normalize_ticket(ticket: str) -> TicketKey:
    """
    Normalize a ticket for case- and separator-insensitive comparison.

    >>> normalize_ticket("BR-1234")
    'br1234'
    >>> normalize_ticket(normalize_ticket("Br_1234"))
    'br1234'

    """
    return TicketKey(ticket.replace("-", "").replace("_", "").lower())


def extract_ticket(name: str) -> Optional[str]:
    """
    Extract the leading ticket from a branch name.

    Only a match at the very start counts; the rest of the name is ignored.
    Returns None when the name does not start with a ticket.

    >>> extract_ticket("BR-1234-add-login")
    'BR-1234'
    >>> extract_ticket("Br1234X")
    'Br1234'
    >>> extract_ticket("feature/BR-1234") is None
    True

    """
    if match := _TICKET_RE.match(name):
        return match.group(1)
    return None


def ticket_key(name: str) -> Optional[TicketKey]:
    """Normalized leading ticket of ``name``, or None."""
    if (ticket := extract_ticket(name)) is not None:
        return normalize_ticket(ticket)
    return None


def is_stacked_name(name: str) -> bool:
    """True for any name under the stacked/ namespace, well-formed or not."""
    return name.startswith(STACKED_PREFIX)


def parse_stacked_branch(name: str) -> Optional[Tuple[str, str]]:
    """
    Split a stacked branch name into (parent ticket, rest).

    >>> parse_stacked_branch("stacked/br1234/BR-2345-my-feature")
    ('br1234', 'BR-2345-my-feature')
    >>> parse_stacked_branch("stacked/br1234") is None
    True

    """
    if match := _STACKED_RE.match(name):
        return match.group(1), match.group(2)
    return None


def branch_ticket_key(name: str) -> Optional[TicketKey]:
    """
    The ticket a branch is known by when looking up parents.

    Regular branches are keyed by their leading ticket. Stacked branches are
    keyed by the leading ticket of <rest>, so that a stacked branch
    can itself be the parent of another stacked branch.

    """
    # Stacked parents are allowed (DESIGN.md, "Stacked branch's own ticket")
    if is_stacked_name(name):
        if (parsed := parse_stacked_branch(name)) is None:
            return None
        return ticket_key(parsed[1])
    return ticket_key(name)
