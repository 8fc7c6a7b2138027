"""Dependency ordering for stacked branches."""

import enum
import logging
from typing import Dict, List, Optional, Sequence, Set

from ..typing import BranchName, MalformedStackedBranchError
from . import ParentResolver

logger = logging.getLogger(__name__)

class VisitState(enum.Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    VISITED = 2

def _resolve(branch: BranchName, resolver: ParentResolver) -> Optional[BranchName]:
    try:
        return resolver.find_parent(branch)
    except MalformedStackedBranchError:
        # Placed without constraints; the updater fails it later
        return None

def topological_sort(branches: Sequence[BranchName], resolver: ParentResolver) -> List[BranchName]:
    """
    Order stacked branches so each comes after its parent.

    Depth-first with three-state marking. A parent is only visited first if it
    is itself in ``branches``; parents outside the set are assumed current.
    Reaching a branch that is still in progress means a cycle: it is logged and
    that edge is dropped, so every branch is still emitted exactly once.
    Independent branches keep their input order.
    """
    members: Set[BranchName] = set(branches)
    state: Dict[BranchName, VisitState] = {b: VisitState.UNVISITED for b in branches}
    ordered: List[BranchName] = []

    def visit(branch: BranchName, state: Dict[BranchName, VisitState], ordered: List[BranchName]) -> None:
        if state[branch] is VisitState.VISITED:
            return
        if state[branch] is VisitState.IN_PROGRESS:
            logger.warning(f"Circular dependency detected involving {branch}")
            return

        state[branch] = VisitState.IN_PROGRESS
        parent = _resolve(branch, resolver)
        if parent is not None and parent in members:
            visit(parent, state, ordered)
        state[branch] = VisitState.VISITED
        ordered.append(branch)

    for branch in branches:
        visit(branch, state, ordered)

    return ordered
