"""Branch classification and parent resolution."""

import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from ..config.models import StackupConfig, UpdateConfig
from ..typing import (
    BranchName, HostInterface, MalformedStackedBranchError, PullRequestInfo, TicketKey,
)
from .ticket import (
    branch_ticket_key, is_stacked_name, normalize_ticket, parse_stacked_branch,
)

# Get module logger
logger = logging.getLogger(__name__)

class BranchKind(enum.Enum):
    REGULAR = "regular"
    STACKED = "stacked"
    IGNORED = "ignored"

@dataclass(frozen=True)
class ClassifiedBranch:
    """A local branch tagged with how the updater should treat it.

    ``parent_ticket`` is only set for well-formed stacked branches; a stacked
    branch with a malformed name keeps ``parent_ticket=None`` and is failed by
    the updater. ``reason`` explains why an ignored branch was skipped.
    """
    name: BranchName
    kind: BranchKind
    parent_ticket: Optional[str] = None
    reason: Optional[str] = None

    @property
    def is_stacked(self) -> bool:
        return self.kind is BranchKind.STACKED

    @property
    def malformed(self) -> bool:
        return self.is_stacked and self.parent_ticket is None

@dataclass
class Classification:
    """The three disjoint groups produced by ``classify_branches``."""
    ignored: List[ClassifiedBranch] = field(default_factory=list)
    regular: List[ClassifiedBranch] = field(default_factory=list)
    stacked: List[ClassifiedBranch] = field(default_factory=list)

    def add(self, branch: ClassifiedBranch) -> None:
        {
            BranchKind.IGNORED: self.ignored,
            BranchKind.REGULAR: self.regular,
            BranchKind.STACKED: self.stacked,
        }[branch.kind].append(branch)

    @property
    def is_empty(self) -> bool:
        """True when nothing is left to update."""
        return not self.regular and not self.stacked

def excluded_by_labels(pr: PullRequestInfo, policy: UpdateConfig) -> Optional[str]:
    """Return the excluding label if the PR's labels take its branch out of the run.

    A branch is excluded when its PR carries one of ``excluded_labels`` and is
    approved (if ``require_approval``), unless it also carries the override
    label. This lets blocked merge queue candidates still be updated.
    """
    label = next((lbl for lbl in policy.excluded_labels if pr.has_label(lbl)), None)
    if label is None:
        return None
    if policy.require_approval and not pr.approved:
        return None
    if policy.override_label and pr.has_label(policy.override_label):
        logger.debug(f"PR #{pr.number} has '{label}' but is marked '{policy.override_label}'")
        return None
    return label

def _ignore_reason(name: str, config: StackupConfig, host: Optional[HostInterface]) -> Optional[str]:
    if name == config.main_branch:
        return "main-branch"

    for pattern in config.update.exclude_patterns:
        if pattern in name:
            return f"pattern:{pattern}"

    if host is not None and config.update.excluded_labels:
        try:
            pr = host.pull_request_for_branch(name)
        except Exception as e:
            logger.warning(f"Could not look up pull request for {name}: {e}")
            return None
        if pr is not None and (label := excluded_by_labels(pr, config.update)):
            return f"label:{label}"

    return None

def classify_branch(name: BranchName, config: StackupConfig,
                    host: Optional[HostInterface] = None) -> ClassifiedBranch:
    """Tag a single branch as ignored, stacked or regular."""
    if reason := _ignore_reason(name, config, host):
        return ClassifiedBranch(name, BranchKind.IGNORED, reason=reason)

    if is_stacked_name(name):
        parsed = parse_stacked_branch(name)
        return ClassifiedBranch(name, BranchKind.STACKED,
                                parent_ticket=parsed[0] if parsed else None)

    return ClassifiedBranch(name, BranchKind.REGULAR)

def classify_branches(branches: Iterable[BranchName], config: StackupConfig,
                      host: Optional[HostInterface] = None) -> Classification:
    """Partition local branches into ignored, regular and stacked, keeping input order."""
    result = Classification()
    for name in branches:
        classified = classify_branch(name, config, host)
        logger.debug(f"Classified {name} as {classified.kind.value}"
                     + (f" ({classified.reason})" if classified.reason else ""))
        result.add(classified)
    return result

class ParentResolver:
    """Finds the parent branch of stacked branches by normalized ticket.

    The ticket index over all local branches is built lazily once, and
    resolved parents are cached for the lifetime of the resolver (one run).
    """

    def __init__(self, branches: Sequence[BranchName]):
        self.branches: List[BranchName] = list(branches)
        self._index: Optional[Dict[TicketKey, List[BranchName]]] = None
        self._parents: Dict[BranchName, Optional[BranchName]] = {}

    def _ticket_index(self) -> Dict[TicketKey, List[BranchName]]:
        if self._index is None:
            self._index = {}
            for name in self.branches:
                if (key := branch_ticket_key(name)) is not None:
                    self._index.setdefault(key, []).append(name)
        return self._index

    def candidates(self, stacked_branch: BranchName) -> List[BranchName]:
        """All branches (other than ``stacked_branch``) whose ticket matches its parent ticket."""
        parsed = parse_stacked_branch(stacked_branch)
        if parsed is None:
            raise MalformedStackedBranchError(stacked_branch)
        wanted = normalize_ticket(parsed[0])
        return [b for b in self._ticket_index().get(wanted, []) if b != stacked_branch]

    def find_parent(self, stacked_branch: BranchName) -> Optional[BranchName]:
        """
        Resolve the parent branch of a stacked branch.

        Prefers the first non-stacked match. When only stacked branches match,
        the first one in listing order wins and a warning is logged if there
        was more than one.

        Raises:
            MalformedStackedBranchError: if the name is not stacked/<ticket>/<rest>.
        """
        if stacked_branch in self._parents:
            return self._parents[stacked_branch]

        found = self.candidates(stacked_branch)
        parent: Optional[BranchName] = None
        if found:
            parent = next((b for b in found if not is_stacked_name(b)), None)
            if parent is None:
                if len(found) > 1:
                    logger.warning(f"Multiple parent candidates found for {stacked_branch}: {', '.join(found)}")
                    logger.warning(f"Using first match: {found[0]}")
                parent = found[0]

        self._parents[stacked_branch] = parent
        return parent
