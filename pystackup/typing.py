"""Common types used across the codebase."""

from dataclasses import dataclass, field
from typing import List, NewType, Optional, Protocol, runtime_checkable

# Create NewTypes for branch identifiers
BranchName = NewType('BranchName', str)
TicketKey = NewType('TicketKey', str)

REVIEW_APPROVED = "APPROVED"


class GitError(Exception):
    """A git command failed."""

    def __init__(self, command: str, message: str = ""):
        self.command = command
        super().__init__(f"git {command} failed: {message}" if message else f"git {command} failed")


class NotARepositoryError(GitError):
    """Raised when the working directory is not inside a git repository."""

    def __init__(self, path: str):
        self.path = path
        Exception.__init__(self, f"Not in a git repository: {path}")


class MalformedStackedBranchError(ValueError):
    """Raised when a stacked branch name does not look like stacked/<parent-ticket>/<name>."""

    def __init__(self, branch: str):
        self.branch = branch
        super().__init__(
            f"Invalid stacked branch format: {branch} "
            "(expected stacked/<parent-ticket>/<branch-name>)"
        )


@dataclass
class PullRequestInfo:
    """The slice of an open pull request that branch classification needs."""
    number: int
    head_ref: str
    labels: List[str] = field(default_factory=list)
    review_decision: Optional[str] = None

    @property
    def approved(self) -> bool:
        return self.review_decision == REVIEW_APPROVED

    def has_label(self, label: str) -> bool:
        return label in self.labels


@runtime_checkable
class GitInterface(Protocol):
    """Version control verbs the update engine relies on."""

    def local_branches(self) -> List[BranchName]:
        """List local branch names in git's listing order."""
        ...

    def current_branch(self) -> BranchName:
        ...

    def head_of(self, ref: str) -> str:
        """Resolve a ref to a commit hash."""
        ...

    def is_clean(self) -> bool:
        """True when there are no staged, unstaged or untracked changes."""
        ...

    def fetch(self) -> None:
        ...

    def checkout(self, branch: str) -> None:
        ...

    def pull(self, branch: str) -> None:
        """Integrate the remote counterpart of ``branch`` into the checked out branch."""
        ...

    def remote_branch_exists(self, branch: str) -> bool:
        ...

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        ...

    def merge(self, ref: str) -> bool:
        """Merge ``ref`` into the checked out branch. False on conflict."""
        ...

    def merge_abort(self) -> None:
        ...

    def rebase(self, onto: str) -> bool:
        """Rebase the checked out branch onto ``onto``. False on conflict."""
        ...

    def rebase_abort(self) -> None:
        ...

    def push(self, branch: str) -> None:
        ...

    def would_conflict(self, ours: str, theirs: str) -> bool:
        """Predict whether merging ``theirs`` into ``ours`` conflicts, without touching the tree."""
        ...

    def changed_files(self, old: str, new: str) -> List[str]:
        ...


@runtime_checkable
class HostInterface(Protocol):
    """Code review host lookups used for label-based exclusion."""

    def pull_request_for_branch(self, branch: str) -> Optional[PullRequestInfo]:
        """Return the open pull request whose head is ``branch``, if any."""
        ...
