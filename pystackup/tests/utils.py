"""In-memory fakes shared by the unit tests."""

from typing import Dict, Iterable, List, Optional, Set, Tuple

from pystackup.typing import BranchName, GitError, PullRequestInfo

MUTATING_VERBS = ("fetch", "checkout", "pull", "merge", "merge_abort",
                  "rebase", "rebase_abort", "push")


class FakeGit:
    """In-memory GitInterface.

    Ancestry is an explicit set of (ancestor, descendant) pairs; merges and
    rebases add the pair they would create. Every call is recorded in
    ``calls`` so tests can assert on what was (not) done.
    """

    def __init__(self, branches: Iterable[str], main: str = "main",
                 remote_branches: Optional[Iterable[str]] = None):
        self.branches: List[str] = list(branches)
        self.main = main
        self.current: str = main
        self.dirty = False
        self.ancestry: Set[Tuple[str, str]] = set()
        self.remote_branches: Set[str] = set(self.branches if remote_branches is None else remote_branches)
        self.merge_conflicts: Set[str] = set()
        self.rebase_conflicts: Set[str] = set()
        self.push_failures: Set[str] = set()
        self.pull_failures: Set[str] = set()
        self.checkout_failures: Set[str] = set()
        # Leave the tree dirty after an abort of the given verb
        self.dirty_after_abort: Set[str] = set()
        self.heads: Dict[str, str] = {}
        self.changed: List[str] = []
        self.calls: List[Tuple[str, ...]] = []

    def _record(self, *call: str) -> None:
        self.calls.append(call)

    @property
    def mutations(self) -> List[Tuple[str, ...]]:
        return [c for c in self.calls if c[0] in MUTATING_VERBS]

    def called(self, verb: str, *args: str) -> bool:
        return any(c[0] == verb and c[1:1 + len(args)] == args for c in self.calls)

    def local_branches(self) -> List[BranchName]:
        return [BranchName(b) for b in self.branches]

    def current_branch(self) -> BranchName:
        return BranchName(self.current)

    def head_of(self, ref: str) -> str:
        return self.heads.get(ref, f"sha-{ref}")

    def is_clean(self) -> bool:
        return not self.dirty

    def fetch(self) -> None:
        self._record("fetch")

    def checkout(self, branch: str) -> None:
        self._record("checkout", branch)
        if branch in self.checkout_failures:
            raise GitError(f"checkout {branch}", "pathspec did not match")
        self.current = branch

    def pull(self, branch: str) -> None:
        self._record("pull", branch)
        if branch in self.pull_failures:
            raise GitError(f"pull {branch}", "Not possible to fast-forward")

    def remote_branch_exists(self, branch: str) -> bool:
        return branch in self.remote_branches

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        return ancestor == descendant or (ancestor, descendant) in self.ancestry

    def merge(self, ref: str) -> bool:
        self._record("merge", ref)
        if self.current in self.merge_conflicts:
            self.dirty = True
            return False
        self.ancestry.add((ref, self.current))
        return True

    def merge_abort(self) -> None:
        self._record("merge_abort")
        self.dirty = "merge" in self.dirty_after_abort

    def rebase(self, onto: str) -> bool:
        self._record("rebase", onto)
        if self.current in self.rebase_conflicts:
            self.dirty = True
            return False
        self.ancestry.add((onto, self.current))
        return True

    def rebase_abort(self) -> None:
        self._record("rebase_abort")
        self.dirty = "rebase" in self.dirty_after_abort

    def push(self, branch: str) -> None:
        self._record("push", branch)
        if branch in self.push_failures:
            raise GitError(f"push origin {branch}", "rejected")

    def would_conflict(self, ours: str, theirs: str) -> bool:
        self._record("would_conflict", ours, theirs)
        return ours in self.merge_conflicts or ours in self.rebase_conflicts

    def changed_files(self, old: str, new: str) -> List[str]:
        return list(self.changed)


class FakeHost:
    """In-memory HostInterface keyed by head branch."""

    def __init__(self, pulls: Optional[Dict[str, PullRequestInfo]] = None,
                 failing: Iterable[str] = ()):
        self.pulls = dict(pulls or {})
        self.failing = set(failing)
        self.lookups: List[str] = []

    def pull_request_for_branch(self, branch: str) -> Optional[PullRequestInfo]:
        self.lookups.append(branch)
        if branch in self.failing:
            raise RuntimeError("API rate limit exceeded")
        return self.pulls.get(branch)


