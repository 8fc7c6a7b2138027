"""Branch update engine.

Brings every local branch up to date with the main branch. Regular branches
get main merged in and pushed. Stacked branches are rebased onto their parent
while the parent is still active, and get main merged in once the parent has
landed. Rebased branches are never pushed: rewritten history needs a
force-push the user should review.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from ..branches import Classification, ClassifiedBranch, ParentResolver
from ..branches.ordering import topological_sort
from ..config.models import StackupConfig
from ..typing import BranchName, GitError, GitInterface, MalformedStackedBranchError

# Get module logger
logger = logging.getLogger(__name__)

class Bucket(enum.Enum):
    """Terminal outcome of one branch."""
    IGNORED = "ignored"
    SUCCESSFUL = "successful"
    REBASED = "rebased"
    MERGE_CONFLICT = "merge_conflict"
    REBASE_CONFLICT = "rebase_conflict"
    FAILED = "failed"

# Outcomes that make a branch unusable as the base of a stacked child
BAD_BASE_BUCKETS = (Bucket.FAILED, Bucket.MERGE_CONFLICT, Bucket.REBASE_CONFLICT)

@dataclass
class UpdateResults:
    """Accumulates the bucket of every branch seen during one run."""
    buckets: Dict[Bucket, List[BranchName]] = field(
        default_factory=lambda: {bucket: [] for bucket in Bucket}
    )
    _by_branch: Dict[BranchName, Bucket] = field(default_factory=dict)

    def add(self, bucket: Bucket, branch: BranchName) -> None:
        if branch in self._by_branch:
            raise ValueError(f"{branch} already recorded as {self._by_branch[branch].value}")
        self._by_branch[branch] = bucket
        self.buckets[bucket].append(branch)

    def bucket_of(self, branch: BranchName) -> Optional[Bucket]:
        return self._by_branch.get(branch)

    def __getitem__(self, bucket: Bucket) -> List[BranchName]:
        return self.buckets[bucket]

    @property
    def ignored(self) -> List[BranchName]:
        return self.buckets[Bucket.IGNORED]

    @property
    def successful(self) -> List[BranchName]:
        return self.buckets[Bucket.SUCCESSFUL]

    @property
    def rebased(self) -> List[BranchName]:
        return self.buckets[Bucket.REBASED]

    @property
    def merge_conflict(self) -> List[BranchName]:
        return self.buckets[Bucket.MERGE_CONFLICT]

    @property
    def rebase_conflict(self) -> List[BranchName]:
        return self.buckets[Bucket.REBASE_CONFLICT]

    @property
    def failed(self) -> List[BranchName]:
        return self.buckets[Bucket.FAILED]

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.merge_conflict or self.rebase_conflict)

class BranchUpdater:
    """Runs the per-branch update protocol over a classified set of branches."""

    def __init__(self, config: StackupConfig, git_cmd: GitInterface,
                 resolver: Optional[ParentResolver] = None):
        self.config = config
        self.git_cmd = git_cmd
        self.resolver = resolver
        self.results = UpdateResults()
        # Branches already merged into main when the run started
        self.landed: Set[BranchName] = set()

    @property
    def main_branch(self) -> str:
        return self.config.main_branch

    @property
    def dry_run(self) -> bool:
        return self.config.dry_run

    def _resolver(self) -> ParentResolver:
        if self.resolver is None:
            self.resolver = ParentResolver(self.git_cmd.local_branches())
        return self.resolver

    def _clean(self, branch: str, when: str) -> bool:
        if self.git_cmd.is_clean():
            return True
        logger.error(f"Working directory not clean {when} in {branch}")
        return False

    def prepare(self) -> None:
        """Fetch and bring the main branch up to date before processing."""
        remote = self.config.remote
        if self.dry_run:
            logger.info(f"[dry-run] Would fetch from {remote}")
            logger.info(f"[dry-run] Would checkout and pull {self.main_branch}")
            return
        logger.info("Fetching latest changes...")
        self.git_cmd.fetch()
        logger.info(f"Updating {self.main_branch} branch...")
        self.git_cmd.checkout(self.main_branch)
        self.git_cmd.pull(self.main_branch)

    def restore(self, branch: str) -> bool:
        """Return to the branch the run started on. False if the checkout failed."""
        logger.info(f"Returning to original branch: {branch}")
        if self.dry_run:
            return True
        try:
            self.git_cmd.checkout(branch)
        except GitError as e:
            logger.error(f"Failed to return to {branch}: {e}")
            return False
        return True

    def run(self, classification: Classification) -> UpdateResults:
        """Process regular branches, then stacked branches in dependency order."""
        for branch in classification.ignored:
            self.results.add(Bucket.IGNORED, branch.name)

        # Phase 1 fast-forwards a landed parent to main, so record it first
        if classification.stacked:
            self.record_landed(classification)

        if classification.regular:
            logger.info("=== PHASE 1: Processing regular branches ===")
        for branch in classification.regular:
            self.update_branch(branch)

        if classification.stacked:
            logger.info("=== PHASE 2: Processing stacked branches ===")
            logger.info("Sorting stacked branches by dependencies...")
            by_name = {b.name: b for b in classification.stacked}
            order = topological_sort(list(by_name), self._resolver())
            logger.info("Processing order:")
            for name in order:
                logger.info(f"  - {name}")
            for name in order:
                self.update_branch(by_name[name])

        return self.results

    def record_landed(self, classification: Classification) -> None:
        """Remember which branches are strictly contained in main before any update."""
        for branch in classification.ignored + classification.regular + classification.stacked:
            if branch.name != self.main_branch and self.is_merged_to_main(branch.name):
                logger.debug(f"{branch.name} is already merged to {self.main_branch}")
                self.landed.add(branch.name)

    def update_branch(self, branch: ClassifiedBranch) -> Bucket:
        """Process one branch and record its bucket. Never raises."""
        try:
            if branch.is_stacked:
                bucket = self.process_stacked_branch(branch)
            else:
                bucket = self.process_regular_branch(branch.name)
        except Exception as e:
            logger.error(f"Error while updating {branch.name}: {e}")
            bucket = Bucket.FAILED
        self.results.add(bucket, branch.name)
        return bucket

    def process_regular_branch(self, branch: BranchName) -> Bucket:
        """Sync a regular branch with its remote and merge main into it."""
        logger.info(f"Processing regular branch: {branch}")
        failure = self.sync_branch(branch)
        if failure is not None:
            return failure
        return self.merge_main_into_branch(branch)

    def process_stacked_branch(self, branch: ClassifiedBranch) -> Bucket:
        """Rebase a stacked branch onto its parent, or merge main once the parent has landed."""
        name = branch.name
        logger.info(f"Processing stacked branch: {name}")

        if branch.malformed:
            logger.error(str(MalformedStackedBranchError(name)))
            return Bucket.FAILED

        parent = self._resolver().find_parent(name)
        if parent is None:
            logger.warning(f"Could not find parent branch for {name} (looking for ticket: {branch.parent_ticket})")
            logger.warning(f"Parent branch may have been merged or deleted. Will merge from {self.main_branch} instead.")
            failure = self.sync_branch(name)
            if failure is not None:
                return failure
            return self.merge_main_into_branch(name)

        logger.info(f"Parent branch for {name}: {parent}")
        parent_bucket = self.results.bucket_of(parent)
        if parent_bucket in BAD_BASE_BUCKETS:
            logger.error(f"Parent branch {parent} ended as {parent_bucket.value}; skipping {name}")
            return Bucket.FAILED

        failure = self.sync_branch(name)
        if failure is not None:
            return failure

        if parent in self.landed or self.is_merged_to_main(parent):
            logger.info(f"Parent branch {parent} has been merged to {self.main_branch}")
            logger.info(f"Merging {self.main_branch} into {name} instead of rebasing...")
            return self.merge_main_into_branch(name)

        return self.rebase_onto_parent(name, parent)

    def is_merged_to_main(self, branch: str) -> bool:
        """True when ``branch`` is strictly contained in main."""
        return (self.git_cmd.is_ancestor(branch, self.main_branch)
                and not self.git_cmd.is_ancestor(self.main_branch, branch))

    def sync_branch(self, branch: BranchName) -> Optional[Bucket]:
        """Check out ``branch`` and pull its remote counterpart.

        Returns None to continue, or FAILED.
        """
        if not self.git_cmd.is_clean():
            logger.error(f"Uncommitted changes detected. Skipping {branch}. Please commit or stash changes first.")
            return Bucket.FAILED

        if self.dry_run:
            logger.info(f"[dry-run] Would checkout {branch}")
        else:
            try:
                self.git_cmd.checkout(branch)
            except GitError as e:
                logger.error(f"Failed to checkout {branch}: {e}")
                return Bucket.FAILED
            if not self._clean(branch, "after checkout"):
                return Bucket.FAILED

        if self.git_cmd.remote_branch_exists(branch):
            logger.info(f"Pulling latest changes for {branch}...")
            if self.dry_run:
                logger.info(f"[dry-run] Would pull {self.config.remote}/{branch}")
            else:
                try:
                    self.git_cmd.pull(branch)
                except GitError as e:
                    logger.error(f"Failed to pull {branch}. There may be conflicts or connectivity issues: {e}")
                    return Bucket.FAILED
                if not self._clean(branch, "after pull"):
                    return Bucket.FAILED
        else:
            logger.warning(f"Remote branch {self.config.remote}/{branch} not found. Skipping pull.")

        return None

    def merge_main_into_branch(self, branch: BranchName) -> Bucket:
        """Merge main into the checked out ``branch`` and push it."""
        main = self.main_branch
        if self.git_cmd.is_ancestor(main, branch):
            logger.info(f"Branch {branch} is already up-to-date with {main}. Skipping merge.")
            return Bucket.SUCCESSFUL

        logger.info(f"Merging {main} into {branch}...")
        if self.dry_run:
            logger.info(f"[dry-run] Would merge {main} into {branch}")
            if self.git_cmd.would_conflict(branch, main):
                logger.warning("Merge would have conflicts")
                return Bucket.MERGE_CONFLICT
            logger.info(f"Merge would succeed for {branch}")
            return Bucket.SUCCESSFUL

        if not self.git_cmd.merge(main):
            logger.warning(f"Merge conflict detected in {branch}")
            try:
                self.git_cmd.merge_abort()
            except GitError as e:
                logger.error(f"Failed to abort merge in {branch}: {e}")
            if not self._clean(branch, "after merge abort"):
                return Bucket.FAILED
            logger.info(f"Merge aborted for {branch}")
            return Bucket.MERGE_CONFLICT

        logger.info(f"Merge successful for {branch}")
        if not self._clean(branch, "after merge"):
            return Bucket.FAILED

        if self.config.no_push:
            logger.warning("Skipping push (no-push mode enabled)")
            return Bucket.SUCCESSFUL

        logger.info(f"Pushing {branch}...")
        try:
            self.git_cmd.push(branch)
        except GitError as e:
            logger.error(f"Failed to push {branch}: {e}")
            return Bucket.FAILED
        logger.info(f"Successfully pushed {branch}")
        return Bucket.SUCCESSFUL

    def rebase_onto_parent(self, branch: BranchName, parent: BranchName) -> Bucket:
        """Rebase the checked out ``branch`` onto ``parent``. Never pushes."""
        logger.info(f"Rebasing {branch} onto {parent}...")
        if self.dry_run:
            logger.info(f"[dry-run] Would rebase {branch} onto {parent}")
            if self.git_cmd.would_conflict(branch, parent):
                logger.warning("Rebase would have conflicts")
                return Bucket.REBASE_CONFLICT
            logger.warning("Branch would need manual force-push after rebase")
            return Bucket.REBASED

        if not self.git_cmd.rebase(parent):
            logger.warning(f"Rebase conflict detected in {branch}")
            try:
                self.git_cmd.rebase_abort()
            except GitError as e:
                logger.error(f"Failed to abort rebase in {branch}: {e}")
            if not self._clean(branch, "after rebase abort"):
                return Bucket.FAILED
            logger.info(f"Rebase aborted for {branch}")
            return Bucket.REBASE_CONFLICT

        logger.info(f"Rebase successful for {branch}")
        if not self._clean(branch, "after rebase"):
            return Bucket.FAILED

        logger.warning(f"Branch {branch} has been rebased locally but NOT pushed.")
        logger.warning(f"To push when ready: git push --force-with-lease {self.config.remote} {branch}")
        return Bucket.REBASED
