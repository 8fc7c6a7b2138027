"""Git interfaces and implementation."""

import os
import shlex
import logging
from typing import List, Optional, Tuple
import git
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError
from ..typing import BranchName, GitError, NotARepositoryError
from ..config.models import StackupConfig

# Get module logger
logger = logging.getLogger(__name__)

# Commands that change the working tree, refs or the remote
MUTATING_COMMANDS = ("checkout", "pull", "merge", "rebase", "push", "fetch")

def q(arg: str) -> str:
    """Quote a ref or path for use inside a command string."""
    return shlex.quote(arg)

class RealGit:
    """Real Git implementation backed by GitPython."""
    def __init__(self, config: StackupConfig, repo_dir: Optional[str] = None):
        """Open the repository containing ``repo_dir`` (default: current directory)."""
        self.config: StackupConfig = config
        path = repo_dir or os.getcwd()
        try:
            self.repo = git.Repo(path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError):
            raise NotARepositoryError(path)
        self.repo_dir: str = self.repo.working_tree_dir or path

    def _is_mutating(self, cmd_str: str) -> bool:
        return cmd_str.split(" ", 1)[0] in MUTATING_COMMANDS

    def run_cmd(self, command: str) -> str:
        """Run git command, raising GitError on a non-zero exit."""
        cmd_str = command.strip()

        if self.config.tool.dry_run and self._is_mutating(cmd_str):
            # Dry-run mode - just log
            logger.info(f"[dry-run] > git {cmd_str}")
            return ""

        if self._is_mutating(cmd_str):
            logger.info(f"> git {cmd_str}")
        else:
            logger.debug(f"> git {cmd_str}")

        cmd_parts = shlex.split(cmd_str)
        method = getattr(self.repo.git, cmd_parts[0].replace('-', '_'))
        try:
            result = method(*cmd_parts[1:])
        except GitCommandError as e:
            raise GitError(cmd_str, str(e.stderr or e).strip())
        return result if isinstance(result, str) else str(result)

    def must_git(self, command: str) -> str:
        """Run git command, failing on error."""
        return self.run_cmd(command)

    def run_status(self, command: str) -> Tuple[int, str]:
        """Run a git command and return (exit status, stdout) without raising."""
        cmd_str = command.strip()
        if self._is_mutating(cmd_str):
            if self.config.tool.dry_run:
                logger.info(f"[dry-run] > git {cmd_str}")
                return 0, ""
            logger.info(f"> git {cmd_str}")
        else:
            logger.debug(f"> git {cmd_str}")
        cmd_parts = shlex.split(cmd_str)
        method = getattr(self.repo.git, cmd_parts[0].replace('-', '_'))
        status, stdout, stderr = method(
            *cmd_parts[1:], with_extended_output=True, with_exceptions=False
        )
        if status != 0 and stderr:
            logger.debug(f"git {cmd_parts[0]} exited {status}: {stderr.strip()}")
        return status, stdout

    def remote_url(self, remote: str) -> Optional[str]:
        status, out = self.run_status(f"remote get-url {q(remote)}")
        return out.strip() if status == 0 and out.strip() else None

    def local_branches(self) -> List[BranchName]:
        output = self.must_git("for-each-ref --format=%(refname:short) refs/heads/")
        return [BranchName(line.strip()) for line in output.splitlines() if line.strip()]

    def current_branch(self) -> BranchName:
        return BranchName(self.must_git("branch --show-current").strip())

    def head_of(self, ref: str) -> str:
        return self.must_git(f"rev-parse {q(ref)}").strip()

    def is_clean(self) -> bool:
        return not self.must_git("status --porcelain").strip()

    def fetch(self) -> None:
        self.must_git(f"fetch {q(self.config.remote)}")

    def checkout(self, branch: str) -> None:
        self.must_git(f"checkout {q(branch)}")

    def pull(self, branch: str) -> None:
        # Fast-forward only: a diverged branch fails instead of leaving a half-merged tree
        self.must_git(f"pull --ff-only {q(self.config.remote)} {q(branch)}")

    def remote_branch_exists(self, branch: str) -> bool:
        status, _ = self.run_status(
            f"ls-remote --exit-code --heads {q(self.config.remote)} {q(branch)}"
        )
        return status == 0

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        status, _ = self.run_status(f"merge-base --is-ancestor {q(ancestor)} {q(descendant)}")
        return status == 0

    def merge(self, ref: str) -> bool:
        status, _ = self.run_status(f"merge {q(ref)} --no-edit")
        return status == 0

    def merge_abort(self) -> None:
        self.must_git("merge --abort")

    def rebase(self, onto: str) -> bool:
        status, _ = self.run_status(f"rebase {q(onto)}")
        return status == 0

    def rebase_abort(self) -> None:
        self.must_git("rebase --abort")

    def push(self, branch: str) -> None:
        self.must_git(f"push {q(self.config.remote)} {q(branch)}")

    def would_conflict(self, ours: str, theirs: str) -> bool:
        """Simulate a three-way merge of ``theirs`` into ``ours`` with merge-tree."""
        status, _ = self.run_status(f"merge-tree --write-tree {q(ours)} {q(theirs)}")
        if status in (0, 1):
            return status == 1

        # Older git without --write-tree: fall back to the trivial-merge output
        base_status, base = self.run_status(f"merge-base {q(ours)} {q(theirs)}")
        if base_status != 0:
            raise GitError(f"merge-base {ours} {theirs}", "no common ancestor")
        output = self.must_git(f"merge-tree {q(base.strip())} {q(ours)} {q(theirs)}")
        return any(line.startswith("changed in both") for line in output.splitlines())

    def changed_files(self, old: str, new: str) -> List[str]:
        output = self.must_git(f"diff --name-only {q(old)} {q(new)}")
        return [line.strip() for line in output.splitlines() if line.strip()]
