"""Real git repositories with a local bare remote for end-to-end tests."""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Generator, Optional

import pytest

logger = logging.getLogger(__name__)


def run_cmd(cmd: str, cwd: Optional[str] = None, check: bool = True) -> str:
    """Run shell command and return stdout."""
    logger.info(f"Running command: {cmd}")
    result = subprocess.run(cmd, shell=True, cwd=cwd, check=check,
                            capture_output=True, text=True)
    return result.stdout


@dataclass
class RepoContext:
    """A working clone and its bare remote."""
    repo_dir: str
    remote_dir: str

    def git(self, cmd: str, check: bool = True) -> str:
        return run_cmd(f"git {cmd}", cwd=self.repo_dir, check=check).strip()

    def commit_file(self, path: str, content: str, message: Optional[str] = None) -> str:
        """Write ``path`` on the current branch and commit it. Returns the new commit hash."""
        file_path = Path(self.repo_dir) / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)
        self.git(f"add {path}")
        self.git(f"commit -m '{message or f'Update {path}'}'")
        return self.head("HEAD")

    def create_branch(self, name: str, start: str = "main", push: bool = True) -> None:
        self.git(f"checkout -b {name} {start}")
        if push:
            self.git(f"push -u origin {name}")

    def head(self, ref: str) -> str:
        return self.git(f"rev-parse {ref}")

    def remote_head(self, branch: str) -> str:
        return run_cmd(f"git rev-parse {branch}", cwd=self.remote_dir).strip()

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        result = subprocess.run(["git", "merge-base", "--is-ancestor", ancestor, descendant],
                                cwd=self.repo_dir)
        return result.returncode == 0

    def current_branch(self) -> str:
        return self.git("branch --show-current")

    def is_clean(self) -> bool:
        return not self.git("status --porcelain")


@pytest.fixture
def repo_ctx(tmp_path: Path) -> Generator[RepoContext, None, None]:
    """A clone on ``main`` with one commit, pushed to a bare remote."""
    remote_dir = tmp_path / "remote.git"
    repo_dir = tmp_path / "repo"
    run_cmd(f"git init --bare {remote_dir}")
    repo_dir.mkdir()

    ctx = RepoContext(str(repo_dir), str(remote_dir))
    ctx.git("init")
    ctx.git("symbolic-ref HEAD refs/heads/main")
    ctx.git("config user.name 'Test User'")
    ctx.git("config user.email 'test@example.com'")
    ctx.git("config commit.gpgsign false")
    ctx.git(f"remote add origin {remote_dir}")
    ctx.commit_file("file.txt", "line 1\nline 2\nline 3\n", "Initial commit")
    ctx.git("push -u origin main")
    # Keep the remote's HEAD pointing at main for older git defaults
    run_cmd("git symbolic-ref HEAD refs/heads/main", cwd=str(remote_dir))
    yield ctx
