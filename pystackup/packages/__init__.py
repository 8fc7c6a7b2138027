"""Optional npm dependency install after the branches moved."""

import logging
import os
import shutil
import subprocess
from typing import Optional

from ..typing import GitError, GitInterface

logger = logging.getLogger(__name__)

DEPENDENCY_FILES = ("package.json", "package-lock.json")

def npm_available() -> bool:
    return shutil.which("npm") is not None

def dependencies_changed(git_cmd: GitInterface, before: str, after: str) -> bool:
    """True when package.json or package-lock.json differ between two commits."""
    if before == after:
        return False
    try:
        changed = git_cmd.changed_files(before, after)
    except GitError as e:
        logger.warning(f"Could not diff {before}..{after}: {e}")
        return False
    return any(os.path.basename(path) in DEPENDENCY_FILES for path in changed)

def install_dependencies(repo_dir: str, git_cmd: GitInterface,
                         before: str, after: Optional[str] = None) -> bool:
    """Run ``npm install`` in ``repo_dir`` if the dependency manifests changed.

    ``before`` is the original branch tip recorded at the start of the run,
    ``after`` its tip now (resolved from HEAD when omitted).

    Returns False only when npm ran and failed.
    """
    if not os.path.exists(os.path.join(repo_dir, "package.json")):
        return True
    if not npm_available():
        logger.warning("npm is not installed. npm install will be skipped.")
        return True

    if after is None:
        after = git_cmd.head_of("HEAD")
    if not dependencies_changed(git_cmd, before, after):
        logger.info("No dependency changes detected. Skipping npm install.")
        return True

    logger.info("Dependencies may have changed. Running npm install...")
    proc = subprocess.run(["npm", "install"], cwd=repo_dir, capture_output=True, text=True)
    if proc.returncode != 0:
        logger.error(f"npm install failed: {proc.stderr.strip()}")
        return False
    logger.info("npm install successful")
    return True
