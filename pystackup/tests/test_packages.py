"""Tests for the npm install step."""

from pathlib import Path
from unittest.mock import MagicMock, patch

from pystackup.packages import dependencies_changed, install_dependencies
from pystackup.tests.utils import FakeGit
from pystackup.typing import GitError


def test_dependencies_changed() -> None:
    fake = FakeGit(["main"])
    fake.changed = ["src/app.js", "web/package-lock.json"]
    assert dependencies_changed(fake, "old", "new")

    fake.changed = ["src/app.js"]
    assert not dependencies_changed(fake, "old", "new")


def test_same_commit_is_unchanged() -> None:
    fake = FakeGit(["main"])
    fake.changed = ["package.json"]
    assert not dependencies_changed(fake, "abc", "abc")


def test_diff_failure_is_unchanged() -> None:
    git_cmd = MagicMock()
    git_cmd.changed_files.side_effect = GitError("diff --name-only a b", "bad revision")
    assert not dependencies_changed(git_cmd, "a", "b")


def test_no_package_json(tmp_path: Path) -> None:
    with patch("pystackup.packages.subprocess.run") as run:
        assert install_dependencies(str(tmp_path), FakeGit(["main"]), "old")
    run.assert_not_called()


def test_runs_npm_install_when_manifest_changed(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text("{}")
    fake = FakeGit(["main"])
    fake.changed = ["package.json"]
    with patch("pystackup.packages.npm_available", return_value=True), \
            patch("pystackup.packages.subprocess.run") as run:
        run.return_value.returncode = 0
        assert install_dependencies(str(tmp_path), fake, "old", "new")
    run.assert_called_once()
    assert run.call_args[0][0] == ["npm", "install"]
    assert run.call_args[1]["cwd"] == str(tmp_path)


def test_npm_failure(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text("{}")
    fake = FakeGit(["main"])
    fake.changed = ["package.json"]
    with patch("pystackup.packages.npm_available", return_value=True), \
            patch("pystackup.packages.subprocess.run") as run:
        run.return_value.returncode = 1
        run.return_value.stderr = "ERESOLVE"
        assert not install_dependencies(str(tmp_path), fake, "old", "new")


def test_skips_when_unchanged(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text("{}")
    with patch("pystackup.packages.npm_available", return_value=True), \
            patch("pystackup.packages.subprocess.run") as run:
        assert install_dependencies(str(tmp_path), FakeGit(["main"]), "old")
    run.assert_not_called()


def test_skips_without_npm(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text("{}")
    fake = FakeGit(["main"])
    fake.changed = ["package.json"]
    with patch("pystackup.packages.npm_available", return_value=False), \
            patch("pystackup.packages.subprocess.run") as run:
        assert install_dependencies(str(tmp_path), fake, "old", "new")
    run.assert_not_called()
