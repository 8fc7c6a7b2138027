"""Pretty formatting utilities for CLI output."""

import shutil
import sys
from typing import IO, List, Optional

from ..config.models import StackupConfig
from ..update import Bucket, UpdateResults

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFLICTS = 10

def get_term_width() -> int:
    """Get terminal width, default to 80 if can't detect."""
    try:
        return shutil.get_terminal_size().columns
    except Exception:
        return 80


def header(text: str) -> str:
    """Create a boxed header."""
    width = max(get_term_width(), len(text) + 8)

    h_line = "─" * (width - 2)
    v_line = "│"

    result = [
        f"┌{h_line}┐",
        f"{v_line} {text}{' ' * (width - len(text) - 3)}{v_line}",
        f"└{h_line}┘"
    ]

    return "\n".join(result)


def _section(lines: List[str], title: str, branches: List[str], marker: str) -> None:
    lines.append(f"{title} ({len(branches)}):")
    lines.extend(f"  {marker} {branch}" for branch in branches)


def format_summary(results: UpdateResults, config: StackupConfig) -> str:
    """Render the end-of-run summary, one section per non-empty bucket."""
    lines: List[str] = []

    if results.ignored:
        _section(lines, "Ignored branches", results.ignored, "⊝")

    if results.successful:
        _section(lines, "Updated branches", results.successful, "✓")

    if results.rebased:
        _section(lines, "Rebased stacked branches (requires manual force-push)", results.rebased, "↻")
        lines.append("⚠ These branches need to be force-pushed manually:")
        for branch in results.rebased:
            lines.append(f"  git push --force-with-lease {config.remote} {branch}")

    if results.merge_conflict:
        _section(lines, "Branches with merge conflicts", results.merge_conflict, "⚠")
        lines.append("These branches need manual conflict resolution")

    if results.rebase_conflict:
        _section(lines, "Branches with rebase conflicts", results.rebase_conflict, "⚠")
        lines.append("These branches need manual conflict resolution")

    if results.failed:
        _section(lines, "Branches that failed", results.failed, "✗")

    lines.append("")
    if config.dry_run:
        lines.append("[DRY-RUN] Dry-run completed! No actual changes were made.")
    elif config.no_push:
        lines.append("Operation completed! Changes made locally but not pushed to remote.")
    else:
        lines.append("Operation completed!")

    return "\n".join(lines)


def exit_code(results: UpdateResults) -> int:
    """1 if anything failed, else 10 if anything conflicted, else 0."""
    if results.has_failures:
        return EXIT_FAILED
    if results.has_conflicts:
        return EXIT_CONFLICTS
    return EXIT_OK


def count_line(results: UpdateResults) -> str:
    """One-line tally of every bucket, e.g. for the header."""
    return ", ".join(f"{bucket.value}={len(results[bucket])}" for bucket in Bucket)


def print_header(text: str, file: Optional[IO[str]] = None) -> None:
    """Print a header to file (default stdout)."""
    if file is None:
        file = sys.stdout
    print(header(text), file=file)


def print_summary(results: UpdateResults, config: StackupConfig, file: Optional[IO[str]] = None) -> None:
    """Print the summary to file (default stdout)."""
    if file is None:
        file = sys.stdout
    print_header("SUMMARY", file=file)
    print(format_summary(results, config), file=file)
