"""CLI entry point."""

import os
import sys
import click
import logging
from typing import Any, Dict, Optional

from ...branches import ParentResolver, classify_branches
from ...config import Config, default_config
from ...config.config_parser import parse_config
from ...git import RealGit
from ...github import create_github_client
from ...packages import install_dependencies
from ...pretty import EXIT_FAILED, EXIT_OK, count_line, exit_code, print_summary
from ...typing import GitError, NotARepositoryError
from ...update import BranchUpdater
from ...util import parse_bool

# Get module logger
logger = logging.getLogger(__name__)

def check(err: Exception) -> None:
    """Log a fatal error and exit."""
    logger.error(f"{err}")
    sys.exit(EXIT_FAILED)

def setup_git(directory: Optional[str], overrides: Dict[str, Dict[str, Any]]) -> RealGit:
    """Open the repository and build the run config."""
    try:
        git_cmd = RealGit(default_config(), directory)
    except NotARepositoryError as e:
        check(e)

    cfg = parse_config(git_cmd, overrides)
    return RealGit(Config(cfg), git_cmd.repo_dir)

@click.command(name="stackup", help="Bring every local branch up to date with the main branch")
@click.argument('main_branch', required=False)
@click.option('-C', '--directory', type=click.Path(exists=True, file_okay=False, dir_okay=True),
              help='Run as if stackup was started in DIRECTORY instead of the current working directory')
@click.option('--dry-run', is_flag=True, envvar='DRY_RUN',
              help="Show what would be done without checking out, merging, rebasing or pushing")
@click.option('--no-push', is_flag=True, envvar='NO_PUSH',
              help="Merge locally but do not push updated branches")
@click.option('-v', '--verbose', count=True, help="Enable debug logging (or set VERBOSE=true)")
def cli(main_branch: Optional[str], directory: Optional[str], dry_run: bool, no_push: bool, verbose: int) -> None:
    """Update all local branches against MAIN_BRANCH."""
    if parse_bool(os.environ.get('VERBOSE')):
        verbose = max(verbose, 1)

    from ... import setup_logging
    setup_logging(verbose)

    # Flags only switch toggles on; .stackup.yaml may already have set them
    toggles = {'dry_run': dry_run, 'no_push': no_push, 'verbose': verbose > 0}
    overrides: Dict[str, Dict[str, Any]] = {
        'tool': {name: True for name, on in toggles.items() if on},
    }
    if main_branch:
        overrides['repo'] = {'main_branch': main_branch}

    git_cmd = setup_git(directory, overrides)
    config = git_cmd.config
    if config.tool.verbose and not verbose:
        setup_logging(1)

    if config.dry_run:
        logger.info("[dry-run] DRY-RUN MODE: No changes will be made")
    if config.no_push:
        logger.warning("NO-PUSH MODE: Changes will be made locally but not pushed")

    if not git_cmd.is_clean():
        check(Exception("You have uncommitted changes. Please commit or stash them first."))

    # Save current git state
    original_branch = git_cmd.current_branch() or git_cmd.head_of("HEAD")
    original_head = git_cmd.head_of("HEAD")
    logger.info(f"Current branch: {original_branch}")

    host = create_github_client(config)
    branches = git_cmd.local_branches()
    updater = BranchUpdater(config, git_cmd, ParentResolver(branches))

    results = None
    try:
        try:
            updater.prepare()
        except GitError as e:
            check(e)

        classification = classify_branches(branches, config, host)
        for branch in classification.ignored:
            logger.info(f"Ignoring {branch.name} ({branch.reason})")
        logger.info(f"Regular branches: {', '.join(b.name for b in classification.regular) or '(none)'}")
        logger.info(f"Stacked branches: {', '.join(b.name for b in classification.stacked) or '(none)'}")

        if classification.is_empty:
            logger.info(f"No branches to update (excluding {config.main_branch})")
        else:
            results = updater.run(classification)
    finally:
        restored = updater.restore(original_branch)

    if results is None:
        sys.exit(EXIT_OK if restored else EXIT_FAILED)

    code = exit_code(results)
    if not restored:
        code = EXIT_FAILED
    if config.update.install_dependencies and not config.dry_run:
        if not install_dependencies(git_cmd.repo_dir, git_cmd, original_head):
            code = EXIT_FAILED

    logger.debug(f"Results: {count_line(results)}")
    print_summary(results, config)
    sys.exit(code)

def main() -> None:
    """Main entry point."""
    cli()

if __name__ == "__main__":
    main()
