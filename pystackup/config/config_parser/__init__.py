"""Config parser logic."""

import os
from typing import Any, Dict, Optional, Tuple
import logging
import yaml

from ...git import RealGit

# Get module logger
logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = '.stackup.yaml'

RawConfig = Dict[str, Dict[str, Any]]

def default_raw_config() -> RawConfig:
    """Defaults before any file or command line overrides."""
    return {
        'repo': {
            'remote': 'origin',
            'main_branch': 'main',
        },
        'update': {},
        'tool': {
            'dry_run': False,
            'no_push': False,
            'verbose': False,
        },
    }

def load_config_file(path: str) -> RawConfig:
    """Load a .stackup.yaml file. Missing file means no overrides."""
    try:
        with open(path, 'r') as f:
            logger.info(f"Found {CONFIG_FILE_NAME}, loading...")
            data = yaml.safe_load(f)
    except FileNotFoundError:
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return {}
    if not isinstance(data, dict):
        return {}
    return {section: values for section, values in data.items() if isinstance(values, dict)}

def parse_remote_url(remote_url: str) -> Optional[Tuple[str, str]]:
    """Extract (owner, name) from an SSH or HTTPS remote URL."""
    remote_url = remote_url.strip()
    if not remote_url or remote_url.startswith("file://"):
        return None
    if "://" not in remote_url and "@" not in remote_url:
        # Local path remote
        return None
    if "://" not in remote_url:
        # SSH format: git@github.com:owner/repo.git
        repo_part = remote_url.split(":", 1)[-1]
    else:
        # HTTPS format: https://github.com/owner/repo.git
        repo_part = remote_url.split("://", 1)[-1].split("/", 1)[-1]

    repo_part = repo_part.rstrip("/")
    if repo_part.endswith(".git"):
        repo_part = repo_part[:-4]
    parts = [p for p in repo_part.split("/") if p]
    if len(parts) < 2:
        return None
    return parts[-2], parts[-1]

def parse_config(git_cmd: RealGit, overrides: Optional[RawConfig] = None) -> RawConfig:
    """Parse config from defaults, the repository config file and overrides.

    Later sources win: defaults, then .stackup.yaml at the repository root,
    then ``overrides`` (command line arguments and environment toggles).
    """
    config = default_raw_config()

    file_config = load_config_file(os.path.join(git_cmd.repo_dir, CONFIG_FILE_NAME))
    for source in (file_config, overrides or {}):
        for section, values in source.items():
            config.setdefault(section, {}).update(values)

    # Try to extract repo owner/name from git remote if not in config
    repo = config['repo']
    if not repo.get('github_repo_owner') or not repo.get('github_repo_name'):
        remote_url = git_cmd.remote_url(repo['remote'])
        parsed = parse_remote_url(remote_url) if remote_url else None
        if parsed:
            if not repo.get('github_repo_owner'):
                repo['github_repo_owner'] = parsed[0]
            if not repo.get('github_repo_name'):
                repo['github_repo_name'] = parsed[1]
        else:
            logger.debug(f"Could not determine GitHub repository from remote '{repo['remote']}'")

    return config
