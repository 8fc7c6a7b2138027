"""Config module."""

from typing import Dict, Any
from .models import RepoConfig, UpdateConfig, StackupConfig, ToolConfig

class Config(StackupConfig):
    """Config object holding repository, update policy and tool config.

    Built from the nested dict produced by ``parse_config`` (or written by hand
    in tests); each section is validated into its pydantic model.
    """
    def __init__(self, config: Dict[str, Dict[str, Any]]):
        """Initialize with parsed config dict."""
        super().__init__(
            repo=RepoConfig.model_validate(config.get('repo', {})),
            update=UpdateConfig.model_validate(config.get('update', {})),
            tool=ToolConfig.model_validate(config.get('tool', {})),
        )

def default_config() -> Config:
    """Get default config without parsing git."""
    return Config({
        'repo': {
            'remote': 'origin',
            'main_branch': 'main',
        },
        'update': {},
        'tool': {},
    })
