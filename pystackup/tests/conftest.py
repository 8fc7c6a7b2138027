"""Shared fixtures for unit tests."""

from typing import Any, Callable, Dict

import pytest

from pystackup.config import Config


@pytest.fixture
def make_config() -> Callable[..., Config]:
    """Build a Config with tool toggles and optional section overrides."""
    def _make(dry_run: bool = False, no_push: bool = False, **sections: Dict[str, Any]) -> Config:
        raw: Dict[str, Dict[str, Any]] = {
            'repo': {'remote': 'origin', 'main_branch': 'main'},
            'update': {},
            'tool': {'dry_run': dry_run, 'no_push': no_push},
        }
        for section, values in sections.items():
            raw.setdefault(section, {}).update(values)
        return Config(raw)
    return _make
