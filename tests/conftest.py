"""Shared fixtures for CCU tests."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
from factories import NOW

from ccu.config import Config


@pytest.fixture
def now() -> datetime:
    """Fixed reference instant for window calculations."""
    return NOW


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Config rooted at an empty temporary home directory."""
    return Config(home=tmp_path)


@pytest.fixture
def projects_dir(test_config: Config) -> Path:
    """The legacy ~/.claude/projects directory, created."""
    path = test_config.home / ".claude" / "projects"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def project_dir(projects_dir: Path) -> Path:
    """A single Claude project directory holding session logs."""
    path = projects_dir / "-home-dev-src-widget"
    path.mkdir()
    return path
