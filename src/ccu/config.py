"""Configuration for CCU."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ValidationError
from result import Err, Ok, Result

logger = logging.getLogger(__name__)

APP_NAME = "cc-usage-widget"


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    home: Path = field(default_factory=Path.home)
    config_dir: Path | None = None

    @property
    def claude_dirs(self) -> tuple[Path, ...]:
        """Claude data roots, current default location first, legacy second."""
        return (self.home / ".config" / "claude", self.home / ".claude")

    @property
    def projects_dirs(self) -> tuple[Path, ...]:
        return tuple(d / "projects" for d in self.claude_dirs)

    @property
    def todos_dirs(self) -> tuple[Path, ...]:
        return (self.home / ".claude" / "todos", self.home / ".config" / "claude" / "todos")

    @property
    def app_config_path(self) -> Path:
        base = self.config_dir or self.home / ".config"
        return base / APP_NAME / "config.json"


class AppConfig(BaseModel):
    """Settings persisted by the widget itself."""

    admin_api_key: str | None = None


def load_app_config(path: Path) -> AppConfig:
    """Load the settings file, falling back to defaults when missing or broken."""
    if not path.is_file():
        return AppConfig()
    try:
        return AppConfig.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValidationError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return AppConfig()


def save_app_config(config: AppConfig, path: Path) -> Result[None, str]:
    """Write the settings file, creating its directory if needed."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return Err(f"Failed to create config dir: {exc}")
    payload = json.dumps(config.model_dump(), indent=2)
    try:
        path.write_text(payload, encoding="utf-8")
    except OSError as exc:
        return Err(f"Failed to write config: {exc}")
    return Ok(None)


def mask_api_key(key: str) -> str:
    """Mask an API key for display: 'sk-...wxyz'."""
    if len(key) <= 8:
        return "*" * len(key)
    dash = key.find("-")
    prefix_len = dash + 1 if dash >= 0 else 4
    return f"{key[:prefix_len]}...{key[-4:]}"
