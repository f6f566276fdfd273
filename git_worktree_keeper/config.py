"""Configuration handling for git-worktree-keeper"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from git_worktree_keeper.constants import (
    APP_DIR_NAME,
    CONFIG_ENV_VAR,
    PROVIDER_GITHUB,
    PROVIDER_GITLAB,
)
from git_worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)

# Keys accepted by `wt config`
CONFIG_KEYS = ("editor", "provider", "worktreepath", "github_token")


@dataclass
class Config:
    """Configuration for one git-worktree-keeper invocation, with validation."""

    # Execution modes
    interactive: bool = True
    verbose: bool = False
    debug: bool = False

    # Persisted preferences
    editor: Optional[str] = None
    provider: Optional[str] = None
    worktree_path: Optional[str] = None

    # GitHub integration
    github_token: Optional[str] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_provider()
        self._validate_editor()
        self._validate_worktree_path()

    def _validate_provider(self):
        """Validate provider is one of the supported CLIs."""
        allowed = [PROVIDER_GITHUB, PROVIDER_GITLAB]
        if self.provider is not None and self.provider not in allowed:
            raise ValueError(f"provider must be one of {allowed}, got '{self.provider}'")

    def _validate_editor(self):
        """Normalize an empty editor to None."""
        if self.editor is not None:
            self.editor = self.editor.strip() or None

    def _validate_worktree_path(self):
        """Expand ~ in the global worktree directory."""
        if self.worktree_path:
            self.worktree_path = os.path.abspath(os.path.expanduser(self.worktree_path))

    def to_dict(self) -> dict:
        return {
            "interactive": self.interactive,
            "verbose": self.verbose,
            "debug": self.debug,
            "editor": self.editor,
            "provider": self.provider,
            "worktree_path": self.worktree_path,
            "github_token": "***" if self.github_token else None,
        }

    @classmethod
    def from_store(cls, store: "ConfigStore", **overrides) -> "Config":
        """Build a Config from persisted values, with non-None overrides on top."""
        values = {
            "editor": store.get("editor"),
            "provider": store.get("provider"),
            "worktree_path": store.get("worktreepath"),
            "github_token": store.get("github_token") or os.environ.get("GITHUB_TOKEN"),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class ConfigStore:
    """Key/value preferences persisted as JSON in the user's home directory."""

    def __init__(self, path: Optional[Path] = None):
        if path is None:
            env_path = os.environ.get(CONFIG_ENV_VAR)
            path = Path(env_path) if env_path else Path.home() / APP_DIR_NAME / "config.json"
        self.path = Path(path)

    def load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable config file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {self.path}: expected a JSON object")
            return {}
        return data

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2, sort_keys=True)
            f.write("\n")

    @staticmethod
    def _check_key(key: str) -> None:
        if key not in CONFIG_KEYS:
            raise ValueError(f"Unknown config key '{key}'. Valid keys: {', '.join(CONFIG_KEYS)}")

    def get(self, key: str) -> Optional[str]:
        self._check_key(key)
        return self.load().get(key)

    def set(self, key: str, value: str) -> None:
        self._check_key(key)
        if key == "provider" and value not in (PROVIDER_GITHUB, PROVIDER_GITLAB):
            raise ValueError(f"provider must be '{PROVIDER_GITHUB}' or '{PROVIDER_GITLAB}'")
        if key == "worktreepath":
            value = os.path.abspath(os.path.expanduser(value))
        data = self.load()
        data[key] = value
        self._save(data)
        logger.debug(f"Set {key} in {self.path}")

    def unset(self, key: str) -> bool:
        self._check_key(key)
        data = self.load()
        if key not in data:
            return False
        del data[key]
        self._save(data)
        return True
