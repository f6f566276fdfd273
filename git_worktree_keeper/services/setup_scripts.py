"""Project setup scripts run inside freshly created worktrees."""

import json
import os
import subprocess
from typing import List, Optional

from git_worktree_keeper.constants import ROOT_WORKTREE_ENV, SETUP_CONFIG_FILES, SETUP_CONFIG_KEY
from git_worktree_keeper.exceptions import SetupCommandFailed
from git_worktree_keeper.models.requests import SetupScriptSet
from git_worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)


def _commands_from(data) -> Optional[List[str]]:
    """Keyed object first, bare list second."""
    if isinstance(data, dict):
        commands = data.get(SETUP_CONFIG_KEY)
        if isinstance(commands, list):
            return [str(c) for c in commands]
        return None
    if isinstance(data, list):
        return [str(c) for c in data]
    return None


def load_setup_scripts(root: str) -> Optional[SetupScriptSet]:
    """Load setup commands from the first config file present under root.

    Returns:
        The commands, or None when no config file exists
    """
    for relative in SETUP_CONFIG_FILES:
        config_path = os.path.join(root, relative)
        if not os.path.isfile(config_path):
            continue

        try:
            with open(config_path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read setup config {config_path}: {e}")
            continue

        commands = _commands_from(data)
        if commands is None:
            logger.warning(
                f"{config_path} must be a list of commands or contain a '{SETUP_CONFIG_KEY}' list"
            )
            continue

        logger.debug(f"Loaded {len(commands)} setup commands from {config_path}")
        return SetupScriptSet(commands=tuple(commands), source=config_path)

    logger.debug(f"No setup config found under {root}")
    return None


def run_setup_command(command: str, cwd: str, root: str) -> None:
    """Run one setup command through the shell.

    Raises:
        SetupCommandFailed: the command exited non-zero or could not start
    """
    env = os.environ.copy()
    env[ROOT_WORKTREE_ENV] = root
    try:
        result = subprocess.run(command, shell=True, cwd=cwd, env=env, check=False)
    except OSError as e:
        raise SetupCommandFailed(command, reason=str(e)) from e
    if result.returncode != 0:
        raise SetupCommandFailed(command, result.returncode)


def run_setup_scripts(scripts: SetupScriptSet, cwd: str, root: str) -> List[SetupCommandFailed]:
    """Run every command in order, continuing past failures.

    Returns:
        The failures, in order. An empty list means every command succeeded.
    """
    failures: List[SetupCommandFailed] = []
    for command in scripts:
        logger.info(f"Running setup command: {command}")
        try:
            run_setup_command(command, cwd=cwd, root=root)
        except SetupCommandFailed as e:
            logger.warning(str(e))
            failures.append(e)
    return failures
