"""Dependency installation and editor launch for new worktrees."""

import os
import shlex
import subprocess
from typing import Optional

from git_worktree_keeper.constants import DEFAULT_EDITOR, EDITOR_SKIP_SENTINEL
from git_worktree_keeper.exceptions import EditorLaunchFailed, InstallFailed
from git_worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)


def install_dependencies(tool: str, cwd: str) -> None:
    """Run ``<tool> install`` in cwd.

    Raises:
        InstallFailed: the tool is missing or exited non-zero
    """
    logger.info(f"Installing dependencies with {tool} in {cwd}")
    try:
        result = subprocess.run([tool, "install"], cwd=cwd, check=False)
    except OSError as e:
        raise InstallFailed(tool, message=str(e)) from e
    if result.returncode != 0:
        raise InstallFailed(tool, status=result.returncode)


def choose_editor(requested: Optional[str], configured: Optional[str]) -> Optional[str]:
    """Pick the editor command: request, config, $EDITOR, then the default.

    Returns:
        The editor command, or None when the skip sentinel was chosen
    """
    editor = requested or configured or os.environ.get("EDITOR") or DEFAULT_EDITOR
    if editor.strip().lower() == EDITOR_SKIP_SENTINEL:
        return None
    return editor


def open_editor(editor: str, path: str) -> None:
    """Open path in editor and wait for the launcher to return.

    Raises:
        EditorLaunchFailed: the editor is missing or exited non-zero
    """
    command = [*shlex.split(editor), path]
    logger.info(f"Opening {path} in {editor}")
    try:
        result = subprocess.run(command, check=False)
    except OSError as e:
        raise EditorLaunchFailed(editor, str(e)) from e
    if result.returncode != 0:
        raise EditorLaunchFailed(editor, f"exit code {result.returncode}")


def spawn_shell(path: str) -> int:
    """Run an interactive shell in path and return its exit status.

    A shell killed by a signal reports 128 + the signal number.
    """
    shell = os.environ.get("SHELL") or "/bin/sh"
    logger.debug(f"Spawning {shell} in {path}")
    result = subprocess.run([shell], cwd=path, check=False)
    if result.returncode < 0:
        return 128 - result.returncode
    return result.returncode
