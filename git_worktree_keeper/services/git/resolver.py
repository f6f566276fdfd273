"""Resolve a user-supplied token to a worktree."""

import os
from typing import TYPE_CHECKING

from git_worktree_keeper.constants import GIT_MARKER
from git_worktree_keeper.exceptions import (
    NotAWorktreeError,
    SelectionCancelled,
    WorktreeNotFoundError,
)
from git_worktree_keeper.models.worktree import WorktreeRecord
from git_worktree_keeper.services.git.inspector import RepositoryInspector
from git_worktree_keeper.logging_config import get_logger

if TYPE_CHECKING:
    from git_worktree_keeper.ui.prompts import Prompter

logger = get_logger(__name__)


class WorktreeResolver:
    """Turn a path, a branch name or nothing at all into a WorktreeRecord."""

    def __init__(self, inspector: RepositoryInspector, prompter: "Prompter"):
        self.inspector = inspector
        self.prompter = prompter

    def resolve(
        self, token: str = "", exclude_main: bool = False, message: str = "Select a worktree"
    ) -> WorktreeRecord:
        """Resolve token in order: interactive pick, path, git marker, branch.

        Raises:
            SelectionCancelled: no token was given and the picker was dismissed
            NotAWorktreeError: token is an existing path that is not a worktree
            WorktreeNotFoundError: nothing matched token
        """
        if not token:
            return self._select(exclude_main, message)

        path_error = None
        if os.path.isdir(token):
            record = self.inspector.find_by_path(token)
            if record:
                logger.debug(f"Resolved {token} by path to {record.path}")
                return record

            if os.path.exists(os.path.join(token, GIT_MARKER)):
                logger.debug(f"{token} is not registered but has a {GIT_MARKER} marker")
                return WorktreeRecord.from_marker(token)

            path_error = NotAWorktreeError(token)
        elif os.path.exists(token):
            path_error = NotAWorktreeError(token, reason="is not a directory")

        record = self.inspector.find_by_branch(token)
        if record:
            logger.debug(f"Resolved {token} by branch to {record.path}")
            return record

        if path_error:
            raise path_error
        raise WorktreeNotFoundError(token)

    def _select(self, exclude_main: bool, message: str) -> WorktreeRecord:
        worktrees = self.inspector.list_worktrees()
        if exclude_main:
            worktrees = [wt for wt in worktrees if not wt.is_main]
        if not worktrees:
            raise SelectionCancelled("No worktrees to select.")

        selected = self.prompter.select_worktrees(worktrees, message=message)
        if not selected:
            raise SelectionCancelled()
        return selected[0]
