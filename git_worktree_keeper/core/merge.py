"""Merging a worktree's branch into the current worktree."""

from enum import Enum
from typing import Optional

from rich.console import Console

from git_worktree_keeper.constants import DEFAULT_MERGE_MESSAGE
from git_worktree_keeper.exceptions import (
    GitOperationError,
    LockedWorktreeError,
    MainWorktreeError,
    NotFoundError,
    PreconditionFailed,
    SourceDirtyError,
    TargetDirtyError,
)
from git_worktree_keeper.models.requests import MergeRequest, MergeResult
from git_worktree_keeper.models.worktree import WorktreeRecord
from git_worktree_keeper.services.git import RepositoryInspector, WorktreeService
from git_worktree_keeper.logging_config import get_logger

console = Console()
logger = get_logger(__name__)


class MergeState(Enum):
    CHECK_DIRTY = "check-dirty"
    AUTO_COMMIT = "auto-commit"
    MERGE = "merge"
    REMOVE_SOURCE = "remove-source"
    DONE = "done"


class MergeStateMachine:
    """Merge a branch into the worktree at target_path.

    Nothing is committed or removed unless asked for: a dirty target blocks
    the merge without auto_commit, and the source worktree survives unless
    remove is set.
    """

    def __init__(
        self,
        inspector: RepositoryInspector,
        worktree_service: Optional[WorktreeService] = None,
        target_path: Optional[str] = None,
    ):
        self.inspector = inspector
        self.worktrees = worktree_service or WorktreeService(inspector.repo_path, inspector.runner)
        self.target_path = target_path
        self.state = MergeState.CHECK_DIRTY

    def _target(self) -> str:
        target = self.target_path or self.inspector.repo_root()
        if target is None:
            raise GitOperationError("rev-parse", message="not inside a git worktree")
        return target

    def _check_source_removable(self, source: Optional[WorktreeRecord], force: bool) -> None:
        if source is None:
            return
        if source.is_main:
            raise MainWorktreeError(source.path)
        if source.locked and not force:
            raise LockedWorktreeError(source.path, source.lock_reason)
        if not force and not self.inspector.is_clean(source.path):
            raise SourceDirtyError(source.path)

    def merge(self, request: MergeRequest) -> MergeResult:
        """Run CHECK_DIRTY, optional AUTO_COMMIT, MERGE, optional REMOVE_SOURCE.

        Raises:
            NotFoundError: the branch does not exist
            PreconditionFailed: merging a branch into itself
            TargetDirtyError: target has changes and auto_commit is off
            SourceDirtyError: removal requested for a dirty source without force
            GitOperationError: git merge failed, conflicts are left in place
        """
        self.state = MergeState.CHECK_DIRTY
        target = self._target()
        branch = request.branch

        if not self.inspector.branch_exists(branch):
            raise NotFoundError(f"Branch '{branch}' does not exist")
        if self.inspector.current_branch(target) == branch:
            raise PreconditionFailed(f"Cannot merge '{branch}' into itself")

        source = self.inspector.find_by_branch(branch)
        if request.remove:
            self._check_source_removable(source, request.force)

        result = MergeResult(branch=branch, target_path=target)
        if not self.inspector.is_clean(target):
            if not request.auto_commit:
                raise TargetDirtyError(target)
            self.state = MergeState.AUTO_COMMIT
            message = request.message or DEFAULT_MERGE_MESSAGE.format(branch=branch)
            self.worktrees.commit_all(target, message)
            result.auto_committed = True
            console.print(f"[blue]Committed pending changes in {target}[/blue]")

        self.state = MergeState.MERGE
        console.print(f"[blue]Merging {branch} into {target}[/blue]")
        output = self.worktrees.merge_branch(target, branch)
        logger.debug(output)
        console.print(f"[green]Merged {branch}[/green]")

        if request.remove and source is not None:
            self.state = MergeState.REMOVE_SOURCE
            removed, error = self.worktrees.remove_worktree(
                source.path, force=request.force, locked=source.locked
            )
            if not removed:
                raise GitOperationError("worktree remove", message=error)
            self.worktrees.delete_directory(source.path)
            result.removed_path = source.path
            console.print(f"[green]Removed worktree {source.path}[/green]")
        elif request.remove:
            logger.info(f"No worktree checks out {branch}, nothing to remove")

        self.state = MergeState.DONE
        return result
