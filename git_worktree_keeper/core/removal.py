"""Removing single worktrees and purging several at once."""

import os
from typing import List, Optional

from rich.console import Console

from git_worktree_keeper.constants import DIRTY_REMOVE_MARKER, NOT_MERGED_MARKER
from git_worktree_keeper.exceptions import (
    GitOperationError,
    LockedWorktreeError,
    MainWorktreeError,
    SelectionCancelled,
    UserAbort,
    WorktreeKeeperError,
)
from git_worktree_keeper.models.requests import RemovalReport
from git_worktree_keeper.models.worktree import WorktreeRecord
from git_worktree_keeper.services.git import RepositoryInspector, WorktreeResolver, WorktreeService
from git_worktree_keeper.ui.prompts import Prompter
from git_worktree_keeper.logging_config import get_logger

console = Console()
logger = get_logger(__name__)


class RemovalFlow:
    """Guarded removal: main is never removed, locked needs force, dirty asks first."""

    def __init__(
        self,
        inspector: RepositoryInspector,
        prompter: Prompter,
        worktree_service: Optional[WorktreeService] = None,
        resolver: Optional[WorktreeResolver] = None,
    ):
        self.inspector = inspector
        self.prompter = prompter
        self.worktrees = worktree_service or WorktreeService(inspector.repo_path, inspector.runner)
        self.resolver = resolver or WorktreeResolver(inspector, prompter)

    def remove(self, token: str = "", force: bool = False) -> RemovalReport:
        """Resolve token (or ask) and remove that worktree.

        Raises:
            MainWorktreeError: the target is the main worktree, even with force
            LockedWorktreeError: the target is locked and force is not set
            UserAbort: the user declined a confirmation
        """
        record = self.resolver.resolve(
            token, exclude_main=True, message="Select a worktree to remove"
        )
        return self.remove_record(record, force=force)

    def _is_main(self, record: WorktreeRecord) -> bool:
        if record.is_main:
            return True
        main = self.inspector.main_worktree()
        return main is not None and os.path.realpath(main.path) == os.path.realpath(record.path)

    def _check_removable(self, record: WorktreeRecord, force: bool) -> None:
        if self._is_main(record):
            raise MainWorktreeError(record.path)
        if record.locked and not force:
            raise LockedWorktreeError(record.path, record.lock_reason)

    def remove_record(
        self, record: WorktreeRecord, force: bool = False, confirm: bool = True
    ) -> RemovalReport:
        """Remove an already resolved worktree."""
        self._check_removable(record, force)

        console.print("[blue]Worktree to remove:[/blue]")
        if record.branch:
            console.print(f"[cyan]  Branch: {record.branch}[/cyan]")
        console.print(f"[cyan]  Path: {record.path}[/cyan]")
        if record.locked:
            reason = f": {record.lock_reason}" if record.lock_reason else ""
            console.print(f"[yellow]  Warning: This worktree is locked{reason}[/yellow]")

        if confirm and not force and self.prompter.interactive:
            if not self.prompter.confirm("Are you sure you want to remove this worktree?"):
                raise UserAbort("Removal cancelled.")

        self._remove_metadata(record, force)

        report = RemovalReport(path=record.path, branch=record.branch, removed=True)
        if self.worktrees.delete_directory(record.path):
            console.print(f"[green]Deleted folder {record.path}[/green]")
        console.print("[green]Worktree removed successfully![/green]")

        if record.branch and self.prompter.interactive:
            report.branch_deleted = self._offer_branch_deletion(record.branch)
        return report

    def _remove_metadata(self, record: WorktreeRecord, force: bool) -> None:
        removed, error = self.worktrees.remove_worktree(
            record.path, force=force, locked=record.locked
        )
        if not removed and not os.path.exists(record.path):
            # Deleted by hand: only the metadata is left
            self.worktrees.prune_worktrees()
            removed = self.inspector.find_by_path(record.path) is None

        if not removed and error and DIRTY_REMOVE_MARKER in error and not force:
            console.print("[yellow]Worktree contains modified or untracked files.[/yellow]")
            if not self.prompter.confirm(
                "Do you want to force remove this worktree (this may lose changes)?"
            ):
                raise UserAbort("Removal cancelled.")
            removed, error = self.worktrees.remove_worktree(
                record.path, force=True, locked=record.locked
            )

        if not removed:
            raise GitOperationError("worktree remove", message=error)
        if self.inspector.find_by_path(record.path) is not None:
            raise GitOperationError(
                "worktree remove",
                message=f"{record.path} is still registered after removal",
            )

    def _offer_branch_deletion(self, branch: str) -> bool:
        if not self.prompter.confirm(f'Delete local branch "{branch}" as well?', default=True):
            return False

        deleted, error = self.worktrees.delete_branch(branch)
        if deleted:
            console.print(f'[green]Branch "{branch}" deleted.[/green]')
            return True

        if error and NOT_MERGED_MARKER in error:
            if self.prompter.confirm(f'Branch "{branch}" is not fully merged. Force delete?'):
                deleted, error = self.worktrees.delete_branch(branch, force=True)
                if deleted:
                    console.print(f'[green]Branch "{branch}" force deleted.[/green]')
                    return True
            else:
                return False

        console.print(f'[yellow]Could not delete branch "{branch}": {error}[/yellow]')
        return False

    def purge(self, force: bool = False) -> List[RemovalReport]:
        """Multi-select non-main worktrees and remove each of them.

        One worktree failing does not stop the others; its report carries
        the error instead.
        """
        candidates = [wt for wt in self.inspector.list_worktrees() if not wt.is_main]
        if not candidates:
            console.print("[yellow]No worktrees to purge.[/yellow]")
            return []

        selected = self.prompter.select_worktrees(
            candidates, message="Select worktrees to remove", multi=True
        )
        if not selected:
            raise SelectionCancelled("No worktrees selected.")

        if not force and self.prompter.interactive:
            if not self.prompter.confirm(f"Remove {len(selected)} worktree(s)?"):
                raise UserAbort("Purge cancelled.")

        reports = []
        for record in selected:
            try:
                reports.append(self.remove_record(record, force=force, confirm=False))
            except WorktreeKeeperError as e:
                logger.warning(f"Skipping {record.path}: {e}")
                console.print(f"[red]Failed to remove {record.path}: {e}[/red]")
                reports.append(RemovalReport(path=record.path, branch=record.branch, error=str(e)))

        self.worktrees.prune_worktrees()
        removed = sum(1 for r in reports if r.removed)
        console.print(f"[green]Removed {removed} of {len(reports)} worktree(s).[/green]")
        return reports
