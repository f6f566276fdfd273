"""Display service for worktree listings"""
import os
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from git_worktree_keeper.constants import SYMBOL_CURRENT
from git_worktree_keeper.formatters import format_branch, format_flags, format_lock_reason
from git_worktree_keeper.models.worktree import WorktreeRecord
from git_worktree_keeper.logging_config import get_logger

console = Console()
logger = get_logger(__name__)


class DisplayService:
    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def display_worktree_table(
        self, worktrees: List[WorktreeRecord], current_path: Optional[str] = None
    ) -> None:
        """Display a table of worktrees, main first."""
        if not worktrees:
            console.print("[yellow]No worktrees found.[/yellow]")
            return

        table = Table()
        table.add_column("Branch")
        table.add_column("Path")
        table.add_column("HEAD")
        table.add_column("Status")
        if self.verbose:
            table.add_column("Notes")

        current = os.path.realpath(current_path) if current_path else None
        for wt in worktrees:
            branch = format_branch(wt)
            if current and os.path.realpath(wt.path) == current:
                branch.append(SYMBOL_CURRENT, style="bold")
            row = [branch, wt.path, wt.short_head, format_flags(wt)]
            if self.verbose:
                notes = [format_lock_reason(wt)]
                if wt.prunable:
                    notes.append(wt.prune_reason or "prunable")
                row.append(", ".join(n for n in notes if n))
            table.add_row(*row, style="dim" if wt.prunable else None)

        console.print(table)
        logger.debug(f"Displayed {len(worktrees)} worktrees")

    def display_paths(self, worktrees: List[WorktreeRecord]) -> None:
        """One path per line, for scripting."""
        for wt in worktrees:
            print(wt.path)
