"""Interactive prompts: confirmations on the console, selections in Textual."""

import sys
from typing import List, Optional, Protocol, Sequence

from rich.console import Console

from git_worktree_keeper.formatters import format_pull_request_choice, format_worktree_choice
from git_worktree_keeper.models.requests import PullRequestInfo
from git_worktree_keeper.models.worktree import WorktreeRecord
from git_worktree_keeper.ui.picker import FuzzySelectApp, MultiSelectApp

console = Console()


class Prompter(Protocol):
    """What the lifecycle operations need from the user."""

    @property
    def interactive(self) -> bool: ...

    def confirm(self, message: str, default: bool = False) -> bool: ...

    def choose(self, message: str, choices: Sequence[str], default: str) -> str: ...

    def select_worktrees(
        self, worktrees: Sequence[WorktreeRecord], message: str, multi: bool = False
    ) -> Optional[List[WorktreeRecord]]: ...

    def select_pull_request(
        self, pull_requests: Sequence[PullRequestInfo], message: str
    ) -> Optional[PullRequestInfo]: ...


class TerminalPrompter:
    """Prompter backed by the real terminal."""

    def __init__(self, interactive: Optional[bool] = None):
        self._interactive = sys.stdin.isatty() if interactive is None else interactive

    @property
    def interactive(self) -> bool:
        return self._interactive

    def confirm(self, message: str, default: bool = False) -> bool:
        """Ask a yes/no question. Returns default when not interactive."""
        if not self.interactive:
            return default
        suffix = "[Y/n]" if default else "[y/N]"
        response = console.input(f"{message} {suffix} ").strip().lower()
        if not response:
            return default
        return response in ("y", "yes")

    def choose(self, message: str, choices: Sequence[str], default: str) -> str:
        """Ask for one of choices, re-asking until the answer is valid."""
        if not self.interactive:
            return default
        options = "/".join(c.upper() if c == default else c for c in choices)
        while True:
            response = console.input(f"{message} [{options}] ").strip().lower()
            if not response:
                return default
            matches = [c for c in choices if c.startswith(response)]
            if len(matches) == 1:
                return matches[0]
            console.print(f"[yellow]Please answer one of: {', '.join(choices)}[/yellow]")

    def select_worktrees(
        self, worktrees: Sequence[WorktreeRecord], message: str, multi: bool = False
    ) -> Optional[List[WorktreeRecord]]:
        """Pick one (fuzzy filter) or several worktrees. None means cancelled."""
        if not self.interactive or not worktrees:
            return None
        labels = [format_worktree_choice(wt) for wt in worktrees]
        if multi:
            return MultiSelectApp(message, worktrees, labels).run()
        selected = FuzzySelectApp(message, worktrees, labels).run()
        return [selected] if selected is not None else None

    def select_pull_request(
        self, pull_requests: Sequence[PullRequestInfo], message: str
    ) -> Optional[PullRequestInfo]:
        if not self.interactive or not pull_requests:
            return None
        labels = [format_pull_request_choice(pr) for pr in pull_requests]
        return FuzzySelectApp(message, pull_requests, labels).run()
