"""Formatting helpers shared by the CLI table and the interactive pickers."""

from typing import Optional

from rich.text import Text

from git_worktree_keeper.constants import SYMBOL_CURRENT, SYMBOL_LOCKED, SYMBOL_MAIN, SYMBOL_PRUNABLE
from git_worktree_keeper.models.requests import PullRequestInfo
from git_worktree_keeper.models.worktree import WorktreeRecord


def format_branch(record: WorktreeRecord) -> Text:
    """Branch name, or a description of why there is none."""
    if record.branch:
        return Text(record.branch, style="cyan")
    if record.bare:
        return Text("(bare)", style="dim")
    if record.detached:
        return Text(f"(detached at {record.short_head})", style="yellow")
    return Text("(unknown)", style="dim")


def format_flags(record: WorktreeRecord) -> Text:
    """Status indicators: main, locked, prunable."""
    text = Text()
    if record.is_main:
        text.append(f"{SYMBOL_MAIN} ", style="blue")
    if record.locked:
        text.append(f"{SYMBOL_LOCKED} ", style="red")
    if record.prunable:
        text.append(f"{SYMBOL_PRUNABLE} ", style="yellow")
    text.rstrip()
    return text


def format_worktree_choice(record: WorktreeRecord, current_path: Optional[str] = None) -> Text:
    """One-line label used in selection lists."""
    text = format_branch(record)
    if current_path and record.path == current_path:
        text.append(SYMBOL_CURRENT)
    text.append(f" → {record.path}", style="dim")
    flags = format_flags(record)
    if flags:
        text.append(" ")
        text.append_text(flags)
    return text


def format_pull_request_choice(pr: PullRequestInfo) -> Text:
    text = Text(f"#{pr.number} ", style="bold")
    text.append(pr.title)
    text.append(f"  ({pr.source_branch}", style="cyan")
    if pr.author:
        text.append(f" by {pr.author}", style="dim")
    text.append(")", style="cyan")
    return text


def format_lock_reason(record: WorktreeRecord) -> str:
    if not record.locked:
        return ""
    return record.lock_reason or "locked"
