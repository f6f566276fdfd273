"""Worktree data models."""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RecordKind(Enum):
    """Where a worktree record came from."""

    REGISTERED = "registered"  # listed by `git worktree list`
    SYNTHETIC_FROM_MARKER = "synthetic"  # a directory with a .git marker


@dataclass(frozen=True)
class WorktreeRecord:
    """Information about a git worktree."""

    path: str
    head: str = ""
    branch: Optional[str] = None
    detached: bool = False
    locked: bool = False
    lock_reason: Optional[str] = None
    prunable: bool = False
    prune_reason: Optional[str] = None
    is_main: bool = False  # Is this the main working tree?
    bare: bool = False
    kind: RecordKind = RecordKind.REGISTERED

    @classmethod
    def from_marker(cls, path: str) -> "WorktreeRecord":
        """Build a minimal record for a directory git does not enumerate."""
        return cls(path=os.path.abspath(path), kind=RecordKind.SYNTHETIC_FROM_MARKER)

    @property
    def short_head(self) -> str:
        return self.head[:7]

    def __str__(self) -> str:
        """String representation of worktree."""
        if self.branch:
            label = self.branch
        elif self.bare:
            label = "(bare)"
        else:
            label = f"(detached at {self.short_head})"
        main_marker = " (main)" if self.is_main else ""
        return f"{label} @ {self.path}{main_marker}"
