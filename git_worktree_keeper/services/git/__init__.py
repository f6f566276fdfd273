"""Git-related services for git-worktree-keeper."""

from .executor import CommandResult, GitRunner
from .inspector import RepositoryInspector, parse_worktree_porcelain
from .worktrees import WorktreeService
from .stash import DirtyStateGuard
from .resolver import WorktreeResolver

__all__ = [
    "CommandResult",
    "GitRunner",
    "RepositoryInspector",
    "parse_worktree_porcelain",
    "WorktreeService",
    "DirtyStateGuard",
    "WorktreeResolver",
]
