"""Worktree lifecycle operations: create, merge, remove."""

from .creation import CreationPipeline, CreationResult, CreationStage
from .merge import MergeState, MergeStateMachine
from .paths import compute_worktree_path, sanitize_branch_name
from .removal import RemovalFlow

__all__ = [
    "CreationPipeline",
    "CreationResult",
    "CreationStage",
    "MergeState",
    "MergeStateMachine",
    "RemovalFlow",
    "compute_worktree_path",
    "sanitize_branch_name",
]
