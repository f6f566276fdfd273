"""Data models for git-worktree-keeper."""

from .worktree import RecordKind, WorktreeRecord
from .requests import (
    CreationRequest,
    DirtyChoice,
    MergeRequest,
    MergeResult,
    Provider,
    PullRequestInfo,
    RemovalReport,
    SetupScriptSet,
    StashHandle,
)

__all__ = [
    "RecordKind",
    "WorktreeRecord",
    "CreationRequest",
    "DirtyChoice",
    "MergeRequest",
    "MergeResult",
    "Provider",
    "PullRequestInfo",
    "RemovalReport",
    "SetupScriptSet",
    "StashHandle",
]
