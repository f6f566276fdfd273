"""Request and handle models consumed by the lifecycle operations."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from git_worktree_keeper.constants import PROVIDER_GITHUB, PROVIDER_GITLAB


class Provider(Enum):
    """Git hosting provider, named after its CLI."""

    GITHUB = PROVIDER_GITHUB
    GITLAB = PROVIDER_GITLAB
    UNKNOWN = "unknown"

    @classmethod
    def from_name(cls, name: Optional[str]) -> "Provider":
        """Map a configured CLI name (gh or glab) to a provider."""
        if not name:
            return cls.UNKNOWN
        try:
            return cls(name.strip().lower())
        except ValueError:
            return cls.UNKNOWN


class DirtyChoice(Enum):
    """Answer to the stash/abort/continue question."""

    STASH = "stash"
    ABORT = "abort"
    CONTINUE = "continue"


@dataclass
class StashHandle:
    """A single rescue snapshot, addressed by its commit hash.

    The handle is consumed at most once; a consumed handle can never be
    applied again.
    """

    commit: str
    path: str
    consumed: bool = False

    def __str__(self) -> str:
        return self.commit[:7]


@dataclass(frozen=True)
class CreationRequest:
    """Everything the creation pipeline needs to build one worktree."""

    branch: str
    path: Optional[str] = None
    checkout_new_branch: bool = False
    install: Optional[str] = None
    run_setup: bool = False
    pr_number: Optional[int] = None
    editor: Optional[str] = None
    on_dirty: Optional[DirtyChoice] = None


@dataclass(frozen=True)
class SetupScriptSet:
    """Ordered setup commands loaded from one project config file."""

    commands: Tuple[str, ...]
    source: str

    def __len__(self) -> int:
        return len(self.commands)

    def __iter__(self):
        return iter(self.commands)


@dataclass(frozen=True)
class MergeRequest:
    """Parameters for merging a worktree branch into the current worktree."""

    branch: str
    auto_commit: bool = False
    message: Optional[str] = None
    remove: bool = False
    force: bool = False


@dataclass
class MergeResult:
    """Outcome of a successful merge."""

    branch: str
    target_path: str
    auto_committed: bool = False
    removed_path: Optional[str] = None


@dataclass(frozen=True)
class PullRequestInfo:
    """An open pull/merge request as reported by the provider."""

    number: int
    title: str
    author: str
    source_branch: str


@dataclass
class RemovalReport:
    """What happened to one worktree during remove/purge."""

    path: str
    branch: Optional[str] = None
    removed: bool = False
    branch_deleted: bool = False
    error: Optional[str] = None
