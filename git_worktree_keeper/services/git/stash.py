"""Hash-addressed stash rescue for dirty worktrees.

`git stash push`/`pop` operate on the shared stash stack: an unrelated stash
created between push and pop (another terminal, an IDE) makes pop restore
the wrong changes. Rescue snapshots here are built with `git stash create`
and addressed only by their commit hash. The snapshot is also stored in the
stash reflog so that it survives a killed process; it is dropped by hash
once it has been applied.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from git_worktree_keeper.constants import RESCUE_STASH_MESSAGE
from git_worktree_keeper.exceptions import StashFailedError
from git_worktree_keeper.models.requests import StashHandle
from git_worktree_keeper.services.git.executor import GitRunner
from git_worktree_keeper.services.git.inspector import RepositoryInspector
from git_worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)


class DirtyStateGuard:
    """Stash and restore uncommitted changes by commit hash."""

    def __init__(self, inspector: RepositoryInspector, runner: Optional[GitRunner] = None):
        self.inspector = inspector
        self.runner = runner or inspector.runner

    def stash(self, path: str, message: str = RESCUE_STASH_MESSAGE) -> Optional[StashHandle]:
        """Snapshot every change in path (untracked files included) and clean it.

        Returns:
            A handle for the snapshot, or None if the worktree was already clean

        Raises:
            StashFailedError: changes were detected but no snapshot could be made
        """
        if self.inspector.is_clean(path):
            logger.debug(f"No uncommitted changes to stash in {path}")
            return None

        # Stage untracked files so the snapshot includes them
        self.runner.run("add", "-A", cwd=path)
        result = self.runner.run("stash", "create", message, cwd=path, check=False)
        commit = result.stdout.strip()
        if not result.ok or not commit:
            # Unstage what add -A picked up so the worktree is left as found
            self.runner.run("reset", "-q", cwd=path, check=False)
            raise StashFailedError(
                "stash create",
                message=result.stderr or "no stash commit was produced despite uncommitted changes",
                status=result.status,
                stderr=result.stderr,
            )

        self.runner.run("stash", "store", "-m", message, commit, cwd=path)
        # Reset the working directory to HEAD to complete the stash effect
        self.runner.run("reset", "--hard", "HEAD", cwd=path)
        self.runner.run("clean", "-fd", cwd=path)

        handle = StashHandle(commit=commit, path=path)
        logger.info(f"Stashed changes in {path} as {handle}")
        return handle

    def restore(self, handle: StashHandle) -> bool:
        """Apply the snapshot back onto its worktree and drop it.

        A handle is applied at most once; calling restore again returns False
        and leaves the worktree alone.

        Returns:
            True if the changes were applied
        """
        if handle.consumed:
            logger.debug(f"Stash {handle} was already restored, skipping")
            return False

        result = self.runner.run("stash", "apply", handle.commit, cwd=handle.path, check=False)
        if not result.ok:
            logger.error(
                f"Failed to apply stash {handle.commit} in {handle.path}: {result.stderr}. "
                f"Recover it with 'git stash apply {handle.commit}'."
            )
            return False

        handle.consumed = True
        self._drop(handle)
        logger.info(f"Restored stashed changes {handle} in {handle.path}")
        return True

    def _drop(self, handle: StashHandle) -> None:
        """Drop the stash entry for handle, located by hash rather than position."""
        entries = self.runner.output("stash", "list", "--format=%gd %H", cwd=handle.path)
        for line in (entries or "").splitlines():
            selector, _, commit = line.strip().partition(" ")
            if commit == handle.commit:
                self.runner.run("stash", "drop", selector, cwd=handle.path, check=False)
                return
        logger.debug(f"Stash {handle} not found in the stash list, nothing to drop")

    @contextmanager
    def rescue(self, path: str) -> Iterator[Optional[StashHandle]]:
        """Stash changes in path for the duration of the block.

        Restoration runs on every exit path, including exceptions raised
        inside the block.
        """
        handle = self.stash(path)
        try:
            yield handle
        finally:
            if handle is not None and not handle.consumed:
                if not self.restore(handle):
                    logger.warning(
                        f"Your changes are still saved as stash {handle.commit}. "
                        f"Run 'git stash apply {handle.commit}' manually."
                    )
