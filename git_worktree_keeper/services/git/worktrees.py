"""Worktree operations service for git-worktree-keeper."""

import os
import shutil
from typing import Optional

from git_worktree_keeper.exceptions import GitCreateFailed, GitOperationError
from git_worktree_keeper.services.git.executor import GitRunner
from git_worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)


class WorktreeService:
    """Service for mutating worktree metadata and local branches."""

    def __init__(self, repo_path: str, runner: Optional[GitRunner] = None):
        """Initialize the worktree service.

        Args:
            repo_path: Path to the git repository
            runner: Command executor (one is created for repo_path if omitted)
        """
        self.repo_path = os.path.abspath(repo_path)
        self.runner = runner or GitRunner(self.repo_path)

    def add_worktree(self, path: str, branch: str, create_branch: bool = False) -> None:
        """Create a worktree at path for branch.

        Raises:
            GitCreateFailed: git refused to create the worktree
        """
        if create_branch:
            args = ["worktree", "add", "-b", branch, path]
        else:
            args = ["worktree", "add", path, branch]

        result = self.runner.run(*args, check=False)
        if not result.ok:
            raise GitRunner.error_for(args, result, error_cls=GitCreateFailed)
        logger.info(f"Created worktree at {path} for branch {branch}")

    def remove_worktree(
        self, path: str, force: bool = False, locked: bool = False
    ) -> tuple[bool, Optional[str]]:
        """Remove a worktree at the specified path.

        Args:
            path: Path to the worktree directory
            force: Force removal even if the working tree is dirty
            locked: The worktree is locked; with force, git needs --force twice

        Returns:
            Tuple of (success, error_message). error_message is None on success.
        """
        args = ["worktree", "remove", path]
        if force:
            args.insert(2, "--force")
            if locked:
                args.insert(2, "--force")

        result = self.runner.run(*args, check=False)
        if result.ok:
            logger.info(f"Removed worktree at {path}")
            return True, None

        if result.stderr:
            error_msg = f"git worktree remove failed (exit {result.status}): {result.stderr}"
        else:
            error_msg = f"git worktree remove failed with exit code {result.status}"
        logger.debug(f"Failed to remove worktree at {path}: {error_msg}")
        return False, error_msg

    def prune_worktrees(self) -> tuple[bool, Optional[str]]:
        """Prune stale worktree metadata.

        Returns:
            Tuple of (success, error_message). error_message is None on success.
        """
        result = self.runner.run("worktree", "prune", check=False)
        if result.ok:
            logger.info("Pruned stale worktree metadata")
            return True, None

        error_msg = f"git worktree prune failed (exit {result.status}): {result.stderr}"
        logger.error(f"Failed to prune worktrees: {error_msg}")
        return False, error_msg

    @staticmethod
    def delete_directory(path: str) -> bool:
        """Delete a worktree directory if it still exists.

        Returns:
            True if something was deleted, False if the directory was already gone
        """
        if not os.path.lexists(path):
            return False
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.remove(path)
        logger.debug(f"Deleted directory {path}")
        return True

    def delete_branch(self, branch: str, force: bool = False) -> tuple[bool, Optional[str]]:
        """Delete a local branch (-d, or -D when forced).

        Returns:
            Tuple of (success, error_message). error_message is None on success.
        """
        result = self.runner.run("branch", "-D" if force else "-d", branch, check=False)
        if result.ok:
            logger.info(f"Deleted branch {branch}")
            return True, None
        return False, result.stderr or f"git branch delete failed with exit code {result.status}"

    def fetch_ref(self, remote: str, ref: str, local_branch: str) -> None:
        """Fetch remote ref into a local branch without touching any checkout.

        Raises:
            GitCreateFailed: the fetch failed
        """
        args = ["fetch", remote, f"{ref}:{local_branch}"]
        result = self.runner.run(*args, check=False)
        if not result.ok:
            raise GitRunner.error_for(args, result, error_cls=GitCreateFailed)
        logger.info(f"Fetched {remote}/{ref} into {local_branch}")

    def commit_all(self, path: str, message: str) -> None:
        """Stage everything in path and commit it.

        Raises:
            GitOperationError: staging or committing failed
        """
        self.runner.run("add", "-A", cwd=path)
        self.runner.run("commit", "-m", message, cwd=path)
        logger.info(f"Committed pending changes in {path}")

    def merge_branch(self, path: str, branch: str) -> str:
        """Merge branch into the branch checked out at path.

        Raises:
            GitOperationError: the merge failed (conflicts are left in place)
        """
        result = self.runner.run("merge", "--no-edit", branch, cwd=path, check=False)
        if not result.ok:
            raise GitOperationError(
                "merge",
                message=result.stderr or result.stdout.strip(),
                status=result.status,
                stderr=result.stderr,
            )
        return result.stdout.strip()
