"""Thin command executor on top of GitPython's Git.execute."""

import os
from dataclasses import dataclass
from typing import Optional, Sequence

import git

from git_worktree_keeper.exceptions import GitOperationError
from git_worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Captured result of one git invocation."""

    status: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.status == 0


class GitRunner:
    """Run git commands synchronously against one repository.

    Every call blocks until git exits. With ``check=False`` a non-zero exit
    status is returned to the caller instead of being raised.
    """

    def __init__(self, cwd: Optional[str] = None):
        self.cwd = os.path.abspath(cwd or os.getcwd())

    def run(self, *args: str, cwd: Optional[str] = None, check: bool = True) -> CommandResult:
        """Run ``git <args>`` in ``cwd`` (defaults to the runner's directory).

        Raises:
            GitOperationError: when check is True and git exits non-zero, or
                when git could not be started at all.
        """
        workdir = cwd or self.cwd
        # -C: a missing directory must fail, never fall back to the process cwd
        command: Sequence[str] = ["git", "-C", workdir, *args]
        logger.debug(f"Running {' '.join(command)}")
        try:
            status, stdout, stderr = git.Git().execute(
                list(command),
                with_extended_output=True,
                with_exceptions=False,
            )
        except (git.exc.GitCommandNotFound, OSError) as e:
            if not check:
                return CommandResult(status=-1, stdout="", stderr=str(e))
            raise GitOperationError(args[0] if args else "git", message=str(e)) from e

        result = CommandResult(status=status, stdout=stdout or "", stderr=(stderr or "").strip())
        if check and not result.ok:
            raise self.error_for(args, result)
        return result

    def output(self, *args: str, cwd: Optional[str] = None) -> Optional[str]:
        """Return stripped stdout, or None if the command failed."""
        result = self.run(*args, cwd=cwd, check=False)
        if not result.ok:
            logger.debug(f"git {' '.join(args)} failed (exit {result.status}): {result.stderr}")
            return None
        return result.stdout.strip()

    @staticmethod
    def error_for(args: Sequence[str], result: CommandResult, error_cls=GitOperationError):
        """Build an error the same way for every failed git call."""
        operation = " ".join(args[:2]) if len(args) > 1 else (args[0] if args else "git")
        if result.stderr:
            message = result.stderr
        else:
            message = f"'git {' '.join(args)}' failed with exit code {result.status}"
        return error_cls(operation, message=message, status=result.status, stderr=result.stderr)
