"""Custom exceptions for git-worktree-keeper"""

from typing import Optional


class WorktreeKeeperError(Exception):
    """Base exception for all git-worktree-keeper errors."""

    hint: Optional[str] = None


class UserAbort(WorktreeKeeperError):
    """The user cancelled or declined an operation."""


class SelectionCancelled(UserAbort):
    """Interactive selection was dismissed without a choice."""

    def __init__(self, message: str = "No worktree selected."):
        super().__init__(message)


class DirtyMainAborted(UserAbort):
    """The user chose not to proceed while the current worktree has changes."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Aborted: worktree at {path} has uncommitted changes")


class NotFoundError(WorktreeKeeperError):
    """A token did not resolve to anything."""


class WorktreeNotFoundError(NotFoundError):
    """No worktree matches the given path or branch."""

    hint = (
        "Use 'wt list' to see existing worktrees, or run the command without "
        "arguments to select interactively."
    )

    def __init__(self, token: str):
        self.token = token
        super().__init__(f'Could not find a worktree for "{token}"')


class NotAWorktreeError(NotFoundError):
    """A path exists but is not a git worktree."""

    def __init__(self, path: str, reason: str = "exists but is not a git worktree"):
        self.path = path
        super().__init__(f'The path "{path}" {reason}')


class WorktreeGoneError(NotFoundError):
    """A registered worktree's directory no longer exists."""

    hint = "The worktree may have been removed. Run 'git worktree prune' to clean up."

    def __init__(self, path: str):
        self.path = path
        super().__init__(f'The worktree path "{path}" no longer exists')


class PreconditionFailed(WorktreeKeeperError):
    """The operation was refused because the repository is in the wrong state."""


class MainWorktreeError(PreconditionFailed):
    """The main worktree cannot be the target of a destructive operation."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Cannot remove the main worktree ({path})")


class LockedWorktreeError(PreconditionFailed):
    """The worktree is locked and --force was not given."""

    hint = "Use --force to remove a locked worktree."

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        self.reason = reason
        message = f"Worktree at {path} is locked"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class TargetDirtyError(PreconditionFailed):
    """The merge target has uncommitted changes and auto-commit was not requested."""

    hint = "Commit or stash your changes, or pass --auto-commit."

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Target worktree at {path} has uncommitted changes")


class SourceDirtyError(PreconditionFailed):
    """A worktree scheduled for removal has uncommitted changes."""

    hint = "Pass --force to remove it anyway."

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Worktree at {path} has uncommitted changes")


class PathCollisionError(PreconditionFailed):
    """The target path for a new worktree already exists."""

    hint = "Choose another location with --path or remove the existing directory."

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Target path already exists: {path}")


class ProviderNotConfiguredError(PreconditionFailed):
    """The hosting provider could not be detected."""

    hint = "Set it explicitly with 'wt config set provider gh' (or 'glab')."

    def __init__(self, remote_url: Optional[str] = None):
        self.remote_url = remote_url
        message = "Could not detect the git hosting provider"
        if remote_url:
            message += f" for remote {remote_url}"
        super().__init__(message)


class ExternalCommandFailed(WorktreeKeeperError):
    """An external command returned a non-zero exit status."""


class GitOperationError(ExternalCommandFailed):
    """Exception raised for errors in Git operations."""

    def __init__(
        self,
        operation: str,
        message: Optional[str] = None,
        status: Optional[int] = None,
        stderr: str = "",
    ):
        self.operation = operation
        self.message = message
        self.status = status
        self.stderr = stderr

        error_msg = f"Git operation '{operation}' failed"
        if status is not None:
            error_msg += f" (exit {status})"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class GitCreateFailed(GitOperationError):
    """`git worktree add` (or the fetch preceding it) failed; nothing was created."""


class StashFailedError(GitOperationError):
    """Changes were detected but no stash could be created."""


class InstallFailed(ExternalCommandFailed):
    """The dependency install step failed after the worktree was created."""

    def __init__(self, tool: str, status: Optional[int] = None, message: Optional[str] = None):
        self.tool = tool
        self.status = status
        error_msg = f"'{tool} install' failed"
        if status is not None:
            error_msg += f" with exit code {status}"
        if message:
            error_msg += f": {message}"
        super().__init__(error_msg)


class ProviderError(ExternalCommandFailed):
    """The GitHub/GitLab lookup failed."""

    def __init__(self, provider: str, operation: str, message: Optional[str] = None):
        self.provider = provider
        self.operation = operation
        error_msg = f"{provider} operation '{operation}' failed"
        if message:
            error_msg += f": {message}"
        super().__init__(error_msg)


class SetupCommandFailed(WorktreeKeeperError):
    """A setup command failed. Logged and skipped, never fatal."""

    def __init__(self, command: str, status: Optional[int] = None, reason: Optional[str] = None):
        self.command = command
        self.status = status
        self.reason = reason
        if reason:
            error_msg = f"Setup command could not start ({reason}): {command}"
        else:
            error_msg = f"Setup command failed (exit {status}): {command}"
        super().__init__(error_msg)


class EditorLaunchFailed(WorktreeKeeperError):
    """The editor could not be opened. The worktree is still valid."""

    def __init__(self, editor: str, message: Optional[str] = None):
        self.editor = editor
        error_msg = f"Could not open editor '{editor}'"
        if message:
            error_msg += f": {message}"
        super().__init__(error_msg)
