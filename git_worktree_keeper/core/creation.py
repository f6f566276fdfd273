"""Atomic worktree creation with rollback."""

import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional

from rich.console import Console

from git_worktree_keeper.config import Config
from git_worktree_keeper.core.paths import compute_worktree_path
from git_worktree_keeper.exceptions import (
    DirtyMainAborted,
    EditorLaunchFailed,
    GitCreateFailed,
    GitOperationError,
    PathCollisionError,
    SetupCommandFailed,
)
from git_worktree_keeper.models.requests import (
    CreationRequest,
    DirtyChoice,
    Provider,
    PullRequestInfo,
    StashHandle,
)
from git_worktree_keeper.models.worktree import WorktreeRecord
from git_worktree_keeper.services.git import DirtyStateGuard, RepositoryInspector, WorktreeService
from git_worktree_keeper.services.launchers import choose_editor, install_dependencies, open_editor
from git_worktree_keeper.services.providers import get_provider
from git_worktree_keeper.services.setup_scripts import load_setup_scripts, run_setup_scripts
from git_worktree_keeper.ui.prompts import Prompter
from git_worktree_keeper.logging_config import get_logger

console = Console()
logger = get_logger(__name__)


class CreationStage(Enum):
    START = "start"
    WORKTREE_CREATED = "worktree-created"
    SETUP_RUN = "setup-run"
    DEPS_INSTALLED = "deps-installed"
    EDITOR_OPENED = "editor-opened"
    DONE = "done"


@dataclass
class PullRequestSource:
    """Where a pull/merge request's branch is fetched from."""

    provider: Provider
    remote: str
    ref: str
    branch: str


@dataclass
class CreationResult:
    """What the pipeline produced."""

    record: WorktreeRecord
    stage: CreationStage
    stash: Optional[StashHandle] = None
    setup_failures: List[SetupCommandFailed] = field(default_factory=list)
    editor_error: Optional[EditorLaunchFailed] = None


class CreationPipeline:
    """Create a worktree, run optional setup and install, then open an editor.

    Once the worktree exists, any failure of a mandatory stage removes it
    again (directory and any branch this run created) before the error
    propagates. Setup commands are best effort and never trigger rollback.
    """

    def __init__(
        self,
        repo_path: str,
        config: Config,
        prompter: Prompter,
        inspector: Optional[RepositoryInspector] = None,
        worktree_service: Optional[WorktreeService] = None,
        guard: Optional[DirtyStateGuard] = None,
    ):
        self.repo_path = os.path.abspath(repo_path)
        self.config = config
        self.prompter = prompter
        self.inspector = inspector or RepositoryInspector(self.repo_path)
        self.worktrees = worktree_service or WorktreeService(self.repo_path, self.inspector.runner)
        self.guard = guard or DirtyStateGuard(self.inspector)

    def create(self, request: CreationRequest) -> CreationResult:
        """Run the whole pipeline for request.

        Raises:
            DirtyMainAborted: the current worktree is dirty and the user declined
            PathCollisionError: the target path already exists
            GitCreateFailed: git could not create the worktree
            InstallFailed: dependency installation failed (after rollback)
        """
        main = self.inspector.main_worktree()
        if main is None:
            raise GitOperationError("worktree list", message="not inside a git repository")

        source = None
        branch = request.branch
        if request.pr_number is not None:
            source = self.pull_request_source(request.pr_number)
            branch = source.branch

        target = compute_worktree_path(
            branch,
            self.inspector.repo_name(),
            main.path,
            explicit_path=request.path,
            global_dir=self.config.worktree_path,
        )
        if os.path.lexists(target):
            raise PathCollisionError(target)

        with self._dirty_source(request) as handle:
            result = self._build(request, branch, target, main, source)
            result.stash = handle
        return result

    @contextmanager
    def _dirty_source(self, request: CreationRequest) -> Iterator[Optional[StashHandle]]:
        """Stash/abort/continue on a dirty current worktree.

        A stash taken here is restored when the block exits, however it exits.
        """
        current = self.inspector.repo_root()
        if self.inspector.is_bare() or current is None or self.inspector.is_clean(current):
            yield None
            return

        choice = request.on_dirty
        if choice is None:
            if self.prompter.interactive:
                answer = self.prompter.choose(
                    f"Worktree at {current} has uncommitted changes. Stash, abort or continue?",
                    [c.value for c in DirtyChoice],
                    default=DirtyChoice.ABORT.value,
                )
                choice = DirtyChoice(answer)
            else:
                choice = DirtyChoice.ABORT

        if choice is DirtyChoice.ABORT:
            raise DirtyMainAborted(current)
        if choice is DirtyChoice.CONTINUE:
            logger.info(f"Continuing with uncommitted changes in {current}")
            yield None
            return

        with self.guard.rescue(current) as handle:
            if handle:
                console.print(f"[blue]Stashed changes in {current} ({handle})[/blue]")
            yield handle

    def _build(
        self,
        request: CreationRequest,
        branch: str,
        target: str,
        main: WorktreeRecord,
        source: Optional[PullRequestSource],
    ) -> CreationResult:
        branch_existed = self.inspector.branch_exists(branch)
        if request.checkout_new_branch and branch_existed:
            raise GitCreateFailed("worktree add", message=f"branch '{branch}' already exists")

        created_branch = False
        if source:
            # Fetching into a local branch never touches the current checkout
            self.worktrees.fetch_ref(source.remote, source.ref, branch)
            created_branch = not branch_existed
            branch_existed = True

        create_branch = not branch_existed
        console.print(f"[blue]Creating worktree for {branch} at {target}[/blue]")
        try:
            self.worktrees.add_worktree(target, branch, create_branch=create_branch)
        except GitCreateFailed:
            if created_branch:
                self.worktrees.delete_branch(branch, force=True)
            raise
        created_branch = created_branch or create_branch

        result = CreationResult(
            record=self._record_for(target, branch), stage=CreationStage.WORKTREE_CREATED
        )

        try:
            if request.run_setup:
                result.setup_failures = self._run_setup(target, main)
                result.stage = CreationStage.SETUP_RUN

            if request.install:
                install_dependencies(request.install, target)
                result.stage = CreationStage.DEPS_INSTALLED
        except BaseException:
            self.rollback(target, branch if created_branch else None)
            raise

        editor = choose_editor(request.editor, self.config.editor)
        if editor:
            try:
                open_editor(editor, target)
                result.stage = CreationStage.EDITOR_OPENED
            except EditorLaunchFailed as e:
                logger.warning(str(e))
                result.editor_error = e

        result.stage = CreationStage.DONE
        console.print(f"[green]Worktree created at {target}[/green]")
        return result

    def _record_for(self, target: str, branch: str) -> WorktreeRecord:
        record = self.inspector.find_by_path(target)
        if record:
            return record
        return WorktreeRecord(path=target, branch=branch)

    def _run_setup(self, target: str, main: WorktreeRecord) -> List[SetupCommandFailed]:
        roots = [main.path]
        current = self.inspector.repo_root()
        if current and current not in roots:
            roots.append(current)

        for root in roots:
            scripts = load_setup_scripts(root)
            if scripts is None:
                continue
            console.print(f"[blue]Running {len(scripts)} setup command(s) from {scripts.source}[/blue]")
            failures = run_setup_scripts(scripts, cwd=target, root=main.path)
            for failure in failures:
                console.print(f"[yellow]{failure}[/yellow]")
            return failures

        logger.info("No setup configuration found, skipping setup")
        return []

    def rollback(self, target: str, branch: Optional[str] = None) -> None:
        """Undo a created worktree: metadata, directory and a branch we created."""
        console.print(f"[yellow]Rolling back worktree at {target}[/yellow]")
        removed, error = self.worktrees.remove_worktree(target, force=True)
        if not removed:
            logger.warning(f"Could not remove worktree metadata for {target}: {error}")
        try:
            self.worktrees.delete_directory(target)
        except OSError as e:
            logger.error(f"Could not delete {target} during rollback: {e}")
        self.worktrees.prune_worktrees()
        if branch:
            deleted, error = self.worktrees.delete_branch(branch, force=True)
            if not deleted:
                logger.warning(f"Could not delete branch {branch} during rollback: {error}")

    def _provider(self) -> Provider:
        if self.config.provider:
            return Provider.from_name(self.config.provider)
        return self.inspector.detect_provider()

    def _client(self, provider: Provider, remote: str):
        return get_provider(
            provider,
            self.inspector.remote_url(remote),
            cwd=self.repo_path,
            github_token=self.config.github_token,
        )

    def pull_request_source(self, number: int) -> PullRequestSource:
        """Ask the provider which branch pull/merge request number comes from.

        Raises:
            ProviderNotConfiguredError: the provider is unknown
            ProviderError: the provider lookup failed
        """
        provider = self._provider()
        remote = self.inspector.upstream_remote()
        client = self._client(provider, remote)
        try:
            branch = client.source_branch(number)
        finally:
            client.close()
        return PullRequestSource(
            provider=provider,
            remote=remote,
            ref=client.ref_template.format(number=number),
            branch=branch,
        )

    def list_pull_requests(self) -> List[PullRequestInfo]:
        provider = self._provider()
        client = self._client(provider, self.inspector.upstream_remote())
        try:
            return client.list_open()
        finally:
            client.close()
