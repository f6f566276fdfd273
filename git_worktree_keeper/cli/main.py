"""Main CLI entry point for git-worktree-keeper."""

import os
import signal
import sys
from typing import Optional

from rich.console import Console

from git_worktree_keeper.cli.args import parse_args
from git_worktree_keeper.config import Config, ConfigStore
from git_worktree_keeper.core import CreationPipeline, MergeStateMachine, RemovalFlow
from git_worktree_keeper.exceptions import (
    NotFoundError,
    SelectionCancelled,
    UserAbort,
    WorktreeGoneError,
    WorktreeKeeperError,
)
from git_worktree_keeper.logging_config import get_logger, setup_logging
from git_worktree_keeper.models.requests import CreationRequest, DirtyChoice, MergeRequest
from git_worktree_keeper.services.display_service import DisplayService
from git_worktree_keeper.services.git import RepositoryInspector, WorktreeResolver
from git_worktree_keeper.services.launchers import choose_editor, open_editor, spawn_shell
from git_worktree_keeper.ui.prompts import Prompter, TerminalPrompter

console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)


class CommandContext:
    """What every subcommand gets: repository, config and prompter."""

    def __init__(self, repo_path: str, config: Config, prompter: Prompter):
        self.repo_path = repo_path
        self.config = config
        self.prompter = prompter
        self.inspector = RepositoryInspector(repo_path)

    def require_repository(self) -> None:
        if self.inspector.main_worktree() is None:
            raise NotFoundError("Not inside a git repository.")

    def resolver(self) -> WorktreeResolver:
        return WorktreeResolver(self.inspector, self.prompter)


def _creation_request(args, branch: str = "", pr_number: Optional[int] = None, setup: bool = False):
    return CreationRequest(
        branch=branch,
        path=args.path,
        checkout_new_branch=getattr(args, "new_branch", False),
        install=args.install,
        run_setup=setup,
        pr_number=pr_number,
        editor=args.editor,
        on_dirty=DirtyChoice(args.on_dirty) if args.on_dirty else None,
    )


def _report_creation(result) -> None:
    if result.setup_failures:
        console.print(
            f"[yellow]{len(result.setup_failures)} setup command(s) failed; "
            f"the worktree was kept.[/yellow]"
        )
    if result.editor_error:
        console.print(f"[yellow]{result.editor_error}[/yellow]")
    console.print(f"[cyan]  Branch: {result.record.branch}[/cyan]")
    console.print(f"[cyan]  Path: {result.record.path}[/cyan]")


def cmd_new(args, ctx: CommandContext) -> int:
    ctx.require_repository()
    pipeline = CreationPipeline(ctx.repo_path, ctx.config, ctx.prompter, inspector=ctx.inspector)
    setup = args.command == "setup" or args.setup
    result = pipeline.create(_creation_request(args, branch=args.branch, setup=setup))
    _report_creation(result)
    return 0


def cmd_pr(args, ctx: CommandContext) -> int:
    ctx.require_repository()
    pipeline = CreationPipeline(ctx.repo_path, ctx.config, ctx.prompter, inspector=ctx.inspector)

    number = args.number
    if number is None:
        console.print("[blue]Fetching open pull requests...[/blue]")
        pull_requests = pipeline.list_pull_requests()
        if not pull_requests:
            console.print("[yellow]No open pull requests found.[/yellow]")
            return 0
        selected = ctx.prompter.select_pull_request(pull_requests, "Select a pull request")
        if selected is None:
            raise SelectionCancelled("No pull request selected.")
        number = selected.number

    result = pipeline.create(_creation_request(args, pr_number=number, setup=args.setup))
    _report_creation(result)
    return 0


def cmd_list(args, ctx: CommandContext) -> int:
    ctx.require_repository()
    worktrees = ctx.inspector.list_worktrees()
    display = DisplayService(verbose=ctx.config.verbose)
    if args.paths:
        display.display_paths(worktrees)
    else:
        display.display_worktree_table(worktrees, current_path=ctx.inspector.repo_root())
    return 0


def _existing_path(record) -> str:
    if not os.path.isdir(record.path):
        raise WorktreeGoneError(record.path)
    return record.path


def cmd_open(args, ctx: CommandContext) -> int:
    ctx.require_repository()
    record = ctx.resolver().resolve(args.target, message="Select a worktree to open")
    path = _existing_path(record)
    editor = choose_editor(args.editor, ctx.config.editor)
    if editor is None:
        console.print(f"[yellow]Editor disabled; worktree is at {path}[/yellow]")
        return 0
    open_editor(editor, path)
    return 0


def cmd_cd(args, ctx: CommandContext) -> int:
    ctx.require_repository()
    record = ctx.resolver().resolve(args.target, message="Select a worktree to cd into")
    path = _existing_path(record)
    if args.print:
        print(path)
        return 0

    err_console.print(f"[green]Entering {path}[/green]")
    err_console.print("[dim](exit or ctrl+d to return)[/dim]")
    return spawn_shell(path)


def cmd_remove(args, ctx: CommandContext) -> int:
    ctx.require_repository()
    RemovalFlow(ctx.inspector, ctx.prompter).remove(args.target, force=args.force)
    return 0


def cmd_purge(args, ctx: CommandContext) -> int:
    ctx.require_repository()
    reports = RemovalFlow(ctx.inspector, ctx.prompter).purge(force=args.force)
    return 1 if any(r.error for r in reports) else 0


def cmd_merge(args, ctx: CommandContext) -> int:
    ctx.require_repository()
    request = MergeRequest(
        branch=args.branch,
        auto_commit=args.auto_commit,
        message=args.message,
        remove=args.remove,
        force=args.force,
    )
    MergeStateMachine(ctx.inspector).merge(request)
    return 0


def cmd_config(args, store: ConfigStore) -> int:
    try:
        if args.config_command == "path":
            print(store.path)
        elif args.config_command == "get":
            value = store.get(args.key)
            if value is None:
                return 1
            print(value)
        elif args.config_command == "set":
            store.set(args.key, args.value)
            console.print(f"[green]Set {args.key}[/green]")
        elif args.config_command == "unset":
            if store.unset(args.key):
                console.print(f"[green]Unset {args.key}[/green]")
            else:
                console.print(f"[yellow]{args.key} was not set[/yellow]")
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1
    return 0


COMMANDS = {
    "new": cmd_new,
    "setup": cmd_new,
    "pr": cmd_pr,
    "list": cmd_list,
    "ls": cmd_list,
    "open": cmd_open,
    "cd": cmd_cd,
    "remove": cmd_remove,
    "rm": cmd_remove,
    "purge": cmd_purge,
    "merge": cmd_merge,
}


def _raise_on_sigterm(signum, frame):
    # Unwind through finally blocks so stashes are restored and partial worktrees rolled back
    raise SystemExit(128 + signum)


def main(argv=None, prompter: Optional[Prompter] = None) -> int:
    """Main entry point for the application."""
    parsed_args = parse_args(argv)
    setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug)
    signal.signal(signal.SIGTERM, _raise_on_sigterm)

    try:
        store = ConfigStore()
        if parsed_args.command == "config":
            return cmd_config(parsed_args, store)

        prompter = prompter or TerminalPrompter()
        config = Config.from_store(
            store,
            interactive=prompter.interactive,
            verbose=parsed_args.verbose,
            debug=parsed_args.debug,
        )
        if parsed_args.debug:
            console.print("[yellow]Debug mode enabled[/yellow]")
            console.print("[yellow]Configuration:[/yellow]")
            for key, value in config.to_dict().items():
                console.print(f"  {key}: {value}")

        ctx = CommandContext(os.getcwd(), config, prompter)
        return COMMANDS[parsed_args.command](parsed_args, ctx)
    except UserAbort as e:
        console.print(f"[yellow]{e}[/yellow]")
        return 0
    except WorktreeKeeperError as e:
        console.print(f"[red]Error: {e}[/red]")
        if e.hint:
            console.print(f"[yellow]{e.hint}[/yellow]")
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 130
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if parsed_args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
