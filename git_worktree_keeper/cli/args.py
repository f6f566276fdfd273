"""Command-line argument parsing for git-worktree-keeper."""

import argparse

from git_worktree_keeper.__version__ import __version__
from git_worktree_keeper.config import CONFIG_KEYS
from git_worktree_keeper.models.requests import DirtyChoice


def _add_creation_options(parser: argparse.ArgumentParser) -> None:
    """Options shared by new, setup and pr."""
    parser.add_argument("-p", "--path", help="Worktree directory (default: computed from the branch)")
    parser.add_argument(
        "-i",
        "--install",
        metavar="TOOL",
        help="Run '<TOOL> install' in the new worktree (e.g. npm, pnpm, bun)",
    )
    parser.add_argument(
        "-e",
        "--editor",
        help="Editor to open the worktree with ('none' to skip)",
    )
    parser.add_argument(
        "--on-dirty",
        choices=[c.value for c in DirtyChoice],
        help="What to do when the current worktree has uncommitted changes "
        "(default: ask, or abort when not interactive)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wt",
        description="Manage git worktrees: create, switch, merge and clean up",
        epilog="PR checkout: GitHub needs GITHUB_TOKEN or 'github_token' in the config; "
        "GitLab needs an authenticated 'glab' CLI.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument("--version", action="version", version=f"git-worktree-keeper {__version__}")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    new = subparsers.add_parser("new", help="Create a worktree for a branch")
    new.add_argument("branch", help="Branch to check out (created if it does not exist)")
    new.add_argument(
        "-b",
        "--new-branch",
        action="store_true",
        help="Require creating a new branch; fail if it already exists",
    )
    new.add_argument(
        "--setup", action="store_true", help="Run the repository's setup commands afterwards"
    )
    _add_creation_options(new)

    setup = subparsers.add_parser("setup", help="Create a worktree and run its setup commands")
    setup.add_argument("branch", help="Branch to check out (created if it does not exist)")
    setup.add_argument("-b", "--new-branch", action="store_true", help="Require creating a new branch")
    _add_creation_options(setup)

    pr = subparsers.add_parser("pr", help="Create a worktree from a pull/merge request")
    pr.add_argument("number", nargs="?", type=int, help="PR/MR number (default: pick from open ones)")
    pr.add_argument("--setup", action="store_true", help="Run the repository's setup commands afterwards")
    _add_creation_options(pr)

    list_parser = subparsers.add_parser("list", aliases=["ls"], help="List worktrees")
    list_parser.add_argument("--paths", action="store_true", help="Print only paths, one per line")

    open_parser = subparsers.add_parser("open", help="Open a worktree in an editor")
    open_parser.add_argument("target", nargs="?", default="", help="Worktree path or branch")
    open_parser.add_argument("-e", "--editor", help="Editor to use")

    cd = subparsers.add_parser("cd", help="Start a shell in a worktree")
    cd.add_argument("target", nargs="?", default="", help="Worktree path or branch")
    cd.add_argument(
        "--print",
        action="store_true",
        help="Print the worktree path instead of starting a shell (for 'cd $(wt cd --print x)')",
    )

    remove = subparsers.add_parser("remove", aliases=["rm"], help="Remove a worktree")
    remove.add_argument("target", nargs="?", default="", help="Worktree path or branch")
    remove.add_argument(
        "-f", "--force", action="store_true", help="Remove locked or dirty worktrees without asking"
    )

    purge = subparsers.add_parser("purge", help="Select and remove several worktrees")
    purge.add_argument("-f", "--force", action="store_true", help="Skip the confirmation")

    merge = subparsers.add_parser("merge", help="Merge a worktree's branch into the current worktree")
    merge.add_argument("branch", help="Branch to merge")
    merge.add_argument(
        "--auto-commit",
        action="store_true",
        help="Commit uncommitted changes in the current worktree before merging",
    )
    merge.add_argument("-m", "--message", help="Message for the auto-commit")
    merge.add_argument(
        "--remove", action="store_true", help="Remove the source worktree after merging"
    )
    merge.add_argument(
        "-f", "--force", action="store_true", help="Allow removing a dirty or locked source worktree"
    )

    config = subparsers.add_parser("config", help="Show or change saved preferences")
    config_sub = config.add_subparsers(dest="config_command", metavar="ACTION")
    config_sub.required = True
    config_get = config_sub.add_parser("get", help="Print a value")
    config_get.add_argument("key", choices=CONFIG_KEYS)
    config_set = config_sub.add_parser("set", help="Save a value")
    config_set.add_argument("key", choices=CONFIG_KEYS)
    config_set.add_argument("value")
    config_unset = config_sub.add_parser("unset", help="Remove a value")
    config_unset.add_argument("key", choices=CONFIG_KEYS)
    config_sub.add_parser("path", help="Print the config file location")

    return parser


def parse_args(argv=None):
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
