"""Shared constants for git-worktree-keeper."""

from typing import List, Tuple

APP_DIR_NAME = ".git-worktree-keeper"
CONFIG_ENV_VAR = "GIT_WORKTREE_KEEPER_CONFIG"

# git worktree list --porcelain
HEADS_PREFIX = "refs/heads/"
GIT_MARKER = ".git"

# Upstream remote resolution
PRIMARY_BRANCH_CANDIDATES: Tuple[str, ...] = ("main", "master")
PREFERRED_REMOTES: Tuple[str, ...] = ("origin", "upstream")
FALLBACK_REMOTE = "origin"
FALLBACK_REPO_NAME = "repo"

# Stash messages for rescue snapshots
RESCUE_STASH_MESSAGE = "git-worktree-keeper rescue"

# Setup scripts, looked up in the main worktree in this order
SETUP_CONFIG_FILES: List[str] = [".wt/worktrees.json", ".cursor/worktrees.json"]
SETUP_CONFIG_KEY = "setup-worktree"
ROOT_WORKTREE_ENV = "ROOT_WORKTREE_PATH"

# Editor
EDITOR_SKIP_SENTINEL = "none"
DEFAULT_EDITOR = "code"

# Provider names as accepted on the command line / config
PROVIDER_GITHUB = "gh"
PROVIDER_GITLAB = "glab"

# Output produced by `git worktree remove` / `git branch -d` that we react to
DIRTY_REMOVE_MARKER = "modified or untracked files"
NOT_MERGED_MARKER = "not fully merged"

DEFAULT_MERGE_MESSAGE = "Auto-commit before merging {branch}"

# Symbols used when rendering worktrees
SYMBOL_MAIN = "[main]"
SYMBOL_LOCKED = "[locked]"
SYMBOL_PRUNABLE = "[prunable]"
SYMBOL_CURRENT = " *"
