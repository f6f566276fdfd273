"""Read-only repository queries."""

import os
import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from git_worktree_keeper.constants import (
    FALLBACK_REMOTE,
    FALLBACK_REPO_NAME,
    HEADS_PREFIX,
    PREFERRED_REMOTES,
    PRIMARY_BRANCH_CANDIDATES,
)
from git_worktree_keeper.models.requests import Provider
from git_worktree_keeper.models.worktree import WorktreeRecord
from git_worktree_keeper.services.git.executor import GitRunner
from git_worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)

_GITLAB_HOST = re.compile(r"^gitlab\.[a-z0-9.-]+$")


def _record_from_block(fields: Dict[str, Any], is_main: bool) -> WorktreeRecord:
    return WorktreeRecord(
        path=fields["path"],
        head=fields.get("head", ""),
        branch=fields.get("branch"),
        detached=fields.get("detached", False),
        locked=fields.get("locked", False),
        lock_reason=fields.get("lock_reason"),
        prunable=fields.get("prunable", False),
        prune_reason=fields.get("prune_reason"),
        is_main=is_main,
        bare=fields.get("bare", False),
    )


def parse_worktree_porcelain(output: str) -> List[WorktreeRecord]:
    """Parse ``git worktree list --porcelain`` output.

    Format:
    worktree /path/to/worktree
    HEAD commit_sha
    branch refs/heads/branch-name
    (blank line between worktrees)

    The first block is always the main worktree, even when it carries no
    usable path. Unknown lines are ignored.
    """
    records: List[WorktreeRecord] = []
    blocks = [block for block in re.split(r"\n\s*\n", output.strip()) if block.strip()]

    for index, block in enumerate(blocks):
        fields: Dict[str, Any] = {}
        for raw_line in block.splitlines():
            line = raw_line.rstrip("\r")
            if line.startswith("worktree "):
                fields["path"] = line[len("worktree "):]
            elif line.startswith("HEAD "):
                fields["head"] = line[len("HEAD "):]
            elif line.startswith("branch "):
                ref = line[len("branch "):]
                fields["branch"] = ref[len(HEADS_PREFIX):] if ref.startswith(HEADS_PREFIX) else ref
            elif line == "detached":
                fields["detached"] = True
            elif line == "bare":
                fields["bare"] = True
            elif line == "locked":
                fields["locked"] = True
            elif line.startswith("locked "):
                fields["locked"] = True
                fields["lock_reason"] = line[len("locked "):]
            elif line == "prunable":
                fields["prunable"] = True
            elif line.startswith("prunable "):
                fields["prunable"] = True
                fields["prune_reason"] = line[len("prunable "):]

        if fields.get("path"):
            records.append(_record_from_block(fields, is_main=index == 0))

    return records


def remote_hostname(remote_url: str) -> Optional[str]:
    """Extract the lowercase hostname from a remote URL.

    Handles scp-like (``git@github.com:org/repo.git``), ``ssh://`` and
    ``http(s)://`` forms. Returns None for anything else.
    """
    url = remote_url.strip()
    if not url:
        return None

    if "://" in url:
        parsed = urlparse(url)
        if parsed.scheme not in ("ssh", "git+ssh", "http", "https", "git"):
            return None
        return parsed.hostname.lower() if parsed.hostname else None

    # scp-like syntax: [user@]host:path
    match = re.match(r"^(?:[^@/]+@)?([^:/]+):", url)
    if match:
        return match.group(1).lower()
    return None


def provider_for_host(hostname: Optional[str]) -> Provider:
    if not hostname:
        return Provider.UNKNOWN
    if hostname == "github.com":
        return Provider.GITHUB
    if hostname == "gitlab.com" or _GITLAB_HOST.match(hostname):
        return Provider.GITLAB
    return Provider.UNKNOWN


class RepositoryInspector:
    """Queries about the repository. Never mutates anything.

    Failing queries are logged and turned into empty/default results; an
    empty worktree list means "nothing found", not an error.
    """

    def __init__(self, repo_path: str, runner: Optional[GitRunner] = None):
        self.repo_path = os.path.abspath(repo_path)
        self.runner = runner or GitRunner(self.repo_path)

    def list_worktrees(self) -> List[WorktreeRecord]:
        """Get detailed information about all worktrees."""
        output = self.runner.output("worktree", "list", "--porcelain")
        if not output:
            logger.debug("Could not list worktrees (not a repository or no output)")
            return []

        worktrees = parse_worktree_porcelain(output)
        logger.debug(f"Found {len(worktrees)} worktrees")
        for wt in worktrees:
            logger.debug(f"  {wt}")
        return worktrees

    def main_worktree(self) -> Optional[WorktreeRecord]:
        return next((wt for wt in self.list_worktrees() if wt.is_main), None)

    def find_by_branch(self, branch: str) -> Optional[WorktreeRecord]:
        return next((wt for wt in self.list_worktrees() if wt.branch == branch), None)

    def find_by_path(self, target_path: str) -> Optional[WorktreeRecord]:
        """Find a worktree whose real path equals the real path of target_path."""
        resolved_target = os.path.realpath(os.path.abspath(target_path))
        for wt in self.list_worktrees():
            if os.path.realpath(wt.path) == resolved_target:
                return wt
        return None

    def is_clean(self, path: Optional[str] = None) -> bool:
        """True when ``git status --porcelain`` reports nothing.

        A failing status query counts as not clean.
        """
        result = self.runner.run("status", "--porcelain", cwd=path, check=False)
        if not result.ok:
            logger.warning(f"Failed to check git status for {path or self.repo_path}: {result.stderr}")
            return False
        return not result.stdout.strip()

    def is_bare(self) -> bool:
        """Whether the repository (its common git dir) has core.bare set."""
        common_dir = self.runner.output("rev-parse", "--git-common-dir")
        if not common_dir:
            return False
        if not os.path.isabs(common_dir):
            common_dir = os.path.join(self.repo_path, common_dir)
        value = self.runner.output("config", "--get", "--bool", "core.bare", cwd=common_dir)
        return value == "true"

    def repo_root(self) -> Optional[str]:
        return self.runner.output("rev-parse", "--show-toplevel")

    def current_branch(self, path: Optional[str] = None) -> Optional[str]:
        branch = self.runner.output("rev-parse", "--abbrev-ref", "HEAD", cwd=path)
        if not branch or branch == "HEAD":
            return None
        return branch

    def local_branches(self) -> List[str]:
        """Get the list of local branch names (short form)."""
        output = self.runner.output("branch", "--format=%(refname:short)")
        if not output:
            return []
        return [line.strip() for line in output.splitlines() if line.strip()]

    def branch_exists(self, branch: str) -> bool:
        result = self.runner.run(
            "rev-parse", "--verify", "--quiet", f"{HEADS_PREFIX}{branch}", check=False
        )
        return result.ok

    def remotes(self) -> List[str]:
        output = self.runner.output("remote")
        if not output:
            return []
        return [line.strip() for line in output.splitlines() if line.strip()]

    def upstream_remote(self) -> str:
        """Determine the upstream remote name.

        1. The remote tracked by main, then master
        2. origin, then upstream
        3. The first configured remote
        4. origin when nothing is configured
        """
        for branch in PRIMARY_BRANCH_CANDIDATES:
            tracking = self.runner.output("rev-parse", "--abbrev-ref", f"{branch}@{{upstream}}")
            if tracking and "/" in tracking:
                remote = tracking.split("/", 1)[0]
                logger.debug(f"Upstream remote from {branch} tracking: {remote}")
                return remote

        remotes = self.remotes()
        if not remotes:
            return FALLBACK_REMOTE
        for preferred in PREFERRED_REMOTES:
            if preferred in remotes:
                return preferred
        return remotes[0]

    def remote_url(self, remote: Optional[str] = None) -> Optional[str]:
        return self.runner.output("remote", "get-url", remote or self.upstream_remote())

    def detect_provider(self) -> Provider:
        """Classify the upstream remote's host as GitHub, GitLab or unknown."""
        remote_url = self.remote_url()
        if not remote_url:
            return Provider.UNKNOWN
        provider = provider_for_host(remote_hostname(remote_url))
        logger.debug(f"Detected provider {provider.value} for {remote_url}")
        return provider

    def repo_name(self) -> str:
        """Repository name from the remote URL, else the main worktree directory."""
        remote_url = self.remote_url()
        if remote_url:
            match = re.search(r"[/:]([^/:]+?)(?:\.git)?/?$", remote_url)
            if match and match.group(1):
                return match.group(1)

        main = self.main_worktree()
        root = main.path if main else self.repo_root()
        if root:
            name = os.path.basename(os.path.normpath(root))
            if name.endswith(".git") and len(name) > len(".git"):
                name = name[: -len(".git")]
            return name
        return FALLBACK_REPO_NAME
