"""Pull/merge request lookups for GitHub and GitLab."""

import json
import subprocess
from typing import List, Optional, TYPE_CHECKING
from urllib.parse import urlparse

from github import Auth, Github
from github.GithubException import GithubException

from git_worktree_keeper.exceptions import ProviderError, ProviderNotConfiguredError
from git_worktree_keeper.models.requests import Provider, PullRequestInfo
from git_worktree_keeper.logging_config import get_logger

if TYPE_CHECKING:
    from github.Repository import Repository

logger = get_logger(__name__)


def repo_slug_from_url(remote_url: str) -> str:
    """Turn a remote URL into an ``owner/repo`` (or ``group/sub/repo``) path."""
    url = remote_url.strip()
    if "://" in url:
        path = urlparse(url).path.strip("/")
    elif ":" in url:
        # Handle SSH URL format (git@github.com:org/repo.git)
        path = url.split(":", 1)[1].strip("/")
    else:
        path = url.strip("/")

    if path.endswith(".git"):
        path = path[:-4]
    return path


class GitHubProvider:
    """GitHub pull requests through the REST API (PyGithub)."""

    name = "GitHub"
    ref_template = "pull/{number}/head"

    def __init__(self, remote_url: str, token: Optional[str] = None):
        self.github_repo = repo_slug_from_url(remote_url)
        self.github_token = token
        self.github: Optional[Github] = None
        self.gh_repo: Optional["Repository"] = None

    def _repo(self) -> "Repository":
        if self.gh_repo is None:
            auth = Auth.Token(self.github_token) if self.github_token else None
            self.github = Github(auth=auth)
            try:
                self.gh_repo = self.github.get_repo(self.github_repo)
            except GithubException as e:
                raise ProviderError(self.name, "get_repo", f"{self.github_repo}: {e}") from e
            logger.debug(f"[GitHub] Using repository {self.github_repo}")
        return self.gh_repo

    def source_branch(self, number: int) -> str:
        """Head branch name of pull request number."""
        try:
            pr = self._repo().get_pull(number)
        except GithubException as e:
            raise ProviderError(self.name, "get_pull", f"#{number}: {e}") from e
        logger.debug(f"[GitHub] PR #{number} head is {pr.head.ref}")
        return pr.head.ref

    def list_open(self) -> List[PullRequestInfo]:
        try:
            pulls = self._repo().get_pulls(state="open")
            return [
                PullRequestInfo(
                    number=pr.number,
                    title=pr.title,
                    author=pr.user.login if pr.user else "",
                    source_branch=pr.head.ref,
                )
                for pr in pulls
            ]
        except GithubException as e:
            raise ProviderError(self.name, "get_pulls", str(e)) from e

    def close(self) -> None:
        """Close the GitHub API connection to clean up resources."""
        if self.github:
            self.github.close()


class GitLabProvider:
    """GitLab merge requests through the glab CLI."""

    name = "GitLab"
    ref_template = "merge-requests/{number}/head"

    def __init__(self, cwd: str):
        self.cwd = cwd

    def _glab(self, *args: str):
        command = ["glab", *args]
        logger.debug(f"Running {' '.join(command)}")
        try:
            result = subprocess.run(
                command, cwd=self.cwd, capture_output=True, text=True, check=False
            )
        except FileNotFoundError as e:
            raise ProviderError(self.name, args[0], "glab is not installed") from e
        if result.returncode != 0:
            raise ProviderError(self.name, " ".join(args[:2]), result.stderr.strip())
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ProviderError(self.name, " ".join(args[:2]), f"unexpected output: {e}") from e

    def source_branch(self, number: int) -> str:
        data = self._glab("mr", "view", str(number), "--output", "json")
        branch = data.get("source_branch")
        if not branch:
            raise ProviderError(self.name, "mr view", f"!{number} has no source branch")
        return branch

    def list_open(self) -> List[PullRequestInfo]:
        data = self._glab("mr", "list", "--output", "json")
        return [
            PullRequestInfo(
                number=mr["iid"],
                title=mr.get("title", ""),
                author=(mr.get("author") or {}).get("username", ""),
                source_branch=mr.get("source_branch", ""),
            )
            for mr in data
        ]

    def close(self) -> None:
        pass


def get_provider(
    provider: Provider, remote_url: Optional[str], cwd: str, github_token: Optional[str] = None
):
    """Build the client for provider.

    Raises:
        ProviderNotConfiguredError: provider is unknown
    """
    if provider is Provider.GITHUB:
        if not remote_url:
            raise ProviderNotConfiguredError()
        return GitHubProvider(remote_url, token=github_token)
    if provider is Provider.GITLAB:
        return GitLabProvider(cwd)
    raise ProviderNotConfiguredError(remote_url)
