"""Pytest fixtures for git-worktree-keeper tests"""
import tempfile
from pathlib import Path

import git
import pytest

from git_worktree_keeper.config import Config


class FakePrompter:
    """Prompter with scripted answers.

    confirms: answers handed out by confirm() in order (default used once empty)
    choices: answers handed out by choose() in order
    selections: one entry per select_* call; a list of branch names to pick,
        or None to cancel
    """

    def __init__(self, interactive=True, confirms=None, choices=None, selections=None):
        self.interactive = interactive
        self.confirms = list(confirms or [])
        self.choices = list(choices or [])
        self.selections = list(selections or [])
        self.asked = []
        self.offered = []

    def confirm(self, message, default=False):
        self.asked.append(message)
        if not self.interactive or not self.confirms:
            return default
        return self.confirms.pop(0)

    def choose(self, message, choices, default):
        self.asked.append(message)
        if not self.interactive or not self.choices:
            return default
        return self.choices.pop(0)

    def select_worktrees(self, worktrees, message, multi=False):
        self.offered = list(worktrees)
        if not self.selections:
            return None
        branches = self.selections.pop(0)
        if branches is None:
            return None
        return [wt for wt in worktrees if wt.branch in branches] or None

    def select_pull_request(self, pull_requests, message):
        self.offered = list(pull_requests)
        if not self.selections:
            return None
        number = self.selections.pop(0)
        return next((pr for pr in pull_requests if pr.number == number), None)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from the user's config file and editor."""
    config_file = tmp_path / "wt-config" / "config.json"
    monkeypatch.setenv("GIT_WORKTREE_KEEPER_CONFIG", str(config_file))
    monkeypatch.delenv("EDITOR", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    return config_file


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        # Resolved so paths compare equal to what git reports (macOS /var -> /private/var)
        yield Path(tmpdir).resolve()


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository for testing."""
    repo_path = temp_dir / "test-repo"
    repo_path.mkdir()

    # Initialize repository
    repo = git.Repo.init(repo_path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    # Create initial commit on main branch
    test_file = repo_path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    repo.git.branch("-M", "main")

    # Add a fake GitHub remote for testing
    repo.create_remote("origin", "git@github.com:test/test-repo.git")

    yield repo

    # Cleanup
    repo.close()


@pytest.fixture
def repo_path(git_repo):
    return git_repo.working_dir


@pytest.fixture
def feature_worktree(git_repo, temp_dir):
    """A linked worktree for feature/x with one commit of its own."""
    path = temp_dir / "test-repo-feature-x"
    git_repo.git.worktree("add", "-b", "feature/x", str(path))
    (path / "feature.txt").write_text("Feature content\n")
    wt_repo = git.Repo(path)
    wt_repo.index.add(["feature.txt"])
    wt_repo.index.commit("Add feature")
    wt_repo.close()
    return path


@pytest.fixture
def prompter():
    return FakePrompter()


@pytest.fixture
def config():
    """Config that never launches an editor."""
    return Config(interactive=False, editor="none")
