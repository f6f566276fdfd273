"""Tests for the worktree creation pipeline"""

import json
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from conftest import FakePrompter
from git_worktree_keeper.config import Config
from git_worktree_keeper.core.creation import CreationPipeline, CreationStage
from git_worktree_keeper.exceptions import (
    DirtyMainAborted,
    GitCreateFailed,
    InstallFailed,
    PathCollisionError,
    ProviderNotConfiguredError,
)
from git_worktree_keeper.models.requests import CreationRequest, DirtyChoice, Provider
from git_worktree_keeper.services.git import RepositoryInspector


@pytest.fixture
def pipeline(repo_path, config, prompter):
    return CreationPipeline(repo_path, config, prompter)


def _failing_install(tool, cwd):
    raise InstallFailed(tool, status=1)


class TestNewWorktree:
    """Test the happy path."""

    def test_creates_sibling_worktree(self, git_repo, pipeline, temp_dir):
        result = pipeline.create(CreationRequest(branch="feature/login"))

        expected = temp_dir / "test-repo-feature-login"
        assert result.record.path == str(expected)
        assert result.record.branch == "feature/login"
        assert result.stage is CreationStage.DONE
        assert expected.is_dir()

        worktrees = RepositoryInspector(git_repo.working_dir).list_worktrees()
        created = [wt for wt in worktrees if not wt.is_main]
        assert len(created) == 1
        assert created[0].branch == "feature/login"
        assert created[0].path == str(expected)

    def test_existing_branch_is_checked_out(self, git_repo, pipeline):
        git_repo.git.branch("existing")
        result = pipeline.create(CreationRequest(branch="existing"))
        assert result.record.branch == "existing"

    def test_new_branch_required_but_exists(self, git_repo, pipeline, temp_dir):
        git_repo.git.branch("existing")
        with pytest.raises(GitCreateFailed):
            pipeline.create(CreationRequest(branch="existing", checkout_new_branch=True))
        assert not (temp_dir / "test-repo-existing").exists()

    def test_explicit_path(self, pipeline, temp_dir):
        target = temp_dir / "custom" / "place"
        result = pipeline.create(CreationRequest(branch="x", path=str(target)))
        assert result.record.path == str(target)
        assert target.is_dir()

    def test_global_worktree_directory(self, repo_path, prompter, temp_dir):
        config = Config(interactive=False, editor="none", worktree_path=str(temp_dir / "all"))
        result = CreationPipeline(repo_path, config, prompter).create(CreationRequest(branch="a/b"))
        assert result.record.path == str(temp_dir / "all" / "test-repo" / "a-b")

    def test_path_collision(self, pipeline, temp_dir):
        (temp_dir / "test-repo-taken").mkdir()
        with pytest.raises(PathCollisionError):
            pipeline.create(CreationRequest(branch="taken"))

    def test_branch_already_checked_out_elsewhere(self, git_repo, pipeline, temp_dir):
        with pytest.raises(GitCreateFailed):
            pipeline.create(CreationRequest(branch="main", path=str(temp_dir / "second-main")))
        assert not (temp_dir / "second-main").exists()


class TestRollback:
    """Test that mandatory stage failures undo the worktree."""

    def test_install_failure_removes_worktree_and_branch(self, git_repo, pipeline, temp_dir):
        with patch("git_worktree_keeper.core.creation.install_dependencies", side_effect=_failing_install):
            with pytest.raises(InstallFailed):
                pipeline.create(CreationRequest(branch="feature/broken", install="npm"))

        assert not (temp_dir / "test-repo-feature-broken").exists()
        inspector = RepositoryInspector(git_repo.working_dir)
        assert len(inspector.list_worktrees()) == 1
        assert not inspector.branch_exists("feature/broken")

    def test_install_failure_keeps_preexisting_branch(self, git_repo, pipeline):
        git_repo.git.branch("keep-me")
        with patch("git_worktree_keeper.core.creation.install_dependencies", side_effect=_failing_install):
            with pytest.raises(InstallFailed):
                pipeline.create(CreationRequest(branch="keep-me", install="npm"))

        assert RepositoryInspector(git_repo.working_dir).branch_exists("keep-me")

    def test_install_failure_restores_stash(self, git_repo, repo_path, config, temp_dir):
        readme = Path(repo_path) / "README.md"
        readme.write_text("# Work in progress\n")
        pipeline = CreationPipeline(repo_path, config, FakePrompter(interactive=False))

        with patch("git_worktree_keeper.core.creation.install_dependencies", side_effect=_failing_install):
            with pytest.raises(InstallFailed):
                pipeline.create(
                    CreationRequest(branch="feature/broken", install="npm", on_dirty=DirtyChoice.STASH)
                )

        assert not (temp_dir / "test-repo-feature-broken").exists()
        assert readme.read_text() == "# Work in progress\n"
        assert git_repo.git.stash("list") == ""

    def test_interrupt_during_install_rolls_back(self, git_repo, pipeline, temp_dir):
        with patch(
            "git_worktree_keeper.core.creation.install_dependencies", side_effect=KeyboardInterrupt
        ):
            with pytest.raises(KeyboardInterrupt):
                pipeline.create(CreationRequest(branch="feature/interrupted", install="npm"))

        assert not (temp_dir / "test-repo-feature-interrupted").exists()


class TestDirtySource:
    """Test handling of uncommitted changes in the current worktree."""

    def test_non_interactive_aborts_by_default(self, repo_path, config, temp_dir):
        (Path(repo_path) / "README.md").write_text("dirty\n")
        pipeline = CreationPipeline(repo_path, config, FakePrompter(interactive=False))

        with pytest.raises(DirtyMainAborted):
            pipeline.create(CreationRequest(branch="feature/a"))
        assert not (temp_dir / "test-repo-feature-a").exists()

    def test_stash_choice_restores_after_success(self, git_repo, repo_path, config):
        readme = Path(repo_path) / "README.md"
        readme.write_text("dirty\n")
        pipeline = CreationPipeline(repo_path, config, FakePrompter(choices=["stash"]))

        result = pipeline.create(CreationRequest(branch="feature/a"))

        assert result.stash is not None
        assert result.stash.consumed
        assert readme.read_text() == "dirty\n"
        # The new worktree starts from the committed state
        assert (Path(result.record.path) / "README.md").read_text() == "# Test Repository\n"

    def test_continue_choice_leaves_changes(self, repo_path, config):
        readme = Path(repo_path) / "README.md"
        readme.write_text("dirty\n")
        pipeline = CreationPipeline(repo_path, config, FakePrompter(interactive=False))

        result = pipeline.create(CreationRequest(branch="feature/a", on_dirty=DirtyChoice.CONTINUE))

        assert result.stash is None
        assert readme.read_text() == "dirty\n"


class TestOptionalStages:
    """Test setup scripts and editor launch, neither of which is fatal."""

    def test_setup_failures_do_not_abort(self, git_repo, repo_path, pipeline):
        wt_dir = Path(repo_path) / ".wt"
        wt_dir.mkdir()
        (wt_dir / "worktrees.json").write_text(json.dumps({
            "setup-worktree": [
                "false",
                'echo "$ROOT_WORKTREE_PATH" > root.txt',
            ]
        }))
        git_repo.index.add([".wt/worktrees.json"])
        git_repo.index.commit("Add setup commands")

        result = pipeline.create(CreationRequest(branch="feature/setup", run_setup=True))

        assert len(result.setup_failures) == 1
        assert result.setup_failures[0].command == "false"
        root_file = Path(result.record.path) / "root.txt"
        assert root_file.read_text().strip() == repo_path
        assert result.stage is CreationStage.DONE

    def test_setup_without_config_is_skipped(self, pipeline):
        result = pipeline.create(CreationRequest(branch="feature/nosetup", run_setup=True))
        assert result.setup_failures == []

    def test_editor_failure_keeps_worktree(self, repo_path, prompter):
        config = Config(interactive=False, editor="definitely-not-an-editor-xyz")
        result = CreationPipeline(repo_path, config, prompter).create(CreationRequest(branch="feature/ed"))

        assert result.editor_error is not None
        assert Path(result.record.path).is_dir()
        assert result.stage is CreationStage.DONE

    def test_editor_is_launched_with_path(self, pipeline):
        with patch("git_worktree_keeper.core.creation.open_editor") as mock_open:
            result = pipeline.create(CreationRequest(branch="feature/ed", editor="vim"))
        mock_open.assert_called_once_with("vim", result.record.path)

    def test_successful_install(self, pipeline):
        with patch("git_worktree_keeper.core.creation.install_dependencies") as mock_install:
            result = pipeline.create(CreationRequest(branch="feature/deps", install="pnpm"))
        mock_install.assert_called_once_with("pnpm", result.record.path)


class TestPullRequestSource:
    """Test creating worktrees from pull/merge requests."""

    def test_fetches_pull_request_branch(self, git_repo, repo_path, config, prompter, temp_dir):
        # A bare "remote" that carries the PR ref
        remote_dir = temp_dir / "remote.git"
        git_repo.git.clone("--bare", repo_path, str(remote_dir))
        git_repo.git.push(str(remote_dir), "main:refs/pull/7/head")
        git_repo.delete_remote("origin")
        git_repo.create_remote("origin", str(remote_dir))

        client = Mock()
        client.source_branch.return_value = "contrib/fix"
        client.ref_template = "pull/{number}/head"
        config = Config(interactive=False, editor="none", provider="gh")
        pipeline = CreationPipeline(repo_path, config, prompter)

        with patch("git_worktree_keeper.core.creation.get_provider", return_value=client) as factory:
            result = pipeline.create(CreationRequest(branch="", pr_number=7))

        assert factory.call_args[0][0] is Provider.GITHUB
        client.source_branch.assert_called_once_with(7)
        client.close.assert_called_once()
        assert result.record.branch == "contrib/fix"
        assert result.record.path == str(temp_dir / "remote-contrib-fix")
        assert RepositoryInspector(repo_path).current_branch() == "main"

    def test_unknown_provider(self, git_repo, repo_path, config, prompter):
        git_repo.delete_remote("origin")
        git_repo.create_remote("origin", "https://bitbucket.org/test/test-repo.git")
        with pytest.raises(ProviderNotConfiguredError):
            CreationPipeline(repo_path, config, prompter).create(CreationRequest(branch="", pr_number=1))
