"""Tests for the wt command-line interface"""

import shutil
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import FakePrompter
from git_worktree_keeper.cli.args import parse_args
from git_worktree_keeper.cli.main import main
from git_worktree_keeper.services.git import RepositoryInspector


@pytest.fixture
def in_repo(git_repo, monkeypatch):
    monkeypatch.chdir(git_repo.working_dir)
    return git_repo


def run(*argv, prompter=None):
    return main(list(argv), prompter=prompter or FakePrompter(interactive=False))


class TestArgumentParsing:
    """Test the argparse layout."""

    def test_aliases(self):
        assert parse_args(["ls"]).command == "ls"
        assert parse_args(["rm", "feature/x", "--force"]).force is True

    def test_new_options(self):
        args = parse_args(["new", "feature/a", "-b", "--install", "bun", "--on-dirty", "stash"])
        assert args.branch == "feature/a"
        assert args.new_branch is True
        assert args.install == "bun"
        assert args.on_dirty == "stash"

    def test_pr_number_optional(self):
        assert parse_args(["pr"]).number is None
        assert parse_args(["pr", "12"]).number == 12

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestNewCommand:
    """Test `wt new`."""

    def test_creates_worktree(self, in_repo, temp_dir):
        assert run("new", "feature/login", "--editor", "none") == 0

        expected = temp_dir / "test-repo-feature-login"
        assert expected.is_dir()
        record = RepositoryInspector(in_repo.working_dir).find_by_branch("feature/login")
        assert record.path == str(expected)

    def test_dirty_main_aborts_quietly(self, in_repo, temp_dir, capsys):
        (Path(in_repo.working_dir) / "README.md").write_text("dirty\n")

        assert run("new", "feature/a", "--editor", "none") == 0

        assert "Aborted" in capsys.readouterr().out
        assert not (temp_dir / "test-repo-feature-a").exists()

    def test_collision_is_an_error(self, in_repo, temp_dir, capsys):
        (temp_dir / "test-repo-taken").mkdir()
        assert run("new", "taken", "--editor", "none") == 1
        assert "--path" in capsys.readouterr().out

    def test_setup_command_runs_scripts(self, in_repo, temp_dir):
        with patch("git_worktree_keeper.core.creation.run_setup_scripts", return_value=[]) as setup:
            with patch("git_worktree_keeper.core.creation.load_setup_scripts") as load:
                assert run("setup", "feature/s", "--editor", "none") == 0
        load.assert_called()
        setup.assert_called_once()


class TestListAndNavigation:
    """Test `wt list`, `wt cd` and `wt open`."""

    def test_list_paths(self, in_repo, feature_worktree, capsys):
        assert run("list", "--paths") == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines == [in_repo.working_dir, str(feature_worktree)]

    def test_list_table(self, in_repo, feature_worktree, capsys):
        assert run("ls") == 0
        assert "main" in capsys.readouterr().out

    def test_cd_print(self, in_repo, feature_worktree, capsys):
        assert run("cd", "feature/x", "--print") == 0
        assert capsys.readouterr().out.strip() == str(feature_worktree)

    def test_cd_spawns_shell(self, in_repo, feature_worktree):
        with patch("git_worktree_keeper.cli.main.spawn_shell", return_value=0) as shell:
            assert run("cd", "feature/x") == 0
        shell.assert_called_once_with(str(feature_worktree))

    def test_cd_to_deleted_worktree(self, in_repo, feature_worktree, capsys):
        shutil.rmtree(feature_worktree)
        assert run("cd", "feature/x", "--print") == 1
        assert "git worktree prune" in capsys.readouterr().out

    def test_cd_without_selection(self, in_repo, feature_worktree, capsys):
        assert run("cd", "--print") == 0
        assert "No worktree selected" in capsys.readouterr().out

    def test_unknown_worktree(self, in_repo, capsys):
        assert run("cd", "nowhere") == 1
        assert "wt list" in capsys.readouterr().out

    def test_open_uses_editor(self, in_repo, feature_worktree):
        with patch("git_worktree_keeper.cli.main.open_editor") as editor:
            assert run("open", "feature/x", "--editor", "vim") == 0
        editor.assert_called_once_with("vim", str(feature_worktree))


class TestRemoveAndMerge:
    """Test `wt remove`, `wt purge` and `wt merge`."""

    def test_remove(self, in_repo, feature_worktree):
        assert run("remove", "feature/x") == 0
        assert not feature_worktree.exists()

    def test_remove_main_fails(self, in_repo):
        assert run("rm", in_repo.working_dir, "--force") == 1
        assert Path(in_repo.working_dir).is_dir()

    def test_purge_with_failure_exits_non_zero(self, in_repo, feature_worktree):
        in_repo.git.worktree("lock", str(feature_worktree))
        prompter = FakePrompter(interactive=False, selections=[["feature/x"]])
        assert run("purge", prompter=prompter) == 1
        assert feature_worktree.exists()

    def test_merge_dirty_target(self, in_repo, feature_worktree, capsys):
        (Path(in_repo.working_dir) / "README.md").write_text("dirty\n")
        assert run("merge", "feature/x") == 1
        assert "--auto-commit" in capsys.readouterr().out

    def test_merge_and_remove(self, in_repo, feature_worktree):
        assert run("merge", "feature/x", "--remove") == 0
        assert not feature_worktree.exists()
        assert (Path(in_repo.working_dir) / "feature.txt").exists()


class TestConfigCommand:
    """Test `wt config`."""

    def test_set_and_get(self, capsys):
        assert run("config", "set", "editor", "vim") == 0
        capsys.readouterr()
        assert run("config", "get", "editor") == 0
        assert capsys.readouterr().out.strip() == "vim"

    def test_get_unset_value(self):
        assert run("config", "get", "provider") == 1

    def test_invalid_value(self, capsys):
        assert run("config", "set", "provider", "svn") == 1
        assert "provider" in capsys.readouterr().out

    def test_path(self, isolated_config, capsys):
        assert run("config", "path") == 0
        assert capsys.readouterr().out.strip() == str(isolated_config)


class TestErrorHandling:
    """Test exit codes for failures outside a repository."""

    def test_outside_repository(self, temp_dir, monkeypatch, capsys):
        monkeypatch.chdir(temp_dir)
        assert run("list") == 1
        assert "Not inside a git repository" in capsys.readouterr().out

    def test_keyboard_interrupt(self, in_repo):
        def interrupted(args, ctx):
            raise KeyboardInterrupt

        with patch.dict("git_worktree_keeper.cli.main.COMMANDS", {"list": interrupted}):
            assert run("list") == 130
