"""Tests for dependency install, editor launch and shell spawning"""

import subprocess
from unittest.mock import patch

import pytest

from git_worktree_keeper.exceptions import EditorLaunchFailed, InstallFailed
from git_worktree_keeper.services.launchers import (
    choose_editor,
    install_dependencies,
    open_editor,
    spawn_shell,
)


def _completed(returncode):
    return subprocess.CompletedProcess(args=[], returncode=returncode)


class TestChooseEditor:
    """Test editor precedence."""

    def test_request_wins(self, monkeypatch):
        monkeypatch.setenv("EDITOR", "nano")
        assert choose_editor("vim", "emacs") == "vim"

    def test_config_then_environment_then_default(self, monkeypatch):
        assert choose_editor(None, "emacs") == "emacs"
        monkeypatch.setenv("EDITOR", "nano")
        assert choose_editor(None, None) == "nano"
        monkeypatch.delenv("EDITOR")
        assert choose_editor(None, None) == "code"

    def test_skip_sentinel(self):
        assert choose_editor(None, "none") is None
        assert choose_editor("None", "vim") is None


class TestInstallDependencies:
    """Test the install step."""

    def test_success(self, temp_dir):
        with patch("subprocess.run", return_value=_completed(0)) as run:
            install_dependencies("pnpm", str(temp_dir))
        run.assert_called_once_with(["pnpm", "install"], cwd=str(temp_dir), check=False)

    def test_non_zero_exit(self, temp_dir):
        with patch("subprocess.run", return_value=_completed(2)):
            with pytest.raises(InstallFailed, match="exit code 2"):
                install_dependencies("npm", str(temp_dir))

    def test_missing_tool(self, temp_dir):
        with pytest.raises(InstallFailed):
            install_dependencies("no-such-package-manager-xyz", str(temp_dir))


class TestOpenEditor:
    """Test the editor launch."""

    def test_arguments_are_split(self, temp_dir):
        with patch("subprocess.run", return_value=_completed(0)) as run:
            open_editor("code --new-window", str(temp_dir))
        assert run.call_args[0][0] == ["code", "--new-window", str(temp_dir)]

    def test_missing_editor(self, temp_dir):
        with pytest.raises(EditorLaunchFailed):
            open_editor("no-such-editor-xyz", str(temp_dir))


class TestSpawnShell:
    """Test the cd subshell."""

    def test_exit_status(self, temp_dir, monkeypatch):
        monkeypatch.setenv("SHELL", "/bin/zsh")
        with patch("subprocess.run", return_value=_completed(3)) as run:
            assert spawn_shell(str(temp_dir)) == 3
        run.assert_called_once_with(["/bin/zsh"], cwd=str(temp_dir), check=False)

    def test_killed_by_signal(self, temp_dir):
        with patch("subprocess.run", return_value=_completed(-15)):
            assert spawn_shell(str(temp_dir)) == 143
