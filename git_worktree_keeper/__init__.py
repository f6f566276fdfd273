"""
git-worktree-keeper - Create, switch, merge and clean up git worktrees
"""

from .__version__ import __version__
from .cli.main import main

__all__ = ["main", "__version__"]
