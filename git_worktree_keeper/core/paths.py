"""Where new worktrees go."""

import os
import re
from typing import Optional

_SEPARATORS = re.compile(r"[\\/]+")


def sanitize_branch_name(branch: str) -> str:
    """Flatten a branch name into one directory name.

    Path separators become dashes, so ``feature/auth`` and ``hotfix/auth``
    stay distinct (``feature-auth`` and ``hotfix-auth``).
    """
    return _SEPARATORS.sub("-", branch.strip()).strip("-")


def compute_worktree_path(
    branch: str,
    repo_name: str,
    main_path: str,
    explicit_path: Optional[str] = None,
    global_dir: Optional[str] = None,
) -> str:
    """Absolute path for a new worktree of branch.

    Order: explicit path, ``<global_dir>/<repo>/<branch>``, then the sibling
    directory ``<repo>-<branch>`` next to the main worktree.
    """
    if explicit_path:
        return os.path.abspath(os.path.expanduser(explicit_path))

    name = sanitize_branch_name(branch)
    if global_dir:
        return os.path.join(os.path.abspath(os.path.expanduser(global_dir)), repo_name, name)

    parent = os.path.dirname(os.path.abspath(main_path).rstrip(os.sep))
    return os.path.join(parent, f"{repo_name}-{name}")
