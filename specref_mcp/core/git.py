"""Git command execution and current-branch lookup."""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Protocol

from ..constants import DEFAULT_BRANCH

logger = logging.getLogger(__name__)


def run_git_command(cwd: Path, *args, check_git_available: bool = True) -> str | None:
    """Run a git command and return output.

    Args:
        cwd: Working directory for git command
        *args: Git command arguments (e.g., "rev-parse", "HEAD")
        check_git_available: Whether to check git binary availability first

    Returns:
        Command output if successful, None otherwise

    Raises:
        RuntimeError: If git binary is not found
    """
    if check_git_available and shutil.which('git') is None:
        raise RuntimeError(
            "Git is required but not found. Please install git and ensure it's in your PATH. "
            "Visit https://git-scm.com/downloads for installation instructions."
        )

    try:
        result = subprocess.run(
            ["git", *args],  # Array form, no shell
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=30
        )
        return result.stdout.strip() if result.returncode == 0 else None
    except FileNotFoundError as err:
        raise RuntimeError("Git is required but not found. Please install git.") from err


class BranchProvider(Protocol):
    """Source of the current source-control branch name."""

    def current_branch(self) -> str:
        ...


class StaticBranchProvider:
    """Branch provider that always answers the same branch."""

    def __init__(self, branch: str = DEFAULT_BRANCH):
        self.branch = branch

    def current_branch(self) -> str:
        return self.branch


class GitBranchProvider:
    """Reads the checked-out branch of a working tree.

    Never raises: every failure is logged and answered with ``fallback``.
    """

    def __init__(self, project_path: Path, fallback: str = DEFAULT_BRANCH):
        self.project_path = project_path
        self.fallback = fallback

    def current_branch(self) -> str:
        try:
            branch = run_git_command(self.project_path, "rev-parse", "--abbrev-ref", "HEAD")
        except (RuntimeError, OSError, subprocess.SubprocessError) as e:
            logger.warning("Could not determine current branch (%s); using '%s'", e, self.fallback)
            return self.fallback

        # Detached HEAD reports the literal "HEAD"
        if not branch or branch == "HEAD":
            logger.warning(
                "Could not determine current branch in %s; using '%s'",
                self.project_path, self.fallback
            )
            return self.fallback
        return branch
