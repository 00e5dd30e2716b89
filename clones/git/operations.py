# clones Git Operations
# Git command execution for status, clone and update

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from clones.errors import ClonesError


class GitError(ClonesError):
    """Exception raised for git operation errors."""

    def __init__(self, message: str, returncode: int = 1, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)

    def __str__(self) -> str:
        if self.stderr:
            return f"{self.message}: {self.stderr}"
        return self.message


@dataclass(frozen=True)
class RepoStatus:
    """On-disk status of a checkout, computed fresh on every run."""

    exists: bool
    is_git_repo: bool = False
    current_branch: Optional[str] = None
    is_detached: bool = False
    tracking: Optional[str] = None
    ahead: int = 0
    behind: int = 0
    is_dirty: bool = False


MISSING = RepoStatus(exists=False)
NOT_A_REPO = RepoStatus(exists=True)


def _git_env() -> dict[str, str]:
    env = dict(os.environ)
    # Never block a worker thread on a credential prompt
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env


def _run_git(
    *args: str,
    cwd: Optional[Path] = None,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    """
    Run a git command.

    Args:
        *args: Git command arguments.
        cwd: Working directory.
        check: Whether to raise on non-zero exit.

    Returns:
        CompletedProcess with result.

    Raises:
        GitError: If command fails and check is True.
    """
    cmd = ["git", *args]
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            check=False,
            capture_output=True,
            text=True,
            env=_git_env(),
        )
    except FileNotFoundError:
        raise GitError("git command not found. Is git installed?")

    if check and result.returncode != 0:
        raise GitError(
            f"Git command failed: {' '.join(cmd)}",
            returncode=result.returncode,
            stderr=result.stderr.strip() if result.stderr else "",
        )
    return result


def has_git_metadata(path: Path) -> bool:
    """Check for a .git directory or pointer file."""
    return (path / ".git").exists()


def parse_porcelain_status(output: str) -> RepoStatus:
    """
    Parse ``git status --porcelain=v2 --branch`` output.

    Args:
        output: Raw command output.

    Returns:
        RepoStatus for an existing repository.
    """
    current_branch: Optional[str] = None
    is_detached = False
    tracking: Optional[str] = None
    ahead = 0
    behind = 0
    is_dirty = False

    for line in output.splitlines():
        if not line:
            continue
        if not line.startswith("#"):
            is_dirty = True
            continue

        parts = line.split()
        if len(parts) < 3:
            continue
        header, value = parts[1], parts[2]

        if header == "branch.head":
            if value == "(detached)":
                is_detached = True
            else:
                current_branch = value
        elif header == "branch.upstream":
            tracking = value
        elif header == "branch.ab" and len(parts) >= 4:
            ahead = abs(int(parts[2]))
            behind = abs(int(parts[3]))

    return RepoStatus(
        exists=True,
        is_git_repo=True,
        current_branch=current_branch,
        is_detached=is_detached,
        tracking=tracking,
        ahead=ahead,
        behind=behind,
        is_dirty=is_dirty,
    )


def get_repo_status(path: Path) -> RepoStatus:
    """
    Get the status of a local checkout.

    Never raises: a missing path, a plain directory and a corrupted
    repository are all reported through the returned status.

    Args:
        path: Checkout path.

    Returns:
        RepoStatus.
    """
    if not path.exists():
        return MISSING

    if not path.is_dir() or not has_git_metadata(path):
        return NOT_A_REPO

    try:
        result = _run_git("status", "--porcelain=v2", "--branch", cwd=path)
        return parse_porcelain_status(result.stdout)
    except (GitError, ValueError, OSError):
        # Corrupted repository
        return NOT_A_REPO


def get_remote_url(path: Path, remote: str = "origin") -> Optional[str]:
    """
    Get the fetch URL of a remote.

    Args:
        path: Repository path.
        remote: Remote name.

    Returns:
        URL, or None if the remote isn't configured.
    """
    if not path.is_dir():
        return None

    try:
        result = _run_git("remote", "get-url", remote, cwd=path, check=False)
    except GitError:
        return None

    if result.returncode != 0:
        return None
    url = result.stdout.strip()
    return url or None


def clone_repo(url: str, dest: Path, *, remote: str = "origin") -> None:
    """
    Clone a repository.

    Args:
        url: Repository URL.
        dest: Destination directory (parents are created by git).
        remote: Name to give the cloned remote.

    Raises:
        GitError: If the clone fails.
    """
    _run_git("clone", "--origin", remote, "--", url, str(dest))


def fetch_pruned(path: Path, remote: str = "origin") -> None:
    """
    Fetch from a remote, pruning deleted remote branches.

    Raises:
        GitError: If the fetch fails.
    """
    _run_git("fetch", "--prune", remote, cwd=path)


def get_head(path: Path) -> Optional[str]:
    """Get the current HEAD commit hash, or None for an empty repository."""
    try:
        result = _run_git("rev-parse", "--verify", "HEAD", cwd=path)
    except GitError:
        return None
    return result.stdout.strip() or None


def count_commits(path: Path, before: Optional[str], after: Optional[str]) -> int:
    """
    Count commits that moved HEAD from ``before`` to ``after``.

    Returns:
        Number of commits, 0 if HEAD didn't move, -1 if it can't be
        determined (e.g. rewritten history).
    """
    if not before or not after or before == after:
        return 0

    try:
        result = _run_git("rev-list", "--count", f"{before}..{after}", cwd=path)
        return int(result.stdout.strip())
    except (GitError, ValueError):
        return -1


def reset_to_upstream(path: Path) -> int:
    """
    Hard-reset the current branch to its upstream.

    Returns:
        Commits pulled in, or -1 if unknown.

    Raises:
        GitError: If the reset fails.
    """
    before = get_head(path)
    _run_git("reset", "--hard", "@{u}", cwd=path)
    return count_commits(path, before, get_head(path))


def fast_forward_pull(path: Path) -> int:
    """
    Pull with fast-forward only.

    Returns:
        Commits pulled in, or -1 if unknown.

    Raises:
        GitError: If the pull fails (e.g. the branches diverged).
    """
    before = get_head(path)
    _run_git("pull", "--ff-only", cwd=path)
    return count_commits(path, before, get_head(path))


def update_submodules(path: Path) -> None:
    """
    Initialize and update submodules recursively.

    Raises:
        GitError: If the update fails.
    """
    _run_git("submodule", "update", "--init", "--recursive", cwd=path)


def uses_lfs(path: Path) -> bool:
    """Check whether .gitattributes routes any path through LFS."""
    gitattributes = path / ".gitattributes"
    if not gitattributes.is_file():
        return False

    try:
        return "filter=lfs" in gitattributes.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return False


def pull_lfs(path: Path, remote: str = "origin") -> None:
    """
    Fetch and check out LFS objects.

    Raises:
        GitError: If git-lfs fails or isn't installed.
    """
    _run_git("lfs", "pull", remote, cwd=path)
