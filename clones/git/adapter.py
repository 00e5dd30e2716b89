# clones VCS Adapter
# Boundary between the sync orchestrator and the version-control tool

from pathlib import Path
from typing import Optional, Protocol

from clones.git import operations
from clones.git.operations import RepoStatus


class VcsAdapter(Protocol):
    """Operations the orchestrator needs from a version-control tool."""

    def status(self, path: Path) -> RepoStatus: ...

    def get_remote_url(self, path: Path, remote: str = "origin") -> Optional[str]: ...

    def clone(self, url: str, dest: Path, *, remote: str = "origin") -> None: ...

    def fetch_pruned(self, path: Path, remote: str = "origin") -> None: ...

    def reset_to_upstream(self, path: Path) -> int: ...

    def fast_forward_pull(self, path: Path) -> int: ...

    def update_submodules(self, path: Path) -> None: ...

    def uses_lfs(self, path: Path) -> bool: ...

    def pull_lfs(self, path: Path, remote: str = "origin") -> None: ...


class GitAdapter:
    """VcsAdapter backed by the git command line."""

    def status(self, path: Path) -> RepoStatus:
        return operations.get_repo_status(path)

    def get_remote_url(self, path: Path, remote: str = "origin") -> Optional[str]:
        return operations.get_remote_url(path, remote)

    def clone(self, url: str, dest: Path, *, remote: str = "origin") -> None:
        operations.clone_repo(url, dest, remote=remote)

    def fetch_pruned(self, path: Path, remote: str = "origin") -> None:
        operations.fetch_pruned(path, remote)

    def reset_to_upstream(self, path: Path) -> int:
        return operations.reset_to_upstream(path)

    def fast_forward_pull(self, path: Path) -> int:
        return operations.fast_forward_pull(path)

    def update_submodules(self, path: Path) -> None:
        operations.update_submodules(path)

    def uses_lfs(self, path: Path) -> bool:
        return operations.uses_lfs(path)

    def pull_lfs(self, path: Path, remote: str = "origin") -> None:
        operations.pull_lfs(path, remote)
