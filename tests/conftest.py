# clones Test Fixtures
# Pytest fixtures for clones tests

import tempfile
import threading
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Optional

import pytest

from clones.git.operations import GitError, RepoStatus
from clones.registry import LocalStateStore, RegistryEntry, RegistryStore, parse_location

MUTATING_OPERATIONS = frozenset(
    {"clone", "fetch_pruned", "reset_to_upstream", "fast_forward_pull", "update_submodules", "pull_lfs"}
)

CLEAN = RepoStatus(exists=True, is_git_repo=True, current_branch="main", tracking="origin/main")


class FakeAdapter:
    """
    In-memory VcsAdapter.

    Status is derived from the real directory tree (missing, plain directory
    or checkout with a .git directory) unless overridden per path.
    """

    def __init__(self):
        self.calls: list[tuple[str, Path]] = []
        self.statuses: dict[Path, RepoStatus] = {}
        self.remotes: dict[Path, str] = {}
        self.commits: dict[Path, int] = {}
        self.failures: dict[tuple[str, Path], Exception] = {}
        self.lfs_paths: set[Path] = set()
        self.partial_clone = False
        self._lock = threading.Lock()

    def _record(self, operation: str, path: Path) -> None:
        with self._lock:
            self.calls.append((operation, path))
        failure = self.failures.get((operation, path))
        if failure is not None:
            raise failure

    def fail(self, operation: str, path: Path, message: str = "boom") -> None:
        """Make an operation on a path raise GitError."""
        self.failures[(operation, path)] = GitError(message, returncode=128, stderr=message)

    def called(self, operation: str) -> list[Path]:
        return [path for op, path in self.calls if op == operation]

    @property
    def mutating_calls(self) -> list[tuple[str, Path]]:
        return [call for call in self.calls if call[0] in MUTATING_OPERATIONS]

    def status(self, path: Path) -> RepoStatus:
        if path in self.statuses:
            return self.statuses[path]
        if not path.exists():
            return RepoStatus(exists=False)
        if not (path / ".git").exists():
            return RepoStatus(exists=True)
        return CLEAN

    def get_remote_url(self, path: Path, remote: str = "origin") -> Optional[str]:
        return self.remotes.get(path)

    def clone(self, url: str, dest: Path, *, remote: str = "origin") -> None:
        if ("clone", dest) in self.failures and self.partial_clone:
            # Simulate git creating directories before failing
            (dest / ".git").mkdir(parents=True, exist_ok=True)
        self._record("clone", dest)
        (dest / ".git").mkdir(parents=True, exist_ok=True)

    def fetch_pruned(self, path: Path, remote: str = "origin") -> None:
        self._record("fetch_pruned", path)

    def reset_to_upstream(self, path: Path) -> int:
        self._record("reset_to_upstream", path)
        return self.commits.get(path, 0)

    def fast_forward_pull(self, path: Path) -> int:
        self._record("fast_forward_pull", path)
        return self.commits.get(path, 0)

    def update_submodules(self, path: Path) -> None:
        self._record("update_submodules", path)

    def uses_lfs(self, path: Path) -> bool:
        return path in self.lfs_paths

    def pull_lfs(self, path: Path, remote: str = "origin") -> None:
        self._record("pull_lfs", path)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def content_root(temp_dir: Path) -> Path:
    """Create an empty content root."""
    root = temp_dir / "Clones"
    root.mkdir()
    return root


@pytest.fixture
def config_dir(temp_dir: Path) -> Path:
    """Directory holding registry.json and local.json."""
    path = temp_dir / "config"
    path.mkdir()
    return path


@pytest.fixture
def clones_env(
    temp_dir: Path, config_dir: Path, content_root: Path, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Point every clones path at the temporary directory."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("CLONES_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("CLONES_CONTENT_DIR", str(content_root))
    for var in ("CLONES_CONFIG", "CLONES_DIR", "XDG_CONFIG_HOME", "GITHUB_TOKEN"):
        monkeypatch.delenv(var, raising=False)
    return config_dir


@pytest.fixture
def registry_store(config_dir: Path) -> RegistryStore:
    return RegistryStore(config_dir / "registry.json")


@pytest.fixture
def local_state_store(config_dir: Path) -> LocalStateStore:
    return LocalStateStore(config_dir / "local.json")


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def make_entry() -> Callable[..., RegistryEntry]:
    """Factory for registry entries from a location string."""

    def _make(location: str = "https://github.com/octo/hello.git", **fields) -> RegistryEntry:
        parsed = parse_location(location)
        data = {
            "id": parsed.id,
            "host": parsed.host,
            "owner": parsed.owner,
            "name": parsed.name,
            "clone_url": parsed.clone_url,
            "added_at": "2024-01-01T00:00:00Z",
            **fields,
        }
        return RegistryEntry.model_validate(data)

    return _make


@pytest.fixture
def make_checkout(content_root: Path) -> Callable[..., Path]:
    """Create owner/name/.git under the content root."""

    def _make(owner: str, name: str, *, pointer_file: bool = False) -> Path:
        path = content_root / owner / name
        path.mkdir(parents=True)
        if pointer_file:
            (path / ".git").write_text("gitdir: ../../.git/modules/x\n", encoding="utf-8")
        else:
            (path / ".git").mkdir()
        return path

    return _make
