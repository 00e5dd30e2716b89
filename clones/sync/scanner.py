# clones Filesystem Scanner
# Discover owner/name checkouts two levels below the content root

from dataclasses import dataclass, field
from pathlib import Path

from clones.registry.store import REGISTRY_FILENAME

GIT_METADATA = ".git"

SKIP_SYMLINK = "symlink"
SKIP_NO_METADATA = "no metadata"


@dataclass(frozen=True)
class DiscoveredRepo:
    """A checkout found on disk, before identity resolution."""

    owner: str
    name: str
    local_path: Path

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class SkippedPath:
    """A candidate directory that was not discovered."""

    path: Path
    reason: str


@dataclass
class ScanResult:
    """Result of scanning the content root."""

    discovered: list[DiscoveredRepo] = field(default_factory=list)
    skipped: list[SkippedPath] = field(default_factory=list)


def _is_ignored(name: str) -> bool:
    return name.startswith(".") or name == REGISTRY_FILENAME


def _list_dir(path: Path) -> list[Path]:
    return sorted(path.iterdir(), key=lambda p: p.name)


def scan_content_root(root: Path) -> ScanResult:
    """
    Scan the content root for checkouts.

    Classification, first match wins:

    1. Hidden names and the registry file are ignored, as are plain files.
    2. Symlinked owner or name directories are skipped and not traversed.
    3. Unreadable directories are skipped with the underlying error.
    4. Directories without git metadata are skipped.
    5. Everything else is discovered.

    Args:
        root: Content root directory.

    Returns:
        ScanResult sorted by owner/name.
    """
    result = ScanResult()

    if not root.is_dir():
        return result

    try:
        owners = _list_dir(root)
    except OSError as e:
        result.skipped.append(SkippedPath(root, str(e)))
        return result

    for owner_path in owners:
        if _is_ignored(owner_path.name):
            continue
        if owner_path.is_symlink():
            result.skipped.append(SkippedPath(owner_path, SKIP_SYMLINK))
            continue
        if not owner_path.is_dir():
            continue

        try:
            names = _list_dir(owner_path)
        except OSError as e:
            result.skipped.append(SkippedPath(owner_path, str(e)))
            continue

        for repo_path in names:
            if _is_ignored(repo_path.name):
                continue
            if repo_path.is_symlink():
                result.skipped.append(SkippedPath(repo_path, SKIP_SYMLINK))
                continue
            if not repo_path.is_dir():
                continue

            try:
                has_metadata = (repo_path / GIT_METADATA).exists()
                # Listing proves the directory is readable
                next(repo_path.iterdir(), None)
            except OSError as e:
                result.skipped.append(SkippedPath(repo_path, str(e)))
                continue

            if not has_metadata:
                result.skipped.append(SkippedPath(repo_path, SKIP_NO_METADATA))
                continue

            result.discovered.append(DiscoveredRepo(owner_path.name, repo_path.name, repo_path))

    result.discovered.sort(key=lambda repo: (repo.owner, repo.name))
    return result


def is_nested_repo(path: Path, root: Path) -> bool:
    """
    Check whether a checkout is owned by a parent checkout.

    True when the git metadata at ``path`` is a pointer file (submodule or
    worktree), or when any directory strictly between ``path`` and ``root``
    holds git metadata.
    """
    if (path / GIT_METADATA).is_file():
        return True

    try:
        relative = path.relative_to(root)
    except ValueError:
        return False

    current = root
    for part in relative.parts[:-1]:
        current = current / part
        if (current / GIT_METADATA).exists():
            return True
    return False
