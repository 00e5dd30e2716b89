# clones Registry Store
# Atomic persistence and pure mutation helpers for the registry document

import fnmatch
import json
from pathlib import Path
from typing import Any, Iterable, Optional

from clones.errors import CorruptRegistry, DuplicateId, NotFound
from clones.registry.schema import Normalized, Registry, RegistryEntry, normalize_registry
from clones.utils.paths import atomic_write

REGISTRY_FILENAME = "registry.json"

# Fields that make up an entry's identity and may never be updated
IDENTITY_FIELDS = frozenset({"id", "host", "owner", "name"})


class RegistryStore:
    """
    Reads and writes the registry document.

    The document is shared between machines (typically kept under version
    control), so every read is normalized and every write is atomic.
    """

    def __init__(self, path: Path):
        """
        Initialize registry store.

        Args:
            path: Path to registry.json.
        """
        self.path = path

    def exists(self) -> bool:
        """Check whether the document exists on disk."""
        return self.path.exists()

    def read_with_issues(self) -> Normalized[Registry]:
        """
        Read and normalize the registry, keeping the issue list.

        Returns:
            Normalized registry (empty if the file doesn't exist).

        Raises:
            CorruptRegistry: If the file is not valid JSON or lacks identity fields.
        """
        if not self.path.exists():
            return Normalized(data=Registry())

        try:
            content = self.path.read_text(encoding="utf-8")
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise CorruptRegistry(f"Registry file is corrupted: {self.path} ({e})", path=self.path) from e
        except (OSError, UnicodeDecodeError) as e:
            raise CorruptRegistry(f"Registry file is unreadable: {self.path} ({e})", path=self.path) from e

        try:
            return normalize_registry(data)
        except CorruptRegistry as e:
            raise CorruptRegistry(f"{e.message}: {self.path}", path=self.path) from e

    def read(self) -> Registry:
        """Read and normalize the registry."""
        return self.read_with_issues().data

    def write(self, registry: Registry) -> Registry:
        """
        Normalize and atomically persist the registry.

        Args:
            registry: Registry to write.

        Returns:
            The normalized registry that was written.
        """
        normalized = normalize_registry(registry).data
        content = json.dumps(normalized.to_document(), indent=2, ensure_ascii=False) + "\n"
        atomic_write(self.path, content)
        return normalized


def find_entry(registry: Registry, repo_id: str) -> Optional[RegistryEntry]:
    """Find an entry by id."""
    for entry in registry.entries:
        if entry.id == repo_id:
            return entry
    return None


def find_entry_by_owner_name(registry: Registry, owner: str, name: str) -> Optional[RegistryEntry]:
    """Find an entry by owner/name (the on-disk layout key)."""
    for entry in registry.entries:
        if entry.owner == owner and entry.name == name:
            return entry
    return None


def add_entry(registry: Registry, entry: RegistryEntry) -> Registry:
    """
    Add an entry to the registry.

    Re-adding a tombstoned id is an explicit resurrection, so the tombstone
    is cleared.

    Raises:
        DuplicateId: If an entry with the same id already exists.
    """
    if find_entry(registry, entry.id) is not None:
        raise DuplicateId(entry.id)

    return registry.model_copy(
        update={
            "entries": (*registry.entries, entry),
            "tombstones": tuple(t for t in registry.tombstones if t != entry.id),
        }
    )


def update_entry(registry: Registry, repo_id: str, **updates: Any) -> Registry:
    """
    Update fields of an existing entry.

    Args:
        registry: Registry to update.
        repo_id: Id of the entry.
        **updates: Field values keyed by attribute name.

    Raises:
        NotFound: If the id is absent.
        ValueError: If an identity field would change.
    """
    changed_identity = IDENTITY_FIELDS.intersection(updates)
    if changed_identity:
        raise ValueError(f"Identity fields cannot be updated: {', '.join(sorted(changed_identity))}")

    if find_entry(registry, repo_id) is None:
        raise NotFound(repo_id)

    entries = tuple(
        RegistryEntry.model_validate({**entry.model_dump(), **updates}) if entry.id == repo_id else entry
        for entry in registry.entries
    )
    return registry.model_copy(update={"entries": entries})


def remove_entry(registry: Registry, repo_id: str) -> Registry:
    """
    Remove an entry from the registry.

    Raises:
        NotFound: If the id is absent.
    """
    entries = tuple(entry for entry in registry.entries if entry.id != repo_id)
    if len(entries) == len(registry.entries):
        raise NotFound(repo_id)
    return registry.model_copy(update={"entries": entries})


def add_tombstone(registry: Registry, repo_id: str) -> Registry:
    """
    Record an id as intentionally removed (no-op if already present).

    Raises:
        DuplicateId: If the id is still an active entry.
    """
    if find_entry(registry, repo_id) is not None:
        raise DuplicateId(repo_id, f"Cannot tombstone an active entry: {repo_id}")
    if repo_id in registry.tombstones:
        return registry
    return registry.model_copy(update={"tombstones": tuple(sorted((*registry.tombstones, repo_id)))})


def remove_tombstone(registry: Registry, repo_id: str) -> Registry:
    """Forget a tombstone (no-op if missing)."""
    if repo_id not in registry.tombstones:
        return registry
    return registry.model_copy(update={"tombstones": tuple(t for t in registry.tombstones if t != repo_id)})


def filter_by_tags(entries: Iterable[RegistryEntry], tags: list[str]) -> list[RegistryEntry]:
    """Keep entries carrying any of the given tags (all entries if none given)."""
    entries = list(entries)
    if not tags:
        return entries
    wanted = set(tags)
    return [entry for entry in entries if entry.tags and wanted.intersection(entry.tags)]


def matches_pattern(entry: RegistryEntry, pattern: str) -> bool:
    """
    Check an entry against an owner/name glob.

    ``owner/name``, ``owner/*``, ``*/name`` and ``owner`` (all names of an
    owner) are accepted; each side supports fnmatch wildcards.
    """
    owner_pattern, _, name_pattern = pattern.partition("/")
    if not fnmatch.fnmatchcase(entry.owner, owner_pattern or "*"):
        return False
    return fnmatch.fnmatchcase(entry.name, name_pattern or "*")


def filter_by_pattern(entries: Iterable[RegistryEntry], pattern: Optional[str]) -> list[RegistryEntry]:
    """Keep entries matching an owner/name glob (all entries if no pattern)."""
    if not pattern:
        return list(entries)
    return [entry for entry in entries if matches_pattern(entry, pattern)]
