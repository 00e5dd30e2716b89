# clones Local State
# Machine-local sync history, kept apart from the shared registry

import json
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from clones.errors import CorruptLocalState
from clones.registry.schema import Normalized, utc_timestamp
from clones.utils.paths import atomic_write

LOCAL_STATE_VERSION = "1.0.0"
LOCAL_STATE_FILENAME = "local.json"

LOCAL_STATE_KEYS = frozenset({"version", "lastSyncRun", "repos"})
REPO_STATE_KEYS = frozenset({"lastSyncedAt"})


class RepoLocalState(BaseModel):
    """Per-entry state on this machine."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    last_synced_at: Optional[str] = Field(default=None, alias="lastSyncedAt")


class LocalState(BaseModel):
    """
    Machine-local state document.

    Keyed by the same ids as the registry but never merged between
    machines, so a registry pulled from elsewhere cannot clobber it.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: str = LOCAL_STATE_VERSION
    last_sync_run: Optional[str] = Field(default=None, alias="lastSyncRun")
    entries: dict[str, RepoLocalState] = Field(default_factory=dict, alias="repos")

    def get(self, repo_id: str) -> Optional[RepoLocalState]:
        """Get state for an entry."""
        return self.entries.get(repo_id)

    def to_document(self) -> dict[str, Any]:
        """Convert to the persisted document form."""
        data: dict[str, Any] = {"version": self.version}
        if self.last_sync_run is not None:
            data["lastSyncRun"] = self.last_sync_run
        data["repos"] = {
            repo_id: state.model_dump(by_alias=True, exclude_none=True)
            for repo_id, state in sorted(self.entries.items())
        }
        return data


def normalize_local_state(raw: Any) -> Normalized[LocalState]:
    """
    Validate and normalize a local state document.

    Anything malformed below the top level is dropped and reported.

    Raises:
        CorruptLocalState: If the document is not an object.
    """
    if isinstance(raw, LocalState):
        raw = raw.to_document()

    if not isinstance(raw, dict):
        raise CorruptLocalState("Invalid local state format (document is not an object)")

    issues: list[str] = []

    for key in raw:
        if key not in LOCAL_STATE_KEYS:
            issues.append(f'local state dropped unknown field "{key}"')

    version = raw.get("version")
    if not isinstance(version, str) or not version:
        issues.append("local state defaulted version")
        version = LOCAL_STATE_VERSION

    last_sync_run = raw.get("lastSyncRun")
    if last_sync_run is not None and not isinstance(last_sync_run, str):
        issues.append("local state dropped invalid lastSyncRun")
        last_sync_run = None

    repos = raw.get("repos", {})
    if not isinstance(repos, dict):
        issues.append("local state dropped invalid repos")
        repos = {}

    entries: dict[str, RepoLocalState] = {}
    for repo_id, value in repos.items():
        if not isinstance(value, dict):
            issues.append(f'local state dropped invalid repo state for "{repo_id}"')
            continue

        for key in value:
            if key not in REPO_STATE_KEYS:
                issues.append(f'local state dropped unknown field "{key}" for "{repo_id}"')

        last_synced_at = value.get("lastSyncedAt")
        if last_synced_at is not None and not isinstance(last_synced_at, str):
            issues.append(f'local state dropped invalid lastSyncedAt for "{repo_id}"')
            last_synced_at = None

        entries[repo_id] = RepoLocalState(last_synced_at=last_synced_at)

    return Normalized(
        data=LocalState(version=version, last_sync_run=last_sync_run or None, entries=entries),
        issues=issues,
    )


class LocalStateStore:
    """Reads and writes the machine-local state document."""

    def __init__(self, path: Path):
        """
        Initialize local state store.

        Args:
            path: Path to local.json.
        """
        self.path = path

    def read_with_issues(self) -> Normalized[LocalState]:
        """
        Read and normalize local state, keeping the issue list.

        Raises:
            CorruptLocalState: If the file is not valid JSON or not an object.
        """
        if not self.path.exists():
            return Normalized(data=LocalState())

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise CorruptLocalState(f"Local state file is corrupted: {self.path} ({e})", path=self.path) from e
        except (OSError, UnicodeDecodeError) as e:
            raise CorruptLocalState(f"Local state file is unreadable: {self.path} ({e})", path=self.path) from e

        try:
            return normalize_local_state(data)
        except CorruptLocalState as e:
            raise CorruptLocalState(f"{e.message}: {self.path}", path=self.path) from e

    def read(self) -> LocalState:
        """Read and normalize local state."""
        return self.read_with_issues().data

    def write(self, state: LocalState) -> LocalState:
        """Normalize and atomically persist local state."""
        normalized = normalize_local_state(state).data
        content = json.dumps(normalized.to_document(), indent=2, ensure_ascii=False) + "\n"
        atomic_write(self.path, content)
        return normalized


def update_repo_local_state(state: LocalState, repo_id: str, **updates: Any) -> LocalState:
    """
    Merge updates into the record for an entry, creating it if absent.

    Args:
        state: Current local state.
        repo_id: Entry id.
        **updates: Field values keyed by attribute name (e.g. last_synced_at).
    """
    current = state.entries.get(repo_id, RepoLocalState())
    merged = RepoLocalState.model_validate({**current.model_dump(), **updates})
    return state.model_copy(update={"entries": {**state.entries, repo_id: merged}})


def remove_repo_local_state(state: LocalState, repo_id: str) -> LocalState:
    """Delete the record for an entry (no-op if absent)."""
    if repo_id not in state.entries:
        return state
    entries = {key: value for key, value in state.entries.items() if key != repo_id}
    return state.model_copy(update={"entries": entries})


def update_last_sync_run(state: LocalState, timestamp: Optional[str] = None) -> LocalState:
    """Stamp the time of the last full sync run."""
    return state.model_copy(update={"last_sync_run": timestamp or utc_timestamp()})


def prune_local_state(state: LocalState, active_ids: Iterable[str]) -> LocalState:
    """Drop records for ids that are no longer in the registry."""
    keep = set(active_ids)
    if all(repo_id in keep for repo_id in state.entries):
        return state
    entries = {key: value for key, value in state.entries.items() if key in keep}
    return state.model_copy(update={"entries": entries})
