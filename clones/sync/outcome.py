# clones Sync Outcomes
# Tagged per-entry results produced by each sync phase

from dataclasses import dataclass
from enum import Enum
from typing import Optional

# Skip reasons, in the order the update phase checks them
SKIP_DIRECTORY_MISSING = "directory missing"
SKIP_NOT_A_REPOSITORY = "not a repository"
SKIP_DETACHED = "detached"
SKIP_NO_UPSTREAM = "no upstream"
SKIP_DIRTY = "dirty working tree"

WOULD_ADOPT = "would adopt"
WOULD_CLONE = "would clone"
WOULD_UPDATE = "would update"
WOULD_REFRESH = "would refresh"


class Phase(str, Enum):
    """Sync phase that produced an outcome."""

    ADOPT = "adopt"
    CLONE = "clone"
    UPDATE = "update"
    REFRESH = "refresh"


class OutcomeKind(str, Enum):
    """What happened to an entry."""

    ADOPTED = "adopted"
    CLONED = "cloned"
    UPDATED = "updated"
    REFRESHED = "refreshed"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass(frozen=True)
class EntryOutcome:
    """
    Result of one phase for one entry.

    ``detail`` carries the skip reason for skipped outcomes, the error
    message for errors and a "would ..." note for dry-run outcomes.
    """

    repo_id: str
    full_name: str
    phase: Phase
    kind: OutcomeKind
    detail: Optional[str] = None
    commits: Optional[int] = None

    @property
    def reason(self) -> Optional[str]:
        """Skip reason (None unless skipped)."""
        return self.detail if self.kind == OutcomeKind.SKIPPED else None

    @property
    def message(self) -> Optional[str]:
        """Error message (None unless error)."""
        return self.detail if self.kind == OutcomeKind.ERROR else None

    @property
    def is_error(self) -> bool:
        return self.kind == OutcomeKind.ERROR

    @classmethod
    def adopted(cls, repo_id: str, full_name: str, *, dry_run: bool = False) -> "EntryOutcome":
        return cls(repo_id, full_name, Phase.ADOPT, OutcomeKind.ADOPTED, WOULD_ADOPT if dry_run else None)

    @classmethod
    def cloned(cls, repo_id: str, full_name: str, *, dry_run: bool = False) -> "EntryOutcome":
        return cls(repo_id, full_name, Phase.CLONE, OutcomeKind.CLONED, WOULD_CLONE if dry_run else None)

    @classmethod
    def updated(cls, repo_id: str, full_name: str, commits: int, *, dry_run: bool = False) -> "EntryOutcome":
        return cls(
            repo_id,
            full_name,
            Phase.UPDATE,
            OutcomeKind.UPDATED,
            WOULD_UPDATE if dry_run else None,
            commits,
        )

    @classmethod
    def refreshed(cls, repo_id: str, full_name: str, *, dry_run: bool = False) -> "EntryOutcome":
        return cls(repo_id, full_name, Phase.REFRESH, OutcomeKind.REFRESHED, WOULD_REFRESH if dry_run else None)

    @classmethod
    def skipped(cls, repo_id: str, full_name: str, phase: Phase, reason: str) -> "EntryOutcome":
        return cls(repo_id, full_name, phase, OutcomeKind.SKIPPED, reason)

    @classmethod
    def error(cls, repo_id: str, full_name: str, phase: Phase, message: str) -> "EntryOutcome":
        return cls(repo_id, full_name, phase, OutcomeKind.ERROR, message)
