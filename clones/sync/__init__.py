# clones Sync Module
# Scanner, per-entry outcomes and the sync orchestrator

from clones.sync.engine import (
    SyncOptions,
    SyncOrchestrator,
    SyncResult,
    build_entry,
    classify_skip,
)
from clones.sync.outcome import EntryOutcome, OutcomeKind, Phase
from clones.sync.scanner import (
    DiscoveredRepo,
    ScanResult,
    SkippedPath,
    is_nested_repo,
    scan_content_root,
)

__all__ = [
    # Engine
    "SyncOrchestrator",
    "SyncOptions",
    "SyncResult",
    "build_entry",
    "classify_skip",
    # Outcomes
    "EntryOutcome",
    "OutcomeKind",
    "Phase",
    # Scanner
    "DiscoveredRepo",
    "SkippedPath",
    "ScanResult",
    "scan_content_root",
    "is_nested_repo",
]
