# clones Sync Engine
# Three-phase reconciliation of registry, disk and remote

import functools
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from clones.config.schema import DEFAULT_CONCURRENCY, MAX_CONCURRENCY, MIN_CONCURRENCY, EntryDefaults
from clones.errors import MalformedLocation
from clones.git.adapter import VcsAdapter
from clones.git.operations import RepoStatus
from clones.metadata import MetadataProvider, RepoMetadata
from clones.registry.identity import ParsedLocation, parse_location
from clones.registry.local_state import (
    LocalStateStore,
    prune_local_state,
    update_last_sync_run,
    update_repo_local_state,
)
from clones.registry.schema import (
    LfsPolicy,
    Registry,
    RegistryEntry,
    SubmodulePolicy,
    UpdateStrategy,
    utc_timestamp,
)
from clones.registry.store import (
    RegistryStore,
    add_entry,
    filter_by_pattern,
    find_entry_by_owner_name,
    update_entry,
)
from clones.sync.outcome import (
    SKIP_DETACHED,
    SKIP_DIRECTORY_MISSING,
    SKIP_DIRTY,
    SKIP_NO_UPSTREAM,
    SKIP_NOT_A_REPOSITORY,
    EntryOutcome,
    OutcomeKind,
    Phase,
)
from clones.sync.scanner import ScanResult, is_nested_repo, scan_content_root
from clones.utils.paths import safe_delete

ADDED_BY_ADOPT = "adopt"
ADDED_BY_MANUAL = "manual"

SKIP_METADATA_UNAVAILABLE = "metadata unavailable"

Reporter = Callable[[EntryOutcome], None]


@dataclass(frozen=True)
class SyncOptions:
    """Per-run sync modes."""

    dry_run: bool = False
    force: bool = False
    pattern: Optional[str] = None
    refresh: bool = False


@dataclass
class SyncResult:
    """Result of a complete sync run."""

    dry_run: bool = False
    cancelled: bool = False
    outcomes: list[EntryOutcome] = field(default_factory=list)
    scan: Optional[ScanResult] = None
    issues: list[str] = field(default_factory=list)

    @property
    def counts(self) -> dict[OutcomeKind, int]:
        """Number of outcomes per kind."""
        counts = {kind: 0 for kind in OutcomeKind}
        for outcome in self.outcomes:
            counts[outcome.kind] += 1
        return counts

    def ids(self, kind: OutcomeKind) -> list[str]:
        """Ids of entries with an outcome of the given kind."""
        return [outcome.repo_id for outcome in self.outcomes if outcome.kind == kind]

    @property
    def adopted(self) -> list[str]:
        return self.ids(OutcomeKind.ADOPTED)

    @property
    def cloned(self) -> list[str]:
        return self.ids(OutcomeKind.CLONED)

    @property
    def updated(self) -> list[str]:
        return self.ids(OutcomeKind.UPDATED)

    @property
    def refreshed(self) -> list[str]:
        return self.ids(OutcomeKind.REFRESHED)

    @property
    def skipped(self) -> list[str]:
        return self.ids(OutcomeKind.SKIPPED)

    @property
    def errors(self) -> list[str]:
        return self.ids(OutcomeKind.ERROR)

    @property
    def has_errors(self) -> bool:
        """Check if any entry ended in error."""
        return any(outcome.is_error for outcome in self.outcomes)

    @property
    def success(self) -> bool:
        return not self.has_errors


def classify_skip(status: RepoStatus, *, force: bool = False) -> Optional[str]:
    """
    Decide whether a checkout must be left alone.

    Checks run in a fixed order and the first match wins, so a detached
    and dirty checkout is reported as detached.

    Returns:
        Skip reason, or None if the checkout can be updated.
    """
    if not status.exists:
        return SKIP_DIRECTORY_MISSING
    if not status.is_git_repo:
        return SKIP_NOT_A_REPOSITORY
    if status.is_detached:
        return SKIP_DETACHED
    if not status.tracking:
        return SKIP_NO_UPSTREAM
    if status.is_dirty and not force:
        return SKIP_DIRTY
    return None


def build_entry(
    parsed: ParsedLocation,
    *,
    added_by: str,
    defaults: Optional[EntryDefaults] = None,
    metadata: Optional[RepoMetadata] = None,
    **overrides: Any,
) -> RegistryEntry:
    """
    Build a new managed registry entry.

    Args:
        parsed: Resolved location.
        added_by: Provenance tag ("manual", "adopt").
        defaults: Behavior defaults for new entries.
        metadata: Optional remote metadata for description and tags.
        **overrides: Explicit field values, which win over defaults and metadata.
    """
    if defaults is None:
        defaults = EntryDefaults()

    fields: dict[str, Any] = {
        "id": parsed.id,
        "host": parsed.host,
        "owner": parsed.owner,
        "name": parsed.name,
        "clone_url": parsed.clone_url,
        "description": metadata.description if metadata else None,
        "tags": metadata.tags if metadata else None,
        "default_remote_name": defaults.default_remote_name,
        "update_strategy": defaults.update_strategy,
        "submodules": defaults.submodules,
        "lfs": defaults.lfs,
        "added_by": added_by,
        "managed": True,
    }
    fields.update({key: value for key, value in overrides.items() if value is not None})
    return RegistryEntry.model_validate(fields)


class SyncOrchestrator:
    """
    Reconciles the registry, the content root and the remotes.

    A run has three phases: adopt untracked checkouts, clone entries
    missing from disk, then update present checkouts. An optional fourth
    phase refreshes entry metadata. Both documents are written once, after
    every phase has finished.
    """

    def __init__(
        self,
        registry_store: RegistryStore,
        local_state_store: LocalStateStore,
        adapter: VcsAdapter,
        content_root: Path,
        *,
        metadata_provider: Optional[MetadataProvider] = None,
        max_workers: int = DEFAULT_CONCURRENCY,
        reporter: Optional[Reporter] = None,
        defaults: Optional[EntryDefaults] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            registry_store: Shared registry document.
            local_state_store: Machine-local state document.
            adapter: Version-control operations.
            content_root: Root of the owner/name checkout tree.
            metadata_provider: Optional source of descriptions and topics.
            max_workers: Parallel clone/update workers (1-10).
            reporter: Called with each outcome as it completes.
            defaults: Behavior defaults for adopted entries.

        Raises:
            ValueError: If max_workers is out of range.
        """
        if not MIN_CONCURRENCY <= max_workers <= MAX_CONCURRENCY:
            raise ValueError(f"max_workers must be between {MIN_CONCURRENCY} and {MAX_CONCURRENCY}, got {max_workers}")

        self.registry_store = registry_store
        self.local_state_store = local_state_store
        self.adapter = adapter
        self.content_root = content_root
        self.metadata_provider = metadata_provider
        self.max_workers = max_workers
        self.reporter = reporter
        self.defaults = defaults or EntryDefaults()
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Stop scheduling new entries. In-flight entries run to completion."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def entry_path(self, entry: RegistryEntry) -> Path:
        """Checkout path for an entry."""
        return self.content_root / entry.owner / entry.name

    def _report(self, outcome: EntryOutcome) -> None:
        if self.reporter is not None:
            self.reporter(outcome)

    def _run_parallel(self, tasks: list[Callable[[], list[EntryOutcome]]]) -> list[EntryOutcome]:
        """
        Run tasks on the bounded worker pool.

        Outcomes are reported as each task finishes but returned in task
        order, so results never depend on scheduling.
        """
        if not tasks:
            return []

        results: list[list[EntryOutcome]] = [[] for _ in tasks]
        workers = min(self.max_workers, len(tasks))

        if workers == 1:
            for index, task in enumerate(tasks):
                results[index] = task()
                for outcome in results[index]:
                    self._report(outcome)
        else:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="clones") as executor:
                futures = {executor.submit(task): index for index, task in enumerate(tasks)}
                for future in as_completed(futures):
                    index = futures[future]
                    results[index] = future.result()
                    for outcome in results[index]:
                        self._report(outcome)

        return [outcome for group in results for outcome in group]

    # Phase 1

    def adopt_phase(
        self, registry: Registry, scan: ScanResult, *, dry_run: bool = False
    ) -> tuple[Registry, list[EntryOutcome]]:
        """
        Add untracked checkouts found on disk to the registry.

        Nested checkouts, checkouts without a usable remote and ids already
        present are passed over silently. Adopting a tombstoned id clears
        its tombstone.

        Returns:
            Tuple of (registry, outcomes). The registry is unchanged in dry-run.
        """
        outcomes: list[EntryOutcome] = []
        known_ids = set(registry.ids)

        for repo in scan.discovered:
            if self._cancelled.is_set():
                break
            if find_entry_by_owner_name(registry, repo.owner, repo.name) is not None:
                continue
            if is_nested_repo(repo.local_path, self.content_root):
                continue

            url = self.adapter.get_remote_url(repo.local_path, self.defaults.default_remote_name)
            if not url:
                continue
            try:
                parsed = parse_location(url)
            except MalformedLocation:
                continue

            if parsed.id in known_ids:
                continue
            known_ids.add(parsed.id)

            if not dry_run:
                metadata = self._fetch_metadata(parsed.host, parsed.owner, parsed.name)
                entry = build_entry(parsed, added_by=ADDED_BY_ADOPT, defaults=self.defaults, metadata=metadata)
                registry = add_entry(registry, entry)

            outcome = EntryOutcome.adopted(parsed.id, parsed.full_name, dry_run=dry_run)
            outcomes.append(outcome)
            self._report(outcome)

        return registry, outcomes

    def _fetch_metadata(self, host: str, owner: str, name: str) -> Optional[RepoMetadata]:
        if self.metadata_provider is None:
            return None
        return self.metadata_provider.fetch(host, owner, name)

    # Phase 2

    def _is_present(self, entry: RegistryEntry) -> bool:
        status = self.adapter.status(self.entry_path(entry))
        return status.exists and status.is_git_repo

    def clone_phase(self, registry: Registry, *, dry_run: bool = False) -> list[EntryOutcome]:
        """
        Clone managed entries that have no checkout on disk.

        Clones of the same owner run sequentially so an owner directory is
        never created and rolled back by two workers at once.

        Returns:
            Outcomes in registry order.
        """
        pending = [entry for entry in registry.entries if entry.managed and not self._is_present(entry)]

        if dry_run:
            outcomes = []
            for entry in pending:
                if self._cancelled.is_set():
                    break
                outcome = EntryOutcome.cloned(entry.id, entry.full_name, dry_run=True)
                outcomes.append(outcome)
                self._report(outcome)
            return outcomes

        groups: dict[str, list[RegistryEntry]] = {}
        for entry in pending:
            groups.setdefault(entry.owner, []).append(entry)

        # Snapshot before any clone starts
        owner_existed = {owner: (self.content_root / owner).exists() for owner in groups}

        tasks = [
            functools.partial(self._clone_owner_group, entries, owner_existed=owner_existed[owner])
            for owner, entries in groups.items()
        ]
        outcomes = self._run_parallel(tasks)

        order = {entry.id: index for index, entry in enumerate(pending)}
        return sorted(outcomes, key=lambda outcome: order[outcome.repo_id])

    def _clone_owner_group(self, entries: list[RegistryEntry], *, owner_existed: bool) -> list[EntryOutcome]:
        outcomes: list[EntryOutcome] = []
        owner_dir = self.content_root / entries[0].owner
        any_cloned = False

        for entry in entries:
            if self._cancelled.is_set():
                break

            dest = self.entry_path(entry)
            dest_existed = dest.exists()
            try:
                self.adapter.clone(entry.clone_url, dest, remote=entry.default_remote_name)
            except Exception as e:
                message = str(e)
                try:
                    if not owner_existed and not any_cloned:
                        safe_delete(owner_dir)
                    elif not dest_existed:
                        safe_delete(dest)
                except OSError as cleanup_error:
                    message = f"{message} (cleanup failed: {cleanup_error})"
                outcomes.append(EntryOutcome.error(entry.id, entry.full_name, Phase.CLONE, message))
                continue

            any_cloned = True
            outcomes.append(EntryOutcome.cloned(entry.id, entry.full_name))

        return outcomes

    def clone_entry(self, entry: RegistryEntry) -> EntryOutcome:
        """
        Clone one entry with the same rollback rules as the clone phase.

        Returns:
            cloned or error(message) outcome.
        """
        owner_existed = (self.content_root / entry.owner).exists()
        outcomes = self._clone_owner_group([entry], owner_existed=owner_existed)
        if not outcomes:
            return EntryOutcome.skipped(entry.id, entry.full_name, Phase.CLONE, "cancelled")
        return outcomes[0]

    # Phase 3

    def update_repo(self, entry: RegistryEntry, *, dry_run: bool = False, force: bool = False) -> EntryOutcome:
        """
        Bring one checkout up to date with its upstream.

        Submodule and LFS steps are best-effort: their failures never turn
        the entry into an error.

        Returns:
            updated, skipped(reason) or error(message) outcome.
        """
        path = self.entry_path(entry)
        status = self.adapter.status(path)

        reason = classify_skip(status, force=force)
        if reason is not None:
            return EntryOutcome.skipped(entry.id, entry.full_name, Phase.UPDATE, reason)

        if dry_run:
            return EntryOutcome.updated(entry.id, entry.full_name, 0, dry_run=True)

        try:
            self.adapter.fetch_pruned(path, entry.default_remote_name)
            if entry.update_strategy == UpdateStrategy.FF_ONLY:
                commits = self.adapter.fast_forward_pull(path)
            else:
                commits = self.adapter.reset_to_upstream(path)
        except Exception as e:
            return EntryOutcome.error(entry.id, entry.full_name, Phase.UPDATE, str(e))

        if entry.submodules == SubmodulePolicy.RECURSIVE:
            try:
                self.adapter.update_submodules(path)
            except Exception:
                pass

        try:
            if entry.lfs == LfsPolicy.ALWAYS or (entry.lfs == LfsPolicy.AUTO and self.adapter.uses_lfs(path)):
                self.adapter.pull_lfs(path, entry.default_remote_name)
        except Exception:
            pass

        return EntryOutcome.updated(entry.id, entry.full_name, commits)

    def _update_task(self, entry: RegistryEntry, options: SyncOptions) -> list[EntryOutcome]:
        if self._cancelled.is_set():
            return []
        return [self.update_repo(entry, dry_run=options.dry_run, force=options.force)]

    def update_phase(self, registry: Registry, options: SyncOptions) -> list[EntryOutcome]:
        """
        Update managed entries matching the options' pattern.

        Returns:
            Outcomes in registry order.
        """
        entries = filter_by_pattern((entry for entry in registry.entries if entry.managed), options.pattern)
        tasks = [functools.partial(self._update_task, entry, options) for entry in entries]
        return self._run_parallel(tasks)

    # Phase 4

    def _refresh_task(self, entry: RegistryEntry, changes: dict[str, dict[str, Any]]) -> list[EntryOutcome]:
        if self._cancelled.is_set() or self.metadata_provider is None:
            return []

        metadata = self.metadata_provider.fetch(entry.host, entry.owner, entry.name)
        if metadata is None:
            return [EntryOutcome.skipped(entry.id, entry.full_name, Phase.REFRESH, SKIP_METADATA_UNAVAILABLE)]

        if entry.description == metadata.description and entry.tags == metadata.tags:
            return []

        # One slot per id
        changes[entry.id] = {"description": metadata.description, "tags": metadata.tags}
        return [EntryOutcome.refreshed(entry.id, entry.full_name)]

    def refresh_phase(self, registry: Registry, *, dry_run: bool = False) -> tuple[Registry, list[EntryOutcome]]:
        """
        Refresh description and tags from the metadata provider.

        Entries whose metadata is unchanged produce no outcome.

        Returns:
            Tuple of (registry, outcomes). The registry is unchanged in dry-run.
        """
        if self.metadata_provider is None:
            return registry, []

        entries = [entry for entry in registry.entries if self.metadata_provider.supports_host(entry.host)]

        if dry_run:
            outcomes = [EntryOutcome.refreshed(entry.id, entry.full_name, dry_run=True) for entry in entries]
            for outcome in outcomes:
                self._report(outcome)
            return registry, outcomes

        changes: dict[str, dict[str, Any]] = {}
        tasks = [functools.partial(self._refresh_task, entry, changes) for entry in entries]
        outcomes = self._run_parallel(tasks)

        for repo_id, updates in changes.items():
            registry = update_entry(registry, repo_id, **updates)
        return registry, outcomes

    # Runs

    def sync(self, options: Optional[SyncOptions] = None) -> SyncResult:
        """
        Run a full reconciliation.

        Args:
            options: Run modes (defaults to a real, non-forced run).

        Returns:
            SyncResult with one outcome per entry touched in each phase.

        Raises:
            CorruptRegistry: If the registry can't be read. Nothing is mutated.
            CorruptLocalState: If local state can't be read. Nothing is mutated.
        """
        if options is None:
            options = SyncOptions()

        registry_read = self.registry_store.read_with_issues()
        local_read = self.local_state_store.read_with_issues()
        registry = registry_read.data
        local_state = local_read.data

        result = SyncResult(dry_run=options.dry_run, issues=[*registry_read.issues, *local_read.issues])
        result.scan = scan_content_root(self.content_root)

        registry, outcomes = self.adopt_phase(registry, result.scan, dry_run=options.dry_run)
        result.outcomes.extend(outcomes)

        result.outcomes.extend(self.clone_phase(registry, dry_run=options.dry_run))

        update_outcomes = self.update_phase(registry, options)
        result.outcomes.extend(update_outcomes)

        if options.refresh:
            registry, outcomes = self.refresh_phase(registry, dry_run=options.dry_run)
            result.outcomes.extend(outcomes)

        result.cancelled = self._cancelled.is_set()

        if options.dry_run:
            return result

        now = utc_timestamp()
        for outcome in update_outcomes:
            if outcome.kind == OutcomeKind.UPDATED:
                local_state = update_repo_local_state(local_state, outcome.repo_id, last_synced_at=now)

        registry = self.registry_store.write(registry)
        local_state = prune_local_state(local_state, registry.ids)
        self.local_state_store.write(update_last_sync_run(local_state, now))
        return result

    def adopt(self, *, dry_run: bool = False) -> SyncResult:
        """
        Run the adopt phase alone and persist the registry.

        Returns:
            SyncResult with adopt outcomes and the scan report.
        """
        registry_read = self.registry_store.read_with_issues()
        result = SyncResult(dry_run=dry_run, issues=list(registry_read.issues))
        result.scan = scan_content_root(self.content_root)

        registry, outcomes = self.adopt_phase(registry_read.data, result.scan, dry_run=dry_run)
        result.outcomes.extend(outcomes)
        result.cancelled = self._cancelled.is_set()

        if not dry_run and outcomes:
            self.registry_store.write(registry)
        return result
