# Tests for clones.sync.engine
# Adopt, clone, update and refresh phases against a fake adapter

from pathlib import Path
from typing import Optional

import pytest

from clones.errors import CorruptLocalState, CorruptRegistry
from clones.git.operations import RepoStatus
from clones.metadata import RepoMetadata
from clones.registry import LocalState, Registry
from clones.registry.local_state import update_repo_local_state
from clones.registry.schema import LfsPolicy, SubmodulePolicy, UpdateStrategy
from clones.registry.store import find_entry
from clones.sync.engine import (
    ADDED_BY_ADOPT,
    SKIP_METADATA_UNAVAILABLE,
    SyncOptions,
    SyncOrchestrator,
    SyncResult,
    classify_skip,
)
from clones.sync.outcome import (
    SKIP_DETACHED,
    SKIP_DIRECTORY_MISSING,
    SKIP_DIRTY,
    SKIP_NO_UPSTREAM,
    SKIP_NOT_A_REPOSITORY,
    WOULD_ADOPT,
    WOULD_CLONE,
    WOULD_UPDATE,
    EntryOutcome,
    OutcomeKind,
    Phase,
)

HELLO_ID = "github.com:octo/hello"
FOUND_ID = "github.com:octo/found"

DIRTY = RepoStatus(exists=True, is_git_repo=True, current_branch="main", tracking="origin/main", is_dirty=True)


class FakeMetadataProvider:
    """Returns canned metadata per owner/name."""

    def __init__(self, results: Optional[dict[str, Optional[RepoMetadata]]] = None):
        self.results = results or {}
        self.fetched: list[str] = []

    def supports_host(self, host: str) -> bool:
        return host == "github.com"

    def fetch(self, host: str, owner: str, name: str) -> Optional[RepoMetadata]:
        self.fetched.append(f"{owner}/{name}")
        return self.results.get(f"{owner}/{name}")

    def close(self) -> None:
        pass


@pytest.fixture
def orchestrator(registry_store, local_state_store, fake_adapter, content_root) -> SyncOrchestrator:
    return SyncOrchestrator(registry_store, local_state_store, fake_adapter, content_root, max_workers=1)


def _seed(registry_store, *entries, tombstones=()) -> None:
    registry_store.write(Registry(entries=tuple(entries), tombstones=tuple(tombstones)))


def _kinds(result: SyncResult) -> list[tuple[str, OutcomeKind]]:
    return [(outcome.repo_id, outcome.kind) for outcome in result.outcomes]


class TestClassifySkip:
    """Tests for classify_skip."""

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (RepoStatus(exists=False), SKIP_DIRECTORY_MISSING),
            (RepoStatus(exists=True), SKIP_NOT_A_REPOSITORY),
            (RepoStatus(exists=True, is_git_repo=True, is_detached=True, is_dirty=True), SKIP_DETACHED),
            (RepoStatus(exists=True, is_git_repo=True, current_branch="main", is_dirty=True), SKIP_NO_UPSTREAM),
            (DIRTY, SKIP_DIRTY),
            (RepoStatus(exists=True, is_git_repo=True, current_branch="main", tracking="origin/main"), None),
        ],
    )
    def test_first_match_wins(self, status: RepoStatus, expected: Optional[str]):
        assert classify_skip(status) == expected

    def test_force_overrides_dirty_only(self):
        assert classify_skip(DIRTY, force=True) is None
        detached = RepoStatus(exists=True, is_git_repo=True, is_detached=True)
        assert classify_skip(detached, force=True) == SKIP_DETACHED


class TestOrchestratorInit:
    """Tests for SyncOrchestrator construction."""

    @pytest.mark.parametrize("workers", [0, 11])
    def test_worker_bounds(self, registry_store, local_state_store, fake_adapter, content_root, workers: int):
        with pytest.raises(ValueError, match="max_workers"):
            SyncOrchestrator(registry_store, local_state_store, fake_adapter, content_root, max_workers=workers)


class TestUpdatePhase:
    """Tests for updating present checkouts."""

    def test_clean_checkout_updated(
        self, orchestrator, registry_store, local_state_store, fake_adapter, make_entry, make_checkout
    ):
        _seed(registry_store, make_entry())
        path = make_checkout("octo", "hello")
        fake_adapter.commits[path] = 3

        result = orchestrator.sync()

        assert result.updated == [HELLO_ID]
        assert result.outcomes[0].commits == 3
        assert fake_adapter.called("fetch_pruned") == [path]
        assert fake_adapter.called("reset_to_upstream") == [path]
        assert fake_adapter.called("fast_forward_pull") == []

        state = local_state_store.read()
        assert state.get(HELLO_ID).last_synced_at is not None
        assert state.last_sync_run == state.get(HELLO_ID).last_synced_at

    def test_dirty_checkout_untouched(
        self, orchestrator, registry_store, local_state_store, fake_adapter, make_entry, make_checkout
    ):
        """A dirty checkout is skipped and its sync history is kept as is."""
        _seed(registry_store, make_entry())
        path = make_checkout("octo", "hello")
        fake_adapter.statuses[path] = DIRTY
        local_state_store.write(update_repo_local_state(LocalState(), HELLO_ID, last_synced_at="2024-01-01T00:00:00Z"))

        result = orchestrator.sync()

        assert _kinds(result) == [(HELLO_ID, OutcomeKind.SKIPPED)]
        assert result.outcomes[0].reason == SKIP_DIRTY
        assert fake_adapter.mutating_calls == []
        assert local_state_store.read().get(HELLO_ID).last_synced_at == "2024-01-01T00:00:00Z"
        assert result.success

    def test_force_updates_dirty_checkout(self, orchestrator, registry_store, fake_adapter, make_entry, make_checkout):
        _seed(registry_store, make_entry())
        path = make_checkout("octo", "hello")
        fake_adapter.statuses[path] = DIRTY

        result = orchestrator.sync(SyncOptions(force=True))

        assert result.updated == [HELLO_ID]
        assert fake_adapter.called("reset_to_upstream") == [path]

    def test_detached_and_dirty_reported_as_detached(
        self, orchestrator, registry_store, fake_adapter, make_entry, make_checkout
    ):
        _seed(registry_store, make_entry())
        path = make_checkout("octo", "hello")
        fake_adapter.statuses[path] = RepoStatus(exists=True, is_git_repo=True, is_detached=True, is_dirty=True)

        result = orchestrator.sync(SyncOptions(force=True))

        assert result.outcomes[0].reason == SKIP_DETACHED
        assert fake_adapter.mutating_calls == []

    def test_ff_only_strategy(self, orchestrator, registry_store, fake_adapter, make_entry, make_checkout):
        _seed(registry_store, make_entry(update_strategy=UpdateStrategy.FF_ONLY))
        path = make_checkout("octo", "hello")

        orchestrator.sync()

        assert fake_adapter.called("fast_forward_pull") == [path]
        assert fake_adapter.called("reset_to_upstream") == []

    def test_error_isolated_to_entry(
        self, orchestrator, registry_store, local_state_store, fake_adapter, make_entry, make_checkout
    ):
        _seed(registry_store, make_entry(), make_entry("https://github.com/octo/world"))
        broken = make_checkout("octo", "hello")
        make_checkout("octo", "world")
        fake_adapter.fail("fetch_pruned", broken, "could not resolve host")

        result = orchestrator.sync()

        assert _kinds(result) == [
            (HELLO_ID, OutcomeKind.ERROR),
            ("github.com:octo/world", OutcomeKind.UPDATED),
        ]
        assert "could not resolve host" in result.outcomes[0].message
        assert result.has_errors
        state = local_state_store.read()
        assert state.get(HELLO_ID) is None
        assert state.get("github.com:octo/world") is not None

    def test_submodule_and_lfs_failures_are_best_effort(
        self, orchestrator, registry_store, fake_adapter, make_entry, make_checkout
    ):
        _seed(registry_store, make_entry(submodules=SubmodulePolicy.RECURSIVE, lfs=LfsPolicy.ALWAYS))
        path = make_checkout("octo", "hello")
        fake_adapter.fail("update_submodules", path)
        fake_adapter.fail("pull_lfs", path)

        result = orchestrator.sync()

        assert result.updated == [HELLO_ID]
        assert fake_adapter.called("update_submodules") == [path]
        assert fake_adapter.called("pull_lfs") == [path]

    @pytest.mark.parametrize(
        ("policy", "uses_lfs", "expected"),
        [
            (LfsPolicy.AUTO, True, True),
            (LfsPolicy.AUTO, False, False),
            (LfsPolicy.NEVER, True, False),
            (LfsPolicy.ALWAYS, False, True),
        ],
    )
    def test_lfs_policy(
        self, orchestrator, registry_store, fake_adapter, make_entry, make_checkout, policy, uses_lfs, expected
    ):
        _seed(registry_store, make_entry(lfs=policy))
        path = make_checkout("octo", "hello")
        if uses_lfs:
            fake_adapter.lfs_paths.add(path)

        orchestrator.sync()

        assert bool(fake_adapter.called("pull_lfs")) is expected

    def test_pattern_filter(self, orchestrator, registry_store, fake_adapter, make_entry, make_checkout):
        _seed(registry_store, make_entry(), make_entry("https://github.com/other/tool"))
        make_checkout("octo", "hello")
        make_checkout("other", "tool")

        result = orchestrator.sync(SyncOptions(pattern="other/*"))

        assert result.updated == ["github.com:other/tool"]

    def test_unmanaged_entry_ignored(self, orchestrator, registry_store, fake_adapter, make_entry, make_checkout):
        _seed(registry_store, make_entry(managed=False))

        result = orchestrator.sync()

        assert result.outcomes == []
        assert fake_adapter.mutating_calls == []


class TestClonePhase:
    """Tests for cloning missing entries."""

    def test_missing_directory_cloned(self, orchestrator, registry_store, fake_adapter, make_entry, content_root):
        _seed(registry_store, make_entry())

        result = orchestrator.sync()

        dest = content_root / "octo" / "hello"
        assert result.cloned == [HELLO_ID]
        assert fake_adapter.called("clone") == [dest]
        assert (dest / ".git").is_dir()

    def test_failed_clone_removes_new_owner_directory(
        self, orchestrator, registry_store, fake_adapter, make_entry, content_root
    ):
        _seed(registry_store, make_entry())
        fake_adapter.partial_clone = True
        fake_adapter.fail("clone", content_root / "octo" / "hello", "repository not found")

        result = orchestrator.sync()

        assert not (content_root / "octo").exists()
        assert result.errors == [HELLO_ID]
        assert "repository not found" in result.outcomes[0].message
        assert result.outcomes[0].phase == Phase.CLONE
        skipped = [outcome for outcome in result.outcomes if outcome.kind == OutcomeKind.SKIPPED]
        assert [outcome.reason for outcome in skipped] == [SKIP_DIRECTORY_MISSING]

    def test_sibling_success_keeps_owner_directory(
        self, orchestrator, registry_store, fake_adapter, make_entry, content_root
    ):
        _seed(registry_store, make_entry("https://github.com/octo/alpha"), make_entry("https://github.com/octo/beta"))
        fake_adapter.partial_clone = True
        fake_adapter.fail("clone", content_root / "octo" / "beta")

        result = orchestrator.sync()

        assert result.cloned == ["github.com:octo/alpha"]
        assert result.errors == ["github.com:octo/beta"]
        assert (content_root / "octo" / "alpha").is_dir()
        assert not (content_root / "octo" / "beta").exists()

    def test_existing_owner_directory_kept(
        self, orchestrator, registry_store, fake_adapter, make_entry, make_checkout, content_root
    ):
        _seed(registry_store, make_entry())
        make_checkout("octo", "untracked")
        fake_adapter.partial_clone = True
        fake_adapter.fail("clone", content_root / "octo" / "hello")

        orchestrator.sync()

        assert (content_root / "octo" / "untracked").is_dir()
        assert not (content_root / "octo" / "hello").exists()

    def test_clone_entry(self, orchestrator, fake_adapter, make_entry, content_root):
        outcome = orchestrator.clone_entry(make_entry())
        assert outcome == EntryOutcome.cloned(HELLO_ID, "octo/hello")
        assert (content_root / "octo" / "hello").is_dir()


class TestAdoptPhase:
    """Tests for adopting untracked checkouts."""

    def test_untracked_checkout_adopted(self, orchestrator, registry_store, fake_adapter, make_checkout):
        path = make_checkout("octo", "found")
        fake_adapter.remotes[path] = "git@github.com:octo/found.git"

        result = orchestrator.sync()

        assert result.adopted == [FOUND_ID]
        entry = find_entry(registry_store.read(), FOUND_ID)
        assert entry.added_by == ADDED_BY_ADOPT
        assert entry.managed
        assert entry.clone_url == "git@github.com:octo/found.git"
        # Adopted entries are updated in the same run
        assert result.updated == [FOUND_ID]

    def test_adopt_uses_metadata(self, registry_store, local_state_store, fake_adapter, content_root, make_checkout):
        path = make_checkout("octo", "found")
        fake_adapter.remotes[path] = "https://github.com/octo/found"
        provider = FakeMetadataProvider({"octo/found": RepoMetadata(description="Found it", topics=("x",))})
        orchestrator = SyncOrchestrator(
            registry_store, local_state_store, fake_adapter, content_root, metadata_provider=provider
        )

        orchestrator.sync()

        entry = find_entry(registry_store.read(), FOUND_ID)
        assert entry.description == "Found it"
        assert entry.tags == ("x",)

    def test_checkout_without_remote_ignored(self, orchestrator, registry_store, make_checkout):
        make_checkout("octo", "local-only")

        result = orchestrator.sync()

        assert result.outcomes == []
        assert registry_store.read().entries == ()

    def test_malformed_remote_ignored(self, orchestrator, registry_store, fake_adapter, make_checkout):
        path = make_checkout("octo", "odd")
        fake_adapter.remotes[path] = "/srv/git/odd"

        assert orchestrator.sync().outcomes == []

    def test_nested_checkout_not_adopted(self, orchestrator, registry_store, fake_adapter, make_checkout, content_root):
        (content_root / "octo" / ".git").mkdir(parents=True)
        path = make_checkout("octo", "inner")
        fake_adapter.remotes[path] = "https://github.com/octo/inner"

        result = orchestrator.sync()

        assert result.adopted == []
        assert registry_store.read().entries == ()

    def test_pointer_file_not_adopted(self, orchestrator, registry_store, fake_adapter, make_checkout):
        path = make_checkout("octo", "worktree", pointer_file=True)
        fake_adapter.remotes[path] = "https://github.com/octo/worktree"

        assert orchestrator.sync().adopted == []

    def test_tombstoned_checkout_adopted_again(self, orchestrator, registry_store, fake_adapter, make_checkout):
        """A checkout kept on disk after removal can be registered again."""
        _seed(registry_store, tombstones=[FOUND_ID])
        path = make_checkout("octo", "found")
        fake_adapter.remotes[path] = "git@github.com:octo/found.git"

        result = orchestrator.sync()

        assert result.adopted == [FOUND_ID]
        registry = registry_store.read()
        assert registry.ids == {FOUND_ID}
        assert registry.tombstones == ()

    def test_tombstoned_checkout_dry_run_keeps_tombstone(
        self, orchestrator, registry_store, fake_adapter, make_checkout
    ):
        _seed(registry_store, tombstones=[FOUND_ID])
        path = make_checkout("octo", "found")
        fake_adapter.remotes[path] = "git@github.com:octo/found.git"

        result = orchestrator.sync(SyncOptions(dry_run=True))

        assert result.adopted == [FOUND_ID]
        assert registry_store.read().tombstones == (FOUND_ID,)

    def test_registered_owner_name_not_adopted(
        self, orchestrator, registry_store, fake_adapter, make_entry, make_checkout
    ):
        _seed(registry_store, make_entry())
        path = make_checkout("octo", "hello")
        fake_adapter.remotes[path] = "https://github.com/octo/hello"

        result = orchestrator.sync()

        assert result.adopted == []
        assert len(registry_store.read().entries) == 1

    def test_adopt_only(self, orchestrator, registry_store, local_state_store, fake_adapter, make_checkout):
        path = make_checkout("octo", "found")
        fake_adapter.remotes[path] = "git@github.com:octo/found.git"

        preview = orchestrator.adopt(dry_run=True)
        assert preview.adopted == [FOUND_ID]
        assert not registry_store.exists()

        result = orchestrator.adopt()
        assert result.adopted == [FOUND_ID]
        assert registry_store.read().ids == {FOUND_ID}
        assert fake_adapter.mutating_calls == []
        assert not local_state_store.path.exists()


class TestSyncRun:
    """Tests for whole sync runs."""

    def test_dry_run_mutates_nothing(
        self, orchestrator, registry_store, local_state_store, fake_adapter, make_entry, make_checkout, content_root
    ):
        _seed(registry_store, make_entry(), make_entry("https://github.com/octo/missing"))
        make_checkout("octo", "hello")
        found = make_checkout("octo", "found")
        fake_adapter.remotes[found] = "git@github.com:octo/found.git"
        before = registry_store.path.read_bytes()

        result = orchestrator.sync(SyncOptions(dry_run=True))

        assert result.dry_run
        assert fake_adapter.mutating_calls == []
        assert registry_store.path.read_bytes() == before
        assert not local_state_store.path.exists()
        assert sorted(p.name for p in (content_root / "octo").iterdir()) == ["found", "hello"]

        by_id = {(outcome.repo_id, outcome.kind): outcome for outcome in result.outcomes}
        assert by_id[(FOUND_ID, OutcomeKind.ADOPTED)].detail == WOULD_ADOPT
        assert by_id[("github.com:octo/missing", OutcomeKind.CLONED)].detail == WOULD_CLONE
        would_update = by_id[(HELLO_ID, OutcomeKind.UPDATED)]
        assert would_update.detail == WOULD_UPDATE
        assert would_update.commits == 0

    def test_second_run_is_idempotent(self, orchestrator, registry_store, make_entry):
        _seed(registry_store, make_entry())

        first = orchestrator.sync()
        registry_after_first = registry_store.read()
        second = orchestrator.sync()

        assert first.cloned == [HELLO_ID]
        assert second.cloned == []
        assert second.adopted == []
        assert second.updated == [HELLO_ID]
        assert registry_store.read() == registry_after_first

    def test_empty_run_stamps_last_sync(self, orchestrator, registry_store, local_state_store):
        result = orchestrator.sync()

        assert result.outcomes == []
        assert registry_store.exists()
        assert local_state_store.read().last_sync_run is not None

    def test_local_state_pruned(self, orchestrator, registry_store, local_state_store, make_entry, make_checkout):
        _seed(registry_store, make_entry())
        make_checkout("octo", "hello")
        local_state_store.write(update_repo_local_state(LocalState(), "github.com:gone/away", last_synced_at="t"))

        orchestrator.sync()

        assert set(local_state_store.read().entries) == {HELLO_ID}

    def test_corrupt_registry_aborts(self, orchestrator, registry_store, local_state_store, fake_adapter):
        registry_store.path.write_text("{broken", encoding="utf-8")

        with pytest.raises(CorruptRegistry):
            orchestrator.sync()

        assert fake_adapter.calls == []
        assert not local_state_store.path.exists()

    def test_corrupt_local_state_aborts(
        self, orchestrator, registry_store, local_state_store, fake_adapter, make_entry, make_checkout
    ):
        _seed(registry_store, make_entry(), make_entry("https://github.com/octo/missing"))
        make_checkout("octo", "hello")
        registry_before = registry_store.path.read_bytes()
        local_state_store.path.write_text("{broken", encoding="utf-8")

        with pytest.raises(CorruptLocalState):
            orchestrator.sync()

        assert fake_adapter.calls == []
        assert registry_store.path.read_bytes() == registry_before
        assert local_state_store.path.read_text(encoding="utf-8") == "{broken"

    def test_parallel_results_in_registry_order(
        self, registry_store, local_state_store, fake_adapter, content_root, make_entry, make_checkout
    ):
        names = [("a", "one"), ("b", "two"), ("c", "three"), ("d", "four"), ("e", "five")]
        _seed(registry_store, *(make_entry(f"https://github.com/{owner}/{name}") for owner, name in names))
        for owner, name in names[:3]:
            make_checkout(owner, name)
        orchestrator = SyncOrchestrator(registry_store, local_state_store, fake_adapter, content_root, max_workers=4)

        result = orchestrator.sync()

        expected = [f"github.com:{owner}/{name}" for owner, name in names]
        assert result.cloned == expected[3:]
        assert result.updated == expected

    def test_reporter_sees_every_outcome(
        self, registry_store, local_state_store, fake_adapter, content_root, make_entry, make_checkout
    ):
        seen: list[EntryOutcome] = []
        _seed(registry_store, make_entry())
        orchestrator = SyncOrchestrator(
            registry_store, local_state_store, fake_adapter, content_root, reporter=seen.append
        )

        result = orchestrator.sync()

        assert seen == result.outcomes

    def test_cancel_stops_scheduling(self, orchestrator, registry_store, fake_adapter, make_entry, make_checkout):
        _seed(registry_store, make_entry(), make_entry("https://github.com/octo/missing"))
        make_checkout("octo", "hello")

        orchestrator.cancel()
        result = orchestrator.sync()

        assert result.cancelled
        assert result.outcomes == []
        assert fake_adapter.mutating_calls == []

    def test_result_counts(self):
        result = SyncResult(
            outcomes=[
                EntryOutcome.updated("a", "o/a", 1),
                EntryOutcome.updated("b", "o/b", 0),
                EntryOutcome.skipped("c", "o/c", Phase.UPDATE, SKIP_DIRTY),
            ]
        )
        assert result.counts[OutcomeKind.UPDATED] == 2
        assert result.counts[OutcomeKind.SKIPPED] == 1
        assert result.counts[OutcomeKind.ERROR] == 0
        assert result.success


class TestRefreshPhase:
    """Tests for metadata refresh."""

    def _orchestrator(self, registry_store, local_state_store, fake_adapter, content_root, provider):
        return SyncOrchestrator(
            registry_store, local_state_store, fake_adapter, content_root, metadata_provider=provider
        )

    def test_changed_metadata_applied(
        self, registry_store, local_state_store, fake_adapter, content_root, make_entry, make_checkout
    ):
        _seed(registry_store, make_entry(description="old"))
        make_checkout("octo", "hello")
        provider = FakeMetadataProvider({"octo/hello": RepoMetadata(description="new", topics=("b", "a"))})
        orchestrator = self._orchestrator(registry_store, local_state_store, fake_adapter, content_root, provider)

        result = orchestrator.sync(SyncOptions(refresh=True))

        assert result.refreshed == [HELLO_ID]
        entry = find_entry(registry_store.read(), HELLO_ID)
        assert entry.description == "new"
        assert entry.tags == ("a", "b")

    def test_unchanged_metadata_no_outcome(
        self, registry_store, local_state_store, fake_adapter, content_root, make_entry, make_checkout
    ):
        _seed(registry_store, make_entry(description="same", tags=("a",)))
        make_checkout("octo", "hello")
        provider = FakeMetadataProvider({"octo/hello": RepoMetadata(description="same", topics=("a",))})
        orchestrator = self._orchestrator(registry_store, local_state_store, fake_adapter, content_root, provider)

        result = orchestrator.sync(SyncOptions(refresh=True))

        assert result.refreshed == []
        assert [outcome.phase for outcome in result.outcomes] == [Phase.UPDATE]

    def test_unavailable_metadata_skipped(
        self, registry_store, local_state_store, fake_adapter, content_root, make_entry, make_checkout
    ):
        _seed(registry_store, make_entry(description="kept"))
        make_checkout("octo", "hello")
        orchestrator = self._orchestrator(
            registry_store, local_state_store, fake_adapter, content_root, FakeMetadataProvider()
        )

        result = orchestrator.sync(SyncOptions(refresh=True))

        refresh = [outcome for outcome in result.outcomes if outcome.phase == Phase.REFRESH]
        assert [outcome.reason for outcome in refresh] == [SKIP_METADATA_UNAVAILABLE]
        assert find_entry(registry_store.read(), HELLO_ID).description == "kept"

    def test_unsupported_host_not_fetched(
        self, registry_store, local_state_store, fake_adapter, content_root, make_entry, make_checkout
    ):
        _seed(registry_store, make_entry("git@gitlab.com:team/tool.git"))
        make_checkout("team", "tool")
        provider = FakeMetadataProvider()
        orchestrator = self._orchestrator(registry_store, local_state_store, fake_adapter, content_root, provider)

        orchestrator.sync(SyncOptions(refresh=True))

        assert provider.fetched == []

    def test_refresh_requires_option(
        self, registry_store, local_state_store, fake_adapter, content_root, make_entry, make_checkout
    ):
        _seed(registry_store, make_entry())
        make_checkout("octo", "hello")
        provider = FakeMetadataProvider({"octo/hello": RepoMetadata(description="new")})
        orchestrator = self._orchestrator(registry_store, local_state_store, fake_adapter, content_root, provider)

        result = orchestrator.sync()

        assert result.refreshed == []
        assert provider.fetched == []
