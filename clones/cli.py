"""Click-based CLI for clones - a registry of Git checkouts synced across machines."""

from __future__ import annotations

import json
import signal
import sys
from pathlib import Path
from typing import NoReturn, Optional

import click
import yaml

from clones import __version__
from clones.config import (
    ClonesConfig,
    ensure_config_exists,
    get_config_path,
    get_content_dir,
    get_local_state_path,
    get_registry_path,
    load_config,
    validate_config_file,
)
from clones.errors import ClonesError
from clones.git import GitAdapter
from clones.metadata import GitHubMetadataProvider
from clones.output.console import Console, create_console
from clones.registry import (
    LfsPolicy,
    LocalStateStore,
    RegistryStore,
    SubmodulePolicy,
    UpdateStrategy,
    add_entry,
    add_tombstone,
    filter_by_pattern,
    filter_by_tags,
    find_entry,
    find_entry_by_owner_name,
    parse_location,
    remove_entry,
    remove_repo_local_state,
    update_repo_local_state,
    utc_timestamp,
)
from clones.sync import OutcomeKind, SyncOptions, SyncOrchestrator, build_entry
from clones.sync.engine import ADDED_BY_MANUAL
from clones.utils.paths import safe_delete


def _fail(console: Console, message: str) -> NoReturn:
    console.print_error(message)
    sys.exit(1)


def _load(verbose: bool = False) -> tuple[ClonesConfig, Console]:
    """Load configuration and build a console honoring its output settings."""
    try:
        config = load_config()
    except ClonesError as e:
        _fail(create_console(), e.message)
    console = create_console(verbose=verbose or config.output.verbose, colored=config.output.colored)
    return config, console


def _split_tags(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [tag.strip() for tag in value.split(",") if tag.strip()]


def _metadata_provider(config: ClonesConfig, enabled: bool = True) -> Optional[GitHubMetadataProvider]:
    if not enabled or not config.metadata.enabled:
        return None
    return GitHubMetadataProvider(timeout=config.metadata.timeout)


def _orchestrator(
    config: ClonesConfig,
    *,
    console: Optional[Console] = None,
    metadata: bool = True,
    jobs: Optional[int] = None,
) -> SyncOrchestrator:
    return SyncOrchestrator(
        RegistryStore(get_registry_path()),
        LocalStateStore(get_local_state_path()),
        GitAdapter(),
        get_content_dir(config),
        metadata_provider=_metadata_provider(config, metadata),
        max_workers=jobs or config.concurrency,
        reporter=console.print_outcome if console else None,
        defaults=config.defaults,
    )


def _close_metadata(orchestrator: Optional[SyncOrchestrator]) -> None:
    if orchestrator is not None and orchestrator.metadata_provider is not None:
        orchestrator.metadata_provider.close()


@click.group()
@click.version_option(version=__version__, prog_name="clones")
def cli() -> None:
    """clones - keep a registry of Git checkouts in sync across machines.

    \b
    Registry: shared list of desired repositories (registry.json)
    Content:  one checkout per owner/name under the content directory
    """
    pass


@cli.command()
@click.argument("url")
@click.option("--tags", "-t", help="Comma-separated tags")
@click.option("--description", "-d", help="Human-readable description")
@click.option(
    "--update-strategy",
    type=click.Choice([s.value for s in UpdateStrategy]),
    help="How sync updates the checkout (default from config)",
)
@click.option("--submodules", type=click.Choice([s.value for s in SubmodulePolicy]), help="Submodule handling")
@click.option("--lfs", type=click.Choice([s.value for s in LfsPolicy]), help="Git LFS handling")
@click.option("--no-clone", is_flag=True, help="Only register; the next sync clones it")
def add(
    url: str,
    tags: Optional[str],
    description: Optional[str],
    update_strategy: Optional[str],
    submodules: Optional[str],
    lfs: Optional[str],
    no_clone: bool,
) -> None:
    """Add a repository by Git URL (HTTPS or SSH) and clone it."""
    config, console = _load()
    registry_store = RegistryStore(get_registry_path())
    local_state_store = LocalStateStore(get_local_state_path())
    orchestrator = None

    try:
        parsed = parse_location(url)
        registry = registry_store.read()

        if find_entry(registry, parsed.id) is not None:
            _fail(console, f"Repository already exists in registry: {parsed.id}")

        orchestrator = _orchestrator(config)
        local_path = orchestrator.content_root / parsed.owner / parsed.name
        if local_path.exists():
            _fail(console, f"Local directory already exists: {local_path}\nUse 'clones adopt' to register it.")

        metadata = None
        if orchestrator.metadata_provider is not None and not description:
            metadata = orchestrator.metadata_provider.fetch(parsed.host, parsed.owner, parsed.name)

        user_tags = _split_tags(tags)
        entry = build_entry(
            parsed,
            added_by=ADDED_BY_MANUAL,
            defaults=config.defaults,
            metadata=metadata,
            description=description,
            tags=tuple(sorted(set(user_tags))) or None,
            update_strategy=update_strategy,
            submodules=submodules,
            lfs=lfs,
        )

        if not no_clone:
            console.print_info(f"Cloning {parsed.full_name} into {local_path}...")
            outcome = orchestrator.clone_entry(entry)
            if outcome.kind != OutcomeKind.CLONED:
                _fail(console, f"Clone failed: {outcome.detail}")

        registry_store.write(add_entry(registry, entry))

        if not no_clone:
            local_state = local_state_store.read()
            local_state_store.write(update_repo_local_state(local_state, entry.id, last_synced_at=utc_timestamp()))
    except ClonesError as e:
        _fail(console, e.message)
    finally:
        _close_metadata(orchestrator)

    console.print_success(f"Added {parsed.full_name} to registry")
    if entry.tags:
        console.print(f"[dim]Tags: {', '.join(entry.tags)}[/dim]")


@cli.command("list")
@click.option("--tags", "-t", help="Only entries with any of these comma-separated tags")
@click.option("--filter", "-f", "pattern", help="owner/name pattern (supports wildcards)")
@click.option("--json", "as_json", is_flag=True, help="Print entries as JSON")
def list_entries(tags: Optional[str], pattern: Optional[str], as_json: bool) -> None:
    """List repositories in the registry."""
    _, console = _load()

    try:
        registry = RegistryStore(get_registry_path()).read()
        local_state = LocalStateStore(get_local_state_path()).read()
    except ClonesError as e:
        _fail(console, e.message)

    entries = filter_by_pattern(filter_by_tags(registry.entries, _split_tags(tags)), pattern)

    if as_json:
        click.echo(json.dumps([entry.to_document() for entry in entries], indent=2, ensure_ascii=False))
        return

    console.print_entries(entries, local_state)


@cli.command()
@click.argument("repo")
@click.option("--keep-disk", is_flag=True, help="Keep the local directory (only remove from registry)")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
def rm(repo: str, keep_disk: bool, yes: bool) -> None:
    """Remove a repository (OWNER/NAME) from the registry and from disk.

    The id is tombstoned so a stale registry merged from another machine
    does not bring it back.
    """
    config, console = _load()

    owner, _, name = repo.partition("/")
    if not owner or not name or "/" in name:
        _fail(console, f"Invalid format: {repo}\nExpected format: owner/name")

    registry_store = RegistryStore(get_registry_path())
    local_state_store = LocalStateStore(get_local_state_path())

    try:
        registry = registry_store.read()
        entry = find_entry_by_owner_name(registry, owner, name)
        if entry is None:
            _fail(console, f"Repository not found in registry: {owner}/{name}")

        local_path = get_content_dir(config) / owner / name
        delete_disk = local_path.exists() and not keep_disk

        if not yes:
            message = (
                f"Remove {owner}/{name} from registry AND delete {local_path}?"
                if delete_disk
                else f"Remove {owner}/{name} from registry?"
            )
            if not console.confirm(message):
                console.print("[dim]Cancelled[/dim]")
                return

        if delete_disk:
            try:
                safe_delete(local_path)
            except OSError as e:
                _fail(console, f"Failed to delete {local_path}: {e}\nRegistry entry was NOT removed.")
            console.print_info(f"Deleted {local_path}")

        registry_store.write(add_tombstone(remove_entry(registry, entry.id), entry.id))
    except ClonesError as e:
        _fail(console, e.message)

    try:
        local_state_store.write(remove_repo_local_state(local_state_store.read(), entry.id))
    except (ClonesError, OSError) as e:
        console.print_warning(f"Local state was not updated: {e}")

    console.print_success(f"Removed {owner}/{name} from registry")


@cli.command()
@click.option("--dry-run", "-n", is_flag=True, help="Preview changes without applying")
@click.option("--force", "-f", is_flag=True, help="Update checkouts even with a dirty working tree")
@click.option("--filter", "pattern", help="Only update owner/name matching this pattern (supports wildcards)")
@click.option("--jobs", "-j", type=click.IntRange(1, 10), help="Parallel git operations (default from config)")
@click.option("--no-metadata", is_flag=True, help="Don't fetch descriptions and topics")
@click.option("--refresh", is_flag=True, help="Refresh description and tags from the hosting service")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
def sync(
    dry_run: bool,
    force: bool,
    pattern: Optional[str],
    jobs: Optional[int],
    no_metadata: bool,
    refresh: bool,
    verbose: bool,
) -> None:
    """Synchronize registry and checkouts.

    \b
    1. Adopt checkouts on disk that are missing from the registry
    2. Clone registry entries missing from disk
    3. Fetch and update every tracked checkout
    """
    config, console = _load(verbose)
    orchestrator = _orchestrator(config, console=console, metadata=not no_metadata, jobs=jobs)

    if dry_run:
        console.print("[yellow]Dry run - no changes will be made[/yellow]")

    # Ctrl-C stops scheduling new entries; running git commands finish
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: orchestrator.cancel())
    try:
        result = orchestrator.sync(SyncOptions(dry_run=dry_run, force=force, pattern=pattern, refresh=refresh))
    except ClonesError as e:
        _fail(console, e.message)
    finally:
        signal.signal(signal.SIGINT, previous_handler)
        _close_metadata(orchestrator)

    console.print_issues(result.issues)
    if result.scan is not None:
        console.print_scan_report(result.scan)
    console.print_sync_result(result)

    if result.has_errors:
        sys.exit(1)


@cli.command()
@click.option("--scan", "scan_only", is_flag=True, help="Only report what would be adopted")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.option("--verbose", "-v", is_flag=True, help="Show skipped paths")
def adopt(scan_only: bool, yes: bool, verbose: bool) -> None:
    """Add existing checkouts under the content directory to the registry."""
    config, console = _load(verbose)

    try:
        preview = _orchestrator(config, metadata=False).adopt(dry_run=True)
    except ClonesError as e:
        _fail(console, e.message)

    if preview.scan is not None:
        console.print_scan_report(preview.scan)

    if not preview.outcomes:
        console.print_info("No untracked checkouts to adopt")
        return

    for outcome in preview.outcomes:
        console.print_outcome(outcome)

    if scan_only:
        return

    if not yes and not console.confirm(f"Adopt {len(preview.outcomes)} repository(ies)?"):
        console.print("[dim]Cancelled[/dim]")
        return

    orchestrator = _orchestrator(config)
    try:
        result = orchestrator.adopt()
    except ClonesError as e:
        _fail(console, e.message)
    finally:
        _close_metadata(orchestrator)

    console.print_success(f"Adopted {len(result.adopted)} repository(ies)")


@cli.command()
@click.option("--filter", "-f", "pattern", help="owner/name pattern (supports wildcards)")
def status(pattern: Optional[str]) -> None:
    """Show on-disk status of registry entries."""
    config, console = _load()

    try:
        registry = RegistryStore(get_registry_path()).read()
    except ClonesError as e:
        _fail(console, e.message)

    content_dir = get_content_dir(config)
    adapter = GitAdapter()
    rows = [
        (entry, adapter.status(content_dir / entry.owner / entry.name))
        for entry in filter_by_pattern(registry.entries, pattern)
    ]
    console.print_status(rows)


@cli.group()
def config() -> None:
    """Manage the clones configuration file."""
    pass


@config.command("init")
def config_init() -> None:
    """Create a default configuration file."""
    console = create_console()
    path, created = ensure_config_exists()
    if created:
        console.print_success(f"Created configuration: {path}")
    else:
        console.print_info(f"Configuration already exists: {path}")


@config.command("show")
def config_show() -> None:
    """Show the effective configuration and document paths."""
    config_obj, console = _load()
    console.print_config_summary(
        str(get_config_path()),
        str(get_content_dir(config_obj)),
        str(get_registry_path()),
    )
    click.echo(yaml.dump(config_obj.model_dump(mode="json"), default_flow_style=False, sort_keys=False))


@config.command("validate")
@click.argument("file", required=False, type=click.Path(path_type=Path))
def config_validate(file: Optional[Path]) -> None:
    """Validate a configuration file (default: the active one)."""
    console = create_console()
    path = file or get_config_path()
    is_valid, errors = validate_config_file(path)

    if is_valid:
        console.print_success(f"Configuration is valid: {path}")
        return

    for error in errors:
        console.print_error(error)
    sys.exit(1)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
