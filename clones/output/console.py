# clones Console Output
# Rich-based console output for user-friendly display

from typing import Iterable, Optional

from rich.console import Console as RichConsole
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from clones.git.operations import RepoStatus
from clones.registry.local_state import LocalState
from clones.registry.schema import RegistryEntry
from clones.sync.engine import SyncResult
from clones.sync.outcome import SKIP_DIRTY, EntryOutcome, OutcomeKind
from clones.sync.scanner import ScanResult

_ICONS = {
    OutcomeKind.ADOPTED: "[green]+[/green]",
    OutcomeKind.CLONED: "[cyan]↓[/cyan]",
    OutcomeKind.UPDATED: "[green]✓[/green]",
    OutcomeKind.REFRESHED: "[blue]↻[/blue]",
    OutcomeKind.SKIPPED: "[dim]○[/dim]",
    OutcomeKind.ERROR: "[red]✗[/red]",
}


class Console:
    """
    Console output manager using Rich.

    Provides formatted output for registry and sync operations.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True):
        """
        Initialize console.

        Args:
            verbose: Enable verbose output.
            colored: Enable colored output.
        """
        self.verbose = verbose
        self._console = RichConsole(force_terminal=colored, no_color=not colored)

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        """Print error message."""
        self._console.print(f"[red]Error:[/red] {escape(message)}")

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        self._console.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def print_success(self, message: str) -> None:
        """Print success message."""
        self._console.print(f"[green]{escape(message)}[/green]")

    def print_info(self, message: str) -> None:
        """Print info message."""
        self._console.print(f"[blue]{escape(message)}[/blue]")

    def print_issues(self, issues: Iterable[str]) -> None:
        """Print document normalization issues (verbose only)."""
        if not self.verbose:
            return
        for issue in issues:
            self.print_warning(issue)

    def print_outcome(self, outcome: EntryOutcome) -> None:
        """Print a single entry outcome as it completes."""
        if outcome.kind == OutcomeKind.SKIPPED and not self.verbose:
            # Routine skips only matter in verbose mode, except dirty trees
            if outcome.reason != SKIP_DIRTY:
                return

        icon = _ICONS.get(outcome.kind, "?")
        name = escape(outcome.full_name)
        line = f"  {icon} [bold]{name}[/bold] [dim]{outcome.phase.value}[/dim]"

        if outcome.kind == OutcomeKind.ERROR:
            line += f": [red]{escape(outcome.detail or 'failed')}[/red]"
        elif outcome.detail:
            line += f" ({escape(outcome.detail)})"
        elif outcome.kind == OutcomeKind.UPDATED and outcome.commits:
            commits = "unknown commits" if outcome.commits < 0 else f"{outcome.commits} commits"
            line += f" ({commits})"

        self._console.print(line)

    def print_sync_result(self, result: SyncResult) -> None:
        """
        Print sync result summary.

        Args:
            result: Sync result to display.
        """
        counts = result.counts
        lines = [
            f"Adopted: {counts[OutcomeKind.ADOPTED]}",
            f"Cloned: {counts[OutcomeKind.CLONED]}",
            f"Updated: {counts[OutcomeKind.UPDATED]}",
            f"Skipped: {counts[OutcomeKind.SKIPPED]}",
            f"Errors: {counts[OutcomeKind.ERROR]}",
        ]
        if counts[OutcomeKind.REFRESHED]:
            lines.insert(3, f"Refreshed: {counts[OutcomeKind.REFRESHED]}")

        status_text = "Dry run completed (no changes made)" if result.dry_run else "Sync completed"
        if result.cancelled:
            status_text += " (cancelled)"

        self._console.print()

        if result.success:
            self._console.print(
                Panel(
                    f"[green]{status_text}[/green]\n" + "\n".join(lines),
                    title="Summary",
                    border_style="green" if not result.skipped else "yellow",
                )
            )
        else:
            self._console.print(
                Panel(
                    f"[red]{status_text} with errors[/red]\n" + "\n".join(lines),
                    title="Summary",
                    border_style="red",
                )
            )
            for outcome in result.outcomes:
                if outcome.is_error:
                    self._console.print(f"  [red]✗[/red] {escape(outcome.full_name)}: {escape(outcome.detail or '')}")

    def print_entries(self, entries: list[RegistryEntry], local_state: Optional[LocalState] = None) -> None:
        """
        Print registry entries as a table.

        Args:
            entries: Entries to list.
            local_state: Optional local state for the last-synced column.
        """
        if not entries:
            self._console.print("[dim]No repositories in registry[/dim]")
            return

        table = Table(show_header=True, header_style="bold")
        table.add_column("Repository")
        table.add_column("Host", style="dim")
        table.add_column("Tags")
        table.add_column("Strategy", style="dim")
        table.add_column("Last synced", style="dim")
        table.add_column("Description", style="dim")

        for entry in entries:
            state = local_state.get(entry.id) if local_state else None
            name = escape(entry.full_name)
            if not entry.managed:
                name += " [dim](unmanaged)[/dim]"
            table.add_row(
                name,
                entry.host,
                ", ".join(entry.tags or ()),
                entry.update_strategy.value,
                (state.last_synced_at if state else None) or "never",
                escape(entry.description or ""),
            )

        self._console.print(table)

    def print_status(self, rows: list[tuple[RegistryEntry, RepoStatus]]) -> None:
        """Print on-disk status for entries."""
        if not rows:
            self._console.print("[dim]No repositories to display[/dim]")
            return

        table = Table(show_header=True, header_style="bold")
        table.add_column("Repository")
        table.add_column("Branch")
        table.add_column("Upstream", style="dim")
        table.add_column("Ahead/Behind")
        table.add_column("State")

        for entry, status in rows:
            if not status.exists:
                state = "[red]missing[/red]"
            elif not status.is_git_repo:
                state = "[red]not a repository[/red]"
            elif status.is_dirty:
                state = "[yellow]dirty[/yellow]"
            else:
                state = "[green]clean[/green]"

            branch = "[yellow](detached)[/yellow]" if status.is_detached else (status.current_branch or "")
            ahead_behind = f"+{status.ahead} -{status.behind}" if status.is_git_repo else ""
            table.add_row(escape(entry.full_name), branch, status.tracking or "", ahead_behind, state)

        self._console.print(table)

    def print_scan_report(self, scan: ScanResult) -> None:
        """Print what the filesystem scan found."""
        self._console.print(f"Discovered {len(scan.discovered)} checkout(s)")
        if not scan.skipped:
            return

        if self.verbose:
            for skipped in scan.skipped:
                self._console.print(f"  [dim]○ {escape(str(skipped.path))} ({escape(skipped.reason)})[/dim]")
        else:
            self._console.print(f"[dim]Skipped {len(scan.skipped)} path(s), use --verbose for details[/dim]")

    def print_config_summary(self, config_path: str, content_dir: str, registry_path: str) -> None:
        """Print configuration summary."""
        self._console.print(
            Panel(
                f"Config: {config_path}\n" f"Content: {content_dir}\n" f"Registry: {registry_path}",
                title="clones Configuration",
                border_style="blue",
            )
        )

    def confirm(self, message: str, default: bool = False) -> bool:
        """
        Ask for confirmation.

        Args:
            message: Confirmation message.
            default: Default value if user just presses enter.

        Returns:
            True if confirmed.
        """
        suffix = " [Y/n]" if default else " [y/N]"
        response = self._console.input(f"{message}{escape(suffix)}: ").strip().lower()

        if not response:
            return default

        return response in ("y", "yes")


def create_console(*, verbose: bool = False, colored: bool = True) -> Console:
    """
    Create a console instance.

    Args:
        verbose: Enable verbose output.
        colored: Enable colored output.

    Returns:
        Console instance.
    """
    return Console(verbose=verbose, colored=colored)
