"""Tables and panels for backup listings, paths and errors."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from safehold.core.backups import BackupInfo, RestoreResult
from safehold.errors import RestoreFailedUnrecoverable, SafeholdError
from safehold.safety.roots import AppPaths
from safehold.ui.console import format_size


class Reporter:
    """Displays Safehold results."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def display_backups(self, backups: list[BackupInfo], folder: Path) -> None:
        """Display backups in a formatted table, newest first."""
        if not backups:
            self.console.print(f"[yellow]No backups found in {folder}[/yellow]")
            return

        total = sum(b.size_bytes for b in backups)
        summary = Panel(
            f"[bold]Backups:[/bold] {len(backups)}\n"
            f"[bold]Total size:[/bold] {format_size(total)}\n"
            f"[bold]Folder:[/bold] {folder}",
            title="Backup Summary",
            border_style="blue",
        )
        self.console.print(summary)
        self.console.print()

        table = Table(
            title="Backups",
            show_header=True,
            header_style="bold magenta",
        )
        table.add_column("#", style="dim", width=4)
        table.add_column("Taken", style="green")
        table.add_column("Size", justify="right", style="cyan", width=10)
        table.add_column("File", style="white", overflow="ellipsis")

        for i, backup in enumerate(backups, 1):
            table.add_row(
                str(i),
                backup.taken_at.strftime("%Y-%m-%d %H:%M:%S"),
                backup.size_human,
                backup.file_name,
            )

        self.console.print(table)

    def display_restore(self, result: RestoreResult) -> None:
        """Display the outcome of a successful restore."""
        self.console.print(
            f"[green]Database restored from {result.artifact.name}[/green]"
        )
        if result.cleanup_error is not None:
            self.console.print(
                f"[yellow]Note: {result.cleanup_error.message} ({result.cleanup_error.path})[/yellow]"
            )

    def display_paths(self, paths: AppPaths) -> None:
        """Display the application folder layout."""
        table = Table(title="Application Paths", show_header=True, header_style="bold magenta")
        table.add_column("Location", style="cyan")
        table.add_column("Path", style="white")
        table.add_column("Status")

        rows = [
            ("Data root (permitted)", paths.data_root),
            ("Scratch root (permitted)", paths.scratch_root),
            ("Backups", paths.backups_root),
            ("Database", paths.database_path),
        ]
        for label, path in rows:
            status = "[green]exists[/green]" if path.exists() else "[dim]not found[/dim]"
            table.add_row(label, str(path), status)

        self.console.print(table)

    def display_error(self, error: SafeholdError) -> None:
        """Display a structured error. Unrecoverable restores get a prominent panel."""
        if isinstance(error, RestoreFailedUnrecoverable):
            self.console.print(
                Panel(
                    f"[bold]{error.message}[/bold]\n\n"
                    f"The database may be damaged. Copy this file back over the database\n"
                    f"before using the application again:\n\n"
                    f"  [cyan]{error.safety_copy}[/cyan]",
                    title="RESTORE FAILED - MANUAL RECOVERY REQUIRED",
                    border_style="bold red",
                )
            )
            return

        self.console.print(f"[red]{error.code}: {error.message}[/red]")
        if error.stage:
            self.console.print(f"[dim]Stage: {error.stage}[/dim]")
