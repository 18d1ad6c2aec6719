"""Safehold CLI - Main entry point."""

from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass
from pathlib import Path
from typing import ContextManager, NoReturn, Optional

import typer
from rich.panel import Panel
from rich.table import Table

from safehold import __version__
from safehold.config import (
    DEFAULT_CONFIG_TEMPLATE,
    SECTION_TYPES,
    Config,
    get_config_paths,
    load_config,
    load_config_from_file,
)
from safehold.core.backups import ArtifactNaming, BackupManager
from safehold.core.exporter import (
    backup_to_dict,
    backups_to_dict,
    export_backups,
    restore_to_dict,
    to_json,
)
from safehold.core.files import GatedFiles
from safehold.errors import RestoreFailedUnrecoverable, SafeholdError
from safehold.platform.detect import get_platform_info
from safehold.safety.gatekeeper import Intent, PathGatekeeper
from safehold.safety.roots import AppPaths
from safehold.ui.console import create_console, print_banner, setup_logging
from safehold.ui.prompts import confirm_deletion, confirm_restore, select_backup
from safehold.ui.report import Reporter

app = typer.Typer(
    name="safehold",
    help="Confined file access and safe database backups.",
    no_args_is_help=True,
)
console = create_console()


class State:
    """Global state container for CLI."""

    def __init__(self) -> None:
        self.config: Config = Config()  # Default until loaded


state = State()


@dataclass
class Services:
    """Everything a command needs, built from the active config."""

    paths: AppPaths
    gatekeeper: PathGatekeeper
    files: GatedFiles
    backups: BackupManager


def _build_services() -> Services:
    """Resolve the folder layout and wire the gatekeeper and backup manager."""
    config = state.config
    paths = AppPaths.from_config(config)
    paths.ensure()
    gatekeeper = PathGatekeeper(paths.permitted_roots, strict_roots=config.safety.strict_roots)
    return Services(
        paths=paths,
        gatekeeper=gatekeeper,
        files=GatedFiles(gatekeeper, records_root=paths.records_root),
        backups=BackupManager(
            paths,
            ArtifactNaming(prefix=config.backups.prefix, extension=config.backups.extension),
            retention=config.backups.retention,
            use_trash=config.backups.trash,
        ),
    )


def _fail(error: SafeholdError, as_json: bool = False) -> NoReturn:
    """Report a structured error and exit. Unrecoverable restores exit with 2."""
    if as_json:
        typer.echo(to_json({"error": error.to_dict()}))
    else:
        Reporter(console).display_error(error)
    code = 2 if isinstance(error, RestoreFailedUnrecoverable) else 1
    raise typer.Exit(code) from error


def _usage_error(message: str, hint: str, as_json: bool = False) -> NoReturn:
    """Report a bad option combination and exit with 1."""
    if as_json:
        typer.echo(
            to_json({"error": {"code": "UsageError", "message": message, "path": None, "stage": "options"}})
        )
    else:
        console.print(f"[red]{message}[/red]")
        console.print(f"[dim]{hint}[/dim]")
    raise typer.Exit(1)


def _services_or_exit(as_json: bool = False) -> Services:
    try:
        return _build_services()
    except SafeholdError as e:
        _fail(e, as_json)


def _status(message: str, quiet: bool) -> ContextManager[object]:
    """Spinner for long copies, suppressed when stdout carries JSON."""
    return nullcontext() if quiet else console.status(message)


def _resolve_artifact(argument: str, services: Services) -> Path:
    """Accept either a path or a bare artifact name from the backups folder."""
    candidate = Path(argument)
    if not candidate.exists() and candidate.name == argument:
        return services.paths.backups_root / argument
    return candidate


# Shared CLI option defaults
JSON_OPTION = typer.Option(
    False,
    "--json",
    help="Print machine-readable JSON instead of tables",
)

YES_OPTION = typer.Option(
    False,
    "--yes",
    "-y",
    help="Do not ask for confirmation",
)


@app.command()
def info() -> None:
    """Show platform information and application folders."""
    print_banner(console)

    platform_info = get_platform_info()

    console.print("[bold]System Information[/bold]\n")
    console.print(f"  Platform: {platform_info.name}")
    console.print(f"  Variant:  {platform_info.variant}")
    console.print(f"  Home:     {platform_info.home_dir}")
    if platform_info.is_wsl:
        console.print(f"  WSL:      Yes ({platform_info.wsl_distro})")
    console.print()

    services = _services_or_exit()
    Reporter(console).display_paths(services.paths)

    console.print(f"\n[dim]Safehold v{__version__}[/dim]")


@app.command()
def check(
    path: str = typer.Argument(..., help="Path to validate"),
    write: bool = typer.Option(
        False,
        "--write",
        "-w",
        help="Validate for writing (target may not exist yet)",
    ),
    as_json: bool = JSON_OPTION,
) -> None:
    """Check whether a path is inside the permitted folders."""
    services = _services_or_exit(as_json)
    intent = Intent.WRITE if write else Intent.READ

    try:
        validated = services.gatekeeper.validate(path, intent)
    except SafeholdError as e:
        _fail(e, as_json)

    if as_json:
        typer.echo(to_json({"path": str(validated), "intent": intent.value}))
    else:
        console.print(f"[green]Permitted ({intent.value}):[/green] {validated}")


# Files subcommand group
files_app = typer.Typer(
    name="files",
    help="Read, write and list files inside the permitted folders.",
    no_args_is_help=True,
)
app.add_typer(files_app)


@files_app.command("ls")
def files_ls(
    directory: Optional[str] = typer.Argument(
        None,
        help="Directory to list (default: the records folder)",
    ),
    pattern: Optional[str] = typer.Option(
        None,
        "--pattern",
        "-p",
        help="Only list file names containing this text",
    ),
    as_json: bool = JSON_OPTION,
) -> None:
    """List files in a directory."""
    services = _services_or_exit(as_json)
    try:
        folder = directory if directory else str(services.files.default_records_path())
        found = services.files.list_files(folder, pattern)
    except SafeholdError as e:
        _fail(e, as_json)

    if as_json:
        typer.echo(to_json({"directory": folder, "files": [str(p) for p in found]}))
        return

    if not found:
        console.print("[dim]No files found.[/dim]")
        return
    for path in found:
        console.print(str(path))


@files_app.command("cat")
def files_cat(
    path: str = typer.Argument(..., help="File to print"),
) -> None:
    """Print a text file."""
    services = _services_or_exit()
    try:
        content = services.files.read_text(path)
    except SafeholdError as e:
        _fail(e)
    typer.echo(content, nl=False)


@files_app.command("write")
def files_write(
    path: str = typer.Argument(..., help="File to write"),
    content: str = typer.Argument(..., help="Text to write"),
) -> None:
    """Write text to a file, replacing its contents."""
    services = _services_or_exit()
    try:
        written = services.files.write_text(path, content)
    except SafeholdError as e:
        _fail(e)
    console.print(f"[green]Wrote[/green] {written}")


@files_app.command("mkdir")
def files_mkdir(
    path: str = typer.Argument(..., help="Folder to create"),
) -> None:
    """Create a folder and any missing parents."""
    services = _services_or_exit()
    try:
        created = services.files.create_folder(path)
    except SafeholdError as e:
        _fail(e)
    console.print(f"[green]Created[/green] {created}")


# Backup subcommand group
backup_app = typer.Typer(
    name="backup",
    help="Create, list, restore and delete database backups.",
    no_args_is_help=True,
)
app.add_typer(backup_app)


@backup_app.command("create")
def backup_create(
    prune: bool = typer.Option(
        False,
        "--prune",
        help="Apply the retention setting after creating the backup",
    ),
    as_json: bool = JSON_OPTION,
) -> None:
    """Back up the database."""
    services = _services_or_exit(as_json)
    try:
        with _status("Creating backup...", as_json):
            backup = services.backups.create()
        removed = services.backups.prune() if prune else []
    except SafeholdError as e:
        _fail(e, as_json)

    if as_json:
        data = backup_to_dict(backup)
        data["pruned"] = [backup_to_dict(b) for b in removed]
        typer.echo(to_json(data))
        return

    console.print(f"[green]Backup created:[/green] {backup.path} ({backup.size_human})")
    if removed:
        console.print(f"[dim]Removed {len(removed)} old backup(s)[/dim]")


@backup_app.command("list")
def backup_list(
    as_json: bool = JSON_OPTION,
    export: Optional[str] = typer.Option(
        None,
        "--export",
        "-e",
        help="Write the listing to a file inside the permitted folders",
    ),
    export_format: str = typer.Option(
        "json",
        "--format",
        "-f",
        help="Export format: json or csv",
    ),
) -> None:
    """List backups, newest first."""
    services = _services_or_exit(as_json)
    folder = services.paths.backups_root
    try:
        backups = services.backups.list()
    except SafeholdError as e:
        _fail(e, as_json)

    if export:
        if export_format not in ("json", "csv"):
            _usage_error(f"Invalid export format: {export_format}", "Valid options: json, csv", as_json)
        try:
            written = export_backups(backups, folder, Path(export), services.files, export_format)  # type: ignore[arg-type]
        except SafeholdError as e:
            _fail(e, as_json)
        if not as_json:
            console.print(f"[green]Exported {len(backups)} backup(s) to[/green] {written}")

    if as_json:
        typer.echo(to_json(backups_to_dict(backups, folder)))
    elif not export:
        Reporter(console).display_backups(backups, folder)


@backup_app.command("restore")
def backup_restore(
    artifact: Optional[str] = typer.Argument(
        None,
        help="Backup file (path or file name). Omit to pick from a list.",
    ),
    yes: bool = YES_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Replace the database with a backup. The current database is kept if anything fails."""
    services = _services_or_exit(as_json)

    if artifact is None:
        if as_json:
            _usage_error(
                "A backup file is required with --json",
                "Pass the backup file name or path, or drop --json to pick one",
                as_json,
            )
        try:
            backups = services.backups.list()
        except SafeholdError as e:
            _fail(e)
        if not backups:
            console.print(f"[yellow]No backups found in {services.paths.backups_root}[/yellow]")
            raise typer.Exit(1)
        chosen = select_backup(backups)
        if chosen is None:
            console.print("[yellow]Aborted.[/yellow]")
            raise typer.Exit(0)
        source = chosen.path
    else:
        source = _resolve_artifact(artifact, services)

    if not yes and not as_json and not confirm_restore(source):
        console.print("[yellow]Aborted.[/yellow]")
        raise typer.Exit(0)

    try:
        with _status("Restoring database...", as_json):
            result = services.backups.restore(source)
    except SafeholdError as e:
        _fail(e, as_json)

    if as_json:
        typer.echo(to_json(restore_to_dict(result)))
    else:
        Reporter(console).display_restore(result)


@backup_app.command("delete")
def backup_delete(
    artifact: str = typer.Argument(..., help="Backup file (path or file name)"),
    yes: bool = YES_OPTION,
) -> None:
    """Delete a backup."""
    services = _services_or_exit()
    target = _resolve_artifact(artifact, services)

    if not yes and not confirm_deletion(1):
        console.print("[yellow]Aborted.[/yellow]")
        raise typer.Exit(0)

    try:
        deleted = services.backups.delete(target)
    except SafeholdError as e:
        _fail(e)
    console.print(f"[green]Deleted[/green] {deleted}")


@backup_app.command("prune")
def backup_prune(
    keep: Optional[int] = typer.Option(
        None,
        "--keep",
        "-k",
        help="Number of backups to keep (default: backups.retention)",
        min=0,
    ),
    yes: bool = YES_OPTION,
) -> None:
    """Delete old backups beyond the retention count."""
    services = _services_or_exit()
    keep_count = state.config.backups.retention if keep is None else keep

    try:
        excess = services.backups.list()[keep_count:] if keep_count > 0 else []
    except SafeholdError as e:
        _fail(e)

    if not excess:
        console.print("[green]Nothing to prune.[/green]")
        raise typer.Exit(0)

    if not yes and not confirm_deletion(len(excess)):
        console.print("[yellow]Aborted.[/yellow]")
        raise typer.Exit(0)

    try:
        removed = services.backups.prune(keep_count)
    except SafeholdError as e:
        _fail(e)
    console.print(f"[green]Removed {len(removed)} backup(s), kept {keep_count}[/green]")


@backup_app.command("path")
def backup_path() -> None:
    """Print the backups folder."""
    services = _services_or_exit()
    try:
        folder = services.backups.backups_path()
    except SafeholdError as e:
        _fail(e)
    typer.echo(str(folder))


def _print_config_locations(xdg_path: Path, cwd_path: Path, *, verbose: bool = False) -> None:
    """Print config file locations and their status.

    Args:
        xdg_path: Path to the global XDG config file.
        cwd_path: Path to the local CWD config file.
        verbose: If True, use detailed format with spacing (for config_path).
                 If False, use compact format (for config_show).
    """
    xdg_status = "[green]exists[/green]" if xdg_path.exists() else "[dim]not found[/dim]"
    if verbose:
        console.print("[bold]Config file locations:[/bold]\n")
        console.print(f"  Global (XDG): {xdg_path}")
        console.print(f"                {xdg_status}\n")

        cwd_status = (
            "[green]exists (overrides global)[/green]"
            if cwd_path.exists()
            else "[dim]not found[/dim]"
        )
        console.print(f"  Local (CWD):  {cwd_path}")
        console.print(f"                {cwd_status}")
    else:
        console.print("\n[bold]Config locations:[/bold]")
        console.print(f"  Global: {xdg_path} ({xdg_status})")

        cwd_status = "[green]exists[/green]" if cwd_path.exists() else "[dim]not found[/dim]"
        console.print(f"  Local:  {cwd_path} ({cwd_status})")


# Config subcommand group
config_app = typer.Typer(
    name="config",
    help="Manage Safehold configuration.",
    no_args_is_help=True,
)
app.add_typer(config_app)


@config_app.command("init")
def config_init(
    global_config: bool = typer.Option(
        True,
        "--global/--local",
        help="Create in XDG config (--global) or current directory (--local)",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing config file",
    ),
) -> None:
    """Generate a default configuration file with comments."""
    xdg_path, cwd_path = get_config_paths()
    target = xdg_path if global_config else cwd_path

    if target.exists() and not force:
        console.print(f"[yellow]Config already exists: {target}[/yellow]")
        console.print("[dim]Use --force to overwrite[/dim]")
        raise typer.Exit(1)

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(DEFAULT_CONFIG_TEMPLATE)
    except OSError as e:
        console.print(f"[red]Permission denied: {target}[/red]")
        console.print(f"[dim]Check write permissions for {target.parent}[/dim]")
        raise typer.Exit(1) from e

    location = "global" if global_config else "local"
    console.print(f"[green]Created {location} config:[/green] {target}")


@config_app.command("show")
def config_show(
    resolved: bool = typer.Option(
        True,
        "--resolved/--raw",
        help="Show merged config (--resolved) or raw file (--raw)",
    ),
) -> None:
    """Display the active configuration and its source."""
    config = state.config
    xdg_path, cwd_path = get_config_paths()

    source_text = str(config._source) if config._source else "[dim]defaults only[/dim]"
    console.print(
        Panel.fit(
            f"[bold]Active config:[/bold] {source_text}",
            title="Configuration Source",
        )
    )

    if resolved:
        table = Table(title="Resolved Configuration", show_header=True)
        table.add_column("Section", style="cyan")
        table.add_column("Key", style="green")
        table.add_column("Value")

        for section_name in SECTION_TYPES:
            section = getattr(config, section_name)
            for key, value in vars(section).items():
                if not key.startswith("_"):
                    table.add_row(section_name, key, str(value))

        console.print(table)
    else:
        if config._source and config._source.exists():
            console.print(config._source.read_text())
        else:
            console.print("[dim]No config file found[/dim]")

    _print_config_locations(xdg_path, cwd_path, verbose=False)


@config_app.command("path")
def config_path() -> None:
    """Show configuration file locations and status."""
    xdg_path, cwd_path = get_config_paths()
    _print_config_locations(xdg_path, cwd_path, verbose=True)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"Safehold v{__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (overrides default locations)",
        exists=True,
        readable=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
) -> None:
    """Safehold - Confined file access and safe database backups."""
    setup_logging(verbose=verbose)

    try:
        state.config = load_config_from_file(config_file) if config_file else load_config()
    except ValueError as e:
        console.print(f"[red]Config error: {e}[/red]")
        raise typer.Exit(1) from e


if __name__ == "__main__":
    app()
