"""Rich console utilities for output formatting."""

from __future__ import annotations

import logging
import platform

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.text import Text

from safehold import __version__


def create_console() -> Console:
    """Create a configured Rich console."""
    # Windows-specific console settings
    if platform.system() == "Windows":
        return Console(legacy_windows=True, emoji=False)
    return Console()


def setup_logging(verbose: bool = False) -> None:
    """Route library logging to stderr so stdout stays clean for --json output."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose, rich_tracebacks=True)],
        force=True,
    )


def print_banner(console: Console) -> None:
    """Print the Safehold banner."""
    banner_text = Text()
    banner_text.append("SAFE", style="bold green")
    banner_text.append("HOLD", style="bold cyan")

    tagline = Text("Confined files and safe database backups", style="dim italic")

    panel = Panel(
        Text.assemble(banner_text, "\n", tagline),
        border_style="blue",
        padding=(0, 2),
        subtitle=f"v{__version__}",
        subtitle_align="right",
    )

    console.print(panel)
    console.print()


def format_size(size_bytes: int) -> str:
    """Convert bytes to human-readable format."""
    size = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} PB"
