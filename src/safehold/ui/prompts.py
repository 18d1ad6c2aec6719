"""Interactive prompts for user input."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional

import typer
from InquirerPy import inquirer
from InquirerPy.base.control import Choice

if TYPE_CHECKING:
    from safehold.core.backups import BackupInfo


def confirm_restore(artifact: Path) -> bool:
    """
    Prompt user to confirm overwriting the live database.

    Args:
        artifact: Backup file that will replace the database

    Returns:
        True if user confirms, False otherwise
    """
    return typer.confirm(
        f"\nReplace the current database with {artifact.name}? "
        "The current database is kept if the restore fails.",
        default=False,
    )


def confirm_deletion(count: int) -> bool:
    """Prompt user to confirm deleting backups."""
    return typer.confirm(
        f"\nAre you sure you want to delete {count} backup(s)?",
        default=False,
    )


def select_backup(backups: list["BackupInfo"]) -> Optional["BackupInfo"]:
    """
    Let user pick one backup from a listing.

    Args:
        backups: Backups to choose from, newest first

    Returns:
        The chosen backup, or None if the user cancelled
    """
    choices = [
        Choice(
            value=backup,
            name=f"{backup.taken_at:%Y-%m-%d %H:%M:%S} | {backup.size_human:>10} | {backup.file_name}",
        )
        for backup in backups
    ]
    choices.append(Choice(value=None, name="Cancel"))

    return inquirer.select(
        message="Select a backup to restore:",
        choices=choices,
        cycle=True,
    ).execute()
