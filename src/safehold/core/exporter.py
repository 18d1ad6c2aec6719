"""Serialize backup listings and errors to JSON and CSV."""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from safehold.core.backups import BackupInfo, RestoreResult
    from safehold.core.files import GatedFiles

ExportFormat = Literal["json", "csv"]

CSV_FIELDS = ["file_name", "path", "timestamp", "size_bytes", "size_human", "created_at"]


def backup_to_dict(backup: BackupInfo) -> dict[str, Any]:
    """Convert BackupInfo to serializable dict."""
    return {
        "file_name": backup.file_name,
        "path": str(backup.path),
        "timestamp": backup.timestamp,
        "size_bytes": backup.size_bytes,
        "size_human": backup.size_human,
        "created_at": backup.created_at.isoformat(),
    }


def backups_to_dict(backups: list[BackupInfo], folder: Path) -> dict[str, Any]:
    """Convert a backup listing to serializable dict."""
    return {
        "type": "backups",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "folder": str(folder),
        "count": len(backups),
        "total_size_bytes": sum(b.size_bytes for b in backups),
        "backups": [backup_to_dict(b) for b in backups],
    }


def restore_to_dict(result: RestoreResult) -> dict[str, Any]:
    """Convert RestoreResult to serializable dict."""
    return {
        "type": "restore",
        "artifact": str(result.artifact),
        "database": str(result.database),
        "state": result.state.value,
        "states": [s.value for s in result.states],
        "cleanup_error": result.cleanup_error.to_dict() if result.cleanup_error else None,
    }


def to_json(data: dict[str, Any], *, indent: int = 2) -> str:
    return json.dumps(data, indent=indent, ensure_ascii=False)


def backups_to_csv(backups: list[BackupInfo]) -> str:
    """Render a backup listing as CSV, one row per artifact."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDS, lineterminator="\n")
    writer.writeheader()
    for backup in backups:
        writer.writerow(backup_to_dict(backup))
    return buffer.getvalue()


def export_backups(
    backups: list[BackupInfo],
    folder: Path,
    output_path: Path,
    files: GatedFiles,
    format: ExportFormat = "json",
) -> Path:
    """
    Export a backup listing to a file inside the permitted roots.

    Args:
        backups: Listing to export
        folder: Backups folder the listing came from
        output_path: Destination file, validated for write
        files: Gated file operations used for the write
        format: Output format ("json" or "csv")

    Returns:
        The validated path that was written

    Raises:
        ValueError: If format is not supported
    """
    if format == "json":
        content = to_json(backups_to_dict(backups, folder))
    elif format == "csv":
        content = backups_to_csv(backups)
    else:
        raise ValueError(f"Unsupported export format: {format}")
    return files.write_text(output_path, content)
