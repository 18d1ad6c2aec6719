"""Gated file operations and database backups."""

from __future__ import annotations

from .backups import ArtifactNaming, BackupInfo, BackupManager, RestoreResult, RestoreState
from .files import GatedFiles

__all__ = [
    "ArtifactNaming",
    "BackupInfo",
    "BackupManager",
    "GatedFiles",
    "RestoreResult",
    "RestoreState",
]
