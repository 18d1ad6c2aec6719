"""Database backups: timestamped snapshots and restore with rollback."""

from __future__ import annotations

import logging
import os
import re
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Union

from send2trash import send2trash

from safehold.errors import (
    AccessDenied,
    BackupFailed,
    CleanupFailed,
    InvalidBackup,
    NotFound,
    RestoreFailed,
    RestoreFailedUnrecoverable,
    SafeholdError,
    SourceMissing,
    StorageIOError,
)
from safehold.safety.roots import AppPaths
from safehold.ui.console import format_size

logger = logging.getLogger(__name__)

# Fixed width, zero padded: lexicographic order is chronological order
TIMESTAMP_FORMAT = "%Y-%m-%d-%H%M%S"
TIMESTAMP_PATTERN = r"\d{4}-\d{2}-\d{2}-\d{6}"

CopyFunc = Callable[[Path, Path], Any]
RemoveFunc = Callable[[Path], Any]
PathArg = Union[str, Path]


class RestoreState(str, Enum):
    """Stages a restore passes through."""

    IDLE = "idle"
    SAFETY_COPIED = "safety_copied"
    RESTORED = "restored"
    ROLLED_BACK = "rolled_back"
    FAILED_UNRECOVERABLE = "failed_unrecoverable"


@dataclass(frozen=True)
class ArtifactNaming:
    """Naming convention ``<prefix>-<YYYY-MM-DD-HHMMSS>.<extension>``."""

    prefix: str = "safehold-backup"
    extension: str = "db"

    @property
    def pattern(self) -> re.Pattern[str]:
        return re.compile(
            rf"^{re.escape(self.prefix)}-({TIMESTAMP_PATTERN})\.{re.escape(self.extension)}$"
        )

    def name_for(self, moment: datetime) -> str:
        return f"{self.prefix}-{moment.strftime(TIMESTAMP_FORMAT)}.{self.extension}"

    def timestamp_of(self, file_name: str) -> Optional[str]:
        """Embedded timestamp, or None if the name is not an artifact name."""
        match = self.pattern.match(file_name)
        return match.group(1) if match else None

    def matches(self, file_name: str) -> bool:
        return self.timestamp_of(file_name) is not None


@dataclass
class BackupInfo:
    """A backup artifact on disk."""

    path: Path
    timestamp: str
    size_bytes: int
    created_at: datetime

    @property
    def file_name(self) -> str:
        return self.path.name

    @property
    def size_human(self) -> str:
        """Return human-readable size."""
        return format_size(self.size_bytes)

    @property
    def taken_at(self) -> datetime:
        """Moment encoded in the file name."""
        return datetime.strptime(self.timestamp, TIMESTAMP_FORMAT)


@dataclass
class RestoreResult:
    """Outcome of a successful restore."""

    artifact: Path
    database: Path
    states: list[RestoreState] = field(default_factory=list)
    cleanup_error: Optional[CleanupFailed] = None

    @property
    def state(self) -> RestoreState:
        return self.states[-1] if self.states else RestoreState.IDLE

    @property
    def cleaned_up(self) -> bool:
        return self.cleanup_error is None


def _copy_file(src: Path, dst: Path) -> None:
    shutil.copyfile(src, dst)


def _remove_file(path: Path) -> None:
    path.unlink()


class BackupManager:
    """Creates, lists, restores and deletes database backups.

    Copy and remove primitives are injectable so failure handling can be
    exercised without a faulty disk.
    """

    def __init__(
        self,
        paths: AppPaths,
        naming: Optional[ArtifactNaming] = None,
        *,
        retention: int = 0,
        use_trash: bool = False,
        copy_file: CopyFunc = _copy_file,
        remove_file: RemoveFunc = _remove_file,
    ):
        self.paths = paths
        self.naming = naming or ArtifactNaming()
        self.retention = retention
        self.use_trash = use_trash
        self._copy = copy_file
        self._remove = remove_file

    def backups_path(self) -> Path:
        """Backups folder, created on demand."""
        root = self.paths.backups_root
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(
                f"Failed to create backups folder: {e}", path=root, stage="setup"
            ) from e
        return root

    def create(self, moment: Optional[datetime] = None) -> BackupInfo:
        """
        Copy the live database into a new timestamped artifact.

        Args:
            moment: Timestamp to embed in the name (default: now, local time)

        Returns:
            The new artifact

        Raises:
            SourceMissing: If the database file does not exist
            StorageIOError: If the copy fails or the artifact name is taken
        """
        database = self.paths.database_path
        if not database.is_file():
            raise SourceMissing(
                f"Database file not found: {database}", path=database, stage="create"
            )

        root = self.backups_path()
        name = self.naming.name_for(moment or datetime.now())
        destination = root / name
        if destination.exists():
            raise StorageIOError(
                f"Backup already exists: {destination}", path=destination, stage="create"
            )

        # Copy under a hidden name first so a half-written file never looks like an artifact
        partial = root / f".{name}.partial"
        try:
            self._copy(database, partial)
            os.replace(partial, destination)
        except OSError as e:
            self._discard_partial(partial)
            raise StorageIOError(
                f"Failed to create backup: {e}", path=destination, stage="create"
            ) from e

        logger.info("Created backup %s", destination)
        return self._describe(destination)

    def list(self) -> list[BackupInfo]:
        """
        List artifacts in the backups folder, newest first.

        Raises:
            StorageIOError: If the backups folder exists but cannot be read
        """
        root = self.paths.backups_root
        if not root.exists():
            return []

        try:
            with os.scandir(root) as it:
                entries = list(it)
        except OSError as e:
            raise StorageIOError(
                f"Failed to read backups folder: {e}", path=root, stage="list"
            ) from e

        backups: list[BackupInfo] = []
        for entry in entries:
            timestamp = self.naming.timestamp_of(entry.name)
            if timestamp is None:
                continue
            try:
                if not entry.is_file():
                    continue
                stat = entry.stat()
            except OSError as e:
                logger.warning("Skipping unreadable backup %s: %s", entry.path, e)
                continue
            backups.append(
                BackupInfo(
                    path=Path(entry.path),
                    timestamp=timestamp,
                    size_bytes=stat.st_size,
                    created_at=_creation_time(stat),
                )
            )

        backups.sort(key=lambda b: b.timestamp, reverse=True)
        return backups

    def restore(self, artifact: PathArg) -> RestoreResult:
        """
        Replace the live database with an artifact, rolling back on failure.

        The live database is copied aside first. If overwriting it fails the
        copy is put back; if that fails too the copy is left on disk and its
        location is reported. A safety copy left by an earlier failed restore
        blocks further restores until it has been dealt with.

        Raises:
            InvalidBackup: If the artifact is not an existing backup file
            BackupFailed: If the safety copy could not be taken, or one already exists
            RestoreFailed: If the overwrite failed and the database was rolled back
            RestoreFailedUnrecoverable: If the overwrite and the rollback both failed
        """
        source = Path(artifact)
        database = self.paths.database_path
        safety_copy = self.paths.safety_copy_path

        if not source.is_file() or source.suffix != f".{self.naming.extension}":
            raise InvalidBackup(f"Not a backup file: {source}", path=source, stage="restore")
        if database.exists() and source.resolve() == database.resolve():
            raise InvalidBackup(
                "Cannot restore the database from itself", path=source, stage="restore"
            )
        if safety_copy.exists() or safety_copy.is_symlink():
            logger.warning("Safety copy from an earlier restore is still present: %s", safety_copy)
            raise BackupFailed(
                f"A safety copy from an earlier restore still exists at {safety_copy}. "
                "Recover from it or remove it before restoring again",
                path=safety_copy,
                stage="safety-copy",
            )

        result = RestoreResult(artifact=source, database=database, states=[RestoreState.IDLE])

        try:
            self._copy(database, safety_copy)
        except OSError as e:
            raise BackupFailed(
                f"Failed to back up current database before restore: {e}",
                path=database,
                stage="safety-copy",
            ) from e
        result.states.append(RestoreState.SAFETY_COPIED)

        try:
            self._copy(source, database)
        except OSError as e:
            logger.warning("Restore from %s failed, rolling back: %s", source, e)
            self._roll_back(safety_copy, database, e, result.states)
            result.states.append(RestoreState.ROLLED_BACK)
            raise RestoreFailed(
                f"Failed to restore backup (database was preserved): {e}",
                path=source,
                stage="overwrite",
                states=result.states,
                cleanup_error=self._discard_safety_copy(safety_copy),
            ) from e

        result.states.append(RestoreState.RESTORED)
        result.cleanup_error = self._discard_safety_copy(safety_copy)
        logger.info("Restored database from %s", source)
        return result

    def delete(self, artifact: PathArg) -> Path:
        """
        Delete one artifact from the backups folder.

        Raises:
            AccessDenied: If the path is outside the backups folder or not an artifact name
            NotFound: If the artifact does not exist
            StorageIOError: If the deletion itself fails
        """
        target = self._checked_artifact(artifact)

        try:
            if self.use_trash:
                send2trash(str(target))
            else:
                self._remove(target)
        except OSError as e:
            raise StorageIOError(
                f"Failed to delete backup: {e}", path=target, stage="delete"
            ) from e

        logger.info("Deleted backup %s", target)
        return target

    def prune(self, keep: Optional[int] = None) -> list[BackupInfo]:
        """
        Delete all but the newest ``keep`` artifacts.

        Args:
            keep: Number of artifacts to keep (default: configured retention, 0 keeps all)

        Returns:
            The artifacts that were deleted

        Raises:
            StorageIOError: If a deletion fails. Artifacts removed before it are logged
        """
        keep = self.retention if keep is None else keep
        if keep <= 0:
            return []

        removed: list[BackupInfo] = []
        for backup in self.list()[keep:]:
            try:
                self.delete(backup.path)
            except SafeholdError:
                if removed:
                    logger.warning(
                        "Prune stopped after removing %d backup(s): %s",
                        len(removed),
                        ", ".join(b.file_name for b in removed),
                    )
                raise
            removed.append(backup)
        return removed

    def _checked_artifact(self, artifact: PathArg) -> Path:
        root = self.paths.backups_root.resolve()
        try:
            candidate = Path(artifact).resolve()
        except (OSError, RuntimeError, ValueError) as e:
            raise AccessDenied(
                f"Can only delete backup files: {artifact}", path=artifact, stage="delete"
            ) from e

        if candidate.parent != root or not self.naming.matches(candidate.name):
            logger.warning("Refusing to delete non-backup path: %s", candidate)
            raise AccessDenied(
                f"Can only delete backup files in {root}: {artifact}",
                path=candidate,
                stage="delete",
            )

        if not candidate.is_file():
            raise NotFound(f"Backup not found: {candidate}", path=candidate, stage="delete")

        return candidate

    def _roll_back(
        self, safety_copy: Path, database: Path, cause: OSError, states: list[RestoreState]
    ) -> None:
        try:
            self._copy(safety_copy, database)
        except OSError as e:
            logger.error(
                "Rollback failed, database may be damaged. Recover manually from %s", safety_copy
            )
            states.append(RestoreState.FAILED_UNRECOVERABLE)
            raise RestoreFailedUnrecoverable(
                f"Restore failed ({cause}) and rollback failed ({e}). "
                f"The previous database is preserved at {safety_copy}",
                safety_copy=safety_copy,
                path=database,
                stage="rollback",
                states=states,
            ) from e

    def _discard_safety_copy(self, safety_copy: Path) -> Optional[CleanupFailed]:
        try:
            self._remove(safety_copy)
        except OSError as e:
            logger.warning("Could not remove safety copy %s: %s", safety_copy, e)
            return CleanupFailed(
                f"Could not remove safety copy: {e}", path=safety_copy, stage="cleanup"
            )
        return None

    def _discard_partial(self, partial: Path) -> None:
        try:
            partial.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove partial backup %s: %s", partial, e)

    def _describe(self, path: Path) -> BackupInfo:
        stat = path.stat()
        timestamp = self.naming.timestamp_of(path.name) or ""
        return BackupInfo(
            path=path,
            timestamp=timestamp,
            size_bytes=stat.st_size,
            created_at=_creation_time(stat),
        )


def _creation_time(stat: os.stat_result) -> datetime:
    """Birth time where the platform records it, else the inode change time."""
    birth = getattr(stat, "st_birthtime", None)
    return datetime.fromtimestamp(birth if birth is not None else stat.st_ctime)
