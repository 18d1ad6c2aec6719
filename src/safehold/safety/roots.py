"""Application directory layout derived from the user's profile folders."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from safehold.config import Config
from safehold.errors import NoDocumentsFolder, StorageIOError
from safehold.platform.detect import PlatformInfo, get_documents_dir, get_temp_dir

# Appended to the database path while a restore is in flight
SAFETY_COPY_SUFFIX = ".pre-restore"

DATA_DIR_NAME = "data"
BACKUPS_DIR_NAME = "Backups"
RECORDS_DIR_NAME = "records"


@dataclass(frozen=True)
class AppPaths:
    """Every location Safehold reads from or writes to.

    The layout is::

        <documents>/<app>/data/<database>     live database
        <documents>/<app>/data/records/       default records folder
        <documents>/<app>/Backups/            backup artifacts
        <temp>/<app>/                         scratch files
    """

    documents_dir: Path
    temp_dir: Path
    app_name: str = "Safehold"
    database_name: str = "safehold.db"

    @property
    def app_root(self) -> Path:
        return self.documents_dir / self.app_name

    @property
    def data_root(self) -> Path:
        return self.app_root / DATA_DIR_NAME

    @property
    def backups_root(self) -> Path:
        return self.app_root / BACKUPS_DIR_NAME

    @property
    def scratch_root(self) -> Path:
        return self.temp_dir / self.app_name

    @property
    def records_root(self) -> Path:
        return self.data_root / RECORDS_DIR_NAME

    @property
    def database_path(self) -> Path:
        return self.data_root / self.database_name

    @property
    def safety_copy_path(self) -> Path:
        return self.database_path.with_name(self.database_path.name + SAFETY_COPY_SUFFIX)

    @property
    def permitted_roots(self) -> tuple[Path, ...]:
        """Roots handed to the gatekeeper. Backups are deliberately not among them."""
        return (self.data_root, self.scratch_root)

    def ensure(self) -> None:
        """Create the data, backups and scratch roots if they are missing."""
        for directory in (self.data_root, self.backups_root, self.scratch_root):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageIOError(
                    f"Failed to create directory: {e}", path=directory, stage="setup"
                ) from e

    @classmethod
    def from_config(cls, config: Config, info: Optional[PlatformInfo] = None) -> "AppPaths":
        """
        Build the layout from configuration and the OS profile lookups.

        Raises:
            NoDocumentsFolder: If no documents folder is configured or detected
        """
        documents = config.safety.documents_override or get_documents_dir(info)
        if documents is None:
            raise NoDocumentsFolder("Could not find Documents folder", stage="setup")

        return cls(
            documents_dir=documents,
            temp_dir=get_temp_dir(),
            app_name=config.app.name,
            database_name=config.app.database,
        )
