"""File operations confined to the permitted roots."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from safehold.errors import InvalidPath, StorageIOError
from safehold.safety.gatekeeper import Intent, PathGatekeeper, PathInput

logger = logging.getLogger(__name__)


class GatedFiles:
    """Reads, writes and lists files only after the gatekeeper accepts the path."""

    def __init__(self, gatekeeper: PathGatekeeper, records_root: Optional[Path] = None):
        self.gatekeeper = gatekeeper
        self.records_root = records_root

    def read_text(self, path: PathInput, encoding: str = "utf-8") -> str:
        target = self.gatekeeper.validate(path, Intent.READ)
        try:
            return target.read_text(encoding=encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise StorageIOError(f"Failed to read file: {e}", path=target, stage="read") from e

    def read_bytes(self, path: PathInput) -> bytes:
        target = self.gatekeeper.validate(path, Intent.READ)
        try:
            return target.read_bytes()
        except OSError as e:
            raise StorageIOError(f"Failed to read file: {e}", path=target, stage="read") from e

    def write_text(self, path: PathInput, content: str, encoding: str = "utf-8") -> Path:
        """Write text to a file, creating or truncating it. Returns the validated path."""
        return self.write_bytes(path, content.encode(encoding))

    def write_bytes(self, path: PathInput, data: bytes) -> Path:
        """Write bytes to a file, creating or truncating it. Returns the validated path."""
        target = self.gatekeeper.validate(path, Intent.WRITE)
        try:
            target.write_bytes(data)
        except OSError as e:
            raise StorageIOError(f"Failed to write file: {e}", path=target, stage="write") from e
        logger.debug("Wrote %d bytes to %s", len(data), target)
        return target

    def list_files(self, directory: PathInput, pattern: Optional[str] = None) -> list[Path]:
        """
        List the files directly inside a directory.

        Args:
            directory: Directory to list
            pattern: Only include file names containing this substring

        Returns:
            Matching files sorted by name (sub-directories are never included)
        """
        folder = self.gatekeeper.validate(directory, Intent.READ)
        if not folder.is_dir():
            raise InvalidPath(f"Path is not a directory: {directory}", path=folder, stage="list")

        try:
            entries = sorted(folder.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise StorageIOError(f"Failed to read directory: {e}", path=folder, stage="list") from e

        files: list[Path] = []
        for entry in entries:
            if not entry.is_file():
                continue
            if pattern and pattern not in entry.name:
                continue
            files.append(entry)
        return files

    def create_folder(self, path: PathInput) -> Path:
        """
        Create a folder and any missing parents.

        The deepest ancestor that already exists must validate; the missing
        components are plain names appended to its canonical form.
        """
        requested = Path(path)
        existing = requested
        missing: list[str] = []
        while not (existing.exists() or existing.is_symlink()) and existing != existing.parent:
            missing.insert(0, existing.name)
            existing = existing.parent

        if any(name in ("", ".", "..") for name in missing):
            raise InvalidPath(f"Invalid folder path: {path}", path=path, stage="mkdir")

        if not missing:
            target = self.gatekeeper.validate(requested, Intent.WRITE)
            raise StorageIOError(f"Folder already exists: {path}", path=target, stage="mkdir")

        # Write intent on the first missing component pins the whole chain under a root
        first = self.gatekeeper.validate(existing / missing[0], Intent.WRITE)
        target = first.joinpath(*missing[1:])
        try:
            target.mkdir(parents=True)
        except OSError as e:
            raise StorageIOError(f"Failed to create folder: {e}", path=target, stage="mkdir") from e
        return target

    def default_records_path(self) -> Path:
        """Default records folder, created if it does not exist yet."""
        if self.records_root is None:
            raise InvalidPath("No records folder configured", stage="records")
        if not self.records_root.exists():
            self.create_folder(self.records_root)
        return self.gatekeeper.validate(self.records_root, Intent.READ)
