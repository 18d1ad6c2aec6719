"""Error taxonomy shared by the gatekeeper, file operations and backups."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Sequence, Union

PathLike = Union[str, Path]


def _state_values(states: Sequence[Any]) -> list[str]:
    return [getattr(state, "value", str(state)) for state in states]


class SafeholdError(Exception):
    """Base class for every error reported to a caller.

    Each subclass carries a stable ``code`` so a frontend can branch on the
    failure kind without parsing the message.
    """

    code = "Error"

    def __init__(
        self,
        message: str,
        path: Optional[PathLike] = None,
        stage: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.path = str(path) if path is not None else None
        self.stage = stage

    def to_dict(self) -> dict[str, Any]:
        """Structured form handed to the frontend."""
        return {
            "code": self.code,
            "message": self.message,
            "path": self.path,
            "stage": self.stage,
        }


class InvalidPath(SafeholdError):
    """Path is malformed or cannot be canonicalized."""

    code = "InvalidPath"


class AccessDenied(SafeholdError):
    """Path resolves outside every permitted root, or is not an artifact."""

    code = "AccessDenied"


class NotFound(SafeholdError):
    """Read target does not exist."""

    code = "NotFound"


class SourceMissing(SafeholdError):
    """Database file is absent when a backup is requested."""

    code = "SourceMissing"


class InvalidBackup(SafeholdError):
    """Restore target is not a recognized backup artifact."""

    code = "InvalidBackup"


class BackupFailed(SafeholdError):
    """Safety copy could not be taken; the live database was not touched."""

    code = "BackupFailed"


class RestoreFailed(SafeholdError):
    """Overwrite failed but the database was rolled back from the safety copy.

    ``states`` lists the restore stages reached. ``cleanup_error`` is set when
    the safety copy could not be removed after the rollback.
    """

    code = "RestoreFailed"

    def __init__(
        self,
        message: str,
        path: Optional[PathLike] = None,
        stage: Optional[str] = None,
        states: Sequence[Any] = (),
        cleanup_error: Optional["CleanupFailed"] = None,
    ):
        super().__init__(message, path=path, stage=stage)
        self.states = list(states)
        self.cleanup_error = cleanup_error

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["states"] = _state_values(self.states)
        data["cleanup_error"] = self.cleanup_error.to_dict() if self.cleanup_error else None
        return data


class RestoreFailedUnrecoverable(SafeholdError):
    """Overwrite and rollback both failed. Manual recovery is required."""

    code = "RestoreFailedUnrecoverable"

    def __init__(
        self,
        message: str,
        safety_copy: PathLike,
        path: Optional[PathLike] = None,
        stage: Optional[str] = None,
        states: Sequence[Any] = (),
    ):
        super().__init__(message, path=path, stage=stage)
        self.safety_copy = str(safety_copy)
        self.states = list(states)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["safety_copy"] = self.safety_copy
        data["states"] = _state_values(self.states)
        return data


class StorageIOError(SafeholdError):
    """Underlying filesystem failure not otherwise classified."""

    code = "IOError"


class NoDocumentsFolder(SafeholdError):
    """The user's documents folder could not be located."""

    code = "NoDocumentsFolder"


class CleanupFailed(SafeholdError):
    """Best-effort cleanup did not complete.

    Never raised. Recorded on results so callers can see cleanup was attempted.
    """

    code = "CleanupFailed"
