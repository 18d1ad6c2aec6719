"""Path confinement: canonicalize a caller path and check it against the permitted roots."""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Iterable, Union

from safehold.errors import AccessDenied, InvalidPath, NotFound

logger = logging.getLogger(__name__)

PathInput = Union[str, "os.PathLike[str]"]


class Intent(str, Enum):
    """What the caller is about to do with a path."""

    READ = "read"  # target must exist
    WRITE = "write"  # only the parent must exist


def is_within(path: Path, root: Path) -> bool:
    """Component-wise containment: ``/data2`` is not within ``/data``."""
    return path == root or root in path.parents


class PathGatekeeper:
    """Decides whether a path lies inside one of a fixed set of roots.

    The gatekeeper holds no state between calls besides the root set it was
    built with. Roots that do not exist yet are skipped when ``strict_roots``
    is set, so nothing under them validates until they are created.
    """

    def __init__(self, roots: Iterable[PathInput], strict_roots: bool = True):
        self.roots: tuple[Path, ...] = tuple(Path(r) for r in roots)
        self.strict_roots = strict_roots

        for root in self.roots:
            if not root.is_absolute():
                raise ValueError(f"Permitted root must be absolute: {root}")

    def canonical_roots(self) -> list[Path]:
        """Canonical form of every root that can currently be resolved."""
        resolved: list[Path] = []
        for root in self.roots:
            try:
                resolved.append(root.resolve(strict=True))
            except (OSError, RuntimeError):
                if self.strict_roots:
                    logger.debug("Permitted root does not exist, skipping: %s", root)
                    continue
                logger.warning(
                    "Permitted root does not exist, comparing against non-canonical form: %s",
                    root,
                )
                resolved.append(Path(os.path.normpath(root)))
        return resolved

    def validate(self, path: PathInput, intent: Intent | str = Intent.READ) -> Path:
        """
        Resolve a caller-supplied path and confirm it is inside a permitted root.

        Args:
            path: Path as received from the caller
            intent: READ if the target must already exist, WRITE if it may be new

        Returns:
            The canonical absolute path to perform I/O on

        Raises:
            InvalidPath: If the path is malformed or its parent does not exist
            AccessDenied: If the path resolves outside every permitted root
            NotFound: If intent is READ and the target does not exist
        """
        intent = Intent(intent)
        candidate = self._canonicalize(path)

        roots = self.canonical_roots()
        matched = next((root for root in roots if is_within(candidate, root)), None)
        if matched is None:
            logger.warning("Denied %s access outside permitted roots: %s", intent.value, candidate)
            raise AccessDenied(
                f"Access denied: path is outside the permitted folders: {path}",
                path=candidate,
                stage="validate",
            )

        if intent is Intent.READ and not candidate.exists():
            raise NotFound(f"File does not exist: {path}", path=candidate, stage="validate")

        logger.debug("Validated %s path %s (root %s)", intent.value, candidate, matched)
        return candidate

    def is_permitted(self, path: PathInput, intent: Intent | str = Intent.READ) -> bool:
        """Boolean form of :meth:`validate`."""
        try:
            self.validate(path, intent)
        except (InvalidPath, AccessDenied, NotFound):
            return False
        return True

    def _canonicalize(self, path: PathInput) -> Path:
        try:
            raw = os.fspath(path)
        except TypeError as e:
            raise InvalidPath(f"Not a path: {path!r}", stage="validate") from e
        if not isinstance(raw, str) or not raw.strip():
            raise InvalidPath("Path is empty", stage="validate")
        if "\x00" in raw:
            raise InvalidPath("Path contains a NUL byte", path=raw.replace("\x00", ""), stage="validate")

        target = Path(raw)
        try:
            return target.resolve(strict=True)
        except RuntimeError as e:
            raise InvalidPath(f"Path cannot be resolved: {e}", path=raw, stage="validate") from e
        except OSError:
            pass

        # Target does not exist (yet): resolve the parent and re-attach the name
        name = target.name
        if name in ("", ".", ".."):
            raise InvalidPath(f"Path has no file name: {raw}", path=raw, stage="validate")

        try:
            parent = target.parent.resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise InvalidPath(
                f"Parent directory does not exist: {target.parent}", path=raw, stage="validate"
            ) from e

        if not parent.is_dir():
            raise InvalidPath(f"Parent is not a directory: {parent}", path=raw, stage="validate")

        candidate = parent / name
        if candidate.is_symlink():
            # Dangling link: writing through it would land on the link target
            try:
                candidate = candidate.resolve()
            except (OSError, RuntimeError) as e:
                raise InvalidPath(f"Path cannot be resolved: {e}", path=raw, stage="validate") from e
        return candidate
