"""Safety mechanisms that keep file operations inside the application's folders."""

from __future__ import annotations

from .gatekeeper import Intent, PathGatekeeper, is_within
from .roots import SAFETY_COPY_SUFFIX, AppPaths

__all__ = ["AppPaths", "Intent", "PathGatekeeper", "SAFETY_COPY_SUFFIX", "is_within"]
