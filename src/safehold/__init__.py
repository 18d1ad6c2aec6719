"""Safehold - confined file access and safe database backups for desktop apps."""

from __future__ import annotations

__version__ = "0.1.0"
