"""UI components for console output and prompts."""

from __future__ import annotations

from .console import create_console, print_banner, setup_logging
from .prompts import confirm_deletion, confirm_restore, select_backup

__all__ = [
    "create_console",
    "print_banner",
    "setup_logging",
    "confirm_deletion",
    "confirm_restore",
    "select_backup",
]
