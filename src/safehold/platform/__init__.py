"""Platform detection and handling."""

from __future__ import annotations

from .detect import PlatformInfo, get_documents_dir, get_platform_info, get_temp_dir

__all__ = ["get_platform_info", "get_documents_dir", "get_temp_dir", "PlatformInfo"]
