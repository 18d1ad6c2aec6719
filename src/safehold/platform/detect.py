"""Cross-platform detection and well-known user folder lookups."""

from __future__ import annotations

import os
import platform
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class WindowsEnvPaths:
    """Windows environment paths (USERPROFILE)."""

    user_profile: Optional[Path] = None

    @classmethod
    def from_environ(cls) -> "WindowsEnvPaths":
        """Create from current environment variables."""
        profile = os.environ.get("USERPROFILE")
        return cls(user_profile=Path(profile) if profile else None)


@dataclass
class XdgPaths:
    """XDG Base Directory paths for Linux/Unix."""

    config_home: Path
    documents_dir: Optional[Path] = None

    @classmethod
    def from_environ(cls, home_dir: Path) -> "XdgPaths":
        """Create from current environment variables with home fallback."""
        config_home = Path(os.environ.get("XDG_CONFIG_HOME") or (home_dir / ".config"))
        documents = os.environ.get("XDG_DOCUMENTS_DIR")
        return cls(
            config_home=config_home,
            documents_dir=Path(documents) if documents else _read_user_dirs(config_home, home_dir),
        )


@dataclass
class PlatformInfo:
    """Information about the current platform."""

    name: str  # Windows, macOS, Linux
    variant: str  # e.g., "Ubuntu", "Arch", "WSL2"
    home_dir: Path
    is_wsl: bool = False
    wsl_distro: Optional[str] = None


def _read_user_dirs(config_home: Path, home_dir: Path) -> Optional[Path]:
    """Read XDG_DOCUMENTS_DIR from user-dirs.dirs, as written by xdg-user-dirs-update."""
    user_dirs = config_home / "user-dirs.dirs"
    try:
        with open(user_dirs, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line.startswith("XDG_DOCUMENTS_DIR="):
                    continue
                value = line.split("=", 1)[1].strip().strip('"')
                value = value.replace("$HOME", str(home_dir))
                # A value of exactly $HOME means "disabled" per xdg-user-dirs
                if not value or Path(value) == home_dir:
                    return None
                return Path(value)
    except OSError:
        return None
    return None


def _detect_wsl() -> tuple[bool, Optional[str]]:
    """Detect if running in WSL and get distro info."""
    if not os.path.exists("/proc/version"):
        return False, None

    try:
        with open("/proc/version", "r") as f:
            version = f.read().lower()
    except OSError:
        return False, None

    if "microsoft" not in version and "wsl" not in version:
        return False, None

    return True, os.environ.get("WSL_DISTRO_NAME", "Unknown")


def _get_linux_distro() -> str:
    """Get Linux distribution name from /etc/os-release."""
    try:
        if os.path.exists("/etc/os-release"):
            with open("/etc/os-release") as f:
                for line in f:
                    if line.startswith("PRETTY_NAME="):
                        return line.split("=")[1].strip().strip('"')
                    elif line.startswith("NAME="):
                        return line.split("=")[1].strip().strip('"')
    except OSError:
        pass

    return "Linux"


def get_platform_info() -> PlatformInfo:
    """Detect and return current platform information."""
    system = platform.system()
    home_dir = Path.home()

    if system == "Windows":
        return PlatformInfo(
            name="Windows",
            variant=platform.release(),  # e.g., "10", "11"
            home_dir=home_dir,
        )

    elif system == "Darwin":
        mac_ver = platform.mac_ver()[0]
        return PlatformInfo(
            name="macOS",
            variant=f"macOS {mac_ver}",
            home_dir=home_dir,
        )

    elif system == "Linux":
        is_wsl, distro = _detect_wsl()

        if is_wsl:
            return PlatformInfo(
                name="Linux",
                variant=f"WSL ({distro})",
                home_dir=home_dir,
                is_wsl=True,
                wsl_distro=distro,
            )

        return PlatformInfo(
            name="Linux",
            variant=_get_linux_distro(),
            home_dir=home_dir,
        )

    else:
        return PlatformInfo(
            name=system,
            variant="Unknown",
            home_dir=home_dir,
        )


def get_documents_dir(info: Optional[PlatformInfo] = None) -> Optional[Path]:
    """
    Locate the user's documents folder.

    Returns:
        The documents folder, or None if the platform does not provide one.
    """
    if info is None:
        info = get_platform_info()

    if info.name == "Windows":
        win_paths = WindowsEnvPaths.from_environ()
        profile = win_paths.user_profile or info.home_dir
        return profile / "Documents"

    if info.name == "macOS":
        return info.home_dir / "Documents"

    xdg = XdgPaths.from_environ(info.home_dir)
    if xdg.documents_dir is not None:
        return xdg.documents_dir

    fallback = info.home_dir / "Documents"
    if fallback.is_dir():
        return fallback

    return None


def get_temp_dir() -> Path:
    """Get the OS temp root."""
    return Path(tempfile.gettempdir())
