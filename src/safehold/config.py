"""Configuration management for Safehold."""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

# Conditional import for Python 3.10 compatibility
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found]

# Prefix and extension end up in file names and in a regex, keep them plain
_NAME_PART = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")
_EXTENSION = re.compile(r"^[A-Za-z0-9]+$")


@dataclass
class AppConfig:
    """Application identity and database location."""

    name: str = "Safehold"
    database: str = "safehold.db"


@dataclass
class BackupsConfig:
    """Backup naming and retention settings."""

    prefix: str = "safehold-backup"
    extension: str = "db"
    retention: int = 10
    trash: bool = True


@dataclass
class SafetyConfig:
    """Path confinement settings."""

    strict_roots: bool = True
    documents_dir: str = ""

    @property
    def documents_override(self) -> Path | None:
        """Explicit documents folder, if one was configured."""
        if not self.documents_dir:
            return None
        return Path(self.documents_dir).expanduser()


@dataclass
class Config:
    """Root configuration container."""

    app: AppConfig = field(default_factory=AppConfig)
    backups: BackupsConfig = field(default_factory=BackupsConfig)
    safety: SafetyConfig = field(default_factory=SafetyConfig)

    # Metadata (not from TOML)
    _source: Path | None = field(default=None, repr=False)


def get_xdg_config_home() -> Path:
    """Get XDG config home, respecting environment variable."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".config"


def get_config_paths() -> tuple[Path, Path]:
    """
    Get config file paths in priority order.

    Returns:
        (xdg_path, cwd_path) - XDG is base, CWD overrides
    """
    xdg_path = get_xdg_config_home() / "safehold" / "config.toml"
    cwd_path = Path.cwd() / "safehold.toml"
    return xdg_path, cwd_path


def _load_toml(path: Path) -> dict[str, Any]:
    """Load and parse a TOML file."""
    with open(path, "rb") as f:
        result: dict[str, Any] = tomllib.load(f)
        return result


def _merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, override takes precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


def _validate_config(data: dict[str, Any]) -> list[str]:
    """Validate TOML data and return list of errors."""
    errors: list[str] = []

    app = data.get("app", {})
    name = app.get("name")
    if name is not None and (
        not isinstance(name, str)
        or name.strip() in ("", ".", "..")
        or "/" in name
        or "\\" in name
    ):
        errors.append(f"Invalid app.name: '{name}' (must be a plain folder name)")

    database = app.get("database")
    if database is not None and (not isinstance(database, str) or not _NAME_PART.match(database)):
        errors.append(f"Invalid app.database: '{database}' (must be a plain file name)")

    backups = data.get("backups", {})
    prefix = backups.get("prefix")
    if prefix is not None and (not isinstance(prefix, str) or not _NAME_PART.match(prefix)):
        errors.append(f"Invalid backups.prefix: '{prefix}' (use letters, digits, '-', '_', '.')")

    extension = backups.get("extension")
    if extension is not None and (not isinstance(extension, str) or not _EXTENSION.match(extension)):
        errors.append(f"Invalid backups.extension: '{extension}' (use letters and digits only)")

    retention = backups.get("retention")
    if retention is not None and (
        isinstance(retention, bool) or not isinstance(retention, int) or retention < 0
    ):
        errors.append(f"Invalid backups.retention: '{retention}' (use 0 to keep all, or a positive count)")

    return errors


def _filter_known_keys(data: dict[str, Any], dataclass_type: type) -> dict[str, Any]:
    """Filter dict to only include keys that are valid fields for the dataclass."""
    valid_fields = {f.name for f in fields(dataclass_type)}
    return {k: v for k, v in data.items() if k in valid_fields}


# Mapping of section names to their config classes
SECTION_TYPES = {
    "app": AppConfig,
    "backups": BackupsConfig,
    "safety": SafetyConfig,
}


def _dict_to_config(data: dict[str, Any], source: Path | None = None) -> Config:
    """Convert parsed TOML dict to Config dataclass."""
    sections = {
        name: cls(**_filter_known_keys(data.get(name, {}), cls))
        for name, cls in SECTION_TYPES.items()
    }
    return Config(**sections, _source=source)


def load_config() -> Config:
    """
    Load configuration with XDG + CWD override precedence.

    Priority (highest to lowest):
    1. ./safehold.toml (CWD override)
    2. ~/.config/safehold/config.toml (XDG base)
    3. Built-in defaults

    Returns:
        Merged Config instance

    Raises:
        ValueError: If TOML syntax is invalid in either config file
    """
    xdg_path, cwd_path = get_config_paths()

    merged_data: dict[str, Any] = {}
    active_source: Path | None = None

    if xdg_path.exists():
        try:
            merged_data = _load_toml(xdg_path)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {xdg_path}: {e}") from e
        active_source = xdg_path

    if cwd_path.exists():
        try:
            cwd_data = _load_toml(cwd_path)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {cwd_path}: {e}") from e
        merged_data = _merge_dicts(merged_data, cwd_data)
        active_source = cwd_path

    if merged_data:
        errors = _validate_config(merged_data)
        if errors:
            raise ValueError(f"Config validation failed ({active_source}): {'; '.join(errors)}")

    return _dict_to_config(merged_data, active_source)


def load_config_from_file(path: Path) -> Config:
    """Load configuration from a specific file."""
    try:
        data = _load_toml(path)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {path}: {e}") from e
    errors = _validate_config(data)
    if errors:
        raise ValueError(f"Config validation failed: {'; '.join(errors)}")
    return _dict_to_config(data, path)


# Default config template for `config init`
DEFAULT_CONFIG_TEMPLATE = """\
# Safehold Configuration

[app]
name = "Safehold"           # Folder name under Documents and the temp area
database = "safehold.db"    # Database file inside <Documents>/<name>/data

[backups]
prefix = "safehold-backup"  # Artifacts are named <prefix>-YYYY-MM-DD-HHMMSS.<extension>
extension = "db"
retention = 10              # Artifacts kept by `safehold backup prune` (0 = keep all)
trash = true                # Move deleted backups to the trash instead of unlinking

[safety]
strict_roots = true         # Refuse paths under permitted roots that do not exist yet
documents_dir = ""          # Override the detected Documents folder
"""
