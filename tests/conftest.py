"""Pytest configuration and fixtures."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from safehold.core.backups import BackupManager
from safehold.core.files import GatedFiles
from safehold.safety.gatekeeper import PathGatekeeper
from safehold.safety.roots import AppPaths

DATABASE_CONTENT = b"SQLite format 3\x00" + b"\x01" * 4096


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing (canonical, so macOS /private links do not matter)."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def app_paths(temp_dir: Path) -> AppPaths:
    """Application layout rooted in a fake Documents and temp folder."""
    paths = AppPaths(
        documents_dir=temp_dir / "Documents",
        temp_dir=temp_dir / "tmp",
        app_name="TestApp",
        database_name="test.db",
    )
    paths.ensure()
    return paths


@pytest.fixture
def gatekeeper(app_paths: AppPaths) -> PathGatekeeper:
    return PathGatekeeper(app_paths.permitted_roots)


@pytest.fixture
def gated_files(gatekeeper: PathGatekeeper, app_paths: AppPaths) -> GatedFiles:
    return GatedFiles(gatekeeper, records_root=app_paths.records_root)


@pytest.fixture
def database(app_paths: AppPaths) -> Path:
    """A live database file with known content."""
    app_paths.database_path.write_bytes(DATABASE_CONTENT)
    return app_paths.database_path


@pytest.fixture
def manager(app_paths: AppPaths) -> BackupManager:
    return BackupManager(app_paths)


@pytest.fixture
def outside_dir(temp_dir: Path) -> Path:
    """A directory next to the permitted roots but not inside any of them."""
    outside = temp_dir / "outside"
    outside.mkdir()
    (outside / "secret.txt").write_text("secret")
    return outside
