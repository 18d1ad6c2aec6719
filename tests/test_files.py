"""Tests for gated file operations."""

from __future__ import annotations

from pathlib import Path

import pytest

from safehold.core.files import GatedFiles
from safehold.errors import AccessDenied, InvalidPath, NotFound, StorageIOError
from safehold.safety.gatekeeper import PathGatekeeper
from safehold.safety.roots import AppPaths


class TestReadWrite:
    """Tests for reading and writing through the gatekeeper."""

    def test_write_then_read_text(self, gated_files: GatedFiles, app_paths: AppPaths):
        target = app_paths.data_root / "report.md"
        written = gated_files.write_text(target, "# Report\n")
        assert written == target
        assert gated_files.read_text(target) == "# Report\n"

    def test_write_bytes_to_scratch(self, gated_files: GatedFiles, app_paths: AppPaths):
        target = app_paths.scratch_root / "audio.webm"
        gated_files.write_bytes(target, b"\x1aE\xdf\xa3")
        assert gated_files.read_bytes(target) == b"\x1aE\xdf\xa3"

    def test_write_outside_denied(self, gated_files: GatedFiles, outside_dir: Path):
        target = outside_dir / "evil.txt"
        with pytest.raises(AccessDenied):
            gated_files.write_text(target, "x")
        assert not target.exists()

    def test_write_missing_parent(self, gated_files: GatedFiles, app_paths: AppPaths):
        with pytest.raises(InvalidPath):
            gated_files.write_text(app_paths.data_root / "a" / "b.txt", "x")

    def test_write_to_directory_fails(self, gated_files: GatedFiles, app_paths: AppPaths):
        with pytest.raises(StorageIOError):
            gated_files.write_text(app_paths.data_root, "x")

    def test_read_missing(self, gated_files: GatedFiles, app_paths: AppPaths):
        with pytest.raises(NotFound):
            gated_files.read_text(app_paths.data_root / "missing.txt")

    def test_read_outside_denied(self, gated_files: GatedFiles, outside_dir: Path):
        with pytest.raises(AccessDenied):
            gated_files.read_text(outside_dir / "secret.txt")

    def test_read_binary_as_text_fails(self, gated_files: GatedFiles, app_paths: AppPaths):
        target = app_paths.data_root / "blob.bin"
        target.write_bytes(b"\xff\xfe\xfa")
        with pytest.raises(StorageIOError):
            gated_files.read_text(target)


class TestListFiles:
    """Tests for list_files."""

    def test_lists_files_only_sorted(self, gated_files: GatedFiles, app_paths: AppPaths):
        (app_paths.data_root / "b.txt").write_text("b")
        (app_paths.data_root / "a.txt").write_text("a")
        (app_paths.data_root / "sub").mkdir()

        names = [p.name for p in gated_files.list_files(app_paths.data_root)]

        assert names == ["a.txt", "b.txt"]

    def test_pattern_filter(self, gated_files: GatedFiles, app_paths: AppPaths):
        (app_paths.data_root / "consult-report.docx").write_text("x")
        (app_paths.data_root / "notes.txt").write_text("x")

        found = gated_files.list_files(app_paths.data_root, pattern="report")

        assert [p.name for p in found] == ["consult-report.docx"]

    def test_not_a_directory(self, gated_files: GatedFiles, app_paths: AppPaths):
        target = app_paths.data_root / "file.txt"
        target.write_text("x")
        with pytest.raises(InvalidPath):
            gated_files.list_files(target)

    def test_missing_directory(self, gated_files: GatedFiles, app_paths: AppPaths):
        with pytest.raises(NotFound):
            gated_files.list_files(app_paths.data_root / "nope")

    def test_outside_denied(self, gated_files: GatedFiles, outside_dir: Path):
        with pytest.raises(AccessDenied):
            gated_files.list_files(outside_dir)


class TestCreateFolder:
    """Tests for create_folder."""

    def test_creates_nested(self, gated_files: GatedFiles, app_paths: AppPaths):
        target = app_paths.data_root / "clients" / "smith_2024"
        created = gated_files.create_folder(target)
        assert created == target
        assert target.is_dir()

    def test_already_exists(self, gated_files: GatedFiles, app_paths: AppPaths):
        (app_paths.data_root / "clients").mkdir()
        with pytest.raises(StorageIOError, match="already exists"):
            gated_files.create_folder(app_paths.data_root / "clients")

    def test_outside_denied(self, gated_files: GatedFiles, outside_dir: Path):
        with pytest.raises(AccessDenied):
            gated_files.create_folder(outside_dir / "a" / "b")
        assert not (outside_dir / "a").exists()

    def test_traversal_in_missing_part(self, gated_files: GatedFiles, app_paths: AppPaths):
        sneaky = f"{app_paths.data_root}/new/../../../../outside/x"
        with pytest.raises(InvalidPath):
            gated_files.create_folder(sneaky)

    def test_next_to_root_denied(self, gated_files: GatedFiles, app_paths: AppPaths):
        with pytest.raises(AccessDenied):
            gated_files.create_folder(app_paths.app_root / "elsewhere")


class TestDefaultRecordsPath:
    """Tests for default_records_path."""

    def test_created_on_demand(self, gated_files: GatedFiles, app_paths: AppPaths):
        assert not app_paths.records_root.exists()
        assert gated_files.default_records_path() == app_paths.records_root
        assert app_paths.records_root.is_dir()

    def test_existing(self, gated_files: GatedFiles, app_paths: AppPaths):
        app_paths.records_root.mkdir()
        assert gated_files.default_records_path() == app_paths.records_root

    def test_not_configured(self, gatekeeper: PathGatekeeper):
        with pytest.raises(InvalidPath):
            GatedFiles(gatekeeper).default_records_path()
