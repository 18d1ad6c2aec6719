"""Tests for the configuration module."""

from __future__ import annotations

from pathlib import Path

import pytest

from safehold.config import (
    DEFAULT_CONFIG_TEMPLATE,
    AppConfig,
    BackupsConfig,
    Config,
    SafetyConfig,
    _dict_to_config,
    _merge_dicts,
    _validate_config,
    get_config_paths,
    get_xdg_config_home,
    load_config,
    load_config_from_file,
)


class TestAppConfig:
    """Tests for AppConfig dataclass."""

    def test_default_values(self):
        config = AppConfig()
        assert config.name == "Safehold"
        assert config.database == "safehold.db"


class TestBackupsConfig:
    """Tests for BackupsConfig dataclass."""

    def test_default_values(self):
        config = BackupsConfig()
        assert config.prefix == "safehold-backup"
        assert config.extension == "db"
        assert config.retention == 10
        assert config.trash is True

    def test_custom_values(self):
        config = BackupsConfig(retention=3, trash=False)
        assert config.retention == 3
        assert config.trash is False
        assert config.prefix == "safehold-backup"  # default


class TestSafetyConfig:
    """Tests for SafetyConfig dataclass."""

    def test_default_values(self):
        config = SafetyConfig()
        assert config.strict_roots is True
        assert config.documents_override is None

    def test_documents_override(self):
        config = SafetyConfig(documents_dir="/srv/docs")
        assert config.documents_override == Path("/srv/docs")


class TestConfig:
    """Tests for Config root dataclass."""

    def test_default_values(self):
        config = Config()
        assert isinstance(config.app, AppConfig)
        assert isinstance(config.backups, BackupsConfig)
        assert isinstance(config.safety, SafetyConfig)
        assert config._source is None


class TestMergeDicts:
    """Tests for _merge_dicts function."""

    def test_simple_merge(self):
        base = {"a": 1, "b": 2}
        override = {"b": 3, "c": 4}
        assert _merge_dicts(base, override) == {"a": 1, "b": 3, "c": 4}

    def test_deep_merge(self):
        base = {"section": {"a": 1, "b": 2}}
        override = {"section": {"b": 3}}
        assert _merge_dicts(base, override) == {"section": {"a": 1, "b": 3}}

    def test_base_unchanged(self):
        base = {"a": 1}
        _merge_dicts(base, {"a": 2})
        assert base == {"a": 1}


class TestValidateConfig:
    """Tests for _validate_config function."""

    def test_valid_config(self):
        data = {
            "app": {"name": "Clinic Admin", "database": "clinic.db"},
            "backups": {"prefix": "clinic-backup", "extension": "sqlite", "retention": 5},
        }
        assert _validate_config(data) == []

    def test_app_name_with_separator(self):
        errors = _validate_config({"app": {"name": "../escape"}})
        assert len(errors) == 1
        assert "app.name" in errors[0]

    def test_app_name_parent_reference(self):
        errors = _validate_config({"app": {"name": ".."}})
        assert len(errors) == 1
        assert "app.name" in errors[0]

    def test_database_with_path(self):
        errors = _validate_config({"app": {"database": "sub/dir.db"}})
        assert len(errors) == 1
        assert "app.database" in errors[0]

    def test_invalid_prefix(self):
        errors = _validate_config({"backups": {"prefix": "bad prefix!"}})
        assert len(errors) == 1
        assert "backups.prefix" in errors[0]

    def test_invalid_extension(self):
        errors = _validate_config({"backups": {"extension": ".db"}})
        assert len(errors) == 1
        assert "backups.extension" in errors[0]

    def test_negative_retention(self):
        errors = _validate_config({"backups": {"retention": -1}})
        assert len(errors) == 1
        assert "backups.retention" in errors[0]

    def test_boolean_retention(self):
        errors = _validate_config({"backups": {"retention": True}})
        assert len(errors) == 1

    def test_zero_retention_allowed(self):
        assert _validate_config({"backups": {"retention": 0}}) == []

    def test_collects_all_errors(self):
        data = {"app": {"name": ""}, "backups": {"retention": -5, "extension": "d b"}}
        assert len(_validate_config(data)) == 3


class TestDictToConfig:
    """Tests for _dict_to_config function."""

    def test_empty_dict(self):
        config = _dict_to_config({})
        assert config.safety.strict_roots is True
        assert config._source is None

    def test_partial_config(self):
        config = _dict_to_config({"backups": {"retention": 2}})
        assert config.backups.retention == 2
        assert config.backups.trash is True  # Default

    def test_unknown_keys_ignored(self):
        config = _dict_to_config({"app": {"name": "X", "colour": "blue"}})
        assert config.app.name == "X"

    def test_with_source(self):
        path = Path("/test/config.toml")
        assert _dict_to_config({}, source=path)._source == path


class TestGetConfigPaths:
    """Tests for get_config_paths function."""

    def test_xdg_path_format(self):
        xdg, _ = get_config_paths()
        assert xdg.name == "config.toml"
        assert xdg.parent.name == "safehold"

    def test_cwd_path_format(self):
        _, cwd = get_config_paths()
        assert cwd.name == "safehold.toml"


class TestGetXdgConfigHome:
    """Tests for get_xdg_config_home function."""

    def test_default_path(self, monkeypatch):
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        assert get_xdg_config_home() == Path.home() / ".config"

    def test_custom_xdg(self, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", "/custom/config")
        assert get_xdg_config_home() == Path("/custom/config")


class TestLoadConfig:
    """Tests for load_config function."""

    def test_no_config_files(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "nonexistent"))
        config = load_config()
        assert config._source is None
        assert config.app.name == "Safehold"

    def test_cwd_overrides_xdg(self, monkeypatch, tmp_path):
        xdg = tmp_path / "xdg"
        (xdg / "safehold").mkdir(parents=True)
        (xdg / "safehold" / "config.toml").write_text('[backups]\nretention = 3\ntrash = false\n')
        work = tmp_path / "work"
        work.mkdir()
        (work / "safehold.toml").write_text("[backups]\nretention = 7\n")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg))
        monkeypatch.chdir(work)

        config = load_config()

        assert config.backups.retention == 7
        assert config.backups.trash is False
        assert config._source == work / "safehold.toml"

    def test_invalid_toml(self, monkeypatch, tmp_path):
        (tmp_path / "safehold.toml").write_text("[backups\n")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "nonexistent"))
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ValueError, match="Invalid TOML"):
            load_config()


class TestLoadConfigFromFile:
    """Tests for load_config_from_file function."""

    def test_load_valid_file(self, tmp_path):
        config_file = tmp_path / "test.toml"
        config_file.write_text("""
[safety]
strict_roots = false
documents_dir = "/srv/docs"
""")
        config = load_config_from_file(config_file)
        assert config.safety.strict_roots is False
        assert config.safety.documents_dir == "/srv/docs"
        assert config._source == config_file

    def test_load_invalid_values(self, tmp_path):
        config_file = tmp_path / "test.toml"
        config_file.write_text('[backups]\nretention = -2\n')
        with pytest.raises(ValueError, match="backups.retention"):
            load_config_from_file(config_file)


class TestDefaultConfigTemplate:
    """Tests for DEFAULT_CONFIG_TEMPLATE."""

    def test_template_is_valid_toml(self, tmp_path):
        config_file = tmp_path / "test.toml"
        config_file.write_text(DEFAULT_CONFIG_TEMPLATE)
        config = load_config_from_file(config_file)
        assert config == Config(_source=config_file)

    def test_template_has_all_sections(self):
        assert "[app]" in DEFAULT_CONFIG_TEMPLATE
        assert "[backups]" in DEFAULT_CONFIG_TEMPLATE
        assert "[safety]" in DEFAULT_CONFIG_TEMPLATE
