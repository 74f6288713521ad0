"""Tests for patchline.config: models and YAML loader."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from patchline.config.loader import DEFAULT_CONFIG_TEMPLATE, _expand_env_vars, load_config
from patchline.config.models import ApplyConfig, PatchDefaults, PatchlineConfig, PatchSpec


# ── PatchlineConfig defaults ────────────────────────────────────────


class TestPatchlineConfigDefaults:
    def test_default_log_level(self, sample_config):
        assert sample_config.log_level == "info"

    def test_default_log_format(self, sample_config):
        assert sample_config.log_format == "text"

    def test_default_patch_settings(self, sample_config):
        assert sample_config.patch.rename_root_directory is False
        assert sample_config.patch.ignored_files == []

    def test_default_apply_settings(self, sample_config):
        assert sample_config.apply.backup_dir == ".patchline/backup"
        assert sample_config.apply.revert_on_failure is True


# ── Individual model validations ────────────────────────────────────


class TestModels:
    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError):
            PatchlineConfig(log_level="verbose")

    def test_invalid_log_format_rejected(self):
        with pytest.raises(ValidationError):
            PatchlineConfig(log_format="xml")

    def test_empty_backup_dir_rejected(self):
        with pytest.raises(ValidationError, match="backup_dir"):
            ApplyConfig(backup_dir="  ")

    def test_default_ignored_files_validated(self):
        with pytest.raises(ValidationError):
            PatchDefaults(ignored_files=["/abs"])

    def test_nested_values(self):
        cfg = PatchlineConfig(
            patch=PatchDefaults(rename_root_directory=True, ignored_files=["logs"]),
            apply=ApplyConfig(backup_dir="/tmp/bk", revert_on_failure=False),
        )
        assert cfg.patch.ignored_files == ["logs"]
        assert cfg.apply.backup_dir == "/tmp/bk"


class TestPatchSpec:
    def test_accepts_strings(self, tmp_path):
        spec = PatchSpec(old_folder=str(tmp_path / "a"), new_folder=str(tmp_path / "b"))
        assert spec.old_folder == tmp_path / "a"
        assert spec.rename_root_directory is False

    def test_same_folder_rejected(self, tmp_path):
        with pytest.raises(ValidationError, match="different"):
            PatchSpec(old_folder=tmp_path, new_folder=tmp_path)

    def test_frozen(self, tmp_path):
        spec = PatchSpec(old_folder=tmp_path / "a", new_folder=tmp_path / "b")
        with pytest.raises(ValidationError):
            spec.rename_root_directory = True

    def test_ignored_files_normalized(self, tmp_path):
        spec = PatchSpec(
            old_folder=tmp_path / "a",
            new_folder=tmp_path / "b",
            ignored_files=["logs/", " conf/local.ini"],
        )
        assert spec.ignored_files == ["logs", "conf/local.ini"]

    @pytest.mark.parametrize("entry", ["/etc/passwd", "../outside", "lib/../../x", "", "  "])
    def test_ignored_files_must_stay_inside_tree(self, tmp_path, entry):
        with pytest.raises(ValidationError, match="relative path"):
            PatchSpec(old_folder=tmp_path / "a", new_folder=tmp_path / "b", ignored_files=[entry])


# ── _expand_env_vars ────────────────────────────────────────────────


class TestExpandEnvVars:
    def test_expands_string_variable(self):
        with patch.dict(os.environ, {"PL_DIR": "/opt/backups"}):
            assert _expand_env_vars("${PL_DIR}") == "/opt/backups"

    def test_missing_var_becomes_empty(self):
        os.environ.pop("PL_SURELY_UNSET", None)
        assert _expand_env_vars("${PL_SURELY_UNSET}") == ""

    def test_expands_nested_structures(self):
        with patch.dict(os.environ, {"A": "alpha", "B": "beta"}):
            result = _expand_env_vars({"outer": {"inner": "${A}"}, "list": ["${B}"]})
            assert result == {"outer": {"inner": "alpha"}, "list": ["beta"]}

    def test_non_string_passthrough(self):
        assert _expand_env_vars(42) == 42
        assert _expand_env_vars(True) is True
        assert _expand_env_vars(None) is None


# ── load_config ─────────────────────────────────────────────────────


class TestLoadConfig:
    def test_returns_defaults_when_no_file_exists(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
        config = load_config()
        assert config == PatchlineConfig()

    def test_loads_valid_yaml(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "patchline.yaml").write_text(
            "patch:\n  rename_root_directory: true\napply:\n  backup_dir: ${BK}\nlog_level: debug\n"
        )
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
        monkeypatch.setenv("BK", "/var/backups/pl")
        config = load_config()
        assert config.patch.rename_root_directory is True
        assert config.apply.backup_dir == "/var/backups/pl"
        assert config.log_level == "debug"

    def test_cli_path_wins(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "patchline.yaml").write_text("log_level: debug\n")
        explicit = tmp_path / "other.yaml"
        explicit.write_text("log_level: error\n")
        assert load_config(str(explicit)).log_level == "error"

    def test_user_global_config(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        home = tmp_path / "fakehome"
        (home / ".patchline").mkdir(parents=True)
        (home / ".patchline" / "config.yaml").write_text("log_format: json\n")
        monkeypatch.setattr("pathlib.Path.home", lambda: home)
        assert load_config().log_format == "json"

    def test_empty_file_falls_through(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "patchline.yaml").write_text("")
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
        assert load_config() == PatchlineConfig()

    def test_raises_on_invalid_yaml(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "patchline.yaml").write_text("  bad:\nyaml: [unterminated")
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config()

    def test_unset_backup_dir_variable_rejected(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "patchline.yaml").write_text("apply:\n  backup_dir: ${PL_UNSET_BACKUP}\n")
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
        monkeypatch.delenv("PL_UNSET_BACKUP", raising=False)
        with pytest.raises(ValueError, match="Invalid config"):
            load_config()

    def test_raises_on_invalid_values(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "patchline.yaml").write_text("log_level: loud\n")
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
        with pytest.raises(ValueError, match="Invalid config"):
            load_config()

    def test_default_template_parses(self, tmp_path):
        path = tmp_path / "patchline.yaml"
        path.write_text(DEFAULT_CONFIG_TEMPLATE)
        assert load_config(str(path)) == PatchlineConfig()
