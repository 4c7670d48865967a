"""Tests for engine configuration."""

from pathlib import Path

from bozly.config import BACKUP_DIR_ENV, EngineConfig, default_backup_root, load_engine_config


def test_default_uses_home(monkeypatch):
    monkeypatch.delenv(BACKUP_DIR_ENV, raising=False)

    assert EngineConfig.default().backup_root == default_backup_root()
    assert default_backup_root().parts[-2:] == (".bozly", "backups")


def test_env_overrides_default(monkeypatch, tmp_path: Path):
    monkeypatch.setenv(BACKUP_DIR_ENV, str(tmp_path / "env-backups"))

    assert load_engine_config().backup_root == tmp_path / "env-backups"


def test_explicit_dir_wins(tmp_path: Path):
    config_file = tmp_path / "bozly.toml"
    config_file.write_text('backup_dir = "/somewhere/else"\n', encoding="utf-8")

    config = load_engine_config(config_file, backup_dir=tmp_path / "explicit")

    assert config.backup_root == (tmp_path / "explicit").resolve()


def test_relative_dir_in_file(tmp_path: Path):
    config_file = tmp_path / "bozly.toml"
    config_file.write_text('backup_dir = "backups"\n', encoding="utf-8")

    assert load_engine_config(config_file).backup_root == (tmp_path / "backups").resolve()


def test_file_without_backup_dir_falls_back(monkeypatch, tmp_path: Path):
    monkeypatch.setenv(BACKUP_DIR_ENV, str(tmp_path / "env-backups"))
    config_file = tmp_path / "bozly.toml"
    config_file.write_text("# nothing here\n", encoding="utf-8")

    assert load_engine_config(config_file).backup_root == tmp_path / "env-backups"
