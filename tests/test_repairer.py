"""Tests for vault repair."""

import json
import shutil
from pathlib import Path

import pytest

from bozly.audit_log import read_audit_log
from bozly.backup import list_backups
from bozly.migration.executor import execute_migration
from bozly.recovery import repairer
from bozly.recovery.repairer import repair_vault
from bozly.recovery.scanner import generate_health_report
from bozly.vault.layout import NotAVaultError
from conftest import SESSION_ID, session_record, write_json

SESSION_DIR = Path(".bozly", "sessions", "music", "2025", "12", "20", SESSION_ID)


def test_recreates_missing_sessions_directory(current_vault: Path, engine_config):
    shutil.rmtree(current_vault / ".bozly" / "sessions")

    result = repair_vault(current_vault, engine_config)

    assert result.success
    assert result.repairs_attempted == 1
    assert result.repairs_successful == 1
    assert (current_vault / ".bozly" / "sessions").is_dir()
    assert not [d for d in generate_health_report(current_vault).damages if d.type == "missing-file"]


def test_resets_corrupted_config(current_vault: Path, engine_config):
    config_path = current_vault / ".bozly" / "config.json"
    config_path.write_text("{ not valid", encoding="utf-8")

    result = repair_vault(current_vault, engine_config)

    assert result.repairs_successful == 1
    config = json.loads(config_path.read_text(encoding="utf-8"))
    assert config["version"] == "0.6.0"
    assert config["name"] == current_vault.name
    assert generate_health_report(current_vault).is_healthy


def test_rebuilds_missing_session_record(current_vault: Path, engine_config):
    record_path = current_vault / SESSION_DIR / "session.json"
    record_path.unlink()

    result = repair_vault(current_vault, engine_config)

    assert result.success
    record = json.loads(record_path.read_text(encoding="utf-8"))
    assert record["id"] == SESSION_ID
    assert record["nodeId"] == "music"
    assert record["timestamp"].startswith("2025-12-20")


def test_rebuild_keeps_existing_fields(current_vault: Path, engine_config):
    record = session_record(provider="gpt")
    del record["id"]
    record_path = current_vault / SESSION_DIR / "session.json"
    write_json(record_path, record)

    repair_vault(current_vault, engine_config)

    fixed = json.loads(record_path.read_text(encoding="utf-8"))
    assert fixed["id"] == SESSION_ID
    assert fixed["provider"] == "gpt"
    assert fixed["command"] == "daily"


def test_rebuilds_empty_bozly(vault_path: Path, engine_config):
    (vault_path / ".bozly").mkdir()

    result = repair_vault(vault_path, engine_config)

    assert result.success
    assert result.repairs_attempted == result.repairs_successful
    assert generate_health_report(vault_path).is_healthy


def test_unfixable_damage_is_not_attempted(current_vault: Path, engine_config):
    (current_vault / ".bozly" / "workflows" / "flow.json").write_text("[1, 2", encoding="utf-8")

    result = repair_vault(current_vault, engine_config)

    assert result.success
    assert result.repairs_attempted == 0
    assert result.backup_created is None
    assert len(result.damages_found) == 1
    assert not engine_config.backup_root.exists()


def test_healthy_vault_takes_no_backup(current_vault: Path, engine_config):
    result = repair_vault(current_vault, engine_config)

    assert result.success
    assert result.damages_found == []
    assert result.backup_created is None


def test_backup_taken_before_repair(current_vault: Path, engine_config):
    config_path = current_vault / ".bozly" / "config.json"
    config_path.write_text("{ not valid", encoding="utf-8")

    result = repair_vault(current_vault, engine_config)

    backed_up = Path(result.backup_created) / ".bozly" / "config.json"
    assert backed_up.read_text(encoding="utf-8") == "{ not valid"
    assert len(list_backups(engine_config.backup_root, current_vault)) == 1


def test_backup_failure_aborts_repair(current_vault: Path, unwritable_config):
    shutil.rmtree(current_vault / ".bozly" / "sessions")

    result = repair_vault(current_vault, unwritable_config)

    assert result.success is False
    assert result.error
    assert result.repairs_attempted == 0
    assert not (current_vault / ".bozly" / "sessions").exists()


def test_repair_is_idempotent(current_vault: Path, engine_config):
    (current_vault / ".bozly" / "index.json").write_text("nope", encoding="utf-8")
    (current_vault / ".bozly" / "workflows").rmdir()

    first = repair_vault(current_vault, engine_config)
    second = repair_vault(current_vault, engine_config)

    assert first.repairs_successful == 2
    assert second.repairs_attempted == 0
    assert second.damages_found == []
    assert len(list_backups(engine_config.backup_root, current_vault)) == 1


def test_unresolved_repair_is_not_counted(current_vault: Path, engine_config, monkeypatch):
    shutil.rmtree(current_vault / ".bozly" / "sessions")
    monkeypatch.setattr(repairer, "REPAIRS", {**repairer.REPAIRS, "missing-file": lambda damage, root, created: None})

    result = repair_vault(current_vault, engine_config)

    assert result.repairs_attempted == 1
    assert result.repairs_successful == 0
    assert result.success is False
    assert result.repairs_details[0].startswith("✗")


def test_repair_is_audited(current_vault: Path, engine_config):
    (current_vault / ".bozly" / "index.json").unlink()

    result = repair_vault(current_vault, engine_config)

    entry = read_audit_log(engine_config.backup_root)[-1]
    assert entry.operation == "repair"
    assert entry.metadata["backup"] == result.backup_created
    assert entry.metadata["repairs_successful"] == 1
    assert entry.created.files == 1


def test_plain_directory_is_refused(vault_path: Path, engine_config):
    with pytest.raises(NotAVaultError):
        repair_vault(vault_path, engine_config)

    assert list(vault_path.iterdir()) == []
    assert not engine_config.backup_root.exists()


def test_legacy_vault_is_left_for_migration(v03_vault: Path, engine_config):
    repaired = repair_vault(v03_vault, engine_config)

    assert repaired.repairs_attempted == 0
    assert repaired.backup_created is None
    assert not (v03_vault / ".bozly").exists()

    migrated = execute_migration(v03_vault, engine_config)

    assert migrated.success, migrated.error
    config = json.loads((v03_vault / ".bozly" / "config.json").read_text(encoding="utf-8"))
    assert config["name"] == "Journal"
    assert (v03_vault / ".bozly" / "sessions" / "journal" / "2024" / "03" / "05" / "old-1" / "session.json").is_file()
