"""Tests for post-migration verification."""

import json
from pathlib import Path

import pytest

from bozly.migration.verifier import verify_migration
from bozly.vault.layout import NotAVaultError
from conftest import write_json


def test_current_vault_is_fully_migrated(current_vault: Path):
    verification = verify_migration(current_vault)

    assert verification.verified
    assert verification.is_fully_migrated
    assert verification.issues == []
    assert verification.legacy_items == []
    assert verification.recommendations == []


def test_leftover_ai_vault_is_legacy_item(current_vault: Path):
    (current_vault / ".ai-vault").mkdir()

    verification = verify_migration(current_vault)

    assert ".ai-vault" in verification.legacy_items
    assert verification.is_fully_migrated is False
    assert any("rm -rf .ai-vault" in r for r in verification.recommendations)


def test_outdated_config_is_an_issue(v05_vault: Path):
    verification = verify_migration(v05_vault)

    assert verification.verified is False
    assert verification.is_fully_migrated is False
    assert any("0.5.2" in issue for issue in verification.issues)


def test_missing_context_is_an_issue(current_vault: Path):
    (current_vault / ".bozly" / "context.md").unlink()

    verification = verify_migration(current_vault)

    assert not verification.verified
    assert any("context.md" in issue for issue in verification.issues)


def test_newer_config_version_is_accepted(current_vault: Path):
    config_path = current_vault / ".bozly" / "config.json"
    config = json.loads(config_path.read_text(encoding="utf-8"))
    config["version"] = "0.10.0"
    write_json(config_path, config)

    assert verify_migration(current_vault).verified


def test_backup_residue_and_config_backup(current_vault: Path):
    (current_vault / ".bozly-backup-2025-01-01").mkdir()
    (current_vault / ".ai-vault-backup").mkdir()
    (current_vault / ".bozly" / "config.json.backup").write_text("{}", encoding="utf-8")

    verification = verify_migration(current_vault)

    assert verification.verified
    assert not verification.is_fully_migrated
    assert ".bozly-backup-2025-01-01" in verification.legacy_items
    assert ".ai-vault-backup" in verification.legacy_items
    assert ".bozly/config.json.backup" in verification.legacy_items


def test_flat_sessions_are_legacy_items(current_vault: Path):
    write_json(current_vault / ".bozly" / "sessions" / "old.json", {"id": "old"})

    verification = verify_migration(current_vault)

    assert ".bozly/sessions/old.json" in verification.legacy_items


def test_recommendations_are_deduplicated(current_vault: Path):
    write_json(current_vault / ".bozly" / "sessions" / "a.json", {"id": "a"})
    write_json(current_vault / ".bozly" / "sessions" / "b.json", {"id": "b"})

    verification = verify_migration(current_vault)

    assert len(verification.recommendations) == len(set(verification.recommendations))


def test_missing_directory_raises(tmp_path: Path):
    with pytest.raises(NotAVaultError):
        verify_migration(tmp_path / "missing")
