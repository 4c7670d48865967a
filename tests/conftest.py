"""Pytest configuration and fixtures."""

import json
from pathlib import Path

import pytest

from bozly.config import EngineConfig

SESSION_ID = "3f2a9c1e-0000-4000-8000-000000000001"
SESSION_TIMESTAMP = "2025-12-20T14:32:00.123Z"


def write_json(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def session_record(session_id: str = SESSION_ID, node: str = "music", **overrides) -> dict:
    record = {
        "id": session_id,
        "timestamp": SESSION_TIMESTAMP,
        "command": "daily",
        "status": "completed",
        "nodeId": node,
        "provider": "claude",
    }
    record.update(overrides)
    return record


def make_current_vault(root: Path, name: str = "Music") -> Path:
    """A healthy vault on the current layout with one session."""
    bozly = root / ".bozly"
    for sub in ("commands", "sessions", "workflows", "tasks", "hooks"):
        (bozly / sub).mkdir(parents=True, exist_ok=True)
    write_json(
        bozly / "config.json",
        {
            "name": name,
            "type": "music",
            "version": "0.6.0",
            "created": "2025-11-01T09:00:00.000Z",
            "ai": {"defaultProvider": "claude", "providers": ["claude"]},
        },
    )
    (bozly / "context.md").write_text(f"# {name}\n", encoding="utf-8")
    write_json(bozly / "index.json", {"tasks": [], "lastUpdated": "2025-11-01T09:00:00.000Z"})
    (bozly / "commands" / "daily.md").write_text("---\nmodel: claude\n---\nSummarize today.\n", encoding="utf-8")
    write_json(bozly / "sessions" / "music" / "2025" / "12" / "20" / SESSION_ID / "session.json", session_record())
    return root


@pytest.fixture
def vault_path(tmp_path: Path) -> Path:
    path = tmp_path / "vault"
    path.mkdir()
    return path


@pytest.fixture
def current_vault(vault_path: Path) -> Path:
    return make_current_vault(vault_path)


@pytest.fixture
def v05_vault(current_vault: Path) -> Path:
    config_path = current_vault / ".bozly" / "config.json"
    config = json.loads(config_path.read_text(encoding="utf-8"))
    config["version"] = "0.5.2"
    write_json(config_path, config)
    return current_vault


@pytest.fixture
def v04_vault(vault_path: Path) -> Path:
    """Old .bozly layout: 0.4 config and flat session files."""
    bozly = vault_path / ".bozly"
    for sub in ("commands", "sessions", "workflows"):
        (bozly / sub).mkdir(parents=True)
    write_json(bozly / "config.json", {"name": "Music", "version": "0.4.1", "type": "music"})
    (bozly / "context.md").write_text("# Music\n", encoding="utf-8")
    write_json(
        bozly / "sessions" / "s-001.json",
        {"id": "s-001", "timestamp": "2025-06-01T10:00:00Z", "command": "daily", "status": "completed"},
    )
    write_json(
        bozly / "sessions" / "s-002.json",
        {"id": "s-002", "timestamp": "2025-06-02T23:30:00Z", "command": "weekly", "status": "failed"},
    )
    return vault_path


@pytest.fixture
def v03_vault(vault_path: Path) -> Path:
    """Oldest layout: everything under .ai-vault."""
    legacy = vault_path / ".ai-vault"
    (legacy / "commands").mkdir(parents=True)
    write_json(legacy / "config.json", {"name": "Journal", "version": "0.3.0"})
    (legacy / "context.md").write_text("# Journal context\n", encoding="utf-8")
    (legacy / "commands" / "reflect.md").write_text("Reflect on the week.\n", encoding="utf-8")
    write_json(
        legacy / "sessions" / "old-1.json",
        {"id": "old-1", "timestamp": "2024-03-05T08:15:00Z", "command": "reflect", "status": "completed"},
    )
    return vault_path


@pytest.fixture
def engine_config(tmp_path: Path) -> EngineConfig:
    return EngineConfig(backup_root=tmp_path / "backups")


@pytest.fixture
def unwritable_config(tmp_path: Path) -> EngineConfig:
    """Backup area that cannot be created (its parent is a regular file)."""
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    return EngineConfig(backup_root=blocker / "backups")
