"""Step actions for vault migration.

Every action takes a `StepContext` and returns the number of files/entries it
touched. Failures surface as `OSError`, `ValueError` or `StepError`; the
executor decides whether a failure halts the run.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from ..audit_log import CreationSummary, ErasureCost
from ..vault.layout import (
    ANCHOR_DIRS,
    BOZLY_DIR,
    CONFIG_FILE,
    CONTEXT_FILE,
    CURRENT_VERSION,
    INDEX_FILE,
    LEGACY_DIR,
    OPTIONAL_DIRS,
    SESSION_FILE,
    default_config,
    default_context,
    default_index,
    files_under,
    flat_session_records,
    read_json,
    read_json_object,
    session_path,
    sessions_dir,
    vault_node_id,
    write_json,
)


class StepError(Exception):
    """A migration step could not do its work."""


@dataclass
class StepContext:
    """Vault being migrated plus running erasure/creation accounting."""

    vault_root: Path
    erased: ErasureCost
    created: CreationSummary

    @property
    def bozly(self) -> Path:
        return self.vault_root / BOZLY_DIR

    @property
    def legacy(self) -> Path:
        return self.vault_root / LEGACY_DIR

    def mkdir(self, path: Path) -> bool:
        """Create a directory (and parents). Returns True if it was new."""
        if path.is_dir():
            return False
        path.mkdir(parents=True, exist_ok=True)
        self.created.directories += 1
        return True

    def write_json(self, path: Path, data: Any) -> None:
        self.created.bytes_written += write_json(path, data)
        self.created.files += 1

    def write_text(self, path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        self.created.bytes_written += len(text.encode("utf-8"))
        self.created.files += 1

    def copy_file(self, src: Path, dst: Path) -> None:
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)
        self.created.bytes_written += dst.stat().st_size
        self.created.files += 1


def convert_config(data: dict[str, Any], fallback_name: str) -> dict[str, Any]:
    """Normalize any historical config dict to the current schema."""
    converted = default_config(str(data.get("name") or fallback_name))
    for key, value in data.items():
        if value is not None:
            converted[key] = value

    ai = data.get("ai") if isinstance(data.get("ai"), dict) else {}
    converted["ai"] = {**default_config(fallback_name)["ai"], **ai}
    converted["version"] = CURRENT_VERSION
    return converted


def _load_config(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise StepError(f"Source not found: {path}")
    data = read_json_object(path)
    if data is None:
        raise StepError(f"{path} does not hold a JSON object")
    return data


def create_structure(ctx: StepContext) -> int:
    created = 0
    for path in [ctx.bozly] + [a.path(ctx.vault_root) for a in ANCHOR_DIRS] + [ctx.bozly / d for d in OPTIONAL_DIRS]:
        if ctx.mkdir(path):
            created += 1
    return created


def convert_current_config(ctx: StepContext) -> int:
    path = ctx.bozly / CONFIG_FILE
    data = _load_config(path)
    ctx.write_json(path, convert_config(data, ctx.vault_root.name))
    return 1


def convert_legacy_config(ctx: StepContext) -> int:
    legacy = _load_config(ctx.legacy / CONFIG_FILE)

    # Legacy values win; a config already under .bozly only fills the gaps.
    current_path = ctx.bozly / CONFIG_FILE
    existing = read_json_object(current_path) or {}
    ctx.write_json(current_path, convert_config({**existing, **legacy}, ctx.vault_root.name))
    return 1


def _file_timestamp(path: Path) -> str:
    mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
    return mtime.isoformat().replace("+00:00", "Z")


def _relocate_session(ctx: StepContext, record: Path, dest_base: Path, node: str) -> None:
    """Move one flat session record into `<node>/YYYY/MM/DD/<id>/`."""
    record_file = record / SESSION_FILE if record.is_dir() else record
    data = read_json(record_file)
    if not isinstance(data, dict):
        raise StepError(f"Session record {record_file} is not a JSON object")

    session_id = str(data.get("id") or (record.name if record.is_dir() else record.stem))
    timestamp = str(data.get("timestamp") or _file_timestamp(record_file))
    target = session_path(dest_base, node, timestamp, session_id)
    if (target / SESSION_FILE).exists():
        raise StepError(f"Session {session_id} already exists at {target}")

    data.update({"id": session_id, "nodeId": node, "timestamp": timestamp})

    if record.is_dir():
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(record), str(target))
        ctx.created.directories += 1
    else:
        record.unlink()
        ctx.erased.files += 1
    ctx.write_json(target / SESSION_FILE, data)


def _migrate_sessions_from(ctx: StepContext, source: Path) -> int:
    records = flat_session_records(source)
    if not records:
        return 0

    node = vault_node_id(ctx.vault_root)
    dest_base = sessions_dir(ctx.vault_root)
    ctx.mkdir(dest_base)
    for record in records:
        _relocate_session(ctx, record, dest_base, node)
    return len(records)


def migrate_sessions(ctx: StepContext) -> int:
    return _migrate_sessions_from(ctx, sessions_dir(ctx.vault_root))


def migrate_legacy_sessions(ctx: StepContext) -> int:
    return _migrate_sessions_from(ctx, ctx.legacy / "sessions")


def migrate_context(ctx: StepContext) -> int:
    target = ctx.bozly / CONTEXT_FILE
    if target.is_file():
        return 0
    for candidate in (ctx.legacy / CONTEXT_FILE, ctx.vault_root / CONTEXT_FILE):
        if candidate.is_file():
            ctx.copy_file(candidate, target)
            return 1
    ctx.write_text(target, default_context(ctx.vault_root.name))
    return 1


def migrate_commands(ctx: StepContext) -> int:
    source = ctx.legacy / "commands"
    if not source.is_dir():
        raise StepError(f"No legacy commands directory at {source}")

    copied = 0
    target = ctx.bozly / "commands"
    for src in files_under(source):
        dst = target / src.relative_to(source)
        if dst.exists():
            continue
        ctx.copy_file(src, dst)
        copied += 1
    return copied


def rebuild_index(ctx: StepContext) -> int:
    path = ctx.bozly / INDEX_FILE
    if read_json_object(path) is not None:
        return 0
    ctx.write_json(path, default_index())
    return 1


def create_guides(ctx: StepContext) -> int:
    return 1 if ctx.mkdir(ctx.bozly / "guides") else 0


def remove_legacy(ctx: StepContext) -> int:
    if not ctx.legacy.exists():
        return 0
    files = files_under(ctx.legacy)
    size = sum(p.stat().st_size for p in files)
    shutil.rmtree(ctx.legacy)
    ctx.erased.files += len(files)
    ctx.erased.directories += 1
    ctx.erased.bytes_erased += size
    return len(files)


STEP_ACTIONS: dict[str, Callable[[StepContext], int]] = {
    "create-structure": create_structure,
    "convert-config": convert_current_config,
    "convert-legacy-config": convert_legacy_config,
    "migrate-sessions": migrate_sessions,
    "migrate-legacy-sessions": migrate_legacy_sessions,
    "migrate-context": migrate_context,
    "migrate-commands": migrate_commands,
    "rebuild-index": rebuild_index,
    "create-guides": create_guides,
    "remove-legacy": remove_legacy,
}
