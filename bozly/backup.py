"""
Backups taken before any mutating vault operation.

A backup is a copy of the vault's control subtree(s) plus a manifest:

    <backup_root>/<vault>-<operation>-<UTC stamp>/
        .bozly/
        .ai-vault/        (legacy vaults only)
        backup.json

Backups are never rotated or expired; cleanup is manual.
"""

from __future__ import annotations

import json
import shutil
from datetime import datetime, timezone
from pathlib import Path

from .vault.layout import BOZLY_DIR, LEGACY_DIR, read_json_object

BACKUP_MANIFEST = "backup.json"
PARTIAL_SUFFIX = ".partial"


class BackupError(Exception):
    """Raised when a complete backup could not be created."""


def control_subtrees(vault_root: Path) -> list[Path]:
    """Control subtrees present in the vault, current layout first."""
    return [p for p in (vault_root / BOZLY_DIR, vault_root / LEGACY_DIR) if p.exists()]


def _unique_target(backup_root: Path, name: str) -> Path:
    target = backup_root / name
    n = 1
    while target.exists() or target.with_name(target.name + PARTIAL_SUFFIX).exists():
        target = backup_root / f"{name}-{n}"
        n += 1
    return target


def create_backup(vault_root: Path, backup_root: Path, operation: str = "backup") -> Path:
    """
    Copy the vault's control subtree(s) into a new directory under `backup_root`.

    The copy is assembled in a `.partial` directory and renamed into place,
    so callers either get a complete backup or a BackupError with nothing
    usable left behind.

    Args:
        vault_root: Vault to back up
        backup_root: Backup area; must lie outside the vault
        operation: Short label recorded in the directory name and manifest

    Returns:
        Path of the finished backup directory
    """
    vault_root = vault_root.resolve()
    backup_root = backup_root.expanduser().resolve()

    if backup_root == vault_root or backup_root.is_relative_to(vault_root):
        raise BackupError(f"Backup area {backup_root} must be outside the vault {vault_root}")

    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    partial: Path | None = None

    try:
        backup_root.mkdir(parents=True, exist_ok=True)
        target = _unique_target(backup_root, f"{vault_root.name}-{operation}-{stamp}")
        partial = target.with_name(target.name + PARTIAL_SUFFIX)
        partial.mkdir()

        copied = []
        for src in control_subtrees(vault_root):
            if src.is_dir():
                shutil.copytree(src, partial / src.name, symlinks=True)
            else:
                shutil.copy2(src, partial / src.name)
            copied.append(src.name)

        manifest = {
            "vault": str(vault_root),
            "operation": operation,
            "created": datetime.now(timezone.utc).isoformat(),
            "items": copied,
        }
        (partial / BACKUP_MANIFEST).write_text(json.dumps(manifest, indent=2) + "\n", encoding="utf-8")
        partial.rename(target)
    except OSError as exc:
        if partial is not None:
            shutil.rmtree(partial, ignore_errors=True)
        raise BackupError(f"Failed to create backup in {backup_root}: {exc}") from exc

    return target


def read_manifest(backup: Path) -> dict | None:
    """The backup's manifest, or None when it is missing or unreadable."""
    return read_json_object(backup / BACKUP_MANIFEST)


def list_backups(backup_root: Path, vault_root: Path | None = None) -> list[Path]:
    """Finished backups under `backup_root`, oldest first.

    Directories without a readable manifest are skipped. When `vault_root` is
    given, only backups of that vault are returned.
    """
    if not backup_root.is_dir():
        return []

    wanted = str(vault_root.resolve()) if vault_root is not None else None
    found = []
    for entry in backup_root.iterdir():
        if entry.name.endswith(PARTIAL_SUFFIX):
            continue
        manifest = read_manifest(entry)
        if manifest is None:
            continue
        if wanted is not None and manifest.get("vault") != wanted:
            continue
        found.append(entry)

    return sorted(found, key=lambda p: p.stat().st_mtime_ns)
