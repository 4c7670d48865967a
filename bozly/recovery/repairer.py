"""Mechanical repairs for fixable vault damage.

Repairs are looked up by damage type. Each repair is independent of the
others and safe to run twice.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from ..audit_log import CreationSummary
from ..backup import BackupError, create_backup
from ..config import EngineConfig
from ..models import RepairResult, VaultDamage
from ..vault.layout import (
    find_anchor,
    load_json,
    rebuild_session_record,
    write_default,
    write_json,
)
from .scanner import scan_vault_damage, still_damaged

RepairFn = Callable[[VaultDamage, Path, CreationSummary], None]


def _repair_missing(damage: VaultDamage, vault_root: Path, created: CreationSummary) -> None:
    path = Path(damage.path)
    anchor = find_anchor(vault_root, path)

    if anchor is not None and anchor.kind == "dir":
        path.mkdir(parents=True, exist_ok=True)
        created.directories += 1
        return

    if anchor is None:
        raise ValueError(f"No repair known for missing {path}")
    created.bytes_written += write_default(anchor, vault_root)
    created.files += 1


def _repair_corrupted_json(damage: VaultDamage, vault_root: Path, created: CreationSummary) -> None:
    path = Path(damage.path)
    anchor = find_anchor(vault_root, path)

    if anchor is not None and anchor.default is not None:
        created.bytes_written += write_default(anchor, vault_root)
    else:
        # Only session records are flagged fixable besides anchor files.
        created.bytes_written += write_json(path, rebuild_session_record({}, path.parent))
    created.files += 1


def _repair_broken_session(damage: VaultDamage, vault_root: Path, created: CreationSummary) -> None:
    path = Path(damage.path)
    record, error = load_json(path) if path.exists() else ({}, None)
    if error is not None:
        record = {}
    created.bytes_written += write_json(path, rebuild_session_record(record, path.parent))
    created.files += 1


REPAIRS: dict[str, RepairFn] = {
    "missing-file": _repair_missing,
    "corrupted-json": _repair_corrupted_json,
    "broken-session": _repair_broken_session,
}


def repair_vault(vault_root: Path, config: EngineConfig | None = None) -> RepairResult:
    """
    Repair every fixable damage in a vault.

    A backup is taken before the first repair. Unfixable damage is reported
    but never attempted. A repair counts as successful only when the check
    that flagged the damage no longer does.

    Raises:
        NotAVaultError: if the vault directory does not exist
    """
    config = config or EngineConfig.default()
    vault_root = Path(vault_root).resolve()

    damages = scan_vault_damage(vault_root)
    result = RepairResult(damages_found=damages)
    fixable = [d for d in damages if d.fixable]

    if not fixable:
        return result

    try:
        result.backup_created = str(create_backup(vault_root, config.backup_root, operation="repair"))
    except BackupError as exc:
        result.success = False
        result.error = str(exc)
        return result

    for damage in fixable:
        repair = REPAIRS.get(damage.type)
        result.repairs_attempted += 1
        if repair is None:
            result.repairs_details.append(f"✗ No repair known for {damage.type}: {damage.path}")
            continue

        try:
            repair(damage, vault_root, result.created)
        except (OSError, ValueError) as exc:
            result.repairs_details.append(f"✗ Failed to repair {damage.path}: {exc}")
            continue

        if still_damaged(damage, vault_root):
            result.repairs_details.append(f"✗ Repair did not resolve {damage.type}: {damage.path}")
        else:
            result.repairs_successful += 1
            result.repairs_details.append(f"✓ Repaired {damage.type}: {damage.path}")

    result.success = result.complete
    result.log_to_audit(
        config.backup_root,
        vault_root,
        "repair",
        {
            "backup": result.backup_created,
            "damages_found": len(damages),
            "repairs_attempted": result.repairs_attempted,
            "repairs_successful": result.repairs_successful,
        },
    )
    return result

