"""
Audit trail for vault mutations.

`<backup_root>/audit.log` holds one JSON object per line, appended after
every migration or repair that touched a vault. An entry records which
vault, what the run removed and wrote (files, directories, bytes), and the
run's metadata (backup location, step or repair counts, error).

Entries are never rewritten. Lines that fail to parse are ignored on read.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

AUDIT_LOG_NAME = "audit.log"


@dataclass
class ErasureCost:
    """What a run removed from the vault."""
    files: int = 0
    directories: int = 0
    bytes_erased: int = 0
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class CreationSummary:
    """What a run wrote into the vault."""
    files: int = 0
    directories: int = 0
    bytes_written: int = 0
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class AuditEntry:
    timestamp: str
    operation: str
    vault: str
    erased: ErasureCost
    created: CreationSummary
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "AuditEntry":
        return cls(
            timestamp=data["timestamp"],
            operation=data["operation"],
            vault=data.get("vault", ""),
            erased=ErasureCost(**data.get("erased", {})),
            created=CreationSummary(**data.get("created", {})),
            metadata=data.get("metadata", {}),
        )


def get_audit_log_path(backup_root: Path) -> Path:
    return backup_root / AUDIT_LOG_NAME


def log_operation(
    backup_root: Path,
    vault_root: Path,
    operation: str,
    erased: ErasureCost | None = None,
    created: CreationSummary | None = None,
    metadata: dict[str, Any] | None = None,
) -> AuditEntry:
    """
    Append one entry to the audit log, creating the backup area if needed.

    Args:
        backup_root: Backup area the engine is configured with
        vault_root: Vault the operation ran against
        operation: "migrate" or "repair"
        erased: Removal accounting
        created: Creation accounting
        metadata: Run details (backup location, counts, error)
    """
    entry = AuditEntry(
        timestamp=datetime.now(timezone.utc).isoformat(),
        operation=operation,
        vault=str(Path(vault_root).resolve()),
        erased=erased or ErasureCost(),
        created=created or CreationSummary(),
        metadata=metadata or {},
    )

    log_path = get_audit_log_path(backup_root)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with log_path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry.to_dict()) + "\n")

    return entry


def read_audit_log(
    backup_root: Path,
    vault_root: Path | None = None,
    last_n: int | None = None,
) -> list[AuditEntry]:
    """
    Entries from the audit log, oldest first.

    Args:
        backup_root: Backup area holding the log
        vault_root: Only entries for this vault
        last_n: Only the last N (matching) entries
    """
    log_path = get_audit_log_path(backup_root)
    if not log_path.is_file():
        return []

    wanted = str(Path(vault_root).resolve()) if vault_root is not None else None
    entries = []
    with log_path.open("r", encoding="utf-8") as f:
        for raw in f:
            raw = raw.strip()
            if not raw:
                continue
            try:
                entry = AuditEntry.from_dict(json.loads(raw))
            except (json.JSONDecodeError, KeyError, TypeError):
                continue
            if wanted is None or entry.vault == wanted:
                entries.append(entry)

    if last_n is not None:
        return entries[-last_n:]
    return entries


def _counts(files: int, directories: int, size: int) -> str:
    parts = []
    if files:
        parts.append(f"{files} file(s)")
    if directories:
        parts.append(f"{directories} dir(s)")
    if size:
        parts.append(f"{size} bytes")
    return ", ".join(parts)


def format_audit_entry(entry: AuditEntry) -> str:
    """Multi-line, human-readable rendering of one entry."""
    lines = [f"[{entry.timestamp}] {entry.operation} {entry.vault}"]

    erased = _counts(entry.erased.files, entry.erased.directories, entry.erased.bytes_erased)
    if erased:
        lines.append(f"  Erased: {erased}")
    created = _counts(entry.created.files, entry.created.directories, entry.created.bytes_written)
    if created:
        lines.append(f"  Created: {created}")

    for key, value in entry.metadata.items():
        if value is not None:
            lines.append(f"  {key}: {value}")
    return "\n".join(lines)
