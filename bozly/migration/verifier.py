"""Post-migration verification.

The detector only checks structural anchors. Verification additionally looks
for leftovers that only older layouts produce.
"""

from __future__ import annotations

from pathlib import Path

from ..planning import MigrationVerification
from ..vault.layout import (
    BOZLY_DIR,
    CONFIG_FILE,
    CONTEXT_FILE,
    CURRENT_VERSION,
    LEGACY_DIR,
    NotAVaultError,
    flat_session_records,
    read_config,
    sessions_dir,
)
from .signatures import CURRENT, NOT_A_VAULT, detect_old_version

# In-vault backup directories written by older releases.
BACKUP_RESIDUE_PATTERNS = (".ai-vault-backup", ".bozly-backup-*", ".bozly-migration-backup-*")

RECOMMENDATIONS = {
    "legacy-layout": "Run 'bozly migrate --execute' to finish the migration",
    "missing-bozly": "Run 'bozly recover --repair' to recreate the .bozly structure",
    "bad-config": "Run 'bozly recover --repair' to restore a valid config.json",
    "outdated-config": f"Update the config version to {CURRENT_VERSION} with: bozly config set version {CURRENT_VERSION}",
    "missing-context": "Run 'bozly recover --repair' to restore context.md",
    "legacy-dir": f"Old {LEGACY_DIR} directory still exists. Remove with: rm -rf {LEGACY_DIR}",
    "backup-residue": "Backups from older releases live inside the vault; move them out or delete them",
    "config-backup": "Delete .bozly/config.json.backup once the migrated config is confirmed",
    "flat-session": "Run 'bozly migrate --execute' to move flat session records into the node/date hierarchy",
}


def _version_tuple(version: str) -> tuple[int, ...] | None:
    try:
        return tuple(int(part) for part in version.split("."))
    except ValueError:
        return None


def find_legacy_items(vault_root: Path) -> list[tuple[str, str]]:
    """(kind, vault-relative path) for every pre-migration leftover."""
    items: list[tuple[str, str]] = []

    if (vault_root / LEGACY_DIR).exists():
        items.append(("legacy-dir", LEGACY_DIR))

    residue: set[Path] = set()
    for pattern in BACKUP_RESIDUE_PATTERNS:
        residue.update(p for p in vault_root.glob(pattern) if p.is_dir())
    for path in sorted(residue):
        items.append(("backup-residue", path.name))

    if (vault_root / BOZLY_DIR / f"{CONFIG_FILE}.backup").exists():
        items.append(("config-backup", f"{BOZLY_DIR}/{CONFIG_FILE}.backup"))

    for record in flat_session_records(sessions_dir(vault_root)):
        items.append(("flat-session", record.relative_to(vault_root).as_posix()))

    return items


def find_issues(vault_root: Path) -> list[tuple[str, str]]:
    issues: list[tuple[str, str]] = []

    label = detect_old_version(vault_root)
    if label not in (CURRENT, NOT_A_VAULT):
        issues.append(("legacy-layout", f"Vault still matches legacy layout {label}"))

    if not (vault_root / BOZLY_DIR).is_dir():
        issues.append(("missing-bozly", f"Missing {BOZLY_DIR} directory"))

    config = read_config(vault_root)
    if config is None:
        issues.append(("bad-config", f"Invalid or missing {BOZLY_DIR}/{CONFIG_FILE}"))
    else:
        version = str(config.get("version") or "")
        current = _version_tuple(CURRENT_VERSION)
        found = _version_tuple(version)
        if found is None or found < current:
            issues.append(("outdated-config", f"Config version outdated: {version or 'missing'}"))

    if not (vault_root / BOZLY_DIR / CONTEXT_FILE).is_file():
        issues.append(("missing-context", f"Missing {BOZLY_DIR}/{CONTEXT_FILE}"))

    return issues


def verify_migration(vault_root: Path) -> MigrationVerification:
    """
    Re-scan a vault for legacy residue after migration.

    Raises:
        NotAVaultError: if the path is not a directory
    """
    vault_root = Path(vault_root)
    if not vault_root.is_dir():
        raise NotAVaultError(f"Vault directory does not exist: {vault_root}")

    issues = find_issues(vault_root)
    legacy = find_legacy_items(vault_root)

    recommendations: list[str] = []
    for kind, _ in issues + legacy:
        text = RECOMMENDATIONS[kind]
        if text not in recommendations:
            recommendations.append(text)

    verified = not issues
    return MigrationVerification(
        verified=verified,
        is_fully_migrated=verified and not legacy,
        issues=[message for _, message in issues],
        legacy_items=[path for _, path in legacy],
        recommendations=recommendations,
    )
