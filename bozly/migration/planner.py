"""Migration planning. Read-only and safely repeatable."""

from __future__ import annotations

from pathlib import Path

from ..backup import control_subtrees
from ..planning import MigrationPlan
from ..vault.layout import CURRENT_VERSION, NotAVaultError, files_under
from .signatures import CURRENT, NOT_A_VAULT, detect_old_version, match_layout

FILES_PER_SECOND = 10


def _count_files(vault_root: Path) -> int:
    return sum(len(files_under(subtree)) for subtree in control_subtrees(vault_root))


def estimate_duration(vault_root: Path, base_seconds: int) -> int:
    """Heuristic: base cost per layout plus one second per ten control files."""
    return base_seconds + _count_files(vault_root) // FILES_PER_SECOND


def plan_migration(vault_root: Path) -> MigrationPlan:
    """
    Build the ordered step list that upgrades a vault to the current layout.

    Raises:
        NotAVaultError: if the path holds no vault anchor
    """
    vault_root = Path(vault_root)
    if detect_old_version(vault_root) == NOT_A_VAULT:
        raise NotAVaultError(f"Not a bozly vault: {vault_root} (no .bozly/config.json or .ai-vault/)")

    layout = match_layout(vault_root)
    if layout is None:
        return MigrationPlan(
            vault_path=vault_root,
            old_version=CURRENT,
            new_version=CURRENT_VERSION,
            steps=[],
            summary="Vault is on the current layout; no migration needed",
            estimated_duration_seconds=0,
            safe=False,
        )

    return MigrationPlan(
        vault_path=vault_root,
        old_version=layout.label,
        new_version=CURRENT_VERSION,
        steps=list(layout.steps),
        summary=layout.summary,
        estimated_duration_seconds=estimate_duration(vault_root, layout.base_seconds),
        safe=True,
    )
