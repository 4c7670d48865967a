"""Layout signatures for historical vault layouts.

Each known legacy layout is one `LegacyLayout` entry: a predicate over the
vault root, the label it reports, and the step templates that upgrade it.
`LEGACY_LAYOUTS` is ordered newest to oldest; the first matching entry wins.
Adding a release means adding an entry, not touching the executor.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from ..planning import MigrationStep
from ..vault.layout import (
    BOZLY_DIR,
    CONFIG_FILE,
    LEGACY_DIR,
    flat_session_records,
    read_config,
    sessions_dir,
)

CURRENT = "unknown"
NOT_A_VAULT = "not-a-vault"


@dataclass(frozen=True)
class LegacyLayout:
    """A historical on-disk layout and how to upgrade it."""

    label: str
    matches: Callable[[Path], bool]
    summary: str
    base_seconds: int
    steps: tuple[MigrationStep, ...]


def _config_version(vault_root: Path) -> str:
    config = read_config(vault_root) or {}
    version = config.get("version")
    return version if isinstance(version, str) else ""


def _is_v05(vault_root: Path) -> bool:
    return _config_version(vault_root).startswith("0.5.")


def _is_v04(vault_root: Path) -> bool:
    if _config_version(vault_root).startswith("0.4."):
        return True
    return bool(flat_session_records(sessions_dir(vault_root)))


def _is_v03(vault_root: Path) -> bool:
    return (vault_root / LEGACY_DIR).is_dir()


CONVERT_CONFIG = MigrationStep(
    id="convert-config",
    name="Update config format",
    description="Convert config.json to the current schema and version",
    action="convert-config",
)

MIGRATE_SESSIONS = MigrationStep(
    id="migrate-sessions",
    name="Migrate sessions structure",
    description="Reorganize sessions from flat files to the node/date hierarchy",
    action="migrate-sessions",
    details="Converts session layout to <node>/YYYY/MM/DD/<id>/session.json",
)

REBUILD_INDEX = MigrationStep(
    id="rebuild-index",
    name="Rebuild index",
    description="Write index.json when it is missing or unreadable",
    action="rebuild-index",
)

CREATE_GUIDES = MigrationStep(
    id="create-guides",
    name="Create guides directory",
    description="Set up the guides directory used for context optimizations",
    action="create-guides",
    optional=True,
)

LEGACY_LAYOUTS: tuple[LegacyLayout, ...] = (
    LegacyLayout(
        label="v0.5.0",
        matches=_is_v05,
        summary="Minor update from v0.5.0 to v0.6.0",
        base_seconds=30,
        steps=(CONVERT_CONFIG, CREATE_GUIDES),
    ),
    LegacyLayout(
        label="v0.4.x",
        matches=_is_v04,
        summary="Upgrade from v0.4.x to v0.6.0 (.bozly structure update)",
        base_seconds=90,
        steps=(CONVERT_CONFIG, MIGRATE_SESSIONS, REBUILD_INDEX, CREATE_GUIDES),
    ),
    LegacyLayout(
        label="v0.3.0",
        matches=_is_v03,
        summary="Full migration from v0.3.0 (.ai-vault) to v0.6.0 (.bozly)",
        base_seconds=120,
        steps=(
            MigrationStep(
                id="create-structure",
                name="Create new structure",
                description="Create the .bozly directory and its core subdirectories",
                action="create-structure",
            ),
            MigrationStep(
                id="convert-config",
                name="Migrate config",
                description="Convert .ai-vault/config.json into .bozly/config.json",
                action="convert-legacy-config",
            ),
            MigrationStep(
                id="migrate-sessions",
                name="Migrate sessions",
                description="Move .ai-vault sessions into the node/date hierarchy",
                action="migrate-legacy-sessions",
            ),
            MigrationStep(
                id="migrate-context",
                name="Migrate context",
                description="Carry context.md over, or write a default one",
                action="migrate-context",
            ),
            MigrationStep(
                id="migrate-commands",
                name="Migrate commands",
                description="Copy command definitions to .bozly/commands",
                action="migrate-commands",
                optional=True,
            ),
            REBUILD_INDEX,
            MigrationStep(
                id="remove-legacy",
                name="Remove old structure",
                description="Delete the .ai-vault directory",
                action="remove-legacy",
                optional=True,
                details="A full copy is kept in the migration backup",
            ),
        ),
    ),
)


def is_vault(vault_root: Path) -> bool:
    """A vault has a `.bozly/config.json` anchor or a legacy `.ai-vault/`."""
    if not vault_root.is_dir():
        return False
    return (vault_root / BOZLY_DIR / CONFIG_FILE).is_file() or (vault_root / LEGACY_DIR).is_dir()


def match_layout(vault_root: Path) -> LegacyLayout | None:
    for layout in LEGACY_LAYOUTS:
        if layout.matches(vault_root):
            return layout
    return None


def detect_old_version(vault_root: Path) -> str:
    """
    Detect which legacy layout a vault is in.

    Returns:
        A legacy label (e.g. "v0.4.x"), CURRENT ("unknown") when no legacy
        signature matches, or NOT_A_VAULT when the anchor is absent.
        Never raises for a missing vault.
    """
    try:
        if not is_vault(vault_root):
            return NOT_A_VAULT
        layout = match_layout(vault_root)
    except OSError:
        return NOT_A_VAULT
    return layout.label if layout else CURRENT
