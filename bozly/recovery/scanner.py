"""Damage scanning for vault recovery."""

from __future__ import annotations

from pathlib import Path

import frontmatter
import yaml

from ..migration.signatures import NOT_A_VAULT, detect_old_version
from ..models import HealthReport, VaultDamage
from ..vault.layout import (
    ANCHOR_DIRS,
    ANCHOR_FILES,
    BOZLY_DIR,
    CONFIG_FILE,
    INDEX_FILE,
    LEGACY_DIR,
    SESSION_FILE,
    NotAVaultError,
    is_day,
    is_month,
    is_year,
    load_json,
    session_problems,
    sessions_dir,
)

ARCHIVE_DIR = "archive"

RECOMMENDATIONS: dict[tuple[str, bool], str] = {
    ("missing-file", True): "Recreate missing files and directories with: bozly recover --repair",
    ("missing-file", False): "Run 'bozly migrate --execute' to build the .bozly structure from the legacy vault",
    ("corrupted-json", True): "Reset corrupted JSON files to known defaults with: bozly recover --repair",
    ("corrupted-json", False): "Restore corrupted JSON files with no known default from a backup",
    ("broken-session", True): "Rebuild broken session records with: bozly recover --repair",
    ("broken-session", False): "Inspect broken session records manually; their command or status cannot be inferred",
    ("invalid-structure", True): "Fix the vault structure with: bozly recover --repair",
    ("invalid-structure", False): "Fix the vault structure manually (see damage details)",
}


def is_session_record(path: Path, vault_root: Path) -> bool:
    """True for `session.json` at `sessions/[archive/]<node>/YYYY/MM/DD/<id>/`."""
    if path.name != SESSION_FILE:
        return False
    try:
        parts = path.relative_to(sessions_dir(vault_root)).parts
    except ValueError:
        return False
    if parts and parts[0] == ARCHIVE_DIR:
        parts = parts[1:]
    return len(parts) == 6 and is_year(parts[1]) and is_month(parts[2]) and is_day(parts[3])


class DamageScanner:
    """Collection of structural checks over one vault's `.bozly/` subtree."""

    def __init__(self, vault_root: Path):
        self.vault_root = vault_root
        self.bozly = vault_root / BOZLY_DIR

    def run_all(self) -> list[VaultDamage]:
        """Run all checks in a fixed order and return findings."""
        results = self.check_root()
        if not self.bozly.is_dir():
            return results
        results.extend(self.check_anchor_dirs())
        results.extend(self.check_anchor_files())
        results.extend(self.check_json_files())
        results.extend(self.check_sessions())
        results.extend(self.check_commands())
        return results

    def check_root(self) -> list[VaultDamage]:
        """The `.bozly` control directory itself."""
        if not self.bozly.exists():
            return [
                VaultDamage(
                    type="missing-file",
                    severity="critical",
                    description=f"Missing core directory: {BOZLY_DIR}",
                    path=str(self.bozly),
                    fixable=False,
                    details=f"Legacy {LEGACY_DIR} vault; migrate it instead of repairing",
                )
            ]
        if not self.bozly.is_dir():
            return [
                VaultDamage(
                    type="invalid-structure",
                    severity="critical",
                    description=f"{BOZLY_DIR} should be a directory but is a file",
                    path=str(self.bozly),
                    fixable=False,
                )
            ]
        return []

    def check_anchor_dirs(self) -> list[VaultDamage]:
        results = []
        for anchor in ANCHOR_DIRS:
            path = anchor.path(self.vault_root)
            if not path.exists():
                results.append(
                    VaultDamage(
                        type="missing-file",
                        severity=anchor.severity,
                        description=f"Missing core directory: {BOZLY_DIR}/{anchor.rel}",
                        path=str(path),
                        fixable=True,
                    )
                )
            elif not path.is_dir():
                results.append(
                    VaultDamage(
                        type="invalid-structure",
                        severity="critical",
                        description=f"{BOZLY_DIR}/{anchor.rel} should be a directory but is a file",
                        path=str(path),
                        fixable=False,
                    )
                )
        return results

    def check_anchor_files(self) -> list[VaultDamage]:
        results = []
        for anchor in ANCHOR_FILES:
            path = anchor.path(self.vault_root)
            if not path.exists():
                results.append(
                    VaultDamage(
                        type="missing-file",
                        severity=anchor.severity,
                        description=f"Missing {anchor.rel} file",
                        path=str(path),
                        fixable=anchor.default is not None,
                        details="A default will be written" if anchor.default is not None else None,
                    )
                )
            elif not path.is_file():
                results.append(
                    VaultDamage(
                        type="invalid-structure",
                        severity="critical",
                        description=f"{BOZLY_DIR}/{anchor.rel} should be a file but is a directory",
                        path=str(path),
                        fixable=False,
                    )
                )
        return results

    def check_json_files(self) -> list[VaultDamage]:
        """Every `*.json` under `.bozly/` must parse."""
        results = []
        if not self.bozly.is_dir():
            return results

        for path in sorted(self.bozly.rglob("*.json")):
            if not path.is_file():
                continue
            _, error = load_json(path)
            if error is None:
                continue

            rel = path.relative_to(self.vault_root).as_posix()
            if path == self.bozly / CONFIG_FILE:
                fixable, details = True, "File will be reset to default config"
            elif path == self.bozly / INDEX_FILE:
                fixable, details = True, "File will be reset to an empty index"
            elif is_session_record(path, self.vault_root):
                fixable, details = True, "Record will be rebuilt from its directory path"
            else:
                fixable, details = False, f"No default known for this file ({error})"

            results.append(
                VaultDamage(
                    type="corrupted-json",
                    severity="critical",
                    description=f"{rel} contains invalid JSON",
                    path=str(path),
                    fixable=fixable,
                    details=details,
                )
            )
        return results

    def check_sessions(self) -> list[VaultDamage]:
        """Session hierarchy nesting and session record integrity."""
        sessions = sessions_dir(self.vault_root)
        if not sessions.is_dir():
            return []

        results: list[VaultDamage] = []
        for entry, kind in self._entries(sessions, results):
            if kind == "file":
                if entry.suffix == ".json":
                    results.append(self._flat_record(entry))
            elif (entry / SESSION_FILE).is_file():
                results.append(self._flat_record(entry))
            elif entry.name == ARCHIVE_DIR:
                for node in self._subdirs(entry, results):
                    self._check_node(node, results)
            else:
                self._check_node(entry, results)
        return results

    def _entries(self, path: Path, results: list[VaultDamage]) -> list[tuple[Path, str]]:
        """(child, "file" | "dir") under `path`. Anything else is reported."""
        found: list[tuple[Path, str]] = []
        try:
            for child in sorted(path.iterdir()):
                if child.is_dir():
                    found.append((child, "dir"))
                elif child.is_file():
                    found.append((child, "file"))
                else:
                    results.append(self._odd_entry(child, "is neither a regular file nor a directory"))
        except OSError as exc:
            results.append(self._odd_entry(path, f"cannot be read ({exc.strerror or exc})"))
            return []
        return found

    def _subdirs(self, path: Path, results: list[VaultDamage]) -> list[Path]:
        return [child for child, kind in self._entries(path, results) if kind == "dir"]

    def _odd_entry(self, path: Path, problem: str) -> VaultDamage:
        return VaultDamage(
            type="invalid-structure",
            severity="warning",
            description=f"Session hierarchy entry {problem}: {path.name}",
            path=str(path),
            fixable=False,
        )

    def _flat_record(self, path: Path) -> VaultDamage:
        return VaultDamage(
            type="invalid-structure",
            severity="warning",
            description=f"Legacy flat session record: {path.name}",
            path=str(path),
            fixable=False,
            details="Run 'bozly migrate --execute' to move it into the node/date hierarchy",
        )

    def _misplaced(self, path: Path, expected: str) -> VaultDamage:
        return VaultDamage(
            type="invalid-structure",
            severity="warning",
            description=f"Unexpected directory in session hierarchy (expected {expected}): {path.name}",
            path=str(path),
            fixable=False,
        )

    def _check_node(self, node: Path, results: list[VaultDamage]) -> None:
        for year in self._subdirs(node, results):
            if not is_year(year.name):
                results.append(self._misplaced(year, "YYYY"))
                continue
            for month in self._subdirs(year, results):
                if not is_month(month.name):
                    results.append(self._misplaced(month, "MM"))
                    continue
                for day in self._subdirs(month, results):
                    if not is_day(day.name):
                        results.append(self._misplaced(day, "DD"))
                        continue
                    for session_dir in self._subdirs(day, results):
                        damage = self._check_session(session_dir)
                        if damage is not None:
                            results.append(damage)

    def _check_session(self, session_dir: Path) -> VaultDamage | None:
        record_path = session_dir / SESSION_FILE
        if not record_path.exists():
            return VaultDamage(
                type="broken-session",
                severity="warning",
                description=f"Session directory has no {SESSION_FILE}: {session_dir.name}",
                path=str(record_path),
                fixable=True,
                details="A minimal record will be rebuilt from its directory path",
            )

        record, error = load_json(record_path)
        if error is not None:
            return None  # reported by check_json_files

        problems, derivable = session_problems(record, session_dir)
        if not problems:
            return None
        return VaultDamage(
            type="broken-session",
            severity="warning",
            description=f"Broken session record: {session_dir.name}",
            path=str(record_path),
            fixable=derivable,
            details="; ".join(problems),
        )

    def check_commands(self) -> list[VaultDamage]:
        """Command definitions must have parseable YAML front matter."""
        commands = self.bozly / "commands"
        if not commands.is_dir():
            return []

        results = []
        for path in sorted(commands.rglob("*.md")):
            if not path.is_file():
                continue
            try:
                frontmatter.load(path)
            except (yaml.YAMLError, UnicodeDecodeError, TypeError, OSError) as exc:
                results.append(
                    VaultDamage(
                        type="invalid-structure",
                        severity="info",
                        description=f"Command file has malformed front matter: {path.name}",
                        path=str(path),
                        fixable=False,
                        details=str(exc).splitlines()[0] if str(exc) else None,
                    )
                )
        return results


def scan_vault_damage(vault_root: Path) -> list[VaultDamage]:
    """
    Scan a vault for structural damage.

    A directory holding a `.bozly/` entry is scanned even when its
    `config.json` is gone; that is damage to report, not a missing vault.

    Raises:
        NotAVaultError: if the directory is missing or holds neither `.bozly/`
            nor a legacy `.ai-vault/`
    """
    vault_root = Path(vault_root)
    if not vault_root.is_dir():
        raise NotAVaultError(f"Vault directory does not exist or is inaccessible: {vault_root}")
    if detect_old_version(vault_root) == NOT_A_VAULT and not (vault_root / BOZLY_DIR).exists():
        raise NotAVaultError(f"Not a bozly vault: {vault_root} (no {BOZLY_DIR}/ or {LEGACY_DIR}/)")
    return DamageScanner(vault_root).run_all()


def recommendations_for(damages: list[VaultDamage]) -> list[str]:
    """One recommendation per (type, fixable) category, in first-seen order."""
    seen: list[tuple[str, bool]] = []
    for damage in damages:
        key = (damage.type, damage.fixable)
        if key not in seen:
            seen.append(key)
    return [RECOMMENDATIONS[key] for key in seen]


def generate_health_report(vault_root: Path) -> HealthReport:
    damages = scan_vault_damage(vault_root)
    return HealthReport(damages=damages, recommendations=recommendations_for(damages))


def still_damaged(damage: VaultDamage, vault_root: Path) -> bool:
    """Re-run the check that produced `damage` against the current state."""
    path = Path(damage.path)

    if damage.type == "missing-file":
        return not path.exists()

    if damage.type == "corrupted-json":
        _, error = load_json(path)
        return error is not None

    if damage.type == "broken-session":
        record, error = load_json(path)
        if error is not None:
            return True
        problems, _ = session_problems(record, path.parent)
        return bool(problems)

    return any(d.type == damage.type and d.path == damage.path for d in scan_vault_damage(vault_root))
