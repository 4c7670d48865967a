"""Backups command implementation."""

from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..audit_log import format_audit_entry, read_audit_log
from ..backup import list_backups, read_manifest
from ..config import EngineConfig


def run_backups(vault_path: Path, config: EngineConfig, *, last_n: int = 10) -> int:
    console = Console()
    found = list_backups(config.backup_root, vault_path)

    if not found:
        console.print(f"No backups of {vault_path} under {config.backup_root}", style="dim")
    else:
        table = Table(title=f"Backups ({config.backup_root})")
        table.add_column("backup", style="cyan", no_wrap=True)
        table.add_column("operation", style="magenta")
        table.add_column("created", style="dim")
        table.add_column("items")
        for path in found:
            manifest = read_manifest(path) or {}
            table.add_row(
                path.name,
                str(manifest.get("operation", "")),
                str(manifest.get("created", "")),
                ", ".join(str(item) for item in manifest.get("items") or []),
            )
        console.print(table)

    entries = read_audit_log(config.backup_root, vault_path, last_n=last_n)
    if entries:
        console.print("\nRecent operations:", style="bold")
        for entry in entries:
            console.print(format_audit_entry(entry), markup=False)
    return 0
