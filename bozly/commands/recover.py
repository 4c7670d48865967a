"""Recover command implementation."""

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..config import EngineConfig
from ..models import SEVERITY_ORDER, HealthReport, VaultDamage
from ..recovery import generate_health_report, repair_vault

SEVERITY_STYLES = {
    "critical": "bold red",
    "warning": "yellow",
    "info": "dim",
}


def _damage_table(damages: list[VaultDamage], vault_path: Path) -> Table:
    table = Table(title="Vault Damage")
    table.add_column("severity", no_wrap=True)
    table.add_column("type", style="magenta")
    table.add_column("path", style="cyan")
    table.add_column("description")
    table.add_column("fixable")

    for d in sorted(damages, key=lambda d: SEVERITY_ORDER.get(d.severity, 99)):
        try:
            rel = Path(d.path).relative_to(vault_path).as_posix()
        except ValueError:
            rel = d.path
        description = d.description
        if d.details:
            description += f"\n{d.details}"
        table.add_row(
            f"[{SEVERITY_STYLES[d.severity]}]{d.severity.upper()}[/]",
            d.type,
            rel,
            description,
            "[green]yes[/]" if d.fixable else "[red]no[/]",
        )
    return table


def _print_report(console: Console, report: HealthReport, vault_path: Path) -> None:
    if report.is_healthy:
        console.print("✓ Vault is in excellent condition", style="bold green")
        return

    console.print(f"⚠ Vault has {report.damages_count} issue(s) that need attention", style="yellow")
    summary = report.summary
    console.print(
        f"  {summary['critical']} critical, {summary['warnings']} warning(s), {summary['info']} info",
        style="dim",
    )
    console.print(_damage_table(report.damages, vault_path))

    console.print("\nRecommendations:", style="bold")
    for rec in report.recommendations:
        console.print(f"  {rec}", style="dim")


def run_scan(vault_path: Path, *, detailed: bool = False, output_json: bool = False) -> int:
    """Scan and report vault health.

    Returns:
        Exit code (0 = healthy, 1 = damage found)
    """
    console = Console()
    err = Console(stderr=True)

    err.print(f"Scanning {vault_path} for damage...", style="dim")
    report = generate_health_report(vault_path)

    if output_json:
        print(json.dumps(report.to_dict(), indent=2))
        return 0 if report.is_healthy else 1

    _print_report(console, report, vault_path)
    if detailed:
        console.print("\nDetailed report:", style="bold")
        console.print_json(json.dumps(report.to_dict()))
    if not report.is_healthy:
        console.print("\nRun with --repair to auto-fix fixable issues", style="dim")

    return 0 if report.is_healthy else 1


def run_repair(vault_path: Path, config: EngineConfig, *, output_json: bool = False) -> int:
    """Repair fixable damage, then re-scan.

    Returns:
        Exit code (0 = healthy after repair, 1 = repairs incomplete or damage remains)
    """
    console = Console()
    err = Console(stderr=True)

    err.print(f"Repairing {vault_path}...", style="dim")
    result = repair_vault(vault_path, config)
    after = generate_health_report(vault_path)
    ok = result.complete and after.is_healthy

    if output_json:
        print(json.dumps({"repair": result.to_dict(), "after": after.to_dict()}, indent=2))
        return 0 if ok else 1

    if not result.damages_found:
        console.print("✓ Vault is healthy; no repairs needed", style="bold green")
        return 0

    console.print(_damage_table(result.damages_found, vault_path))
    if result.error:
        console.print(f"✗ Repair aborted: {result.error}", style="bold red")
        return 1

    console.print("\nRepair summary:", style="bold")
    console.print(f"  Backup created: {result.backup_created or 'N/A'}")
    console.print(f"  Repairs attempted: {result.repairs_attempted}")
    console.print(f"  Repairs successful: {result.repairs_successful}")
    for line in result.repairs_details:
        console.print(f"    {line}")

    console.print()
    _print_report(console, after, vault_path)

    if ok:
        console.print("\n✓ Vault successfully repaired", style="bold green")
    else:
        console.print("\n⚠ Some issues remain. Review them above and fix manually if needed.", style="yellow")
    return 0 if ok else 1
