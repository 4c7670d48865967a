"""Migrate command implementation."""

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..config import EngineConfig
from ..migration import (
    CURRENT,
    detect_old_version,
    execute_migration,
    plan_migration,
    verify_migration,
)
from ..planning import MigrationPlan


def _print_plan(console: Console, plan: MigrationPlan) -> None:
    console.print(f"From: {plan.old_version}  To: {plan.new_version}", style="bold")
    console.print(f"Summary: {plan.summary}", style="dim")

    table = Table(title="Migration Steps")
    table.add_column("#", style="dim", no_wrap=True)
    table.add_column("step", style="cyan")
    table.add_column("description")
    table.add_column("optional", style="magenta")

    for i, step in enumerate(plan.steps, start=1):
        description = step.description
        if step.details:
            description += f"\n[dim]{step.details}[/]"
        table.add_row(f"{i:02d}", step.name, description, "yes" if step.optional else "")

    console.print(table)
    console.print(f"Estimated duration: ~{plan.estimated_duration_seconds} seconds", style="dim")


def run_analyze(vault_path: Path, *, output_json: bool = False) -> int:
    """Report whether the vault needs migration.

    Returns:
        Exit code (0 = current layout, 1 = migration needed)
    """
    console = Console()
    err = Console(stderr=True)

    err.print(f"Analyzing migration needs for {vault_path}...", style="dim")
    version = detect_old_version(vault_path)
    plan = plan_migration(vault_path)

    if output_json:
        print(json.dumps(plan.to_dict(), indent=2))
        return 0 if version == CURRENT else 1

    if version == CURRENT:
        console.print("✓ Vault is on the current layout (no migration needed)", style="bold green")
        return 0

    console.print(f"⚠ Detected old bozly layout: {version}", style="yellow")
    _print_plan(console, plan)
    console.print("\nTo execute the migration, run: bozly migrate --execute", style="dim")
    return 1


def run_execute(vault_path: Path, config: EngineConfig, *, output_json: bool = False) -> int:
    """Execute the migration after a fresh plan.

    Returns:
        Exit code (0 = nothing to do or fully migrated, 1 = incomplete)
    """
    console = Console()
    err = Console(stderr=True)

    err.print("Planning migration...", style="dim")
    plan = plan_migration(vault_path)
    if not plan.safe:
        if output_json:
            print(json.dumps({"plan": plan.to_dict(), "result": None}, indent=2))
        else:
            console.print("✓ Vault does not need migration; nothing executed", style="bold green")
        return 0

    err.print(f"Executing migration {plan.old_version} -> {plan.new_version}...", style="dim")
    result = execute_migration(vault_path, config)

    if output_json:
        print(json.dumps({"plan": plan.to_dict(), "result": result.to_dict()}, indent=2))
        return 0 if result.success else 1

    if result.success:
        console.print("✓ Migration completed successfully", style="bold green")
    else:
        console.print("✗ Migration encountered issues", style="bold red")
        if result.error:
            console.print(f"  Error: {result.error}", style="red")

    console.print(f"  Steps completed: {result.steps_completed}/{result.total_steps}")
    console.print(f"  Items migrated: {result.items_migrated}")
    console.print(f"  Backup location: {result.backup_location or 'N/A'}")
    for line in result.details:
        console.print(f"    {line}")

    if result.success:
        console.print("\nRun 'bozly migrate --verify' to confirm migration completeness.", style="dim")
        return 0
    return 1


def run_verify(vault_path: Path, *, output_json: bool = False) -> int:
    """Verify that no legacy residue remains.

    Returns:
        Exit code (0 = fully migrated, 1 = issues or legacy items found)
    """
    console = Console()
    report = verify_migration(vault_path)

    if output_json:
        print(json.dumps(report.to_dict(), indent=2))
        return 0 if report.is_fully_migrated else 1

    if report.verified:
        console.print("✓ Migration verification passed", style="bold green")
    else:
        console.print("⚠ Migration verification found issues", style="yellow")

    if report.issues:
        console.print("\nIssues:", style="bold red")
        for issue in report.issues:
            console.print(f"  ✗ {issue}", style="red")

    if report.legacy_items:
        console.print("\nLegacy items:", style="bold yellow")
        for item in report.legacy_items:
            console.print(f"  {item}", style="yellow")

    if report.recommendations:
        console.print("\nRecommendations:", style="bold")
        for rec in report.recommendations:
            console.print(f"  {rec}", style="dim")

    if report.is_fully_migrated:
        console.print("\n✓ Vault is fully migrated to the current version", style="bold green")
        return 0
    return 1
