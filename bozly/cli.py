"""CLI entrypoint for bozly vault maintenance."""

import sys
from pathlib import Path

import click

from . import __version__
from .config import BACKUP_DIR_ENV, load_engine_config
from .vault.layout import BOZLY_DIR, LEGACY_DIR, NotAVaultError


def _auto_detect_vault(start: Path) -> Path | None:
    """Find the nearest vault root by walking up from `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        if (p / BOZLY_DIR).exists() or (p / LEGACY_DIR).is_dir():
            return p
    return None


@click.group()
@click.version_option(__version__, prog_name="bozly")
@click.option(
    "--vault",
    "-v",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Path to the vault root (defaults to the nearest directory holding .bozly/ or .ai-vault/)",
)
@click.option(
    "--backup-dir",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    envvar=BACKUP_DIR_ENV,
    default=None,
    help="Where backups and the audit log are written (default: ~/.bozly/backups)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="TOML file with engine settings (backup_dir)",
)
@click.pass_context
def cli(ctx: click.Context, vault: Path | None, backup_dir: Path | None, config_path: Path | None) -> None:
    """bozly - migrate and recover vaults.

    Detect legacy vault layouts and upgrade them, or scan a vault for
    damage and repair it. Every mutating run takes a backup first.
    """
    ctx.ensure_object(dict)
    if vault is None:
        detected = _auto_detect_vault(Path.cwd())
        if detected is None:
            raise click.ClickException("Vault not found. Pass --vault /path/to/vault or run from inside a vault.")
        vault = detected

    if not vault.exists() or not vault.is_dir():
        raise click.BadParameter(f"Directory '{vault}' does not exist.", param_hint="--vault / -v")

    ctx.obj["vault"] = vault.resolve()
    ctx.obj["config"] = load_engine_config(config_path, backup_dir=backup_dir)


@cli.command()
@click.option("--execute", "-e", is_flag=True, help="Execute the migration (creates a backup first)")
@click.option("--verify", is_flag=True, help="Verify that the migration left no legacy residue")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def migrate(ctx: click.Context, execute: bool, verify: bool, output_json: bool) -> None:
    """Migrate a vault from an older bozly layout.

    Without flags, analyzes the vault and prints the migration plan.

    Examples:

        bozly migrate

        bozly migrate --execute

        bozly migrate --verify
    """
    from .commands.migrate import run_analyze, run_execute, run_verify

    if execute and verify:
        raise click.UsageError("--execute and --verify are mutually exclusive")

    vault = ctx.obj["vault"]
    try:
        if verify:
            exit_code = run_verify(vault, output_json=output_json)
        elif execute:
            exit_code = run_execute(vault, ctx.obj["config"], output_json=output_json)
        else:
            exit_code = run_analyze(vault, output_json=output_json)
    except NotAVaultError as exc:
        raise click.ClickException(str(exc)) from exc
    sys.exit(exit_code)


@cli.command()
@click.option("--repair", "-r", is_flag=True, help="Auto-repair fixable issues (creates a backup first)")
@click.option("--detailed", "-d", is_flag=True, help="Show the full report as JSON after the summary")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def recover(ctx: click.Context, repair: bool, detailed: bool, output_json: bool) -> None:
    """Detect and repair damaged vaults.

    Examples:

        bozly recover

        bozly recover --repair
    """
    from .commands.recover import run_repair, run_scan

    vault = ctx.obj["vault"]
    try:
        if repair:
            exit_code = run_repair(vault, ctx.obj["config"], output_json=output_json)
        else:
            exit_code = run_scan(vault, detailed=detailed, output_json=output_json)
    except NotAVaultError as exc:
        raise click.ClickException(str(exc)) from exc
    sys.exit(exit_code)


@cli.command()
@click.option("--last", "last_n", type=int, default=10, show_default=True, help="Audit entries to show")
@click.pass_context
def backups(ctx: click.Context, last_n: int) -> None:
    """List backups of this vault and recent audit log entries."""
    from .commands.backups import run_backups

    exit_code = run_backups(ctx.obj["vault"], ctx.obj["config"], last_n=last_n)
    sys.exit(exit_code)


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
