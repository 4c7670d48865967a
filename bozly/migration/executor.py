"""Migration execution.

Protocol:
1. Re-derive the plan; never trust a plan computed earlier.
2. Back up the vault before the first mutating step.
3. Run steps in order. A failed required step halts the run; a failed
   optional step is recorded and skipped.
4. Record the run in the audit log.
"""

from __future__ import annotations

from pathlib import Path

from ..backup import BackupError, create_backup
from ..config import EngineConfig
from ..planning import MigrationResult
from .planner import plan_migration
from .steps import STEP_ACTIONS, StepContext, StepError


def execute_migration(vault_root: Path, config: EngineConfig | None = None) -> MigrationResult:
    """
    Migrate a legacy vault to the current layout.

    Args:
        vault_root: Vault to migrate
        config: Engine settings (backup area); defaults to EngineConfig.default()

    Returns:
        MigrationResult; `backup_location` is set whenever any step ran

    Raises:
        NotAVaultError: if the path holds no vault anchor (nothing is touched)
    """
    config = config or EngineConfig.default()
    vault_root = Path(vault_root).resolve()

    plan = plan_migration(vault_root)
    total = len(plan.steps)

    if not plan.safe:
        return MigrationResult(
            success=False,
            total_steps=total,
            error="Migration plan not safe to execute: vault does not need migration",
        )

    try:
        backup = create_backup(vault_root, config.backup_root, operation="migration")
    except BackupError as exc:
        return MigrationResult(success=False, total_steps=total, error=str(exc))

    result = MigrationResult(success=False, total_steps=total, backup_location=str(backup))
    ctx = StepContext(vault_root=vault_root, erased=result.erased, created=result.created)

    for step in plan.steps:
        action = STEP_ACTIONS[step.action]
        try:
            items = action(ctx)
        except (OSError, ValueError, StepError) as exc:
            if step.optional:
                result.details.append(f"⚠ {step.name} (skipped, optional): {exc}")
                continue
            result.details.append(f"✗ {step.name}: {exc}")
            result.error = f"Step '{step.name}' failed: {exc}"
            break

        result.steps_completed += 1
        result.items_migrated += items
        result.details.append(f"✓ {step.name} ({items} item(s))")

    result.success = result.error is None and result.steps_completed == result.total_steps

    result.log_to_audit(
        config.backup_root,
        vault_root,
        "migrate",
        {
            "from": plan.old_version,
            "to": plan.new_version,
            "backup": result.backup_location,
            "steps_completed": result.steps_completed,
            "total_steps": result.total_steps,
            "items_migrated": result.items_migrated,
            "success": result.success,
            "error": result.error,
        },
    )
    return result
