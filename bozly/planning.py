"""
Plan/Result records for vault migration.

Planning (diagnostic) is kept separate from execution (action):
- plans are computed without touching the filesystem
- results carry erasure/creation accounting for the audit log
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from .audit_log import CreationSummary, ErasureCost, log_operation


@dataclass
class BasePlan(ABC):
    """Base class for operation plans (diagnostic output)."""
    vault_path: Path

    @abstractmethod
    def describe(self) -> str:
        """Human-readable summary of what would be done."""
        ...


@dataclass
class BaseResult:
    """Base class for operation results (action output)."""
    erased: ErasureCost = field(default_factory=ErasureCost)
    created: CreationSummary = field(default_factory=CreationSummary)
    success: bool = True
    error: str | None = None

    def log_to_audit(
        self,
        backup_root: Path,
        vault_root: Path,
        operation: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Log this result to the audit trail."""
        log_operation(backup_root, vault_root, operation, self.erased, self.created, metadata or {})


@dataclass(frozen=True)
class MigrationStep:
    """One unit of migration work. Immutable once planned."""
    id: str
    name: str
    description: str
    action: str  # key into the step action table
    optional: bool = False
    details: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class MigrationPlan(BasePlan):
    """Ordered steps upgrading one legacy layout to the current one."""
    old_version: str
    new_version: str
    steps: list[MigrationStep] = field(default_factory=list)
    summary: str = ""
    estimated_duration_seconds: int = 0
    safe: bool = True  # False means "no migration needed"; never execute

    def describe(self) -> str:
        lines = [
            f"Migration Plan ({self.old_version} -> {self.new_version})",
            f"  Vault: {self.vault_path}",
            f"  Steps: {len(self.steps)}",
            f"  Summary: {self.summary}",
        ]
        for i, step in enumerate(self.steps, start=1):
            suffix = " (optional)" if step.optional else ""
            lines.append(f"  {i:02d}. {step.name}{suffix}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "vault_path": str(self.vault_path),
            "old_version": self.old_version,
            "new_version": self.new_version,
            "steps": [s.to_dict() for s in self.steps],
            "summary": self.summary,
            "estimated_duration_seconds": self.estimated_duration_seconds,
            "safe": self.safe,
        }


@dataclass
class MigrationResult(BaseResult):
    """Result of executing a migration plan."""
    steps_completed: int = 0
    total_steps: int = 0
    items_migrated: int = 0
    backup_location: str = ""
    details: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "steps_completed": self.steps_completed,
            "total_steps": self.total_steps,
            "items_migrated": self.items_migrated,
            "backup_location": self.backup_location,
            "details": list(self.details),
            "error": self.error,
        }


@dataclass
class MigrationVerification:
    """Post-migration residue report."""
    verified: bool
    is_fully_migrated: bool
    issues: list[str] = field(default_factory=list)
    legacy_items: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
