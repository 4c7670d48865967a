"""Data models for vault damage and recovery."""

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from .planning import BaseResult

DamageType = Literal[
    "missing-file",
    "corrupted-json",
    "broken-session",
    "invalid-structure",
]

Severity = Literal["critical", "warning", "info"]

SEVERITY_ORDER = {"critical": 0, "warning": 1, "info": 2}


@dataclass
class VaultDamage:
    """A single deviation from the expected vault structure.

    Created fresh on every scan; never persisted.
    """

    type: DamageType
    severity: Severity
    description: str
    path: str
    fixable: bool
    details: str | None = None

    def __str__(self) -> str:
        fix = "fixable" if self.fixable else "manual"
        return f"{self.severity.upper()}: [{self.type}] {self.path} - {self.description} ({fix})"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class HealthReport:
    """Aggregated scan results."""

    damages: list[VaultDamage] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    @property
    def damages_count(self) -> int:
        return len(self.damages)

    @property
    def is_healthy(self) -> bool:
        return self.damages_count == 0

    @property
    def summary(self) -> dict[str, int]:
        return {
            "critical": sum(1 for d in self.damages if d.severity == "critical"),
            "warnings": sum(1 for d in self.damages if d.severity == "warning"),
            "info": sum(1 for d in self.damages if d.severity == "info"),
        }

    @property
    def has_critical(self) -> bool:
        return self.summary["critical"] > 0

    @property
    def has_warnings(self) -> bool:
        return self.summary["warnings"] > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_healthy": self.is_healthy,
            "damages_count": self.damages_count,
            "damages": [d.to_dict() for d in self.damages],
            "summary": self.summary,
            "has_critical": self.has_critical,
            "has_warnings": self.has_warnings,
            "recommendations": list(self.recommendations),
        }


@dataclass
class RepairResult(BaseResult):
    """Result of a repair run."""

    damages_found: list[VaultDamage] = field(default_factory=list)
    backup_created: str | None = None
    repairs_attempted: int = 0
    repairs_successful: int = 0
    repairs_details: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.error is None and self.repairs_successful == self.repairs_attempted

    def to_dict(self) -> dict[str, Any]:
        return {
            "damages_found": [d.to_dict() for d in self.damages_found],
            "backup_created": self.backup_created,
            "repairs_attempted": self.repairs_attempted,
            "repairs_successful": self.repairs_successful,
            "repairs_details": list(self.repairs_details),
            "error": self.error,
        }
