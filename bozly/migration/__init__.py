"""Legacy layout detection and step-by-step migration."""

from .executor import execute_migration
from .planner import plan_migration
from .signatures import CURRENT, LEGACY_LAYOUTS, NOT_A_VAULT, detect_old_version
from .verifier import verify_migration

__all__ = [
    "CURRENT",
    "LEGACY_LAYOUTS",
    "NOT_A_VAULT",
    "detect_old_version",
    "execute_migration",
    "plan_migration",
    "verify_migration",
]
