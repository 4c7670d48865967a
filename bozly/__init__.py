"""bozly - vault migration and recovery engine."""

__version__ = "0.6.0"

from .backup import BackupError, create_backup
from .config import EngineConfig, load_engine_config
from .migration import detect_old_version, execute_migration, plan_migration, verify_migration
from .recovery import generate_health_report, repair_vault, scan_vault_damage
from .vault.layout import NotAVaultError

__all__ = [
    "__version__",
    "BackupError",
    "EngineConfig",
    "NotAVaultError",
    "create_backup",
    "detect_old_version",
    "execute_migration",
    "generate_health_report",
    "load_engine_config",
    "plan_migration",
    "repair_vault",
    "scan_vault_damage",
    "verify_migration",
]
