"""Vault damage scanning and repair."""

from .repairer import REPAIRS, repair_vault
from .scanner import DamageScanner, generate_health_report, scan_vault_damage

__all__ = [
    "REPAIRS",
    "DamageScanner",
    "generate_health_report",
    "repair_vault",
    "scan_vault_damage",
]
