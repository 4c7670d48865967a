"""Vault layout definitions."""

from .layout import (
    BOZLY_DIR,
    CURRENT_VERSION,
    LEGACY_DIR,
    NotAVaultError,
    default_config,
    read_config,
)

__all__ = [
    "BOZLY_DIR",
    "CURRENT_VERSION",
    "LEGACY_DIR",
    "NotAVaultError",
    "default_config",
    "read_config",
]
