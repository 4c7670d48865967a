"""Engine configuration.

The backup area is the only setting the engine needs. It is always passed in
explicitly so tests can point it at a temporary directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

BACKUP_DIR_ENV = "BOZLY_BACKUP_DIR"


def default_backup_root() -> Path:
    return Path.home() / ".bozly" / "backups"


@dataclass(frozen=True)
class EngineConfig:
    """Settings shared by the migration executor and the repairer."""

    backup_root: Path

    @classmethod
    def default(cls) -> "EngineConfig":
        env = os.environ.get(BACKUP_DIR_ENV)
        return cls(backup_root=Path(env).expanduser() if env else default_backup_root())


def load_engine_config(path: Path | None = None, *, backup_dir: Path | None = None) -> EngineConfig:
    """
    Build the engine config.

    Precedence: explicit `backup_dir`, then `backup_dir` from the TOML file at
    `path`, then `EngineConfig.default()`.
    """
    if backup_dir is not None:
        return EngineConfig(backup_root=backup_dir.expanduser().resolve())

    if path is not None:
        import tomllib

        data = tomllib.loads(path.read_text(encoding="utf-8"))
        raw = str(data.get("backup_dir", "")).strip()
        if raw:
            root = Path(raw).expanduser()
            if not root.is_absolute():
                root = path.parent / root
            return EngineConfig(backup_root=root.resolve())

    return EngineConfig.default()
