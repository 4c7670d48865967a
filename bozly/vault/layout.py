"""On-disk layout of a bozly vault.

Current layout (v0.6.0):

    <vault>/.bozly/
        config.json
        context.md
        index.json
        commands/        *.md command definitions
        sessions/        <nodeId>/<YYYY>/<MM>/<DD>/<sessionId>/session.json
        workflows/
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Literal

from ..models import Severity

CURRENT_VERSION = "0.6.0"

BOZLY_DIR = ".bozly"
LEGACY_DIR = ".ai-vault"

CONFIG_FILE = "config.json"
CONTEXT_FILE = "context.md"
INDEX_FILE = "index.json"
SESSION_FILE = "session.json"

SESSION_STATUSES = ("completed", "failed", "dry_run")
SESSION_REQUIRED_FIELDS = ("id", "timestamp", "command", "status")

DEFAULT_PROVIDERS = ["claude", "gpt", "gemini", "ollama"]

_YEAR_RE = re.compile(r"^\d{4}$")
_MONTH_RE = re.compile(r"^(0[1-9]|1[0-2])$")
_DAY_RE = re.compile(r"^(0[1-9]|[12]\d|3[01])$")


class NotAVaultError(Exception):
    """Raised when a path does not hold a vault the engine can work on."""


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def default_config(name: str) -> dict[str, Any]:
    """Config written for a fresh (or reset) vault."""
    return {
        "name": name,
        "type": "default",
        "version": CURRENT_VERSION,
        "created": now_iso(),
        "ai": {
            "defaultProvider": "claude",
            "providers": list(DEFAULT_PROVIDERS),
        },
    }


def default_context(name: str) -> str:
    return f"# {name} Vault Context\n\nContext auto-restored by bozly.\n"


def default_index() -> dict[str, Any]:
    return {"tasks": [], "lastUpdated": now_iso()}


def write_json(path: Path, data: Any) -> int:
    """Write `data` as indented JSON, creating parents. Returns bytes written."""
    text = json.dumps(data, indent=2) + "\n"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return len(text.encode("utf-8"))


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def load_json(path: Path) -> tuple[Any, str | None]:
    """(data, error). `error` is set when the file cannot be read as JSON."""
    try:
        return read_json(path), None
    except (OSError, ValueError) as exc:
        return None, str(exc)


def read_json_object(path: Path) -> dict[str, Any] | None:
    """Parsed JSON object at `path`, or None when missing, unparseable or not an object."""
    data, error = load_json(path)
    return data if error is None and isinstance(data, dict) else None


def read_config(vault_root: Path) -> dict[str, Any] | None:
    return read_json_object(vault_root / BOZLY_DIR / CONFIG_FILE)


def files_under(root: Path) -> list[Path]:
    """Regular files below `root`, sorted; empty when `root` is not a directory."""
    if not root.is_dir():
        return []
    return sorted(p for p in root.rglob("*") if p.is_file())


def node_id(name: str) -> str:
    """Machine-readable node id derived from a vault name."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "vault"


def vault_node_id(vault_root: Path) -> str:
    config = read_config(vault_root) or {}
    return node_id(str(config.get("name") or vault_root.name))


# ---------------------------------------------------------------------------
# Anchors
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Anchor:
    """A path that must exist under `.bozly/`."""

    rel: str
    kind: Literal["dir", "file"]
    severity: Severity
    default: Callable[[Path], Any] | None = None

    def path(self, vault_root: Path) -> Path:
        return vault_root / BOZLY_DIR / self.rel


ANCHOR_DIRS: tuple[Anchor, ...] = (
    Anchor("commands", "dir", "critical"),
    Anchor("sessions", "dir", "critical"),
    Anchor("workflows", "dir", "warning"),
)

ANCHOR_FILES: tuple[Anchor, ...] = (
    Anchor(CONFIG_FILE, "file", "critical", lambda root: default_config(root.name)),
    Anchor(CONTEXT_FILE, "file", "warning", lambda root: default_context(root.name)),
    Anchor(INDEX_FILE, "file", "info", lambda root: default_index()),
)

# Optional directories created by `bozly init`; not checked by the scanner.
OPTIONAL_DIRS = ("tasks", "hooks", "guides")


def find_anchor(vault_root: Path, path: Path) -> Anchor | None:
    for anchor in ANCHOR_DIRS + ANCHOR_FILES:
        if anchor.path(vault_root) == path:
            return anchor
    return None


def write_default(anchor: Anchor, vault_root: Path) -> int:
    """Write an anchor file's default content. Returns bytes written."""
    if anchor.default is None:
        raise ValueError(f"No default known for {anchor.rel}")
    value = anchor.default(vault_root)
    target = anchor.path(vault_root)
    if isinstance(value, str):
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(value, encoding="utf-8")
        return len(value.encode("utf-8"))
    return write_json(target, value)


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


def sessions_dir(vault_root: Path) -> Path:
    return vault_root / BOZLY_DIR / "sessions"


def session_date_parts(timestamp: str) -> tuple[str, str, str]:
    """UTC (YYYY, MM, DD) of an ISO timestamp."""
    dt = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return f"{dt.year:04d}", f"{dt.month:02d}", f"{dt.day:02d}"


def session_path(base: Path, node: str, timestamp: str, session_id: str) -> Path:
    """`<base>/<node>/<YYYY>/<MM>/<DD>/<session_id>`."""
    year, month, day = session_date_parts(timestamp)
    return base / node / year / month / day / session_id


def is_year(name: str) -> bool:
    return bool(_YEAR_RE.match(name))


def is_month(name: str) -> bool:
    return bool(_MONTH_RE.match(name))


def is_day(name: str) -> bool:
    return bool(_DAY_RE.match(name))


def flat_session_records(sessions: Path) -> list[Path]:
    """Legacy flat session records directly under `sessions/`.

    Either `sessions/<id>.json` files or `sessions/<id>/session.json`
    directories (the pre-hierarchy layout).
    """
    if not sessions.is_dir():
        return []
    found = []
    for entry in sorted(sessions.iterdir()):
        if entry.is_file() and entry.suffix == ".json":
            found.append(entry)
        elif entry.is_dir() and (entry / SESSION_FILE).is_file():
            found.append(entry)
    return found


def session_problems(record: Any, session_dir: Path) -> tuple[list[str], bool]:
    """Check a parsed session record against its location.

    `session_dir` is `.../sessions/<node>/<YYYY>/<MM>/<DD>/<id>`.

    Returns:
        (problems, derivable) where `derivable` is True when every problem can
        be fixed from the record's path alone.
    """
    if not isinstance(record, dict):
        return ["record is not a JSON object"], True

    problems: list[str] = []
    derivable = True

    for key in SESSION_REQUIRED_FIELDS:
        if record.get(key) in (None, ""):
            problems.append(f"missing field '{key}'")
            if key in ("command", "status"):
                derivable = False

    sid = record.get("id")
    if sid and sid != session_dir.name:
        problems.append(f"id '{sid}' does not match directory '{session_dir.name}'")

    node = session_dir.parents[3].name
    if record.get("nodeId") and record["nodeId"] != node:
        problems.append(f"nodeId '{record['nodeId']}' does not match directory '{node}'")

    status = record.get("status")
    if status and status not in SESSION_STATUSES:
        problems.append(f"unknown status '{status}'")
        derivable = False

    timestamp = record.get("timestamp")
    if timestamp:
        expected = (session_dir.parents[2].name, session_dir.parents[1].name, session_dir.parents[0].name)
        try:
            actual = session_date_parts(str(timestamp))
        except ValueError:
            problems.append(f"unparseable timestamp '{timestamp}'")
            derivable = False
        else:
            if actual != expected:
                problems.append(f"timestamp {timestamp} does not match directory date {'/'.join(expected)}")
                derivable = False

    return problems, derivable


def rebuild_session_record(record: Any, session_dir: Path) -> dict[str, Any]:
    """Fill path-derivable session fields, keeping everything else."""
    fixed: dict[str, Any] = dict(record) if isinstance(record, dict) else {}
    node = session_dir.parents[3].name
    year, month, day = (session_dir.parents[2].name, session_dir.parents[1].name, session_dir.parents[0].name)

    fixed["id"] = session_dir.name
    fixed["nodeId"] = node
    if not fixed.get("timestamp"):
        fixed["timestamp"] = f"{year}-{month}-{day}T00:00:00.000Z"
    fixed.setdefault("command", "unknown")
    fixed.setdefault("status", "failed")
    return fixed
