"""Tests for the audit trail."""

from pathlib import Path

from bozly.audit_log import (
    CreationSummary,
    ErasureCost,
    format_audit_entry,
    get_audit_log_path,
    log_operation,
    read_audit_log,
)


def test_entries_round_trip(tmp_path: Path):
    root = tmp_path / "backups"
    vault = tmp_path / "vault"

    log_operation(root, vault, "repair", created=CreationSummary(files=2, bytes_written=40), metadata={"backup": "x"})

    [entry] = read_audit_log(root)
    assert entry.operation == "repair"
    assert entry.vault == str(vault.resolve())
    assert entry.created.files == 2
    assert entry.metadata == {"backup": "x"}


def test_filter_by_vault_and_last_n(tmp_path: Path):
    root = tmp_path / "backups"
    a, b = tmp_path / "a", tmp_path / "b"
    for i in range(3):
        log_operation(root, a, "migrate", metadata={"run": i})
    log_operation(root, b, "repair")

    assert len(read_audit_log(root)) == 4
    assert [e.metadata["run"] for e in read_audit_log(root, a, last_n=2)] == [1, 2]
    assert [e.operation for e in read_audit_log(root, b)] == ["repair"]


def test_malformed_lines_are_skipped(tmp_path: Path):
    root = tmp_path / "backups"
    log_operation(root, tmp_path, "migrate")
    with get_audit_log_path(root).open("a", encoding="utf-8") as f:
        f.write("not json\n{}\n\n")

    assert len(read_audit_log(root)) == 1


def test_missing_log(tmp_path: Path):
    assert read_audit_log(tmp_path / "nowhere") == []


def test_format_entry(tmp_path: Path):
    entry = log_operation(
        tmp_path / "backups",
        tmp_path,
        "migrate",
        erased=ErasureCost(files=3, directories=1),
        metadata={"from": "v0.3.0", "error": None},
    )

    text = format_audit_entry(entry)

    assert text.splitlines()[0].endswith(f"migrate {tmp_path.resolve()}")
    assert "Erased: 3 file(s), 1 dir(s)" in text
    assert "from: v0.3.0" in text
    assert "error" not in text
