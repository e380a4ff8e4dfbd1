from __future__ import annotations

import json
import shutil
import threading
from pathlib import Path

import pytest
from pydantic import ValidationError

from hashsafe.config import DEFAULT_BLOCK_SIZE, Settings
from hashsafe.errors import ErrorKind, HashIOError
from hashsafe.utils.audit import AuditTrail, redact_details
from hashsafe.utils.files import display_name, file_kind, guess_mimetype, timestamped_stem


def test_audit_trail_redacts_home_directory(tmp_path: Path) -> None:
    trail = AuditTrail(tmp_path)
    home = Path.home()
    trail.record("info", "run.submitted", path=str(home / "secret" / "file.bin"))
    stored = trail.events[0].to_dict()

    assert stored["details"]["path"] == str(Path("~") / "secret" / "file.bin")


def test_redact_details_recurses() -> None:
    details = {
        "path": "/home/analyst/a.bin",
        "nested": {"path": Path("/home/analyst/b.bin")},
        "items": [{"path": "/home/analyst/c.bin"}, 3],
        "size": 10,
    }
    redacted = redact_details(details, home="/home/analyst")

    assert redacted["path"] == "~/a.bin"
    assert redacted["nested"]["path"] == "~/b.bin"
    assert redacted["items"] == [{"path": "~/c.bin"}, 3]
    assert redacted["size"] == 10


def test_audit_trail_writes_jsonl(tmp_path: Path) -> None:
    trail = AuditTrail(tmp_path / "logs")
    trail.record("info", "run.started", run_id=1)
    trail.record("error", "run.failed", run_id=1, kind="not_found")

    assert trail.path is not None
    lines = trail.path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["run.started", "run.failed"]


def test_audit_trail_survives_missing_directory(tmp_path: Path) -> None:
    trail = AuditTrail(tmp_path / "logs")
    trail.record("info", "run.started", run_id=1)
    shutil.rmtree(tmp_path / "logs")

    trail.record("info", "run.succeeded", run_id=1)

    assert isinstance(trail.write_error, FileNotFoundError)
    assert [event.event for event in trail.events] == ["run.started", "run.succeeded"]


def test_audit_trail_without_directory_stays_in_memory() -> None:
    trail = AuditTrail()
    trail.record("info", "run.started")
    assert trail.path is None
    assert len(trail.events) == 1


def test_audit_trail_is_thread_safe() -> None:
    trail = AuditTrail()

    def worker(index: int) -> None:
        for _ in range(50):
            trail.record("info", "run.started", run_id=index)

    threads = [threading.Thread(target=worker, args=(index,)) for index in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(trail.events) == 200


def test_timestamped_stem_is_unique() -> None:
    first = timestamped_stem("hashsafe")
    assert first.startswith("hashsafe-")
    assert first != timestamped_stem("hashsafe")


@pytest.mark.parametrize(
    ("name", "kind"),
    [
        ("notes.txt", "document"),
        ("report.pdf", "document"),
        ("photo.png", "image"),
        ("song.mp3", "audio"),
        ("clip.mp4", "video"),
        ("backup.tar.gz", "archive"),
        ("main.py", "code"),
        ("setup.exe", "executable"),
        ("blob", "file"),
    ],
)
def test_file_kind(name: str, kind: str) -> None:
    assert file_kind(Path(name)) == kind


def test_display_name_handles_undecodable_bytes() -> None:
    raw = Path(b"caf\xe9.txt".decode("utf-8", errors="surrogateescape"))
    assert display_name(raw) == "caf\ufffd.txt"
    assert display_name(Path("/tmp/résumé.pdf")) == "résumé.pdf"


def test_guess_mimetype_fallback() -> None:
    assert guess_mimetype(Path("unknown.zzz")) == "application/octet-stream"


def test_settings_defaults_and_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    assert Settings().block_size == DEFAULT_BLOCK_SIZE
    monkeypatch.setenv("HASHSAFE_BLOCK_SIZE", "4096")
    monkeypatch.setenv("HASHSAFE_LOG_DIR", str(tmp_path / "audit"))

    config = Settings()

    assert config.block_size == 4096
    assert config.log_dir == tmp_path / "audit"
    assert config.log_dir.is_dir()


@pytest.mark.parametrize("field", ["block_size", "max_workers", "poll_interval_ms"])
def test_settings_reject_non_positive(field: str) -> None:
    with pytest.raises(ValidationError):
        Settings(**{field: 0})


def test_io_error_mapping(tmp_path: Path) -> None:
    path = tmp_path / "x.bin"
    assert HashIOError.from_os_error(FileNotFoundError(2, "gone"), path).kind is ErrorKind.NOT_FOUND
    assert (
        HashIOError.from_os_error(PermissionError(13, "denied"), path).kind
        is ErrorKind.PERMISSION_DENIED
    )
    assert HashIOError.from_os_error(OSError(5, "eio"), path).kind is ErrorKind.OPEN_FAILED
    read_error = HashIOError.from_os_error(OSError(5, "eio"), path, reading=True)
    assert read_error.kind is ErrorKind.READ_FAILED
    assert str(read_error) == f"eio: {path}"
