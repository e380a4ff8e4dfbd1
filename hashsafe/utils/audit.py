from __future__ import annotations

import json
import os
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from hashsafe.utils.files import timestamped_stem


def _redact(value: str, home: str) -> str:
    if not home or not value.startswith(home):
        return value
    rest = value[len(home):]
    if rest and rest[0] not in ("/", os.sep):
        return value
    return "~" + rest


def redact_details(details: dict[str, Any], home: str | None = None) -> dict[str, Any]:
    """Recursively replace the user's home directory prefix with ``~``."""

    home = str(Path.home()) if home is None else home
    redacted: dict[str, Any] = {}
    for key, value in details.items():
        if isinstance(value, str):
            redacted[key] = _redact(value, home)
        elif isinstance(value, Path):
            redacted[key] = _redact(str(value), home)
        elif isinstance(value, dict):
            redacted[key] = redact_details(value, home)
        elif isinstance(value, list):
            redacted[key] = [
                redact_details(item, home) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            redacted[key] = value
    return redacted


@dataclass(slots=True)
class AuditEvent:
    level: str
    event: str
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level,
            "event": self.event,
            "details": redact_details(self.details),
        }
        return payload


class AuditTrail:
    """Collect run events in memory, and as JSONL when a log directory is set."""

    def __init__(self, log_dir: Path | None = None) -> None:
        self.path: Path | None = None
        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            self.path = log_dir / f"{timestamped_stem('hashsafe')}.jsonl"
        self._events: list[AuditEvent] = []
        self._lock = threading.Lock()
        self.write_error: OSError | None = None

    def record(self, level: str, event: str, **details: Any) -> AuditEvent:
        """Keep the event and append it to the JSONL file.

        A failed append leaves the event in memory and is kept in
        ``write_error``; recording never interrupts a run.
        """

        audit_event = AuditEvent(level=level, event=event, details=details)
        with self._lock:
            self._events.append(audit_event)
            if self.path is not None:
                line = json.dumps(audit_event.to_dict(), ensure_ascii=False) + "\n"
                try:
                    with self.path.open("a", encoding="utf-8") as handle:
                        handle.write(line)
                except OSError as error:
                    self.write_error = error
        return audit_event

    @property
    def events(self) -> list[AuditEvent]:
        with self._lock:
            return list(self._events)


__all__ = ["AuditTrail", "AuditEvent", "redact_details"]
