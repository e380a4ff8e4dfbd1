from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from hashsafe.engine.progress import ProgressSnapshot
from hashsafe.errors import ErrorKind


class RunState(str, Enum):
    """Lifecycle of a hashing task."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self not in (RunState.PENDING, RunState.RUNNING)


class OutcomeKind(str, Enum):
    SUCCEEDED = "succeeded"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class RunOutcome:
    """Terminal result of one run. Only a success carries a digest."""

    kind: OutcomeKind
    digest_hex: str | None = None
    error_kind: ErrorKind | None = None
    error_message: str | None = None

    @classmethod
    def success(cls, digest_hex: str) -> RunOutcome:
        return cls(kind=OutcomeKind.SUCCEEDED, digest_hex=digest_hex)

    @classmethod
    def cancelled(cls) -> RunOutcome:
        return cls(kind=OutcomeKind.CANCELLED)

    @classmethod
    def failed(cls, error_kind: ErrorKind, message: str) -> RunOutcome:
        return cls(kind=OutcomeKind.FAILED, error_kind=error_kind, error_message=message)

    @property
    def succeeded(self) -> bool:
        return self.kind is OutcomeKind.SUCCEEDED

    @property
    def state(self) -> RunState:
        return RunState(self.kind.value)


@dataclass(frozen=True, slots=True)
class Running:
    """Poll result for a run that has not finished yet."""

    snapshot: ProgressSnapshot | None


@dataclass(frozen=True, slots=True)
class Done:
    """Poll result for a finished run."""

    outcome: RunOutcome


RunStatus = Running | Done


__all__ = [
    "Done",
    "ErrorKind",
    "OutcomeKind",
    "RunOutcome",
    "RunState",
    "RunStatus",
    "Running",
]
