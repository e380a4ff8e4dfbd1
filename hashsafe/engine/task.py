from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path

from hashsafe.engine.cancellation import CancellationToken
from hashsafe.engine.digest import DigestAccumulator
from hashsafe.engine.progress import ProgressSnapshot, ProgressTracker
from hashsafe.engine.reader import ChunkedReader, FileHandle
from hashsafe.engine.types import RunOutcome, RunState
from hashsafe.errors import ErrorKind, HashIOError, InvalidTransitionError
from hashsafe.utils.audit import AuditTrail

ProgressCallback = Callable[[ProgressSnapshot], None]
OutcomeCallback = Callable[[RunOutcome], None]


class HashingTask:
    """Stream one file through SHA-256, reporting progress and honouring cancellation.

    The task moves ``PENDING -> RUNNING -> {SUCCEEDED, CANCELLED, FAILED}``.
    Cancellation is observed before the file is opened and before every
    block is pulled, so at most one block is read after a request. The file
    handle is closed on every exit path and exactly one outcome is emitted.
    """

    def __init__(
        self,
        path: Path,
        reader: ChunkedReader,
        token: CancellationToken,
        on_progress: ProgressCallback | None = None,
        on_outcome: OutcomeCallback | None = None,
        audit: AuditTrail | None = None,
        run_id: int | None = None,
    ) -> None:
        self.path = path
        self.reader = reader
        self.token = token
        self.on_progress = on_progress
        self.on_outcome = on_outcome
        self.audit = audit
        self.run_id = run_id
        self._state = RunState.PENDING
        self._state_lock = threading.Lock()
        self._handle: FileHandle | None = None
        self._outcome: RunOutcome | None = None

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def outcome(self) -> RunOutcome | None:
        return self._outcome

    @property
    def file_released(self) -> bool:
        return self._handle is None or self._handle.closed

    def run(self) -> RunOutcome:
        self._transition(RunState.RUNNING)
        try:
            self._record("info", "run.started", path=str(self.path))
            outcome = self._hash()
        except HashIOError as error:
            outcome = RunOutcome.failed(error.kind, error.message)
        except Exception as error:  # noqa: BLE001 - every run must end with an outcome
            outcome = RunOutcome.failed(ErrorKind.INTERNAL, f"{type(error).__name__}: {error}")
        finally:
            if self._handle is not None:
                self._handle.close()
        return self._finish(outcome)

    def _hash(self) -> RunOutcome:
        if self.token.is_cancelled:
            return RunOutcome.cancelled()
        self._handle = self.reader.open(self.path)
        digest = DigestAccumulator()
        tracker = ProgressTracker(self._handle.total_bytes)
        while True:
            if self.token.is_cancelled:
                return RunOutcome.cancelled()
            block = self.reader.next_block(self._handle)
            if block is None:
                return RunOutcome.success(digest.finalize())
            digest.absorb(block)
            snapshot = tracker.update(len(block))
            if self.on_progress is not None:
                self.on_progress(snapshot)

    def _finish(self, outcome: RunOutcome) -> RunOutcome:
        self._transition(outcome.state)
        self._outcome = outcome
        if self.on_outcome is not None:
            self.on_outcome(outcome)
        if outcome.succeeded:
            self._record("info", "run.succeeded", path=str(self.path), sha256=outcome.digest_hex)
        elif outcome.state is RunState.CANCELLED:
            self._record("warning", "run.cancelled", path=str(self.path))
        else:
            self._record(
                "error",
                "run.failed",
                path=str(self.path),
                kind=outcome.error_kind.value if outcome.error_kind else None,
                error=outcome.error_message,
            )
        return outcome

    def _transition(self, new_state: RunState) -> None:
        with self._state_lock:
            current = self._state
            allowed = (
                current is RunState.PENDING and new_state is RunState.RUNNING
            ) or (current is RunState.RUNNING and new_state.terminal)
            if not allowed:
                msg = f"cannot move from {current.value} to {new_state.value}"
                raise InvalidTransitionError(msg)
            self._state = new_state

    def _record(self, level: str, event: str, **details: object) -> None:
        if self.audit is not None:
            self.audit.record(level, event, run_id=self.run_id, **details)


__all__ = ["HashingTask", "OutcomeCallback", "ProgressCallback"]
