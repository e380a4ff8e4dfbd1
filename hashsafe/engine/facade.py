from __future__ import annotations

import itertools
import queue
import threading
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from types import TracebackType

from hashsafe.config import Settings, settings
from hashsafe.engine.cancellation import CancellationToken
from hashsafe.engine.progress import ProgressSnapshot
from hashsafe.engine.reader import ChunkedReader
from hashsafe.engine.task import HashingTask, ProgressCallback
from hashsafe.engine.types import Done, OutcomeKind, RunOutcome, Running, RunStatus
from hashsafe.errors import HashIOError, RunCancelledError
from hashsafe.utils.audit import AuditTrail

RunEvent = ProgressSnapshot | RunOutcome


class RunHandle:
    """Caller-side view of one submitted run.

    Progress snapshots and the final outcome are queued in the order the
    worker produced them; ``events()`` drains that queue. ``poll()`` and
    ``latest`` give the most recent state without consuming anything.
    """

    def __init__(self, run_id: int, path: Path, token: CancellationToken) -> None:
        self.run_id = run_id
        self.path = path
        self._token = token
        self._events: queue.Queue[RunEvent | None] = queue.Queue()
        self._lock = threading.Lock()
        self._latest: ProgressSnapshot | None = None
        self._outcome: RunOutcome | None = None
        self._done = threading.Event()
        self._discarded = False
        self.task: HashingTask | None = None

    def __repr__(self) -> str:
        return f"RunHandle(run_id={self.run_id}, path={str(self.path)!r}, done={self.done})"

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def latest(self) -> ProgressSnapshot | None:
        return self._latest

    @property
    def outcome(self) -> RunOutcome | None:
        return self._outcome

    @property
    def cancel_requested(self) -> bool:
        return self._token.is_cancelled

    def cancel(self) -> None:
        """Ask the run to stop. Has no effect once the run has finished."""

        if not self.done:
            self._token.cancel()

    def poll(self) -> RunStatus:
        with self._lock:
            if self._outcome is not None:
                return Done(self._outcome)
            return Running(self._latest)

    def wait(self, timeout: float | None = None) -> RunOutcome:
        if not self._done.wait(timeout):
            msg = f"run {self.run_id} did not finish within {timeout} seconds"
            raise TimeoutError(msg)
        outcome = self._outcome
        if outcome is None:
            msg = f"run {self.run_id} finished without an outcome"
            raise RuntimeError(msg)
        return outcome

    def events(self, timeout: float | None = None) -> Iterator[RunEvent]:
        """Yield progress snapshots as they arrive, ending with the outcome.

        ``timeout`` bounds the wait for each event; ``queue.Empty`` is raised
        when it expires. The stream ends early once the handle is discarded.
        """

        while not self._discarded:
            event = self._events.get(timeout=timeout)
            if event is None:
                return
            yield event
            if isinstance(event, RunOutcome):
                return

    def discard(self) -> None:
        """Stop buffering events for this handle. The run itself is cancelled.

        Readers blocked in ``events()`` are woken and their stream ends.
        """

        self.cancel()
        with self._lock:
            if self._discarded:
                return
            self._discarded = True
            self._events.put(None)

    def _publish_progress(self, snapshot: ProgressSnapshot) -> None:
        with self._lock:
            if self._outcome is not None:
                return
            self._latest = snapshot
            if not self._discarded:
                self._events.put(snapshot)

    def _publish_outcome(self, outcome: RunOutcome) -> None:
        with self._lock:
            if self._outcome is not None:
                msg = f"run {self.run_id} already has an outcome"
                raise RuntimeError(msg)
            self._outcome = outcome
            if not self._discarded:
                self._events.put(outcome)
        self._done.set()


class HashEngine:
    """Entry point shared by the desktop and command-line front-ends.

    Each submitted path runs as an independent :class:`HashingTask` on a
    worker thread; nothing is shared between runs.
    """

    def __init__(
        self,
        config: Settings = settings,
        reader: ChunkedReader | None = None,
        audit: AuditTrail | None = None,
    ) -> None:
        self.config = config
        self.reader = reader or ChunkedReader(config.block_size)
        self.audit = audit or AuditTrail(config.log_dir)
        self._executor = ThreadPoolExecutor(
            max_workers=config.max_workers,
            thread_name_prefix="hashsafe",
        )
        self._ids = itertools.count(1)
        self._live: dict[int, RunHandle] = {}
        self._lock = threading.RLock()
        self._closed = False

    def __enter__(self) -> HashEngine:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.shutdown()

    def submit(self, path: Path, on_progress: ProgressCallback | None = None) -> RunHandle:
        """Start hashing ``path`` in the background and return its handle.

        ``on_progress`` is called on the worker thread after each block,
        before the snapshot is queued on the handle.
        """

        run_id = next(self._ids)
        handle = RunHandle(run_id, Path(path), CancellationToken())

        def report(snapshot: ProgressSnapshot) -> None:
            if on_progress is not None:
                on_progress(snapshot)
            handle._publish_progress(snapshot)

        task = HashingTask(
            path=handle.path,
            reader=self.reader,
            token=handle._token,
            on_progress=report,
            on_outcome=handle._publish_outcome,
            audit=self.audit,
            run_id=run_id,
        )
        handle.task = task
        with self._lock:
            if self._closed:
                msg = "engine has been shut down"
                raise RuntimeError(msg)
            self.audit.record("info", "run.submitted", run_id=run_id, path=str(handle.path))
            self._live[run_id] = handle
            future = self._executor.submit(task.run)
            future.add_done_callback(lambda _: self._forget(run_id))
        return handle

    def cancel(self, handle: RunHandle) -> None:
        handle.cancel()

    def poll(self, handle: RunHandle) -> RunStatus:
        return handle.poll()

    def hash_file(self, path: Path, timeout: float | None = None) -> str:
        """Hash ``path`` and block until the digest is available."""

        handle = self.submit(path)
        outcome = handle.wait(timeout)
        if outcome.kind is OutcomeKind.SUCCEEDED and outcome.digest_hex is not None:
            return outcome.digest_hex
        if outcome.kind is OutcomeKind.CANCELLED:
            msg = f"hashing cancelled: {path}"
            raise RunCancelledError(msg)
        if outcome.error_kind is None:
            msg = f"run {handle.run_id} ended without a digest or an error"
            raise RuntimeError(msg)
        raise HashIOError(outcome.error_kind, Path(path), outcome.error_message or "")

    def active_runs(self) -> list[RunHandle]:
        with self._lock:
            return list(self._live.values())

    def shutdown(self, wait: bool = True) -> None:
        """Cancel unfinished runs and stop the worker pool.

        Queued runs still execute long enough to report ``Cancelled``.
        """

        with self._lock:
            self._closed = True
            live = list(self._live.values())
        for handle in live:
            handle.cancel()
        self._executor.shutdown(wait=wait)

    def _forget(self, run_id: int) -> None:
        with self._lock:
            self._live.pop(run_id, None)


__all__ = ["HashEngine", "RunEvent", "RunHandle"]
