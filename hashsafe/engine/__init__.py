"""Asynchronous, cancellable SHA-256 file hashing engine."""

from hashsafe.engine.cancellation import CancellationToken
from hashsafe.engine.digest import DigestAccumulator
from hashsafe.engine.facade import HashEngine, RunEvent, RunHandle
from hashsafe.engine.progress import ProgressSnapshot, ProgressTracker
from hashsafe.engine.reader import Block, ChunkedReader, FileHandle
from hashsafe.engine.task import HashingTask
from hashsafe.engine.types import Done, ErrorKind, OutcomeKind, RunOutcome, Running, RunState, RunStatus

__all__ = [
    "Block",
    "CancellationToken",
    "ChunkedReader",
    "DigestAccumulator",
    "Done",
    "ErrorKind",
    "FileHandle",
    "HashEngine",
    "HashingTask",
    "OutcomeKind",
    "ProgressSnapshot",
    "ProgressTracker",
    "RunEvent",
    "RunHandle",
    "RunOutcome",
    "RunState",
    "RunStatus",
    "Running",
]
