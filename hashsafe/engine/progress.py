from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    """Bytes absorbed so far, against the total when it is known."""

    bytes_processed: int
    total_bytes: int | None = None
    fraction_complete: float | None = None

    @property
    def indeterminate(self) -> bool:
        return self.fraction_complete is None

    @property
    def percent(self) -> int | None:
        if self.fraction_complete is None:
            return None
        return int(self.fraction_complete * 100)


class ProgressTracker:
    """Accumulate bytes read and derive a completion fraction.

    Updates may arrive in any size. Without a total size every snapshot is
    indeterminate. A file that grows while being read never reports more
    than complete.
    """

    def __init__(self, total_bytes: int | None = None) -> None:
        if total_bytes is not None and total_bytes < 0:
            msg = "total_bytes must not be negative"
            raise ValueError(msg)
        self.total_bytes = total_bytes
        self._processed = 0

    @property
    def bytes_processed(self) -> int:
        return self._processed

    def update(self, bytes_just_read: int) -> ProgressSnapshot:
        if bytes_just_read < 0:
            msg = "bytes_just_read must not be negative"
            raise ValueError(msg)
        self._processed += bytes_just_read
        return self.snapshot()

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            bytes_processed=self._processed,
            total_bytes=self.total_bytes,
            fraction_complete=self._fraction(),
        )

    def _fraction(self) -> float | None:
        if self.total_bytes is None:
            return None
        if self.total_bytes == 0:
            return 1.0
        return min(1.0, self._processed / self.total_bytes)


__all__ = ["ProgressSnapshot", "ProgressTracker"]
