from __future__ import annotations

import hashlib

from hashsafe.engine.reader import Block
from hashsafe.errors import DigestFinalizedError


class DigestAccumulator:
    """SHA-256 state for a single run. Finalizing consumes it."""

    algorithm = "sha256"

    def __init__(self) -> None:
        self._state = hashlib.sha256()
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def absorb(self, block: Block | bytes) -> None:
        """Feed the next block, in file order."""

        if self._finalized:
            msg = "cannot absorb into a finalized digest"
            raise DigestFinalizedError(msg)
        data = block.data if isinstance(block, Block) else block
        self._state.update(data)

    def finalize(self) -> str:
        """Return the lowercase hex digest and close the accumulator."""

        if self._finalized:
            msg = "digest already finalized"
            raise DigestFinalizedError(msg)
        self._finalized = True
        return self._state.hexdigest()


__all__ = ["DigestAccumulator"]
