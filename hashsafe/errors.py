from __future__ import annotations

from enum import Enum
from pathlib import Path


class ErrorKind(str, Enum):
    """Why a run failed."""

    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    IS_A_DIRECTORY = "is_a_directory"
    OPEN_FAILED = "open_failed"
    READ_FAILED = "read_failed"
    INTERNAL = "internal"


class HashSafeError(Exception):
    """Base class for HashSafe errors."""


class HashIOError(HashSafeError):
    """A file could not be opened or read."""

    def __init__(self, kind: ErrorKind, path: Path, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.path = path
        self.message = message

    @classmethod
    def from_os_error(cls, error: OSError, path: Path, *, reading: bool = False) -> HashIOError:
        """Map an ``OSError`` to the matching error kind."""

        if isinstance(error, FileNotFoundError):
            kind = ErrorKind.NOT_FOUND
        elif isinstance(error, IsADirectoryError):
            kind = ErrorKind.IS_A_DIRECTORY
        elif isinstance(error, PermissionError):
            kind = ErrorKind.PERMISSION_DENIED
        elif reading:
            kind = ErrorKind.READ_FAILED
        else:
            kind = ErrorKind.OPEN_FAILED
        reason = error.strerror or str(error)
        return cls(kind, path, f"{reason}: {path}")


class DigestFinalizedError(HashSafeError):
    """Raised when a finalized digest is used again."""


class InvalidTransitionError(HashSafeError):
    """Raised when a hashing task leaves a terminal state or runs twice."""


class RunCancelledError(HashSafeError):
    """Raised by blocking helpers when the run ended cancelled."""


__all__ = [
    "DigestFinalizedError",
    "ErrorKind",
    "HashIOError",
    "HashSafeError",
    "InvalidTransitionError",
    "RunCancelledError",
]
