from __future__ import annotations

import errno
import os
import stat
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from hashsafe.config import DEFAULT_BLOCK_SIZE
from hashsafe.errors import HashIOError


@dataclass(frozen=True, slots=True)
class Block:
    """Bytes read from a file at a known offset."""

    offset: int
    data: bytes

    def __len__(self) -> int:
        return len(self.data)


@dataclass(slots=True)
class FileHandle:
    """An open input file, owned by a single run."""

    path: Path
    stream: BinaryIO
    total_bytes: int | None
    offset: int = 0

    @property
    def closed(self) -> bool:
        return self.stream.closed

    def close(self) -> None:
        if not self.stream.closed:
            self.stream.close()


class ChunkedReader:
    """Read files in blocks of at most ``block_size`` bytes."""

    def __init__(self, block_size: int = DEFAULT_BLOCK_SIZE) -> None:
        if block_size <= 0:
            msg = "block_size must be positive"
            raise ValueError(msg)
        self.block_size = block_size

    def open(self, path: Path) -> FileHandle:
        """Open ``path`` for reading and record its size when it is a regular file."""

        try:
            stream = path.open("rb")
        except OSError as error:
            raise HashIOError.from_os_error(error, path) from error
        try:
            info = os.fstat(stream.fileno())
        except OSError as error:
            stream.close()
            raise HashIOError.from_os_error(error, path) from error
        if stat.S_ISDIR(info.st_mode):
            stream.close()
            reason = IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR))
            raise HashIOError.from_os_error(reason, path)
        total = info.st_size if stat.S_ISREG(info.st_mode) else None
        return FileHandle(path=path, stream=stream, total_bytes=total)

    def next_block(self, handle: FileHandle) -> Block | None:
        """Return the next block, or ``None`` at end of file."""

        try:
            data = handle.stream.read(self.block_size)
        except OSError as error:
            raise HashIOError.from_os_error(error, handle.path, reading=True) from error
        if not data:
            return None
        block = Block(offset=handle.offset, data=data)
        handle.offset += len(data)
        return block

    def iter_blocks(self, handle: FileHandle) -> Iterator[Block]:
        while (block := self.next_block(handle)) is not None:
            yield block


__all__ = ["Block", "ChunkedReader", "FileHandle"]
