from __future__ import annotations

import mimetypes
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

_ARCHIVE_SUFFIXES = {".zip", ".tar", ".gz", ".tgz", ".bz2", ".xz", ".7z", ".rar"}
_CODE_SUFFIXES = {".py", ".rs", ".c", ".h", ".cpp", ".java", ".js", ".ts", ".html", ".css"}
_EXECUTABLE_SUFFIXES = {".exe", ".app", ".dmg", ".msi", ".deb", ".rpm", ".appimage"}
_DOCUMENT_MIMES = {"application/pdf", "application/rtf", "application/msword"}


def timestamped_stem(prefix: str) -> str:
    """Return a safe stem combining prefix, timestamp and a random suffix."""

    now = datetime.now(tz=UTC).strftime("%Y%m%dT%H%M%S")
    return f"{prefix}-{now}-{uuid4().hex[:8]}"


def guess_mimetype(path: Path, fallback: str = "application/octet-stream") -> str:
    """Guess mimetype using Python's mimetypes library."""

    guess, _ = mimetypes.guess_type(path)
    return guess or fallback


def display_name(path: Path) -> str:
    """File name suitable for display, with undecodable bytes replaced."""

    name = path.name or str(path)
    return name.encode("utf-8", errors="surrogateescape").decode("utf-8", errors="replace")


def file_kind(path: Path) -> str:
    """Coarse type label for the file badge shown in the desktop UI."""

    suffix = path.suffix.lower()
    if suffix in _ARCHIVE_SUFFIXES:
        return "archive"
    if suffix in _EXECUTABLE_SUFFIXES:
        return "executable"
    if suffix in _CODE_SUFFIXES:
        return "code"
    mime = guess_mimetype(path)
    major = mime.split("/", 1)[0]
    if major in {"image", "audio", "video"}:
        return major
    if major == "text" or mime in _DOCUMENT_MIMES:
        return "document"
    return "file"


__all__ = [
    "display_name",
    "file_kind",
    "guess_mimetype",
    "timestamped_stem",
]
