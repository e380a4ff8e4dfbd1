from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from hashsafe.config import Settings  # noqa: E402
from hashsafe.engine.facade import HashEngine  # noqa: E402
from hashsafe.utils.audit import AuditTrail  # noqa: E402


@pytest.fixture()
def temp_settings(tmp_path: Path) -> Settings:
    return Settings(
        block_size=1024,
        max_workers=2,
        log_dir=tmp_path / "logs",
    )


@pytest.fixture()
def audit(temp_settings: Settings) -> AuditTrail:
    return AuditTrail(temp_settings.log_dir)


@pytest.fixture()
def engine(temp_settings: Settings, audit: AuditTrail) -> Iterator[HashEngine]:
    with HashEngine(config=temp_settings, audit=audit) as instance:
        yield instance


@pytest.fixture()
def deterministic_bytes() -> bytes:
    """Ten megabytes of repeatable, non-trivial content."""

    pattern = bytes(range(256)) * 4096
    return (pattern * 10)[: 10 * 1024 * 1024]
