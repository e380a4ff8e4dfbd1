from __future__ import annotations

import hashlib

import pytest

from hashsafe.engine.digest import DigestAccumulator
from hashsafe.engine.reader import Block
from hashsafe.errors import DigestFinalizedError

EMPTY = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
ABC = "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
TWO_BLOCK = "248d6a61d20638b8e5c026930c3e6039a33ce45964ff2167f6ecedd419db06c1"
MILLION_A = "cdc76e5c9914fb9281a1c7e284d73e67f1809a48a497200e046d39ccc7112cd0"


def _digest(*chunks: bytes) -> str:
    accumulator = DigestAccumulator()
    for chunk in chunks:
        accumulator.absorb(chunk)
    return accumulator.finalize()


def test_empty_input_vector() -> None:
    assert _digest() == EMPTY


def test_abc_vector() -> None:
    assert _digest(b"abc") == ABC
    assert _digest(b"a", b"b", b"c") == ABC


def test_two_block_vector() -> None:
    message = b"abcdbcdecdefdefgefghfghighijhijkijkljklmklmnlmnomnopnopq"
    assert _digest(message) == TWO_BLOCK


def test_million_a_vector() -> None:
    assert _digest(*([b"a" * 1000] * 1000)) == MILLION_A


@pytest.mark.parametrize("length", [55, 56, 63, 64, 65, 127, 128, 129])
def test_block_boundaries_match_reference(length: int) -> None:
    message = bytes(index % 251 for index in range(length))
    assert _digest(message) == hashlib.sha256(message).hexdigest()


def test_absorb_accepts_blocks() -> None:
    accumulator = DigestAccumulator()
    accumulator.absorb(Block(offset=0, data=b"ab"))
    accumulator.absorb(Block(offset=2, data=b"c"))
    assert accumulator.finalize() == ABC


def test_finalize_consumes_state() -> None:
    accumulator = DigestAccumulator()
    accumulator.absorb(b"abc")
    digest = accumulator.finalize()

    assert accumulator.finalized
    assert len(digest) == 64
    assert digest == digest.lower()
    with pytest.raises(DigestFinalizedError):
        accumulator.absorb(b"more")
    with pytest.raises(DigestFinalizedError):
        accumulator.finalize()
